"""Contains utility functions for GitHub interactions."""

BRANCH_REF_PREFIX = "refs/heads/"


async def split_repository_in_configuration(repo: str | None) -> tuple[str, str]:
    """Splits the repository in the configuration into owner and repository."""
    if repo is None:
        raise ValueError("A repository in 'owner/repo' format is required.")
    repo = repo.strip("/")
    parts = repo.split("/")
    if len(parts) != 2 or not all(parts):
        raise ValueError("Repository must be in the format 'owner/repo' with no leading/trailing slashes or extra parts.")
    owner, repository = parts
    return owner, repository


def branch_name_from_ref(ref: str) -> str | None:
    """Return the branch name of a fully qualified ref, or None for tags and other refs."""
    if not ref.startswith(BRANCH_REF_PREFIX):
        return None
    return ref[len(BRANCH_REF_PREFIX) :]


def normalize_repository_path(path: str) -> str:
    """Strip leading and trailing slashes from a repository-relative path."""
    return path.strip("/")
