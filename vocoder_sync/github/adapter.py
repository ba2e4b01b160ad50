"""GitHub client adapter for the githubkit library."""

import base64
from functools import wraps
from pathlib import Path
from typing import Any, Awaitable, Callable, Literal, Self, TypeVar

import structlog
from githubkit import Response
from githubkit.exception import GitHubException
from githubkit.versions.latest.models import FullRepository, PullRequest, PullRequestSimple

from vocoder_sync.configuration.models import GitHubAuthenticationType
from vocoder_sync.utils.github import normalize_repository_path, split_repository_in_configuration
from vocoder_sync.utils.retry import retry_on_rate_limit

from .abc import GitHubClientBase
from .client import GitHubClient, get_github_client
from .exceptions import GitHubAPIError, NotFoundError, classify_request_failure

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Awaitable[Any]])


def raise_typed_github_errors(ref_update: bool = False) -> Callable[[F], F]:
    """Decorator translating githubkit exceptions into the typed GitHub error taxonomy."""

    def decorator(func: F) -> F:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> Any:
            try:
                return await func(*args, **kwargs)
            except GitHubAPIError:
                raise
            except GitHubException as exc:
                error = classify_request_failure(exc, ref_update=ref_update)
                logger.debug(
                    "GitHub API call failed",
                    function=func.__name__,
                    error_type=type(error).__name__,
                    status_code=error.status_code,
                    message=error.message,
                )
                raise error from exc

        return wrapper  # type: ignore

    return decorator


class GitHubKitAdapter(GitHubClientBase):
    """GitHub client adapter for the githubkit library."""

    def __init__(self, client: GitHubClient, owner: str, repo_name: str) -> None:
        """Initialize the GitHub client adapter with an already-initialized client."""
        self.client = client
        self.owner = owner
        self.repo_name = repo_name

    def _omit_null_parameters(self, **kwargs: Any) -> dict[str, Any]:
        """Omit parameters that are None."""
        return {k: v for k, v in kwargs.items() if v is not None}

    @classmethod
    async def create(
        cls,
        repo: str,
        github_auth_type: GitHubAuthenticationType,
        github_pat_token: str | None = None,
        github_app_id: int | None = None,
        github_app_private_key_path: Path | None = None,
        github_app_installation_id: int | None = None,
        github_api_url: str = "https://api.github.com",
    ) -> Self:
        """Create a new GitHub client adapter.

        Args:
            repo: Repository in 'owner/repo' format
            github_auth_type: Type of authentication (PAT or APP)
            github_pat_token: Personal access token (required for PAT auth)
            github_app_id: GitHub App ID (required for APP auth)
            github_app_private_key_path: Path to private key file (required for APP auth)
            github_app_installation_id: Installation ID (looked up from the repository when omitted)
            github_api_url: GitHub API URL (defaults to https://api.github.com)

        Returns:
            Configured GitHubKitAdapter instance
        """
        owner, repo_name = await split_repository_in_configuration(repo=repo)
        logger.info(
            "Creating client for GitHub instance and repository",
            github_api_url=github_api_url,
            owner=owner,
            repo_name=repo_name,
        )
        client = await get_github_client(
            repo=repo,
            github_auth_type=github_auth_type,
            github_pat_token=github_pat_token,
            github_app_id=github_app_id,
            github_app_private_key_path=github_app_private_key_path,
            github_app_installation_id=github_app_installation_id,
            github_api_url=github_api_url,
        )
        return cls(client, owner, repo_name)

    # Repository
    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def get_repository(self) -> FullRepository:
        """Get the repository for the current client."""
        response: Response[FullRepository] = await self.client.rest.repos.async_get(owner=self.owner, repo=self.repo_name)
        return response.parsed_data

    async def get_default_branch(self) -> str:
        """Get the name of the repository's default branch."""
        repository = await self.get_repository()
        return repository.default_branch

    # Contents
    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def get_file_content(self, file_path: str, ref: str) -> str:
        """Get the decoded content of a file at a branch, tag, or commit SHA.

        Raises:
            NotFoundError: If the path does not exist at ref or is not a regular file.
            UnicodeDecodeError: If the file is not UTF-8 text.
        """
        normalized_path = normalize_repository_path(file_path)
        response = await self.client.rest.repos.async_get_content(
            owner=self.owner,
            repo=self.repo_name,
            path=normalized_path,
            ref=ref,
        )
        content = response.parsed_data
        if isinstance(content, list) or getattr(content, "type", None) != "file":
            raise NotFoundError(f"{normalized_path} is not a file at {ref}", 404)
        return base64.b64decode(content.content).decode("utf-8")

    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def create_file(self, file_path: str, content: str, message: str, branch: str) -> None:
        """Create a file on a branch using the GitHub Contents API."""
        encoded_content = base64.b64encode(content.encode("utf-8")).decode("utf-8")
        await self.client.rest.repos.async_create_or_update_file_contents(
            owner=self.owner,
            repo=self.repo_name,
            path=normalize_repository_path(file_path),
            message=message,
            content=encoded_content,
            branch=branch,
        )
        logger.info("Created file on branch", file=file_path, branch=branch)

    # Pull requests
    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def get_pull_request(self, pull_number: int) -> PullRequest:
        """Get a pull request from the repository."""
        response: Response[PullRequest] = await self.client.rest.pulls.async_get(owner=self.owner, repo=self.repo_name, pull_number=pull_number)
        return response.parsed_data

    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def list_pull_requests(
        self, state: Literal["open", "closed", "all"] = "open", base: str | None = None, per_page: int = 100, **kwargs: Any
    ) -> list[PullRequestSimple]:
        """List pull requests for a repository, handling pagination."""
        all_pull_requests: list[PullRequestSimple] = []
        page: int = 1
        while True:
            params = self._omit_null_parameters(state=state, base=base, per_page=per_page, page=page, **kwargs)
            response: Response[list[PullRequestSimple]] = await self.client.rest.pulls.async_list(
                owner=self.owner,
                repo=self.repo_name,
                **params,
            )
            pull_requests: list[PullRequestSimple] = response.parsed_data
            if not pull_requests:
                break
            all_pull_requests.extend(pull_requests)
            if len(pull_requests) < per_page:
                break
            page += 1
        return all_pull_requests

    # Git data
    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def get_branch_head(self, branch: str) -> str:
        """Get the commit SHA the branch currently points at."""
        response = await self.client.rest.git.async_get_ref(owner=self.owner, repo=self.repo_name, ref=f"heads/{branch}")
        return response.parsed_data.object_.sha

    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def get_commit_tree_sha(self, commit_sha: str) -> str:
        """Get the SHA of the tree a commit points at."""
        response = await self.client.rest.git.async_get_commit(owner=self.owner, repo=self.repo_name, commit_sha=commit_sha)
        return response.parsed_data.tree.sha

    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def create_blob(self, content: str) -> str:
        """Create a UTF-8 blob and return its SHA."""
        response = await self.client.rest.git.async_create_blob(
            owner=self.owner,
            repo=self.repo_name,
            content=content,
            encoding="utf-8",
        )
        return response.parsed_data.sha

    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def create_tree(self, base_tree: str, entries: list[dict[str, str]]) -> str:
        """Create a tree on top of base_tree and return its SHA."""
        response = await self.client.rest.git.async_create_tree(
            owner=self.owner,
            repo=self.repo_name,
            base_tree=base_tree,
            tree=entries,  # type: ignore
        )
        return response.parsed_data.sha

    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def create_commit(self, message: str, tree_sha: str, parents: list[str], author: dict[str, str] | None = None) -> str:
        """Create a commit object and return its SHA."""
        params = self._omit_null_parameters(author=author)
        response = await self.client.rest.git.async_create_commit(
            owner=self.owner,
            repo=self.repo_name,
            message=message,
            tree=tree_sha,
            parents=parents,
            **params,
        )
        return response.parsed_data.sha

    @raise_typed_github_errors(ref_update=True)
    @retry_on_rate_limit()
    async def update_branch_ref(self, branch: str, sha: str, force: bool = False) -> None:
        """Point a branch at a commit, failing on non-fast-forward unless force is set."""
        await self.client.rest.git.async_update_ref(
            owner=self.owner,
            repo=self.repo_name,
            ref=f"heads/{branch}",
            sha=sha,
            force=force,
        )
        logger.info("Updated branch ref", branch=branch, sha=sha, force=force)

    # Statuses
    @raise_typed_github_errors()
    @retry_on_rate_limit()
    async def create_commit_status(
        self,
        sha: str,
        state: Literal["error", "failure", "pending", "success"],
        description: str,
        context: str,
    ) -> None:
        """Create a commit status on a SHA."""
        await self.client.rest.repos.async_create_commit_status(
            owner=self.owner,
            repo=self.repo_name,
            sha=sha,
            state=state,
            description=description,
            context=context,
        )
