"""Builds authenticated githubkit clients for a single repository."""

from pathlib import Path
from typing import TypeAlias

import structlog
from githubkit import GitHub
from githubkit.auth import (
    AppAuthStrategy,
    AppInstallationAuthStrategy,
    TokenAuthStrategy,
)
from githubkit.versions.latest.models import Installation

from vocoder_sync.configuration.models import GitHubAuthenticationType
from vocoder_sync.utils.constants import GITHUB_CLIENT_USER_AGENT
from vocoder_sync.utils.github import split_repository_in_configuration

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

GitHubClient: TypeAlias = GitHub[AppInstallationAuthStrategy] | GitHub[TokenAuthStrategy]


def _read_private_key(private_key_path: Path) -> str:
    """Read a GitHub App private key in PEM format."""
    try:
        return private_key_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise RuntimeError(f"Unable to read GitHub App private key at {private_key_path}: {exc}") from exc


async def find_installation_id(app_client: GitHub[AppAuthStrategy], repo: str) -> int:
    """Look up the ID of the app installation that covers a repository."""
    owner, repository = await split_repository_in_configuration(repo=repo)
    resp = await app_client.rest.apps.async_get_repo_installation(owner=owner, repo=repository)
    installation: Installation = resp.parsed_data
    logger.debug("Found GitHub App installation for repository", repo=repo, installation_id=installation.id)
    return installation.id


async def get_github_app_client(
    repo: str,
    github_app_id: int,
    github_app_private_key_path: Path,
    github_app_installation_id: int | None,
    github_api_url: str,
) -> GitHub[AppInstallationAuthStrategy]:
    """Returns a client authenticated as the app installation for repo.

    When no installation ID is configured, it is looked up per repository, so
    one app can serve every repository it is installed on.
    """
    auth = AppAuthStrategy(app_id=github_app_id, private_key=_read_private_key(github_app_private_key_path))
    # Disable HTTP caching so branch heads are always read fresh
    app_client = GitHub(auth=auth, base_url=github_api_url, http_cache=False, user_agent=GITHUB_CLIENT_USER_AGENT)
    try:
        if github_app_installation_id is None:
            github_app_installation_id = await find_installation_id(app_client, repo)
    except Exception as e:
        raise ValueError(f"Failed to get GitHub App installation for {repo}: {e}") from e
    return app_client.with_auth(app_client.auth.as_installation(github_app_installation_id))


async def get_github_pat_client(github_pat_token: str, github_api_url: str) -> GitHub[TokenAuthStrategy]:
    """Returns a client authenticated with a personal access token."""
    return GitHub(auth=TokenAuthStrategy(github_pat_token), base_url=github_api_url, http_cache=False, user_agent=GITHUB_CLIENT_USER_AGENT)


async def get_github_client(
    repo: str,
    github_auth_type: GitHubAuthenticationType,
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
    github_api_url: str,
) -> GitHubClient:
    """Returns a client for repo using the configured authentication type.

    github_api_url may point at a GitHub Enterprise Server instance.

    Raises:
        RuntimeError: If the credentials for the chosen type are missing.
    """
    if github_auth_type == GitHubAuthenticationType.APP:
        if not (github_app_id and github_app_private_key_path):
            raise RuntimeError("GitHub App authentication requires app_id and private_key_path in config.")
        return await get_github_app_client(repo, github_app_id, github_app_private_key_path, github_app_installation_id, github_api_url)
    if not github_pat_token:
        raise RuntimeError("GitHub PAT authentication requires github_pat_token in config.")
    return await get_github_pat_client(github_pat_token, github_api_url)
