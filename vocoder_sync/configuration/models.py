"""Models for runtime configuration reconciled from CLI arguments and environment variables."""

from dataclasses import dataclass
from enum import Enum
from pathlib import Path


class GitHubAuthenticationType(str, Enum):
    """Enum for GitHub authentication types."""

    PAT = "pat"
    APP = "app"


@dataclass(frozen=True)
class AppIdentity:
    """Name and e-mail the app commits as; the name doubles as the commit status context."""

    name: str
    email: str


@dataclass
class RuntimeConfig:
    """Process-wide settings needed to build the synchronization components."""

    debug: bool
    github_api_url: str
    github_authentication_type: GitHubAuthenticationType
    github_pat_token: str | None
    github_app_id: int | None
    github_app_private_key_path: Path | None
    github_app_installation_id: int | None
    config_file_path: str
    app_identity: AppIdentity
    translation_api_url: str | None
    translation_timeout: float
    translation_mock: bool
    commit_max_attempts: int
    force_ref_update: bool
