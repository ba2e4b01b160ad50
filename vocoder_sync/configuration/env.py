"""Pydantic Settings model for application configuration."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict

from vocoder_sync.utils.constants import DEFAULT_APP_EMAIL, DEFAULT_APP_NAME, DEFAULT_CONFIG_FILE_PATH


class Settings(BaseSettings):
    """Environment variable settings for the application."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore",
    )

    # Generic application-wide settings
    DEBUG: bool = False

    # GitHub API settings
    GITHUB_API_URL: str = "https://api.github.com"
    REPO: str | None = None

    # GitHub PAT settings
    GITHUB_PAT_TOKEN: str | None = None

    # GitHub App settings
    GITHUB_APP_ID: int | None = None
    GITHUB_APP_PRIVATE_KEY_PATH: Path | None = None
    GITHUB_APP_INSTALLATION_ID: int | None = None

    # Localization app settings
    CONFIG_FILE_PATH: str = DEFAULT_CONFIG_FILE_PATH
    APP_NAME: str = DEFAULT_APP_NAME
    APP_EMAIL: str = DEFAULT_APP_EMAIL

    # Translation provider; placeholder translations must be opted into with TRANSLATION_MOCK
    TRANSLATION_API_URL: str | None = None
    TRANSLATION_TIMEOUT: float = 30.0
    TRANSLATION_MOCK: bool = False

    # Branch commit behavior
    COMMIT_MAX_ATTEMPTS: int = 3
    FORCE_REF_UPDATE: bool = False
