"""Reconciles runtime configuration between CLI arguments and environment variables."""

from pathlib import Path

import structlog

from vocoder_sync.configuration.env import Settings
from vocoder_sync.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError, InvalidRuntimeSettingError
from vocoder_sync.configuration.models import AppIdentity, GitHubAuthenticationType, RuntimeConfig

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def validate_github_authentication_configuration(
    github_pat_token: str | None,
    github_app_id: int | None,
    github_app_private_key_path: Path | None,
    github_app_installation_id: int | None,
) -> GitHubAuthenticationType:
    """Validates the GitHub authentication configuration.

    A GitHub App needs its ID and private key; the installation ID is optional
    because it can be looked up per repository.

    Args:
        github_pat_token (str | None): The GitHub PAT token.
        github_app_id (int | None): The GitHub App ID.
        github_app_private_key_path (Path | None): The path to the GitHub App private key.
        github_app_installation_id (int | None): The GitHub App installation ID.

    Raises:
        GitHubAuthenticationConfigurationUndefinedError: If neither or both configurations are defined,
            or the GitHub App configuration is incomplete.

    Returns:
        GitHubAuthenticationType: The type of GitHub authentication used.
    """
    app_settings_present = bool(github_app_id or github_app_private_key_path or github_app_installation_id)
    if github_pat_token and app_settings_present:
        raise GitHubAuthenticationConfigurationUndefinedError("Both PAT and GitHub App configurations are defined. Please use one or the other.")

    if github_pat_token:
        return GitHubAuthenticationType.PAT

    if github_app_id and github_app_private_key_path:
        return GitHubAuthenticationType.APP

    if app_settings_present:
        missing_settings: list[dict[str, str]] = []
        if not github_app_id:
            missing_settings.append({"name": "GitHub App ID", "cli_name": "github_app_id", "env_name": "GITHUB_APP_ID"})
        if not github_app_private_key_path:
            missing_settings.append(
                {
                    "name": "GitHub App private key path",
                    "cli_name": "github_app_private_key_path",
                    "env_name": "GITHUB_APP_PRIVATE_KEY_PATH",
                }
            )
        msg = "Incomplete GitHub App configuration - missing settings include " + ", ".join(
            f"{setting['name']} (command line option {setting['cli_name']}, environment variable {setting['env_name']})"
            for setting in missing_settings
        )
        raise GitHubAuthenticationConfigurationUndefinedError(msg)

    raise GitHubAuthenticationConfigurationUndefinedError(
        "No GitHub authentication configuration provided. Please provide either a PAT or a GitHub App configuration."
    )


def _translation_mode(runtime_config: RuntimeConfig) -> str:
    if runtime_config.translation_api_url:
        return "http"
    return "mock" if runtime_config.translation_mock else "unconfigured"


async def reconcile_runtime_configuration(
    settings: Settings,
    cli_debug: bool | None = None,
    cli_github_api_url: str | None = None,
    cli_translation_api_url: str | None = None,
) -> RuntimeConfig:
    """Combine environment settings and CLI overrides into a RuntimeConfig.

    CLI values win over environment values when they are provided.
    """
    github_authentication_type = await validate_github_authentication_configuration(
        github_pat_token=settings.GITHUB_PAT_TOKEN,
        github_app_id=settings.GITHUB_APP_ID,
        github_app_private_key_path=settings.GITHUB_APP_PRIVATE_KEY_PATH,
        github_app_installation_id=settings.GITHUB_APP_INSTALLATION_ID,
    )

    if settings.COMMIT_MAX_ATTEMPTS < 1:
        raise InvalidRuntimeSettingError("COMMIT_MAX_ATTEMPTS", settings.COMMIT_MAX_ATTEMPTS, "must be at least 1")
    if not settings.CONFIG_FILE_PATH.strip("/"):
        raise InvalidRuntimeSettingError("CONFIG_FILE_PATH", settings.CONFIG_FILE_PATH, "must name a file")

    runtime_config = RuntimeConfig(
        debug=cli_debug if cli_debug is not None else settings.DEBUG,
        github_api_url=cli_github_api_url or settings.GITHUB_API_URL,
        github_authentication_type=github_authentication_type,
        github_pat_token=settings.GITHUB_PAT_TOKEN,
        github_app_id=settings.GITHUB_APP_ID,
        github_app_private_key_path=settings.GITHUB_APP_PRIVATE_KEY_PATH,
        github_app_installation_id=settings.GITHUB_APP_INSTALLATION_ID,
        config_file_path=settings.CONFIG_FILE_PATH,
        app_identity=AppIdentity(name=settings.APP_NAME, email=settings.APP_EMAIL),
        translation_api_url=cli_translation_api_url or settings.TRANSLATION_API_URL or None,
        translation_timeout=settings.TRANSLATION_TIMEOUT,
        translation_mock=settings.TRANSLATION_MOCK,
        commit_max_attempts=settings.COMMIT_MAX_ATTEMPTS,
        force_ref_update=settings.FORCE_REF_UPDATE,
    )
    logger.debug(
        "Reconciled runtime configuration",
        github_api_url=runtime_config.github_api_url,
        github_authentication_type=runtime_config.github_authentication_type.value,
        config_file_path=runtime_config.config_file_path,
        translation_mode=_translation_mode(runtime_config),
    )
    return runtime_config
