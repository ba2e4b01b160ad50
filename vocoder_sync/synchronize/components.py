"""Wires the synchronization components for one repository from the runtime configuration."""

from dataclasses import dataclass

import structlog

from vocoder_sync.configuration.models import RuntimeConfig
from vocoder_sync.github.abc import GitHubClientBase
from vocoder_sync.github.adapter import GitHubKitAdapter
from vocoder_sync.synchronize.committer import BranchCommitter
from vocoder_sync.synchronize.driver import SyncOrchestrator
from vocoder_sync.synchronize.reprocess import ReprocessScanner
from vocoder_sync.synchronize.repository_config import ConfigResolver
from vocoder_sync.synchronize.translation import (
    HttpTranslationProvider,
    MockTranslationProvider,
    TranslationGateway,
    TranslationProvider,
    UnconfiguredTranslationProvider,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


@dataclass
class RepositoryComponents:
    """Synchronization components bound to a single repository."""

    github_adapter: GitHubClientBase
    resolver: ConfigResolver
    orchestrator: SyncOrchestrator
    scanner: ReprocessScanner


def build_translation_provider(runtime_config: RuntimeConfig) -> TranslationProvider:
    """Use the hosted translation service when a URL is configured.

    Placeholder translations are only used when explicitly enabled; with
    neither configured, every translation attempt fails.
    """
    if runtime_config.translation_api_url:
        return HttpTranslationProvider(runtime_config.translation_api_url, timeout=runtime_config.translation_timeout)
    if runtime_config.translation_mock:
        logger.warning("Mock translations enabled, placeholder strings will be committed")
        return MockTranslationProvider()
    logger.warning("No translation service configured, localization passes will fail")
    return UnconfiguredTranslationProvider()


def build_repository_components(
    github_adapter: GitHubClientBase,
    runtime_config: RuntimeConfig,
    provider: TranslationProvider | None = None,
) -> RepositoryComponents:
    """Build the components for the repository behind github_adapter."""
    resolver = ConfigResolver(github_adapter, runtime_config.config_file_path)
    gateway = TranslationGateway(provider or build_translation_provider(runtime_config))
    committer = BranchCommitter(
        github_adapter,
        app_identity=runtime_config.app_identity,
        max_attempts=runtime_config.commit_max_attempts,
        force_update=runtime_config.force_ref_update,
    )
    orchestrator = SyncOrchestrator(github_adapter, resolver, gateway, committer, status_context=runtime_config.app_identity.name)
    scanner = ReprocessScanner(github_adapter, resolver, orchestrator)
    return RepositoryComponents(github_adapter=github_adapter, resolver=resolver, orchestrator=orchestrator, scanner=scanner)


async def create_repository_components(repo: str, runtime_config: RuntimeConfig) -> RepositoryComponents:
    """Authenticate against GitHub for a repository in 'owner/repo' format and build its components."""
    github_adapter = await GitHubKitAdapter.create(
        repo=repo,
        github_auth_type=runtime_config.github_authentication_type,
        github_pat_token=runtime_config.github_pat_token,
        github_app_id=runtime_config.github_app_id,
        github_app_private_key_path=runtime_config.github_app_private_key_path,
        github_app_installation_id=runtime_config.github_app_installation_id,
        github_api_url=runtime_config.github_api_url,
    )
    return build_repository_components(github_adapter, runtime_config)
