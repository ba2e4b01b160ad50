"""Entry points that authenticate against GitHub and run one synchronization workflow."""

from typing import Any

import structlog

from vocoder_sync.configuration.models import RuntimeConfig
from vocoder_sync.synchronize.components import RepositoryComponents, create_repository_components
from vocoder_sync.synchronize.events import handle_webhook_event
from vocoder_sync.synchronize.models import PullRequestContext, PushContext
from vocoder_sync.synchronize.repository_config import bootstrap_default_configuration
from vocoder_sync.synchronize.results import ReprocessSummary, SyncResult, WebhookEventOutcome
from vocoder_sync.utils.github import split_repository_in_configuration

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


async def run_sync_pull_request_workflow(repo: str, pull_number: int, runtime_config: RuntimeConfig) -> SyncResult:
    """Fetch a pull request and run one synchronization pass over it."""
    owner, repo_name = await split_repository_in_configuration(repo)
    components = await create_repository_components(repo, runtime_config)
    pull_request = await components.github_adapter.get_pull_request(pull_number)
    context = PullRequestContext.from_pull_request(owner, repo_name, pull_request)
    return await components.orchestrator.sync_pull_request(context)


async def run_reprocess_branch_workflow(repo: str, branch: str, runtime_config: RuntimeConfig) -> ReprocessSummary:
    """Reprocess every open pull request based on a branch, as if the branch had just been pushed."""
    owner, repo_name = await split_repository_in_configuration(repo)
    components = await create_repository_components(repo, runtime_config)
    return await components.scanner.reprocess(PushContext(owner=owner, repo=repo_name, branch=branch))


async def run_bootstrap_config_workflow(repo: str, runtime_config: RuntimeConfig) -> bool:
    """Write the default configuration file to the repository if it has none. Returns True if it was written."""
    components = await create_repository_components(repo, runtime_config)
    return await bootstrap_default_configuration(components.github_adapter, runtime_config.config_file_path)


async def run_handle_event_workflow(event_name: str, payload: dict[str, Any], runtime_config: RuntimeConfig) -> WebhookEventOutcome:
    """Dispatch a stored webhook payload as if it had just been delivered."""

    async def components_factory(owner: str, repo_name: str) -> RepositoryComponents:
        return await create_repository_components(f"{owner}/{repo_name}", runtime_config)

    return await handle_webhook_event(event_name, payload, components_factory)
