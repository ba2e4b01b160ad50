"""Routes GitHub webhook deliveries to the synchronization components."""

from typing import Any, Awaitable, Callable

import structlog

from vocoder_sync.synchronize.components import RepositoryComponents
from vocoder_sync.synchronize.exceptions import WebhookPayloadError
from vocoder_sync.synchronize.models import PullRequestContext, PushContext, head_repository_full_name
from vocoder_sync.synchronize.repository_config import bootstrap_default_configuration
from vocoder_sync.synchronize.results import WebhookEventOutcome
from vocoder_sync.utils.constants import SUPPORTED_PULL_REQUEST_ACTIONS
from vocoder_sync.utils.github import branch_name_from_ref, split_repository_in_configuration

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

ComponentsFactory = Callable[[str, str], Awaitable[RepositoryComponents]]
"""Async callable returning the components for an (owner, repo) pair."""


def _require(event_name: str, payload: dict[str, Any], *path: str) -> Any:
    """Walk a nested payload, raising WebhookPayloadError naming the first missing field."""
    value: Any = payload
    for depth, key in enumerate(path):
        if not isinstance(value, dict) or value.get(key) is None:
            raise WebhookPayloadError(event_name, ".".join(path[: depth + 1]))
        value = value[key]
    return value


def pull_request_context_from_payload(payload: dict[str, Any]) -> PullRequestContext:
    """Build a PullRequestContext from a pull_request event payload."""
    repo = _require("pull_request", payload, "repository", "name")
    head_sha = _require("pull_request", payload, "pull_request", "head", "sha")
    head = payload["pull_request"]["head"]
    head_repo = head.get("repo") or {}
    return PullRequestContext(
        owner=_require("pull_request", payload, "repository", "owner", "login"),
        repo=repo,
        number=_require("pull_request", payload, "pull_request", "number"),
        base_ref=_require("pull_request", payload, "pull_request", "base", "ref"),
        base_sha=_require("pull_request", payload, "pull_request", "base", "sha"),
        head_ref=_require("pull_request", payload, "pull_request", "head", "ref"),
        head_sha=head_sha,
        head_repo_full_name=head_repository_full_name(repo, head_repo.get("full_name"), head.get("label")),
        default_branch=payload["repository"].get("default_branch"),
    )


def push_context_from_payload(payload: dict[str, Any]) -> PushContext | None:
    """Build a PushContext from a push event payload.

    Returns None for branch deletions and for pushes to tags or other non-branch refs.
    """
    if payload.get("deleted"):
        return None
    branch = branch_name_from_ref(_require("push", payload, "ref"))
    if branch is None:
        return None
    return PushContext(
        owner=_require("push", payload, "repository", "owner", "login"),
        repo=_require("push", payload, "repository", "name"),
        branch=branch,
        before_sha=payload.get("before"),
        after_sha=payload.get("after"),
        default_branch=payload["repository"].get("default_branch"),
    )


async def _handle_pull_request(payload: dict[str, Any], components_factory: ComponentsFactory) -> WebhookEventOutcome:
    action = payload.get("action")
    if action not in SUPPORTED_PULL_REQUEST_ACTIONS:
        return WebhookEventOutcome(event_name="pull_request", action=action, ignored_reason=f"unsupported action {action!r}")
    context = pull_request_context_from_payload(payload)
    components = await components_factory(context.owner, context.repo)
    result = await components.orchestrator.sync_pull_request(context)
    return WebhookEventOutcome(event_name="pull_request", action=action, sync_result=result)


async def _handle_push(payload: dict[str, Any], components_factory: ComponentsFactory) -> WebhookEventOutcome:
    context = push_context_from_payload(payload)
    if context is None:
        reason = "branch deleted" if payload.get("deleted") else f"ref {payload.get('ref')} is not a branch"
        return WebhookEventOutcome(event_name="push", ignored_reason=reason)
    components = await components_factory(context.owner, context.repo)
    summary = await components.scanner.reprocess(context)
    return WebhookEventOutcome(event_name="push", reprocess_summary=summary)


async def _handle_installation(payload: dict[str, Any], components_factory: ComponentsFactory) -> WebhookEventOutcome:
    action = payload.get("action")
    if action != "created":
        return WebhookEventOutcome(event_name="installation", action=action, ignored_reason=f"unsupported action {action!r}")

    repositories = payload.get("repositories") or []
    logger.info("Setting up new installation", repository_count=len(repositories))
    outcome = WebhookEventOutcome(event_name="installation", action=action)
    for repository in repositories:
        full_name = repository.get("full_name", "")
        try:
            owner, repo = await split_repository_in_configuration(full_name)
            components = await components_factory(owner, repo)
            created = await bootstrap_default_configuration(components.github_adapter, components.resolver.config_file_path)
        except Exception as exc:
            logger.exception("Error setting up repository", repository=full_name, error=str(exc))
            outcome.bootstrap_results[full_name] = "failed"
            continue
        outcome.bootstrap_results[full_name] = "created" if created else "exists"
    return outcome


async def handle_webhook_event(event_name: str, payload: dict[str, Any], components_factory: ComponentsFactory) -> WebhookEventOutcome:
    """Act on one webhook delivery.

    pull_request opened, synchronize, and reopened run a synchronization
    pass. push to a branch reprocesses the open pull requests based on it.
    installation created writes the default configuration to each
    repository that has none. Everything else is ignored.

    Raises:
        WebhookPayloadError: If a handled event's payload lacks a required field.
    """
    logger.info("Webhook event received", event_name=event_name, action=payload.get("action"))
    if event_name == "pull_request":
        outcome = await _handle_pull_request(payload, components_factory)
    elif event_name == "push":
        outcome = await _handle_push(payload, components_factory)
    elif event_name == "installation":
        outcome = await _handle_installation(payload, components_factory)
    else:
        outcome = WebhookEventOutcome(event_name=event_name, action=payload.get("action"), ignored_reason="unsupported event")

    if outcome.ignored:
        logger.info("Webhook event ignored", event_name=event_name, reason=outcome.ignored_reason)
    return outcome
