"""Re-runs synchronization for open pull requests after their base branch moves."""

import json
import time

import structlog

from vocoder_sync.github.abc import GitHubClientBase
from vocoder_sync.github.exceptions import GitHubAPIError, NotFoundError
from vocoder_sync.synchronize.diff import diff_documents
from vocoder_sync.synchronize.driver import SyncOrchestrator
from vocoder_sync.synchronize.models import PullRequestContext, PushContext
from vocoder_sync.synchronize.repository_config import ConfigResolver, is_target_branch
from vocoder_sync.synchronize.results import PullRequestReprocessResult, ReprocessSummary, SyncResult

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

NULL_SHA = "0" * 40
"""SHA GitHub reports as `before` for a newly created branch."""


async def source_file_changed(github_adapter: GitHubClientBase, file_path: str, before_sha: str | None, after_sha: str | None) -> bool:
    """Return True if the source file differs between two commits.

    Documents are compared structurally, so reformatting alone is not a
    change. Anything that prevents a comparison counts as a change.
    """
    if not before_sha or not after_sha or before_sha == NULL_SHA:
        return True
    if before_sha == after_sha:
        return False

    contents: list[str | None] = []
    for sha in (before_sha, after_sha):
        try:
            contents.append(await github_adapter.get_file_content(file_path, sha))
        except NotFoundError:
            contents.append(None)
        except UnicodeDecodeError:
            logger.warning("Source file is not valid UTF-8, assuming it changed", source_file=file_path, ref=sha)
            return True
        except GitHubAPIError as exc:
            logger.warning("Could not read source file, assuming it changed", source_file=file_path, ref=sha, error=exc.message)
            return True

    before_content, after_content = contents
    if before_content is None or after_content is None:
        return before_content != after_content
    try:
        before_document = json.loads(before_content)
        after_document = json.loads(after_content)
    except json.JSONDecodeError:
        return before_content != after_content
    if not isinstance(before_document, dict) or not isinstance(after_document, dict):
        return before_content != after_content
    return not diff_documents(before_document, after_document).is_empty


class ReprocessScanner:
    """Re-synchronizes every open pull request that targets a pushed branch."""

    def __init__(self, github_adapter: GitHubClientBase, resolver: ConfigResolver, orchestrator: SyncOrchestrator) -> None:
        """Initialize the scanner with the components of one repository."""
        self.github_adapter = github_adapter
        self.resolver = resolver
        self.orchestrator = orchestrator

    async def reprocess(self, push_context: PushContext) -> ReprocessSummary:
        """Run a synchronization pass for each open pull request based on the pushed branch.

        A failure for one pull request is recorded and does not stop the scan.
        """
        branch = push_context.branch
        log = logger.bind(owner=push_context.owner, repo=push_context.repo, branch=branch)

        configuration = await self.resolver.resolve_for_push(push_context)
        if configuration is None:
            log.info("No configuration found, skipping reprocessing")
            return ReprocessSummary(branch=branch, skipped_reason="no configuration found")
        if not is_target_branch(branch, configuration):
            log.info("Branch not monitored, skipping reprocessing", target_branches=list(configuration.target_branches))
            return ReprocessSummary(branch=branch, skipped_reason=f"branch {branch} is not monitored")

        if not await source_file_changed(self.github_adapter, configuration.source_file, push_context.before_sha, push_context.after_sha):
            log.info("Source localization file unchanged by push, skipping reprocessing", source_file=configuration.source_file)
            return ReprocessSummary(branch=branch, skipped_reason="source file unchanged")

        pull_requests = await self.github_adapter.list_pull_requests(state="open", base=branch)
        if not pull_requests:
            log.info("No open pull requests target this branch")
            return ReprocessSummary(branch=branch)

        log.info("Reprocessing open pull requests", pull_request_count=len(pull_requests))
        summary = ReprocessSummary(branch=branch)
        start_time = time.time()
        for pull_request in pull_requests:
            try:
                context = PullRequestContext.from_pull_request(
                    push_context.owner, push_context.repo, pull_request, default_branch=push_context.default_branch
                )
                result = await self.orchestrator.sync_pull_request(context)
            except Exception as exc:
                log.exception("Error reprocessing pull request", pull_number=pull_request.number, error=str(exc))
                result = SyncResult.failed(str(exc))
            summary.results.append(PullRequestReprocessResult(pull_number=pull_request.number, result=result))

        log.info(
            "Reprocessed open pull requests",
            pull_request_count=len(summary.results),
            failed_pull_numbers=summary.failed_pull_numbers,
            duration=round(time.time() - start_time, 2),
        )
        return summary
