"""Orchestrates one localization synchronization pass over a pull request."""

import asyncio
import json
import time
from typing import Any

import structlog
from structlog.contextvars import bound_contextvars

from vocoder_sync.github.abc import GitHubClientBase
from vocoder_sync.github.exceptions import NotFoundError
from vocoder_sync.synchronize.committer import BranchCommitter
from vocoder_sync.synchronize.diff import diff_documents
from vocoder_sync.synchronize.exceptions import SourceDocumentError, TranslationError
from vocoder_sync.synchronize.models import CommitStatusState, PullRequestContext, SyncStatus
from vocoder_sync.synchronize.repository_config import ConfigResolver, RepositoryConfiguration, is_target_branch
from vocoder_sync.synchronize.results import SyncResult
from vocoder_sync.synchronize.statuses import CommitStatusReporter
from vocoder_sync.synchronize.translation import TranslationGateway
from vocoder_sync.utils.constants import (
    DEFAULT_APP_NAME,
    STATUS_DESCRIPTION_FAILURE,
    STATUS_DESCRIPTION_NO_CHANGES,
    STATUS_DESCRIPTION_PENDING,
    STATUS_DESCRIPTION_SUCCESS,
)

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

MISSING_HEAD_SOURCE_ERROR = "No source localization file found in PR branch"
MISSING_BASE_SOURCE_ERROR = "No source localization file found in base branch"
FORK_PULL_REQUEST_ERROR = "Pull request branch is in fork {head_repo}; translations can only be committed to branches of this repository"


class SyncOrchestrator:
    """Runs the configuration, diff, translation, and commit steps for a pull request.

    The commit status on the pull request's head SHA follows the pass: one
    pending status once the pull request is known to be monitored, then
    exactly one success or failure status. A pass that is skipped emits no
    status at all.
    """

    def __init__(
        self,
        github_adapter: GitHubClientBase,
        resolver: ConfigResolver,
        gateway: TranslationGateway,
        committer: BranchCommitter,
        status_context: str = DEFAULT_APP_NAME,
    ) -> None:
        """Initialize the orchestrator with the components of one repository."""
        self.github_adapter = github_adapter
        self.resolver = resolver
        self.gateway = gateway
        self.committer = committer
        self.statuses = CommitStatusReporter(github_adapter, status_context)

    async def _load_source_document(self, file_path: str, ref: str) -> dict[str, Any] | None:
        """Read and parse the source localization file at a ref. A missing file yields None."""
        try:
            content = await self.github_adapter.get_file_content(file_path, ref)
        except NotFoundError:
            logger.info("Source localization file not found", source_file=file_path, ref=ref)
            return None
        except UnicodeDecodeError as exc:
            raise SourceDocumentError(file_path, ref, "is not valid UTF-8") from exc
        try:
            document = json.loads(content)
        except json.JSONDecodeError as exc:
            raise SourceDocumentError(file_path, ref, f"is not valid JSON ({exc.msg})") from exc
        if not isinstance(document, dict):
            raise SourceDocumentError(file_path, ref, "is not a JSON object")
        return document

    async def _load_source_documents(self, context: PullRequestContext, file_path: str) -> tuple[dict[str, Any], dict[str, Any]]:
        """Read the head and base source documents concurrently.

        Problems with the head document are reported before problems with the base document.

        Raises:
            SourceDocumentError: If either document is missing or malformed.
        """
        head_outcome, base_outcome = await asyncio.gather(
            self._load_source_document(file_path, context.head_sha),
            self._load_source_document(file_path, context.base_sha),
            return_exceptions=True,
        )
        for outcome in (head_outcome, base_outcome):
            if isinstance(outcome, BaseException) and not isinstance(outcome, SourceDocumentError):
                raise outcome

        if head_outcome is None:
            raise SourceDocumentError(file_path, context.head_sha, "is missing", message=MISSING_HEAD_SOURCE_ERROR)
        if isinstance(head_outcome, SourceDocumentError):
            raise head_outcome
        if base_outcome is None:
            raise SourceDocumentError(file_path, context.base_sha, "is missing", message=MISSING_BASE_SOURCE_ERROR)
        if isinstance(base_outcome, SourceDocumentError):
            raise base_outcome
        return head_outcome, base_outcome

    async def _process(self, context: PullRequestContext, configuration: RepositoryConfiguration) -> SyncResult:
        """Diff, translate, and commit. Returns a success or failure result."""
        if context.is_from_fork:
            logger.warning("Pull request branch is in a fork, not committing", head_repo=context.head_repo_full_name)
            return SyncResult.failed(FORK_PULL_REQUEST_ERROR.format(head_repo=context.head_repo_full_name))

        try:
            head_document, base_document = await self._load_source_documents(context, configuration.source_file)
        except SourceDocumentError as exc:
            return SyncResult.failed(str(exc))

        change_set = diff_documents(base_document, head_document)
        logger.info("Computed localization changes", source_file=configuration.source_file, **change_set.counts())
        if change_set.is_empty:
            logger.info("No localization changes detected")
            return SyncResult(status=SyncStatus.SUCCESS)

        try:
            translations = await self.gateway.translate(
                change_set,
                api_key=configuration.project_api_key,
                target_locales=configuration.target_locales,
                source_locale=configuration.source_locale,
            )
        except TranslationError as exc:
            logger.error("Translation failed", error=exc.message, locales=exc.locales)
            return SyncResult.failed(f"Translation API call failed: {exc.message}")

        if not any(translations.values()):
            # Only deletions; locale files are left untouched
            logger.info("No keys to translate, nothing to commit", deleted=len(change_set.deleted))
            return SyncResult(status=SyncStatus.SUCCESS, changes_processed=change_set.total)

        outcome = await self.committer.commit_locales(context, translations, configuration.output_dir, change_set)
        if not outcome.success:
            return SyncResult.failed(outcome.error or "Failed to commit translations")

        return SyncResult(
            status=SyncStatus.SUCCESS,
            changes_processed=change_set.total,
            locales_updated=len(translations),
            commit_sha=outcome.commit_sha,
        )

    async def _run(self, context: PullRequestContext, configuration: RepositoryConfiguration | None) -> SyncResult:
        if configuration is None:
            configuration = await self.resolver.resolve_for_pull_request(context)
        if configuration is None:
            logger.info("No configuration found, skipping localization processing")
            return SyncResult.skipped("no configuration found")

        if not is_target_branch(context.base_ref, configuration):
            logger.info("Base branch is not monitored, skipping", base_ref=context.base_ref, target_branches=list(configuration.target_branches))
            return SyncResult.skipped(f"base branch {context.base_ref} is not monitored")

        await self.statuses.report(context.head_sha, CommitStatusState.PENDING, STATUS_DESCRIPTION_PENDING)
        result = await self._process(context, configuration)

        if result.success:
            if result.changes_processed:
                description = STATUS_DESCRIPTION_SUCCESS.format(changes=result.changes_processed)
            else:
                description = STATUS_DESCRIPTION_NO_CHANGES
            await self.statuses.report(context.head_sha, CommitStatusState.SUCCESS, description)
        else:
            logger.warning("Localization processing failed", error=result.error)
            await self.statuses.report(context.head_sha, CommitStatusState.FAILURE, STATUS_DESCRIPTION_FAILURE.format(error=result.error))
        return result

    async def sync_pull_request(self, context: PullRequestContext, configuration: RepositoryConfiguration | None = None) -> SyncResult:
        """Run one synchronization pass for a pull request.

        Args:
            context: Snapshot of the pull request taken when the event was received
            configuration: Configuration to use instead of resolving it from the repository

        Returns:
            The terminal SyncResult. Never raises.
        """
        with bound_contextvars(owner=context.owner, repo=context.repo, pull_number=context.number):
            start_time = time.time()
            logger.info("Processing pull request", base_ref=context.base_ref, head_ref=context.head_ref, head_sha=context.head_sha)
            try:
                result = await self._run(context, configuration)
            except Exception as exc:
                logger.exception("Unexpected error while processing pull request", error=str(exc))
                result = SyncResult.failed(str(exc))
                await self.statuses.report(context.head_sha, CommitStatusState.FAILURE, STATUS_DESCRIPTION_FAILURE.format(error=exc))

            logger.info(
                "Processed pull request",
                status=result.status.value,
                changes_processed=result.changes_processed,
                locales_updated=result.locales_updated,
                error=result.error,
                duration=round(time.time() - start_time, 2),
            )
            return result
