"""Appends translated locale files to a pull request branch as a single commit."""

import json
from typing import Any

import structlog
from pydantic import BaseModel

from vocoder_sync.configuration.models import AppIdentity
from vocoder_sync.github.abc import GitHubClientBase
from vocoder_sync.github.exceptions import GitHubAPIError, NotFoundError, RefConflictError
from vocoder_sync.synchronize.diff import ChangeSet, flatten_document
from vocoder_sync.synchronize.models import PullRequestContext
from vocoder_sync.synchronize.translation import TranslationResult
from vocoder_sync.utils.constants import (
    BLOB_FILE_MODE,
    COMMIT_MESSAGE_EMOJI,
    COMMIT_MESSAGE_TEMPLATE,
    DEFAULT_APP_EMAIL,
    DEFAULT_APP_NAME,
    DEFAULT_COMMIT_MAX_ATTEMPTS,
)
from vocoder_sync.utils.github import normalize_repository_path

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CommitOutcome(BaseModel):
    """Result of appending translations to a branch."""

    success: bool
    commit_sha: str | None = None
    parent_sha: str | None = None
    files_committed: int = 0
    attempts: int = 0
    error: str | None = None


def build_commit_message(change_set: ChangeSet, locales: list[str], app_name: str = DEFAULT_APP_NAME) -> str:
    """Generate the commit message from the change counts and the locale list."""
    clauses: list[str] = []
    if change_set.added:
        clauses.append(f"Add {len(change_set.added)} new strings")
    if change_set.updated:
        clauses.append(f"Update {len(change_set.updated)} strings")
    if change_set.deleted:
        clauses.append(f"Remove {len(change_set.deleted)} strings")
    return COMMIT_MESSAGE_TEMPLATE.format(
        emoji=COMMIT_MESSAGE_EMOJI,
        summary=", ".join(clauses),
        locales=", ".join(locales),
        app_name=app_name,
    )


def locale_file_path(output_dir: str, locale: str) -> str:
    """Repository path of the output file for a locale."""
    directory = normalize_repository_path(output_dir)
    return f"{directory}/{locale}.json" if directory else f"{locale}.json"


def serialize_locale_document(strings: dict[str, Any]) -> str:
    """Serialize a flat locale document with stable formatting."""
    return json.dumps(strings, indent=2, ensure_ascii=False, sort_keys=True) + "\n"


class BranchCommitter:
    """Builds and lands one commit with a file per locale on top of the current branch head.

    The ref update is a compare-and-swap: GitHub only accepts it as a
    fast-forward from the head we read. If the branch moved in the meantime,
    the whole commit is rebuilt on the new head, up to max_attempts times.
    With force_update=True the ref is force-updated instead, and a concurrent
    commit landing between the read and the write is silently superseded.
    """

    def __init__(
        self,
        github_adapter: GitHubClientBase,
        app_identity: AppIdentity | None = None,
        max_attempts: int = DEFAULT_COMMIT_MAX_ATTEMPTS,
        force_update: bool = False,
    ) -> None:
        """Initialize the committer for the repository behind github_adapter."""
        if max_attempts < 1:
            raise ValueError("max_attempts must be at least 1")
        self.github_adapter = github_adapter
        self.app_identity = app_identity or AppIdentity(name=DEFAULT_APP_NAME, email=DEFAULT_APP_EMAIL)
        self.max_attempts = max_attempts
        self.force_update = force_update

    async def _read_existing_locale_document(self, file_path: str, ref: str) -> dict[str, Any]:
        """Read the current flat content of a locale file; a missing or unreadable file counts as empty."""
        try:
            content = await self.github_adapter.get_file_content(file_path, ref)
        except NotFoundError:
            return {}
        try:
            document = json.loads(content)
        except json.JSONDecodeError:
            logger.warning("Existing locale file is not valid JSON, replacing it", file_path=file_path, ref=ref)
            return {}
        if not isinstance(document, dict):
            logger.warning("Existing locale file is not a JSON object, replacing it", file_path=file_path, ref=ref)
            return {}
        return flatten_document(document)

    async def _build_tree_entries(self, translations: TranslationResult, output_dir: str, head_sha: str) -> list[dict[str, str]]:
        """Create one blob per locale and return the tree entries pointing at them."""
        entries: list[dict[str, str]] = []
        for locale, strings in translations.items():
            file_path = locale_file_path(output_dir, locale)
            # Existing keys are kept, including ones deleted from the source file
            document = await self._read_existing_locale_document(file_path, head_sha)
            document.update(strings)
            blob_sha = await self.github_adapter.create_blob(serialize_locale_document(document))
            entries.append({"path": file_path, "mode": BLOB_FILE_MODE, "type": "blob", "sha": blob_sha})
            logger.debug("Created locale blob", locale=locale, file_path=file_path, blob_sha=blob_sha, key_count=len(document))
        return entries

    async def _attempt(self, context: PullRequestContext, translations: TranslationResult, output_dir: str, message: str) -> tuple[str, str]:
        """Build and land one commit on the current head. Returns (commit_sha, parent_sha)."""
        head_sha = await self.github_adapter.get_branch_head(context.head_ref)
        if head_sha != context.head_sha:
            logger.info("Branch moved since the event was received", branch=context.head_ref, event_sha=context.head_sha, current_sha=head_sha)

        entries = await self._build_tree_entries(translations, output_dir, head_sha)
        base_tree_sha = await self.github_adapter.get_commit_tree_sha(head_sha)
        tree_sha = await self.github_adapter.create_tree(base_tree_sha, entries)
        commit_sha = await self.github_adapter.create_commit(
            message=message,
            tree_sha=tree_sha,
            parents=[head_sha],
            author={"name": self.app_identity.name, "email": self.app_identity.email},
        )
        await self.github_adapter.update_branch_ref(context.head_ref, commit_sha, force=self.force_update)
        return commit_sha, head_sha

    async def commit_locales(
        self,
        context: PullRequestContext,
        translations: TranslationResult,
        output_dir: str,
        change_set: ChangeSet,
    ) -> CommitOutcome:
        """Commit one file per locale to the pull request's head branch.

        Never raises for GitHub API failures; they are reported through the
        returned CommitOutcome. Objects created by a failed attempt are left
        for GitHub to garbage collect.
        """
        locales = list(translations)
        message = build_commit_message(change_set, locales, self.app_identity.name)
        logger.info("Committing translations to pull request branch", branch=context.head_ref, locales=locales)

        for attempt in range(1, self.max_attempts + 1):
            try:
                commit_sha, parent_sha = await self._attempt(context, translations, output_dir, message)
            except RefConflictError as exc:
                logger.warning(
                    "Branch moved while committing translations",
                    branch=context.head_ref,
                    attempt=attempt,
                    max_attempts=self.max_attempts,
                    error=exc.message,
                )
                continue
            except GitHubAPIError as exc:
                logger.error("Failed to commit translations to pull request branch", branch=context.head_ref, error=exc.message)
                return CommitOutcome(success=False, attempts=attempt, error=exc.message)

            logger.info(
                "Committed translations to pull request branch",
                branch=context.head_ref,
                commit_sha=commit_sha,
                parent_sha=parent_sha,
                files_committed=len(locales),
                attempt=attempt,
            )
            return CommitOutcome(success=True, commit_sha=commit_sha, parent_sha=parent_sha, files_committed=len(locales), attempts=attempt)

        return CommitOutcome(
            success=False,
            attempts=self.max_attempts,
            error=f"Branch {context.head_ref} kept moving; gave up after {self.max_attempts} attempts",
        )
