"""Contains results of synchronization passes."""

from pydantic import BaseModel, Field, computed_field

from vocoder_sync.synchronize.models import SyncStatus


class SyncResult(BaseModel):
    """Terminal value of one synchronization pass over a pull request."""

    status: SyncStatus
    changes_processed: int = 0
    locales_updated: int = 0
    error: str | None = None
    reason: str | None = None
    commit_sha: str | None = None

    @computed_field  # type: ignore[prop-decorator]
    @property
    def success(self) -> bool:
        """True for a pass that ended in the success state."""
        return self.status == SyncStatus.SUCCESS

    @classmethod
    def skipped(cls, reason: str) -> "SyncResult":
        """A pass that did no work and emitted no status."""
        return cls(status=SyncStatus.SKIPPED, reason=reason)

    @classmethod
    def failed(cls, error: str) -> "SyncResult":
        """A pass that ended in the failure state."""
        return cls(status=SyncStatus.FAILURE, error=error)


class PullRequestReprocessResult(BaseModel):
    """Outcome of re-running synchronization for one pull request after a base branch push."""

    pull_number: int
    result: SyncResult


class ReprocessSummary(BaseModel):
    """Outcome of scanning the open pull requests that target a pushed branch."""

    branch: str
    skipped_reason: str | None = None
    results: list[PullRequestReprocessResult] = Field(default_factory=list)

    @property
    def failed_pull_numbers(self) -> list[int]:
        """Pull requests whose pass ended in failure."""
        return [item.pull_number for item in self.results if item.result.status == SyncStatus.FAILURE]


class WebhookEventOutcome(BaseModel):
    """What the dispatcher did with one webhook delivery."""

    event_name: str
    action: str | None = None
    ignored_reason: str | None = None
    sync_result: SyncResult | None = None
    reprocess_summary: ReprocessSummary | None = None
    bootstrap_results: dict[str, str] = Field(default_factory=dict)

    @property
    def ignored(self) -> bool:
        """True if the delivery was not acted on."""
        return self.ignored_reason is not None
