"""Best-effort commit status reporting."""

import structlog

from vocoder_sync.github.abc import GitHubClientBase
from vocoder_sync.synchronize.models import CommitStatusState
from vocoder_sync.utils.constants import DEFAULT_APP_NAME, STATUS_DESCRIPTION_MAX_LENGTH
from vocoder_sync.utils.truncation import truncate_string_at_end

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class CommitStatusReporter:
    """Sets commit statuses without ever letting a failure escape.

    A status that could not be set is logged and dropped: it is neither
    retried nor allowed to abort the pass that tried to set it.
    """

    def __init__(self, github_adapter: GitHubClientBase, context: str = DEFAULT_APP_NAME) -> None:
        """Initialize the reporter with the status context name shown on pull requests."""
        self.github_adapter = github_adapter
        self.context = context

    async def report(self, sha: str, state: CommitStatusState, description: str) -> bool:
        """Set a commit status. Returns False if the API call failed."""
        description, was_truncated = truncate_string_at_end(description, STATUS_DESCRIPTION_MAX_LENGTH)
        try:
            await self.github_adapter.create_commit_status(sha=sha, state=state.value, description=description, context=self.context)
        except Exception as exc:
            logger.error(
                "Failed to set commit status",
                sha=sha,
                state=state.value,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False
        logger.info("Set commit status", sha=sha, state=state.value, description=description, truncated=was_truncated)
        return True
