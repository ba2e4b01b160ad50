"""Immutable snapshots of the events a synchronization pass works on."""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class SyncStatus(str, Enum):
    """Terminal state of one synchronization pass."""

    SKIPPED = "skipped"
    SUCCESS = "success"
    FAILURE = "failure"


class CommitStatusState(str, Enum):
    """Commit status states the app emits."""

    PENDING = "pending"
    SUCCESS = "success"
    FAILURE = "failure"


def head_repository_full_name(repo: str, head_repo_full_name: str | None, head_label: str | None) -> str | None:
    """Name of the repository a pull request's head branch lives in, if it can be told.

    A deleted fork leaves no head repository; the owner part of the head label
    ('owner:branch') still tells it apart from the base repository.
    """
    if head_repo_full_name:
        return head_repo_full_name
    if head_label and ":" in head_label:
        return f"{head_label.split(':', 1)[0]}/{repo}"
    return None


class PullRequestContext(BaseModel):
    """Snapshot of a pull request taken from a webhook payload or a pull request listing."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    number: int
    base_ref: str
    base_sha: str
    head_ref: str
    head_sha: str
    head_repo_full_name: str | None = None
    default_branch: str | None = None

    @property
    def full_name(self) -> str:
        """The base repository in 'owner/repo' format."""
        return f"{self.owner}/{self.repo}"

    @property
    def is_from_fork(self) -> bool:
        """True when the head branch lives in a different repository than the base."""
        return self.head_repo_full_name is not None and self.head_repo_full_name.lower() != self.full_name.lower()

    @classmethod
    def from_pull_request(cls, owner: str, repo: str, pull_request: Any, default_branch: str | None = None) -> "PullRequestContext":
        """Build a context from a githubkit PullRequest or PullRequestSimple."""
        head_repo = getattr(pull_request.head, "repo", None)
        head_repo_full_name = head_repository_full_name(repo, getattr(head_repo, "full_name", None), getattr(pull_request.head, "label", None))
        return cls(
            owner=owner,
            repo=repo,
            number=pull_request.number,
            base_ref=pull_request.base.ref,
            base_sha=pull_request.base.sha,
            head_ref=pull_request.head.ref,
            head_sha=pull_request.head.sha,
            head_repo_full_name=head_repo_full_name,
            default_branch=default_branch,
        )


class PushContext(BaseModel):
    """Snapshot of a push to a branch."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    branch: str
    before_sha: str | None = None
    after_sha: str | None = None
    default_branch: str | None = None
