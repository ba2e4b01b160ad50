"""Base ABC for GitHub clients."""

from abc import ABC, abstractmethod
from typing import Any, Literal


class GitHubClientBase(ABC):
    """Base ABC for GitHub clients.

    Implementations raise the classes in `vocoder_sync.github.exceptions`
    instead of client-library specific errors.
    """

    # Repository
    @abstractmethod
    async def get_default_branch(self) -> str:
        """Get the name of the repository's default branch."""
        pass

    # Contents
    @abstractmethod
    async def get_file_content(self, file_path: str, ref: str) -> str:
        """Get the decoded text content of a file at a branch, tag, or commit SHA."""
        pass

    @abstractmethod
    async def create_file(self, file_path: str, content: str, message: str, branch: str) -> None:
        """Create a file on a branch through the Contents API."""
        pass

    # Pull requests
    @abstractmethod
    async def get_pull_request(self, pull_number: int) -> Any:
        """Get a pull request."""
        pass

    @abstractmethod
    async def list_pull_requests(
        self, state: Literal["open", "closed", "all"] = "open", base: str | None = None, **kwargs: Any
    ) -> list[Any]:
        """List pull requests, optionally filtered by base branch."""
        pass

    # Git data
    @abstractmethod
    async def get_branch_head(self, branch: str) -> str:
        """Get the commit SHA the branch currently points at."""
        pass

    @abstractmethod
    async def get_commit_tree_sha(self, commit_sha: str) -> str:
        """Get the SHA of the tree a commit points at."""
        pass

    @abstractmethod
    async def create_blob(self, content: str) -> str:
        """Create a UTF-8 blob and return its SHA."""
        pass

    @abstractmethod
    async def create_tree(self, base_tree: str, entries: list[dict[str, str]]) -> str:
        """Create a tree on top of base_tree and return its SHA."""
        pass

    @abstractmethod
    async def create_commit(self, message: str, tree_sha: str, parents: list[str], author: dict[str, str] | None = None) -> str:
        """Create a commit object and return its SHA."""
        pass

    @abstractmethod
    async def update_branch_ref(self, branch: str, sha: str, force: bool = False) -> None:
        """Point a branch at a commit.

        With force=False the update only succeeds as a fast-forward and raises
        RefConflictError otherwise.
        """
        pass

    # Statuses
    @abstractmethod
    async def create_commit_status(
        self,
        sha: str,
        state: Literal["error", "failure", "pending", "success"],
        description: str,
        context: str,
    ) -> None:
        """Create a commit status on a SHA."""
        pass
