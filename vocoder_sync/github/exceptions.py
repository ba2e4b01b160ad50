"""Typed errors raised by the GitHub adapter.

Every failed GitHub API call is translated exactly once, at the adapter
boundary, into one of the classes below. Callers match on the class instead
of inspecting status codes.
"""

from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded


class GitHubAPIError(Exception):
    """Base class for errors returned by the GitHub API."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        """Initialize the error with a message and the HTTP status code, if any."""
        super().__init__(message)
        self.message = message
        self.status_code = status_code


class NotFoundError(GitHubAPIError):
    """The requested resource (file, ref, repository) does not exist."""


class AuthFailureError(GitHubAPIError):
    """The credentials are missing, invalid, or lack the required permission."""


class RateLimitedError(GitHubAPIError):
    """GitHub rejected the request because a rate limit was exceeded."""


class RefConflictError(GitHubAPIError):
    """A ref update was rejected because the ref no longer points where we expected."""


class OtherGitHubError(GitHubAPIError):
    """Any GitHub API failure not covered by a more specific class."""


def _response_message(exc: RequestFailed) -> str:
    try:
        data = exc.response.json()
    except Exception:
        data = None
    if isinstance(data, dict) and data.get("message"):
        return str(data["message"])
    return str(exc)


def classify_request_failure(exc: Exception, ref_update: bool = False) -> GitHubAPIError:
    """Translate a githubkit exception into the typed error taxonomy.

    Args:
        exc: The exception raised by githubkit.
        ref_update: True when the failing call was a ref update, in which case
            409/422 responses mean the ref moved underneath us.

    Returns:
        The matching GitHubAPIError subclass instance.
    """
    if isinstance(exc, (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded)):
        return RateLimitedError(str(exc), exc.response.status_code)
    if not isinstance(exc, RequestFailed):
        return OtherGitHubError(str(exc))

    status_code = exc.response.status_code
    message = _response_message(exc)
    if status_code == 404:
        return NotFoundError(message, status_code)
    if status_code == 429 or (status_code == 403 and "rate limit" in message.lower()):
        return RateLimitedError(message, status_code)
    if status_code in (401, 403):
        return AuthFailureError(message, status_code)
    if ref_update and status_code in (409, 422):
        return RefConflictError(message, status_code)
    return OtherGitHubError(message, status_code)
