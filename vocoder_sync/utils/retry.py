"""Retry decorator for GitHub API rate limits.

The adapter wraps its calls with this decorator so rate-limited requests are
retried transparently, the way an API client would. Application-level
operations are never retried here.
"""

import asyncio
import functools
import time
from typing import Any, Callable, TypeVar

import structlog
from githubkit.exception import PrimaryRateLimitExceeded, RequestFailed, SecondaryRateLimitExceeded

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)

F = TypeVar("F", bound=Callable[..., Any])


def _wait_time_from_headers(exc: RequestFailed, default: float) -> float:
    """Read retry-after or x-ratelimit-reset from a failed response."""
    retry_after = exc.response.headers.get("retry-after")
    if retry_after:
        try:
            return float(retry_after)
        except ValueError:
            logger.warning("Invalid retry-after header value", retry_after=retry_after)
            return default

    rate_limit_reset = exc.response.headers.get("x-ratelimit-reset")
    if rate_limit_reset:
        try:
            reset_timestamp = int(rate_limit_reset)
        except ValueError:
            logger.warning("Invalid x-ratelimit-reset header value", rate_limit_reset=rate_limit_reset)
            return default
        current_timestamp = int(time.time())
        if reset_timestamp > current_timestamp:
            return reset_timestamp - current_timestamp + 1
    return default


def _is_rate_limit_failure(exc: RequestFailed) -> bool:
    status_code = exc.response.status_code
    return status_code == 429 or (status_code == 403 and "rate limit" in str(exc).lower())


def retry_on_rate_limit(
    max_retries: int = 5,
    initial_delay: float = 10.0,
    max_delay: float = 300.0,
    exponential_base: float = 2.0,
) -> Callable[[F], F]:
    """Decorator for retrying async functions when they hit a GitHub rate limit.

    Primary and secondary rate limit errors use the retry-after value githubkit
    parsed for us. Plain 403/429 responses fall back to the retry-after and
    x-ratelimit-reset headers, then to exponential backoff. Every other error
    is raised immediately.

    Args:
        max_retries: Maximum number of retry attempts.
        initial_delay: Initial delay in seconds between retries.
        max_delay: Maximum delay in seconds between retries.
        exponential_base: Base for exponential backoff calculation.

    Returns:
        Decorated function with retry logic.
    """

    def decorator(func: F) -> F:
        if not asyncio.iscoroutinefunction(func):
            raise TypeError(f"Function {func.__name__} decorated with @retry_on_rate_limit must be async.")

        @functools.wraps(func)
        async def async_wrapper(*args: Any, **kwargs: Any) -> Any:
            delay = initial_delay
            for attempt in range(max_retries + 1):
                try:
                    return await func(*args, **kwargs)
                except (PrimaryRateLimitExceeded, SecondaryRateLimitExceeded) as e:
                    if attempt == max_retries:
                        logger.error("Max retries reached for GitHub rate limit error", function=func.__name__, attempt=attempt + 1)
                        raise
                    if getattr(e, "retry_after", None):
                        wait_time = min(e.retry_after.total_seconds(), max_delay)
                    else:
                        wait_time = min(delay, max_delay)
                except RequestFailed as e:
                    if not _is_rate_limit_failure(e):
                        raise
                    if attempt == max_retries:
                        logger.error(
                            "Max retries reached for rate limit error",
                            function=func.__name__,
                            attempt=attempt + 1,
                            status_code=e.response.status_code,
                        )
                        raise
                    wait_time = min(_wait_time_from_headers(e, delay), max_delay)

                logger.warning(
                    f"GitHub rate limit hit, retrying in {wait_time} seconds",
                    function=func.__name__,
                    attempt=attempt + 1,
                    max_retries=max_retries,
                    wait_time=wait_time,
                )
                await asyncio.sleep(wait_time)
                delay = min(delay * exponential_base, max_delay)

        return async_wrapper  # type: ignore

    return decorator
