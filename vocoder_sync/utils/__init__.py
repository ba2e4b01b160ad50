"""Utility modules for shared functionality."""

from .constants import (
    DEFAULT_APP_NAME,
    DEFAULT_CONFIG_FILE_PATH,
    STATUS_DESCRIPTION_MAX_LENGTH,
)
from .retry import retry_on_rate_limit
from .truncation import truncate_string_at_end

__all__ = [
    "DEFAULT_APP_NAME",
    "DEFAULT_CONFIG_FILE_PATH",
    "STATUS_DESCRIPTION_MAX_LENGTH",
    "retry_on_rate_limit",
    "truncate_string_at_end",
]
