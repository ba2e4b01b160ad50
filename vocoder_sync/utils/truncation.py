"""Utilities for truncating text to fit within GitHub's character limits."""

from vocoder_sync.utils.constants import TRUNCATION_SUFFIX


def truncate_string_at_end(
    content: str,
    max_length: int,
    truncation_suffix: str = TRUNCATION_SUFFIX,
) -> tuple[str, bool]:
    """Truncate a string at the end if it exceeds max_length.

    Args:
        content: The string to potentially truncate.
        max_length: Maximum allowed length for the result (including truncation suffix).
        truncation_suffix: Indicator appended to truncated content.

    Returns:
        Tuple of (truncated_content, was_truncated).
    """
    if not content or len(content) <= max_length:
        return content, False

    truncate_at = max_length - len(truncation_suffix)
    if truncate_at <= 0:
        # max_length is smaller than the suffix itself
        return content[:max_length], True

    return content[:truncate_at] + truncation_suffix, True
