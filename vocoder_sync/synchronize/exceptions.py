"""Custom exceptions for the synchronize module."""


class TranslationError(Exception):
    """Raised when translated values could not be obtained for a change set."""

    def __init__(self, message: str, locales: list[str] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.locales = locales or []


class SourceDocumentError(Exception):
    """Raised when the source localization file is missing or is not a JSON object."""

    def __init__(self, file_path: str, ref: str, reason: str, message: str | None = None) -> None:
        super().__init__(message or f"Source localization file {file_path} at {ref} {reason}")
        self.file_path = file_path
        self.ref = ref
        self.reason = reason


class WebhookPayloadError(ValueError):
    """Raised when a webhook payload lacks a field needed to act on it."""

    def __init__(self, event_name: str, missing_field: str) -> None:
        super().__init__(f"{event_name} payload is missing {missing_field}")
        self.event_name = event_name
        self.missing_field = missing_field
