"""Contains exceptions raised when reconciling application configuration."""


class GitHubAuthenticationConfigurationUndefinedError(Exception):
    """Raised when the GitHub authentication configuration is undefined or ambiguous."""

    pass


class InvalidRuntimeSettingError(Exception):
    """Raised when a runtime setting has a value the application cannot work with."""

    def __init__(self, name: str, value: object, reason: str) -> None:
        """Initializes the exception with the offending setting and the reason it was rejected."""
        super().__init__(f"Invalid value {value!r} for setting {name}: {reason}")
        self.name = name
        self.value = value
        self.reason = reason
