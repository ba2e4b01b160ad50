"""Shared constants used across the application."""

import re

# Application Defaults
# --------------------

DEFAULT_CONFIG_FILE_PATH = ".vocoder/config.json"
"""Repository path of the per-repository localization configuration file."""

DEFAULT_APP_NAME = "Vocoder Localization"
"""Commit author name and commit status context used when APP_NAME is unset."""

DEFAULT_APP_EMAIL = "bot@vocoder.app"
"""Commit author e-mail used when APP_EMAIL is unset."""

GITHUB_CLIENT_USER_AGENT = "vocoder-sync"
"""User-Agent sent with every GitHub API request."""

# Webhook Events
# --------------

SUPPORTED_PULL_REQUEST_ACTIONS = frozenset({"opened", "synchronize", "reopened"})
"""Pull request webhook actions that trigger a synchronization pass."""

# Commit Statuses
# ---------------

STATUS_DESCRIPTION_MAX_LENGTH = 140
"""GitHub rejects commit status descriptions longer than this."""

STATUS_DESCRIPTION_PENDING = "Localization processing in progress..."
STATUS_DESCRIPTION_SUCCESS = "Localization complete: {changes} changes processed"
STATUS_DESCRIPTION_NO_CHANGES = "Localization complete: no string changes detected"
STATUS_DESCRIPTION_FAILURE = "Localization failed: {error}"

# Commits
# -------

COMMIT_MESSAGE_EMOJI = "\N{EARTH GLOBE AMERICAS}"
"""Leading emoji of every localization commit message."""

COMMIT_MESSAGE_TEMPLATE = "{emoji} Localization: {summary}\n\nLocales: {locales}\n\nGenerated by {app_name}."
"""Template for localization commit messages."""

BLOB_FILE_MODE = "100644"
"""Git file mode for regular, non-executable files."""

DEFAULT_COMMIT_MAX_ATTEMPTS = 3
"""Attempts made to land a commit when the branch keeps moving underneath us."""

# Validation
# ----------

LOCALE_CODE_PATTERN = re.compile(r"^[a-z]{2}(-[A-Z]{2})?$")
"""Locale codes we expect in configuration, e.g. 'fr' or 'pt-BR'."""

TRUNCATION_SUFFIX = "..."
"""Suffix appended to truncated status descriptions."""

# Bootstrap
# ---------

CONFIG_BOOTSTRAP_COMMIT_MESSAGE = "Add Vocoder localization configuration"
"""Commit message used when writing the default configuration file."""
