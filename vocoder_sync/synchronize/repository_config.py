"""Loading, validating, and resolving the per-repository localization configuration."""

import json
import re
from dataclasses import dataclass, field
from typing import Any

import structlog
from pydantic import BaseModel, ConfigDict, Field

from vocoder_sync.github.abc import GitHubClientBase
from vocoder_sync.github.exceptions import NotFoundError
from vocoder_sync.synchronize.models import PullRequestContext, PushContext
from vocoder_sync.utils.constants import CONFIG_BOOTSTRAP_COMMIT_MESSAGE, DEFAULT_CONFIG_FILE_PATH, LOCALE_CODE_PATTERN

logger: structlog.stdlib.BoundLogger = structlog.get_logger(__name__)


class RepositoryConfiguration(BaseModel):
    """Localization settings read from the repository's configuration file."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    target_branches: tuple[str, ...] = Field(default=("main",), alias="targetBranches")
    source_file: str = Field(default="src/locales/en.json", alias="sourceFile")
    source_locale: str = Field(default="en", alias="sourceLocale")
    target_locales: tuple[str, ...] = Field(default=("fr", "it"), alias="targetLocales")
    output_dir: str = Field(default="locales", alias="outputDir")
    project_api_key: str = Field(default="", alias="projectApiKey")

    def to_document(self) -> dict[str, Any]:
        """Render the configuration the way it is stored in the repository."""
        document = self.model_dump(by_alias=True)
        document["targetBranches"] = list(self.target_branches)
        document["targetLocales"] = list(self.target_locales)
        return document


DEFAULT_REPOSITORY_CONFIGURATION = RepositoryConfiguration()

_FIELD_ALIASES: dict[str, str] = {name: info.alias or name for name, info in RepositoryConfiguration.model_fields.items()}
_LIST_FIELDS = frozenset({"target_branches", "target_locales"})


@dataclass(frozen=True)
class FieldDefault:
    """Record of a configuration field that was replaced by its default."""

    field: str
    reason: str


@dataclass
class ConfigurationValidation:
    """Outcome of validating a raw configuration document."""

    configuration: RepositoryConfiguration
    defaulted: list[FieldDefault] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


def _is_string_list(value: Any) -> bool:
    return isinstance(value, list) and all(isinstance(item, str) for item in value)


def validate_repository_configuration(raw: Any) -> ConfigurationValidation:
    """Merge a raw configuration document over the defaults, field by field.

    Never raises: a field that is absent or has the wrong type is replaced by
    its default and recorded in the returned `defaulted` list.
    """
    if not isinstance(raw, dict):
        return ConfigurationValidation(
            configuration=DEFAULT_REPOSITORY_CONFIGURATION,
            defaulted=[FieldDefault(name, "document is not a JSON object") for name in _FIELD_ALIASES.values()],
        )

    values: dict[str, Any] = {}
    defaulted: list[FieldDefault] = []
    for attribute, alias in _FIELD_ALIASES.items():
        if alias not in raw:
            defaulted.append(FieldDefault(alias, "missing"))
            continue
        value = raw[alias]
        if attribute in _LIST_FIELDS:
            if not _is_string_list(value):
                defaulted.append(FieldDefault(alias, "expected a list of strings"))
                continue
            # Preserve order, drop duplicates
            value = tuple(dict.fromkeys(value))
            if attribute == "target_locales" and not value:
                defaulted.append(FieldDefault(alias, "must not be empty"))
                continue
        elif not isinstance(value, str):
            defaulted.append(FieldDefault(alias, "expected a string"))
            continue
        values[attribute] = value

    configuration = RepositoryConfiguration(**values)
    warnings = [
        f"Locale code {locale!r} does not look like 'xx' or 'xx-YY'"
        for locale in (configuration.source_locale, *configuration.target_locales)
        if not LOCALE_CODE_PATTERN.match(locale)
    ]
    return ConfigurationValidation(configuration=configuration, defaulted=defaulted, warnings=warnings)


def branch_matches_pattern(branch_name: str, pattern: str) -> bool:
    """Match a branch against an exact name or a glob where '*' matches any substring."""
    if "*" not in pattern:
        return branch_name == pattern
    regex = ".*".join(re.escape(part) for part in pattern.split("*"))
    return re.fullmatch(regex, branch_name, re.DOTALL) is not None


def is_target_branch(branch_name: str, configuration: RepositoryConfiguration) -> bool:
    """Return True if the branch matches any of the configured target branch patterns."""
    return any(branch_matches_pattern(branch_name, pattern) for pattern in configuration.target_branches)


class ConfigResolver:
    """Reads the configuration file from the repository, falling back across revisions."""

    def __init__(self, github_adapter: GitHubClientBase, config_file_path: str = DEFAULT_CONFIG_FILE_PATH) -> None:
        """Initialize the resolver with an adapter for the repository to read from."""
        self.github_adapter = github_adapter
        self.config_file_path = config_file_path

    async def load(self, ref: str) -> RepositoryConfiguration | None:
        """Load the configuration at a single ref.

        A missing file or a malformed document yields None. Other API errors
        propagate.
        """
        try:
            content = await self.github_adapter.get_file_content(self.config_file_path, ref)
        except NotFoundError:
            logger.info("No configuration file found at ref", config_file_path=self.config_file_path, ref=ref)
            return None
        except UnicodeDecodeError as exc:
            logger.warning("Configuration file is not valid UTF-8", config_file_path=self.config_file_path, ref=ref, error=str(exc))
            return None

        try:
            raw = json.loads(content)
        except json.JSONDecodeError as exc:
            logger.warning("Configuration file is not valid JSON", config_file_path=self.config_file_path, ref=ref, error=str(exc))
            return None
        if not isinstance(raw, dict):
            logger.warning("Configuration file is not a JSON object", config_file_path=self.config_file_path, ref=ref)
            return None

        validation = validate_repository_configuration(raw)
        for decision in validation.defaulted:
            logger.debug("Configuration field defaulted", ref=ref, field=decision.field, reason=decision.reason)
        for warning in validation.warnings:
            logger.warning(warning, ref=ref)

        configuration = validation.configuration
        logger.info(
            "Repository configuration loaded",
            ref=ref,
            target_branches=list(configuration.target_branches),
            source_file=configuration.source_file,
            target_locales=list(configuration.target_locales),
            has_api_key=bool(configuration.project_api_key),
        )
        return configuration

    async def _resolve(self, refs: list[str], default_branch: str | None) -> RepositoryConfiguration | None:
        """Try each ref in order, then the default branch, returning the first configuration found."""
        tried: list[str] = []
        for ref in refs:
            if not ref or ref in tried:
                continue
            tried.append(ref)
            configuration = await self.load(ref)
            if configuration is not None:
                return configuration

        if not default_branch:
            default_branch = await self.github_adapter.get_default_branch()
        if default_branch not in tried:
            tried.append(default_branch)
            configuration = await self.load(default_branch)
            if configuration is not None:
                return configuration

        logger.info("No configuration found at any fallback ref", config_file_path=self.config_file_path, refs=tried)
        return None

    async def resolve_for_pull_request(self, context: PullRequestContext) -> RepositoryConfiguration | None:
        """Resolve configuration from the head SHA, then the base branch, then the default branch."""
        return await self._resolve([context.head_sha, context.base_ref], context.default_branch)

    async def resolve_for_push(self, context: PushContext) -> RepositoryConfiguration | None:
        """Resolve configuration from the pushed branch, then the default branch."""
        return await self._resolve([context.branch], context.default_branch)


def render_configuration_document(configuration: RepositoryConfiguration = DEFAULT_REPOSITORY_CONFIGURATION) -> str:
    """Serialize a configuration the way it is written to the repository."""
    return json.dumps(configuration.to_document(), indent=2) + "\n"


async def bootstrap_default_configuration(github_adapter: GitHubClientBase, config_file_path: str = DEFAULT_CONFIG_FILE_PATH) -> bool:
    """Write the default configuration file to the default branch unless one already exists there.

    Returns:
        True if the file was created, False if it already existed.
    """
    default_branch = await github_adapter.get_default_branch()
    try:
        await github_adapter.get_file_content(config_file_path, default_branch)
    except NotFoundError:
        pass
    else:
        logger.info("Configuration file already exists, skipping creation", config_file_path=config_file_path, branch=default_branch)
        return False

    await github_adapter.create_file(
        file_path=config_file_path,
        content=render_configuration_document(),
        message=CONFIG_BOOTSTRAP_COMMIT_MESSAGE,
        branch=default_branch,
    )
    logger.info("Created default configuration file", config_file_path=config_file_path, branch=default_branch)
    return True
