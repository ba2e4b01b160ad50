"""Unit tests for repository configuration validation and resolution."""

import base64
import json
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock

import pytest

from tests.unit.fakes import FakeGitHubAdapter
from vocoder_sync.github.adapter import GitHubKitAdapter
from vocoder_sync.github.exceptions import AuthFailureError, NotFoundError
from vocoder_sync.synchronize.models import PullRequestContext, PushContext
from vocoder_sync.synchronize.repository_config import (
    DEFAULT_REPOSITORY_CONFIGURATION,
    ConfigResolver,
    RepositoryConfiguration,
    bootstrap_default_configuration,
    branch_matches_pattern,
    is_target_branch,
    render_configuration_document,
    validate_repository_configuration,
)

CONFIG_FILE_PATH = ".vocoder/config.json"


def _config_json(**overrides: object) -> str:
    document = {"targetBranches": ["main"], "targetLocales": ["de"]}
    document.update(overrides)
    return json.dumps(document)


def test_defaults_match_documented_values() -> None:
    """The default configuration uses the documented values."""
    assert DEFAULT_REPOSITORY_CONFIGURATION.to_document() == {
        "targetBranches": ["main"],
        "sourceFile": "src/locales/en.json",
        "sourceLocale": "en",
        "targetLocales": ["fr", "it"],
        "outputDir": "locales",
        "projectApiKey": "",
    }


def test_validate_merges_over_defaults() -> None:
    """Present fields are used and absent fields are defaulted and recorded."""
    validation = validate_repository_configuration({"targetLocales": ["de", "es"], "outputDir": "i18n"})

    assert validation.configuration.target_locales == ("de", "es")
    assert validation.configuration.output_dir == "i18n"
    assert validation.configuration.target_branches == ("main",)
    defaulted_fields = {decision.field for decision in validation.defaulted}
    assert defaulted_fields == {"targetBranches", "sourceFile", "sourceLocale", "projectApiKey"}


def test_validate_defaults_wrong_types() -> None:
    """Wrongly typed fields fall back to defaults instead of raising."""
    validation = validate_repository_configuration({"targetBranches": "main", "sourceFile": 42, "targetLocales": ["fr", 3]})

    assert validation.configuration == RepositoryConfiguration()
    reasons = {decision.field: decision.reason for decision in validation.defaulted}
    assert reasons["targetBranches"] == "expected a list of strings"
    assert reasons["sourceFile"] == "expected a string"
    assert reasons["targetLocales"] == "expected a list of strings"


def test_validate_replaces_empty_target_locales_and_deduplicates() -> None:
    """An empty locale list is defaulted; duplicates are dropped preserving order."""
    assert validate_repository_configuration({"targetLocales": []}).configuration.target_locales == ("fr", "it")
    assert validate_repository_configuration({"targetLocales": ["es", "fr", "es"]}).configuration.target_locales == ("es", "fr")


def test_validate_non_object_document() -> None:
    """A document that is not an object yields the defaults."""
    validation = validate_repository_configuration(["main"])
    assert validation.configuration == DEFAULT_REPOSITORY_CONFIGURATION
    assert len(validation.defaulted) == 6


def test_validate_warns_about_odd_locale_codes() -> None:
    """Locale codes outside the xx / xx-YY shape produce warnings, not errors."""
    validation = validate_repository_configuration({"targetLocales": ["pt-BR", "french"]})
    assert validation.configuration.target_locales == ("pt-BR", "french")
    assert len(validation.warnings) == 1
    assert "french" in validation.warnings[0]


@pytest.mark.parametrize(
    ("branch", "patterns", "expected"),
    [
        ("release-42", ["release-*"], True),
        ("main", ["main", "develop"], True),
        ("feature/x", ["main"], False),
        ("release-", ["release-*"], True),
        ("feature/deep/x", ["feature/*"], True),
        ("release-1", ["release.*"], False),
        ("mainline", ["main"], False),
    ],
)
def test_is_target_branch(branch: str, patterns: list[str], expected: bool) -> None:
    """Branches match exact names or '*' globs, with every other character literal."""
    configuration = RepositoryConfiguration(target_branches=tuple(patterns))
    assert is_target_branch(branch, configuration) is expected


def test_branch_pattern_is_anchored() -> None:
    """A glob must match the whole branch name."""
    assert not branch_matches_pattern("old-release-1", "release-*")
    assert branch_matches_pattern("hotfix/1/final", "hotfix/*/final")


@pytest.mark.parametrize(
    "branch,pattern,expected",
    [
        pytest.param("v1-stable\n", "*-stable", False, id="trailing-newline"),
        pytest.param("release\n", "release", False, id="literal-trailing-newline"),
        pytest.param("release/1.0", "release/*", True, id="wildcard"),
        pytest.param("release/1\n0", "release/*", True, id="wildcard-spans-newline"),
        pytest.param("release-1x0", "release-1.0", False, id="dot-is-literal"),
    ],
)
def test_branch_pattern_matches_exact_name(branch: str, pattern: str, expected: bool) -> None:
    """Only the whole name matches; a trailing newline is not absorbed by the end anchor."""
    assert branch_matches_pattern(branch, pattern) is expected


@pytest.mark.asyncio
async def test_load_returns_none_for_missing_file(fake_github: FakeGitHubAdapter) -> None:
    """A missing configuration file is not an error."""
    fake_github.push("main", {"README.md": "hi"})
    resolver = ConfigResolver(fake_github, CONFIG_FILE_PATH)
    assert await resolver.load("main") is None


@pytest.mark.asyncio
async def test_load_returns_none_for_malformed_json(fake_github: FakeGitHubAdapter) -> None:
    """A configuration file that is not valid JSON is treated as absent."""
    fake_github.push("main", {CONFIG_FILE_PATH: "{not json"})
    resolver = ConfigResolver(fake_github, CONFIG_FILE_PATH)
    assert await resolver.load("main") is None


@pytest.mark.asyncio
async def test_load_returns_none_for_non_utf8_file() -> None:
    """A configuration file that is not UTF-8 text is treated as absent."""
    adapter = GitHubKitAdapter(MagicMock(), "owner", "repo")
    encoded = base64.b64encode(b'{"targetBranches": ["\xff"]}').decode("ascii")
    adapter.client.rest.repos.async_get_content = AsyncMock(return_value=SimpleNamespace(parsed_data=SimpleNamespace(type="file", content=encoded)))
    resolver = ConfigResolver(adapter, CONFIG_FILE_PATH)

    assert await resolver.load("main") is None


@pytest.mark.asyncio
async def test_load_propagates_other_api_errors() -> None:
    """API errors other than not-found reach the caller."""
    adapter = AsyncMock()
    adapter.get_file_content.side_effect = AuthFailureError("Bad credentials", 401)
    resolver = ConfigResolver(adapter, CONFIG_FILE_PATH)
    with pytest.raises(AuthFailureError):
        await resolver.load("main")


@pytest.mark.asyncio
async def test_resolve_for_pull_request_prefers_head(fake_github: FakeGitHubAdapter) -> None:
    """The configuration at the head SHA wins over the base and default branches."""
    fake_github.push("main", {CONFIG_FILE_PATH: _config_json(targetLocales=["fr"])})
    head_sha = fake_github.push("feature", {CONFIG_FILE_PATH: _config_json(targetLocales=["es"])})
    context = PullRequestContext(owner="o", repo="r", number=1, base_ref="main", base_sha="x", head_ref="feature", head_sha=head_sha)

    configuration = await ConfigResolver(fake_github, CONFIG_FILE_PATH).resolve_for_pull_request(context)

    assert configuration is not None
    assert configuration.target_locales == ("es",)


@pytest.mark.asyncio
async def test_resolve_for_pull_request_falls_back_to_base_then_default(fake_github: FakeGitHubAdapter) -> None:
    """Without a head configuration the base branch is used, then the default branch."""
    fake_github.push("main", {CONFIG_FILE_PATH: _config_json(targetLocales=["fr"])})
    fake_github.push("develop", {CONFIG_FILE_PATH: _config_json(targetLocales=["it"])})
    head_sha = fake_github.push("feature", {"README.md": "hi"})
    resolver = ConfigResolver(fake_github, CONFIG_FILE_PATH)

    context = PullRequestContext(owner="o", repo="r", number=1, base_ref="develop", base_sha="x", head_ref="feature", head_sha=head_sha)
    configuration = await resolver.resolve_for_pull_request(context)
    assert configuration is not None and configuration.target_locales == ("it",)

    context = PullRequestContext(owner="o", repo="r", number=1, base_ref="release", base_sha="x", head_ref="feature", head_sha=head_sha)
    fake_github.push("release", {"README.md": "hi"})
    configuration = await resolver.resolve_for_pull_request(context)
    assert configuration is not None and configuration.target_locales == ("fr",)


@pytest.mark.asyncio
async def test_resolve_tries_refs_in_order_without_duplicates() -> None:
    """Each distinct ref is read once, in fallback order."""
    adapter = AsyncMock()
    adapter.get_file_content.side_effect = [NotFoundError("Not Found", 404), NotFoundError("Not Found", 404)]
    context = PullRequestContext(
        owner="o", repo="r", number=1, base_ref="main", base_sha="b", head_ref="f", head_sha="h", default_branch="main"
    )

    configuration = await ConfigResolver(adapter, CONFIG_FILE_PATH).resolve_for_pull_request(context)

    assert configuration is None
    assert [call.args[1] for call in adapter.get_file_content.await_args_list] == ["h", "main"]
    adapter.get_default_branch.assert_not_awaited()


@pytest.mark.asyncio
async def test_resolve_for_push_uses_branch_then_default(fake_github: FakeGitHubAdapter) -> None:
    """Push resolution reads the pushed branch, then the default branch."""
    fake_github.push("main", {CONFIG_FILE_PATH: _config_json(targetBranches=["release-*"])})
    fake_github.push("release-1", {"README.md": "hi"})

    configuration = await ConfigResolver(fake_github, CONFIG_FILE_PATH).resolve_for_push(PushContext(owner="o", repo="r", branch="release-1"))

    assert configuration is not None
    assert configuration.target_branches == ("release-*",)


@pytest.mark.asyncio
async def test_bootstrap_writes_default_configuration(fake_github: FakeGitHubAdapter) -> None:
    """The default configuration is written to the default branch when none exists."""
    fake_github.push("main", {"README.md": "hi"})

    assert await bootstrap_default_configuration(fake_github, CONFIG_FILE_PATH) is True

    assert fake_github.read_json("main", CONFIG_FILE_PATH) == DEFAULT_REPOSITORY_CONFIGURATION.to_document()
    assert fake_github.commits[fake_github.branches["main"]].message == "Add Vocoder localization configuration"


@pytest.mark.asyncio
async def test_bootstrap_keeps_existing_configuration(fake_github: FakeGitHubAdapter) -> None:
    """An existing configuration file is left alone."""
    fake_github.push("main", {CONFIG_FILE_PATH: _config_json()})

    assert await bootstrap_default_configuration(fake_github, CONFIG_FILE_PATH) is False
    assert "create_file" not in fake_github.write_calls


def test_render_configuration_document_round_trips_through_validation() -> None:
    """The rendered default configuration validates back to itself without defaulting anything."""
    validation = validate_repository_configuration(json.loads(render_configuration_document()))
    assert validation.configuration == DEFAULT_REPOSITORY_CONFIGURATION
    assert validation.defaulted == []