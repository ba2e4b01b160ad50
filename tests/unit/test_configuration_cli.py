"""Unit tests for the Typer command line interface."""

import json
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from pytest import MonkeyPatch
from typer.testing import CliRunner

from vocoder_sync.configuration.cli import typer_app
from vocoder_sync.synchronize.models import SyncStatus
from vocoder_sync.synchronize.results import PullRequestReprocessResult, ReprocessSummary, SyncResult

PAT_ENV: dict[str, str | None] = {
    "GITHUB_PAT_TOKEN": "test-token",
    "GITHUB_APP_ID": None,
    "GITHUB_APP_PRIVATE_KEY_PATH": None,
    "GITHUB_APP_INSTALLATION_ID": None,
}


@pytest.fixture
def runner() -> CliRunner:
    """Typer test runner."""
    return CliRunner()


def test_validate_config_reports_defaults(runner: CliRunner, tmp_path: Path) -> None:
    """Missing fields are reported and the effective configuration is printed."""
    config_path = tmp_path / "config.json"
    config_path.write_text(json.dumps({"targetLocales": ["de", "de", "es"], "sourceFile": "i18n/en.json"}), encoding="utf-8")

    result = runner.invoke(typer_app, ["validate-config", str(config_path)])

    assert result.exit_code == 0
    assert "Defaulted targetBranches: missing" in result.output
    assert '"targetLocales": [\n    "de",\n    "es"\n  ]' in result.output
    assert '"sourceFile": "i18n/en.json"' in result.output


def test_validate_config_rejects_invalid_json(runner: CliRunner, tmp_path: Path) -> None:
    """A file that is not JSON exits with an error."""
    config_path = tmp_path / "config.json"
    config_path.write_text("{not json", encoding="utf-8")

    result = runner.invoke(typer_app, ["validate-config", str(config_path)])

    assert result.exit_code == 1
    assert "not valid JSON" in result.output


def test_validate_config_missing_file(runner: CliRunner, tmp_path: Path) -> None:
    """A missing file exits with an error."""
    result = runner.invoke(typer_app, ["validate-config", str(tmp_path / "absent.json")])

    assert result.exit_code == 1
    assert "Configuration file not found" in result.output


def test_sync_pull_request_failure_exits_nonzero(runner: CliRunner, monkeypatch: MonkeyPatch) -> None:
    """A failed synchronization pass is printed and exits with status 1."""
    workflow = AsyncMock(return_value=SyncResult.failed("Translation API call failed: timeout"))
    monkeypatch.setattr("vocoder_sync.configuration.cli.run_sync_pull_request_workflow", workflow)

    result = runner.invoke(typer_app, ["sync-pull-request", "owner/repo", "7"], env=PAT_ENV)

    assert result.exit_code == 1
    assert "Pull request #7: failure - Translation API call failed: timeout" in result.output
    assert workflow.await_args.args[:2] == ("owner/repo", 7)


def test_sync_pull_request_success(runner: CliRunner, monkeypatch: MonkeyPatch) -> None:
    """A successful pass prints its counts and commit."""
    workflow = AsyncMock(return_value=SyncResult(status=SyncStatus.SUCCESS, changes_processed=2, locales_updated=2, commit_sha="abc123"))
    monkeypatch.setattr("vocoder_sync.configuration.cli.run_sync_pull_request_workflow", workflow)

    result = runner.invoke(typer_app, ["sync-pull-request", "owner/repo", "7"], env=PAT_ENV)

    assert result.exit_code == 0
    assert "2 changes processed, 2 locales updated, commit abc123" in result.output


def test_reprocess_branch_lists_each_pull_request(runner: CliRunner, monkeypatch: MonkeyPatch) -> None:
    """Each reprocessed pull request is reported, and any failure exits nonzero."""
    summary = ReprocessSummary(
        branch="main",
        results=[
            PullRequestReprocessResult(pull_number=1, result=SyncResult(status=SyncStatus.SUCCESS)),
            PullRequestReprocessResult(pull_number=2, result=SyncResult.failed("boom")),
        ],
    )
    monkeypatch.setattr("vocoder_sync.configuration.cli.run_reprocess_branch_workflow", AsyncMock(return_value=summary))

    result = runner.invoke(typer_app, ["reprocess-branch", "owner/repo", "main"], env=PAT_ENV)

    assert result.exit_code == 1
    assert "Pull request #1: success" in result.output
    assert "Pull request #2: failure - boom" in result.output


def test_missing_authentication_exits(runner: CliRunner) -> None:
    """Commands that talk to GitHub refuse to run without credentials."""
    env: dict[str, str | None] = {key: None for key in PAT_ENV}

    result = runner.invoke(typer_app, ["bootstrap-config", "owner/repo"], env=env)

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_handle_event_ignores_unsupported_event(runner: CliRunner, tmp_path: Path) -> None:
    """Replaying an event the app does not handle is a no-op."""
    payload_file = tmp_path / "payload.json"
    payload_file.write_text(json.dumps({"action": "opened"}), encoding="utf-8")

    result = runner.invoke(typer_app, ["handle-event", "issues", str(payload_file)], env=PAT_ENV)

    assert result.exit_code == 0
    assert "Ignored issues event: unsupported event" in result.output
