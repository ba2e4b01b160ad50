"""Defines the Command Line Interface (CLI) using Typer."""

import asyncio
import json
from pathlib import Path

import typer
from dotenv import load_dotenv
from typer import Argument, Option
from typing_extensions import Annotated

from vocoder_sync.configuration.env import Settings
from vocoder_sync.configuration.exceptions import GitHubAuthenticationConfigurationUndefinedError, InvalidRuntimeSettingError
from vocoder_sync.configuration.models import RuntimeConfig
from vocoder_sync.configuration.reconcile import reconcile_runtime_configuration
from vocoder_sync.synchronize.exceptions import WebhookPayloadError
from vocoder_sync.synchronize.models import SyncStatus
from vocoder_sync.synchronize.repository_config import render_configuration_document, validate_repository_configuration
from vocoder_sync.synchronize.results import SyncResult
from vocoder_sync.synchronize.workflows import (
    run_bootstrap_config_workflow,
    run_handle_event_workflow,
    run_reprocess_branch_workflow,
    run_sync_pull_request_workflow,
)
from vocoder_sync.utils.log_config import configure_logging

load_dotenv()

typer_app = typer.Typer(pretty_exceptions_show_locals=False, help="Translate changed localization strings on pull requests.")


@typer_app.callback()
def main_callback(
    ctx: typer.Context,
    debug: Annotated[bool, Option(envvar="DEBUG", help="Enable debug logging.")] = False,
    github_api_url: Annotated[str | None, Option(envvar="GITHUB_API_URL", help="GitHub API URL.")] = None,
    translation_api_url: Annotated[
        str | None, Option(envvar="TRANSLATION_API_URL", help="Translation service URL. Required unless TRANSLATION_MOCK is set.")
    ] = None,
) -> None:
    """Configure logging and remember global options for the subcommands."""
    configure_logging(debug)
    ctx.ensure_object(dict)
    ctx.obj["debug"] = debug
    ctx.obj["github_api_url"] = github_api_url
    ctx.obj["translation_api_url"] = translation_api_url


def _runtime_config(ctx: typer.Context) -> RuntimeConfig:
    """Reconcile environment settings with the global CLI options, exiting on invalid configuration."""
    try:
        return asyncio.run(
            reconcile_runtime_configuration(
                Settings(),
                cli_debug=ctx.obj["debug"],
                cli_github_api_url=ctx.obj["github_api_url"],
                cli_translation_api_url=ctx.obj["translation_api_url"],
            )
        )
    except (GitHubAuthenticationConfigurationUndefinedError, InvalidRuntimeSettingError) as exc:
        typer.echo(f"Invalid configuration: {exc}", err=True)
        raise typer.Exit(1) from exc


def _echo_sync_result(label: str, result: SyncResult) -> None:
    if result.status == SyncStatus.SKIPPED:
        typer.echo(f"{label}: skipped ({result.reason})")
    elif result.success:
        typer.echo(
            f"{label}: success - {result.changes_processed} changes processed, {result.locales_updated} locales updated"
            + (f", commit {result.commit_sha}" if result.commit_sha else "")
        )
    else:
        typer.echo(f"{label}: failure - {result.error}", err=True)


@typer_app.command(name="sync-pull-request")
def sync_pull_request_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(envvar="REPO", help="Repository name (owner/repo).")],
    pull_number: Annotated[int, Argument(help="Pull request number.")],
) -> None:
    """Run one localization pass over a pull request."""
    runtime_config = _runtime_config(ctx)
    result = asyncio.run(run_sync_pull_request_workflow(repo, pull_number, runtime_config))
    _echo_sync_result(f"Pull request #{pull_number}", result)
    if result.status == SyncStatus.FAILURE:
        raise typer.Exit(1)


@typer_app.command(name="reprocess-branch")
def reprocess_branch_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(envvar="REPO", help="Repository name (owner/repo).")],
    branch: Annotated[str, Argument(help="Base branch whose open pull requests are reprocessed.")],
) -> None:
    """Reprocess every open pull request that targets a branch."""
    runtime_config = _runtime_config(ctx)
    summary = asyncio.run(run_reprocess_branch_workflow(repo, branch, runtime_config))
    if summary.skipped_reason:
        typer.echo(f"Skipped branch '{branch}': {summary.skipped_reason}")
        return
    if not summary.results:
        typer.echo(f"No open pull requests target branch '{branch}'")
        return
    for item in summary.results:
        _echo_sync_result(f"Pull request #{item.pull_number}", item.result)
    if summary.failed_pull_numbers:
        raise typer.Exit(1)


@typer_app.command(name="handle-event")
def handle_event_cli(
    ctx: typer.Context,
    event_name: Annotated[str, Argument(help="Webhook event name, e.g. pull_request, push, or installation.")],
    payload_file: Annotated[Path, Argument(help="Path to a JSON file holding the webhook payload.")],
) -> None:
    """Replay a stored webhook payload through the event dispatcher."""
    if not payload_file.exists():
        typer.echo(f"Payload file not found: {payload_file.absolute()}", err=True)
        raise typer.Exit(1)
    try:
        payload = json.loads(payload_file.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"Payload file is not valid JSON: {exc}", err=True)
        raise typer.Exit(1) from exc
    if not isinstance(payload, dict):
        typer.echo("Payload file must contain a JSON object", err=True)
        raise typer.Exit(1)

    runtime_config = _runtime_config(ctx)
    try:
        outcome = asyncio.run(run_handle_event_workflow(event_name, payload, runtime_config))
    except WebhookPayloadError as exc:
        typer.echo(f"Invalid payload: {exc}", err=True)
        raise typer.Exit(1) from exc

    if outcome.ignored:
        typer.echo(f"Ignored {event_name} event: {outcome.ignored_reason}")
        return
    if outcome.sync_result is not None:
        _echo_sync_result(f"{event_name} event", outcome.sync_result)
    if outcome.reprocess_summary is not None:
        summary = outcome.reprocess_summary
        if summary.skipped_reason:
            typer.echo(f"Skipped branch '{summary.branch}': {summary.skipped_reason}")
        for item in summary.results:
            _echo_sync_result(f"Pull request #{item.pull_number}", item.result)
    for repository, status in outcome.bootstrap_results.items():
        typer.echo(f"{repository}: configuration {status}")


@typer_app.command(name="bootstrap-config")
def bootstrap_config_cli(
    ctx: typer.Context,
    repo: Annotated[str, Argument(envvar="REPO", help="Repository name (owner/repo).")],
) -> None:
    """Write the default configuration file to the repository's default branch if it has none."""
    runtime_config = _runtime_config(ctx)
    created = asyncio.run(run_bootstrap_config_workflow(repo, runtime_config))
    if created:
        typer.echo(f"Created {runtime_config.config_file_path} in {repo}")
    else:
        typer.echo(f"{runtime_config.config_file_path} already exists in {repo}, nothing to do")


@typer_app.command(name="validate-config")
def validate_config_cli(
    config_path: Annotated[Path, Argument(help="Path to a local configuration file.")],
) -> None:
    """Validate a configuration file and print the effective configuration."""
    if not config_path.exists():
        typer.echo(f"Configuration file not found: {config_path.absolute()}", err=True)
        raise typer.Exit(1)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        typer.echo(f"Configuration file is not valid JSON: {exc}", err=True)
        raise typer.Exit(1) from exc

    validation = validate_repository_configuration(raw)
    for decision in validation.defaulted:
        typer.echo(f"Defaulted {decision.field}: {decision.reason}")
    for warning in validation.warnings:
        typer.echo(f"Warning: {warning}", err=True)
    typer.echo("Effective configuration:")
    typer.echo(render_configuration_document(validation.configuration), nl=False)
