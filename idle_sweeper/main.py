"""CLI entry point for idle-sweeper."""

import asyncio
import sys
from pathlib import Path

import click
import structlog

from idle_sweeper.config.settings import SweeperSettings
from idle_sweeper.engine.sweeper import TaskSweeper
from idle_sweeper.exceptions import ConfigurationError, IdleSweeperError
from idle_sweeper.models.domain import ActionOutcome, EvaluationResult, SweepSummary
from idle_sweeper.providers.factory import create_tracker
from idle_sweeper.utils.connection_pool import close_all_pools
from idle_sweeper.utils.logging_config import configure_logging

log = structlog.get_logger(__name__)


@click.group()
@click.option(
    "--config",
    default="idle_sweeper.yaml",
    envvar="IDLE_SWEEPER_CONFIG",
    help="Path to configuration file",
)
@click.option("--log-level", default="INFO", help="Logging level")
@click.pass_context
def cli(ctx: click.Context, config: str, log_level: str) -> None:
    """idle-sweeper: unassign idle contributors and remind the ones at risk."""
    configure_logging(log_level)

    config_path = Path(config)
    if not config_path.exists():
        click.echo(f"Error: Configuration file not found: {config}", err=True)
        sys.exit(1)

    try:
        settings = SweeperSettings.from_yaml(str(config_path))
    except ConfigurationError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("config_error", exc_info=True)
        sys.exit(1)

    ctx.obj = {"settings": settings}


@cli.command()
@click.option("--dry-run", is_flag=True, help="Report decisions without unassigning or commenting")
@click.pass_context
def sweep(ctx: click.Context, dry_run: bool) -> None:
    """Check every open, assigned issue."""
    settings = ctx.obj["settings"]
    try:
        summary = asyncio.run(_sweep(settings, dry_run or None))
    except IdleSweeperError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("sweep_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    _echo_summary(summary)


@cli.command("check-issue")
@click.option("--issue", type=int, required=True, help="Issue number to check")
@click.option("--dry-run", is_flag=True, help="Report decisions without unassigning or commenting")
@click.pass_context
def check_issue(ctx: click.Context, issue: int, dry_run: bool) -> None:
    """Check a single issue."""
    settings = ctx.obj["settings"]
    try:
        result = asyncio.run(_check_issue(settings, issue, dry_run or None))
    except IdleSweeperError as e:
        click.echo(f"Error: {e.message}", err=True)
        log.debug("check_issue_error", exc_info=True)
        sys.exit(1)
    except KeyboardInterrupt:
        click.echo("\nInterrupted by user", err=True)
        sys.exit(130)

    _echo_result(result)


async def _sweep(settings: SweeperSettings, dry_run: bool | None) -> SweepSummary:
    try:
        async with create_tracker(settings) as tracker:
            return await TaskSweeper.from_settings(tracker, settings, dry_run=dry_run).sweep()
    finally:
        await close_all_pools()


async def _check_issue(settings: SweeperSettings, issue_number: int, dry_run: bool | None) -> EvaluationResult:
    try:
        async with create_tracker(settings) as tracker:
            issue = await tracker.get_issue(issue_number)
            return await TaskSweeper.from_settings(tracker, settings, dry_run=dry_run).evaluate_issue(issue)
    finally:
        await close_all_pools()


def _describe(outcome: ActionOutcome) -> str:
    logins = ", ".join(sorted(outcome.intended)) or "-"
    if not outcome.intended:
        return logins
    if outcome.skipped_reason:
        return f"{logins} (skipped: {outcome.skipped_reason})"
    if outcome.error:
        return f"{logins} (failed: {outcome.error})"
    return logins


def _echo_result(result: EvaluationResult) -> None:
    click.echo(
        f"#{result.issue_number}: disqualified {_describe(result.disqualification)}; "
        f"followed up {_describe(result.follow_up)}"
    )


def _echo_summary(summary: SweepSummary) -> None:
    for result in summary.results:
        _echo_result(result)
    for item in summary.skipped:
        click.echo(f"#{item.issue_number}: skipped ({item.reason})", err=True)
    click.echo(f"Checked {len(summary.results)} issue(s), skipped {len(summary.skipped)}.")


if __name__ == "__main__":
    cli()
