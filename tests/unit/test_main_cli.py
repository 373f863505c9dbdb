"""Unit tests for the idle_sweeper.main CLI module.

Commands run against an in-memory tracker patched in for ``create_tracker``.
Assignments are dated far enough back that decisions do not depend on the
wall clock.
"""

from unittest.mock import MagicMock, patch

import pytest
from click.testing import CliRunner
from conftest import FakeTracker, assigned, make_issue

from idle_sweeper.main import cli

CONFIG = """
git_provider:
  provider_type: github
  api_token: test-token

repository:
  owner: test-owner
  name: test-repo

timers:
  disqualify_after: 7 days
  follow_up_after: 3 days

sweeper:
  dry_run: {dry_run}
"""


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def logging_config():
    """Keep structlog on its defaults so loggers never cache a runner stream."""
    with patch("idle_sweeper.main.configure_logging") as configure:
        yield configure


@pytest.fixture
def cli_runner() -> CliRunner:
    return CliRunner()


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "idle_sweeper.yaml"
    path.write_text(CONFIG.format(dry_run="false"))
    return path


@pytest.fixture
def stale_tracker() -> FakeTracker:
    """Issue #42 assigned to alice a year ago with no activity since."""
    tracker = FakeTracker()
    tracker.add_issue(make_issue(42, ["alice"]), [assigned("alice", 365)])
    return tracker


def _invoke(runner: CliRunner, tracker: FakeTracker, *args: str):
    with patch("idle_sweeper.main.create_tracker", return_value=tracker):
        return runner.invoke(cli, list(args))


# =============================================================================
# Configuration handling
# =============================================================================


class TestCliConfiguration:
    def test_missing_config_file(self, cli_runner: CliRunner, tmp_path) -> None:
        result = cli_runner.invoke(cli, ["--config", str(tmp_path / "absent.yaml"), "sweep"])

        assert result.exit_code == 1
        assert "Configuration file not found" in result.output

    def test_invalid_config_file(self, cli_runner: CliRunner, tmp_path) -> None:
        path = tmp_path / "broken.yaml"
        path.write_text("repository:\n  owner: test-owner\n")

        result = cli_runner.invoke(cli, ["--config", str(path), "sweep"])

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_config_from_environment(self, cli_runner: CliRunner, config_file, stale_tracker: FakeTracker) -> None:
        with patch("idle_sweeper.main.create_tracker", return_value=stale_tracker):
            result = cli_runner.invoke(cli, ["sweep", "--dry-run"], env={"IDLE_SWEEPER_CONFIG": str(config_file)})

        assert result.exit_code == 0, result.output

    def test_help_lists_commands(self, cli_runner: CliRunner) -> None:
        result = cli_runner.invoke(cli, ["--help"])

        assert result.exit_code == 0
        assert "sweep" in result.output
        assert "check-issue" in result.output


# =============================================================================
# sweep
# =============================================================================


class TestSweepCommand:
    def test_sweep_unassigns_idle_assignee(
        self, cli_runner: CliRunner, config_file, stale_tracker: FakeTracker
    ) -> None:
        result = _invoke(cli_runner, stale_tracker, "--config", str(config_file), "sweep")

        assert result.exit_code == 0, result.output
        assert stale_tracker.removed == [(42, ["alice"])]
        assert "#42: disqualified alice; followed up -" in result.output
        assert "Checked 1 issue(s), skipped 0." in result.output

    def test_dry_run_flag_changes_nothing(
        self, cli_runner: CliRunner, config_file, stale_tracker: FakeTracker
    ) -> None:
        result = _invoke(cli_runner, stale_tracker, "--config", str(config_file), "sweep", "--dry-run")

        assert result.exit_code == 0, result.output
        assert stale_tracker.removed == []
        assert stale_tracker.posted == []
        assert "disqualified alice (skipped: dry_run)" in result.output

    def test_dry_run_from_config(self, cli_runner: CliRunner, tmp_path, stale_tracker: FakeTracker) -> None:
        path = tmp_path / "dry.yaml"
        path.write_text(CONFIG.format(dry_run="true"))

        result = _invoke(cli_runner, stale_tracker, "--config", str(path), "sweep")

        assert result.exit_code == 0, result.output
        assert stale_tracker.removed == []

    def test_skipped_issues_reported(self, cli_runner: CliRunner, config_file) -> None:
        tracker = FakeTracker()
        tracker.add_issue(make_issue(7, ["bob"]), [])

        result = _invoke(cli_runner, tracker, "--config", str(config_file), "sweep")

        assert result.exit_code == 0, result.output
        assert "#7: skipped" in result.output
        assert "Checked 0 issue(s), skipped 1." in result.output

    def test_listing_failure_exits_nonzero(self, cli_runner: CliRunner, config_file) -> None:
        tracker = FakeTracker()
        tracker.fail_listing = True

        result = _invoke(cli_runner, tracker, "--config", str(config_file), "sweep")

        assert result.exit_code == 1
        assert "Failed to list issues" in result.output


# =============================================================================
# check-issue
# =============================================================================


class TestCheckIssueCommand:
    def test_check_single_issue(self, cli_runner: CliRunner, config_file, stale_tracker: FakeTracker) -> None:
        result = _invoke(cli_runner, stale_tracker, "--config", str(config_file), "check-issue", "--issue", "42")

        assert result.exit_code == 0, result.output
        assert "#42: disqualified alice; followed up -" in result.output

    def test_check_issue_dry_run(self, cli_runner: CliRunner, config_file, stale_tracker: FakeTracker) -> None:
        result = _invoke(
            cli_runner, stale_tracker, "--config", str(config_file), "check-issue", "--issue", "42", "--dry-run"
        )

        assert result.exit_code == 0, result.output
        assert stale_tracker.removed == []

    def test_unknown_issue_exits_nonzero(self, cli_runner: CliRunner, config_file) -> None:
        result = _invoke(cli_runner, FakeTracker(), "--config", str(config_file), "check-issue", "--issue", "404")

        assert result.exit_code == 1
        assert "Error:" in result.output

    def test_issue_option_required(self, cli_runner: CliRunner, config_file) -> None:
        result = cli_runner.invoke(cli, ["--config", str(config_file), "check-issue"])

        assert result.exit_code == 2


class TestCliLogging:
    def test_log_level_forwarded(
        self, cli_runner: CliRunner, config_file, stale_tracker: FakeTracker, logging_config: MagicMock
    ) -> None:
        result = _invoke(cli_runner, stale_tracker, "--log-level", "debug", "--config", str(config_file), "sweep")

        assert result.exit_code == 0, result.output
        logging_config.assert_called_once_with("debug")
