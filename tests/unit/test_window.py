"""Tests for idle_sweeper/engine/window.py - pool-level idle evaluation."""

from datetime import timedelta

import pytest
from conftest import NOW, days_ago, make_commit, make_event

from idle_sweeper.engine import window

WEEK = timedelta(days=7)
THREE_DAYS = timedelta(days=3)


class TestIsWithin:
    """Tests for the window boundary check."""

    def test_inside_window(self) -> None:
        assert window.is_within(days_ago(2), THREE_DAYS, NOW)

    def test_boundary_is_inclusive(self) -> None:
        assert window.is_within(days_ago(3), THREE_DAYS, NOW)

    def test_outside_window(self) -> None:
        assert not window.is_within(days_ago(3.01), THREE_DAYS, NOW)

    def test_missing_timestamp_never_counts(self) -> None:
        assert not window.is_within(None, WEEK, NOW)


class TestEvaluate:
    """Tests for evaluate() and active()."""

    @pytest.mark.parametrize("size", [timedelta(minutes=1), THREE_DAYS, WEEK, timedelta(days=365)])
    def test_no_activity_means_everyone_idle(self, size: timedelta) -> None:
        """Empty event and commit streams leave every candidate idle for any window."""
        assert window.evaluate(["alice", "bob"], [], size, [], NOW) == {"alice", "bob"}

    def test_recent_event_makes_nobody_idle(self) -> None:
        events = [make_event("alice", "labeled", 1)]

        assert window.evaluate(["alice"], events, THREE_DAYS, [], NOW) == set()
        assert window.active(["alice"], events, THREE_DAYS, [], NOW) == {"alice"}

    def test_old_event_does_not_count(self) -> None:
        events = [make_event("alice", "labeled", 4)]

        assert window.evaluate(["alice"], events, THREE_DAYS, [], NOW) == {"alice"}
        assert window.evaluate(["alice"], events, WEEK, [], NOW) == set()

    def test_recent_commit_counts(self) -> None:
        commits = [make_commit("alice", 0.5)]

        assert window.evaluate(["alice"], [], THREE_DAYS, commits, NOW) == set()

    def test_undated_commit_is_ignored(self) -> None:
        commits = [make_commit("alice", None)]

        assert window.evaluate(["alice"], [], WEEK, commits, NOW) == {"alice"}

    def test_check_is_pool_level_for_multiple_assignees(self) -> None:
        """Activity by one assignee keeps the whole pool from being idle."""
        events = [make_event("alice", "commented", 1)]

        assert window.evaluate(["alice", "bob"], events, THREE_DAYS, [], NOW) == set()
        assert window.active(["alice", "bob"], events, THREE_DAYS, [], NOW) == {"alice", "bob"}

    def test_multiple_idle_assignees_reported_together(self) -> None:
        events = [make_event("alice", "commented", 10), make_event("bob", "commented", 9)]

        assert window.evaluate(["alice", "bob"], events, WEEK, [], NOW) == {"alice", "bob"}
