"""Decide who is idle within a time window.

The check is made for the candidate pool as a whole: if any candidate event
or commit falls inside the window, nobody in the pool is idle; otherwise
everybody is. With one assignee this is the same as a per-login check. With
several assignees, one active assignee keeps the others from being reported
idle.
"""

from collections.abc import Collection, Iterable
from datetime import datetime, timedelta

from idle_sweeper.models.domain import ActivityEvent, CommitRecord


def is_within(timestamp: datetime | None, window: timedelta, now: datetime) -> bool:
    """True when ``timestamp`` is at most ``window`` before ``now``."""
    return timestamp is not None and now - timestamp <= window


def has_activity_within(
    events: Iterable[ActivityEvent],
    commits: Iterable[CommitRecord],
    window: timedelta,
    now: datetime,
) -> bool:
    """True when any event or dated commit falls inside the window."""
    return any(is_within(event.created_at, window, now) for event in events) or any(
        is_within(commit.created_at, window, now) for commit in commits
    )


def evaluate(
    candidates: Collection[str],
    events: Iterable[ActivityEvent],
    window: timedelta,
    commits: Iterable[CommitRecord],
    now: datetime,
) -> set[str]:
    """Return the candidates considered idle within ``window``.

    Args:
        candidates: Logins being evaluated.
        events: Events already filtered to the candidates.
        window: How far back activity counts.
        commits: Commits already filtered to the candidates.
        now: Evaluation instant.

    Returns:
        Every candidate if the pool shows no activity in the window, else an
        empty set.
    """
    if has_activity_within(events, commits, window, now):
        return set()
    return set(candidates)


def active(
    candidates: Collection[str],
    events: Iterable[ActivityEvent],
    window: timedelta,
    commits: Iterable[CommitRecord],
    now: datetime,
) -> set[str]:
    """Complement of :func:`evaluate` within ``candidates``."""
    return set(candidates) - evaluate(candidates, events, window, commits, now)
