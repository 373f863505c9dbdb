"""Unassign assignees idle for longer than the disqualify window."""

from collections.abc import Collection, Sequence
from datetime import datetime, timedelta

import structlog

from idle_sweeper.exceptions import MutationError
from idle_sweeper.models.domain import ActionOutcome
from idle_sweeper.providers.base import IssueTracker

log = structlog.get_logger(__name__)


def split_by_grace(
    candidates: Sequence[str],
    latest_assigned_at: datetime,
    disqualify_after: timedelta,
    now: datetime,
) -> tuple[list[str], list[str]]:
    """Split candidates into ``(within_grace, outside_grace)``.

    The grace period is measured from the issue's latest assign event, so it
    applies to all candidates at once.
    """
    if now - latest_assigned_at < disqualify_after:
        return list(candidates), []
    return [], list(candidates)


class DisqualificationPolicy:
    """Removes idle assignees from an issue."""

    def __init__(self, tracker: IssueTracker, dry_run: bool = False) -> None:
        self.tracker = tracker
        self.dry_run = dry_run

    async def disqualify(
        self,
        issue_number: int,
        candidates: Sequence[str],
        active: Collection[str],
    ) -> ActionOutcome:
        """Unassign every candidate not in ``active``.

        Args:
            issue_number: Issue to update.
            candidates: Assignees outside the grace period.
            active: Assignees with activity inside the disqualify window.

        Returns:
            The intended idle set, whether or not the platform accepted the
            change. Failures are logged and recorded on the outcome.
        """
        idle = [login for login in candidates if login not in active]
        intended = frozenset(idle)

        if not idle:
            return ActionOutcome(intended=intended)

        if self.dry_run:
            log.info("dry_run_unassign", issue_number=issue_number, assignees=idle)
            return ActionOutcome(intended=intended, skipped_reason="dry_run")

        try:
            await self.tracker.remove_assignees(issue_number, idle)
        except MutationError as e:
            log.error("unassign_idle_assignees_failed", issue_number=issue_number, assignees=idle, error=e.message)
            return ActionOutcome(intended=intended, applied=False, error=e.message)

        log.info("unassigned_idle_assignees", issue_number=issue_number, assignees=idle)
        return ActionOutcome(intended=intended, applied=True)
