"""Sweep every open, assigned issue of a repository.

Per issue the steps run strictly in order: aggregate activity, evaluate both
windows, disqualify, then follow up (follow-up excludes whoever was just
disqualified). Issues are evaluated concurrently and independently; a failure
on one issue is reported in the summary and never aborts the sweep.
"""

import asyncio
from collections.abc import Callable
from datetime import UTC, datetime

import structlog

from idle_sweeper.config.settings import SweeperSettings, TimersConfig
from idle_sweeper.engine import window
from idle_sweeper.engine.aggregator import ActivityAggregator
from idle_sweeper.engine.disqualify import DisqualificationPolicy, split_by_grace
from idle_sweeper.engine.follow_up import FollowUpPolicy
from idle_sweeper.exceptions import DataIntegrityError, IdleSweeperError
from idle_sweeper.models.domain import EvaluationResult, Issue, SkippedItem, SweepSummary
from idle_sweeper.providers.base import IssueTracker

log = structlog.get_logger(__name__)


def utc_now() -> datetime:
    return datetime.now(UTC)


class TaskSweeper:
    """Runs the disqualification and follow-up policies over a repository.

    Example:
        >>> async with create_tracker(settings) as tracker:
        ...     summary = await TaskSweeper.from_settings(tracker, settings).sweep()
        >>> summary.disqualified
        {42: ['alice']}
    """

    def __init__(
        self,
        tracker: IssueTracker,
        timers: TimersConfig,
        max_concurrent_items: int = 5,
        dry_run: bool = False,
        clock: Callable[[], datetime] = utc_now,
    ) -> None:
        self.tracker = tracker
        self.timers = timers
        self.dry_run = dry_run
        self.clock = clock
        self.aggregator = ActivityAggregator(tracker)
        self.disqualification = DisqualificationPolicy(tracker, dry_run=dry_run)
        self.follow_up = FollowUpPolicy(tracker, timers.disqualify_after, dry_run=dry_run)
        self._semaphore = asyncio.Semaphore(max_concurrent_items)

    @classmethod
    def from_settings(
        cls,
        tracker: IssueTracker,
        settings: SweeperSettings,
        dry_run: bool | None = None,
    ) -> "TaskSweeper":
        """Build a sweeper from loaded settings; ``dry_run`` overrides the config."""
        return cls(
            tracker,
            settings.timers,
            max_concurrent_items=settings.sweeper.max_concurrent_items,
            dry_run=settings.sweeper.dry_run if dry_run is None else dry_run,
        )

    async def evaluate_issue(self, issue: Issue) -> EvaluationResult:
        """Evaluate one issue and apply the resulting actions.

        Raises:
            DataIntegrityError: If the issue has assignees but no assign event.
        """
        candidates = list(dict.fromkeys(issue.assignees))
        if not candidates:
            return EvaluationResult(issue_number=issue.number)

        log.info("checking_neglected_task", issue_number=issue.number, assignees=candidates)
        now = self.clock()
        disqualify_after = self.timers.disqualify_after
        follow_up_after = self.timers.follow_up_after

        activity = await self.aggregator.aggregate(issue.number, candidates)

        latest_assigned_at = activity.latest_assigned_at
        if latest_assigned_at is None:
            raise DataIntegrityError("No assign events found for an assigned issue", issue_number=issue.number)

        active_in_disqualify_window = window.active(
            candidates, activity.events, disqualify_after, activity.commits, now
        )
        active_in_follow_up_window = window.active(
            candidates, activity.events, follow_up_after, activity.commits, now
        )

        within_grace, outside_grace = split_by_grace(candidates, latest_assigned_at, disqualify_after, now)

        disqualification = await self.disqualification.disqualify(
            issue.number, outside_grace, active_in_disqualify_window
        )
        follow_up = await self.follow_up.follow_up(
            issue.number,
            outside_grace,
            disqualification.intended,
            active_in_follow_up_window,
            now,
        )

        result = EvaluationResult(
            issue_number=issue.number,
            disqualification=disqualification,
            follow_up=follow_up,
            within_grace=frozenset(within_grace),
        )
        log.info(
            "checked_task_to_unassign",
            issue_number=issue.number,
            disqualified=sorted(result.idle_assignees),
            followed_up=sorted(result.followed_up_assignees),
        )
        return result

    async def _evaluate_guarded(self, issue: Issue) -> EvaluationResult | SkippedItem:
        async with self._semaphore:
            with structlog.contextvars.bound_contextvars(issue_number=issue.number):
                try:
                    return await self.evaluate_issue(issue)
                except IdleSweeperError as e:
                    log.warning("task_check_skipped", issue_number=issue.number, reason=e.message)
                    return SkippedItem(issue_number=issue.number, reason=e.message)
                except Exception as e:
                    log.error("task_check_failed", issue_number=issue.number, error=str(e), exc_info=True)
                    return SkippedItem(issue_number=issue.number, reason=f"Unexpected error: {e}")

    async def sweep(self) -> SweepSummary:
        """Evaluate every open issue that has at least one assignee.

        Raises:
            TransientFetchError: If the issue list itself cannot be fetched.
        """
        issues = await self.tracker.get_assigned_issues()
        log.info("sweep_started", issues=[issue.number for issue in issues], dry_run=self.dry_run)

        outcomes = await asyncio.gather(*(self._evaluate_guarded(issue) for issue in issues))

        summary = SweepSummary()
        for outcome in outcomes:
            if isinstance(outcome, SkippedItem):
                summary.skipped.append(outcome)
            else:
                summary.results.append(outcome)

        log.info(
            "checked_all_tasks_to_unassign",
            disqualified=summary.disqualified,
            followed_up=summary.followed_up,
            skipped=[item.issue_number for item in summary.skipped],
        )
        return summary
