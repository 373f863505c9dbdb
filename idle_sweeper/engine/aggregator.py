"""Gather assignee activity for one issue.

Activity comes from two places: the issue's own event history, and the
commits of every pull request linked to the issue. A pull request whose
commits cannot be fetched contributes nothing instead of failing the issue.
"""

import asyncio
from collections.abc import Collection

import structlog

from idle_sweeper.exceptions import TransientFetchError
from idle_sweeper.models.domain import (
    ASSIGNED_EVENT,
    ActivityEvent,
    AssigneeActivity,
    CommitRecord,
    LinkedPullRequest,
)
from idle_sweeper.providers.base import IssueTracker

log = structlog.get_logger(__name__)


class ActivityAggregator:
    """Collects events and linked pull request commits for a set of logins."""

    def __init__(self, tracker: IssueTracker) -> None:
        self.tracker = tracker

    async def aggregate(self, issue_number: int, candidates: Collection[str]) -> AssigneeActivity:
        """Return the activity of ``candidates`` on an issue.

        Args:
            issue_number: Issue to inspect.
            candidates: Logins whose activity matters (the current assignees).

        Returns:
            AssigneeActivity with events performed by a candidate, commits
            attributed to a candidate, and the assign events targeting a
            candidate. Sequences are in no particular order.
        """
        candidates = set(candidates)
        all_events = await self._fetch_events(issue_number)

        events = [event for event in all_events if event.actor in candidates]
        assign_events = [
            event for event in all_events if event.event == ASSIGNED_EVENT and event.assignee in candidates
        ]

        linked = await self._fetch_linked_pull_requests(issue_number)
        commit_batches = await asyncio.gather(*(self._fetch_commits(issue_number, pr) for pr in linked))
        commits = [commit for batch in commit_batches for commit in batch if commit.author in candidates]

        log.debug(
            "assignee_activity_aggregated",
            issue_number=issue_number,
            events=len(events),
            assign_events=len(assign_events),
            linked_pull_requests=[pr.number for pr in linked],
            commits=len(commits),
        )
        return AssigneeActivity(events=events, commits=commits, assign_events=assign_events)

    async def _fetch_events(self, issue_number: int) -> list[ActivityEvent]:
        try:
            return await self.tracker.list_events(issue_number).collect()
        except TransientFetchError as e:
            log.error("fetch_events_failed", issue_number=issue_number, error=e.message)
            return []

    async def _fetch_linked_pull_requests(self, issue_number: int) -> list[LinkedPullRequest]:
        try:
            return await self.tracker.get_linked_pull_requests(issue_number)
        except TransientFetchError as e:
            log.error("fetch_linked_pull_requests_failed", issue_number=issue_number, error=e.message)
            return []

    async def _fetch_commits(self, issue_number: int, pull_request: LinkedPullRequest) -> list[CommitRecord]:
        try:
            return await self.tracker.list_commits(pull_request.number).collect()
        except TransientFetchError as e:
            log.error(
                "fetch_commits_failed",
                issue_number=issue_number,
                pr_number=pull_request.number,
                error=e.message,
            )
            return []
