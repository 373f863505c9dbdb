"""Remind assignees who are drifting towards disqualification.

A reminder is posted at most once per disqualify window: before posting, the
issue's comments are searched for the same message written by an automated
account within that window. If the comments cannot be read the reminder is
held back rather than risk a duplicate.
"""

from collections.abc import Collection, Sequence
from datetime import datetime, timedelta

import structlog

from idle_sweeper.engine.window import is_within
from idle_sweeper.exceptions import MutationError, TransientFetchError
from idle_sweeper.models.domain import ActionOutcome
from idle_sweeper.providers.base import IssueTracker

log = structlog.get_logger(__name__)

FOLLOW_UP_MESSAGE = "{mentions}, this task has been idle for a while. Please provide an update."


def build_follow_up_message(logins: Sequence[str]) -> str:
    """Address one reminder to all ``logins``, keeping their order."""
    return FOLLOW_UP_MESSAGE.format(mentions=", ".join(f"@{login}" for login in logins))


class FollowUpPolicy:
    """Posts a single reminder to idle assignees that are not disqualified."""

    def __init__(self, tracker: IssueTracker, disqualify_after: timedelta, dry_run: bool = False) -> None:
        self.tracker = tracker
        self.disqualify_after = disqualify_after
        self.dry_run = dry_run

    async def has_recent_follow_up(self, issue_number: int, message: str, now: datetime) -> bool:
        """Whether an automated account posted ``message`` within the disqualify window.

        Raises:
            TransientFetchError: If the comments cannot be listed.
        """
        async for comment in self.tracker.list_comments(issue_number):
            if (
                comment.body == message
                and comment.is_automated
                and is_within(comment.created_at, self.disqualify_after, now)
            ):
                return True
        return False

    async def follow_up(
        self,
        issue_number: int,
        candidates: Sequence[str],
        disqualified: Collection[str],
        active: Collection[str],
        now: datetime,
    ) -> ActionOutcome:
        """Remind candidates that are neither disqualified nor recently active.

        Args:
            issue_number: Issue to comment on.
            candidates: Assignees outside the grace period.
            disqualified: Assignees being unassigned in this evaluation.
            active: Assignees with activity inside the follow-up window.
            now: Evaluation instant.

        Returns:
            The logins the reminder addresses, with how posting went.
        """
        targets = [login for login in candidates if login not in disqualified and login not in active]
        intended = frozenset(targets)

        if not targets:
            return ActionOutcome(intended=intended)

        message = build_follow_up_message(targets)

        try:
            already_posted = await self.has_recent_follow_up(issue_number, message, now)
        except TransientFetchError as e:
            log.error("fetch_comments_failed", issue_number=issue_number, error=e.message)
            return ActionOutcome(intended=intended, error=e.message, skipped_reason="comments_unavailable")

        if already_posted:
            log.info("follow_up_already_posted", issue_number=issue_number, assignees=targets)
            return ActionOutcome(intended=intended, skipped_reason="duplicate")

        if self.dry_run:
            log.info("dry_run_follow_up", issue_number=issue_number, assignees=targets)
            return ActionOutcome(intended=intended, skipped_reason="dry_run")

        try:
            await self.tracker.add_comment(issue_number, message)
        except MutationError as e:
            log.error("follow_up_failed", issue_number=issue_number, assignees=targets, error=e.message)
            return ActionOutcome(intended=intended, applied=False, error=e.message)

        log.info("followed_up_with_idle_assignees", issue_number=issue_number, assignees=targets)
        return ActionOutcome(intended=intended, applied=True)
