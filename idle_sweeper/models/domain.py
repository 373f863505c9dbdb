"""
Domain models for idle-sweeper.

These are the normalized internal representations converted from
provider-specific payloads (GitHub, Gitea). The engine works exclusively with
these models and never sees raw API data.

Example:
    Creating an issue from provider data::

        issue = Issue(
            id=12345,
            number=42,
            title="Fix login bug",
            state=IssueState.OPEN,
            assignees=["alice"],
            created_at=datetime.now(UTC),
            updated_at=datetime.now(UTC),
            url="https://github.com/org/repo/issues/42",
        )
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum


class IssueState(str, Enum):
    """Enumeration of possible issue states."""

    OPEN = "open"
    """Issue is active and awaiting resolution."""

    CLOSED = "closed"
    """Issue has been resolved or dismissed."""


ASSIGNED_EVENT = "assigned"
UNASSIGNED_EVENT = "unassigned"
BOT_AUTHOR_TYPE = "Bot"


@dataclass
class Issue:
    """A work item with its current assignees.

    Owner and repository are implied by the provider the issue came from.
    """

    id: int
    """Unique identifier assigned by the provider's database."""

    number: int
    """Human-readable issue number (e.g., #42)."""

    title: str
    """Issue title."""

    state: IssueState
    """Current state of the issue (open or closed)."""

    assignees: list[str]
    """Logins of the current assignees, without duplicates."""

    created_at: datetime
    """Timestamp when the issue was created."""

    updated_at: datetime
    """Timestamp of the most recent update to the issue."""

    url: str = ""
    """Web URL of the issue."""


@dataclass(frozen=True)
class ActivityEvent:
    """An actor-attributed event from an issue's history.

    ``assigned`` events anchor the grace period; every other event performed
    by an assignee counts as activity.
    """

    id: int
    actor: str
    event: str
    created_at: datetime
    assignee: str | None = None
    """Login the event targets, set for assigned/unassigned events only."""


@dataclass(frozen=True)
class CommitRecord:
    """A commit from a pull request linked to an issue."""

    sha: str
    author: str | None
    """Author login if the platform resolved one, else the committer name."""

    created_at: datetime | None
    """Author date, else committer date."""


@dataclass(frozen=True)
class LinkedPullRequest:
    """A pull request referencing an issue."""

    number: int


@dataclass(frozen=True)
class Comment:
    """An issue comment, reduced to what the reminder de-duplication needs."""

    id: int
    body: str
    author: str
    author_type: str
    """``"Bot"`` for automated actors, ``"User"`` otherwise."""

    created_at: datetime

    @property
    def is_automated(self) -> bool:
        return self.author_type == BOT_AUTHOR_TYPE


@dataclass
class AssigneeActivity:
    """Activity of an issue's assignees, as gathered by the aggregator."""

    events: list[ActivityEvent] = field(default_factory=list)
    """Events whose actor is one of the candidates."""

    commits: list[CommitRecord] = field(default_factory=list)
    """Linked pull request commits attributed to one of the candidates."""

    assign_events: list[ActivityEvent] = field(default_factory=list)
    """``assigned`` events targeting one of the candidates, whoever performed them."""

    @property
    def latest_assigned_at(self) -> datetime | None:
        """Timestamp of the newest assign event, or None if there is none."""
        if not self.assign_events:
            return None
        return max(event.created_at for event in self.assign_events)


@dataclass(frozen=True)
class ActionOutcome:
    """Result of a best-effort side effect.

    ``intended`` is always the set the policy computed; ``applied`` tells
    whether the platform accepted the change.
    """

    intended: frozenset[str] = frozenset()
    applied: bool = False
    error: str | None = None
    skipped_reason: str | None = None
    """Why the action was deliberately not attempted (duplicate, dry_run, ...)."""


@dataclass
class EvaluationResult:
    """Outcome of evaluating one issue. Recomputed on every run."""

    issue_number: int
    disqualification: ActionOutcome = field(default_factory=ActionOutcome)
    follow_up: ActionOutcome = field(default_factory=ActionOutcome)
    within_grace: frozenset[str] = frozenset()

    @property
    def idle_assignees(self) -> frozenset[str]:
        """Assignees the policy decided to unassign."""
        return self.disqualification.intended

    @property
    def followed_up_assignees(self) -> frozenset[str]:
        """Assignees the reminder was addressed to."""
        return self.follow_up.intended


@dataclass(frozen=True)
class SkippedItem:
    """An issue the sweep could not evaluate."""

    issue_number: int
    reason: str


@dataclass
class SweepSummary:
    """Aggregated results of one sweep."""

    results: list[EvaluationResult] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)

    @property
    def disqualified(self) -> dict[int, list[str]]:
        """Issue number -> sorted disqualified logins, for issues with any."""
        return {
            result.issue_number: sorted(result.idle_assignees) for result in self.results if result.idle_assignees
        }

    @property
    def followed_up(self) -> dict[int, list[str]]:
        """Issue number -> sorted logins a reminder was addressed to."""
        return {
            result.issue_number: sorted(result.followed_up_assignees)
            for result in self.results
            if result.followed_up_assignees
        }
