"""Domain models for idle-sweeper.

Example:
    >>> from idle_sweeper.models import Issue, ActivityEvent, EvaluationResult
"""

from idle_sweeper.models.domain import (
    ASSIGNED_EVENT,
    BOT_AUTHOR_TYPE,
    UNASSIGNED_EVENT,
    ActionOutcome,
    ActivityEvent,
    AssigneeActivity,
    Comment,
    CommitRecord,
    EvaluationResult,
    Issue,
    IssueState,
    LinkedPullRequest,
    SkippedItem,
    SweepSummary,
)

__all__ = [
    "ASSIGNED_EVENT",
    "BOT_AUTHOR_TYPE",
    "UNASSIGNED_EVENT",
    "ActionOutcome",
    "ActivityEvent",
    "AssigneeActivity",
    "Comment",
    "CommitRecord",
    "EvaluationResult",
    "Issue",
    "IssueState",
    "LinkedPullRequest",
    "SkippedItem",
    "SweepSummary",
]
