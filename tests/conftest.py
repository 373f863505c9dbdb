"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest

from idle_sweeper.config.settings import TimersConfig
from idle_sweeper.exceptions import MutationError, TransientFetchError
from idle_sweeper.models.domain import (
    ASSIGNED_EVENT,
    BOT_AUTHOR_TYPE,
    ActivityEvent,
    Comment,
    CommitRecord,
    Issue,
    IssueState,
    LinkedPullRequest,
)
from idle_sweeper.providers.base import IssueTracker
from idle_sweeper.utils.pagination import Paginated

NOW = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)


def days_ago(days: float) -> datetime:
    return NOW - timedelta(days=days)


def make_issue(number: int = 42, assignees: list[str] | None = None) -> Issue:
    return Issue(
        id=1000 + number,
        number=number,
        title=f"Issue {number}",
        state=IssueState.OPEN,
        assignees=["alice"] if assignees is None else assignees,
        created_at=days_ago(30),
        updated_at=days_ago(1),
        url=f"https://github.com/test-owner/test-repo/issues/{number}",
    )


def make_event(actor: str, kind: str, age_days: float, assignee: str | None = None, event_id: int = 1) -> ActivityEvent:
    return ActivityEvent(id=event_id, actor=actor, event=kind, created_at=days_ago(age_days), assignee=assignee)


def assigned(assignee: str, age_days: float, by: str = "maintainer") -> ActivityEvent:
    return make_event(by, ASSIGNED_EVENT, age_days, assignee=assignee)


def make_commit(author: str | None, age_days: float | None, sha: str = "abc123") -> CommitRecord:
    return CommitRecord(sha=sha, author=author, created_at=None if age_days is None else days_ago(age_days))


def _failing(error: Exception) -> Paginated:
    async def fetch(page: int, per_page: int) -> list:
        raise error

    return Paginated(fetch)


class FakeTracker(IssueTracker):
    """In-memory tracker recording every mutation."""

    def __init__(self) -> None:
        self.owner = "test-owner"
        self.repo = "test-repo"
        self.issues: dict[int, Issue] = {}
        self.events: dict[int, list[ActivityEvent]] = {}
        self.linked: dict[int, list[int]] = {}
        self.commits: dict[int, list[CommitRecord]] = {}
        self.comments: dict[int, list[Comment]] = {}
        self.failing_events: set[int] = set()
        self.failing_linked: set[int] = set()
        self.failing_commits: set[int] = set()
        self.failing_comments: set[int] = set()
        self.fail_remove = False
        self.fail_comment = False
        self.fail_listing = False
        self.removed: list[tuple[int, list[str]]] = []
        self.posted: list[tuple[int, str]] = []

    def add_issue(self, issue: Issue, events: list[ActivityEvent] | None = None) -> Issue:
        self.issues[issue.number] = issue
        self.events[issue.number] = list(events or [])
        return issue

    async def get_issues(self, state: str = "open") -> list[Issue]:
        if self.fail_listing:
            raise TransientFetchError("Failed to list issues", status_code=502)
        return [issue for issue in self.issues.values() if state == "all" or issue.state.value == state]

    async def get_issue(self, issue_number: int) -> Issue:
        if issue_number not in self.issues:
            raise TransientFetchError(f"Failed to get issue #{issue_number}", status_code=404)
        return self.issues[issue_number]

    def list_events(self, issue_number: int) -> Paginated[ActivityEvent]:
        if issue_number in self.failing_events:
            return _failing(TransientFetchError("events unavailable", status_code=500))
        return Paginated.from_list(self.events.get(issue_number, []))

    async def get_linked_pull_requests(self, issue_number: int) -> list[LinkedPullRequest]:
        if issue_number in self.failing_linked:
            raise TransientFetchError("timeline unavailable", status_code=500)
        return [LinkedPullRequest(number=number) for number in self.linked.get(issue_number, [])]

    def list_commits(self, pr_number: int) -> Paginated[CommitRecord]:
        if pr_number in self.failing_commits:
            return _failing(TransientFetchError(f"commits of #{pr_number} unavailable", status_code=500))
        return Paginated.from_list(self.commits.get(pr_number, []))

    def list_comments(self, issue_number: int) -> Paginated[Comment]:
        if issue_number in self.failing_comments:
            return _failing(TransientFetchError("comments unavailable", status_code=500))
        return Paginated.from_list(self.comments.get(issue_number, []))

    async def remove_assignees(self, issue_number: int, logins: list[str]) -> None:
        if self.fail_remove:
            raise MutationError("Failed to unassign", status_code=403)
        self.removed.append((issue_number, list(logins)))
        issue = self.issues.get(issue_number)
        if issue:
            issue.assignees = [login for login in issue.assignees if login not in logins]

    async def add_comment(self, issue_number: int, body: str) -> Comment:
        if self.fail_comment:
            raise MutationError("Failed to comment", status_code=403)
        comment = Comment(
            id=len(self.posted) + 1,
            body=body,
            author="sweeper-bot",
            author_type=BOT_AUTHOR_TYPE,
            created_at=NOW,
        )
        self.comments.setdefault(issue_number, []).append(comment)
        self.posted.append((issue_number, body))
        return comment


@pytest.fixture
def tracker() -> FakeTracker:
    """Empty in-memory tracker."""
    return FakeTracker()


@pytest.fixture
def timers() -> TimersConfig:
    """Seven day disqualify window, three day follow-up window."""
    return TimersConfig(disqualify_after=timedelta(days=7), follow_up_after=timedelta(days=3))


@pytest.fixture
def clock():
    """Frozen clock returning NOW."""
    return lambda: NOW
