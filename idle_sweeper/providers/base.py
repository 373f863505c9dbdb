"""
Abstract tracker interface consumed by the sweep engine.

One ``IssueTracker`` instance is bound to a single repository (owner and
name are provider constructor arguments), and normalizes the platform API
into the domain models of ``idle_sweeper.models.domain``.
"""

from abc import ABC, abstractmethod
from typing import Any

from idle_sweeper.models.domain import (
    ActivityEvent,
    Comment,
    CommitRecord,
    Issue,
    LinkedPullRequest,
)
from idle_sweeper.utils.pagination import Paginated


class IssueTracker(ABC):
    """Abstract base class for hosting platform implementations.

    All methods are async to support non-blocking I/O. Read methods raise
    ``TransientFetchError`` and write methods raise ``MutationError`` when the
    platform request fails; the engine decides which of those are tolerated.

    List methods returning ``Paginated`` are lazy: nothing is requested until
    the result is iterated or collected, and each iteration restarts from the
    first page.
    """

    owner: str
    repo: str

    async def connect(self) -> None:
        """Prepare clients. Default implementation does nothing."""

    async def disconnect(self) -> None:
        """Release clients. Default implementation does nothing."""

    async def __aenter__(self) -> "IssueTracker":
        await self.connect()
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.disconnect()

    @abstractmethod
    async def get_issues(self, state: str = "open") -> list[Issue]:
        """Retrieve issues (pull requests excluded).

        Args:
            state: "open", "closed", or "all".

        Raises:
            TransientFetchError: If the listing fails.
        """

    @abstractmethod
    async def get_issue(self, issue_number: int) -> Issue:
        """Get a single issue by its repository-scoped number.

        Raises:
            TransientFetchError: If the issue cannot be fetched.
        """

    async def get_assigned_issues(self) -> list[Issue]:
        """Open issues with at least one assignee."""
        issues = await self.get_issues(state="open")
        return [issue for issue in issues if issue.assignees]

    @abstractmethod
    def list_events(self, issue_number: int) -> Paginated[ActivityEvent]:
        """Issue events attributed to an actor.

        Malformed records (non-integer ids, missing actor) are dropped.
        """

    @abstractmethod
    async def get_linked_pull_requests(self, issue_number: int) -> list[LinkedPullRequest]:
        """Pull requests in the same repository that reference the issue.

        Raises:
            TransientFetchError: If the lookup fails.
        """

    @abstractmethod
    def list_commits(self, pr_number: int) -> Paginated[CommitRecord]:
        """Commits of a pull request."""

    @abstractmethod
    def list_comments(self, issue_number: int) -> Paginated[Comment]:
        """Comments on an issue, oldest first."""

    @abstractmethod
    async def remove_assignees(self, issue_number: int, logins: list[str]) -> None:
        """Unassign the given logins from an issue.

        Raises:
            MutationError: If the platform rejects the change.
        """

    @abstractmethod
    async def add_comment(self, issue_number: int, body: str) -> Comment:
        """Post a comment on an issue.

        Raises:
            MutationError: If the comment cannot be created.
        """
