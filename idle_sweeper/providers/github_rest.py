"""GitHub tracker implementation using PyGithub."""

import asyncio
import re
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

import requests
import structlog
from github import Auth, Github, GithubException  # type: ignore[import-not-found]
from github.Issue import Issue as GHIssue  # type: ignore[import-not-found]
from github.IssueComment import IssueComment as GHComment  # type: ignore[import-not-found]
from github.IssueEvent import IssueEvent as GHIssueEvent  # type: ignore[import-not-found]
from github.PaginatedList import PaginatedList  # type: ignore[import-not-found]
from github.Repository import Repository as GHRepository  # type: ignore[import-not-found]

from idle_sweeper.exceptions import MutationError, TransientFetchError
from idle_sweeper.models.domain import (
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

log = structlog.get_logger(__name__)

T = TypeVar("T")

API_ERRORS = (GithubException, requests.exceptions.RequestException)
"""Failures raised by PyGithub: API errors and transport errors from ``requests``."""


async def _run_sync(func: Callable[[], T]) -> T:
    """Run a synchronous PyGithub call in a thread pool."""
    return await asyncio.to_thread(func)


def _status(error: Exception) -> int | None:
    if isinstance(error, GithubException):
        return error.status
    if isinstance(error, TransientFetchError):
        return error.status_code
    return None


def _utc(value: datetime | None) -> datetime | None:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


class GitHubRestProvider(IssueTracker):
    """GitHub implementation using the PyGithub library."""

    def __init__(
        self,
        token: str,
        owner: str,
        repo: str,
        base_url: str = "https://api.github.com",
        page_size: int = 100,
    ):
        """Initialize GitHub provider.

        Args:
            token: GitHub personal access token or App token
            owner: Repository owner (user or organization)
            repo: Repository name
            base_url: GitHub API base URL (for GitHub Enterprise)
            page_size: Results per page for list endpoints
        """
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.base_url = base_url.rstrip("/")
        self.page_size = page_size
        self._client: Github | None = None
        self._repo: GHRepository | None = None
        self.bot_login: str | None = None
        self._pull_url = re.compile(
            rf"/{re.escape(owner)}/{re.escape(repo)}/pull/(\d+)$",
            re.IGNORECASE,
        )

    async def connect(self) -> None:
        """Initialize GitHub client, resolve the repository and the token's own login.

        Comments by that login are reported as automated, so reminders posted
        with a personal access token are recognized on later runs.
        """

        def _connect() -> tuple[Github, GHRepository, str | None]:
            client = Github(auth=Auth.Token(self.token), base_url=self.base_url, per_page=self.page_size)
            repo = client.get_repo(f"{self.owner}/{self.repo}")
            try:
                login = client.get_user().login
            except GithubException as e:
                # App installation tokens cannot read /user; their comments carry type "Bot".
                log.warning("github_token_login_unavailable", status=e.status)
                login = None
            return client, repo, login

        try:
            self._client, self._repo, self.bot_login = await _run_sync(_connect)
        except API_ERRORS as e:
            raise TransientFetchError(f"Cannot access {self.owner}/{self.repo}", status_code=_status(e)) from e
        log.info(
            "github_connected", base_url=self.base_url, owner=self.owner, repo=self.repo, login=self.bot_login
        )

    async def disconnect(self) -> None:
        """Close GitHub client."""
        if self._client:
            await _run_sync(self._client.close)
            self._client = None
            self._repo = None

    async def _repository(self) -> GHRepository:
        if self._repo is None:
            await self.connect()
        assert self._repo is not None
        return self._repo

    async def _gh_issue(self, issue_number: int) -> GHIssue:
        repo = await self._repository()
        return await _run_sync(lambda: repo.get_issue(issue_number))

    def _paginate(self, make_list: Callable[[], Any], convert: Callable[[Any], T | None], what: str) -> Paginated[T]:
        """Adapt a lazily built PyGithub ``PaginatedList`` to ``Paginated``."""
        source: dict[str, PaginatedList] = {}

        async def fetch_page(page: int, per_page: int) -> list[Any]:
            try:
                if "list" not in source:
                    source["list"] = await make_list()
                return await _run_sync(lambda: source["list"].get_page(page - 1))
            except API_ERRORS as e:
                log.error("github_list_failed", what=what, page=page, error=str(e))
                raise TransientFetchError(f"Failed to list {what}", status_code=_status(e)) from e

        return Paginated(fetch_page, per_page=self.page_size, convert=convert)

    async def get_issues(self, state: str = "open") -> list[Issue]:
        """Retrieve issues via GitHub API, skipping pull requests."""
        log.info("get_issues", state=state)

        gh_state = state if state in ("open", "closed", "all") else "open"
        repo = await self._repository()

        try:
            gh_issues = await _run_sync(lambda: list(repo.get_issues(state=gh_state)))
        except API_ERRORS as e:
            log.error("github_get_issues_failed", error=str(e))
            raise TransientFetchError("Failed to list issues", status_code=_status(e)) from e

        return [self._convert_issue(gh_issue) for gh_issue in gh_issues if gh_issue.pull_request is None]

    async def get_issue(self, issue_number: int) -> Issue:
        """Get single issue by number."""
        log.info("get_issue", number=issue_number)

        try:
            return self._convert_issue(await self._gh_issue(issue_number))
        except API_ERRORS as e:
            log.error("github_get_issue_failed", number=issue_number, error=str(e))
            raise TransientFetchError(f"Failed to get issue #{issue_number}", status_code=_status(e)) from e

    def list_events(self, issue_number: int) -> Paginated[ActivityEvent]:
        async def make_list() -> PaginatedList:
            gh_issue = await self._gh_issue(issue_number)
            return gh_issue.get_events()

        return self._paginate(make_list, self._convert_event, f"events of #{issue_number}")

    async def get_linked_pull_requests(self, issue_number: int) -> list[LinkedPullRequest]:
        """Same-repository pull requests cross-referencing the issue."""
        log.info("get_linked_pull_requests", number=issue_number)

        def _linked(gh_issue: GHIssue) -> list[int]:
            numbers: list[int] = []
            for item in gh_issue.get_timeline():
                if item.event != "cross-referenced" or item.source is None or item.source.issue is None:
                    continue
                source_issue = item.source.issue
                if source_issue.pull_request is None:
                    continue
                match = self._pull_url.search(source_issue.html_url or "")
                if match and int(match.group(1)) not in numbers:
                    numbers.append(int(match.group(1)))
            return numbers

        try:
            gh_issue = await self._gh_issue(issue_number)
            numbers = await _run_sync(lambda: _linked(gh_issue))
        except API_ERRORS as e:
            log.error("github_get_linked_pull_requests_failed", number=issue_number, error=str(e))
            raise TransientFetchError(
                f"Failed to find pull requests linked to #{issue_number}", status_code=_status(e)
            ) from e

        return [LinkedPullRequest(number=number) for number in numbers]

    def list_commits(self, pr_number: int) -> Paginated[CommitRecord]:
        async def make_list() -> PaginatedList:
            repo = await self._repository()
            gh_pull = await _run_sync(lambda: repo.get_pull(pr_number))
            return gh_pull.get_commits()

        return self._paginate(make_list, self._convert_commit, f"commits of pull #{pr_number}")

    def list_comments(self, issue_number: int) -> Paginated[Comment]:
        async def make_list() -> PaginatedList:
            gh_issue = await self._gh_issue(issue_number)
            return gh_issue.get_comments()

        return self._paginate(make_list, self._convert_comment, f"comments of #{issue_number}")

    async def remove_assignees(self, issue_number: int, logins: list[str]) -> None:
        """Unassign logins from an issue."""
        log.info("remove_assignees", number=issue_number, assignees=logins)

        try:
            gh_issue = await self._gh_issue(issue_number)
            await _run_sync(lambda: gh_issue.remove_from_assignees(*logins))
        except (*API_ERRORS, TransientFetchError) as e:
            log.error("github_remove_assignees_failed", number=issue_number, error=str(e))
            raise MutationError(f"Failed to unassign {logins} from #{issue_number}", status_code=_status(e)) from e

    async def add_comment(self, issue_number: int, body: str) -> Comment:
        """Add comment to issue."""
        log.info("add_comment", number=issue_number)

        try:
            gh_issue = await self._gh_issue(issue_number)
            gh_comment = await _run_sync(lambda: gh_issue.create_comment(body))
        except (*API_ERRORS, TransientFetchError) as e:
            log.error("github_add_comment_failed", number=issue_number, error=str(e))
            raise MutationError(f"Failed to comment on #{issue_number}", status_code=_status(e)) from e

        return self._convert_comment(gh_comment)

    def _convert_issue(self, gh_issue: GHIssue) -> Issue:
        assignees: list[str] = []
        for assignee in gh_issue.assignees or []:
            if assignee.login not in assignees:
                assignees.append(assignee.login)

        return Issue(
            id=gh_issue.id,
            number=gh_issue.number,
            title=gh_issue.title,
            state=IssueState(gh_issue.state),
            assignees=assignees,
            created_at=_utc(gh_issue.created_at),
            updated_at=_utc(gh_issue.updated_at),
            url=gh_issue.html_url,
        )

    @staticmethod
    def _convert_event(gh_event: GHIssueEvent) -> ActivityEvent | None:
        if not isinstance(gh_event.id, int) or gh_event.actor is None:
            return None
        return ActivityEvent(
            id=gh_event.id,
            actor=gh_event.actor.login,
            event=gh_event.event,
            created_at=_utc(gh_event.created_at),
            assignee=gh_event.assignee.login if gh_event.assignee else None,
        )

    @staticmethod
    def _convert_commit(gh_commit: Any) -> CommitRecord:
        git_commit = gh_commit.commit
        author = gh_commit.author.login if gh_commit.author else None
        if not author and git_commit.committer:
            author = git_commit.committer.name

        date = git_commit.author.date if git_commit.author else None
        if date is None and git_commit.committer:
            date = git_commit.committer.date

        return CommitRecord(sha=gh_commit.sha, author=author or None, created_at=_utc(date))

    def _convert_comment(self, gh_comment: GHComment) -> Comment:
        user = gh_comment.user
        author = user.login if user else ""
        author_type = user.type if user else "User"
        if self.bot_login and author == self.bot_login:
            author_type = BOT_AUTHOR_TYPE

        return Comment(
            id=gh_comment.id,
            body=gh_comment.body or "",
            author=author,
            author_type=author_type,
            created_at=_utc(gh_comment.created_at),
        )
