"""Gitea tracker implementation using direct REST API calls."""

from collections.abc import Callable
from datetime import datetime
from typing import Any

import httpx
import structlog

from idle_sweeper.exceptions import MutationError, TransientFetchError
from idle_sweeper.models.domain import (
    ASSIGNED_EVENT,
    BOT_AUTHOR_TYPE,
    UNASSIGNED_EVENT,
    ActivityEvent,
    Comment,
    CommitRecord,
    Issue,
    IssueState,
    LinkedPullRequest,
)
from idle_sweeper.providers.base import IssueTracker
from idle_sweeper.utils.connection_pool import HTTPConnectionPool, get_pool
from idle_sweeper.utils.pagination import Paginated
from idle_sweeper.utils.retry import async_retry

log = structlog.get_logger(__name__)


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


def _status(error: Exception) -> int | None:
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    if isinstance(error, TransientFetchError):
        return error.status_code
    return None


def _login(user: dict[str, Any] | None) -> str | None:
    if not user:
        return None
    return user.get("login") or user.get("username")


class GiteaRestProvider(IssueTracker):
    """Gitea implementation using direct REST API calls.

    Gitea exposes assignment changes and pull request references through the
    issue timeline, and has no notion of bot accounts. Comments written by the
    login owning the API token are therefore reported as automated.
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        owner: str,
        repo: str,
        page_size: int = 50,
    ):
        """Initialize Gitea provider.

        Args:
            base_url: Gitea base URL (e.g., http://gitea.example.com)
            token: API token
            owner: Repository owner
            repo: Repository name
            page_size: Results per page (Gitea caps this at 50 by default)
        """
        self.base_url = base_url.rstrip("/")
        self.api_base = f"{self.base_url}/api/v1"
        self.token = token.strip() if token else token
        self.owner = owner
        self.repo = repo
        self.page_size = page_size
        self.bot_login: str | None = None
        self._pool: HTTPConnectionPool | None = None

    @property
    def _repo_path(self) -> str:
        return f"/repos/{self.owner}/{self.repo}"

    async def connect(self) -> None:
        """Initialize connection pool and resolve the token's own login."""
        self._pool = await get_pool(
            name=f"gitea-{self.base_url}",
            base_url=self.api_base,
            headers={
                "Authorization": f"token {self.token}",
                "Content-Type": "application/json",
            },
        )
        user = await self._request_json("GET", "/user")
        self.bot_login = _login(user)
        log.info("gitea_connected", base_url=self.base_url, owner=self.owner, repo=self.repo, login=self.bot_login)

    async def disconnect(self) -> None:
        """Clear pool reference (pool manager handles actual cleanup)."""
        self._pool = None

    @async_retry(max_attempts=3, backoff_factor=2.0, exceptions=(httpx.TransportError,))
    async def _send(self, method: str, path: str, **kwargs: Any) -> httpx.Response:
        if self._pool is None:
            await self.connect()
        assert self._pool is not None
        response = await self._pool.request(method, path, **kwargs)
        response.raise_for_status()
        return response

    async def _request_json(self, method: str, path: str, **kwargs: Any) -> Any:
        """Send a read request, translating HTTP failures to ``TransientFetchError``."""
        try:
            response = await self._send(method, path, **kwargs)
        except httpx.HTTPStatusError as e:
            log.error("gitea_request_failed", method=method, path=path, status=e.response.status_code)
            raise TransientFetchError(f"{method} {path} failed", status_code=e.response.status_code) from e
        except httpx.HTTPError as e:
            log.error("gitea_request_failed", method=method, path=path, error=str(e))
            raise TransientFetchError(f"{method} {path} failed: {e}") from e
        return response.json()

    def _paginate(
        self,
        path: str,
        convert: Callable[[dict[str, Any]], Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Paginated[Any]:
        async def fetch_page(page: int, per_page: int) -> list[dict[str, Any]]:
            data = await self._request_json(
                "GET",
                path,
                params={**(params or {}), "page": page, "limit": per_page},
            )
            return data or []

        return Paginated(fetch_page, per_page=self.page_size, convert=convert)

    async def get_issues(self, state: str = "open") -> list[Issue]:
        """Retrieve issues via REST API, skipping pull requests."""
        log.info("get_issues", state=state)
        paginated = self._paginate(f"{self._repo_path}/issues", self._parse_issue, {"state": state, "type": "issues"})
        return await paginated.collect()

    async def get_issue(self, issue_number: int) -> Issue:
        """Get single issue by number."""
        log.info("get_issue", issue_number=issue_number)
        return self._parse_issue(await self._request_json("GET", f"{self._repo_path}/issues/{issue_number}"))

    def list_events(self, issue_number: int) -> Paginated[ActivityEvent]:
        return self._paginate(f"{self._repo_path}/issues/{issue_number}/timeline", self._parse_timeline_event)

    async def get_linked_pull_requests(self, issue_number: int) -> list[LinkedPullRequest]:
        """Pull requests of this repository referencing the issue (``pull_ref`` timeline entries)."""
        log.info("get_linked_pull_requests", issue_number=issue_number)

        full_name = f"{self.owner}/{self.repo}".lower()
        numbers: list[int] = []
        timeline = self._paginate(f"{self._repo_path}/issues/{issue_number}/timeline")
        async for item in timeline:
            ref_issue = item.get("ref_issue")
            if item.get("type") != "pull_ref" or not ref_issue or ref_issue.get("pull_request") is None:
                continue
            repository = (ref_issue.get("repository") or {}).get("full_name")
            if repository and repository.lower() != full_name:
                continue
            if ref_issue["number"] not in numbers:
                numbers.append(ref_issue["number"])

        return [LinkedPullRequest(number=number) for number in numbers]

    def list_commits(self, pr_number: int) -> Paginated[CommitRecord]:
        return self._paginate(f"{self._repo_path}/pulls/{pr_number}/commits", self._parse_commit)

    def list_comments(self, issue_number: int) -> Paginated[Comment]:
        # The issue comments endpoint is not paginated; it returns everything on the first page.
        path = f"{self._repo_path}/issues/{issue_number}/comments"

        async def fetch_page(page: int, per_page: int) -> list[dict[str, Any]]:
            if page > 1:
                return []
            return await self._request_json("GET", path) or []

        return Paginated(fetch_page, per_page=self.page_size, convert=self._parse_comment)

    async def remove_assignees(self, issue_number: int, logins: list[str]) -> None:
        """Unassign logins by rewriting the issue's assignee list."""
        log.info("remove_assignees", issue_number=issue_number, assignees=logins)

        try:
            issue = await self.get_issue(issue_number)
        except TransientFetchError as e:
            raise MutationError(f"Cannot read assignees of #{issue_number}", status_code=e.status_code) from e

        remaining = [login for login in issue.assignees if login not in logins]
        try:
            await self._send("PATCH", f"{self._repo_path}/issues/{issue_number}", json={"assignees": remaining})
        except (httpx.HTTPError, TransientFetchError) as e:
            status = _status(e)
            log.error("gitea_remove_assignees_failed", issue_number=issue_number, error=str(e))
            raise MutationError(f"Failed to unassign {logins} from #{issue_number}", status_code=status) from e

    async def add_comment(self, issue_number: int, body: str) -> Comment:
        """Add comment to issue."""
        log.info("add_comment", issue_number=issue_number)

        try:
            response = await self._send(
                "POST",
                f"{self._repo_path}/issues/{issue_number}/comments",
                json={"body": body},
            )
        except (httpx.HTTPError, TransientFetchError) as e:
            status = _status(e)
            log.error("gitea_add_comment_failed", issue_number=issue_number, error=str(e))
            raise MutationError(f"Failed to comment on #{issue_number}", status_code=status) from e

        return self._parse_comment(response.json())

    def _parse_issue(self, data: dict[str, Any]) -> Issue:
        assignees: list[str] = []
        for user in data.get("assignees") or []:
            login = _login(user)
            if login and login not in assignees:
                assignees.append(login)

        return Issue(
            id=data["id"],
            number=data["number"],
            title=data.get("title", ""),
            state=IssueState(data["state"]),
            assignees=assignees,
            created_at=_parse_datetime(data["created_at"]),
            updated_at=_parse_datetime(data["updated_at"]),
            url=data.get("html_url", ""),
        )

    @staticmethod
    def _parse_timeline_event(data: dict[str, Any]) -> ActivityEvent | None:
        actor = _login(data.get("user"))
        if not isinstance(data.get("id"), int) or not actor or not data.get("created_at"):
            return None

        kind = data.get("type", "")
        if kind == "assignees":
            kind = UNASSIGNED_EVENT if data.get("removed_assignee") else ASSIGNED_EVENT

        return ActivityEvent(
            id=data["id"],
            actor=actor,
            event=kind,
            created_at=_parse_datetime(data["created_at"]),
            assignee=_login(data.get("assignee")),
        )

    @staticmethod
    def _parse_commit(data: dict[str, Any]) -> CommitRecord:
        git_commit = data.get("commit") or {}
        git_author = git_commit.get("author") or {}
        git_committer = git_commit.get("committer") or {}

        return CommitRecord(
            sha=data.get("sha", ""),
            author=_login(data.get("author")) or git_committer.get("name") or None,
            created_at=_parse_datetime(git_author.get("date") or git_committer.get("date")),
        )

    def _parse_comment(self, data: dict[str, Any]) -> Comment:
        author = _login(data.get("user")) or ""
        return Comment(
            id=data["id"],
            body=data.get("body", ""),
            author=author,
            author_type=BOT_AUTHOR_TYPE if self.bot_login and author == self.bot_login else "User",
            created_at=_parse_datetime(data["created_at"]),
        )
