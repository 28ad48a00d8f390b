"""
GitHub REST client for project status polling.

Read-only calls against the GitHub REST API: branch list, open pull
requests, latest commit, and file content at a ref. Every response is
validated and normalized into the records in shipgate.lib.types.

A 404 on a file-content read means "file absent" and returns None. Every
other unsuccessful response raises FetchError.
"""

import base64
import binascii
import logging
from typing import Any

import httpx

from shipgate.lib import constants
from shipgate.lib.types import BranchInfo, CommitInfo, Mergeable, PullRequestInfo
from shipgate.lib.validate import ValidationError, validate

logger = logging.getLogger(__name__)

GITHUB_ACCEPT = "application/vnd.github.v3+json"

# GitHub mergeable_state values, upper-cased
MERGEABLE_STATES = {"MERGEABLE", "CLEAN", "UNSTABLE", "HAS_HOOKS"}
CONFLICTING_STATES = {"CONFLICTING", "DIRTY"}


class FetchError(Exception):
    """A required GitHub call did not succeed."""

    def __init__(self, message: str, status_code: int | None = None):
        self.status_code = status_code
        super().__init__(message)


def build_headers(token: str | None) -> dict[str, str]:
    """Request headers, with the bearer credential when one is supplied."""
    headers = {"Accept": GITHUB_ACCEPT}
    if token:
        headers["Authorization"] = f"Bearer {token}"
    return headers


def parse_mergeable(state: str | None) -> Mergeable:
    """Map GitHub's mergeable_state onto MERGEABLE / CONFLICTING / UNKNOWN."""
    if not state:
        return Mergeable.UNKNOWN
    upper = state.upper()
    if upper in MERGEABLE_STATES:
        return Mergeable.MERGEABLE
    if upper in CONFLICTING_STATES:
        return Mergeable.CONFLICTING
    return Mergeable.UNKNOWN


def branches_from_json(data: list[dict]) -> BranchInfo:
    names = [b["name"] for b in data]
    return BranchInfo(
        names=names,
        count=len(names),
        is_healthy=len(names) == constants.EXPECTED_BRANCH_COUNT,
    )


def pull_requests_from_json(data: list[dict]) -> list[PullRequestInfo]:
    prs = []
    for pr in data:
        user = pr.get("user") or {}
        prs.append(PullRequestInfo(
            number=pr["number"],
            title=pr["title"],
            head_ref=pr["head"]["ref"],
            base_ref=pr["base"]["ref"],
            mergeable=parse_mergeable(pr.get("mergeable_state")),
            author=user.get("login", ""),
            updated_at=pr.get("updated_at", ""),
            url=pr["html_url"],
        ))
    return prs


def commit_from_json(data: list[dict]) -> CommitInfo | None:
    if not data:
        return None
    commit = data[0]
    author = commit["commit"].get("author") or {}
    return CommitInfo(
        sha=commit["sha"],
        message=commit["commit"]["message"],
        date=author.get("date", ""),
        author=author.get("name", ""),
    )


def decode_content(data: Any) -> str | None:
    """Decode a contents payload. Directories and empty payloads yield None."""
    if not isinstance(data, dict) or not data.get("content"):
        return None
    # GitHub wraps base64 content at 60 columns
    raw = data["content"].replace("\n", "")
    try:
        return base64.b64decode(raw).decode("utf-8", errors="replace")
    except (binascii.Error, ValueError) as e:
        raise FetchError(f"Invalid base64 content: {e}") from None


class GitHubClient:
    """Async GitHub REST client.

    Use as an async context manager, or pass in an existing httpx.AsyncClient
    (the caller then owns its lifetime).
    """

    def __init__(
        self,
        owner: str = "",
        token: str | None = None,
        api_url: str = constants.DEFAULT_API_URL,
        timeout: float = constants.GH_TIMEOUT_SECONDS,
        http: httpx.AsyncClient | None = None,
    ):
        self.owner = owner
        self._headers = build_headers(token)
        self._owns_http = http is None
        self._http = http or httpx.AsyncClient(base_url=api_url.rstrip("/"), timeout=timeout)

    async def __aenter__(self) -> "GitHubClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    def repo_path(self, repo: str) -> str:
        """Full "owner/name" for a repo id; ids already carrying an owner pass through."""
        if "/" in repo or not self.owner:
            return repo
        return f"{self.owner}/{repo}"

    async def _get(self, url: str, what: str, params: dict | None = None) -> httpx.Response:
        try:
            return await self._http.get(url, params=params, headers=self._headers)
        except httpx.HTTPError as e:
            raise FetchError(f"Failed to fetch {what}: {str(e) or type(e).__name__}") from e

    def _json(self, response: httpx.Response, what: str, schema_name: str) -> Any:
        try:
            data = response.json()
        except ValueError:
            raise FetchError(f"Failed to fetch {what}: invalid JSON", response.status_code) from None
        try:
            validate(data, schema_name)
        except ValidationError as e:
            raise FetchError(f"Failed to fetch {what}: unexpected response {e}", response.status_code) from None
        return data

    @staticmethod
    def _check(response: httpx.Response, what: str) -> None:
        if not response.is_success:
            reason = response.reason_phrase or f"HTTP {response.status_code}"
            raise FetchError(f"Failed to fetch {what}: {reason}", response.status_code)

    async def fetch_branches(self, repo: str) -> BranchInfo:
        """Fetch branches. Healthy = exactly main + one working branch."""
        response = await self._get(
            f"/repos/{self.repo_path(repo)}/branches", "branches", params={"per_page": 100}
        )
        self._check(response, "branches")
        return branches_from_json(self._json(response, "branches", "branches"))

    async def fetch_open_pull_requests(self, repo: str) -> list[PullRequestInfo]:
        """Fetch open PRs. An empty list is a valid result."""
        response = await self._get(
            f"/repos/{self.repo_path(repo)}/pulls", "PRs", params={"state": "open"}
        )
        self._check(response, "PRs")
        return pull_requests_from_json(self._json(response, "PRs", "pulls"))

    async def fetch_latest_commit(self, repo: str, ref: str | None = None) -> CommitInfo | None:
        """Fetch the most recent commit, or None if the branch has no commits."""
        params: dict[str, Any] = {"per_page": 1}
        if ref:
            params["sha"] = ref
        response = await self._get(
            f"/repos/{self.repo_path(repo)}/commits", "commits", params=params
        )
        self._check(response, "commits")
        return commit_from_json(self._json(response, "commits", "commits"))

    async def fetch_file_content(self, repo: str, path: str, ref: str | None = None) -> str | None:
        """Fetch decoded file content at a ref.

        Returns None when the file doesn't exist (404) or the path isn't a file.
        """
        what = f"file {path}"
        params = {"ref": ref} if ref else None
        response = await self._get(
            f"/repos/{self.repo_path(repo)}/contents/{path.lstrip('/')}", what, params=params
        )
        if response.status_code == 404:
            logger.debug(f"{repo}: {path} not found at {ref or 'default branch'}")
            return None
        self._check(response, what)
        return decode_content(self._json(response, what, "contents"))
