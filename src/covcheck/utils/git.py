"""Git and GitHub API utilities for covcheck.

This module wraps the two external collaborators of a run: the ``git``
executable (clone, checkout, commit and push of the storage branch) and the
GitHub HTTP API (raw file reads and pull-request comments).
"""

from __future__ import annotations

import logging
import os
import shutil
import subprocess
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import quote

import requests

from covcheck.errors import CoverageCheckError, StoreWriteError

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

logger = logging.getLogger(__name__)

_HTTP_NOT_FOUND = 404
_HTTP_ERROR_MIN = 400
_REQUEST_TIMEOUT = 30
_COMMENTS_PER_PAGE = 100

# Expected number of parts when splitting "owner/repo"
_OWNER_REPO_PARTS = 2

_REDACTED = "***"


def _git_executable() -> str:
    """Resolve the full path to the ``git`` executable."""
    return shutil.which("git") or "git"


def redact(text: str, secrets: Iterable[str]) -> str:
    """Replace every non-empty secret in ``text``."""
    for secret in secrets:
        if secret:
            text = text.replace(secret, _REDACTED)
    return text


@dataclass(frozen=True)
class GitHubPRInfo:
    """Information about a GitHub pull request."""

    owner: str
    """Repository owner (username or organization)."""

    repo: str
    """Repository name."""

    pr_number: int
    """Pull request number."""


class GitHubAPIError(CoverageCheckError):
    """Exception raised when GitHub API operations fail."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class GitHubAPI:
    """Client for the GitHub REST API and raw content host.

    Handles authentication, raw file reads from a branch, and managed
    comment upserts on pull requests.
    """

    def __init__(
        self,
        token: str,
        *,
        api_url: str = "https://api.github.com",
        raw_url: str = "https://raw.githubusercontent.com",
    ) -> None:
        """Initialize the GitHub API client.

        Args:
            token: GitHub token used for every request.
            api_url: REST API base URL.
            raw_url: Raw content base URL.

        Raises:
            GitHubAPIError: If no token is given.
        """
        if not token:
            raise GitHubAPIError("GitHub token required. Set GITHUB_TOKEN or pass --token.")
        self._token = token
        self._api_url = api_url.rstrip("/")
        self._raw_url = raw_url.rstrip("/")
        self._api_headers = {
            "Authorization": f"Bearer {token}",
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
        }
        self._raw_headers = {
            "Authorization": f"token {token}",
            "Accept": "application/vnd.github.v3.raw",
        }

    # ── Raw content ──────────────────────────────────────────────────

    def get_raw_file(self, repository: str, branch: str, path: str) -> bytes | None:
        """Fetch a file from a branch.

        Args:
            repository: Repository in ``owner/name`` form.
            branch: Branch to read from.
            path: File path inside the branch.

        Returns:
            File content, or None if the file (or branch) does not exist.

        Raises:
            GitHubAPIError: On any failure other than a 404.
        """
        url = f"{self._raw_url}/{repository}/{quote(branch)}/{quote(path)}"
        response = self._send("GET", url, headers=self._raw_headers)
        if response.status_code == _HTTP_NOT_FOUND:
            logger.debug("No %s on branch %s", path, branch)
            return None
        self._check(response, "GET", url)
        return response.content

    # ── Comments ─────────────────────────────────────────────────────

    def list_comments(self, pr_info: GitHubPRInfo) -> list[dict[str, Any]]:
        """List all comments of a pull request, oldest first.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url: str | None = (
            f"{self._api_url}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )
        params: dict[str, Any] | None = {"per_page": _COMMENTS_PER_PAGE}
        comments: list[dict[str, Any]] = []
        while url:
            response = self._send("GET", url, headers=self._api_headers, params=params)
            self._check(response, "GET", url)
            page = self._json(response, "GET", url)
            if not isinstance(page, list):
                raise GitHubAPIError(f"GET {url} returned a non-list payload")
            comments.extend(page)
            url = response.links.get("next", {}).get("url")
            params = None
        return comments

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Create a new comment on a pull request.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = (
            f"{self._api_url}/repos/{pr_info.owner}/{pr_info.repo}/"
            f"issues/{pr_info.pr_number}/comments"
        )
        result: dict[str, Any] = self._post_json("POST", url, {"body": body})
        return result

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Update an existing comment on a pull request.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        url = f"{self._api_url}/repos/{pr_info.owner}/{pr_info.repo}/issues/comments/{comment_id}"
        result: dict[str, Any] = self._post_json("PATCH", url, {"body": body})
        return result

    def find_managed_comment(
        self, pr_info: GitHubPRInfo, header: str, author_login: str
    ) -> dict[str, Any] | None:
        """Return the most recent comment by ``author_login`` whose body starts with ``header``.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        for comment in reversed(self.list_comments(pr_info)):
            login = (comment.get("user") or {}).get("login")
            if login == author_login and str(comment.get("body", "")).startswith(header):
                return comment
        return None

    def upsert_comment(
        self, pr_info: GitHubPRInfo, body: str, *, header: str, author_login: str
    ) -> dict[str, Any]:
        """Create or update the managed comment of a pull request.

        If a managed comment already exists, it is updated in place;
        otherwise a new one is created, so a pull request carries at most
        one managed comment.

        Args:
            pr_info: Pull request information.
            body: Comment body. It is prefixed with ``header`` if it does not start with it.
            header: Marker that identifies the managed comment.
            author_login: Login of the identity that owns the managed comment.

        Raises:
            GitHubAPIError: If the API request fails.
        """
        if not body.startswith(header):
            body = f"{header}\n\n{body}"

        existing = self.find_managed_comment(pr_info, header, author_login)
        if existing:
            logger.info("Updating existing comment %d", existing["id"])
            return self.update_comment(pr_info, int(existing["id"]), body)

        logger.info("Creating new comment on PR #%d", pr_info.pr_number)
        return self.create_comment(pr_info, body)

    # ── Transport ────────────────────────────────────────────────────

    def _send(self, method: str, url: str, **kwargs: Any) -> requests.Response:
        try:
            return requests.request(method, url, timeout=_REQUEST_TIMEOUT, **kwargs)
        except requests.RequestException as exc:
            raise GitHubAPIError(f"{method} {url} failed: {exc}") from exc

    def _check(self, response: requests.Response, method: str, url: str) -> None:
        if response.status_code >= _HTTP_ERROR_MIN:
            raise GitHubAPIError(
                f"{method} {url} failed with HTTP {response.status_code}",
                status_code=response.status_code,
            )

    def _json(self, response: requests.Response, method: str, url: str) -> Any:
        try:
            return response.json()
        except ValueError as exc:
            raise GitHubAPIError(f"{method} {url} returned invalid JSON: {exc}") from exc

    def _post_json(self, method: str, url: str, data: dict[str, Any]) -> Any:
        response = self._send(method, url, headers=self._api_headers, json=data)
        self._check(response, method, url)
        return self._json(response, method, url)


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Get PR information from GitHub Actions environment variables.

    Returns:
        GitHubPRInfo if running in a PR context, None otherwise.
    """
    github_repository = os.environ.get("GITHUB_REPOSITORY")
    github_event_name = os.environ.get("GITHUB_EVENT_NAME")
    github_ref = os.environ.get("GITHUB_REF")

    if not github_repository or github_event_name not in {"pull_request", "pull_request_target"}:
        return None

    parts = github_repository.split("/")
    if len(parts) != _OWNER_REPO_PARTS:
        return None

    owner, repo = parts

    # GITHUB_REF is refs/pull/<number>/merge for pull request events
    if not github_ref or not github_ref.startswith("refs/pull/"):
        return None

    try:
        pr_number = int(github_ref.split("/")[2])
    except (IndexError, ValueError):
        return None

    return GitHubPRInfo(owner=owner, repo=repo, pr_number=pr_number)


def build_authenticated_url(server_url: str, actor: str, token: str, repository: str) -> str:
    """Return an HTTPS remote URL carrying ``actor:token`` credentials."""
    scheme, _, host = server_url.rstrip("/").partition("://")
    return f"{scheme}://{quote(actor, safe='')}:{quote(token, safe='')}@{host}/{repository}.git"


# ── Git commands ─────────────────────────────────────────────────────


def run_git(args: list[str], *, cwd: Path | None = None, secrets: Iterable[str] = ()) -> str:
    """Run a git command and return its stripped stdout.

    Args:
        args: Arguments after ``git``.
        cwd: Working directory.
        secrets: Values redacted from error messages.

    Raises:
        StoreWriteError: If git cannot be started or exits non-zero.
    """
    secrets = tuple(secrets)
    command = [_git_executable(), *args]
    logger.debug("Running: git %s", redact(" ".join(args), secrets))
    try:
        result = subprocess.run(
            command,
            cwd=cwd,
            capture_output=True,
            text=True,
            check=True,
        )
    except subprocess.CalledProcessError as exc:
        # the chained exception would carry the unredacted command line
        stderr = redact((exc.stderr or "").strip(), secrets)
        msg = f"git {redact(' '.join(args), secrets)} failed (exit {exc.returncode}): {stderr}"
        raise StoreWriteError(msg) from None
    except OSError as exc:
        raise StoreWriteError(f"Could not run git: {exc}") from exc
    return result.stdout.strip()


def clone_repository(url: str, destination: Path, *, secrets: Iterable[str] = ()) -> None:
    """Clone ``url`` into ``destination``.

    Raises:
        StoreWriteError: If the clone fails.
    """
    run_git(["clone", url, str(destination)], secrets=secrets)


def list_branches(repo_path: Path) -> list[str]:
    """List local and remote branch names, with the ``remotes/origin/`` prefix removed."""
    output = run_git(["branch", "-a"], cwd=repo_path)
    branches: list[str] = []
    for raw in output.splitlines():
        name = raw.strip().lstrip("* ").strip()
        if not name or "->" in name:
            continue
        name = name.removeprefix("remotes/origin/")
        if name not in branches:
            branches.append(name)
    return branches


def checkout_branch(repo_path: Path, branch: str) -> None:
    """Check out an existing branch and pull its latest state."""
    run_git(["checkout", branch], cwd=repo_path)
    run_git(["pull"], cwd=repo_path)


def checkout_orphan_branch(repo_path: Path, branch: str) -> None:
    """Create ``branch`` with no history and an empty working tree."""
    run_git(["checkout", "--orphan", branch], cwd=repo_path)
    run_git(["rm", "-r", "-f", "-q", "--ignore-unmatch", "."], cwd=repo_path)
    run_git(["clean", "-f", "-d", "-x", "-q"], cwd=repo_path)


def configure_identity(repo_path: Path, name: str, email: str) -> None:
    """Set the local commit identity of a repository."""
    run_git(["config", "--local", "user.email", email], cwd=repo_path)
    run_git(["config", "--local", "user.name", name], cwd=repo_path)


def commit_all(repo_path: Path, message: str) -> None:
    """Stage every change and commit, allowing an empty commit."""
    run_git(["add", "."], cwd=repo_path)
    run_git(["commit", "-m", message, "--allow-empty"], cwd=repo_path)


def push_head(repo_path: Path, url: str, branch: str, *, secrets: Iterable[str] = ()) -> None:
    """Push ``HEAD`` to ``branch`` on the remote at ``url``."""
    run_git(["push", url, f"HEAD:refs/heads/{branch}"], cwd=repo_path, secrets=secrets)
    logger.info("Pushed %s", branch)
