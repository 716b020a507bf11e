"""``BlobStore`` backed by a dedicated branch of the repository under test.

Reads go through the raw content host until the branch has been cloned;
after that they come from the working tree, so a run observes its own
writes. Writes land in a temporary clone and are published with one commit
and push.
"""

from __future__ import annotations

import logging
import shutil
import tempfile
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING
from urllib.parse import quote

from covcheck.errors import BaselineFetchError, StoreWriteError
from covcheck.store.base import BlobStore
from covcheck.utils.git import (
    GitHubAPIError,
    build_authenticated_url,
    checkout_branch,
    checkout_orphan_branch,
    clone_repository,
    commit_all,
    configure_identity,
    list_branches,
    push_head,
)

if TYPE_CHECKING:
    from types import TracebackType

    from covcheck.config import CheckerConfig
    from covcheck.utils.git import GitHubAPI

logger = logging.getLogger(__name__)

_CLONE_PREFIX = "covcheck-"


def _validate_key(key: str) -> PurePosixPath:
    path = PurePosixPath(key)
    if not key or path.is_absolute() or ".." in path.parts or path.parts[:1] == (".git",):
        raise StoreWriteError(f"Invalid storage key: {key!r}")
    return path


class GitBranchStore(BlobStore):
    """Key/value store kept in a git branch of a GitHub repository."""

    def __init__(
        self,
        api: GitHubAPI,
        *,
        repository: str,
        branch: str,
        remote_url: str,
        secrets: tuple[str, ...] = (),
        commit_name: str = "Coverage Checker",
        commit_email: str = "coverage-checker@users.noreply.github.com",
        commit_message: str = "Update coverage info",
        workdir: Path | None = None,
    ) -> None:
        """Initialize the store.

        Args:
            api: Client used for raw reads before the branch is cloned.
            repository: Repository in ``owner/name`` form.
            branch: Storage branch name.
            remote_url: Authenticated clone/push URL.
            secrets: Values redacted from git error messages.
            commit_name: Commit author name.
            commit_email: Commit author email.
            commit_message: Message of the storage commit.
            workdir: Existing directory to clone into (default: a new temporary directory).
        """
        self._api = api
        self._repository = repository
        self._branch = branch
        self._remote_url = remote_url
        self._secrets = secrets
        self._commit_name = commit_name
        self._commit_email = commit_email
        self._commit_message = commit_message
        self._workdir = workdir
        self._owns_workdir = workdir is None
        self._checkout: Path | None = None

    @classmethod
    def from_config(cls, config: CheckerConfig, api: GitHubAPI) -> GitBranchStore:
        """Build a store for the configured repository and storage branch."""
        github = config.github
        return cls(
            api,
            repository=github.repository,
            branch=config.store.branch,
            remote_url=build_authenticated_url(
                github.server_url, github.actor, github.token, github.repository
            ),
            secrets=(github.token, quote(github.token, safe="")),
            commit_name=config.store.commit_name,
            commit_email=config.store.commit_email,
            commit_message=config.store.commit_message,
        )

    @property
    def checkout_path(self) -> Path | None:
        """Working tree of the cloned branch, or None before ``prepare``."""
        return self._checkout

    def prepare(self) -> None:
        """Clone the repository and check out the storage branch, creating it if needed."""
        self._ensure_checkout()

    def _ensure_checkout(self) -> Path:
        """Return the working tree of the storage branch, cloning it on first use.

        Raises:
            StoreWriteError: If a git command fails.
        """
        if self._checkout is not None:
            return self._checkout

        if self._workdir is None:
            self._workdir = Path(tempfile.mkdtemp(prefix=_CLONE_PREFIX))
        checkout = self._workdir / "repo"

        logger.info("Cloning repository in %s", checkout)
        clone_repository(self._remote_url, checkout, secrets=self._secrets)

        logger.info("Retrieving existing branches")
        if self._branch in list_branches(checkout):
            logger.info("Coverage branch exists. Checking it out.")
            checkout_branch(checkout, self._branch)
        else:
            logger.info("Coverage branch does not exist. Creating it.")
            checkout_orphan_branch(checkout, self._branch)

        self._checkout = checkout
        return checkout

    def get(self, key: str) -> bytes | None:
        if self._checkout is not None:
            path = self._checkout / _validate_key(key)
            if not path.is_file():
                return None
            try:
                return path.read_bytes()
            except OSError as exc:
                raise BaselineFetchError(f"Failed to read {key}: {exc}") from exc

        try:
            return self._api.get_raw_file(self._repository, self._branch, key)
        except GitHubAPIError as exc:
            raise BaselineFetchError(f"Failed to fetch {key} from {self._branch}: {exc}") from exc

    def put(self, key: str, data: bytes) -> None:
        target = self._ensure_checkout() / _validate_key(key)
        logger.info("Writing %s (%s)", key, target)
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_bytes(data)
        except OSError as exc:
            raise StoreWriteError(f"Failed to write {key}: {exc}") from exc

    def commit_and_push(self) -> None:
        checkout = self._ensure_checkout()
        logger.info("Pushing to coverage branch")
        configure_identity(checkout, self._commit_name, self._commit_email)
        commit_all(checkout, self._commit_message)
        push_head(checkout, self._remote_url, self._branch, secrets=self._secrets)

    def cleanup(self) -> None:
        """Remove the temporary clone, if this store created one."""
        if self._owns_workdir and self._workdir is not None:
            shutil.rmtree(self._workdir, ignore_errors=True)
            self._workdir = None
        self._checkout = None

    def __enter__(self) -> GitBranchStore:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.cleanup()
