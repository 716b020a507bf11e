"""GitHub comment reporter for posting coverage comparisons to PRs.

Each pull request carries at most one managed comment: the comment authored
by the automation login whose body starts with the configured header. Every
check run rewrites it in place.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covcheck.errors import NotificationError
from covcheck.utils.git import GitHubAPI, GitHubAPIError

if TYPE_CHECKING:
    from covcheck.config import CheckerConfig
    from covcheck.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)


class GitHubCommentReporter:
    """Posts the combined coverage report as the managed PR comment."""

    def __init__(
        self,
        api: GitHubAPI,
        *,
        header: str = "Issued by Coverage Checker:",
        bot_login: str = "github-actions[bot]",
    ) -> None:
        """Initialize the reporter.

        Args:
            api: GitHub API client.
            header: Marker the managed comment body starts with.
            bot_login: Login that authors the managed comment.
        """
        self._api = api
        self._header = header
        self._bot_login = bot_login

    @classmethod
    def from_config(cls, config: CheckerConfig, api: GitHubAPI) -> GitHubCommentReporter:
        """Build a reporter with the configured header and bot login."""
        return cls(api, header=config.notify.header, bot_login=config.github.bot_login)

    def format_body(self, message: str) -> str:
        """Return the comment body for ``message``."""
        return f"{self._header}\n\n{message}"

    def post_report(self, pr_info: GitHubPRInfo, message: str) -> dict[str, str]:
        """Create or update the managed comment with ``message``.

        Returns:
            Dict with status and comment URL.

        Raises:
            NotificationError: If listing, creating or updating the comment fails.
        """
        logger.info(
            "Posting coverage report to PR #%d in %s/%s",
            pr_info.pr_number,
            pr_info.owner,
            pr_info.repo,
        )
        try:
            result = self._api.upsert_comment(
                pr_info,
                self.format_body(message),
                header=self._header,
                author_login=self._bot_login,
            )
        except GitHubAPIError as exc:
            raise NotificationError(f"Failed to post coverage comment: {exc}") from exc

        comment_url = str(result.get("html_url", ""))
        logger.info("Successfully posted comment: %s", comment_url)
        return {"status": "success", "comment_url": comment_url}
