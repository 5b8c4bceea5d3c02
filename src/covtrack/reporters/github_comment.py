"""GitHub comment reporter for posting coverage reports to pull requests.

The comment carries a hidden marker so later runs update it in place
instead of adding a new comment per push.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covtrack.utils.git import (
    GitHubAPI,
    GitHubAPIError,
    compute_comment_marker,
    get_pr_info_from_env,
)

if TYPE_CHECKING:
    from covtrack.utils.git import GitHubPRInfo

logger = logging.getLogger(__name__)

DEFAULT_MARKER_PREFIX = "covtrack:coverage"


class GitHubCommentReporter:
    """Reporter that upserts the coverage comment on a pull request."""

    def __init__(
        self,
        github_token: str | None = None,
        marker_prefix: str = DEFAULT_MARKER_PREFIX,
        api: GitHubAPI | None = None,
    ) -> None:
        """Initialize the GitHub comment reporter.

        Args:
            github_token: GitHub token. Falls back to GITHUB_TOKEN.
            marker_prefix: Prefix of the hidden marker identifying the comment.
            api: Preconfigured client, mainly for tests.

        Raises:
            GitHubAPIError: If no token is available.
        """
        self._api = api or GitHubAPI(token=github_token)
        self._marker = compute_comment_marker(marker_prefix)

    @property
    def marker(self) -> str:
        return self._marker

    def post_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, str]:
        """Create or update the coverage comment.

        Returns:
            Dict with status and comment URL.

        Raises:
            GitHubAPIError: If posting the comment fails.
        """
        logger.info(
            "Posting coverage report to PR #%d in %s/%s",
            pr_info.pr_number,
            pr_info.owner,
            pr_info.repo,
        )

        result = self._api.upsert_comment(pr_info, f"{self._marker}\n{body}", self._marker)

        logger.info("Successfully posted comment: %s", result.get("html_url"))
        return {
            "status": "success",
            "comment_url": result.get("html_url", ""),
        }


def post_comment_from_env(
    body: str,
    *,
    github_token: str | None = None,
    marker_prefix: str = DEFAULT_MARKER_PREFIX,
) -> dict[str, str] | None:
    """Post ``body`` to the pull request of the current GitHub Actions run.

    Returns:
        The post result, or None when not running for a pull request.

    Raises:
        GitHubAPIError: If the token is missing or the API call fails.
    """
    pr_info = get_pr_info_from_env()
    if not pr_info:
        logger.info("Not running in a GitHub Actions PR context, skipping GitHub comment")
        return None

    reporter = GitHubCommentReporter(github_token=github_token, marker_prefix=marker_prefix)
    return reporter.post_comment(pr_info, body)


__all__ = [
    "DEFAULT_MARKER_PREFIX",
    "GitHubAPIError",
    "GitHubCommentReporter",
    "post_comment_from_env",
]
