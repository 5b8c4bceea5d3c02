"""GitHub API utilities for posting coverage comments.

Only the pull request comment endpoints are wrapped; everything else a CI
step needs is read from the GitHub Actions environment.
"""

from __future__ import annotations

import hashlib
import logging
import os
import re
from dataclasses import dataclass
from typing import Any

import requests

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"
_TOKEN_ENV = "GITHUB_TOKEN"
_API_URL_ENV = "GITHUB_API_URL"
_REQUEST_TIMEOUT = 30
_COMMENTS_PER_PAGE = 100

_PR_EVENTS = frozenset({"pull_request", "pull_request_target"})
_REPOSITORY_RE = re.compile(r"^(?P<owner>[^/]+)/(?P<repo>[^/]+)$")
_PR_REF_RE = re.compile(r"^refs/pull/(?P<number>\d+)/")


@dataclass
class GitHubPRInfo:
    """A pull request addressed by repository and number."""

    owner: str
    repo: str
    pr_number: int


class GitHubAPIError(Exception):
    """A GitHub request failed or could not be made."""


class GitHubAPI:
    """Client for the GitHub issue comment API.

    Pull request comments are issue comments, so the ``issues`` endpoints are used.
    """

    def __init__(self, token: str | None = None, api_base: str | None = None) -> None:
        """Set up authentication and the API root.

        Args:
            token: GitHub token. Falls back to the GITHUB_TOKEN environment variable.
            api_base: API root. Falls back to GITHUB_API_URL, then api.github.com.

        Raises:
            GitHubAPIError: When neither ``token`` nor GITHUB_TOKEN is set.
        """
        token = token or os.environ.get(_TOKEN_ENV)
        if not token:
            raise GitHubAPIError(
                f"GitHub token required: pass --token or set {_TOKEN_ENV} in the environment"
            )

        self._api_base = (api_base or os.environ.get(_API_URL_ENV) or GITHUB_API_BASE).rstrip("/")
        self._session_headers = {
            "Accept": "application/vnd.github+json",
            "Authorization": f"Bearer {token}",
            "X-GitHub-Api-Version": "2022-11-28",
        }

    def _repo_url(self, pr_info: GitHubPRInfo) -> str:
        return f"{self._api_base}/repos/{pr_info.owner}/{pr_info.repo}"

    def _comments_url(self, pr_info: GitHubPRInfo) -> str:
        return f"{self._repo_url(pr_info)}/issues/{pr_info.pr_number}/comments"

    def create_comment(self, pr_info: GitHubPRInfo, body: str) -> dict[str, Any]:
        """Add a comment to the pull request."""
        created: dict[str, Any] = self._request("POST", self._comments_url(pr_info), body=body)
        return created

    def update_comment(self, pr_info: GitHubPRInfo, comment_id: int, body: str) -> dict[str, Any]:
        """Replace the body of comment ``comment_id``."""
        url = f"{self._repo_url(pr_info)}/issues/comments/{comment_id}"
        updated: dict[str, Any] = self._request("PATCH", url, body=body)
        return updated

    def find_comment_by_marker(self, pr_info: GitHubPRInfo, marker: str) -> dict[str, Any] | None:
        """Return the first comment whose body contains ``marker``, walking every page."""
        page = 1
        while True:
            url = f"{self._comments_url(pr_info)}?per_page={_COMMENTS_PER_PAGE}&page={page}"
            batch: list[dict[str, Any]] = self._request("GET", url)

            match = next((c for c in batch if marker in (c.get("body") or "")), None)
            if match is not None:
                return match
            if len(batch) < _COMMENTS_PER_PAGE:
                return None
            page += 1

    def upsert_comment(self, pr_info: GitHubPRInfo, body: str, marker: str) -> dict[str, Any]:
        """Update the comment carrying ``marker``, or create it.

        Args:
            pr_info: Target pull request.
            body: Markdown body. The marker is prepended when missing.
            marker: Hidden marker identifying the comment across runs.

        Returns:
            The created or updated comment as returned by GitHub.

        Raises:
            GitHubAPIError: If any request fails.
        """
        if marker not in body:
            logger.warning("Comment body lacks marker %s; prepending it", marker)
            body = f"{marker}\n{body}"

        existing = self.find_comment_by_marker(pr_info, marker)
        if existing is None:
            logger.info("Creating coverage comment on PR #%d", pr_info.pr_number)
            return self.create_comment(pr_info, body)

        logger.info("Updating coverage comment %d on PR #%d", existing["id"], pr_info.pr_number)
        return self.update_comment(pr_info, existing["id"], body)

    def _request(self, method: str, url: str, *, body: str | None = None) -> Any:
        payload = None if body is None else {"body": body}
        logger.debug("%s %s", method, url)
        try:
            response = requests.request(
                method,
                url,
                json=payload,
                headers=self._session_headers,
                timeout=_REQUEST_TIMEOUT,
            )
            response.raise_for_status()
            return response.json()
        except requests.RequestException as exc:
            raise GitHubAPIError(f"{method} request failed: {exc}") from exc


def get_pr_info_from_env() -> GitHubPRInfo | None:
    """Describe the pull request of the current GitHub Actions run.

    Returns:
        The pull request for ``pull_request`` and ``pull_request_target``
        events, None for any other run.
    """
    if os.environ.get("GITHUB_EVENT_NAME") not in _PR_EVENTS:
        return None

    repository = _REPOSITORY_RE.match(os.environ.get("GITHUB_REPOSITORY", ""))
    ref = _PR_REF_RE.match(os.environ.get("GITHUB_REF", ""))
    if repository is None or ref is None:
        return None

    return GitHubPRInfo(
        owner=repository["owner"],
        repo=repository["repo"],
        pr_number=int(ref["number"]),
    )


def compute_comment_marker(prefix: str) -> str:
    """Return a stable HTML comment marker, e.g. ``<!-- covtrack:coverage:1a2b3c4d -->``."""
    digest = hashlib.sha256(prefix.encode()).hexdigest()[:8]
    return f"<!-- {prefix}:{digest} -->"
