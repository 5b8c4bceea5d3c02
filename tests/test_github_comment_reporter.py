"""Tests for GitHub comment reporter."""

from __future__ import annotations

from unittest import mock

import pytest

from covtrack.reporters.github_comment import (
    GitHubCommentReporter,
    post_comment_from_env,
)
from covtrack.utils.git import GitHubAPIError, GitHubPRInfo, compute_comment_marker


@pytest.fixture
def mock_api() -> mock.Mock:
    """Create a mocked GitHub API."""
    api_mock = mock.Mock()
    api_mock.upsert_comment.return_value = {
        "id": 123,
        "html_url": "https://github.com/owner/repo/pull/42#issuecomment-123",
    }
    return api_mock


@pytest.fixture
def sample_pr_info() -> GitHubPRInfo:
    """Create sample PR info."""
    return GitHubPRInfo(owner="test-owner", repo="test-repo", pr_number=42)


@pytest.fixture
def pr_env(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("GITHUB_REPOSITORY", "test-owner/test-repo")
    monkeypatch.setenv("GITHUB_EVENT_NAME", "pull_request")
    monkeypatch.setenv("GITHUB_REF", "refs/pull/42/merge")


class TestGitHubCommentReporter:
    def test_post_comment_prefixes_marker(
        self, mock_api: mock.Mock, sample_pr_info: GitHubPRInfo
    ) -> None:
        reporter = GitHubCommentReporter(api=mock_api)
        result = reporter.post_comment(sample_pr_info, "## Code Coverage: 100.00% ✅\n")

        assert result == {
            "status": "success",
            "comment_url": "https://github.com/owner/repo/pull/42#issuecomment-123",
        }
        pr_info, body, marker = mock_api.upsert_comment.call_args.args
        assert pr_info == sample_pr_info
        assert marker == compute_comment_marker("covtrack:coverage")
        assert body.startswith(f"{marker}\n## Code Coverage")

    def test_custom_marker_prefix(self, mock_api: mock.Mock) -> None:
        reporter = GitHubCommentReporter(api=mock_api, marker_prefix="web:coverage")
        assert reporter.marker == compute_comment_marker("web:coverage")

    def test_api_error_propagates(
        self, mock_api: mock.Mock, sample_pr_info: GitHubPRInfo
    ) -> None:
        mock_api.upsert_comment.side_effect = GitHubAPIError("boom")
        reporter = GitHubCommentReporter(api=mock_api)
        with pytest.raises(GitHubAPIError, match="boom"):
            reporter.post_comment(sample_pr_info, "body")

    def test_requires_token(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_TOKEN", raising=False)
        with pytest.raises(GitHubAPIError, match="token required"):
            GitHubCommentReporter()


class TestPostCommentFromEnv:
    def test_skips_outside_pull_request(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_EVENT_NAME", raising=False)
        assert post_comment_from_env("body") is None

    @pytest.mark.usefixtures("pr_env")
    def test_posts_in_pull_request(self, mock_api: mock.Mock) -> None:
        with mock.patch(
            "covtrack.reporters.github_comment.GitHubAPI", return_value=mock_api
        ) as api_cls:
            result = post_comment_from_env("body", github_token="tok")

        api_cls.assert_called_once_with(token="tok")
        assert result is not None
        assert result["status"] == "success"
        pr_info = mock_api.upsert_comment.call_args.args[0]
        assert pr_info == GitHubPRInfo(owner="test-owner", repo="test-repo", pr_number=42)
