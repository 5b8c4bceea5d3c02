"""Tests for the covtrack CLI commands."""

from __future__ import annotations

import json
from typing import TYPE_CHECKING, Any
from unittest.mock import patch

import pytest
import yaml
from click.testing import CliRunner

from covtrack.cli import _mask_sensitive_values, cli
from covtrack.utils.git import GitHubAPIError

if TYPE_CHECKING:
    from pathlib import Path


def _metrics(total: int, covered: int) -> dict[str, Any]:
    return {"total": total, "covered": covered, "skipped": 0, "pct": 0}


def _write_coverage(path: Path, files: dict[str, tuple[int, int]]) -> Path:
    data = {
        name: {
            "lines": _metrics(total, covered),
            "statements": _metrics(total, covered),
            "functions": _metrics(0, 0),
            "branches": _metrics(0, 0),
        }
        for name, (total, covered) in files.items()
    }
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


@pytest.fixture
def project(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Project with coverage/coverage-final.json covering src/a.js and src/b.js."""
    for var in ("COVTRACK_BASE_URL", "COVTRACK_PRIOR_FILE", "COVTRACK_PROJECT"):
        monkeypatch.delenv(var, raising=False)
    root = tmp_path.resolve()
    _write_coverage(
        root / "coverage" / "coverage-final.json",
        {f"{root}/src/a.js": (10, 10), f"{root}/src/b.js": (10, 6)},
    )
    return root


def test_version() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--version"])
    assert result.exit_code == 0
    assert "0.1.0" in result.output


def test_help() -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--help"])
    assert result.exit_code == 0
    assert "covtrack" in result.output


# ── covtrack report ───────────────────────────────────────────────────


class TestReport:
    def test_markdown_report(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--no-links"])

        assert result.exit_code == 0, result.output
        assert "## Code Coverage:   80.00% 💚" in result.output
        assert "<pre>" in result.output
        assert "src/" in result.output
        assert "  b.js" in result.output
        assert "<a href" not in result.output

    def test_links_default_to_project_report(self, project: Path) -> None:
        (project / ".covtrack.yml").write_text(
            yaml.dump({"project": {"name": "my-app"}}), encoding="utf-8"
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project)])

        assert result.exit_code == 0, result.output
        assert "## [Code Coverage](/pub/my-app/lcov-report/index.html):   80.00% 💚" in (
            result.output
        )
        assert '<a href="/pub/my-app/lcov-report/a.js.html">' in result.output

    def test_default_project_name_is_directory(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project)])
        assert result.exit_code == 0, result.output
        assert f"/pub/{project.name}/lcov-report/index.html" in result.output

    def test_base_url_adds_links(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli, ["report", "--path", str(project), "--base-url", "/pub/app/lcov-report/"]
        )
        assert result.exit_code == 0, result.output
        assert "## [Code Coverage](/pub/app/lcov-report/index.html)" in result.output
        assert '<a href="/pub/app/lcov-report/a.js.html">' in result.output

    def test_base_url_from_config(self, project: Path) -> None:
        (project / ".covtrack.yml").write_text(
            yaml.dump({"report": {"base_url": "https://ci.example/cov"}}), encoding="utf-8"
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project)])
        assert result.exit_code == 0, result.output
        assert '<a href="https://ci.example/cov/index.html">' in result.output

    def test_prior_shows_deltas(self, project: Path) -> None:
        prior = _write_coverage(
            project / "prior.json",
            {f"{project}/src/a.js": (10, 10), f"{project}/src/b.js": (10, 2)},
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--prior", str(prior)])

        assert result.exit_code == 0, result.output
        assert "(no change)" in result.output
        assert "+40.00% 😀" in result.output
        assert "+20.00% 😀" in result.output

    def test_json_format(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--format", "json"])

        assert result.exit_code == 0, result.output
        data = json.loads(result.stdout)
        assert data["*"]["percent"] == 80.0
        assert list(data["folders"]) == ["src/"]

    def test_terminal_format(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--format", "terminal"])
        assert result.exit_code == 0, result.output
        assert "Coverage Summary" in result.output
        assert "Overall" in result.output

    def test_output_file(self, project: Path) -> None:
        out = project / "comment.md"
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--output", str(out)])
        assert result.exit_code == 0, result.output
        assert out.read_text(encoding="utf-8").startswith("## [Code Coverage](/pub/")

    def test_fail_under(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--fail-under", "90"])
        assert result.exit_code == 2
        assert "below the required" in result.output

    def test_fail_under_passes(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project), "--fail-under", "75"])
        assert result.exit_code == 0

    def test_missing_coverage_file(self, tmp_path: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(tmp_path)])
        assert result.exit_code == 1
        assert "Failed to read coverage file" in result.output

    def test_invalid_config(self, project: Path) -> None:
        (project / ".covtrack.yml").write_text(
            yaml.dump({"thresholds": {"error": 90, "warn": 10}}), encoding="utf-8"
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project)])
        assert result.exit_code == 1
        assert "Invalid configuration" in result.output

    def test_terminal_format_rejects_output(self, project: Path) -> None:
        out = project / "out.txt"
        runner = CliRunner()
        result = runner.invoke(
            cli,
            ["report", "--path", str(project), "--format", "terminal", "-o", str(out)],
        )
        assert result.exit_code == 2
        assert "terminal format cannot be written to a file" in result.output
        assert not out.exists()

    def test_falls_back_to_standard_coverage_file(
        self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.delenv("COVTRACK_PROJECT", raising=False)
        root = tmp_path.resolve()
        _write_coverage(
            root / "coverage" / "coverage-summary.json", {f"{root}/lib/x.js": (4, 3)}
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(root), "--no-links"])

        assert result.exit_code == 0, result.output
        assert "## Code Coverage:   75.00% 💛" in result.output

    def test_explicit_coverage_file_has_no_fallback(self, project: Path) -> None:
        runner = CliRunner()
        result = runner.invoke(
            cli, ["report", "--path", str(project), "--coverage-file", "missing.json"]
        )
        assert result.exit_code == 1
        assert "Failed to read coverage file" in result.output

    def test_non_numeric_threshold(self, project: Path) -> None:
        (project / ".covtrack.yml").write_text(
            yaml.dump({"thresholds": {"error": "high"}}), encoding="utf-8"
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["report", "--path", str(project)])
        assert result.exit_code == 1
        assert "thresholds.error must be a number (got: 'high')" in result.output
        assert result.exception is None or isinstance(result.exception, SystemExit)


# ── covtrack comment ──────────────────────────────────────────────────


class TestComment:
    def test_outside_pull_request(self, project: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("GITHUB_EVENT_NAME", raising=False)
        runner = CliRunner()
        result = runner.invoke(cli, ["comment", "--path", str(project)])
        assert result.exit_code == 0, result.output
        assert "comment not posted" in result.output
        assert "[Code Coverage](/pub/" in result.output

    def test_posts_comment(self, project: Path) -> None:
        posted = {"status": "success", "comment_url": "https://github.com/o/r/pull/1#c-1"}
        runner = CliRunner()
        with patch("covtrack.cli.post_comment_from_env", return_value=posted) as post:
            result = runner.invoke(cli, ["comment", "--path", str(project), "--token", "tok"])

        assert result.exit_code == 0, result.output
        assert "Posted coverage comment" in result.output
        body = post.call_args.args[0]
        heading = f"## [Code Coverage](/pub/{project.name}/lcov-report/index.html)"
        assert body.startswith(heading)
        assert post.call_args.kwargs["github_token"] == "tok"
        assert post.call_args.kwargs["marker_prefix"] == "covtrack:coverage"

    def test_api_failure(self, project: Path) -> None:
        runner = CliRunner()
        with patch("covtrack.cli.post_comment_from_env", side_effect=GitHubAPIError("401")):
            result = runner.invoke(cli, ["comment", "--path", str(project)])
        assert result.exit_code == 1
        assert "Failed to post coverage comment" in result.output


# ── covtrack config show ──────────────────────────────────────────────


class TestConfigShow:
    def test_shows_masked_yaml(self, project: Path) -> None:
        (project / ".covtrack.yml").write_text(
            yaml.dump({"github": {"token": "ghp_secret"}}), encoding="utf-8"
        )
        runner = CliRunner()
        result = runner.invoke(cli, ["config", "show", "--path", str(project)])

        assert result.exit_code == 0, result.output
        assert "project:" in result.output
        assert "ghp_secret" not in result.output
        assert "'***'" in result.output

    def test_mask_sensitive_values(self) -> None:
        masked = _mask_sensitive_values({"github": {"token": "abc", "comment_marker": "m"}})
        assert masked == {"github": {"token": "***", "comment_marker": "m"}}

    def test_empty_token_not_masked(self) -> None:
        assert _mask_sensitive_values({"token": ""}) == {"token": ""}
