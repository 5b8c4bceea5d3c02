"""Reporters for outputting coverage results."""

from __future__ import annotations

from covtrack.reporters.comment import RenderedReport, build_comment, build_rows, render
from covtrack.reporters.delta import DeltaFormatter, format_delta, format_diff, format_percent
from covtrack.reporters.github_comment import GitHubCommentReporter
from covtrack.reporters.json_reporter import JSONReporter
from covtrack.reporters.terminal import reporter

__all__ = [
    "DeltaFormatter",
    "GitHubCommentReporter",
    "JSONReporter",
    "RenderedReport",
    "build_comment",
    "build_rows",
    "format_delta",
    "format_diff",
    "format_percent",
    "render",
    "reporter",
]
