"""Analyzers that score and aggregate coverage."""

from covtrack.analyzers.scoring import calculate_coverage, score, simple_coverage
from covtrack.analyzers.tree import ReportPath, aggregate, folder_key, resolve_common_root

__all__ = [
    "ReportPath",
    "aggregate",
    "calculate_coverage",
    "folder_key",
    "resolve_common_root",
    "score",
    "simple_coverage",
]
