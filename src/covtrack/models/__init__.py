"""Data models for covtrack."""

from covtrack.models.coverage import (
    ALL_FILES_KEY,
    CoverageSummary,
    CoverageTree,
    MetricTotals,
    ReportNode,
    Row,
    ScoredStats,
)

__all__ = [
    "ALL_FILES_KEY",
    "CoverageSummary",
    "CoverageTree",
    "MetricTotals",
    "ReportNode",
    "Row",
    "ScoredStats",
]
