"""Blended coverage scoring.

Statements and branches are folded into one percentage per file or folder.
Functions and lines are carried in the summaries but not scored.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from covtrack.models.coverage import ScoredStats

if TYPE_CHECKING:
    from covtrack.models.coverage import CoverageSummary, MetricTotals

STATEMENT_WEIGHT = 0.75
BRANCH_WEIGHT = 0.25


def calculate_coverage(stats: MetricTotals) -> float:
    """Return coverage of one metric group, counting skipped units as covered.

    An empty group is fully covered. Summaries that count a unit as both
    covered and skipped are capped at 100.
    """
    if stats.total == 0:
        return 100.0
    return min((stats.covered + stats.skipped) / stats.total * 100, 100.0)


def score(summary: CoverageSummary) -> float:
    """Return the blended percentage of a summary."""
    statements_coverage = calculate_coverage(summary.statements)
    if summary.branches.total == 0:
        return statements_coverage
    branches_coverage = calculate_coverage(summary.branches)
    return statements_coverage * STATEMENT_WEIGHT + branches_coverage * BRANCH_WEIGHT


def simple_coverage(summary: CoverageSummary) -> ScoredStats:
    """Score a summary into ``ScoredStats`` without link metadata."""
    return ScoredStats(percent=score(summary))
