"""Coverage report models."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

ALL_FILES_KEY = "*"
"""Key of the project-wide node; never a valid folder key (those end in ``/``)."""

METRIC_NAMES = ("lines", "statements", "functions", "branches")


def _pct(covered: int, total: int) -> float:
    if total == 0:
        return 100.0
    return round(covered / total * 100, 2)


@dataclass(frozen=True)
class MetricTotals:
    """Unit counts for one metric group (statements, branches, ...)."""

    total: int = 0
    """Number of instrumented units."""

    covered: int = 0
    """Units hit at least once."""

    skipped: int = 0
    """Units excluded from coverage (e.g. ``istanbul ignore``)."""

    pct: float = 100.0
    """Reported percentage. Informational only; scoring recomputes it."""

    def merge(self, other: MetricTotals) -> MetricTotals:
        """Return the field-wise sum of two metric groups."""
        total = self.total + other.total
        covered = self.covered + other.covered
        return MetricTotals(
            total=total,
            covered=covered,
            skipped=self.skipped + other.skipped,
            pct=_pct(covered, total),
        )

    @classmethod
    def from_counts(cls, total: int, covered: int, skipped: int = 0) -> MetricTotals:
        return cls(total=total, covered=covered, skipped=skipped, pct=_pct(covered, total))

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> MetricTotals:
        total = int(data.get("total", 0))
        covered = int(data.get("covered", 0))
        pct_raw = data.get("pct")
        # Istanbul writes "Unknown" for empty groups.
        pct = float(pct_raw) if isinstance(pct_raw, int | float) else _pct(covered, total)
        return cls(
            total=total,
            covered=covered,
            skipped=int(data.get("skipped", 0)),
            pct=pct,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "total": self.total,
            "covered": self.covered,
            "skipped": self.skipped,
            "pct": self.pct,
        }


@dataclass(frozen=True)
class CoverageSummary:
    """Summary of one file, or of any set of files merged together.

    Merging is field-wise addition, so it is associative and commutative.
    """

    statements: MetricTotals = field(default_factory=MetricTotals)
    branches: MetricTotals = field(default_factory=MetricTotals)
    functions: MetricTotals = field(default_factory=MetricTotals)
    lines: MetricTotals = field(default_factory=MetricTotals)

    def merge(self, other: CoverageSummary) -> CoverageSummary:
        """Return a new summary holding the totals of both summaries."""
        return CoverageSummary(
            statements=self.statements.merge(other.statements),
            branches=self.branches.merge(other.branches),
            functions=self.functions.merge(other.functions),
            lines=self.lines.merge(other.lines),
        )

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> CoverageSummary:
        """Build a summary from an Istanbul ``coverage-summary.json`` entry."""
        groups = {
            name: MetricTotals.from_dict(data[name])
            for name in METRIC_NAMES
            if isinstance(data.get(name), dict)
        }
        return cls(**groups)

    def to_dict(self) -> dict[str, Any]:
        return {name: getattr(self, name).to_dict() for name in METRIC_NAMES}


@dataclass(frozen=True)
class ScoredStats:
    """Blended coverage of a file or folder, plus link metadata."""

    percent: float
    """Blended coverage percentage (0.0 to 100.0)."""

    html_root: str | None = None
    """Common root of all folders; only set on the project node."""

    html_path: str | None = None
    """Folder key with the common root stripped; only set on folder nodes."""


@dataclass(frozen=True)
class ReportNode:
    """Aggregated coverage of one folder, or of the whole project."""

    key: str
    """Folder key (relative path ending in ``/``) or ``ALL_FILES_KEY``."""

    stats: ScoredStats

    files: dict[str, ScoredStats] = field(default_factory=dict)
    """Per-file stats keyed by basename, in discovery order."""


@dataclass(frozen=True)
class CoverageTree:
    """Result of aggregating one coverage dataset."""

    project: ReportNode
    """Project-wide node."""

    folders: dict[str, ReportNode] = field(default_factory=dict)
    """Folder nodes keyed by folder key, in discovery order."""

    @property
    def html_root(self) -> str:
        return self.project.stats.html_root or ""


@dataclass(frozen=True)
class Row:
    """One rendered table line: a folder or a file."""

    label: str
    link: str
    stats: ScoredStats
    prior_stats: ScoredStats | None = None
