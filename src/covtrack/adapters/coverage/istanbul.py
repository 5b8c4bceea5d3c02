"""Istanbul coverage adapter for JavaScript/TypeScript projects.

Reads both files Istanbul's json reporters write:

- ``coverage-final.json`` (the ``json`` reporter) holds raw hit maps per file.
- ``coverage-summary.json`` (the ``json-summary`` reporter) holds totals per file.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from covtrack.adapters.coverage.base import CoverageAdapter, CoverageFileError
from covtrack.models.coverage import CoverageSummary, MetricTotals

logger = logging.getLogger(__name__)

# ── Constants ────────────────────────────────────────────────────

# Coverage file locations (Istanbul standard paths)
COVERAGE_PATHS = [
    "coverage/coverage-final.json",
    "coverage/coverage-summary.json",
    ".nyc_output/coverage-final.json",
]

# Aggregate entry written by the json-summary reporter
_SUMMARY_TOTAL_KEY = "total"

_RAW_KEYS = frozenset({"statementMap", "s", "fnMap", "f", "branchMap", "b"})


# ── Adapter ──────────────────────────────────────────────────────


class IstanbulAdapter(CoverageAdapter):
    """Istanbul coverage adapter.

    The format is detected per entry: a record carrying hit maps (``s``,
    ``statementMap``, ...) is summarized here, anything else is taken as a
    ready-made summary.
    """

    @property
    def name(self) -> str:
        return "istanbul"

    def parse_coverage_file(self, coverage_file: Path) -> dict[str, CoverageSummary]:
        """Parse an Istanbul JSON coverage file.

        Raises:
            CoverageFileError: If the file cannot be read or is not an object.
        """
        try:
            with coverage_file.open(encoding="utf-8") as f:
                data = json.load(f)
        except (json.JSONDecodeError, OSError) as e:
            msg = f"Failed to read coverage file {coverage_file}: {e}"
            raise CoverageFileError(msg) from e

        if not isinstance(data, dict):
            msg = f"Coverage file {coverage_file} must contain a JSON object"
            raise CoverageFileError(msg)

        summaries = self.parse_coverage_data(data)
        logger.debug("Loaded coverage for %d files from %s", len(summaries), coverage_file)
        return summaries

    def parse_coverage_data(self, data: dict[str, Any]) -> dict[str, CoverageSummary]:
        """Summarize decoded Istanbul data."""
        summaries: dict[str, CoverageSummary] = {}

        for file_path, file_data in data.items():
            if file_path == _SUMMARY_TOTAL_KEY:
                continue
            if not isinstance(file_data, dict):
                msg = f"Coverage entry for {file_path} must be an object"
                raise CoverageFileError(msg)
            if _RAW_KEYS & file_data.keys():
                summaries[file_path] = self._summarize_file_coverage(file_data)
            else:
                summaries[file_path] = CoverageSummary.from_dict(file_data)

        return summaries

    def _summarize_file_coverage(self, data: dict[str, Any]) -> CoverageSummary:
        """Summarize the hit maps of a single file."""
        statement_map = data.get("statementMap", {})
        statement_counts = data.get("s", {})

        return CoverageSummary(
            statements=_simple_totals(statement_counts, statement_map),
            branches=_branch_totals(data.get("b", {}), data.get("branchMap", {})),
            functions=_simple_totals(data.get("f", {}), data.get("fnMap", {})),
            lines=_line_totals(statement_counts, statement_map),
        )


# ── Helper functions ─────────────────────────────────────────────


def _is_skipped(entry_map: dict[str, Any], key: str) -> bool:
    entry = entry_map.get(key)
    return isinstance(entry, dict) and bool(entry.get("skip"))


def _simple_totals(counts: dict[str, int], entry_map: dict[str, Any]) -> MetricTotals:
    """Totals for a one-count-per-unit map (statements, functions)."""
    covered = 0
    skipped = 0
    for key, count in counts.items():
        if count > 0:
            covered += 1
        elif _is_skipped(entry_map, key):
            skipped += 1
    return MetricTotals.from_counts(len(counts), covered, skipped)


def _arm_locations(branch_map: dict[str, Any], key: str) -> list[Any]:
    entry = branch_map.get(key)
    locations = entry.get("locations") if isinstance(entry, dict) else None
    return locations if isinstance(locations, list) else []


def _branch_totals(counts: dict[str, list[int]], branch_map: dict[str, Any]) -> MetricTotals:
    """Totals for branches, where each branch point holds one count per arm.

    An untaken arm is skipped when its branch point or its own location is
    flagged ``skip``.
    """
    total = 0
    covered = 0
    skipped = 0
    for key, arms in counts.items():
        if not isinstance(arms, list):
            continue
        point_skipped = _is_skipped(branch_map, key)
        locations = _arm_locations(branch_map, key)
        total += len(arms)
        for index, count in enumerate(arms):
            if count > 0:
                covered += 1
            elif point_skipped or (
                index < len(locations)
                and isinstance(locations[index], dict)
                and bool(locations[index].get("skip"))
            ):
                skipped += 1
    return MetricTotals.from_counts(total, covered, skipped)


def _line_totals(counts: dict[str, int], statement_map: dict[str, Any]) -> MetricTotals:
    """Totals for lines, keeping the highest statement count per start line."""
    lines: dict[int, int] = {}
    for stmt_id, count in counts.items():
        stmt_info = statement_map.get(stmt_id, {})
        line = stmt_info.get("start", {}).get("line")
        if line is None:
            continue
        if count > lines.get(line, -1):
            lines[line] = count

    covered = sum(1 for count in lines.values() if count > 0)
    return MetricTotals.from_counts(len(lines), covered)


def find_coverage_file(project_path: Path) -> Path | None:
    """Return the first standard Istanbul output file under ``project_path``."""
    for coverage_path in COVERAGE_PATHS:
        full_path = project_path / coverage_path
        if full_path.is_file():
            return full_path
    return None


def load_coverage(coverage_file: str | Path) -> dict[str, CoverageSummary]:
    """Load per-file summaries from any Istanbul JSON coverage file."""
    return IstanbulAdapter().parse_coverage_file(Path(coverage_file))
