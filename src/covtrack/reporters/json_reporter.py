"""JSON reporter: serializes an aggregated coverage tree.

Produces machine-readable output for downstream tooling, e.g. to archive a
run next to the html report.
"""

from __future__ import annotations

import json
import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING, Any

from covtrack.models.coverage import ALL_FILES_KEY

if TYPE_CHECKING:
    from pathlib import Path

    from covtrack.models.coverage import CoverageTree, ReportNode

logger = logging.getLogger(__name__)


class JSONReporter:
    """Generate structured JSON reports from an aggregated tree."""

    def generate(
        self,
        output_path: Path,
        tree: CoverageTree,
        *,
        prior: CoverageTree | None = None,
    ) -> Path:
        """Write a JSON report file.

        Args:
            output_path: Path to write the JSON file.
            tree: Aggregated coverage.
            prior: Aggregated coverage of a previous run.

        Returns:
            The path to the generated JSON file.
        """
        output_path.parent.mkdir(parents=True, exist_ok=True)
        output_path.write_text(self.generate_string(tree, prior=prior), encoding="utf-8")
        logger.info("JSON report written to %s", output_path)
        return output_path

    def generate_string(self, tree: CoverageTree, *, prior: CoverageTree | None = None) -> str:
        """Return the JSON report as a string."""
        report = _build_report(tree, prior=prior)
        return json.dumps(report, indent=2, ensure_ascii=False)


def _build_report(tree: CoverageTree, *, prior: CoverageTree | None = None) -> dict[str, Any]:
    """Build the JSON report structure."""
    report: dict[str, Any] = {
        "tool": "covtrack",
        "timestamp": datetime.now(tz=UTC).isoformat(),
        "html_root": tree.html_root,
        ALL_FILES_KEY: {"percent": tree.project.stats.percent},
        "folders": {key: _serialize_node(node) for key, node in tree.folders.items()},
    }

    if prior is not None:
        report["prior"] = {"percent": prior.project.stats.percent}
        report["delta"] = tree.project.stats.percent - prior.project.stats.percent

    return report


def _serialize_node(node: ReportNode) -> dict[str, Any]:
    """Serialize a folder ``ReportNode`` into a JSON-compatible dict."""
    return {
        "percent": node.stats.percent,
        "html_path": node.stats.html_path,
        "files": {name: {"percent": stats.percent} for name, stats in node.files.items()},
    }
