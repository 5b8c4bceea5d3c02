"""Render an aggregated coverage tree as a pull request comment.

The table is a ``<pre>`` block with one line per folder followed by one line
per file in that folder. Labels are padded to a common width so the
percentages line up.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

from covtrack.models.coverage import Row
from covtrack.reporters.delta import DeltaFormatter

if TYPE_CHECKING:
    from covtrack.models.coverage import CoverageTree

_FILE_INDENT = "  "


@dataclass(frozen=True)
class RenderedReport:
    """Rendered output of one report run."""

    status: str
    """One-line project status, e.g. ``' 85.00% 💚'``."""

    table: str
    """Preformatted folder/file table, or ``''`` when there are no rows."""


def default_base_url(project: str) -> str:
    """Return the conventional location of a project's html coverage report."""
    return f"/pub/{project}/lcov-report"


def build_rows(tree: CoverageTree, prior: CoverageTree | None = None) -> list[Row]:
    """Flatten a tree into folder rows, each followed by its file rows."""
    rows: list[Row] = []

    for folder, node in tree.folders.items():
        html_path = node.stats.html_path or ""
        prior_node = prior.folders.get(folder) if prior else None

        rows.append(
            Row(
                label=folder,
                link=f"{html_path}index.html",
                stats=node.stats,
                prior_stats=prior_node.stats if prior_node else None,
            )
        )

        for name, file_stats in node.files.items():
            rows.append(
                Row(
                    label=f"{_FILE_INDENT}{name}",
                    link=f"{html_path}{name}.html",
                    stats=file_stats,
                    prior_stats=prior_node.files.get(name) if prior_node else None,
                )
            )

    return rows


def format_link(label: str, link: str, base_url: str | None = None) -> str:
    """Wrap ``label`` in an anchor to ``base_url/link`` when a base URL is set."""
    if not base_url:
        return label
    return f'<a href="{base_url}/{link}">{label}</a>'


def render_table(
    rows: list[Row],
    *,
    base_url: str | None = None,
    formatter: DeltaFormatter | None = None,
) -> str:
    """Render rows as a ``<pre>`` block. No rows render as an empty string."""
    if not rows:
        return ""

    fmt = formatter or DeltaFormatter()
    width = max(len(row.label) for row in rows)

    lines = ["<pre>"]
    for row in rows:
        label = format_link(row.label.ljust(width), row.link, base_url)
        lines.append(f"{label}  {fmt.format_diff(row.stats, row.prior_stats)}")
    lines.append("</pre>")
    return "\n".join(lines)


def render(
    tree: CoverageTree,
    *,
    prior: CoverageTree | None = None,
    base_url: str | None = None,
    formatter: DeltaFormatter | None = None,
) -> RenderedReport:
    """Render the status line and table for a tree.

    Args:
        tree: Current aggregated coverage.
        prior: Aggregated coverage of a previous run, for deltas.
        base_url: Root URL of the html report. Without it no links are emitted.
        formatter: Percent formatter. Defaults to 50/80 thresholds, width 7.

    Returns:
        The rendered status line and table.
    """
    fmt = formatter or DeltaFormatter()
    status = fmt.format_diff(tree.project.stats, prior.project.stats if prior else None)
    table = render_table(build_rows(tree, prior), base_url=base_url, formatter=fmt)
    return RenderedReport(status=status, table=table)


def build_comment(report: RenderedReport, base_url: str | None = None) -> str:
    """Return the markdown comment body for a rendered report."""
    if base_url:
        heading = f"## [Code Coverage]({base_url}/index.html): {report.status}"
    else:
        heading = f"## Code Coverage: {report.status}"

    sections = [heading, ""]
    if report.table:
        sections.append(report.table)
        sections.append("")
    return "\n".join(sections)
