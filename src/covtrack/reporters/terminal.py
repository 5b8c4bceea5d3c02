"""Terminal reporter with rich output formatting."""

from __future__ import annotations

from typing import TYPE_CHECKING

from rich.console import Console
from rich.table import Table

from covtrack.reporters.comment import build_rows
from covtrack.reporters.delta import (
    DELTA_EMOJI,
    NO_CHANGE,
    SEVERITY_EMOJI,
    DeltaSeverity,
    Severity,
    Thresholds,
    classify_delta,
    classify_percent,
)

if TYPE_CHECKING:
    from covtrack.models.coverage import CoverageTree, ScoredStats

console = Console()

SEVERITY_COLOR: dict[Severity, str] = {
    Severity.CRITICAL: "bold red",
    Severity.ERROR: "red",
    Severity.WARNING: "yellow",
    Severity.PERFECT: "bold green",
    Severity.OK: "green",
}

_REGRESSIONS = frozenset(
    {
        DeltaSeverity.ALARMING,
        DeltaSeverity.SEVERE_REGRESSION,
        DeltaSeverity.MODERATE_REGRESSION,
        DeltaSeverity.MINOR_REGRESSION,
    }
)


class CLIReporter:
    """Rich terminal output for coverage reports."""

    def __init__(self, output: Console | None = None) -> None:
        """Initialize the CLI reporter."""
        self.console = output or console

    def print_success(self, message: str) -> None:
        """Print a success message."""
        self.console.print(f"[green]✓[/green] {message}")

    def print_error(self, message: str) -> None:
        """Print an error message."""
        self.console.print(f"[red]✗[/red] {message}")

    def print_warning(self, message: str) -> None:
        """Print a warning message."""
        self.console.print(f"[yellow]⚠[/yellow] {message}")

    def print_coverage_tree(
        self,
        tree: CoverageTree,
        prior: CoverageTree | None = None,
        thresholds: Thresholds | None = None,
    ) -> None:
        """Print the folder/file coverage table with an overall row."""
        limits = thresholds or Thresholds()
        table = Table(title="Coverage Summary", title_style="bold cyan")
        table.add_column("Path", style="bold")
        table.add_column("Coverage", justify="right")
        if prior is not None:
            table.add_column("Δ", justify="right")

        for row in build_rows(tree, prior):
            cells = [row.label, self._format_percent(row.stats.percent, limits)]
            if prior is not None:
                cells.append(self._format_delta(row.stats, row.prior_stats))
            table.add_row(*cells)

        table.add_section()
        overall = [
            "[bold]Overall[/bold]",
            self._format_percent(tree.project.stats.percent, limits),
        ]
        if prior is not None:
            overall.append(self._format_delta(tree.project.stats, prior.project.stats))
        table.add_row(*overall)

        self.console.print(table)

    def _format_percent(self, percent: float, thresholds: Thresholds) -> str:
        severity = classify_percent(percent, thresholds)
        color = SEVERITY_COLOR[severity]
        return f"[{color}]{percent:.2f}%[/{color}] {SEVERITY_EMOJI[severity]}"

    def _format_delta(self, stats: ScoredStats, prior_stats: ScoredStats | None) -> str:
        if prior_stats is None:
            return "[dim]new[/dim]"
        delta = stats.percent - prior_stats.percent
        if delta == 0:
            return f"[dim]{NO_CHANGE}[/dim]"
        severity = classify_delta(delta, stats.percent)
        color = "red" if severity in _REGRESSIONS else "green"
        sign = "+" if delta > 0 else ""
        return f"[{color}]{sign}{delta:.2f}%[/{color}] {DELTA_EMOJI[severity]}"


# Singleton instance for easy import
reporter = CLIReporter()
