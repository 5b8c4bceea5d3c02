"""Percent and delta formatting with severity markers.

Classification returns enum tags; the emoji for each tag is looked up only
when a string is formatted, so callers that want colors or words instead can
reuse ``classify_percent`` and ``classify_delta``.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from covtrack.models.coverage import ScoredStats

DEFAULT_ERROR_THRESHOLD = 50.0
DEFAULT_WARN_THRESHOLD = 80.0
DEFAULT_PADDING = 7

_PERFECT = 100.0
_SEVERE_DROP = -10.0
_MODERATE_DROP = -5.0
_OUTSTANDING_GAIN = 50.0
_STRONG_GAIN = 10.0

NO_CHANGE = "(no change)"


class Severity(Enum):
    """How good an absolute coverage percentage is."""

    CRITICAL = "critical"  # Nothing covered
    ERROR = "error"
    WARNING = "warning"
    PERFECT = "perfect"
    OK = "ok"


class DeltaSeverity(Enum):
    """How a non-zero change in coverage should be read."""

    ALARMING = "alarming"  # Dropped to zero
    SEVERE_REGRESSION = "severe_regression"
    MODERATE_REGRESSION = "moderate_regression"
    MINOR_REGRESSION = "minor_regression"
    CELEBRATORY = "celebratory"  # Reached 100%
    OUTSTANDING = "outstanding"
    STRONG = "strong"
    MILD = "mild"


SEVERITY_EMOJI: dict[Severity, str] = {
    Severity.CRITICAL: "❌",
    Severity.ERROR: "💔",
    Severity.WARNING: "💛",
    Severity.PERFECT: "✅",
    Severity.OK: "💚",
}

DELTA_EMOJI: dict[DeltaSeverity, str] = {
    DeltaSeverity.ALARMING: "😱",
    DeltaSeverity.SEVERE_REGRESSION: "😡",
    DeltaSeverity.MODERATE_REGRESSION: "😭",
    DeltaSeverity.MINOR_REGRESSION: "😥",
    DeltaSeverity.CELEBRATORY: "🎉",
    DeltaSeverity.OUTSTANDING: "😍",
    DeltaSeverity.STRONG: "😀",
    DeltaSeverity.MILD: "🙂",
}


@dataclass(frozen=True)
class Thresholds:
    """Percent boundaries between the error, warning and ok severities."""

    error: float = DEFAULT_ERROR_THRESHOLD
    warn: float = DEFAULT_WARN_THRESHOLD


def classify_percent(percent: float, thresholds: Thresholds | None = None) -> Severity:
    """Classify an absolute percentage. The first matching rule wins."""
    limits = thresholds or Thresholds()
    if percent == 0:
        return Severity.CRITICAL
    if percent < limits.error:
        return Severity.ERROR
    if percent < limits.warn:
        return Severity.WARNING
    if percent == _PERFECT:
        return Severity.PERFECT
    return Severity.OK


def classify_delta(delta: float, percent: float) -> DeltaSeverity:
    """Classify a non-zero change given the current percentage."""
    if percent == 0:
        return DeltaSeverity.ALARMING
    if delta < _SEVERE_DROP:
        return DeltaSeverity.SEVERE_REGRESSION
    if delta < _MODERATE_DROP:
        return DeltaSeverity.MODERATE_REGRESSION
    if delta < 0:
        return DeltaSeverity.MINOR_REGRESSION
    if percent == _PERFECT:
        return DeltaSeverity.CELEBRATORY
    if delta > _OUTSTANDING_GAIN:
        return DeltaSeverity.OUTSTANDING
    if delta > _STRONG_GAIN:
        return DeltaSeverity.STRONG
    return DeltaSeverity.MILD


class DeltaFormatter:
    """Format percentages and deltas into fixed-width table cells."""

    def __init__(
        self, thresholds: Thresholds | None = None, padding: int = DEFAULT_PADDING
    ) -> None:
        """Initialize the formatter.

        Args:
            thresholds: Severity boundaries. Defaults to 50/80.
            padding: Width numbers are left-padded to.
        """
        self.thresholds = thresholds or Thresholds()
        self.padding = padding

    def format_percent(self, percent: float) -> str:
        """Return e.g. ``'  85.00% 💚'``."""
        emoji = SEVERITY_EMOJI[classify_percent(percent, self.thresholds)]
        return f"{f'{percent:.2f}'.rjust(self.padding)}% {emoji}"

    def format_delta(self, percent: float, prior_percent: float) -> str:
        """Return the signed change, e.g. ``'  +5.00% 🙂'``."""
        delta = percent - prior_percent
        sign = "+" if delta > 0 else ""
        emoji = DELTA_EMOJI[classify_delta(delta, percent)]
        return f"{f'{sign}{delta:.2f}'.rjust(self.padding)}% {emoji}"

    def format_diff(self, stats: ScoredStats, prior_stats: ScoredStats | None = None) -> str:
        """Format current stats, compared with prior stats when there are any."""
        percent = stats.percent
        if prior_stats is None:
            return self.format_percent(percent)
        if percent == prior_stats.percent:
            return f"{self.format_percent(percent)} {NO_CHANGE.rjust(self.padding)}"
        return f"{self.format_percent(percent)} {self.format_delta(percent, prior_stats.percent)}"


def format_percent(percent: float) -> str:
    return DeltaFormatter().format_percent(percent)


def format_delta(percent: float, prior_percent: float) -> str:
    return DeltaFormatter().format_delta(percent, prior_percent)


def format_diff(stats: ScoredStats, prior_stats: ScoredStats | None = None) -> str:
    return DeltaFormatter().format_diff(stats, prior_stats)
