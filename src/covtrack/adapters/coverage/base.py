"""Base classes for coverage file adapters."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from pathlib import Path

    from covtrack.models.coverage import CoverageSummary


class CoverageFileError(ValueError):
    """Raised when a coverage file is missing, unreadable, or malformed."""


class CoverageAdapter(ABC):
    """Abstract base class for coverage file formats.

    Each concrete adapter turns a native coverage file into a mapping of
    source path to ``CoverageSummary``.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Coverage format identifier (e.g. 'istanbul')."""

    @abstractmethod
    def parse_coverage_data(self, data: dict[str, Any]) -> dict[str, CoverageSummary]:
        """Summarize already-decoded coverage data, one entry per source file."""

    @abstractmethod
    def parse_coverage_file(self, coverage_file: Path) -> dict[str, CoverageSummary]:
        """Read and summarize a coverage file.

        Raises:
            CoverageFileError: If the file cannot be read or decoded.
        """
