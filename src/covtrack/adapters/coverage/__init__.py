"""Coverage adapters for reading coverage tool output."""

from covtrack.adapters.coverage.base import CoverageAdapter, CoverageFileError
from covtrack.adapters.coverage.istanbul import (
    IstanbulAdapter,
    find_coverage_file,
    load_coverage,
)

__all__ = [
    "CoverageAdapter",
    "CoverageFileError",
    "IstanbulAdapter",
    "find_coverage_file",
    "load_coverage",
]
