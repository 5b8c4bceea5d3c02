"""Folder tree aggregation of per-file coverage.

Files are grouped by containing folder (relative to a base path), their
summaries are merged into folder and project totals, and the common root of
all folders is resolved so report links can be shortened.
"""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import TYPE_CHECKING

from covtrack.analyzers.scoring import simple_coverage
from covtrack.models.coverage import (
    ALL_FILES_KEY,
    CoverageSummary,
    CoverageTree,
    ReportNode,
    ScoredStats,
)

if TYPE_CHECKING:
    from collections.abc import Mapping
    from pathlib import Path

logger = logging.getLogger(__name__)

_SEPARATORS_RE = re.compile(r"[\\/]")


@dataclass(frozen=True)
class ReportPath:
    """A relative path compared segment by segment.

    ``a/bar`` and ``a/barbaz`` share ``a``, not ``a/bar``.
    """

    elements: tuple[str, ...] = ()

    @classmethod
    def parse(cls, value: str) -> ReportPath:
        return cls(tuple(part for part in _SEPARATORS_RE.split(value) if part))

    def __str__(self) -> str:
        return "/".join(self.elements)

    def __len__(self) -> int:
        return len(self.elements)

    def has_parent(self) -> bool:
        return len(self.elements) > 0

    def parent(self) -> ReportPath:
        """Return the path one segment up. The empty path is its own parent."""
        return ReportPath(self.elements[:-1])

    def common_prefix_path(self, other: ReportPath) -> ReportPath:
        """Return the longest path both paths start with."""
        common: list[str] = []
        for mine, theirs in zip(self.elements, other.elements, strict=False):
            if mine != theirs:
                break
            common.append(mine)
        return ReportPath(tuple(common))

    def as_folder_key(self) -> str:
        """Render as a folder key (trailing ``/``)."""
        return f"{self}/"


def folder_key(file_path: str, base_path: str | Path) -> str:
    """Return the folder key of ``file_path``: its directory relative to base, plus ``/``.

    Relative file paths are taken relative to ``base_path``. Files directly in
    the base folder get the key ``/``.
    """
    base = os.fspath(base_path)
    absolute = os.path.join(base, file_path)
    relative = os.path.relpath(os.path.dirname(absolute), base)
    if relative == os.curdir:
        relative = ""
    return f"{relative.replace(os.sep, '/')}/"


def resolve_common_root(folders: list[str], common_root: ReportPath) -> ReportPath:
    """Pick the root that report links are made relative to.

    With several folders the root must be a folder that has a report of its
    own; a synthetic ancestor is climbed until one is found or nothing is
    left. A single folder is always its own root.
    """
    known = set(folders)
    root = common_root
    while len(known) > 1 and root.as_folder_key() not in known and root.has_parent():
        root = root.parent()
    return root


def aggregate(
    files: Mapping[str, CoverageSummary],
    base_path: str | Path,
) -> CoverageTree:
    """Aggregate per-file summaries into folder and project nodes.

    Args:
        files: Per-file summaries keyed by source path.
        base_path: Folder keys are computed relative to this path.

    Returns:
        A ``CoverageTree`` with folders in discovery order.
    """
    project_summary = CoverageSummary()
    folder_summaries: dict[str, CoverageSummary] = {}
    folder_files: dict[str, dict[str, ScoredStats]] = {}
    common_root: ReportPath | None = None

    for file_path, file_summary in files.items():
        folder = folder_key(file_path, base_path)
        path = ReportPath.parse(folder)
        common_root = path if common_root is None else common_root.common_prefix_path(path)

        if folder not in folder_summaries:
            folder_summaries[folder] = CoverageSummary()
            folder_files[folder] = {}

        project_summary = project_summary.merge(file_summary)
        folder_summaries[folder] = folder_summaries[folder].merge(file_summary)
        folder_files[folder][os.path.basename(file_path)] = simple_coverage(file_summary)

    folders = list(folder_summaries)
    root = resolve_common_root(folders, common_root or ReportPath())

    html_root = str(root)
    common_root_length = len(html_root) + 1 if html_root else 0
    logger.debug(
        "Aggregated %d files into %d folders (common root %r)",
        len(files),
        len(folders),
        html_root,
    )

    project = ReportNode(
        key=ALL_FILES_KEY,
        stats=ScoredStats(
            percent=simple_coverage(project_summary).percent,
            html_root=f"{html_root}/" if html_root else "",
        ),
    )

    folder_nodes = {
        folder: ReportNode(
            key=folder,
            stats=ScoredStats(
                percent=simple_coverage(folder_summaries[folder]).percent,
                html_path=folder[common_root_length:],
            ),
            files=folder_files[folder],
        )
        for folder in folders
    }

    return CoverageTree(project=project, folders=folder_nodes)
