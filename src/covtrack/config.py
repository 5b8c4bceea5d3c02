"""Configuration parsing from ``.covtrack.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covtrack.reporters.delta import (
    DEFAULT_ERROR_THRESHOLD,
    DEFAULT_PADDING,
    DEFAULT_WARN_THRESHOLD,
    Thresholds,
)

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".covtrack.yml"

REPORT_FORMATS = ("markdown", "terminal", "json")

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_MAX_PERCENTAGE = 100.0


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        elif isinstance(value, list):
            result[key] = [
                _resolve_env_vars(item) if isinstance(item, str) else item for item in value
            ]
        else:
            result[key] = value
    return result


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


class ConfigError(ValueError):
    """``.covtrack.yml`` cannot be parsed into a configuration."""


def _number(section: dict[str, Any], name: str, key: str, default: float) -> float:
    """Read ``section[key]`` as a float; ``name`` prefixes the error message."""
    value = section.get(key, default)
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ConfigError(f"{name}.{key} must be a number (got: {value!r})") from exc


@dataclass
class ProjectConfig:
    """Project-level configuration."""

    root: str
    """Project root directory."""

    name: str = ""
    """Project name, used for the conventional report URL."""

    base_path: str = ""
    """Folder keys are relative to this path (empty = project root)."""


@dataclass
class CoverageConfig:
    """Where coverage data is read from."""

    file: str = "coverage/coverage-final.json"
    """Current coverage file, relative to the project root."""

    prior_file: str = ""
    """Coverage file of a previous run (empty = no deltas)."""


@dataclass
class ThresholdConfig:
    """Severity thresholds."""

    error: float = DEFAULT_ERROR_THRESHOLD
    """Below this percentage coverage is an error."""

    warn: float = DEFAULT_WARN_THRESHOLD
    """Below this percentage coverage is a warning."""

    fail_under: float = 0.0
    """Fail the run when project coverage is below this (0 = never)."""

    def to_thresholds(self) -> Thresholds:
        return Thresholds(error=self.error, warn=self.warn)


@dataclass
class ReportConfig:
    """Report output configuration."""

    base_url: str = ""
    """Root URL of the html coverage report (empty = ``/pub/<project>/lcov-report``)."""

    padding: int = DEFAULT_PADDING
    """Column width percentages are padded to."""

    format: str = "markdown"
    """Default output format: markdown, terminal, or json."""


@dataclass
class GitHubConfig:
    """Pull request comment configuration."""

    comment_marker: str = "covtrack:coverage"
    """Prefix of the hidden marker identifying the comment."""

    token: str = ""
    """GitHub token (supports ${ENV_VAR} expansion; falls back to GITHUB_TOKEN)."""


@dataclass
class CovtrackConfig:
    """Complete covtrack configuration."""

    project: ProjectConfig
    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    thresholds: ThresholdConfig = field(default_factory=ThresholdConfig)
    report: ReportConfig = field(default_factory=ReportConfig)
    github: GitHubConfig = field(default_factory=GitHubConfig)

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""

    @property
    def base_path(self) -> Path:
        """Absolute base path folder keys are computed against."""
        root = Path(self.project.root)
        if not self.project.base_path:
            return root
        return (root / self.project.base_path).resolve()

    def resolve_path(self, value: str) -> Path:
        """Resolve a configured file path against the project root."""
        return (Path(self.project.root) / value).resolve()


def load_config(root: str | Path) -> CovtrackConfig:
    """Load and parse ``.covtrack.yml`` from ``root``.

    Falls back to defaults and ``COVTRACK_*`` environment variables when
    the YAML file is missing or incomplete.

    Raises:
        ConfigError: If the YAML is malformed or a numeric setting is not a number.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        try:
            parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        except yaml.YAMLError as exc:
            raise ConfigError(f"Failed to parse {config_file}: {exc}") from exc
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)
        logger.debug("Loaded configuration from %s", config_file)

    project_raw = _section(raw, "project")
    project = ProjectConfig(
        root=str(project_raw.get("root", root_path)),
        name=str(project_raw.get("name", os.environ.get("COVTRACK_PROJECT", root_path.name))),
        base_path=str(project_raw.get("base_path", "")),
    )

    coverage_raw = _section(raw, "coverage")
    coverage = CoverageConfig(
        file=str(coverage_raw.get("file", "coverage/coverage-final.json")),
        prior_file=str(coverage_raw.get("prior_file", os.environ.get("COVTRACK_PRIOR_FILE", ""))),
    )

    thresholds_raw = _section(raw, "thresholds")
    thresholds = ThresholdConfig(
        error=_number(thresholds_raw, "thresholds", "error", DEFAULT_ERROR_THRESHOLD),
        warn=_number(thresholds_raw, "thresholds", "warn", DEFAULT_WARN_THRESHOLD),
        fail_under=_number(thresholds_raw, "thresholds", "fail_under", 0.0),
    )

    report_raw = _section(raw, "report")
    report = ReportConfig(
        base_url=str(report_raw.get("base_url", os.environ.get("COVTRACK_BASE_URL", ""))),
        padding=int(_number(report_raw, "report", "padding", DEFAULT_PADDING)),
        format=str(report_raw.get("format", "markdown")),
    )

    github_raw = _section(raw, "github")
    github = GitHubConfig(
        comment_marker=str(github_raw.get("comment_marker", "covtrack:coverage")),
        token=str(github_raw.get("token", "")),
    )

    return CovtrackConfig(
        project=project,
        coverage=coverage,
        thresholds=thresholds,
        report=report,
        github=github,
        raw=raw,
    )


def _validate_threshold_config(thresholds: ThresholdConfig) -> list[str]:
    """Validate threshold settings."""
    errors: list[str] = []

    for name in ("error", "warn", "fail_under"):
        value = getattr(thresholds, name)
        if not 0.0 <= value <= _MAX_PERCENTAGE:
            errors.append(f"thresholds.{name} must be between 0 and 100 (got: {value})")

    if thresholds.error > thresholds.warn:
        errors.append(
            f"thresholds.error must not exceed thresholds.warn "
            f"(got: {thresholds.error} > {thresholds.warn})"
        )

    return errors


def _validate_report_config(report: ReportConfig) -> list[str]:
    """Validate report output settings."""
    errors: list[str] = []

    if report.padding < 1:
        errors.append(f"report.padding must be at least 1 (got: {report.padding})")

    if report.format not in REPORT_FORMATS:
        errors.append(
            f"report.format must be one of {', '.join(REPORT_FORMATS)} (got: {report.format})"
        )

    return errors


def validate_config(config: CovtrackConfig) -> list[str]:
    """Validate the configuration and return a list of error messages.

    Returns an empty list if the configuration is valid.
    """
    errors: list[str] = []

    if not config.project.root:
        errors.append("project.root is required")

    if not config.coverage.file:
        errors.append("coverage.file is required")

    errors.extend(_validate_threshold_config(config.thresholds))
    errors.extend(_validate_report_config(config.report))

    return errors
