"""covtrack CLI: top-level command group."""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Any

import click
import yaml
from rich.console import Console
from rich.logging import RichHandler

from covtrack import __version__
from covtrack.adapters.coverage import CoverageFileError, find_coverage_file, load_coverage
from covtrack.analyzers.tree import aggregate
from covtrack.config import (
    REPORT_FORMATS,
    ConfigError,
    CovtrackConfig,
    load_config,
    validate_config,
)
from covtrack.reporters.comment import RenderedReport, build_comment, default_base_url, render
from covtrack.reporters.delta import DeltaFormatter
from covtrack.reporters.github_comment import post_comment_from_env
from covtrack.reporters.json_reporter import JSONReporter
from covtrack.reporters.terminal import reporter
from covtrack.utils.git import GitHubAPIError

if TYPE_CHECKING:
    from collections.abc import Callable

    from covtrack.models.coverage import CoverageTree

logger = logging.getLogger(__name__)

# Exit code when project coverage is below --fail-under
EXIT_BELOW_THRESHOLD = 2

_SENSITIVE_KEYS = frozenset({"token"})


@dataclass
class _ReportRun:
    """Everything one report run produces."""

    config: CovtrackConfig
    tree: CoverageTree
    prior: CoverageTree | None
    rendered: RenderedReport
    base_url: str

    @property
    def comment(self) -> str:
        return build_comment(self.rendered, self.base_url or None)


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _load_config(path: str) -> CovtrackConfig:
    try:
        return load_config(path)
    except ConfigError as exc:
        raise click.ClickException(f"Invalid configuration: {exc}") from exc


def _load_validated_config(path: str) -> CovtrackConfig:
    config = _load_config(path)
    errors = validate_config(config)
    if errors:
        raise click.ClickException("Invalid configuration:\n  " + "\n  ".join(errors))
    return config


def _aggregate_file(coverage_file: Path, base_path: Path) -> CoverageTree:
    try:
        files = load_coverage(coverage_file)
    except CoverageFileError as exc:
        raise click.ClickException(str(exc)) from exc
    return aggregate(files, base_path)


def _coverage_path(config: CovtrackConfig, coverage_file: str | None) -> Path:
    """Explicit file, else the configured one, else the first standard Istanbul output."""
    if coverage_file:
        return config.resolve_path(coverage_file)

    configured = config.resolve_path(config.coverage.file)
    if configured.is_file():
        return configured

    found = find_coverage_file(Path(config.project.root))
    if found is None:
        return configured
    logger.info("%s not found, using %s", configured, found)
    return found


def _report_url(config: CovtrackConfig, base_url: str | None, *, links: bool) -> str:
    """Option, then ``report.base_url``, then ``/pub/<project>/lcov-report``."""
    if not links:
        return ""
    url = base_url if base_url is not None else config.report.base_url
    if not url:
        url = default_base_url(config.project.name)
    return url.rstrip("/")


def _run_report(
    path: str,
    coverage_file: str | None,
    prior_file: str | None,
    base_path: str | None,
    base_url: str | None,
    *,
    links: bool = True,
) -> _ReportRun:
    """Load configuration and coverage, aggregate, and render."""
    config = _load_validated_config(path)

    current_path = _coverage_path(config, coverage_file)
    prior_value = prior_file if prior_file is not None else config.coverage.prior_file
    root = Path(base_path).resolve() if base_path else config.base_path
    url = _report_url(config, base_url, links=links)

    logger.info("Reading coverage from %s (base path %s)", current_path, root)
    tree = _aggregate_file(current_path, root)
    prior = _aggregate_file(config.resolve_path(prior_value), root) if prior_value else None

    formatter = DeltaFormatter(config.thresholds.to_thresholds(), config.report.padding)
    rendered = render(tree, prior=prior, base_url=url or None, formatter=formatter)
    return _ReportRun(config=config, tree=tree, prior=prior, rendered=rendered, base_url=url)


def _check_fail_under(ctx: click.Context, run: _ReportRun, fail_under: float | None) -> None:
    threshold = fail_under if fail_under is not None else run.config.thresholds.fail_under
    percent = run.tree.project.stats.percent
    if threshold and percent < threshold:
        reporter.print_error(f"Coverage {percent:.2f}% is below the required {threshold:.2f}%")
        ctx.exit(EXIT_BELOW_THRESHOLD)


def _mask_sensitive_values(data: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``data`` with token-like values masked."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, dict):
            result[key] = _mask_sensitive_values(value)
        elif key in _SENSITIVE_KEYS and isinstance(value, str) and value:
            result[key] = "***"
        else:
            result[key] = value
    return result


def _report_inputs(func: Callable[..., Any]) -> Callable[..., Any]:
    """Attach the options shared by every command that renders a report."""
    options = [
        click.option(
            "--path",
            default=".",
            type=click.Path(exists=True, file_okay=False, resolve_path=True),
            help="Project root directory (where .covtrack.yml lives).",
        ),
        click.option(
            "--coverage-file",
            type=click.Path(dir_okay=False),
            default=None,
            help="Istanbul coverage-final.json or coverage-summary.json.",
        ),
        click.option(
            "--prior",
            "prior_file",
            type=click.Path(dir_okay=False),
            default=None,
            help="Coverage file of a previous run, to show deltas.",
        ),
        click.option(
            "--base-path",
            type=click.Path(file_okay=False),
            default=None,
            help="Folder keys are relative to this path (default: project root).",
        ),
        click.option(
            "--base-url",
            default=None,
            help="Root URL of the html coverage report (default: /pub/<project>/lcov-report).",
        ),
        click.option(
            "--links/--no-links",
            default=True,
            help="Link the heading and rows into the html report.",
        ),
        click.option(
            "--fail-under",
            type=click.FloatRange(0, 100),
            default=None,
            help="Exit with status 2 when project coverage is below this percentage.",
        ),
    ]
    for option in reversed(options):
        func = option(func)
    return func


@click.group()
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging on stderr.")
@click.version_option(version=__version__, prog_name="covtrack")
@click.pass_context
def cli(ctx: click.Context, *, verbose: bool) -> None:
    """covtrack: coverage delta reports for pull request comments."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    _configure_logging(verbose)


@cli.command()
@_report_inputs
@click.option(
    "--format",
    "output_format",
    type=click.Choice(REPORT_FORMATS),
    default=None,
    help="Output format (default: report.format from config).",
)
@click.option(
    "--output",
    "-o",
    type=click.Path(dir_okay=False, writable=True),
    default=None,
    help="Write the report to this file instead of stdout.",
)
@click.pass_context
def report(
    ctx: click.Context,
    path: str,
    coverage_file: str | None,
    prior_file: str | None,
    base_path: str | None,
    base_url: str | None,
    links: bool,
    fail_under: float | None,
    output_format: str | None,
    output: str | None,
) -> None:
    """Render the coverage report for the current run."""
    run = _run_report(path, coverage_file, prior_file, base_path, base_url, links=links)
    fmt = output_format or run.config.report.format

    if fmt == "terminal":
        if output is not None:
            raise click.UsageError(
                "The terminal format cannot be written to a file; use --format markdown or json."
            )
        reporter.print_coverage_tree(run.tree, run.prior, run.config.thresholds.to_thresholds())
    else:
        if fmt == "json":
            text = JSONReporter().generate_string(run.tree, prior=run.prior)
        else:
            text = run.comment
        if output:
            Path(output).write_text(text, encoding="utf-8")
            reporter.print_success(f"Report written to {output}")
        else:
            click.echo(text)

    _check_fail_under(ctx, run, fail_under)


@cli.command()
@_report_inputs
@click.option(
    "--token",
    default=None,
    help="GitHub token (default: github.token from config, then GITHUB_TOKEN).",
)
@click.pass_context
def comment(
    ctx: click.Context,
    path: str,
    coverage_file: str | None,
    prior_file: str | None,
    base_path: str | None,
    base_url: str | None,
    links: bool,
    fail_under: float | None,
    token: str | None,
) -> None:
    """Post the coverage report as a comment on the current pull request."""
    run = _run_report(path, coverage_file, prior_file, base_path, base_url, links=links)

    try:
        result = post_comment_from_env(
            run.comment,
            github_token=token or run.config.github.token or None,
            marker_prefix=run.config.github.comment_marker,
        )
    except GitHubAPIError as exc:
        raise click.ClickException(f"Failed to post coverage comment: {exc}") from exc

    if result is None:
        reporter.print_warning("Not running for a GitHub pull request; comment not posted.")
        click.echo(run.comment)
    else:
        reporter.print_success(f"Posted coverage comment: {result['comment_url']}")

    _check_fail_under(ctx, run, fail_under)


@cli.group("config")
def config_group() -> None:
    """Inspect `.covtrack.yml` configuration."""


@config_group.command("show")
@click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)
def config_show(path: str) -> None:
    """Print the effective configuration as YAML."""
    config = _load_config(path)
    data = asdict(config)
    data.pop("raw", None)
    click.echo(yaml.safe_dump(_mask_sensitive_values(data), sort_keys=False).rstrip())

    for error in validate_config(config):
        reporter.print_warning(error)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
