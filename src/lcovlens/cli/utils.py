"""CLI utilities."""

from pathlib import Path

import click
from rich.table import Table

from lcovlens.config.loader import load_config
from lcovlens.config.models import LcovLensConfig
from lcovlens.core.errors import LcovLensError
from lcovlens.core.logging import configure_logging
from lcovlens.coverage.aggregator import CoverageAggregator
from lcovlens.coverage.context import CoverageContext
from lcovlens.coverage.models import FileSummary
from lcovlens.coverage.report import coverage_percent


def load_workspace_config(root: Path, *, verbose: bool = False) -> LcovLensConfig:
    """Load the workspace config and configure logging from it.

    Raises:
        click.ClickException: If the configuration is invalid.
    """
    try:
        config = load_config(root)
    except LcovLensError as e:
        raise click.ClickException(str(e)) from e
    if verbose:
        config.logging.level = "DEBUG"
    configure_logging(config=config.logging)
    return config


def build_aggregator(config: LcovLensConfig, root: Path) -> CoverageAggregator:
    return CoverageAggregator(
        config.coverage.resolved_paths(root),
        CoverageContext(),
        source_maps=config.coverage.source_maps,
        directory_rule=config.coverage.directory_rule(),
    )


def _cell(found: int, hit: int) -> str:
    percent = coverage_percent(hit, found)
    if percent is None:
        return "[dim]n/a[/dim]"
    return f"{percent}% [dim]({hit}/{found})[/dim]"


def make_summary_table(summaries: list[FileSummary]) -> Table:
    """Per-file coverage table."""
    table = Table(show_header=True, box=None, padding=(0, 1), pad_edge=False)
    table.add_column("File", overflow="fold")
    table.add_column("Lines", justify="right")
    table.add_column("Branches", justify="right")
    table.add_column("Functions", justify="right")
    for s in summaries:
        table.add_row(
            s.relative_path,
            _cell(s.lines.found, s.lines.hit),
            _cell(s.branches.found, s.branches.hit),
            _cell(s.functions.found, s.functions.hit),
        )
    return table
