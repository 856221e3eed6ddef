"""lcovlens summary command - per-file coverage of the workspace."""

import asyncio
import json
from pathlib import Path

import click
from rich.console import Console

from lcovlens.cli.utils import build_aggregator, load_workspace_config, make_summary_table
from lcovlens.coverage.report import build_report


@click.command()
@click.option("--json", "as_json", is_flag=True, help="Output as JSON")
@click.pass_context
def summary_command(ctx: click.Context, as_json: bool) -> None:
    """Load the configured LCOV files once and print per-file coverage."""
    root: Path = ctx.obj["root"]
    config = load_workspace_config(root, verbose=ctx.obj["verbose"])
    aggregator = build_aggregator(config, root)

    asyncio.run(aggregator.refresh())

    if as_json:
        click.echo(json.dumps(build_report(aggregator.snapshot, root), indent=2))
        return

    console = Console()
    if aggregator.is_empty():
        console.print("No coverage data found.")
        for path in aggregator.paths:
            console.print(f"  looked in: {path}", highlight=False)
        return
    console.print(make_summary_table(aggregator.summaries(root)))
