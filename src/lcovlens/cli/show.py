"""lcovlens show command - coverage details for one source file."""

import asyncio
from pathlib import Path

import click
from rich.console import Console

from lcovlens.cli.utils import build_aggregator, load_workspace_config
from lcovlens.coverage.report import format_status
from lcovlens.decorations import (
    BranchState,
    compute_branch_decorations,
    compute_line_decorations,
)

_BRANCH_STYLES = {
    BranchState.COVERED: "black on green",
    BranchState.MISSED: "white on red",
    BranchState.PARTIAL: "white on black",
}


def _ranges(lines: list[int]) -> str:
    """Compress sorted line numbers: [1, 2, 3, 7] -> "1-3, 7"."""
    parts: list[str] = []
    start = prev = None
    for line in sorted(set(lines)):
        if prev is not None and line == prev + 1:
            prev = line
            continue
        if start is not None:
            parts.append(str(start) if start == prev else f"{start}-{prev}")
        start = prev = line
    if start is not None:
        parts.append(str(start) if start == prev else f"{start}-{prev}")
    return ", ".join(parts)


@click.command()
@click.argument("file", type=click.Path(path_type=Path))
@click.pass_context
def show_command(ctx: click.Context, file: Path) -> None:
    """Show the coverage status and decorations of FILE.

    FILE is resolved against the workspace root.
    """
    root: Path = ctx.obj["root"]
    config = load_workspace_config(root, verbose=ctx.obj["verbose"])
    aggregator = build_aggregator(config, root)
    asyncio.run(aggregator.refresh())

    target = file if file.is_absolute() else root / file
    record = aggregator.get(target)

    console = Console()
    console.print(format_status(record), highlight=False)
    if record is None:
        return

    lines = compute_line_decorations(record.lines.details)
    console.print(f"Covered lines: {_ranges(lines.covered) or '-'}", highlight=False)
    console.print(f"Missed lines: {_ranges(lines.missed) or '-'}", highlight=False)

    decorations = compute_branch_decorations(record.branches.details)
    if decorations:
        console.print("Branches:")
    for deco in decorations:
        console.print(
            f"  {deco.line:>5} ",
            f"[{_BRANCH_STYLES[deco.state]}]{deco.text}[/]",
            f" {deco.state.value} ({deco.taken}/{deco.total})",
            sep="",
            highlight=False,
        )
