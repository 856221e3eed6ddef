"""lcovlens watch command - keep the summary up to date as reports change."""

import asyncio
import contextlib
from pathlib import Path

import click
from rich.console import Console

from lcovlens.cli.utils import build_aggregator, load_workspace_config, make_summary_table
from lcovlens.config.models import LcovLensConfig
from lcovlens.watch.watcher import CoverageFileWatcher


async def _watch(config: LcovLensConfig, root: Path, console: Console) -> None:
    aggregator = build_aggregator(config, root)

    def print_summary() -> None:
        console.rule(f"coverage generation {aggregator.generation}", style="dim cyan")
        if aggregator.is_empty():
            console.print("No coverage data found.")
        else:
            console.print(make_summary_table(aggregator.summaries(root)))

    aggregator.on_change(print_summary)
    await aggregator.refresh()

    watcher = CoverageFileWatcher(
        paths=[Path(p) for p in aggregator.paths],
        on_change=aggregator.handle_paths_changed,
        poll_interval=config.watcher.poll_interval_sec,
        debounce_window=config.watcher.debounce_sec,
        max_debounce_wait=config.watcher.max_debounce_wait_sec,
        force_polling=config.watcher.force_polling,
    )
    await watcher.start()
    try:
        await asyncio.Event().wait()
    finally:
        await watcher.stop()
        await aggregator.wait_idle()


@click.command()
@click.pass_context
def watch_command(ctx: click.Context) -> None:
    """Print the summary, then re-print it whenever an LCOV file changes.

    Runs until interrupted with Ctrl+C.
    """
    root: Path = ctx.obj["root"]
    config = load_workspace_config(root, verbose=ctx.obj["verbose"])
    console = Console()
    with contextlib.suppress(KeyboardInterrupt):
        asyncio.run(_watch(config, root, console))
    console.print("[dim]stopped[/dim]")
