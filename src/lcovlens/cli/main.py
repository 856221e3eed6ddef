"""lcovlens CLI."""

from pathlib import Path

import click

from lcovlens.cli.show import show_command
from lcovlens.cli.summary import summary_command
from lcovlens.cli.watch import watch_command


@click.group()
@click.version_option(version="0.1.0", prog_name="lcovlens")
@click.option("-v", "--verbose", is_flag=True, help="Enable debug logging")
@click.option(
    "--root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    help="Workspace root (holds .lcovlens.yaml; relative LCOV paths resolve against it)",
)
@click.pass_context
def cli(ctx: click.Context, verbose: bool, root: Path) -> None:
    """lcovlens - LCOV coverage viewer with source map support."""
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["root"] = root.resolve()


cli.add_command(summary_command, name="summary")
cli.add_command(show_command, name="show")
cli.add_command(watch_command, name="watch")


if __name__ == "__main__":
    cli()
