"""Command line interface."""

from lcovlens.cli.main import cli

__all__ = ["cli"]
