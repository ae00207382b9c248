"""Command-line interface for cardsync.

This module provides the main CLI entry point and assembles all commands.

Commands:
- devices list / devices add: Manage configured devices
- scan: Show files missing on a device's target
- sync: Copy missing files with progress
- rename: Set the destination name of a device file
- serve: Run the HTTP API
"""

from __future__ import annotations

from pathlib import Path

import click

from cardsync.cli.config import configure_logging, format_size
from cardsync.cli.devices import devices
from cardsync.cli.scan import rename, scan
from cardsync.cli.server import serve
from cardsync.cli.sync import sync
from cardsync.core.config import get_data_dir


@click.group()
@click.version_option(package_name="cardsync")
@click.option(
    "--data-dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Folder holding devices.json and rename_cache.json (default: CARDSYNC_DATA_DIR or ./data).",
)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logs.")
@click.pass_context
def cli(ctx: click.Context, data_dir: Path | None, verbose: bool) -> None:
    """cardsync - Copy new files from camera cards to storage."""
    configure_logging(verbose)
    ctx.ensure_object(dict)
    ctx.obj["data_dir"] = data_dir or get_data_dir()


# Device commands
cli.add_command(devices)

# Sync commands
cli.add_command(scan)
cli.add_command(sync)
cli.add_command(rename)

# Server command
cli.add_command(serve)


def main() -> None:
    """Entry point for the CLI."""
    cli()


__all__ = [
    "cli",
    "format_size",
    "main",
]
