"""Scan and rename commands for the cardsync CLI.

Commands:
- scan: Show files on a device that are not on its target yet
- rename: Choose the name a device file gets on the target
"""

from __future__ import annotations

import sys

import click

from cardsync.cli.config import format_size, get_rename_store, load_device
from cardsync.sync.inventory import scan_device
from cardsync.sync.types import InvalidDestinationError, SourceUnavailableError


@click.command()
@click.argument("device_id")
def scan(device_id: str) -> None:
    """Show files of DEVICE_ID missing on its target."""
    device = load_device(device_id)
    try:
        result = scan_device(device)
    except SourceUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    overlay = get_rename_store().for_device(device_id)
    for relative_path in result.missing_files:
        renamed = overlay.get(relative_path)
        if renamed:
            click.echo(f"{relative_path} -> {renamed}")
        else:
            click.echo(relative_path)

    click.echo(
        f"{len(result.missing_files)} files missing "
        f"({format_size(result.total_missing_bytes)})"
    )


@click.command()
@click.argument("device_id")
@click.argument("original")
@click.argument("new_name")
def rename(device_id: str, original: str, new_name: str) -> None:
    """Copy ORIGINAL from DEVICE_ID as NEW_NAME on the target.

    The file on the device is not renamed.
    """
    load_device(device_id)
    try:
        get_rename_store().set(device_id, original, new_name)
    except InvalidDestinationError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)
    click.echo(f"{original} will be synced as {new_name}")
