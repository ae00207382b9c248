"""Device commands for the cardsync CLI.

Commands:
- devices list: Show configured devices
- devices add: Add or replace a device
"""

from __future__ import annotations

from pathlib import Path

import click

from cardsync.cli.config import get_device_store
from cardsync.core.devices import DeviceConfig


@click.group()
def devices() -> None:
    """Manage configured devices."""


@devices.command("list")
def list_cmd() -> None:
    """List configured devices."""
    configured = get_device_store().list_devices()
    if not configured:
        click.echo("No devices configured. Add one with 'cardsync devices add'.")
        return

    for device in configured:
        state = "connected" if device.is_connected else "not connected"
        click.echo(f"{device.name} ({state})")
        click.echo(f"  source: {device.source_root}")
        click.echo(f"  target: {device.target_root}")
        if device.ignore_extensions:
            click.echo(f"  ignore: {', '.join(sorted(device.ignore_extensions))}")


@devices.command("add")
@click.argument("name")
@click.argument("source", type=click.Path(path_type=Path))
@click.argument("target", type=click.Path(path_type=Path))
@click.option(
    "--ignore",
    "-i",
    "ignore",
    multiple=True,
    help="File extension to skip, e.g. .LRF (repeatable).",
)
def add_cmd(name: str, source: Path, target: Path, ignore: tuple[str, ...]) -> None:
    """Add or replace a device.

    Examples:

        cardsync devices add "Pocket 3" /Volumes/SD_Card/DCIM/DJI_001 /Volumes/T7/pocket3 -i .LRF
    """
    device = DeviceConfig(
        name=name,
        source_root=source,
        target_root=target,
        ignore_extensions=frozenset(ignore),
    )
    get_device_store().save_device(device)
    click.echo(f"Saved device: {name}")
