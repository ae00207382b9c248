"""Configuration utilities for the cardsync CLI.

This module provides shared helpers used across CLI commands.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import click

from cardsync.core.devices import DEVICES_FILENAME, DeviceConfig, DeviceNotFoundError, DeviceStore
from cardsync.sync.renames import RENAMES_FILENAME, RenameStore


def get_data_dir() -> Path:
    """Get the data directory selected for this invocation."""
    ctx = click.get_current_context()
    data_dir: Path = ctx.find_root().obj["data_dir"]
    return data_dir


def get_device_store() -> DeviceStore:
    """Get the device store in the data directory."""
    return DeviceStore(get_data_dir() / DEVICES_FILENAME)


def get_rename_store() -> RenameStore:
    """Get the rename overlay store in the data directory."""
    return RenameStore(get_data_dir() / RENAMES_FILENAME)


def load_device(device_id: str) -> DeviceConfig:
    """Load a device or exit with an error message."""
    try:
        return get_device_store().get(device_id)
    except DeviceNotFoundError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)


def format_size(size: int) -> str:
    """Format a byte count for display.

    Args:
        size: Number of bytes.

    Returns:
        Size in GB, MB, KB or B with two decimals.
    """
    if size >= 1024**3:
        return f"{size / 1024**3:.2f} GB"
    if size >= 1024**2:
        return f"{size / 1024**2:.2f} MB"
    if size >= 1024:
        return f"{size / 1024:.2f} KB"
    return f"{size} B"


def configure_logging(verbose: bool) -> None:
    """Send cardsync logs to stderr, at DEBUG if verbose."""
    root_logger = logging.getLogger("cardsync")
    root_logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(logging.Formatter("%(levelname)s: %(message)s"))
    root_logger.addHandler(handler)
