"""Sync command for the cardsync CLI.

Commands:
- sync: Copy missing files from a device to its target
"""

from __future__ import annotations

import sys
import time

import click

from cardsync.cli.config import format_size, get_rename_store, load_device
from cardsync.core.config import EngineConfig
from cardsync.core.types import JobStatus, SyncEventType
from cardsync.sync.inventory import scan_device
from cardsync.sync.manager import SyncJob, SyncManager
from cardsync.sync.types import (
    DestinationCollisionError,
    InvalidDestinationError,
    SourceUnavailableError,
)

POLL_INTERVAL = 0.5


def _print_new_events(job: SyncJob, already_printed: int) -> int:
    """Print history entries not shown yet and return the new count."""
    for event in job.history[already_printed:]:
        prefix = f"[{event.current_file_index}/{event.total_files}]"
        if event.type == SyncEventType.FILE_COMPLETE:
            click.echo(f"{prefix} {event.file}")
        else:
            click.echo(f"{prefix} {event.file}: {event.error}", err=True)
    return len(job.history)


def _progress_line(job: SyncJob) -> str | None:
    event = job.current_progress
    if event is None or event.type != SyncEventType.PROGRESS:
        return None
    return (
        f"  {event.file}: {event.percentage}% "
        f"({format_size(event.transferred or 0)} / {format_size(event.total or 0)}, "
        f"{event.speed_mbps:.1f} MB/s)"
    )


@click.command()
@click.argument("device_id")
@click.option(
    "--file",
    "-f",
    "files",
    multiple=True,
    help="Relative path to copy (repeatable). Default: everything missing.",
)
@click.option("--no-progress", is_flag=True, help="Only print finished files.")
def sync(device_id: str, files: tuple[str, ...], no_progress: bool) -> None:
    """Copy files of DEVICE_ID that are missing on its target.

    Press Ctrl-C to cancel; the file being copied is removed.
    """
    device = load_device(device_id)

    try:
        result = scan_device(device)
    except SourceUnavailableError as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    to_copy = list(files) if files else result.missing_files
    if not to_copy:
        click.echo("Nothing to sync.")
        return

    click.echo(
        f"Syncing {len(to_copy)} files from {device.source_root} to {device.target_root}"
    )
    if not files:
        click.echo(f"Total: {format_size(result.total_missing_bytes)}")

    manager = SyncManager(EngineConfig.from_env())
    try:
        manager.start(
            device_id,
            device.source_root,
            device.target_root,
            to_copy,
            rename_overlay=get_rename_store().for_device(device_id),
        )
    except (DestinationCollisionError, InvalidDestinationError) as e:
        click.echo(f"Error: {e}", err=True)
        sys.exit(1)

    printed = 0
    last_line: str | None = None
    try:
        while True:
            snapshot = manager.status()
            job = snapshot.job
            if job is not None:
                printed = _print_new_events(job, printed)
                line = _progress_line(job)
                if not no_progress and line and line != last_line:
                    click.echo(line)
                    last_line = line
            if snapshot.status != JobStatus.SYNCING:
                break
            time.sleep(POLL_INTERVAL)
    except KeyboardInterrupt:
        click.echo("\nCancelling...", err=True)
        manager.stop()
        click.echo("Sync cancelled.", err=True)
        sys.exit(130)

    if job is None:
        return
    if snapshot.status == JobStatus.ERROR:
        click.echo(f"Error: {job.error_message}", err=True)
        sys.exit(1)

    failed = job.failed_files
    click.echo(f"Done: {len(job.completed_files)} synced, {len(failed)} failed.")
    if failed:
        sys.exit(1)
