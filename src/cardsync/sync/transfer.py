"""Sequential file transfer with progress events.

This module provides:
- transfer_files: Copy files from a source root to a target root, one at a time,
  yielding SyncProgressEvent as it goes

Per file the engine emits ``file-start``, zero or more ``progress`` events,
then ``file-complete`` or ``error``. A ``complete`` event ends a run that was
not cancelled. Fatal errors (source gone, disk full, stalled destination)
propagate out of the generator and no further files are attempted.
"""

from __future__ import annotations

import errno
import logging
import os
import time
from collections.abc import Iterator, Mapping, Sequence
from pathlib import Path

from cardsync.core.config import EngineConfig
from cardsync.core.types import SyncEventType
from cardsync.sync.renames import resolve_destination
from cardsync.sync.types import (
    CancelCheck,
    DiskFullError,
    FatalSyncError,
    InvalidDestinationError,
    SourceUnavailableError,
    SyncProgressEvent,
    TransferCancelledError,
)
from cardsync.sync.writer import BufferedFileWriter

logger = logging.getLogger(__name__)

_DISK_FULL_ERRNOS = frozenset(
    code for code in (errno.ENOSPC, getattr(errno, "EDQUOT", None)) if code is not None
)

_MIB = 1024 * 1024


def transfer_files(
    source_root: Path,
    target_root: Path,
    files: Sequence[str],
    rename_overlay: Mapping[str, str] | None = None,
    cancel_check: CancelCheck | None = None,
    config: EngineConfig | None = None,
) -> Iterator[SyncProgressEvent]:
    """Copy files from source_root to target_root in order.

    Destinations are overwritten without checking whether they exist. The
    destination modification and access times are set to the source mtime; if
    that fails the copy is kept and the file gets an ``error`` event.

    Args:
        source_root: Root the relative paths are resolved against.
        target_root: Root destinations are written under.
        files: Relative source paths, processed in order.
        rename_overlay: Optional original relative path -> destination name.
        cancel_check: Returns True once the run should stop.
        config: Engine tunables (defaults if omitted).

    Yields:
        SyncProgressEvent for each step.

    Raises:
        SourceUnavailableError: If the source root disappears mid-run.
        DiskFullError: If the destination runs out of space.
        DrainTimeoutError: If the destination stops accepting writes.
    """
    source_root = Path(source_root)
    target_root = Path(target_root)
    config = config or EngineConfig()
    is_cancelled = cancel_check or (lambda: False)
    total_files = len(files)

    for index, relative_path in enumerate(files, start=1):
        if is_cancelled():
            logger.info("Transfer cancelled before %s", relative_path)
            return

        try:
            yield from _transfer_one(
                source_root,
                target_root,
                relative_path,
                index,
                total_files,
                rename_overlay,
                is_cancelled,
                config,
            )
        except TransferCancelledError:
            logger.info("Transfer cancelled during %s", relative_path)
            return
        except FatalSyncError as e:
            logger.error("Fatal error on %s: %s", relative_path, e)
            raise
        except (OSError, InvalidDestinationError) as e:
            # A failing read is often the first sign of an unplugged card
            if not source_root.is_dir():
                logger.error("Source root %s disappeared during %s", source_root, relative_path)
                raise SourceUnavailableError(source_root) from e
            logger.error("Error syncing %s: %s", relative_path, e)
            yield SyncProgressEvent(
                type=SyncEventType.ERROR,
                file=relative_path,
                error=str(e),
                current_file_index=index,
                total_files=total_files,
            )

    if not is_cancelled():
        yield SyncProgressEvent(type=SyncEventType.COMPLETE, total_files=total_files)


def _percentage(transferred: int, total: int) -> int:
    if total <= 0:
        return 100
    return transferred * 100 // total


def _progress_event(
    relative_path: str,
    transferred: int,
    last_transferred: int,
    elapsed: float,
    total: int,
    index: int,
    total_files: int,
) -> SyncProgressEvent:
    speed = (transferred - last_transferred) / _MIB / elapsed if elapsed > 0 else 0.0
    return SyncProgressEvent(
        type=SyncEventType.PROGRESS,
        file=relative_path,
        transferred=transferred,
        total=total,
        percentage=_percentage(transferred, total),
        speed_mbps=round(speed, 2),
        current_file_index=index,
        total_files=total_files,
    )


def _remove_partial(path: Path) -> None:
    try:
        path.unlink()
        logger.debug("Removed partial file %s", path)
    except FileNotFoundError:
        pass
    except OSError as e:
        logger.error("Failed to clean up partial file %s: %s", path, e)


def _transfer_one(
    source_root: Path,
    target_root: Path,
    relative_path: str,
    index: int,
    total_files: int,
    rename_overlay: Mapping[str, str] | None,
    is_cancelled: CancelCheck,
    config: EngineConfig,
) -> Iterator[SyncProgressEvent]:
    """Copy a single file, yielding its start, progress and complete events."""
    source_path = source_root / relative_path
    destination = resolve_destination(target_root, relative_path, rename_overlay)

    stat = source_path.stat()
    total = stat.st_size
    mtime = stat.st_mtime

    yield SyncProgressEvent(
        type=SyncEventType.FILE_START,
        file=relative_path,
        total=total,
        current_file_index=index,
        total_files=total_files,
    )

    writer: BufferedFileWriter | None = None
    completed = False
    try:
        destination.parent.mkdir(parents=True, exist_ok=True)
        logger.debug("Copying %s -> %s (%d bytes)", source_path, destination, total)

        with open(source_path, "rb") as src:
            writer = BufferedFileWriter(destination, config, is_cancelled)
            last_time = time.monotonic()
            last_transferred = 0

            while True:
                if is_cancelled():
                    raise TransferCancelledError(f"Cancelled while copying {relative_path}")
                chunk = src.read(config.chunk_size)
                if not chunk:
                    break
                writer.write(chunk)

                now = time.monotonic()
                if now - last_time >= config.progress_interval:
                    # Bytes on the destination, not bytes still queued
                    transferred = writer.bytes_written
                    yield _progress_event(
                        relative_path, transferred, last_transferred, now - last_time,
                        total, index, total_files,
                    )
                    last_time = now
                    last_transferred = transferred

            writer.close()

        completed = True
        if total > 0 and last_transferred != total:
            yield _progress_event(
                relative_path, total, last_transferred, time.monotonic() - last_time,
                total, index, total_files,
            )

        # Keep the capture time instead of the copy time. A failure here is a
        # per-file error but the copy itself is kept.
        os.utime(destination, (mtime, mtime))
    except OSError as e:
        if e.errno in _DISK_FULL_ERRNOS:
            raise DiskFullError(destination) from e
        raise
    finally:
        if not completed and writer is not None:
            writer.abort()
            _remove_partial(destination)

    logger.info("Synced %s -> %s", relative_path, destination)
    yield SyncProgressEvent(
        type=SyncEventType.FILE_COMPLETE,
        file=relative_path,
        current_file_index=index,
        total_files=total_files,
    )
