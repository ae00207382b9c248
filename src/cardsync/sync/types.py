"""Shared types and dataclasses for sync operations.

This module provides:
- FileRecord: Inventory entry for one file
- ScanResult: Result of scanning a device against its target
- SyncProgressEvent: Event emitted by the transfer engine
- SyncError and subclasses: Exception classes
- CancelCheck: Type alias for cancellation callbacks
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from cardsync.core.types import SyncEventType


@dataclass(frozen=True)
class FileRecord:
    """Metadata about one file found by an inventory scan.

    Attributes:
        relative_path: POSIX-style path relative to the scan root.
        size: Size in bytes.
        mtime: Modification time (seconds since the epoch).
    """

    relative_path: str
    size: int
    mtime: float


@dataclass
class ScanResult:
    """Result of comparing a device's source tree with its target tree."""

    missing_files: list[str]
    source_root: Path
    target_root: Path
    total_missing_bytes: int
    source_count: int = 0
    target_count: int = 0


@dataclass
class SyncProgressEvent:
    """Progress information emitted by the transfer engine.

    Only the fields relevant to the event type are set.

    Attributes:
        type: Event kind.
        file: Relative source path of the file concerned.
        transferred: Bytes written so far for this file.
        total: Size of the file in bytes.
        percentage: floor(transferred / total * 100).
        speed_mbps: Throughput over the last sample window, in MiB/s.
        current_file_index: 1-based position of the file in the job.
        total_files: Number of files in the job.
        error: Error message for ``error`` events.
    """

    type: SyncEventType
    file: str | None = None
    transferred: int | None = None
    total: int | None = None
    percentage: int | None = None
    speed_mbps: float | None = None
    current_file_index: int | None = None
    total_files: int | None = None
    error: str | None = None

    @property
    def is_terminal_for_file(self) -> bool:
        """Check if this event ends a file attempt."""
        return self.type in (SyncEventType.FILE_COMPLETE, SyncEventType.ERROR)

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict, dropping unset fields."""
        data: dict[str, Any] = {"type": self.type.value}
        for name in (
            "file",
            "transferred",
            "total",
            "percentage",
            "speed_mbps",
            "current_file_index",
            "total_files",
            "error",
        ):
            value = getattr(self, name)
            if value is not None:
                data[name] = value
        return data


# Type alias for cancellation checks (returns True once cancelled)
CancelCheck = Callable[[], bool]


class SyncError(Exception):
    """Base exception for sync errors."""


class FatalSyncError(SyncError):
    """Failure that aborts the remaining files of a job."""


class SourceUnavailableError(FatalSyncError):
    """The source root is gone (device disconnected or unmounted)."""

    def __init__(self, root: Path | str) -> None:
        self.root = Path(root)
        super().__init__(f"Device disconnected: source root {self.root} is not available")


class DiskFullError(FatalSyncError):
    """The destination ran out of space."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)
        super().__init__(f"No space left on destination while writing {self.path}")


class DrainTimeoutError(FatalSyncError):
    """The destination stopped accepting writes for too long."""

    def __init__(self, path: Path | str, timeout: float) -> None:
        self.path = Path(path)
        self.timeout = timeout
        super().__init__(
            f"Destination write stalled for more than {timeout:g}s while writing {self.path}"
        )


class TransferCancelledError(SyncError):
    """Raised inside the engine when cancellation is observed."""


class JobConflictError(SyncError):
    """Another device already has a running job.

    Attributes:
        active_device_id: Device owning the running job.
    """

    def __init__(self, active_device_id: str) -> None:
        self.active_device_id = active_device_id
        super().__init__(f"Another sync job is running for device: {active_device_id}")


class DestinationCollisionError(SyncError):
    """Two files of a job would be written to the same destination."""

    def __init__(self, destination: str, first: str, second: str) -> None:
        self.destination = destination
        self.first = first
        self.second = second
        super().__init__(
            f"Files {first!r} and {second!r} both map to destination {destination!r}"
        )


class InvalidDestinationError(SyncError):
    """A destination name would escape the target root."""

    def __init__(self, path: str) -> None:
        self.path = path
        super().__init__(f"Destination {path!r} is outside the target folder")
