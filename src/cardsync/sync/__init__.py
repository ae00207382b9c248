"""Sync module - Inventory diffing, transfers and the job manager.

This module provides the building blocks for copying new files from a device:
- scan, diff, scan_device: Work out which files are missing on the target
- RenameStore: Per-device destination name overrides
- transfer_files: Sequential copy with progress events and cancellation
- SyncManager: Single-flight owner of the running job
"""

from cardsync.sync.inventory import diff, is_ignored, missing_bytes, scan, scan_device
from cardsync.sync.manager import JobSnapshot, SyncJob, SyncManager
from cardsync.sync.renames import (
    RENAMES_FILENAME,
    RenameStore,
    check_collisions,
    resolve_destination,
    validate_destination_name,
)
from cardsync.sync.transfer import transfer_files
from cardsync.sync.types import (
    CancelCheck,
    DestinationCollisionError,
    DiskFullError,
    DrainTimeoutError,
    FatalSyncError,
    FileRecord,
    InvalidDestinationError,
    JobConflictError,
    ScanResult,
    SourceUnavailableError,
    SyncError,
    SyncProgressEvent,
    TransferCancelledError,
)
from cardsync.sync.writer import BufferedFileWriter

__all__ = [
    # Inventory
    "diff",
    "is_ignored",
    "missing_bytes",
    "scan",
    "scan_device",
    # Renames
    "RENAMES_FILENAME",
    "RenameStore",
    "check_collisions",
    "resolve_destination",
    "validate_destination_name",
    # Transfer
    "BufferedFileWriter",
    "transfer_files",
    # Manager
    "JobSnapshot",
    "SyncJob",
    "SyncManager",
    # Types
    "CancelCheck",
    "FileRecord",
    "ScanResult",
    "SyncProgressEvent",
    # Exceptions
    "DestinationCollisionError",
    "DiskFullError",
    "DrainTimeoutError",
    "FatalSyncError",
    "InvalidDestinationError",
    "JobConflictError",
    "SourceUnavailableError",
    "SyncError",
    "TransferCancelledError",
]
