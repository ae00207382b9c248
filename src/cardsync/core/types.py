"""Shared types for cardsync.

This module defines enums used by the engine, the job manager and the API.
"""

from __future__ import annotations

from enum import Enum


class JobStatus(str, Enum):
    """Status of a sync job.

    Used by the job manager to track the current job and by the
    HTTP API when reporting it to pollers.
    """

    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    ERROR = "error"


class SyncEventType(str, Enum):
    """Kind of a progress event emitted by the transfer engine."""

    FILE_START = "file-start"
    PROGRESS = "progress"
    FILE_COMPLETE = "file-complete"
    ERROR = "error"
    COMPLETE = "complete"
