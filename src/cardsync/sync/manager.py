"""Single-flight sync job manager.

This module provides:
- SyncJob: State of one transfer run, as seen by pollers
- JobSnapshot: Read-only copy of the manager state
- SyncManager: Owns at most one running job and drives the transfer engine

The manager runs the transfer engine on its own thread and turns each
progress event into job state. Status queries copy that state under a lock
and never wait on I/O.

State machine:
    idle -> syncing -> completed | error | idle (cancelled)

Usage:
    manager = SyncManager()
    job_id = manager.start("Pocket 3", source_root, target_root, files)
    snapshot = manager.status()
    manager.stop()
"""

from __future__ import annotations

import copy
import logging
import threading
import uuid
from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from cardsync.core.config import EngineConfig
from cardsync.core.types import JobStatus, SyncEventType
from cardsync.sync.renames import check_collisions
from cardsync.sync.transfer import transfer_files
from cardsync.sync.types import JobConflictError, SyncError, SyncProgressEvent

logger = logging.getLogger(__name__)


@dataclass
class SyncJob:
    """One run of the transfer engine over a fixed file list.

    Attributes:
        id: Unique job id.
        device_id: Device the files come from.
        files: Relative source paths, in transfer order.
        source_root: Source root of the device.
        target_root: Target root of the device.
        status: Current status.
        current_progress: Latest event from the engine.
        history: file-complete and error events, in order.
        error_message: Message of the fatal error, if any.
        start_time: When the job was started.
        finished_at: When the engine stopped, if it has.
    """

    id: str
    device_id: str
    files: list[str]
    source_root: Path
    target_root: Path
    status: JobStatus = JobStatus.SYNCING
    current_progress: SyncProgressEvent | None = None
    history: list[SyncProgressEvent] = field(default_factory=list)
    error_message: str | None = None
    start_time: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    finished_at: datetime | None = None

    @property
    def completed_files(self) -> list[str]:
        """Files that finished successfully."""
        return [
            e.file for e in self.history
            if e.type == SyncEventType.FILE_COMPLETE and e.file is not None
        ]

    @property
    def failed_files(self) -> list[str]:
        """Files that hit a per-file error."""
        return [e.file for e in self.history if e.type == SyncEventType.ERROR and e.file is not None]

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dict."""
        return {
            "id": self.id,
            "device_id": self.device_id,
            "files": list(self.files),
            "source_root": str(self.source_root),
            "target_root": str(self.target_root),
            "status": self.status.value,
            "current_progress": (
                self.current_progress.to_dict() if self.current_progress else None
            ),
            "history": [e.to_dict() for e in self.history],
            "error_message": self.error_message,
            "start_time": self.start_time.isoformat(),
            "finished_at": self.finished_at.isoformat() if self.finished_at else None,
        }


@dataclass
class JobSnapshot:
    """Copy of the manager state returned by SyncManager.status()."""

    status: JobStatus
    job: SyncJob | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "status": self.status.value,
            "job": self.job.to_dict() if self.job else None,
        }


@dataclass
class _JobRunner:
    """A job together with the handles that drive it."""

    job: SyncJob
    cancel_event: threading.Event = field(default_factory=threading.Event)
    thread: threading.Thread | None = None


class SyncManager:
    """Owns at most one sync job at a time.

    Starting a job for a device while another device's job is syncing fails
    with JobConflictError. Starting again for the same device returns the
    running job's id.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        """Initialize the manager.

        Args:
            config: Engine tunables passed to every run.
        """
        self._config = config or EngineConfig()
        self._lock = threading.Lock()
        self._runner: _JobRunner | None = None

    @property
    def config(self) -> EngineConfig:
        return self._config

    @property
    def is_syncing(self) -> bool:
        """Check if a job is currently syncing."""
        with self._lock:
            return self._runner is not None and self._runner.job.status == JobStatus.SYNCING

    def start(
        self,
        device_id: str,
        source_root: Path,
        target_root: Path,
        files: Sequence[str],
        rename_overlay: Mapping[str, str] | None = None,
    ) -> str:
        """Start syncing files for a device in the background.

        Args:
            device_id: Device the files belong to.
            source_root: Device source root.
            target_root: Device target root.
            files: Relative source paths to copy, in order.
            rename_overlay: Original relative path -> destination name.

        Returns:
            Id of the started job, or of the job already running for this device.

        Raises:
            ValueError: If files is empty.
            DestinationCollisionError: If two files map to the same destination.
            InvalidDestinationError: If a destination would leave the target root.
            JobConflictError: If another device's job is syncing.
        """
        files = list(files)
        if not files:
            raise ValueError("No files specified")
        overlay = dict(rename_overlay or {})
        check_collisions(files, overlay)

        with self._lock:
            active = self._runner
            if active is not None and active.job.status == JobStatus.SYNCING:
                if active.job.device_id == device_id:
                    logger.info("Sync already running for %s (job %s)", device_id, active.job.id)
                    return active.job.id
                raise JobConflictError(active.job.device_id)

            job = SyncJob(
                id=uuid.uuid4().hex,
                device_id=device_id,
                files=files,
                source_root=Path(source_root),
                target_root=Path(target_root),
            )
            runner = _JobRunner(job=job)
            runner.thread = threading.Thread(
                target=self._run,
                args=(runner, overlay),
                name=f"SyncJob-{job.id}",
                daemon=True,
            )
            self._runner = runner
            runner.thread.start()

        logger.info("Started sync job %s for %s: %d files", job.id, device_id, len(files))
        return job.id

    def _run(self, runner: _JobRunner, overlay: dict[str, str]) -> None:
        """Drive the transfer engine and record its events on the job."""
        job = runner.job
        cancel_event = runner.cancel_event

        try:
            events = transfer_files(
                job.source_root,
                job.target_root,
                job.files,
                rename_overlay=overlay,
                cancel_check=cancel_event.is_set,
                config=self._config,
            )
            for event in events:
                if event.type == SyncEventType.ERROR:
                    logger.error("Sync error: %s (file: %s)", event.error, event.file)
                with self._lock:
                    job.current_progress = event
                    if event.is_terminal_for_file:
                        job.history.append(event)
        except SyncError as e:
            logger.error("Sync job %s failed: %s", job.id, e)
            with self._lock:
                job.status = JobStatus.ERROR
                job.error_message = str(e)
        except Exception as e:
            logger.exception("Sync job %s crashed", job.id)
            with self._lock:
                job.status = JobStatus.ERROR
                job.error_message = f"Unexpected error: {e}"
        else:
            with self._lock:
                if cancel_event.is_set():
                    job.status = JobStatus.IDLE
                else:
                    job.status = JobStatus.COMPLETED
            if cancel_event.is_set():
                logger.info("Sync job %s cancelled", job.id)
            else:
                logger.info(
                    "Sync job %s completed: %d synced, %d failed",
                    job.id,
                    len(job.completed_files),
                    len(job.failed_files),
                )
        finally:
            with self._lock:
                job.finished_at = datetime.now(timezone.utc)

    def status(self) -> JobSnapshot:
        """Get a copy of the current state. Never blocks on the transfer."""
        with self._lock:
            runner = self._runner
            if runner is None:
                return JobSnapshot(status=JobStatus.IDLE)
            job = copy.deepcopy(runner.job)
        return JobSnapshot(status=job.status, job=job)

    def stop(self, grace_period: float | None = None) -> bool:
        """Cancel the current job and discard it.

        Waits up to grace_period seconds for the engine to unwind (it removes
        the partially written file on its way out). The manager is idle
        afterwards whether or not the engine finished in time.

        Args:
            grace_period: Seconds to wait (default: config.stop_grace_period).

        Returns:
            True if there was a job to stop or clear.
        """
        with self._lock:
            runner = self._runner
            if runner is None:
                return False
            runner.cancel_event.set()

        if grace_period is None:
            grace_period = self._config.stop_grace_period

        if runner.thread is not None and runner.thread.is_alive():
            logger.info("Stopping sync job %s", runner.job.id)
            runner.thread.join(timeout=grace_period)
            if runner.thread.is_alive():
                logger.warning(
                    "Sync job %s did not stop within %.1fs, discarding it",
                    runner.job.id,
                    grace_period,
                )

        with self._lock:
            if self._runner is runner:
                self._runner = None
        return True

    def wait(self, timeout: float | None = None) -> bool:
        """Wait for the current job's engine to finish.

        Returns:
            True if no job is running anymore.
        """
        with self._lock:
            runner = self._runner
        if runner is None or runner.thread is None:
            return True
        runner.thread.join(timeout=timeout)
        return not runner.thread.is_alive()
