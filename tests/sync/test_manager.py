"""Tests for the single-flight sync job manager."""

from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterator
from pathlib import Path

import pytest

from cardsync.core.config import EngineConfig
from cardsync.core.types import JobStatus, SyncEventType
from cardsync.sync.manager import SyncManager
from cardsync.sync.types import (
    DestinationCollisionError,
    DiskFullError,
    JobConflictError,
    SyncProgressEvent,
)
from cardsync.sync.writer import BufferedFileWriter


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll until predicate is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.01)
    return predicate()


def _start_event(files: list[str]) -> SyncProgressEvent:
    return SyncProgressEvent(
        type=SyncEventType.FILE_START,
        file=files[0],
        total=1,
        current_file_index=1,
        total_files=len(files),
    )


def blocking_transfer(
    source_root, target_root, files, rename_overlay=None, cancel_check=None, config=None
) -> Iterator[SyncProgressEvent]:
    """Fake engine that runs until cancelled."""
    yield _start_event(files)
    while not cancel_check():
        time.sleep(0.01)


@pytest.fixture
def manager(fast_config: EngineConfig) -> Iterator[SyncManager]:
    """Create a manager and stop its job after the test."""
    sync_manager = SyncManager(fast_config)
    yield sync_manager
    sync_manager.stop(grace_period=1.0)


@pytest.fixture
def fake_engine(monkeypatch: pytest.MonkeyPatch) -> None:
    """Replace the transfer engine with one that blocks until cancelled."""
    monkeypatch.setattr("cardsync.sync.manager.transfer_files", blocking_transfer)


class TestSingleFlight:
    """Tests for start() exclusivity."""

    def test_idle_by_default(self, manager: SyncManager) -> None:
        snapshot = manager.status()
        assert snapshot.status == JobStatus.IDLE
        assert snapshot.job is None
        assert snapshot.to_dict() == {"status": "idle", "job": None}

    def test_start_reports_syncing(
        self, manager: SyncManager, fake_engine: None, tmp_path: Path
    ) -> None:
        job_id = manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])

        snapshot = manager.status()
        assert snapshot.status == JobStatus.SYNCING
        assert snapshot.job is not None
        assert snapshot.job.id == job_id
        assert snapshot.job.device_id == "Pocket 3"
        assert manager.is_syncing

    def test_same_device_returns_running_job(
        self, manager: SyncManager, fake_engine: None, tmp_path: Path
    ) -> None:
        first = manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        second = manager.start("Pocket 3", tmp_path, tmp_path, ["b.jpg"])
        assert first == second
        assert manager.status().job.files == ["a.jpg"]

    def test_other_device_conflicts(
        self, manager: SyncManager, fake_engine: None, tmp_path: Path
    ) -> None:
        manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        with pytest.raises(JobConflictError) as exc_info:
            manager.start("Go Ultra", tmp_path, tmp_path, ["b.jpg"])
        assert exc_info.value.active_device_id == "Pocket 3"
        assert manager.status().job.device_id == "Pocket 3"

    def test_empty_file_list_rejected(self, manager: SyncManager, tmp_path: Path) -> None:
        with pytest.raises(ValueError, match="No files specified"):
            manager.start("Pocket 3", tmp_path, tmp_path, [])
        assert manager.status().status == JobStatus.IDLE

    def test_collision_rejected_before_start(
        self, manager: SyncManager, fake_engine: None, tmp_path: Path
    ) -> None:
        with pytest.raises(DestinationCollisionError):
            manager.start(
                "Pocket 3", tmp_path, tmp_path, ["a.jpg", "b.jpg"], {"a.jpg": "B.JPG"}
            )
        assert manager.status().status == JobStatus.IDLE


class TestStop:
    """Tests for stop()."""

    def test_stop_returns_to_idle(
        self, manager: SyncManager, fake_engine: None, tmp_path: Path
    ) -> None:
        manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        assert manager.stop() is True

        snapshot = manager.status()
        assert snapshot.status == JobStatus.IDLE
        assert snapshot.job is None
        assert not manager.is_syncing

    def test_stop_when_idle(self, manager: SyncManager) -> None:
        assert manager.stop() is False

    def test_new_job_after_stop(
        self, manager: SyncManager, fake_engine: None, tmp_path: Path
    ) -> None:
        first = manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        manager.stop()
        second = manager.start("Go Ultra", tmp_path, tmp_path, ["b.jpg"])
        assert second != first
        assert manager.status().job.device_id == "Go Ultra"

    def test_stuck_engine_discarded(
        self, manager: SyncManager, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """An engine that ignores cancellation is discarded after the grace period."""
        release = threading.Event()

        def stuck_transfer(*args, **kwargs) -> Iterator[SyncProgressEvent]:
            yield _start_event(["a.jpg"])
            release.wait(10)

        monkeypatch.setattr("cardsync.sync.manager.transfer_files", stuck_transfer)
        try:
            manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
            started = time.monotonic()
            assert manager.stop(grace_period=0.2) is True
            assert time.monotonic() - started < 2.0
            assert manager.status().status == JobStatus.IDLE
        finally:
            release.set()

    def test_stop_clears_finished_job(
        self, manager: SyncManager, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def quick_transfer(*args, **kwargs) -> Iterator[SyncProgressEvent]:
            yield SyncProgressEvent(type=SyncEventType.COMPLETE, total_files=1)

        monkeypatch.setattr("cardsync.sync.manager.transfer_files", quick_transfer)
        manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        assert manager.wait(5.0)
        assert manager.status().status == JobStatus.COMPLETED

        assert manager.stop() is True
        assert manager.status().job is None


class TestFailures:
    """Tests for fatal and unexpected engine failures."""

    def test_fatal_error_sets_error_status(
        self, manager: SyncManager, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def full_transfer(*args, **kwargs) -> Iterator[SyncProgressEvent]:
            yield _start_event(["a.jpg"])
            raise DiskFullError(tmp_path / "a.jpg")

        monkeypatch.setattr("cardsync.sync.manager.transfer_files", full_transfer)
        manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        assert manager.wait(5.0)

        snapshot = manager.status()
        assert snapshot.status == JobStatus.ERROR
        assert "No space left" in snapshot.job.error_message
        assert snapshot.job.finished_at is not None
        assert not manager.is_syncing

    def test_unexpected_exception_sets_error_status(
        self, manager: SyncManager, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        def broken_transfer(*args, **kwargs) -> Iterator[SyncProgressEvent]:
            raise RuntimeError("boom")
            yield

        monkeypatch.setattr("cardsync.sync.manager.transfer_files", broken_transfer)
        manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        assert manager.wait(5.0)

        snapshot = manager.status()
        assert snapshot.status == JobStatus.ERROR
        assert snapshot.job.error_message == "Unexpected error: boom"

    def test_new_job_after_error(
        self, manager: SyncManager, monkeypatch: pytest.MonkeyPatch, tmp_path: Path
    ) -> None:
        """A failed job does not block the next start."""

        def full_transfer(*args, **kwargs) -> Iterator[SyncProgressEvent]:
            raise DiskFullError(tmp_path / "a.jpg")
            yield

        monkeypatch.setattr("cardsync.sync.manager.transfer_files", full_transfer)
        manager.start("Pocket 3", tmp_path, tmp_path, ["a.jpg"])
        assert manager.wait(5.0)

        monkeypatch.setattr("cardsync.sync.manager.transfer_files", blocking_transfer)
        manager.start("Go Ultra", tmp_path, tmp_path, ["b.jpg"])
        assert manager.status().status == JobStatus.SYNCING


class TestWithEngine:
    """Tests running the real transfer engine."""

    def test_completes_and_records_history(
        self,
        manager: SyncManager,
        source_root: Path,
        target_root: Path,
        write_file,
    ) -> None:
        write_file(source_root, "a.jpg", size=1000)
        write_file(source_root, "b.raw", size=2000)

        manager.start("Pocket 3", source_root, target_root, ["a.jpg", "gone.jpg", "b.raw"])
        assert manager.wait(10.0)

        job = manager.status().job
        assert job.status == JobStatus.COMPLETED
        assert job.completed_files == ["a.jpg", "b.raw"]
        assert job.failed_files == ["gone.jpg"]
        assert job.current_progress.type == SyncEventType.COMPLETE
        assert (target_root / "b.raw").stat().st_size == 2000

    def test_status_is_a_copy(
        self,
        manager: SyncManager,
        source_root: Path,
        target_root: Path,
        write_file,
    ) -> None:
        write_file(source_root, "a.jpg", size=10)
        manager.start("Pocket 3", source_root, target_root, ["a.jpg"])
        assert manager.wait(10.0)

        snapshot = manager.status()
        snapshot.job.history.clear()
        assert len(manager.status().job.history) == 1

    def test_job_to_dict(
        self,
        manager: SyncManager,
        source_root: Path,
        target_root: Path,
        write_file,
    ) -> None:
        write_file(source_root, "a.jpg", size=10)
        job_id = manager.start("Pocket 3", source_root, target_root, ["a.jpg"])
        assert manager.wait(10.0)

        data = manager.status().to_dict()
        assert data["status"] == "completed"
        assert data["job"]["id"] == job_id
        assert data["job"]["history"] == [
            {
                "type": "file-complete",
                "file": "a.jpg",
                "current_file_index": 1,
                "total_files": 1,
            }
        ]
        assert data["job"]["current_progress"] == {"type": "complete", "total_files": 1}

    def test_cancel_removes_partial_file(
        self,
        manager: SyncManager,
        monkeypatch: pytest.MonkeyPatch,
        source_root: Path,
        target_root: Path,
        write_file,
    ) -> None:
        """Stopping mid-file leaves no partial copy behind."""
        write_file(source_root, "a.jpg", size=10)
        write_file(source_root, "clip.mp4", size=1024 * 1024)
        real_write = BufferedFileWriter.write

        def slow_write(self, chunk: bytes) -> None:
            time.sleep(0.01)
            real_write(self, chunk)

        monkeypatch.setattr(BufferedFileWriter, "write", slow_write)
        manager.start("Pocket 3", source_root, target_root, ["a.jpg", "clip.mp4"])

        def copying_clip() -> bool:
            progress = manager.status().job.current_progress
            return (
                progress is not None
                and progress.type == SyncEventType.PROGRESS
                and progress.file == "clip.mp4"
            )

        assert wait_for(copying_clip)
        assert manager.stop() is True

        assert manager.status().status == JobStatus.IDLE
        assert (target_root / "a.jpg").is_file()
        assert not (target_root / "clip.mp4").exists()
