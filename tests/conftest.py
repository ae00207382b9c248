"""Shared pytest fixtures for cardsync tests."""

from __future__ import annotations

import os
from collections.abc import Callable
from pathlib import Path

import pytest

from cardsync.core.config import EngineConfig
from cardsync.core.devices import DeviceConfig, DeviceStore
from cardsync.sync.renames import RenameStore

# Capture time used for source files (2024-05-01 12:00:00 UTC)
CAPTURE_MTIME = 1714564800.0

FileWriter = Callable[..., Path]


@pytest.fixture
def write_file() -> FileWriter:
    """Return a helper that creates a file with a given size and mtime."""

    def _write(
        root: Path,
        relative_path: str,
        size: int = 0,
        mtime: float = CAPTURE_MTIME,
    ) -> Path:
        path = root / relative_path
        path.parent.mkdir(parents=True, exist_ok=True)
        # Non-repeating content so truncated copies are detectable
        path.write_bytes(bytes(i % 251 for i in range(size)))
        os.utime(path, (mtime, mtime))
        return path

    return _write


@pytest.fixture
def source_root(tmp_path: Path) -> Path:
    """Create an empty source tree (the mounted card)."""
    root = tmp_path / "card" / "DCIM"
    root.mkdir(parents=True)
    return root


@pytest.fixture
def target_root(tmp_path: Path) -> Path:
    """Create an empty target tree (the storage drive)."""
    root = tmp_path / "storage"
    root.mkdir()
    return root


@pytest.fixture
def fast_config() -> EngineConfig:
    """Engine config with small chunks and frequent progress events."""
    return EngineConfig(
        chunk_size=16 * 1024,
        write_buffer_chunks=2,
        drain_timeout=5.0,
        stop_grace_period=2.0,
        progress_interval=0.000001,
        poll_interval=0.01,
    )


@pytest.fixture
def data_dir(tmp_path: Path) -> Path:
    """Create a data directory for the JSON stores."""
    path = tmp_path / "data"
    path.mkdir()
    return path


@pytest.fixture
def device_store(data_dir: Path) -> DeviceStore:
    """Create a device store in the data directory."""
    return DeviceStore(data_dir / "devices.json")


@pytest.fixture
def rename_store(data_dir: Path) -> RenameStore:
    """Create a rename overlay store in the data directory."""
    return RenameStore(data_dir / "rename_cache.json")


@pytest.fixture
def device(device_store: DeviceStore, source_root: Path, target_root: Path) -> DeviceConfig:
    """Register a device pointing at the test source and target roots."""
    config = DeviceConfig(
        name="Pocket 3",
        source_root=source_root,
        target_root=target_root,
        ignore_extensions=frozenset([".LRF"]),
    )
    device_store.save_device(config)
    return config
