"""Engine configuration for cardsync.

This module defines the tunables shared by the transfer engine and the
job manager, and how they are read from the environment.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

# 4 MiB per read
DEFAULT_CHUNK_SIZE = 4 * 1024 * 1024
DEFAULT_WRITE_BUFFER_CHUNKS = 4
DEFAULT_DRAIN_TIMEOUT = 30.0
DEFAULT_STOP_GRACE_PERIOD = 2.0
DEFAULT_PROGRESS_INTERVAL = 0.5
DEFAULT_POLL_INTERVAL = 0.05
DEFAULT_MAX_SCAN_DEPTH = 64


@dataclass
class EngineConfig:
    """Tunables for a transfer run.

    Attributes:
        chunk_size: Bytes read from the source per chunk.
        write_buffer_chunks: Chunks the writer may hold before the pump blocks.
        drain_timeout: Seconds the pump may wait for the writer to drain.
        stop_grace_period: Seconds stop() waits for the engine to unwind.
        progress_interval: Minimum seconds between progress events.
        poll_interval: Seconds between cancellation checks while blocked.
        max_scan_depth: Directory depth at which inventory scans stop.
    """

    chunk_size: int = DEFAULT_CHUNK_SIZE
    write_buffer_chunks: int = DEFAULT_WRITE_BUFFER_CHUNKS
    drain_timeout: float = DEFAULT_DRAIN_TIMEOUT
    stop_grace_period: float = DEFAULT_STOP_GRACE_PERIOD
    progress_interval: float = DEFAULT_PROGRESS_INTERVAL
    poll_interval: float = DEFAULT_POLL_INTERVAL
    max_scan_depth: int = DEFAULT_MAX_SCAN_DEPTH

    def __post_init__(self) -> None:
        """Validate values."""
        if self.chunk_size <= 0:
            raise ValueError(f"chunk_size must be positive, got {self.chunk_size}")
        if self.write_buffer_chunks <= 0:
            raise ValueError(
                f"write_buffer_chunks must be positive, got {self.write_buffer_chunks}"
            )
        for name in ("drain_timeout", "stop_grace_period", "progress_interval", "poll_interval"):
            if getattr(self, name) <= 0:
                raise ValueError(f"{name} must be positive, got {getattr(self, name)}")
        if self.max_scan_depth < 1:
            raise ValueError(f"max_scan_depth must be at least 1, got {self.max_scan_depth}")

    @classmethod
    def from_env(cls) -> EngineConfig:
        """Build a config from CARDSYNC_* environment variables.

        Returns:
            EngineConfig with defaults for unset variables.

        Raises:
            ValueError: If a variable is set to something that does not parse.
        """
        return cls(
            chunk_size=_env_number("CARDSYNC_CHUNK_SIZE", int, DEFAULT_CHUNK_SIZE),
            drain_timeout=_env_number("CARDSYNC_DRAIN_TIMEOUT", float, DEFAULT_DRAIN_TIMEOUT),
            stop_grace_period=_env_number(
                "CARDSYNC_STOP_GRACE", float, DEFAULT_STOP_GRACE_PERIOD
            ),
            progress_interval=_env_number(
                "CARDSYNC_PROGRESS_INTERVAL", float, DEFAULT_PROGRESS_INTERVAL
            ),
        )


def _env_number(name: str, kind: type, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return kind(raw)
    except ValueError as e:
        raise ValueError(f"Invalid value for {name}: {raw!r}") from e


def get_data_dir() -> Path:
    """Get the directory holding devices.json and rename_cache.json."""
    return Path(os.environ.get("CARDSYNC_DATA_DIR", "data"))


def get_log_path() -> Path:
    """Get the server log file path."""
    return Path(os.environ.get("CARDSYNC_LOG_PATH", "cardsync.log"))
