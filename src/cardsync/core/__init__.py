"""Core module - Shared configuration, device store and types."""

from cardsync.core.config import EngineConfig, get_data_dir, get_log_path
from cardsync.core.devices import (
    DeviceConfig,
    DeviceNotFoundError,
    DeviceStore,
    normalize_extensions,
)
from cardsync.core.types import JobStatus, SyncEventType

__all__ = [
    # Config
    "EngineConfig",
    "get_data_dir",
    "get_log_path",
    # Devices
    "DeviceConfig",
    "DeviceNotFoundError",
    "DeviceStore",
    "normalize_extensions",
    # Types
    "JobStatus",
    "SyncEventType",
]
