"""FastAPI dependencies for API routes."""

from __future__ import annotations

from fastapi import Request

from cardsync.core.devices import DeviceStore
from cardsync.sync.manager import SyncManager
from cardsync.sync.renames import RenameStore


def get_devices(request: Request) -> DeviceStore:
    """Get device store from app state."""
    devices: DeviceStore = request.app.state.devices
    return devices


def get_renames(request: Request) -> RenameStore:
    """Get rename overlay store from app state."""
    renames: RenameStore = request.app.state.renames
    return renames


def get_manager(request: Request) -> SyncManager:
    """Get the job manager from app state."""
    manager: SyncManager = request.app.state.manager
    return manager
