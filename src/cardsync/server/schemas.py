"""Pydantic schemas for API request/response models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from cardsync.core.devices import DeviceConfig
from cardsync.sync.types import ScanResult

# === Scan schemas ===


class ScanRequest(BaseModel):
    """Request body for a device scan."""

    device_id: str


class ScanResponse(BaseModel):
    """Files present on the device but missing on the target."""

    missing_files: list[str]
    source_root: str
    target_root: str
    total_missing_bytes: int


# === Sync schemas ===


class SyncStartRequest(BaseModel):
    """Request body for starting a sync job."""

    device_id: str
    files: list[str] = Field(min_length=1)


class SyncStartResponse(BaseModel):
    """Response for a started (or already running) job."""

    success: bool = True
    job_id: str


class SyncStatusResponse(BaseModel):
    """Current job manager state."""

    status: str
    job: dict[str, Any] | None


class SuccessResponse(BaseModel):
    """Generic success response."""

    success: bool


# === Device schemas ===


class DeviceResponse(BaseModel):
    """Device configuration in responses."""

    name: str
    source_path: str
    target_path: str
    ignore_extensions: list[str]
    is_connected: bool


# === Rename schemas ===


class RenameRequest(BaseModel):
    """Request body for recording a destination name."""

    device_id: str
    original_name: str
    new_name: str


class RenameResponse(BaseModel):
    """Response for a recorded rename."""

    success: bool
    new_name: str


# === Health schema ===


class HealthResponse(BaseModel):
    """Health check response."""

    status: str


# === Converters ===


def scan_to_response(result: ScanResult) -> ScanResponse:
    """Convert ScanResult to response model."""
    return ScanResponse(
        missing_files=result.missing_files,
        source_root=str(result.source_root),
        target_root=str(result.target_root),
        total_missing_bytes=result.total_missing_bytes,
    )


def device_to_response(device: DeviceConfig) -> DeviceResponse:
    """Convert DeviceConfig to response model."""
    return DeviceResponse(
        name=device.name,
        source_path=str(device.source_root),
        target_path=str(device.target_root),
        ignore_extensions=sorted(device.ignore_extensions),
        is_connected=device.is_connected,
    )
