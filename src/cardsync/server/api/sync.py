"""Sync job API routes.

Routes:
- POST /api/sync/start: Start copying files for a device
- GET /api/sync/status: Poll the current job
- DELETE /api/sync/status: Cancel and clear the current job
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cardsync.core.devices import DeviceNotFoundError, DeviceStore
from cardsync.server.api.deps import get_devices, get_manager, get_renames
from cardsync.server.schemas import (
    SuccessResponse,
    SyncStartRequest,
    SyncStartResponse,
    SyncStatusResponse,
)
from cardsync.sync.manager import SyncManager
from cardsync.sync.renames import RenameStore
from cardsync.sync.types import (
    DestinationCollisionError,
    InvalidDestinationError,
    JobConflictError,
)

router = APIRouter(prefix="/api/sync", tags=["sync"])


@router.post("/start", response_model=SyncStartResponse)
def start_sync(
    request: SyncStartRequest,
    devices: DeviceStore = Depends(get_devices),
    renames: RenameStore = Depends(get_renames),
    manager: SyncManager = Depends(get_manager),
) -> SyncStartResponse:
    """Start a background sync job for a device."""
    try:
        device = devices.get(request.device_id)
    except DeviceNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e

    try:
        job_id = manager.start(
            request.device_id,
            device.source_root,
            device.target_root,
            request.files,
            rename_overlay=renames.for_device(request.device_id),
        )
    except JobConflictError as e:
        raise HTTPException(
            status_code=status.HTTP_409_CONFLICT,
            detail=str(e),
        ) from e
    except (DestinationCollisionError, InvalidDestinationError, ValueError) as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    return SyncStartResponse(success=True, job_id=job_id)


@router.get("/status", response_model=SyncStatusResponse)
def get_status(manager: SyncManager = Depends(get_manager)) -> SyncStatusResponse:
    """Get the current job state."""
    snapshot = manager.status().to_dict()
    return SyncStatusResponse(status=snapshot["status"], job=snapshot["job"])


@router.delete("/status", response_model=SuccessResponse)
def stop_sync(manager: SyncManager = Depends(get_manager)) -> SuccessResponse:
    """Cancel the current job and reset to idle."""
    manager.stop()
    return SuccessResponse(success=True)
