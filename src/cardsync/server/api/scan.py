"""Device scan API route."""

from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, HTTPException, status

from cardsync.core.devices import DeviceNotFoundError, DeviceStore
from cardsync.server.api.deps import get_devices, get_manager
from cardsync.server.schemas import ScanRequest, ScanResponse, scan_to_response
from cardsync.sync.inventory import scan_device
from cardsync.sync.manager import SyncManager
from cardsync.sync.types import SourceUnavailableError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["scan"])


@router.post("/scan", response_model=ScanResponse)
def scan(
    request: ScanRequest,
    devices: DeviceStore = Depends(get_devices),
    manager: SyncManager = Depends(get_manager),
) -> ScanResponse:
    """List the files of a device that are not on its target yet."""
    try:
        device = devices.get(request.device_id)
    except DeviceNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e

    try:
        result = scan_device(device, max_depth=manager.config.max_scan_depth)
    except SourceUnavailableError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=f"Source path does not exist: {device.source_root}",
        ) from e
    except OSError as e:
        logger.error("Scan of %s failed: %s", request.device_id, e)
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=f"Scan failed: {e}",
        ) from e

    return scan_to_response(result)
