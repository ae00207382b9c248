"""Rename overlay API route."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status

from cardsync.core.devices import DeviceNotFoundError, DeviceStore
from cardsync.server.api.deps import get_devices, get_renames
from cardsync.server.schemas import RenameRequest, RenameResponse
from cardsync.sync.renames import RenameStore
from cardsync.sync.types import InvalidDestinationError

router = APIRouter(prefix="/api/renames", tags=["renames"])


@router.post("", response_model=RenameResponse)
def set_rename(
    request: RenameRequest,
    devices: DeviceStore = Depends(get_devices),
    renames: RenameStore = Depends(get_renames),
) -> RenameResponse:
    """Record the name a device file should get on the target.

    The source file is not touched; the name is applied when the file is synced.
    """
    try:
        devices.get(request.device_id)
    except DeviceNotFoundError as e:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=str(e),
        ) from e

    try:
        renames.set(request.device_id, request.original_name, request.new_name)
    except InvalidDestinationError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        ) from e

    return RenameResponse(success=True, new_name=request.new_name)
