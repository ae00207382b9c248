"""Device listing API route."""

from __future__ import annotations

from fastapi import APIRouter, Depends

from cardsync.core.devices import DeviceStore
from cardsync.server.api.deps import get_devices
from cardsync.server.schemas import DeviceResponse, device_to_response

router = APIRouter(prefix="/api/devices", tags=["devices"])


@router.get("", response_model=list[DeviceResponse])
def list_devices(devices: DeviceStore = Depends(get_devices)) -> list[DeviceResponse]:
    """List configured devices and whether their source is mounted."""
    return [device_to_response(d) for d in devices.list_devices()]
