"""Main API router that includes all sub-routers."""

from __future__ import annotations

from fastapi import APIRouter

from cardsync.server.api import devices, health, renames, scan, sync

router = APIRouter()

# Include all API routers
router.include_router(health.router)
router.include_router(devices.router)
router.include_router(renames.router)
router.include_router(scan.router)
router.include_router(sync.router)
