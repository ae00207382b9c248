"""FastAPI application for cardsync.

This module creates and configures the FastAPI application with:
- Device scan and device listing
- Sync job start, status polling and cancellation
- Rename overlay updates

Usage:
    uvicorn cardsync.server.app:app_factory --factory --host 127.0.0.1 --port 8000
"""

from __future__ import annotations

import logging
import sys
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from pathlib import Path

from fastapi import FastAPI

from cardsync import __version__
from cardsync.core.config import EngineConfig, get_data_dir, get_log_path
from cardsync.core.devices import DEVICES_FILENAME, DeviceStore
from cardsync.server.api.router import router as api_router
from cardsync.sync.manager import SyncManager
from cardsync.sync.renames import RENAMES_FILENAME, RenameStore

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

logger = logging.getLogger(__name__)


def setup_logging(log_path: Path | None) -> None:
    """Configure logging to output to stdout and optionally a file.

    Args:
        log_path: Path to the log file, or None for stdout only.
    """
    formatter = logging.Formatter(LOG_FORMAT)

    # Root logger for cardsync
    root_logger = logging.getLogger("cardsync")
    root_logger.setLevel(logging.INFO)
    # The server owns log output; drop handlers installed by the CLI
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)

    # Stdout handler
    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.setFormatter(formatter)
    root_logger.addHandler(stdout_handler)

    if log_path is None:
        return

    # File handler
    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setFormatter(formatter)
    root_logger.addHandler(file_handler)

    # Also capture uvicorn logs to file
    for uvicorn_name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
        uvicorn_logger = logging.getLogger(uvicorn_name)
        uvicorn_logger.addHandler(file_handler)


def create_app(
    devices: DeviceStore,
    renames: RenameStore,
    manager: SyncManager | None = None,
) -> FastAPI:
    """Create FastAPI application with the given stores.

    Tests pass stores rooted in a temporary directory.

    Args:
        devices: Device configuration store.
        renames: Rename overlay store.
        manager: Job manager (a new one is created if omitted).

    Returns:
        Configured FastAPI application.
    """
    sync_manager = manager or SyncManager()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        """Application lifespan handler for startup/shutdown."""
        # Startup
        logger.info("=" * 60)
        logger.info("cardsync server starting")
        logger.info("=" * 60)
        logger.info("  Devices:  %s", devices.path)
        logger.info("  Renames:  %s", renames.path)
        logger.info("  Chunk:    %d bytes", sync_manager.config.chunk_size)
        logger.info("=" * 60)

        yield

        # Shutdown: do not leave a half-written file behind
        logger.info("cardsync server shutting down")
        sync_manager.stop()

    application = FastAPI(
        title="cardsync",
        description="Copy new files from camera cards and devices to storage",
        version=__version__,
        lifespan=lifespan,
    )

    application.state.devices = devices
    application.state.renames = renames
    application.state.manager = sync_manager

    application.include_router(api_router)

    return application


def app_factory(data_dir: Path | None = None) -> FastAPI:
    """Factory function for uvicorn --factory mode.

    Args:
        data_dir: Folder holding devices.json and rename_cache.json
            (default: CARDSYNC_DATA_DIR or ./data).
    """
    setup_logging(get_log_path())
    data_dir = data_dir or get_data_dir()
    return create_app(
        devices=DeviceStore(data_dir / DEVICES_FILENAME),
        renames=RenameStore(data_dir / RENAMES_FILENAME),
        manager=SyncManager(EngineConfig.from_env()),
    )
