"""HTTP server exposing scan and sync job operations."""

from cardsync.server.app import app_factory, create_app, setup_logging

__all__ = ["app_factory", "create_app", "setup_logging"]
