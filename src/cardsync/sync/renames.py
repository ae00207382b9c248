"""Rename overlay for destination filenames.

A rename overlay maps a device's original relative paths to the name a file
should get on the target. It never touches the source; it is only consulted
when the destination path of a transfer is resolved.

This module provides:
- RenameStore: JSON-backed overlay storage keyed by "device_id:original"
- resolve_destination: Destination path of a file under the target root
- check_collisions: Reject jobs where two files map to the same destination
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable, Mapping
from pathlib import Path, PurePosixPath

from cardsync.sync.types import DestinationCollisionError, InvalidDestinationError

logger = logging.getLogger(__name__)

RENAMES_FILENAME = "rename_cache.json"
KEY_SEPARATOR = ":"


class RenameStore:
    """Persists rename overlays for all devices in a single JSON object."""

    def __init__(self, path: Path) -> None:
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> dict[str, str]:
        """Load the raw overlay mapping.

        Returns:
            Dict keyed by "device_id:original". Empty if the file is missing
            or unreadable.
        """
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable rename cache %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.warning("Ignoring rename cache %s: not a JSON object", self._path)
            return {}
        return {str(k): str(v) for k, v in data.items()}

    def for_device(self, device_id: str) -> dict[str, str]:
        """Get the overlay of one device, keyed by original relative path."""
        prefix = f"{device_id}{KEY_SEPARATOR}"
        return {
            key[len(prefix):]: value
            for key, value in self.load().items()
            if key.startswith(prefix)
        }

    def set(self, device_id: str, original: str, new_name: str) -> None:
        """Record the destination name for a device's file.

        Raises:
            InvalidDestinationError: If new_name would leave the target root.
        """
        validate_destination_name(new_name)
        data = self.load()
        data[f"{device_id}{KEY_SEPARATOR}{original}"] = new_name
        self._save(data)
        logger.info("Rename for %s: %s -> %s", device_id, original, new_name)

    def remove(self, device_id: str, original: str) -> bool:
        """Drop a rename entry.

        Returns:
            True if an entry was removed.
        """
        data = self.load()
        if data.pop(f"{device_id}{KEY_SEPARATOR}{original}", None) is None:
            return False
        self._save(data)
        return True

    def _save(self, data: dict[str, str]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self._path)


def validate_destination_name(name: str) -> PurePosixPath:
    """Check that a destination name stays inside the target root.

    Returns:
        The name as a relative PurePosixPath.

    Raises:
        InvalidDestinationError: If the name is empty, absolute or uses "..".
    """
    normalized = name.replace("\\", "/")
    path = PurePosixPath(normalized)
    if not normalized.strip() or path.is_absolute() or ".." in path.parts or path == PurePosixPath("."):
        raise InvalidDestinationError(name)
    return path


def destination_name(relative_path: str, overlay: Mapping[str, str] | None) -> str:
    """Get the name a file will have under the target root."""
    if overlay:
        return overlay.get(relative_path) or relative_path
    return relative_path


def resolve_destination(
    target_root: Path,
    relative_path: str,
    overlay: Mapping[str, str] | None = None,
) -> Path:
    """Resolve the absolute destination of a file.

    Raises:
        InvalidDestinationError: If the resolved name would leave the target root.
    """
    name = validate_destination_name(destination_name(relative_path, overlay))
    return Path(target_root).joinpath(*name.parts)


def check_collisions(files: Iterable[str], overlay: Mapping[str, str] | None = None) -> None:
    """Reject file lists where two entries share a destination.

    Destinations are compared case-insensitively because camera cards and
    most removable targets use case-insensitive filesystems.

    Raises:
        DestinationCollisionError: On the first duplicate destination.
        InvalidDestinationError: If a destination would leave the target root.
    """
    seen: dict[str, str] = {}
    for relative_path in files:
        name = str(validate_destination_name(destination_name(relative_path, overlay)))
        key = name.lower()
        if key in seen:
            raise DestinationCollisionError(name, seen[key], relative_path)
        seen[key] = relative_path
