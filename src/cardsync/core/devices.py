"""Device configuration store.

This module provides:
- DeviceConfig: Source root, target root and ignored extensions of a device
- DeviceStore: JSON-backed mapping of device id to DeviceConfig
- DeviceNotFoundError: Raised for unknown device ids
"""

from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEVICES_FILENAME = "devices.json"


class DeviceNotFoundError(KeyError):
    """No device is configured under the given id."""

    def __init__(self, device_id: str) -> None:
        self.device_id = device_id
        super().__init__(device_id)

    def __str__(self) -> str:
        return f"Device not found: {self.device_id}"


def normalize_extensions(extensions: list[str] | set[str] | frozenset[str]) -> frozenset[str]:
    """Lower-case extensions and make sure each one starts with a dot."""
    normalized = set()
    for ext in extensions:
        ext = ext.strip().lower()
        if not ext:
            continue
        if not ext.startswith("."):
            ext = "." + ext
        normalized.add(ext)
    return frozenset(normalized)


@dataclass
class DeviceConfig:
    """Configuration for one device.

    Attributes:
        name: Device id (key in devices.json).
        source_root: Mount point or folder the files are copied from.
        target_root: Folder the files are copied to.
        ignore_extensions: Lower-cased extensions (with dot) skipped on both sides.
    """

    name: str
    source_root: Path
    target_root: Path
    ignore_extensions: frozenset[str] = field(default_factory=frozenset)

    def __post_init__(self) -> None:
        self.source_root = Path(self.source_root)
        self.target_root = Path(self.target_root)
        self.ignore_extensions = normalize_extensions(self.ignore_extensions)

    @property
    def is_connected(self) -> bool:
        """Check whether the source root is currently mounted."""
        return self.source_root.is_dir()

    @classmethod
    def from_dict(cls, name: str, data: dict[str, Any]) -> DeviceConfig:
        """Build from the on-disk representation."""
        return cls(
            name=name,
            source_root=Path(data["sourcePath"]),
            target_root=Path(data["targetPath"]),
            ignore_extensions=frozenset(data.get("ignoreExtensions", [])),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to the on-disk representation."""
        return {
            "sourcePath": str(self.source_root),
            "targetPath": str(self.target_root),
            "ignoreExtensions": sorted(self.ignore_extensions),
        }


class DeviceStore:
    """Reads and writes device configurations in devices.json."""

    def __init__(self, path: Path) -> None:
        """Initialize the store.

        Args:
            path: Path to devices.json. Created empty on first read if missing.
        """
        self._path = Path(path)

    @property
    def path(self) -> Path:
        return self._path

    def _load_raw(self) -> dict[str, dict[str, Any]]:
        if not self._path.exists():
            self._save_raw({})
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("Error reading devices file %s: %s", self._path, e)
            return {}
        if not isinstance(data, dict):
            logger.error("Devices file %s does not contain an object", self._path)
            return {}
        return data

    def _save_raw(self, data: dict[str, dict[str, Any]]) -> None:
        self._path.parent.mkdir(parents=True, exist_ok=True)
        tmp_path = self._path.with_suffix(self._path.suffix + ".tmp")
        tmp_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
        os.replace(tmp_path, self._path)

    def list_devices(self) -> list[DeviceConfig]:
        """List all configured devices, skipping malformed entries."""
        devices = []
        for name, data in self._load_raw().items():
            try:
                devices.append(DeviceConfig.from_dict(name, data))
            except (KeyError, TypeError) as e:
                logger.warning("Skipping malformed device %r: %s", name, e)
        return devices

    def get(self, device_id: str) -> DeviceConfig:
        """Get a device by id.

        Raises:
            DeviceNotFoundError: If no such device is configured.
        """
        data = self._load_raw().get(device_id)
        if data is None:
            raise DeviceNotFoundError(device_id)
        try:
            return DeviceConfig.from_dict(device_id, data)
        except (KeyError, TypeError) as e:
            raise DeviceNotFoundError(device_id) from e

    def save_device(self, device: DeviceConfig) -> None:
        """Add or replace a device."""
        data = self._load_raw()
        data[device.name] = device.to_dict()
        self._save_raw(data)
