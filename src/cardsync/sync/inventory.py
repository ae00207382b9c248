"""Inventory scanning and diffing.

This module provides:
- scan: Build a relative path -> FileRecord map for a directory tree
- diff: Relative paths present in a source inventory but not in a target one
- missing_bytes: Total size of a missing set
- scan_device: Scan a device's source and target roots and compute what is missing
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterable
from pathlib import Path

from cardsync.core.config import DEFAULT_MAX_SCAN_DEPTH
from cardsync.core.devices import DeviceConfig, normalize_extensions
from cardsync.sync.types import FileRecord, ScanResult, SourceUnavailableError

logger = logging.getLogger(__name__)


def is_ignored(filename: str, ignore: frozenset[str]) -> bool:
    """Check a filename's extension against a lower-cased ignore set."""
    ext = os.path.splitext(filename)[1].lower()
    return bool(ext) and ext in ignore


def scan(
    root: Path,
    ignore: Iterable[str] = (),
    max_depth: int = DEFAULT_MAX_SCAN_DEPTH,
) -> dict[str, FileRecord]:
    """Recursively inventory a directory tree.

    Directories are walked depth-first in sorted order, so the insertion order
    of the result is stable between runs. Unreadable directories are logged and
    contribute nothing; the rest of the tree is still scanned.

    Args:
        root: Directory to scan.
        ignore: Extensions (with leading dot) to exclude, in any case.
        max_depth: Directories nested deeper than this are skipped.

    Returns:
        Dict mapping POSIX-style relative paths to FileRecord.
    """
    root = Path(root)
    ignore_set = normalize_extensions(set(ignore))
    inventory: dict[str, FileRecord] = {}

    def on_error(error: OSError) -> None:
        logger.warning("Cannot access directory %s, skipped: %s", error.filename, error)

    # Note: os.walk with followlinks=False (default) doesn't follow symlinks to directories
    for dir_str, dirs, files in os.walk(root, onerror=on_error):
        rel_dir = os.path.relpath(dir_str, root)
        depth = 0 if rel_dir == os.curdir else rel_dir.count(os.sep) + 1
        if depth >= max_depth:
            if dirs:
                logger.warning(
                    "Directory %s is nested deeper than %d levels, not descending",
                    dir_str,
                    max_depth,
                )
            dirs[:] = []
        else:
            dirs.sort()

        for filename in sorted(files):
            if is_ignored(filename, ignore_set):
                continue
            file_path = Path(dir_str) / filename
            if file_path.is_symlink():
                continue
            try:
                stat = file_path.stat()
            except OSError as e:
                # Removed or unreadable between listing and stat
                logger.debug("Skipping %s: %s", file_path, e)
                continue

            relative_path = file_path.relative_to(root).as_posix()
            inventory[relative_path] = FileRecord(
                relative_path=relative_path,
                size=stat.st_size,
                mtime=stat.st_mtime,
            )

    return inventory


def diff(source: dict[str, FileRecord], target: dict[str, FileRecord]) -> list[str]:
    """List relative paths present in source but absent from target.

    Comparison is by relative path only. Order follows the source inventory.
    """
    return [path for path in source if path not in target]


def missing_bytes(source: dict[str, FileRecord], missing: Iterable[str]) -> int:
    """Sum the sizes of the given paths in the source inventory."""
    return sum(source[path].size for path in missing if path in source)


def scan_device(device: DeviceConfig, max_depth: int = DEFAULT_MAX_SCAN_DEPTH) -> ScanResult:
    """Compute the files of a device that are not yet on its target.

    Creates the target root if it does not exist yet.

    Args:
        device: Device configuration.
        max_depth: Maximum directory depth scanned on both sides.

    Returns:
        ScanResult with the missing set and its total size.

    Raises:
        SourceUnavailableError: If the source root is not a directory.
    """
    if not device.source_root.is_dir():
        raise SourceUnavailableError(device.source_root)

    device.target_root.mkdir(parents=True, exist_ok=True)

    logger.info("Scanning %s (%s -> %s)", device.name, device.source_root, device.target_root)
    source = scan(device.source_root, device.ignore_extensions, max_depth)
    target = scan(device.target_root, device.ignore_extensions, max_depth)
    missing = diff(source, target)
    total = missing_bytes(source, missing)
    logger.info(
        "Scan of %s: %d source files, %d target files, %d missing (%d bytes)",
        device.name,
        len(source),
        len(target),
        len(missing),
        total,
    )

    return ScanResult(
        missing_files=missing,
        source_root=device.source_root,
        target_root=device.target_root,
        total_missing_bytes=total,
        source_count=len(source),
        target_count=len(target),
    )
