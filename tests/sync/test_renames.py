"""Tests for the rename overlay."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cardsync.sync.renames import (
    RenameStore,
    check_collisions,
    resolve_destination,
    validate_destination_name,
)
from cardsync.sync.types import DestinationCollisionError, InvalidDestinationError


class TestRenameStore:
    """Tests for RenameStore."""

    def test_missing_file_is_empty(self, tmp_path: Path) -> None:
        store = RenameStore(tmp_path / "rename_cache.json")
        assert store.load() == {}
        assert store.for_device("cam") == {}

    def test_set_uses_device_prefixed_keys(self, rename_store: RenameStore) -> None:
        """Entries are stored as "device_id:original" in one JSON object."""
        rename_store.set("cam", "DSC0001.ARW", "2024-05-01_beach.ARW")
        data = json.loads(rename_store.path.read_text(encoding="utf-8"))
        assert data == {"cam:DSC0001.ARW": "2024-05-01_beach.ARW"}

    def test_for_device_filters_by_prefix(self, rename_store: RenameStore) -> None:
        rename_store.set("cam", "a.jpg", "x.jpg")
        rename_store.set("cam2", "a.jpg", "y.jpg")
        assert rename_store.for_device("cam") == {"a.jpg": "x.jpg"}
        assert rename_store.for_device("cam2") == {"a.jpg": "y.jpg"}

    def test_set_overwrites(self, rename_store: RenameStore) -> None:
        rename_store.set("cam", "a.jpg", "x.jpg")
        rename_store.set("cam", "a.jpg", "z.jpg")
        assert rename_store.for_device("cam") == {"a.jpg": "z.jpg"}

    def test_set_rejects_escaping_name(self, rename_store: RenameStore) -> None:
        with pytest.raises(InvalidDestinationError):
            rename_store.set("cam", "a.jpg", "../outside.jpg")
        assert rename_store.load() == {}

    def test_remove(self, rename_store: RenameStore) -> None:
        rename_store.set("cam", "a.jpg", "x.jpg")
        assert rename_store.remove("cam", "a.jpg") is True
        assert rename_store.remove("cam", "a.jpg") is False
        assert rename_store.for_device("cam") == {}

    def test_corrupt_file_is_empty(self, tmp_path: Path) -> None:
        path = tmp_path / "rename_cache.json"
        path.write_text("[1, 2", encoding="utf-8")
        assert RenameStore(path).load() == {}


class TestValidateDestinationName:
    """Tests for validate_destination_name()."""

    @pytest.mark.parametrize("name", ["", "  ", "/etc/passwd", "../x.jpg", "a/../../x.jpg", "."])
    def test_rejects(self, name: str) -> None:
        with pytest.raises(InvalidDestinationError):
            validate_destination_name(name)

    def test_accepts_nested_relative(self) -> None:
        assert validate_destination_name("2024/beach.jpg").parts == ("2024", "beach.jpg")


class TestResolveDestination:
    """Tests for resolve_destination()."""

    def test_without_overlay(self, tmp_path: Path) -> None:
        assert resolve_destination(tmp_path, "100MSDCF/a.jpg") == tmp_path / "100MSDCF" / "a.jpg"

    def test_overlay_applies(self, tmp_path: Path) -> None:
        overlay = {"DSC0001.ARW": "beach.ARW"}
        assert resolve_destination(tmp_path, "DSC0001.ARW", overlay) == tmp_path / "beach.ARW"
        assert resolve_destination(tmp_path, "DSC0002.ARW", overlay) == tmp_path / "DSC0002.ARW"

    def test_empty_overlay_value_ignored(self, tmp_path: Path) -> None:
        assert resolve_destination(tmp_path, "a.jpg", {"a.jpg": ""}) == tmp_path / "a.jpg"

    def test_escaping_overlay_rejected(self, tmp_path: Path) -> None:
        with pytest.raises(InvalidDestinationError):
            resolve_destination(tmp_path, "a.jpg", {"a.jpg": "../../a.jpg"})


class TestCheckCollisions:
    """Tests for check_collisions()."""

    def test_distinct_destinations_pass(self) -> None:
        check_collisions(["a.jpg", "b.jpg"], {"a.jpg": "c.jpg"})

    def test_rename_onto_other_file(self) -> None:
        """Renaming a.jpg to b.jpg collides with b.jpg itself."""
        with pytest.raises(DestinationCollisionError) as exc_info:
            check_collisions(["a.jpg", "b.jpg"], {"a.jpg": "b.jpg"})
        assert exc_info.value.first == "a.jpg"
        assert exc_info.value.second == "b.jpg"

    def test_case_insensitive(self) -> None:
        with pytest.raises(DestinationCollisionError):
            check_collisions(["a.jpg", "b.jpg"], {"a.jpg": "x.JPG", "b.jpg": "X.jpg"})

    def test_duplicate_entries(self) -> None:
        with pytest.raises(DestinationCollisionError):
            check_collisions(["a.jpg", "a.jpg"])
