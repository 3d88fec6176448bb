"""Pytest configuration and shared fixtures.

This module contains fixtures used across all test modules.
"""

from collections.abc import Callable
from datetime import UTC, datetime, timedelta
from pathlib import Path

import pytest
from treectl.models.entry import Entry, EntryKind, InventoryLabel, TreeInventory

BASE_TIME = datetime(2026, 3, 1, 12, 0, 0, tzinfo=UTC)

EntryFactory = Callable[..., Entry]
TreeFactory = Callable[[Path, dict[str, str | None]], Path]


@pytest.fixture(autouse=True)
def isolated_xdg(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point XDG config and state directories into the test's tmp_path."""
    xdg = tmp_path / "xdg"
    monkeypatch.setenv("XDG_CONFIG_HOME", str(xdg / "config"))
    monkeypatch.setenv("XDG_STATE_HOME", str(xdg / "state"))
    return xdg


@pytest.fixture
def make_entry() -> EntryFactory:
    """Factory for Entry objects with sensible defaults.

    Usage: ``make_entry("docs/a.txt", size=10, offset=3.0)`` where
    ``offset`` shifts the modification time in seconds.
    """

    def _make(
        relative_path: str,
        *,
        size: int = 0,
        kind: EntryKind = EntryKind.FILE,
        offset: float = 0.0,
        root: str = "/data/source",
    ) -> Entry:
        name = relative_path.rsplit("/", 1)[-1]
        extension = ""
        if kind == EntryKind.FILE and "." in name:
            extension = "." + name.rsplit(".", 1)[-1].lower()
        modified = BASE_TIME + timedelta(seconds=offset)
        return Entry(
            kind=kind,
            relative_path=relative_path,
            name=name,
            extension=extension,
            size_bytes=size if kind == EntryKind.FILE else 0,
            modified_at=modified,
            created_at=BASE_TIME,
            absolute_path=f"{root}/{relative_path}",
        )

    return _make


@pytest.fixture
def make_inventory() -> Callable[..., TreeInventory]:
    """Factory building a TreeInventory from entries."""

    def _make(
        entries: list[Entry],
        label: InventoryLabel = InventoryLabel.SOURCE,
        root_path: str = "/data/source",
    ) -> TreeInventory:
        return TreeInventory.from_entries(entries, root_path=root_path, label=label)

    return _make


@pytest.fixture
def make_tree() -> TreeFactory:
    """Factory creating a directory tree on disk.

    Keys are ``/``-separated relative paths. A string value creates a
    file with that content; None creates a directory.
    """

    def _make(root: Path, layout: dict[str, str | None]) -> Path:
        root.mkdir(parents=True, exist_ok=True)
        for relative, content in layout.items():
            path = root / relative
            if content is None:
                path.mkdir(parents=True, exist_ok=True)
            else:
                path.parent.mkdir(parents=True, exist_ok=True)
                path.write_text(content, encoding="utf-8")
        return root

    return _make
