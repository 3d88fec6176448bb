"""Tree inventory models.

This module defines the data structures produced by scanning a
directory tree: one Entry per observed file or directory, and the
TreeInventory that groups the entries of a single scan together
with its aggregates.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime
from enum import Enum


class EntryKind(str, Enum):
    """Kind of filesystem object observed during a scan.

    Attributes:
        FILE: Regular file.
        DIRECTORY: Directory.
    """

    FILE = "File"
    DIRECTORY = "Directory"


class InventoryLabel(str, Enum):
    """Role of an inventory in a comparison."""

    SOURCE = "Source"
    TARGET = "Target"


def normalize_relative_path(path: str) -> str:
    """Convert a relative path to the canonical ``/``-separated form.

    Backslashes are turned into forward slashes, and empty or ``.``
    segments are dropped.

    Args:
        path: Relative path in any separator convention.

    Returns:
        Canonical relative path (no leading or trailing separator).
    """
    parts = [p for p in path.replace("\\", "/").split("/") if p and p != "."]
    return "/".join(parts)


@dataclass(frozen=True, slots=True)
class Entry:
    """One filesystem object observed during a scan.

    Attributes:
        kind: File or directory.
        relative_path: Path relative to the scan root, ``/``-separated.
            Unique key within one inventory.
        name: Base name of the entry.
        extension: Lower-cased file extension including the dot
            (empty for directories and extension-less files).
        size_bytes: Size in bytes (always 0 for directories).
        modified_at: Last modification time (timezone-aware).
        created_at: Creation time (timezone-aware).
        absolute_path: Absolute path of the entry at scan time.
    """

    kind: EntryKind
    relative_path: str
    name: str
    extension: str
    size_bytes: int
    modified_at: datetime
    created_at: datetime
    absolute_path: str

    def __post_init__(self) -> None:
        """Validate entry data after initialization."""
        if not self.relative_path:
            msg = "Relative path cannot be empty"
            raise ValueError(msg)
        if self.size_bytes < 0:
            msg = f"Size cannot be negative, got {self.size_bytes}"
            raise ValueError(msg)
        if self.kind == EntryKind.DIRECTORY and self.size_bytes != 0:
            msg = f"Directory size must be 0, got {self.size_bytes}"
            raise ValueError(msg)

    @property
    def is_file(self) -> bool:
        """Check if this entry is a file."""
        return self.kind == EntryKind.FILE

    @property
    def depth(self) -> int:
        """Number of path segments relative to the scan root."""
        return self.relative_path.count("/") + 1


@dataclass(frozen=True, slots=True)
class TreeInventory:
    """Result of one scan.

    Attributes:
        label: Role of the inventory (Source or Target).
        root_path: Absolute path of the scanned root.
        files: File entries, in scan order.
        directories: Directory entries, in scan order.
    """

    label: InventoryLabel
    root_path: str
    files: tuple[Entry, ...]
    directories: tuple[Entry, ...]

    def __post_init__(self) -> None:
        """Validate identity uniqueness and entry kinds."""
        groups = ((EntryKind.FILE, self.files), (EntryKind.DIRECTORY, self.directories))
        for kind, entries in groups:
            seen: set[str] = set()
            for entry in entries:
                if entry.kind != kind:
                    msg = f"{entry.relative_path}: expected {kind.value}, got {entry.kind.value}"
                    raise ValueError(msg)
                if entry.relative_path in seen:
                    msg = f"Duplicate {kind.value.lower()} path in inventory: {entry.relative_path}"
                    raise ValueError(msg)
                seen.add(entry.relative_path)

    @classmethod
    def from_entries(
        cls,
        entries: Iterable[Entry],
        root_path: str,
        label: InventoryLabel,
    ) -> TreeInventory:
        """Build an inventory by splitting entries into files and directories.

        Args:
            entries: Scanned entries of both kinds.
            root_path: Absolute path of the scanned root.
            label: Role of the inventory.

        Returns:
            TreeInventory holding the entries.

        Raises:
            ValueError: If two entries of the same kind share a relative path.
        """
        files: list[Entry] = []
        directories: list[Entry] = []
        for entry in entries:
            if entry.kind == EntryKind.FILE:
                files.append(entry)
            else:
                directories.append(entry)
        return cls(
            label=label,
            root_path=root_path,
            files=tuple(files),
            directories=tuple(directories),
        )

    @property
    def total_size(self) -> int:
        """Sum of all file sizes in bytes."""
        return sum(e.size_bytes for e in self.files)

    @property
    def file_count(self) -> int:
        """Number of file entries."""
        return len(self.files)

    @property
    def dir_count(self) -> int:
        """Number of directory entries."""
        return len(self.directories)
