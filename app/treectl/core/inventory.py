"""Tree inventory export and import.

Inventories are exchanged as JSON documents so that scans produced on
another host (or by an external collector) can be compared locally.
Documents are validated with Pydantic models; unknown fields are
rejected at this boundary.
"""

import json
import os
from datetime import UTC, datetime
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from treectl.models.entry import (
    Entry,
    EntryKind,
    InventoryLabel,
    TreeInventory,
    normalize_relative_path,
)


class InventoryError(Exception):
    """Base exception for inventory document errors."""


class InventoryParseError(InventoryError):
    """Raised when an inventory document is not valid JSON."""


class InventoryValidationError(InventoryError):
    """Raised when an inventory document does not match the schema."""


class EntryDocument(BaseModel):
    """Serialized form of one Entry."""

    model_config = ConfigDict(extra="forbid")

    kind: EntryKind
    relative_path: Annotated[str, Field(min_length=1)]
    name: str
    extension: str = ""
    size_bytes: Annotated[int, Field(ge=0)]
    modified_at: datetime
    created_at: datetime
    absolute_path: str = ""


class InventoryDocument(BaseModel):
    """Serialized form of a TreeInventory.

    The aggregate fields are written for consumers of the export; on
    import they are checked against the entries.
    """

    model_config = ConfigDict(extra="forbid")

    label: InventoryLabel
    root_path: str
    total_size: Annotated[int, Field(ge=0)]
    file_count: Annotated[int, Field(ge=0)]
    dir_count: Annotated[int, Field(ge=0)]
    files: Annotated[list[EntryDocument], Field(default_factory=list)]
    directories: Annotated[list[EntryDocument], Field(default_factory=list)]


def entry_to_dict(entry: Entry) -> dict[str, Any]:
    """Convert an Entry to a JSON-serializable dictionary."""
    return {
        "kind": entry.kind.value,
        "relative_path": entry.relative_path,
        "name": entry.name,
        "extension": entry.extension,
        "size_bytes": entry.size_bytes,
        "modified_at": entry.modified_at.isoformat(),
        "created_at": entry.created_at.isoformat(),
        "absolute_path": entry.absolute_path,
    }


def inventory_to_dict(inventory: TreeInventory) -> dict[str, Any]:
    """Convert a TreeInventory to a JSON-serializable dictionary.

    Entries are sorted by relative path so exports are reproducible.
    """
    return {
        "label": inventory.label.value,
        "root_path": inventory.root_path,
        "total_size": inventory.total_size,
        "file_count": inventory.file_count,
        "dir_count": inventory.dir_count,
        "files": [
            entry_to_dict(e) for e in sorted(inventory.files, key=lambda e: e.relative_path)
        ],
        "directories": [
            entry_to_dict(e) for e in sorted(inventory.directories, key=lambda e: e.relative_path)
        ],
    }


def export_inventory(inventory: TreeInventory, path: Path) -> Path:
    """Write an inventory as JSON, atomically.

    Args:
        inventory: Inventory to export.
        path: Destination file.

    Returns:
        Path where the inventory was written.

    Raises:
        InventoryError: If the file cannot be written.
    """
    tmp_path: Path | None = None
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="w",
            encoding="utf-8",
            dir=path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            json.dump(inventory_to_dict(inventory), f, indent=2)
        os.replace(str(tmp_path), str(path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise InventoryError(f"Failed to write inventory: {e}") from e
    return path


def inventory_from_dict(data: object, label: InventoryLabel | None = None) -> TreeInventory:
    """Validate a decoded inventory document and build a TreeInventory.

    Args:
        data: Decoded JSON document.
        label: Optional role overriding the document's label.

    Returns:
        TreeInventory built from the document.

    Raises:
        InventoryValidationError: If the document is invalid, entries are
            of the wrong kind, identities repeat or aggregates disagree.
    """
    try:
        doc = InventoryDocument.model_validate(data)
    except ValidationError as e:
        raise InventoryValidationError(f"Invalid inventory content: {e}") from e

    try:
        inventory = TreeInventory(
            label=label or doc.label,
            root_path=doc.root_path,
            files=tuple(_entry_from_document(e) for e in doc.files),
            directories=tuple(_entry_from_document(e) for e in doc.directories),
        )
    except ValueError as e:
        raise InventoryValidationError(str(e)) from e

    mismatches = [
        name
        for name, declared, actual in (
            ("total_size", doc.total_size, inventory.total_size),
            ("file_count", doc.file_count, inventory.file_count),
            ("dir_count", doc.dir_count, inventory.dir_count),
        )
        if declared != actual
    ]
    if mismatches:
        msg = f"Inventory aggregates do not match entries: {', '.join(mismatches)}"
        raise InventoryValidationError(msg)

    return inventory


def load_inventory(path: Path, label: InventoryLabel | None = None) -> TreeInventory:
    """Load an exported inventory from a JSON file.

    Args:
        path: Inventory JSON file.
        label: Optional role overriding the document's label.

    Returns:
        Validated TreeInventory.

    Raises:
        InventoryError: If the file cannot be read.
        InventoryParseError: If the file is not UTF-8 encoded JSON.
        InventoryValidationError: If the content is invalid.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as e:
        raise InventoryError(f"Failed to read inventory {path}: {e}") from e
    except UnicodeDecodeError as e:
        raise InventoryParseError(f"Inventory is not UTF-8 text: {path}: {e}") from e

    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise InventoryParseError(f"Invalid JSON in {path}: {e}") from e

    return inventory_from_dict(data, label=label)


def _entry_from_document(doc: EntryDocument) -> Entry:
    """Convert a validated entry document to an Entry."""
    return Entry(
        kind=doc.kind,
        relative_path=normalize_relative_path(doc.relative_path),
        name=doc.name,
        extension=doc.extension,
        size_bytes=doc.size_bytes,
        modified_at=_as_utc(doc.modified_at),
        created_at=_as_utc(doc.created_at),
        absolute_path=doc.absolute_path,
    )


def _as_utc(value: datetime) -> datetime:
    """Treat naive timestamps as UTC so both sides of a diff are comparable."""
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value
