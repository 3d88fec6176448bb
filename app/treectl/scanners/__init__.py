"""Inventory sources for treectl.

This package provides the InventorySource interface and its
implementations: a live directory scanner and an exported-file reader.
"""

from pathlib import Path

from treectl.models.entry import InventoryLabel
from treectl.scanners.base import InventorySource
from treectl.scanners.export import ExportedInventorySource
from treectl.scanners.tree import ScanError, TreeScanner

__all__ = [
    "ExportedInventorySource",
    "InventorySource",
    "ScanError",
    "TreeScanner",
    "get_inventory_source",
]


def get_inventory_source(
    path: Path,
    label: InventoryLabel,
    **scan_options: object,
) -> InventorySource:
    """Pick the inventory source for a path.

    Directories are scanned live; files are read as exported inventories.

    Args:
        path: Directory to scan or inventory JSON file.
        label: Role of the inventory.
        **scan_options: Keyword options forwarded to TreeScanner.

    Returns:
        InventorySource for the path.
    """
    if path.is_file():
        return ExportedInventorySource(path, label=label)
    return TreeScanner(path, label=label, **scan_options)  # type: ignore[arg-type]
