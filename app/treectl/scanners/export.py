"""Inventory source backed by an exported inventory file.

Lets a comparison use an inventory produced elsewhere (another host,
an earlier scan, an external collector) in place of a live scan.
"""

from pathlib import Path

from treectl.core.inventory import load_inventory
from treectl.models.entry import InventoryLabel, TreeInventory
from treectl.scanners.base import InventorySource


class ExportedInventorySource(InventorySource):
    """Reads a TreeInventory from an exported JSON file.

    Args:
        path: Inventory JSON file written by ``treectl scan --export``.
        label: Role assigned to the loaded inventory, overriding the
            label stored in the file.
    """

    def __init__(self, path: Path, *, label: InventoryLabel = InventoryLabel.SOURCE) -> None:
        self._path = path
        self._label = label

    @property
    def label(self) -> InventoryLabel:
        """Return the role of the produced inventory."""
        return self._label

    def is_available(self) -> bool:
        """Check if the inventory file exists."""
        return self._path.is_file()

    def collect(self) -> TreeInventory:
        """Load the inventory file.

        Raises:
            InventoryError: If the file is missing, unreadable or invalid.
        """
        return load_inventory(self._path, label=self._label)
