"""Abstract base class for inventory sources.

An inventory source produces a TreeInventory keyed by relative path,
either by walking a directory or by reading an inventory exported
elsewhere (for example on a remote host).
"""

from abc import ABC, abstractmethod

from treectl.models.entry import InventoryLabel, TreeInventory


class InventorySource(ABC):
    """Abstract base class for all inventory sources.

    Example:
        >>> source = TreeScanner(Path("D:/Data"), label=InventoryLabel.SOURCE)
        >>> if source.is_available():
        ...     inventory = source.collect()
        ...     print(inventory.file_count)
    """

    @property
    @abstractmethod
    def label(self) -> InventoryLabel:
        """Return the role of the produced inventory (Source or Target)."""

    @abstractmethod
    def collect(self) -> TreeInventory:
        """Produce the inventory.

        Returns:
            TreeInventory with unique (kind, relative_path) identities.
        """

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tree or file can be read.

        Returns:
            True if collect() can be attempted, False otherwise.
        """
