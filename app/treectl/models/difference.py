"""Difference models for tree comparison.

This module defines the reconciliation unit produced by comparing
two inventories for a single relative path, together with the
status classification and the user-settable action.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

from treectl.models.entry import Entry, EntryKind


class DiffStatus(str, Enum):
    """Classification of a relative path across source and target.

    Attributes:
        ONLY_IN_SOURCE: Path exists in the source tree only.
        ONLY_IN_TARGET: Path exists in the target tree only.
        SIZE_DIFFERENCE: File exists in both trees with different sizes.
        TIME_DIFFERENCE: File exists in both trees with equal sizes but
            modification times further apart than the tolerance.
    """

    ONLY_IN_SOURCE = "OnlyInSource"
    ONLY_IN_TARGET = "OnlyInTarget"
    SIZE_DIFFERENCE = "SizeDifference"
    TIME_DIFFERENCE = "TimeDifference"


class ActionChoice(str, Enum):
    """Disposition assigned to a difference before execution.

    Attributes:
        UNSET: No decision yet. Never executed.
        COPY: Copy the source entry to the destination.
        DELETE: Back up, then delete the destination entry.
        IGNORE: Leave both sides untouched.
    """

    UNSET = "Unset"
    COPY = "Copy"
    DELETE = "Delete"
    IGNORE = "Ignore"

    @classmethod
    def from_text(cls, value: str) -> ActionChoice | None:
        """Parse an action name case-insensitively.

        Args:
            value: Text as typed into the action table.

        Returns:
            Matching ActionChoice, UNSET for blank text, or None if the
            text names no known action.
        """
        text = value.strip()
        if not text:
            return cls.UNSET
        for choice in cls:
            if choice.value.lower() == text.lower():
                return choice
        return None


# Sort ranks for deterministic output ordering
KIND_ORDER: dict[EntryKind, int] = {kind: i for i, kind in enumerate(EntryKind)}
STATUS_ORDER: dict[DiffStatus, int] = {status: i for i, status in enumerate(DiffStatus)}


@dataclass(frozen=True, slots=True)
class Difference:
    """How one relative path differs between source and target.

    Attributes:
        kind: File or directory.
        status: Classification of the difference.
        relative_path: Shared identity key of both sides.
        source_entry: Entry in the source tree (None for ONLY_IN_TARGET).
        target_entry: Entry in the target tree (None for ONLY_IN_SOURCE).
        recommendation: Suggested handling, for human review only.
        action: Disposition to execute (defaults to UNSET).
        notes: Free text.
    """

    kind: EntryKind
    status: DiffStatus
    relative_path: str
    source_entry: Entry | None
    target_entry: Entry | None
    recommendation: str = ""
    action: ActionChoice = ActionChoice.UNSET
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate that the present sides match the status."""
        if self.source_entry is None and self.target_entry is None:
            msg = f"Difference for {self.relative_path} has neither side"
            raise ValueError(msg)
        if self.status == DiffStatus.ONLY_IN_SOURCE and self.target_entry is not None:
            msg = f"{self.relative_path}: OnlyInSource cannot carry a target entry"
            raise ValueError(msg)
        if self.status == DiffStatus.ONLY_IN_TARGET and self.source_entry is not None:
            msg = f"{self.relative_path}: OnlyInTarget cannot carry a source entry"
            raise ValueError(msg)

    @property
    def identity(self) -> tuple[EntryKind, str]:
        """Identity key shared with the action table (kind, relative_path)."""
        return (self.kind, self.relative_path)

    @property
    def source_size(self) -> int:
        """Source size in bytes (0 when absent)."""
        return self.source_entry.size_bytes if self.source_entry else 0

    @property
    def target_size(self) -> int:
        """Target size in bytes (0 when absent)."""
        return self.target_entry.size_bytes if self.target_entry else 0

    @property
    def size_delta(self) -> int:
        """Target size minus source size."""
        return self.target_size - self.source_size

    @property
    def name(self) -> str:
        """Base name taken from whichever side is present."""
        entry = self.source_entry or self.target_entry
        return entry.name if entry else ""

    @property
    def extension(self) -> str:
        """Extension taken from whichever side is present."""
        entry = self.source_entry or self.target_entry
        return entry.extension if entry else ""

    def sort_key(self) -> tuple[int, int, str]:
        """Key ordering differences by kind, status, then path."""
        return (KIND_ORDER[self.kind], STATUS_ORDER[self.status], self.relative_path)
