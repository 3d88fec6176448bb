"""Diff engine for comparing two tree inventories.

This module provides the DiffEngine class that compares a source and a
target inventory by relative path and classifies every differing path.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from treectl.models.difference import Difference, DiffStatus
from treectl.models.entry import Entry, EntryKind, TreeInventory

# Default tolerance for modification time comparisons, in seconds
DEFAULT_TIME_TOLERANCE = 2.0

RECOMMEND_COPY = "copy to target"
RECOMMEND_REVIEW_TARGET = "review for deletion or keep"
RECOMMEND_UPDATE = "update target (source is newer)"
RECOMMEND_SOURCE_OLDER = "source is older - review"
RECOMMEND_REVIEW_CONTENT = "size difference - review content"


@dataclass(frozen=True, slots=True)
class DiffResult:
    """Result of comparing two inventories.

    Attributes:
        differences: Differences sorted by kind, status and relative path.
        source_root: Root path of the source inventory.
        target_root: Root path of the target inventory.
    """

    differences: tuple[Difference, ...]
    source_root: str
    target_root: str

    @property
    def is_identical(self) -> bool:
        """Check if the trees are equal within the time tolerance."""
        return not self.differences

    @property
    def total_changes(self) -> int:
        """Total number of differences found."""
        return len(self.differences)

    def count(self, status: DiffStatus, kind: EntryKind | None = None) -> int:
        """Count differences with a status, optionally of one kind."""
        return sum(
            1
            for d in self.differences
            if d.status == status and (kind is None or d.kind == kind)
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        summary: dict[str, int] = {status.value: self.count(status) for status in DiffStatus}
        summary["total"] = self.total_changes
        return {
            "identical": self.is_identical,
            "source_root": self.source_root,
            "target_root": self.target_root,
            "summary": summary,
            "differences": [_difference_to_dict(d) for d in self.differences],
        }


def _difference_to_dict(diff: Difference) -> dict[str, Any]:
    """Convert a Difference to a dictionary."""
    return {
        "kind": diff.kind.value,
        "status": diff.status.value,
        "relative_path": diff.relative_path,
        "source_path": diff.source_entry.absolute_path if diff.source_entry else None,
        "target_path": diff.target_entry.absolute_path if diff.target_entry else None,
        "source_size": diff.source_size,
        "target_size": diff.target_size,
        "size_delta": diff.size_delta,
        "source_modified": (
            diff.source_entry.modified_at.isoformat() if diff.source_entry else None
        ),
        "target_modified": (
            diff.target_entry.modified_at.isoformat() if diff.target_entry else None
        ),
        "recommendation": diff.recommendation,
        "action": diff.action.value,
    }


class DiffEngine:
    """Engine for computing differences between two tree inventories.

    Files present on both sides are compared by size first, then by
    modification time. A size difference always wins over a time
    difference. Directories are only ever reported as missing on one
    side.

    Example:
        >>> engine = DiffEngine(time_tolerance=2.0)
        >>> result = engine.compute_diff(source_inventory, target_inventory)
        >>> if result.is_identical:
        ...     print("Trees match!")

    Args:
        time_tolerance: Modification times at most this many seconds
            apart are considered equal.
    """

    def __init__(self, time_tolerance: float = DEFAULT_TIME_TOLERANCE) -> None:
        if time_tolerance < 0:
            msg = f"Time tolerance cannot be negative, got {time_tolerance}"
            raise ValueError(msg)
        self._tolerance = timedelta(seconds=time_tolerance)

    def compute_diff(self, source: TreeInventory, target: TreeInventory) -> DiffResult:
        """Compare a source inventory against a target inventory.

        Args:
            source: Inventory of the source tree.
            target: Inventory of the target tree.

        Returns:
            DiffResult covering every differing relative path.
        """
        differences: list[Difference] = []
        differences.extend(self._compare(source.files, target.files, EntryKind.FILE))
        differences.extend(
            self._compare(source.directories, target.directories, EntryKind.DIRECTORY)
        )
        differences.sort(key=Difference.sort_key)

        return DiffResult(
            differences=tuple(differences),
            source_root=source.root_path,
            target_root=target.root_path,
        )

    def _compare(
        self,
        source_entries: tuple[Entry, ...],
        target_entries: tuple[Entry, ...],
        kind: EntryKind,
    ) -> list[Difference]:
        """Compare entries of one kind keyed by relative path.

        Args:
            source_entries: Source entries of ``kind``.
            target_entries: Target entries of ``kind``.
            kind: Kind being compared.

        Returns:
            Unsorted list of differences for this kind.
        """
        source_map = {e.relative_path: e for e in source_entries}
        target_map = {e.relative_path: e for e in target_entries}
        differences: list[Difference] = []

        for path, entry in source_map.items():
            if path not in target_map:
                differences.append(
                    Difference(
                        kind=kind,
                        status=DiffStatus.ONLY_IN_SOURCE,
                        relative_path=path,
                        source_entry=entry,
                        target_entry=None,
                        recommendation=RECOMMEND_COPY,
                    )
                )

        for path, entry in target_map.items():
            if path not in source_map:
                differences.append(
                    Difference(
                        kind=kind,
                        status=DiffStatus.ONLY_IN_TARGET,
                        relative_path=path,
                        source_entry=None,
                        target_entry=entry,
                        recommendation=RECOMMEND_REVIEW_TARGET,
                    )
                )

        # Directories present on both sides are never reported
        if kind == EntryKind.DIRECTORY:
            return differences

        for path, src in source_map.items():
            tgt = target_map.get(path)
            if tgt is None:
                continue
            status = self.classify(src, tgt)
            if status is None:
                continue
            differences.append(
                Difference(
                    kind=kind,
                    status=status,
                    relative_path=path,
                    source_entry=src,
                    target_entry=tgt,
                    recommendation=recommend(src, tgt),
                )
            )

        return differences

    def classify(self, source: Entry, target: Entry) -> DiffStatus | None:
        """Classify a file present on both sides.

        Args:
            source: Source entry.
            target: Target entry.

        Returns:
            SIZE_DIFFERENCE, TIME_DIFFERENCE, or None if equal.
        """
        if source.size_bytes != target.size_bytes:
            return DiffStatus.SIZE_DIFFERENCE
        if abs(target.modified_at - source.modified_at) > self._tolerance:
            return DiffStatus.TIME_DIFFERENCE
        return None


def recommend(source: Entry, target: Entry) -> str:
    """Suggest handling for a file present on both sides.

    Args:
        source: Source entry.
        target: Target entry.

    Returns:
        Human-readable recommendation.
    """
    if source.modified_at > target.modified_at:
        return RECOMMEND_UPDATE
    if target.modified_at > source.modified_at:
        return RECOMMEND_SOURCE_OLDER
    return RECOMMEND_REVIEW_CONTENT
