"""Action table row model.

An ActionRow is the reviewable, human-editable rendering of one
Difference. Sizes and timestamps are carried as display strings;
only the paths and the action are used by the executor.
"""

from __future__ import annotations

from dataclasses import dataclass, replace

from treectl.models.difference import ActionChoice, DiffStatus
from treectl.models.entry import EntryKind

# Column order of the persisted action table
ACTION_TABLE_COLUMNS: tuple[str, ...] = (
    "Action",
    "Type",
    "Status",
    "RelativePath",
    "Name",
    "Extension",
    "SourcePath",
    "TargetPath",
    "SourceSize",
    "TargetSize",
    "SizeDifference",
    "SourceModified",
    "TargetModified",
    "Recommendation",
    "Notes",
)


@dataclass(frozen=True, slots=True)
class ActionRow:
    """One row of the action table.

    Attributes:
        action: Disposition to execute; the only field a reviewer edits.
        kind: File or directory.
        status: Difference classification.
        relative_path: Identity key together with ``kind``.
        name: Base name of the entry.
        extension: File extension (empty for directories).
        source_path: Absolute source path (empty when only in target).
        target_path: Absolute target path (empty when only in source).
        source_size: Human-readable source size.
        target_size: Human-readable target size.
        size_difference: Human-readable signed size delta.
        source_modified: Source modification time for display.
        target_modified: Target modification time for display.
        recommendation: Suggested handling.
        notes: Free text.
    """

    action: ActionChoice
    kind: EntryKind
    status: DiffStatus
    relative_path: str
    name: str = ""
    extension: str = ""
    source_path: str = ""
    target_path: str = ""
    source_size: str = ""
    target_size: str = ""
    size_difference: str = ""
    source_modified: str = ""
    target_modified: str = ""
    recommendation: str = ""
    notes: str = ""

    def __post_init__(self) -> None:
        """Validate row data after initialization."""
        if not self.relative_path:
            msg = "Relative path cannot be empty"
            raise ValueError(msg)

    @property
    def identity(self) -> tuple[EntryKind, str]:
        """Identity key shared with Difference (kind, relative_path)."""
        return (self.kind, self.relative_path)

    @property
    def is_file(self) -> bool:
        """Check if this row describes a file."""
        return self.kind == EntryKind.FILE

    def with_action(self, action: ActionChoice) -> ActionRow:
        """Return a copy of this row with a different action."""
        return replace(self, action=action)

    def to_record(self) -> dict[str, str]:
        """Convert to a column-name keyed record for persistence."""
        return {
            "Action": self.action.value,
            "Type": self.kind.value,
            "Status": self.status.value,
            "RelativePath": self.relative_path,
            "Name": self.name,
            "Extension": self.extension,
            "SourcePath": self.source_path,
            "TargetPath": self.target_path,
            "SourceSize": self.source_size,
            "TargetSize": self.target_size,
            "SizeDifference": self.size_difference,
            "SourceModified": self.source_modified,
            "TargetModified": self.target_modified,
            "Recommendation": self.recommendation,
            "Notes": self.notes,
        }
