"""Execution outcome models.

This module defines the per-row result type of the action executor
and the aggregated summary of one run.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from treectl.models.difference import ActionChoice
from treectl.models.entry import EntryKind


class OutcomeStatus(str, Enum):
    """Result of executing one action table row.

    Attributes:
        COPIED: Source copied (or directory created) at the destination.
        DELETED: Destination backed up, then deleted.
        FAILED: The row could not be executed; see the message.
        SKIPPED: The row was not executed (Ignore, Unset or aborted run).
    """

    COPIED = "copied"
    DELETED = "deleted"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True, slots=True)
class RowOutcome:
    """Outcome of a single action table row.

    In dry-run mode the status is the outcome the row would have had.

    Attributes:
        kind: File or directory.
        relative_path: Identity path of the row.
        action: Action that was requested.
        status: Outcome classification.
        message: Reason or detail for the outcome.
        source_path: Resolved source path, if any.
        destination_path: Computed destination path, if any.
        backup_path: Backup location for deletions, if any.
        dry_run: Whether the filesystem was left untouched.
    """

    kind: EntryKind
    relative_path: str
    action: ActionChoice
    status: OutcomeStatus
    message: str = ""
    source_path: str | None = None
    destination_path: str | None = None
    backup_path: str | None = None
    dry_run: bool = False

    @property
    def failed(self) -> bool:
        """Check if the row failed."""
        return self.status == OutcomeStatus.FAILED

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "kind": self.kind.value,
            "relative_path": self.relative_path,
            "action": self.action.value,
            "status": self.status.value,
            "message": self.message,
            "source_path": self.source_path,
            "destination_path": self.destination_path,
            "backup_path": self.backup_path,
            "dry_run": self.dry_run,
        }


@dataclass(frozen=True, slots=True)
class RunSummary:
    """Aggregated counts of one executor run.

    Attributes:
        total: Number of rows processed.
        copied: Rows copied.
        deleted: Rows backed up and deleted.
        failed: Rows that failed.
        skipped: Rows skipped.
        dry_run: Whether the run was a dry run.
        aborted: Whether the run stopped early on a fatal condition.
    """

    total: int
    copied: int
    deleted: int
    failed: int
    skipped: int
    dry_run: bool = False
    aborted: bool = False

    @classmethod
    def from_outcomes(
        cls,
        outcomes: tuple[RowOutcome, ...],
        *,
        dry_run: bool = False,
        aborted: bool = False,
    ) -> RunSummary:
        """Count outcomes by status.

        Args:
            outcomes: Row outcomes of the run.
            dry_run: Whether the run was a dry run.
            aborted: Whether the run stopped early.

        Returns:
            RunSummary with per-status counts.
        """
        counts = dict.fromkeys(OutcomeStatus, 0)
        for outcome in outcomes:
            counts[outcome.status] += 1
        return cls(
            total=len(outcomes),
            copied=counts[OutcomeStatus.COPIED],
            deleted=counts[OutcomeStatus.DELETED],
            failed=counts[OutcomeStatus.FAILED],
            skipped=counts[OutcomeStatus.SKIPPED],
            dry_run=dry_run,
            aborted=aborted,
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return {
            "total": self.total,
            "copied": self.copied,
            "deleted": self.deleted,
            "failed": self.failed,
            "skipped": self.skipped,
            "dry_run": self.dry_run,
            "aborted": self.aborted,
        }


@dataclass(frozen=True, slots=True)
class ExecutionReport:
    """Outcomes of one executor run plus their summary."""

    outcomes: tuple[RowOutcome, ...]
    summary: RunSummary

    @property
    def has_failures(self) -> bool:
        """Check if any row failed."""
        return self.summary.failed > 0
