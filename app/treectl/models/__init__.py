"""Data models for treectl.

This module exports the core data structures used throughout the application.
"""

from treectl.models.action import ACTION_TABLE_COLUMNS, ActionRow
from treectl.models.difference import ActionChoice, Difference, DiffStatus
from treectl.models.entry import (
    Entry,
    EntryKind,
    InventoryLabel,
    TreeInventory,
    normalize_relative_path,
)
from treectl.models.outcome import ExecutionReport, OutcomeStatus, RowOutcome, RunSummary

__all__ = [
    "ACTION_TABLE_COLUMNS",
    "ActionChoice",
    "ActionRow",
    "DiffStatus",
    "Difference",
    "Entry",
    "EntryKind",
    "ExecutionReport",
    "InventoryLabel",
    "OutcomeStatus",
    "RowOutcome",
    "RunSummary",
    "TreeInventory",
    "normalize_relative_path",
]
