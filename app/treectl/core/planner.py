"""Action planning from diff results.

Pure business logic for turning differences into the reviewable action
table, assigning default actions, and carrying reviewed actions over
from an earlier table after a re-scan.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from dataclasses import replace
from typing import TypeVar

from treectl.models.action import ActionRow
from treectl.models.difference import ActionChoice, Difference, DiffStatus
from treectl.utils.formatting import format_signed_size, format_size, format_timestamp

logger = logging.getLogger(__name__)

DEFAULT_ACTIONS: dict[DiffStatus, ActionChoice] = {
    DiffStatus.ONLY_IN_SOURCE: ActionChoice.COPY,
    DiffStatus.ONLY_IN_TARGET: ActionChoice.IGNORE,
    DiffStatus.SIZE_DIFFERENCE: ActionChoice.IGNORE,
    DiffStatus.TIME_DIFFERENCE: ActionChoice.IGNORE,
}

Plannable = TypeVar("Plannable", ActionRow, Difference)


def difference_to_row(diff: Difference) -> ActionRow:
    """Render a Difference as an action table row.

    Args:
        diff: Difference to render.

    Returns:
        ActionRow carrying display sizes and timestamps.
    """
    src = diff.source_entry
    tgt = diff.target_entry
    return ActionRow(
        action=diff.action,
        kind=diff.kind,
        status=diff.status,
        relative_path=diff.relative_path,
        name=diff.name,
        extension=diff.extension,
        source_path=src.absolute_path if src else "",
        target_path=tgt.absolute_path if tgt else "",
        source_size=format_size(src.size_bytes) if src else "",
        target_size=format_size(tgt.size_bytes) if tgt else "",
        size_difference=format_signed_size(diff.size_delta),
        source_modified=format_timestamp(src.modified_at if src else None),
        target_modified=format_timestamp(tgt.modified_at if tgt else None),
        recommendation=diff.recommendation,
        notes=diff.notes,
    )


def build_action_table(differences: Iterable[Difference]) -> list[ActionRow]:
    """Render differences as action table rows, sorted by identity.

    Args:
        differences: Differences from the diff engine.

    Returns:
        Rows sorted by kind, status, then relative path.
    """
    ordered = sorted(differences, key=Difference.sort_key)
    return [difference_to_row(d) for d in ordered]


def apply_default_actions(items: Sequence[Plannable]) -> list[Plannable]:
    """Assign the default action to every row that has none.

    Only UNSET rows are changed; an action already chosen by a reviewer
    is kept. Running the pass again yields the same table.

    Args:
        items: Action rows or differences.

    Returns:
        New list with defaults assigned.
    """
    result: list[Plannable] = []
    assigned = 0
    for item in items:
        if item.action == ActionChoice.UNSET:
            item = replace(item, action=DEFAULT_ACTIONS[item.status])
            assigned += 1
        result.append(item)
    logger.debug("Assigned default actions to %d of %d row(s)", assigned, len(result))
    return result


def merge_previous_actions(
    rows: Sequence[ActionRow],
    previous: Sequence[ActionRow],
) -> list[ActionRow]:
    """Carry reviewed actions and notes over from an earlier table.

    Rows are matched by identity (kind, relative path). A previous
    action other than UNSET replaces the new row's action; non-empty
    previous notes replace the new row's notes.

    Args:
        rows: Freshly planned rows.
        previous: Rows of an earlier, reviewed table.

    Returns:
        New list of rows with reviewed decisions restored.
    """
    reviewed = {row.identity: row for row in previous}
    merged: list[ActionRow] = []
    carried = 0
    for row in rows:
        old = reviewed.pop(row.identity, None)
        if old is not None:
            changes: dict[str, object] = {}
            if old.action != ActionChoice.UNSET:
                changes["action"] = old.action
            if old.notes:
                changes["notes"] = old.notes
            if changes:
                row = replace(row, **changes)  # type: ignore[arg-type]
                carried += 1
        merged.append(row)

    logger.info("Carried over %d reviewed row(s) from previous table", carried)
    if reviewed:
        logger.info("%d previous row(s) no longer differ and were dropped", len(reviewed))
    return merged
