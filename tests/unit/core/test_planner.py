"""Unit tests for action planning."""

from dataclasses import replace

import pytest
from treectl.core.diff import DiffEngine
from treectl.core.planner import (
    DEFAULT_ACTIONS,
    apply_default_actions,
    build_action_table,
    difference_to_row,
    merge_previous_actions,
)
from treectl.models.difference import ActionChoice, DiffStatus
from treectl.models.entry import EntryKind, InventoryLabel


@pytest.fixture
def differences(make_entry, make_inventory):
    """One difference of every status."""
    source = make_inventory(
        [
            make_entry("new.txt", size=2048),
            make_entry("grown.txt", size=10),
            make_entry("touched.txt", size=5, offset=30),
            make_entry("newdir", kind=EntryKind.DIRECTORY),
        ],
        root_path="/src",
    )
    target = make_inventory(
        [
            make_entry("extra.txt", size=1, root="/tgt"),
            make_entry("grown.txt", size=15, root="/tgt"),
            make_entry("touched.txt", size=5, root="/tgt"),
        ],
        label=InventoryLabel.TARGET,
        root_path="/tgt",
    )
    return DiffEngine().compute_diff(source, target).differences


class TestDifferenceToRow:
    """Tests for rendering differences as rows."""

    def test_only_in_source_row(self, differences) -> None:
        """Missing-in-target rows carry the source path and empty target fields."""
        diff = next(d for d in differences if d.relative_path == "new.txt")
        row = difference_to_row(diff)

        assert row.action == ActionChoice.UNSET
        assert row.kind == EntryKind.FILE
        assert row.status == DiffStatus.ONLY_IN_SOURCE
        assert row.source_path == "/data/source/new.txt"
        assert row.target_path == ""
        assert row.source_size == "2.00 KB"
        assert row.target_size == ""
        assert row.size_difference == "-2.00 KB"
        assert row.source_modified == "2026-03-01 12:00:00"
        assert row.target_modified == ""
        assert row.extension == ".txt"

    def test_size_difference_row(self, differences) -> None:
        """Rows for files on both sides carry both paths and a signed delta."""
        diff = next(d for d in differences if d.relative_path == "grown.txt")
        row = difference_to_row(diff)
        assert row.source_path == "/data/source/grown.txt"
        assert row.target_path == "/tgt/grown.txt"
        assert row.size_difference == "+5 B"


class TestBuildActionTable:
    """Tests for build_action_table."""

    def test_one_row_per_difference_sorted(self, differences) -> None:
        """Every difference becomes a row in kind, status, path order."""
        rows = build_action_table(reversed(differences))
        assert [(r.kind, r.status, r.relative_path) for r in rows] == [
            (EntryKind.FILE, DiffStatus.ONLY_IN_SOURCE, "new.txt"),
            (EntryKind.FILE, DiffStatus.ONLY_IN_TARGET, "extra.txt"),
            (EntryKind.FILE, DiffStatus.SIZE_DIFFERENCE, "grown.txt"),
            (EntryKind.FILE, DiffStatus.TIME_DIFFERENCE, "touched.txt"),
            (EntryKind.DIRECTORY, DiffStatus.ONLY_IN_SOURCE, "newdir"),
        ]
        assert all(r.action == ActionChoice.UNSET for r in rows)

    def test_empty(self) -> None:
        """No differences, no rows."""
        assert build_action_table([]) == []


class TestApplyDefaultActions:
    """Tests for default action assignment."""

    def test_defaults_by_status(self, differences) -> None:
        """OnlyInSource rows copy; everything else is ignored."""
        rows = apply_default_actions(build_action_table(differences))
        for row in rows:
            assert row.action == DEFAULT_ACTIONS[row.status]
        assert {r.relative_path for r in rows if r.action == ActionChoice.COPY} == {
            "new.txt",
            "newdir",
        }

    def test_human_choice_kept(self, differences) -> None:
        """A reviewer's action is never overwritten."""
        rows = build_action_table(differences)
        rows[1] = rows[1].with_action(ActionChoice.DELETE)
        result = apply_default_actions(rows)
        assert result[1].action == ActionChoice.DELETE

    def test_idempotent(self, differences) -> None:
        """Applying defaults twice equals applying once."""
        once = apply_default_actions(build_action_table(differences))
        twice = apply_default_actions(once)
        assert twice == once

    def test_works_on_differences(self, differences) -> None:
        """Differences can be defaulted directly."""
        result = apply_default_actions(list(differences))
        assert all(d.action != ActionChoice.UNSET for d in result)

    def test_input_not_mutated(self, differences) -> None:
        """The input rows are left untouched."""
        rows = build_action_table(differences)
        apply_default_actions(rows)
        assert all(r.action == ActionChoice.UNSET for r in rows)


class TestMergePreviousActions:
    """Tests for carrying reviewed decisions over."""

    def test_actions_and_notes_carried_by_identity(self, differences) -> None:
        """Matching rows take the previous action and notes."""
        rows = build_action_table(differences)
        previous = [
            rows[0].with_action(ActionChoice.IGNORE),
            replace(rows[1], action=ActionChoice.DELETE, notes="checked by hand"),
        ]
        merged = merge_previous_actions(rows, previous)

        assert merged[0].action == ActionChoice.IGNORE
        assert merged[1].action == ActionChoice.DELETE
        assert merged[1].notes == "checked by hand"
        assert merged[2].action == ActionChoice.UNSET

    def test_notes_kept_without_action(self, differences) -> None:
        """Notes carry over even when the previous action was left Unset."""
        rows = apply_default_actions(build_action_table(differences))
        previous = [replace(rows[0], action=ActionChoice.UNSET, notes="later")]
        merged = merge_previous_actions(rows, previous)
        assert merged[0].action == rows[0].action
        assert merged[0].notes == "later"

    def test_unset_previous_does_not_override(self, differences) -> None:
        """An undecided previous row leaves the new row alone."""
        rows = apply_default_actions(build_action_table(differences))
        previous = [r.with_action(ActionChoice.UNSET) for r in rows]
        merged = merge_previous_actions(rows, previous)
        assert merged == rows

    def test_rows_not_in_previous_unchanged(self, differences) -> None:
        """New differences stay as planned."""
        rows = build_action_table(differences)
        assert merge_previous_actions(rows, []) == rows

