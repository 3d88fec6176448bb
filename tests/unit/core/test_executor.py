"""Unit tests for the action executor.

Tests run against real temporary directory trees.
"""

import os
import shutil
from pathlib import Path
from unittest.mock import patch

import pytest
from treectl.core.executor import (
    ActionExecutor,
    ExecutionError,
    SourceResolver,
    derive_source_base,
    rewrite_relative_path,
)
from treectl.models.action import ActionRow
from treectl.models.difference import ActionChoice, DiffStatus
from treectl.models.entry import EntryKind
from treectl.models.outcome import OutcomeStatus


def _copy_row(source_root: Path, relative: str, kind: EntryKind = EntryKind.FILE) -> ActionRow:
    """Copy row whose stored source path is source_root/relative."""
    return ActionRow(
        action=ActionChoice.COPY,
        kind=kind,
        status=DiffStatus.ONLY_IN_SOURCE,
        relative_path=relative,
        name=relative.rsplit("/", 1)[-1],
        source_path=str(source_root.joinpath(*relative.split("/"))),
    )


def _delete_row(target_root: Path, relative: str, kind: EntryKind = EntryKind.FILE) -> ActionRow:
    """Delete row whose stored target path is target_root/relative."""
    return ActionRow(
        action=ActionChoice.DELETE,
        kind=kind,
        status=DiffStatus.ONLY_IN_TARGET,
        relative_path=relative,
        name=relative.rsplit("/", 1)[-1],
        target_path=str(target_root.joinpath(*relative.split("/"))),
    )


def _snapshot(root: Path) -> dict[str, bytes | None]:
    """Map every path below root to its content (None for directories)."""
    result: dict[str, bytes | None] = {}
    for dirpath, dirnames, filenames in os.walk(root):
        for name in dirnames:
            result[os.path.relpath(os.path.join(dirpath, name), root)] = None
        for name in filenames:
            path = os.path.join(dirpath, name)
            result[os.path.relpath(path, root)] = Path(path).read_bytes()
    return result


class TestRewriteRelativePath:
    """Tests for rewrite_relative_path."""

    def test_no_prefix(self) -> None:
        """An empty prefix leaves the path unchanged."""
        assert rewrite_relative_path("a/b.txt", "") == "a/b.txt"

    def test_prefix_stripped_case_insensitively(self) -> None:
        """The prefix matches regardless of case."""
        assert rewrite_relative_path("users/Alice/Docs/a.txt", "Users\\alice") == "Docs/a.txt"

    def test_partial_segment_not_stripped(self) -> None:
        """Only whole segments match."""
        assert rewrite_relative_path("Users/alicia/a.txt", "Users/alice") == "Users/alicia/a.txt"

    def test_path_equal_to_prefix(self) -> None:
        """A path equal to the prefix rewrites to empty."""
        assert rewrite_relative_path("Users/alice", "Users/alice/") == ""


class TestDeriveSourceBase:
    """Tests for derive_source_base."""

    def test_suffix_removed(self) -> None:
        """The base is the source path without the relative suffix."""
        assert derive_source_base("/old/root/docs/a.txt", "docs/a.txt") == Path("/old/root")

    def test_windows_separators(self) -> None:
        """Backslash paths are matched too."""
        base = derive_source_base("D:\\Data\\docs\\a.txt", "docs/a.txt")
        assert base == Path("D:\\Data")

    def test_mismatch(self) -> None:
        """A path not ending with the relative path yields None."""
        assert derive_source_base("/old/root/other.txt", "docs/a.txt") is None


class TestSourceResolver:
    """Tests for source path reconstruction."""

    def test_stored_path_used(self, tmp_path: Path, make_tree) -> None:
        """An existing stored source path is used directly."""
        src = make_tree(tmp_path / "src", {"a.txt": "x"})
        row = _copy_row(src, "a.txt")
        path, detail = SourceResolver([row]).resolve(row)
        assert path == src / "a.txt"
        assert detail == ""

    def test_reconstructed_from_derived_base(self, tmp_path: Path, make_tree) -> None:
        """A missing stored path is rebuilt from another row's base."""
        src = make_tree(tmp_path / "src", {"a.txt": "x", "docs/b.txt": "y"})
        good = _copy_row(src, "a.txt")
        broken = ActionRow(
            action=ActionChoice.COPY,
            kind=EntryKind.FILE,
            status=DiffStatus.ONLY_IN_SOURCE,
            relative_path="docs/b.txt",
            name="b.txt",
        )
        path, detail = SourceResolver([broken, good]).resolve(broken)
        assert path == src / "docs" / "b.txt"
        assert "reconstructed" in detail

    def test_found_by_search(self, tmp_path: Path, make_tree) -> None:
        """A moved file is found by name below the base."""
        src = make_tree(
            tmp_path / "src",
            {"moved/deep/docs/b.txt": "y", "other/b.txt": "z", "x.txt": "1"},
        )
        row = ActionRow(
            action=ActionChoice.COPY,
            kind=EntryKind.FILE,
            status=DiffStatus.ONLY_IN_SOURCE,
            relative_path="docs/b.txt",
            name="b.txt",
            source_path=str(tmp_path / "gone" / "docs" / "b.txt"),
        )
        path, detail = SourceResolver([row], source_root=src).resolve(row)
        assert path == src / "moved" / "deep" / "docs" / "b.txt"
        assert "search" in detail

    def test_unresolvable(self, tmp_path: Path) -> None:
        """Without any base the row cannot be resolved."""
        row = ActionRow(
            action=ActionChoice.COPY,
            kind=EntryKind.FILE,
            status=DiffStatus.ONLY_IN_SOURCE,
            relative_path="a.txt",
            source_path=str(tmp_path / "missing" / "a.txt"),
        )
        path, detail = SourceResolver([row]).resolve(row)
        assert path is None
        assert "no base directory" in detail


class TestCopy:
    """Tests for Copy rows."""

    def test_copy_creates_parents_and_preserves_content(
        self, tmp_path: Path, make_tree
    ) -> None:
        """Files are copied with missing parent directories created."""
        src = make_tree(tmp_path / "src", {"docs/sub/a.txt": "hello"})
        dest = tmp_path / "dest"
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [_copy_row(src, "docs/sub/a.txt")]
        )

        assert report.summary.copied == 1
        assert (dest / "docs" / "sub" / "a.txt").read_text() == "hello"
        assert report.outcomes[0].destination_path == str(dest / "docs" / "sub" / "a.txt")

    def test_copy_overwrites_existing(self, tmp_path: Path, make_tree) -> None:
        """An existing destination file is overwritten."""
        src = make_tree(tmp_path / "src", {"a.txt": "new"})
        dest = make_tree(tmp_path / "dest", {"a.txt": "old content"})
        ActionExecutor(dest, backup_dir=tmp_path / "bk").execute([_copy_row(src, "a.txt")])
        assert (dest / "a.txt").read_text() == "new"

    def test_copy_directory_row_creates_directory(self, tmp_path: Path, make_tree) -> None:
        """A directory row creates the directory only."""
        src = make_tree(tmp_path / "src", {"empty": None})
        dest = tmp_path / "dest"
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [_copy_row(src, "empty", EntryKind.DIRECTORY)]
        )
        assert report.outcomes[0].status == OutcomeStatus.COPIED
        assert (dest / "empty").is_dir()

    def test_reconstruction_scenario(self, tmp_path: Path, make_tree) -> None:
        """A table planned on another machine is repaired from a valid row."""
        src = make_tree(tmp_path / "src", {"a.txt": "A", "docs/b.txt": "B"})
        stale = ActionRow(
            action=ActionChoice.COPY,
            kind=EntryKind.FILE,
            status=DiffStatus.ONLY_IN_SOURCE,
            relative_path="docs/b.txt",
            name="b.txt",
            source_path="Z:\\elsewhere\\docs\\b.txt",
        )
        dest = tmp_path / "dest"
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [_copy_row(src, "a.txt"), stale]
        )

        assert report.summary.copied == 2
        assert (dest / "docs" / "b.txt").read_text() == "B"
        assert "reconstructed" in report.outcomes[1].message

    def test_missing_source_fails_row_only(self, tmp_path: Path, make_tree) -> None:
        """An unresolvable source fails its row; other rows still run."""
        src = make_tree(tmp_path / "src", {"a.txt": "A"})
        missing = _copy_row(src, "nowhere.txt")
        dest = tmp_path / "dest"
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [missing, _copy_row(src, "a.txt")]
        )

        assert [o.status for o in report.outcomes] == [OutcomeStatus.FAILED, OutcomeStatus.COPIED]
        assert report.has_failures is True
        assert report.summary.aborted is False
        assert "not found" in report.outcomes[0].message

    def test_strip_prefix(self, tmp_path: Path, make_tree) -> None:
        """A stripped prefix relocates the destination."""
        src = make_tree(tmp_path / "src", {"Users/alice/Docs/a.txt": "A"})
        dest = tmp_path / "dest"
        ActionExecutor(dest, strip_prefix="users/ALICE", backup_dir=tmp_path / "bk").execute(
            [_copy_row(src, "Users/alice/Docs/a.txt")]
        )
        assert (dest / "Docs" / "a.txt").read_text() == "A"

    def test_file_onto_directory_fails(self, tmp_path: Path, make_tree) -> None:
        """A file cannot replace an existing directory."""
        src = make_tree(tmp_path / "src", {"x": "file"})
        dest = make_tree(tmp_path / "dest", {"x/inner.txt": "keep"})
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute([_copy_row(src, "x")])
        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert (dest / "x" / "inner.txt").read_text() == "keep"

    def test_directory_onto_file_fails(self, tmp_path: Path, make_tree) -> None:
        """A directory row cannot replace an existing file."""
        src = make_tree(tmp_path / "src", {"x": None})
        dest = make_tree(tmp_path / "dest", {"x": "file"})
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [_copy_row(src, "x", EntryKind.DIRECTORY)]
        )
        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert "a file is in the way" in report.outcomes[0].message
        assert (dest / "x").read_text() == "file"

    def test_file_row_resolving_to_root_fails(self, tmp_path: Path, make_tree) -> None:
        """A file row equal to the stripped prefix is not written over the root."""
        src = make_tree(tmp_path / "src", {"Users/alice": "A"})
        dest = tmp_path / "dest"
        executor = ActionExecutor(dest, strip_prefix="Users/alice", backup_dir=tmp_path / "bk")
        report = executor.execute([_copy_row(src, "Users/alice")])
        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert report.outcomes[0].message == "Row resolves to the destination root"
        assert dest.is_dir()


class TestDelete:
    """Tests for Delete rows and backup-before-delete."""

    def test_file_backed_up_then_deleted(self, tmp_path: Path, make_tree) -> None:
        """The backup is byte-identical to the deleted file."""
        dest = make_tree(tmp_path / "dest", {"old/a.bin": "payload"})
        backup_dir = tmp_path / "bk"
        report = ActionExecutor(dest, backup_dir=backup_dir).execute(
            [_delete_row(dest, "old/a.bin")]
        )

        assert report.outcomes[0].status == OutcomeStatus.DELETED
        assert not (dest / "old" / "a.bin").exists()
        assert (backup_dir / "old" / "a.bin").read_text() == "payload"
        assert report.outcomes[0].backup_path == str(backup_dir / "old" / "a.bin")

    def test_directory_backed_up_then_deleted(self, tmp_path: Path, make_tree) -> None:
        """Directory rows back up and remove the whole subtree."""
        dest = make_tree(tmp_path / "dest", {"old/x.txt": "1", "old/sub/y.txt": "2"})
        backup_dir = tmp_path / "bk"
        report = ActionExecutor(dest, backup_dir=backup_dir).execute(
            [_delete_row(dest, "old", EntryKind.DIRECTORY)]
        )

        assert report.summary.deleted == 1
        assert not (dest / "old").exists()
        assert (backup_dir / "old" / "sub" / "y.txt").read_text() == "2"

    def test_backup_failure_keeps_target(self, tmp_path: Path, make_tree) -> None:
        """If the backup cannot be written nothing is deleted."""
        dest = make_tree(tmp_path / "dest", {"a.txt": "keep me"})
        with patch("treectl.core.executor.shutil.copy2", side_effect=OSError("disk full")):
            report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
                [_delete_row(dest, "a.txt")]
            )

        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert "Backup failed" in report.outcomes[0].message
        assert (dest / "a.txt").read_text() == "keep me"

    def test_backup_verification_failure_keeps_target(self, tmp_path: Path, make_tree) -> None:
        """A backup that differs from the original blocks deletion."""
        dest = make_tree(tmp_path / "dest", {"a.txt": "keep me"})
        with patch("treectl.core.executor.filecmp.cmp", return_value=False):
            report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
                [_delete_row(dest, "a.txt")]
            )

        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert "verification failed" in report.outcomes[0].message
        assert (dest / "a.txt").exists()

    def test_missing_target_fails(self, tmp_path: Path) -> None:
        """Deleting something that is not there fails the row."""
        dest = tmp_path / "dest"
        dest.mkdir()
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [_delete_row(dest, "ghost.txt")]
        )
        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert "not found" in report.outcomes[0].message

    def test_falls_back_to_stored_target_path(self, tmp_path: Path, make_tree) -> None:
        """When the computed destination is absent the stored target is used."""
        target = make_tree(tmp_path / "target", {"a.txt": "x"})
        dest = tmp_path / "dest"
        dest.mkdir()
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(
            [_delete_row(target, "a.txt")]
        )
        assert report.outcomes[0].status == OutcomeStatus.DELETED
        assert not (target / "a.txt").exists()

    @pytest.mark.parametrize("dry_run", [True, False])
    def test_row_resolving_to_root_fails(
        self, tmp_path: Path, make_tree, dry_run: bool
    ) -> None:
        """A row equal to the stripped prefix never deletes the destination root."""
        dest = make_tree(tmp_path / "dest", {"keep.txt": "K"})
        row = _delete_row(tmp_path / "elsewhere", "Users/alice", EntryKind.DIRECTORY)

        report = ActionExecutor(
            dest, strip_prefix="Users/alice", backup_dir=tmp_path / "bk", dry_run=dry_run
        ).execute([row])

        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert "destination root" in report.outcomes[0].message
        assert (dest / "keep.txt").read_text() == "K"
        assert not (tmp_path / "bk").exists()

    def test_unwritable_backup_location_keeps_target(self, tmp_path: Path, make_tree) -> None:
        """A backup path blocked by a file fails before anything is copied."""
        dest = make_tree(tmp_path / "dest", {"old/a.txt": "keep me"})
        backup_dir = tmp_path / "bk"
        backup_dir.write_text("not a directory")

        report = ActionExecutor(dest, backup_dir=backup_dir).execute(
            [_delete_row(dest, "old/a.txt")]
        )

        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert "is not a directory" in report.outcomes[0].message
        assert (dest / "old" / "a.txt").read_text() == "keep me"


class TestSkippedRows:
    """Tests for rows that are never executed."""

    def test_ignore_and_unset_skipped(self, tmp_path: Path, make_tree) -> None:
        """Ignore and Unset rows are skipped without touching anything."""
        src = make_tree(tmp_path / "src", {"a.txt": "A", "b.txt": "B"})
        dest = tmp_path / "dest"
        rows = [
            _copy_row(src, "a.txt").with_action(ActionChoice.IGNORE),
            _copy_row(src, "b.txt").with_action(ActionChoice.UNSET),
        ]
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute(rows)

        assert [o.status for o in report.outcomes] == [OutcomeStatus.SKIPPED] * 2
        assert [o.message for o in report.outcomes] == ["Ignored", "No action set"]
        assert _snapshot(dest) == {}


class TestDryRun:
    """Tests for dry-run mode."""

    def test_dry_run_changes_nothing(self, tmp_path: Path, make_tree) -> None:
        """A dry run reports outcomes but leaves every tree untouched."""
        src = make_tree(tmp_path / "src", {"a.txt": "A", "newdir": None})
        dest = make_tree(tmp_path / "dest", {"old.txt": "O"})
        backup_dir = tmp_path / "bk"
        rows = [
            _copy_row(src, "a.txt"),
            _copy_row(src, "newdir", EntryKind.DIRECTORY),
            _delete_row(dest, "old.txt"),
        ]
        before_src, before_dest = _snapshot(src), _snapshot(dest)

        report = ActionExecutor(dest, backup_dir=backup_dir, dry_run=True).execute(rows)

        assert [o.status for o in report.outcomes] == [
            OutcomeStatus.COPIED,
            OutcomeStatus.COPIED,
            OutcomeStatus.DELETED,
        ]
        assert all(o.dry_run for o in report.outcomes)
        assert report.summary.dry_run is True
        assert _snapshot(src) == before_src
        assert _snapshot(dest) == before_dest
        assert not backup_dir.exists()

    def test_dry_run_does_not_create_destination(self, tmp_path: Path, make_tree) -> None:
        """A missing destination root is not created in a dry run."""
        src = make_tree(tmp_path / "src", {"a.txt": "A"})
        dest = tmp_path / "new" / "dest"
        report = ActionExecutor(dest, backup_dir=tmp_path / "bk", dry_run=True).execute(
            [_copy_row(src, "a.txt")]
        )
        assert report.outcomes[0].message.startswith("Would copy")
        assert not dest.exists()

    def test_dry_run_predicts_blocked_parent(self, tmp_path: Path, make_tree) -> None:
        """A file where a parent directory belongs fails in both modes alike."""
        src = make_tree(tmp_path / "src", {"a/b.txt": "B"})
        dest = make_tree(tmp_path / "dest", {"a": "plain file"})
        row = _copy_row(src, "a/b.txt")

        dry = ActionExecutor(dest, backup_dir=tmp_path / "bk", dry_run=True).execute([row])
        real = ActionExecutor(dest, backup_dir=tmp_path / "bk").execute([row])

        assert dry.outcomes[0].status == OutcomeStatus.FAILED
        assert real.outcomes[0].status == dry.outcomes[0].status
        assert real.outcomes[0].message == dry.outcomes[0].message
        assert (dest / "a").read_text() == "plain file"

    def test_dry_run_predicts_unwritable_backup(self, tmp_path: Path, make_tree) -> None:
        """A delete whose backup cannot be written fails in the dry run too."""
        dest = make_tree(tmp_path / "dest", {"old.txt": "O"})
        backup_dir = tmp_path / "bk"
        backup_dir.write_text("not a directory")

        report = ActionExecutor(dest, backup_dir=backup_dir, dry_run=True).execute(
            [_delete_row(dest, "old.txt")]
        )

        assert report.outcomes[0].status == OutcomeStatus.FAILED
        assert (dest / "old.txt").exists()


class TestDestinationRoot:
    """Tests for destination root checks and aborts."""

    def test_destination_root_created(self, tmp_path: Path, make_tree) -> None:
        """A missing destination root is created for a real run."""
        src = make_tree(tmp_path / "src", {"a.txt": "A"})
        dest = tmp_path / "a" / "b" / "dest"
        ActionExecutor(dest, backup_dir=tmp_path / "bk").execute([_copy_row(src, "a.txt")])
        assert (dest / "a.txt").exists()

    def test_destination_root_is_file(self, tmp_path: Path) -> None:
        """A file as destination root is fatal before any row runs."""
        dest = tmp_path / "dest"
        dest.write_text("not a dir")
        with pytest.raises(ExecutionError, match="not a directory"):
            ActionExecutor(dest, backup_dir=tmp_path / "bk").execute([])

    def test_destination_root_not_writable(self, tmp_path: Path) -> None:
        """An unwritable destination root is fatal."""
        dest = tmp_path / "dest"
        dest.mkdir()
        with (
            patch("treectl.core.executor.os.access", return_value=False),
            pytest.raises(ExecutionError, match="not writable"),
        ):
            ActionExecutor(dest, backup_dir=tmp_path / "bk").execute([])

    def test_run_aborts_when_root_disappears(self, tmp_path: Path, make_tree) -> None:
        """A failure after the root vanished skips all remaining rows."""
        src = make_tree(tmp_path / "src", {"a.txt": "A", "b.txt": "B", "c.txt": "C"})
        dest = tmp_path / "dest"
        dest.mkdir()
        rows = [_copy_row(src, "a.txt"), _copy_row(src, "b.txt"), _copy_row(src, "c.txt")]
        executor = ActionExecutor(dest, backup_dir=tmp_path / "bk")
        real_copy2 = shutil.copy2

        def copy_then_unplug(source, destination):  # type: ignore[no-untyped-def]
            if Path(source).name == "b.txt":
                shutil.rmtree(dest)
                raise OSError("device removed")
            return real_copy2(source, destination)

        with patch("treectl.core.executor.shutil.copy2", side_effect=copy_then_unplug):
            report = executor.execute(rows)

        assert [o.status for o in report.outcomes] == [
            OutcomeStatus.COPIED,
            OutcomeStatus.FAILED,
            OutcomeStatus.SKIPPED,
        ]
        assert report.summary.aborted is True
        assert "aborted" in report.outcomes[2].message
