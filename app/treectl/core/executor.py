"""Action table execution.

Replays a reviewed action table against a destination root: Copy rows
copy the source entry into place, Delete rows back the destination
entry up and then delete it, every other row is skipped. Failures are
isolated per row; only an inaccessible destination root aborts a run.
Dry-run mode computes and logs every decision without touching the
filesystem.
"""

from __future__ import annotations

import filecmp
import logging
import os
import shutil
from collections.abc import Sequence
from pathlib import Path

from treectl.core.paths import new_backup_dir
from treectl.models.action import ActionRow
from treectl.models.difference import ActionChoice
from treectl.models.outcome import ExecutionReport, OutcomeStatus, RowOutcome, RunSummary

logger = logging.getLogger(__name__)


class ExecutionError(Exception):
    """Raised when a run cannot start, e.g. the destination root is inaccessible."""


def rewrite_relative_path(relative_path: str, strip_prefix: str) -> str:
    """Remove a leading path prefix from a relative path.

    Matching is by whole segments and case-insensitive, so a prefix of
    ``Users/alice`` strips ``users/Alice/Documents/a.txt`` but not
    ``Users/alicia/a.txt``.

    Args:
        relative_path: ``/``-separated relative path.
        strip_prefix: Prefix to remove (any separator convention).

    Returns:
        The remaining path, the unchanged path if the prefix does not
        match, or an empty string if the path equals the prefix.
    """
    prefix = "/".join(p for p in strip_prefix.replace("\\", "/").split("/") if p)
    if not prefix:
        return relative_path
    lowered = relative_path.lower()
    if lowered == prefix.lower():
        return ""
    if lowered.startswith(prefix.lower() + "/"):
        return relative_path[len(prefix) + 1 :]
    return relative_path


def derive_source_base(source_path: str, relative_path: str) -> Path | None:
    """Strip a relative path suffix from an absolute source path.

    Args:
        source_path: Absolute source path of a row.
        relative_path: ``/``-separated relative path of the same row.

    Returns:
        The base directory, or None if ``source_path`` does not end
        with ``relative_path``.
    """
    normalized = source_path.replace("\\", "/").rstrip("/")
    suffix = "/" + relative_path
    if not normalized.lower().endswith(suffix.lower()):
        return None
    base = source_path[: len(normalized) - len(suffix)]
    return Path(base) if base else None


def _matches_kind(path: Path, row: ActionRow) -> bool:
    """Check that a path exists and has the row's kind."""
    return path.is_file() if row.is_file else path.is_dir()


def _write_blocker(path: Path, is_file: bool) -> str | None:
    """Explain why a file or directory cannot be written at ``path``.

    Checks only what can be known without writing, so dry runs and real
    runs reject the same rows.

    Returns:
        A reason, or None if nothing in the way was found.
    """
    if path.exists():
        if is_file and path.is_dir():
            return "a directory is in the way"
        if not is_file and not path.is_dir():
            return "a file is in the way"
        if is_file and not os.access(path, os.W_OK):
            return "existing file is not writable"
        return None

    ancestor = path.parent
    while not ancestor.exists() and ancestor != ancestor.parent:
        ancestor = ancestor.parent
    if not ancestor.is_dir():
        return f"{ancestor} is not a directory"
    if not os.access(ancestor, os.W_OK):
        return f"{ancestor} is not writable"
    return None


class SourceResolver:
    """Resolves the source path of action table rows.

    A row's stored source path is used when it exists. Otherwise the
    path is reconstructed from a base directory: the explicit
    ``source_root`` if given, then a base derived from any other row
    whose stored source path exists. If the reconstructed path does
    not exist either, the entry is searched by name directly under each
    base, then recursively below it.

    Args:
        rows: All rows of the table, used to derive the common base.
        source_root: Optional explicit base directory.
    """

    def __init__(self, rows: Sequence[ActionRow], source_root: Path | None = None) -> None:
        self._rows = rows
        self._source_root = source_root
        self._derived_base: Path | None = None
        self._derived = False

    def derived_base(self) -> Path | None:
        """Get the base directory derived from rows with valid source paths (cached)."""
        if self._derived:
            return self._derived_base
        self._derived = True
        for row in self._rows:
            if not row.source_path:
                continue
            base = derive_source_base(row.source_path, row.relative_path)
            if base is not None and Path(row.source_path).exists():
                logger.debug("Derived source base %s from %s", base, row.relative_path)
                self._derived_base = base
                break
        return self._derived_base

    def bases(self) -> list[Path]:
        """Get candidate base directories in order of preference."""
        bases: list[Path] = []
        for base in (self._source_root, self.derived_base()):
            if base is not None and base not in bases:
                bases.append(base)
        return bases

    def resolve(self, row: ActionRow) -> tuple[Path | None, str]:
        """Resolve the source path of a row.

        Args:
            row: Row to resolve.

        Returns:
            Tuple of (resolved path or None, explanation).
        """
        if row.source_path:
            stored = Path(row.source_path)
            if _matches_kind(stored, row):
                return stored, ""
            logger.debug("Stored source path does not exist: %s", stored)

        bases = self.bases()
        for base in bases:
            candidate = base / row.relative_path
            if _matches_kind(candidate, row):
                logger.info("Reconstructed source for %s: %s", row.relative_path, candidate)
                return candidate, f"reconstructed from {base}"

        name = row.name or row.relative_path.rsplit("/", 1)[-1]
        for base in bases:
            candidate = base / name
            if _matches_kind(candidate, row):
                logger.info("Found source for %s by name: %s", row.relative_path, candidate)
                return candidate, f"found by name under {base}"

        for base in bases:
            found = self._search(base, name, row)
            if found is not None:
                logger.info("Found source for %s by search: %s", row.relative_path, found)
                return found, f"found by search under {base}"

        if not bases:
            return None, "Source path missing and no base directory could be derived"
        tried = ", ".join(str(b) for b in bases)
        return None, f"Source not found for {row.relative_path} (searched {tried})"

    @staticmethod
    def _search(base: Path, name: str, row: ActionRow) -> Path | None:
        """Search recursively below ``base`` for an entry named ``name``.

        When several entries match, the one sharing the longest trailing
        run of path segments with the row's relative path wins, then the
        lexically smallest path.
        """
        if not base.is_dir():
            return None

        wanted = [p.lower() for p in row.relative_path.split("/")]
        matches: list[Path] = []
        for dirpath, dirnames, filenames in os.walk(base):
            dirnames.sort()
            names = filenames if row.is_file else dirnames
            matches.extend(Path(dirpath) / n for n in names if n.lower() == name.lower())

        def score(path: Path) -> tuple[int, str]:
            parts = [p.lower() for p in path.relative_to(base).parts]
            shared = 0
            for a, b in zip(reversed(parts), reversed(wanted), strict=False):
                if a != b:
                    break
                shared += 1
            return (-shared, str(path))

        return min(matches, key=score) if matches else None


class ActionExecutor:
    """Executes a reviewed action table against a destination root.

    Args:
        destination_root: Directory receiving copies; also the tree in
            which Delete rows are carried out. May differ from the
            target root of the original comparison.
        strip_prefix: Leading relative path prefix removed before
            joining relative paths to ``destination_root``.
        backup_dir: Directory receiving backups before deletion.
            Defaults to a timestamped directory in the state dir.
        source_root: Optional explicit base for reconstructing missing
            source paths.
        dry_run: If True, compute and report everything without
            modifying the filesystem.
    """

    def __init__(
        self,
        destination_root: Path,
        *,
        strip_prefix: str = "",
        backup_dir: Path | None = None,
        source_root: Path | None = None,
        dry_run: bool = False,
    ) -> None:
        self._destination_root = destination_root
        self._strip_prefix = strip_prefix
        self._backup_dir = backup_dir if backup_dir is not None else new_backup_dir()
        self._source_root = source_root
        self._dry_run = dry_run

    @property
    def backup_dir(self) -> Path:
        """Directory receiving backups before deletion."""
        return self._backup_dir

    @property
    def dry_run(self) -> bool:
        """Whether the executor leaves the filesystem untouched."""
        return self._dry_run

    def destination_for(self, row: ActionRow) -> Path:
        """Compute the destination path of a row.

        Args:
            row: Action table row.

        Returns:
            Destination root joined with the rewritten relative path.
        """
        relative = rewrite_relative_path(row.relative_path, self._strip_prefix)
        return self._destination_root / relative if relative else self._destination_root

    def execute(self, rows: Sequence[ActionRow]) -> ExecutionReport:
        """Execute all rows in order.

        Args:
            rows: Rows of the action table.

        Returns:
            ExecutionReport with one outcome per row and the summary.

        Raises:
            ExecutionError: If the destination root is inaccessible.
                Nothing is executed in that case.
        """
        self._check_destination_root()
        resolver = SourceResolver(rows, self._source_root)

        outcomes: list[RowOutcome] = []
        aborted = False
        for index, row in enumerate(rows):
            outcome = self._execute_row(row, resolver)
            self._log_outcome(outcome)
            outcomes.append(outcome)

            if outcome.failed and not self._dry_run and not self._destination_root.is_dir():
                logger.error(
                    "Destination root %s is no longer reachable, aborting run",
                    self._destination_root,
                )
                aborted = True
                outcomes.extend(
                    RowOutcome(
                        kind=rest.kind,
                        relative_path=rest.relative_path,
                        action=rest.action,
                        status=OutcomeStatus.SKIPPED,
                        message="Run aborted: destination root unreachable",
                    )
                    for rest in rows[index + 1 :]
                )
                break

        result = tuple(outcomes)
        summary = RunSummary.from_outcomes(result, dry_run=self._dry_run, aborted=aborted)
        logger.info(
            "Run finished: %d total, %d copied, %d deleted, %d failed, %d skipped%s",
            summary.total,
            summary.copied,
            summary.deleted,
            summary.failed,
            summary.skipped,
            " (dry run)" if self._dry_run else "",
        )
        return ExecutionReport(outcomes=result, summary=summary)

    def _check_destination_root(self) -> None:
        """Verify the destination root is usable, creating it for real runs.

        Raises:
            ExecutionError: If the root is not a directory, is not
                writable, or cannot be created.
        """
        root = self._destination_root
        if root.exists():
            if not root.is_dir():
                raise ExecutionError(f"Destination root is not a directory: {root}")
            if not os.access(root, os.W_OK):
                raise ExecutionError(f"Destination root is not writable: {root}")
            return

        ancestor = root.parent
        while not ancestor.exists() and ancestor != ancestor.parent:
            ancestor = ancestor.parent
        if not ancestor.is_dir() or not os.access(ancestor, os.W_OK):
            raise ExecutionError(f"Destination root cannot be created: {root}")

        if self._dry_run:
            logger.info("Dry-run: would create destination root %s", root)
            return
        try:
            root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ExecutionError(f"Cannot create destination root {root}: {e}") from e

    def _execute_row(self, row: ActionRow, resolver: SourceResolver) -> RowOutcome:
        """Dispatch a row to its action handler."""
        if row.action == ActionChoice.COPY:
            return self._copy(row, resolver)
        if row.action == ActionChoice.DELETE:
            return self._delete(row)
        reason = "Ignored" if row.action == ActionChoice.IGNORE else "No action set"
        return self._outcome(row, OutcomeStatus.SKIPPED, reason)

    def _copy(self, row: ActionRow, resolver: SourceResolver) -> RowOutcome:
        """Copy a row's source to its destination, overwriting existing files."""
        if row.is_file and not rewrite_relative_path(row.relative_path, self._strip_prefix):
            return self._outcome(row, OutcomeStatus.FAILED, "Row resolves to the destination root")

        source, detail = resolver.resolve(row)
        if source is None:
            return self._outcome(row, OutcomeStatus.FAILED, detail)

        destination = self.destination_for(row)
        note = f" ({detail})" if detail else ""

        if row.is_file and destination.is_dir():
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Destination is a directory: {destination}",
                source=source,
                destination=destination,
            )
        blocker = _write_blocker(destination, row.is_file)
        if blocker:
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Cannot write {destination}: {blocker}",
                source=source,
                destination=destination,
            )

        if self._dry_run:
            verb = "copy" if row.is_file else "create directory"
            return self._outcome(
                row,
                OutcomeStatus.COPIED,
                f"Would {verb}{note}",
                source=source,
                destination=destination,
            )

        try:
            if row.is_file:
                destination.parent.mkdir(parents=True, exist_ok=True)
                shutil.copy2(source, destination)
            else:
                destination.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Cannot write {destination}: {e}",
                source=source,
                destination=destination,
            )

        message = "Copied" if row.is_file else "Directory created"
        return self._outcome(
            row,
            OutcomeStatus.COPIED,
            f"{message}{note}",
            source=source,
            destination=destination,
        )

    def _delete(self, row: ActionRow) -> RowOutcome:
        """Back up a row's destination entry, verify the backup, then delete it."""
        relative = rewrite_relative_path(row.relative_path, self._strip_prefix)
        if not relative:
            return self._outcome(row, OutcomeStatus.FAILED, "Row resolves to the destination root")

        target = self.destination_for(row)
        if not target.exists() and row.target_path and Path(row.target_path).exists():
            target = Path(row.target_path)

        if not target.exists():
            return self._outcome(
                row, OutcomeStatus.FAILED, f"Target not found: {target}", destination=target
            )
        if not _matches_kind(target, row):
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Target is not a {row.kind.value.lower()}: {target}",
                destination=target,
            )

        backup = self._backup_dir / relative
        blocker = _write_blocker(backup, row.is_file)
        if blocker is None and not os.access(target.parent, os.W_OK):
            blocker = f"{target.parent} is not writable"
        if blocker:
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Cannot back up or delete {target}: {blocker}",
                destination=target,
                backup=backup,
            )

        if self._dry_run:
            return self._outcome(
                row,
                OutcomeStatus.DELETED,
                f"Would back up to {backup} and delete",
                destination=target,
                backup=backup,
            )

        try:
            backup.parent.mkdir(parents=True, exist_ok=True)
            if row.is_file:
                shutil.copy2(target, backup)
            else:
                shutil.copytree(target, backup, dirs_exist_ok=True)
        except OSError as e:
            logger.warning("Backup of %s failed: %s", target, e)
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Backup failed, nothing deleted: {e}",
                destination=target,
                backup=backup,
            )

        if not _backup_matches(target, backup):
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                "Backup verification failed, nothing deleted",
                destination=target,
                backup=backup,
            )

        try:
            if row.is_file:
                target.unlink()
            else:
                shutil.rmtree(target)
        except OSError as e:
            return self._outcome(
                row,
                OutcomeStatus.FAILED,
                f"Cannot delete {target}: {e}",
                destination=target,
                backup=backup,
            )

        return self._outcome(
            row,
            OutcomeStatus.DELETED,
            "Backed up and deleted",
            destination=target,
            backup=backup,
        )

    def _outcome(
        self,
        row: ActionRow,
        status: OutcomeStatus,
        message: str,
        *,
        source: Path | None = None,
        destination: Path | None = None,
        backup: Path | None = None,
    ) -> RowOutcome:
        """Build a RowOutcome for a row."""
        return RowOutcome(
            kind=row.kind,
            relative_path=row.relative_path,
            action=row.action,
            status=status,
            message=message,
            source_path=str(source) if source is not None else None,
            destination_path=str(destination) if destination is not None else None,
            backup_path=str(backup) if backup is not None else None,
            dry_run=self._dry_run,
        )

    @staticmethod
    def _log_outcome(outcome: RowOutcome) -> None:
        """Write the per-row log line."""
        level = logging.WARNING if outcome.failed else logging.INFO
        logger.log(
            level,
            "%s%s %s: %s - %s",
            "[dry-run] " if outcome.dry_run else "",
            outcome.action.value,
            outcome.relative_path,
            outcome.status.value,
            outcome.message,
        )


def _backup_matches(original: Path, backup: Path) -> bool:
    """Check that a backup is byte-identical to the original file or tree."""
    try:
        if original.is_file():
            return backup.is_file() and filecmp.cmp(original, backup, shallow=False)
        for dirpath, _dirnames, filenames in os.walk(original):
            relative = Path(dirpath).relative_to(original)
            for name in filenames:
                copy = backup / relative / name
                if not copy.is_file():
                    return False
                if not filecmp.cmp(Path(dirpath) / name, copy, shallow=False):
                    return False
    except OSError as e:
        logger.warning("Cannot verify backup %s: %s", backup, e)
        return False
    return backup.is_dir()
