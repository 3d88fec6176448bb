"""Apply command implementation.

Executes a reviewed action table against a destination root.
"""

from pathlib import Path
from typing import Annotated

import typer

from treectl.cli.display import create_results_table, print_action_counts, print_run_summary
from treectl.cli.types import get_settings
from treectl.core.action_table import ActionTableError, load_action_table
from treectl.core.executor import ActionExecutor, ExecutionError
from treectl.core.runlog import RunLog, RunRecord
from treectl.models.action import ActionRow
from treectl.models.difference import ActionChoice
from treectl.models.outcome import ExecutionReport
from treectl.utils.formatting import console, print_error, print_info, print_warning

_ACTIONABLE = (ActionChoice.COPY, ActionChoice.DELETE)


def _confirm_rows(rows: list[ActionRow], destination: Path) -> bool:
    """Prompt user to confirm execution.

    Args:
        rows: Rows of the action table.
        destination: Destination root.

    Returns:
        True if user confirms, False otherwise.
    """
    actionable = sum(1 for row in rows if row.action in _ACTIONABLE)
    return typer.confirm(
        f"\nExecute {actionable} action(s) against {destination}?",
        default=False,
    )


def _record_run(report: ExecutionReport, table: Path, destination: Path) -> None:
    """Append the run to the run log, warning on failure."""
    try:
        RunLog().record(RunRecord.create(report, table, destination))
    except OSError as e:
        print_warning(f"Failed to record run: {e}")


def apply_table(
    ctx: typer.Context,
    table: Annotated[Path, typer.Argument(help="Reviewed action table CSV.")],
    dest: Annotated[
        Path,
        typer.Option("--dest", "-d", help="Destination root for copies and deletions."),
    ],
    dry_run: Annotated[
        bool,
        typer.Option(
            "--dry-run",
            "--what-if",
            "-n",
            help="Show what would be done without making changes.",
        ),
    ] = False,
    strip_prefix: Annotated[
        str | None,
        typer.Option("--strip-prefix", help="Leading relative path prefix to remove."),
    ] = None,
    backup_dir: Annotated[
        Path | None,
        typer.Option("--backup-dir", help="Directory receiving backups before deletion."),
    ] = None,
    source_root: Annotated[
        Path | None,
        typer.Option("--source-root", help="Base directory for locating moved source files."),
    ] = None,
    yes: Annotated[
        bool,
        typer.Option("--yes", "-y", help="Skip confirmation prompt and proceed."),
    ] = False,
) -> None:
    """Execute a reviewed action table.

    Copy rows copy the source entry to the destination. Delete rows back
    the destination entry up, verify the backup, then delete it. Rows
    marked Ignore or left empty are skipped.

    Examples:
        treectl apply actions.csv --dest E:/Backup/Data --dry-run
        treectl apply actions.csv --dest E:/Restore --strip-prefix Data
        treectl apply actions.csv --dest E:/Backup/Data --yes
    """
    settings = get_settings(ctx)

    try:
        rows = load_action_table(table)
    except ActionTableError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not any(row.action in _ACTIONABLE for row in rows):
        print_info("No Copy or Delete rows in the action table. Nothing to do.")
        return

    print_action_counts(rows)

    if strip_prefix is None:
        strip_prefix = settings.apply.strip_prefix
    if backup_dir is None and settings.apply.backup_dir:
        backup_dir = Path(settings.apply.backup_dir).expanduser()

    destination = dest.expanduser().resolve()
    if not dry_run and not yes and not _confirm_rows(rows, destination):
        print_info("Aborted.")
        raise typer.Exit(code=0)

    executor = ActionExecutor(
        destination,
        strip_prefix=strip_prefix,
        backup_dir=backup_dir,
        source_root=source_root.expanduser() if source_root is not None else None,
        dry_run=dry_run,
    )

    try:
        report = executor.execute(rows)
    except ExecutionError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    console.print(create_results_table(report.outcomes, dry_run=dry_run))
    print_run_summary(report.summary)

    if dry_run:
        print_info("\nDry-run mode: No changes were made.")
    else:
        if report.summary.deleted:
            print_info(f"Backups written to {executor.backup_dir}")
        _record_run(report, table.resolve(), destination)

    if report.has_failures:
        raise typer.Exit(code=1)
