"""Shared Rich display functions for differences, reports and results.

Provides reusable table builders and summary printers used across CLI
commands (diff, plan, report, apply).
"""

from collections import Counter
from collections.abc import Sequence

from rich.table import Table

from treectl.core.report import StructureReport
from treectl.models.action import ActionRow
from treectl.models.difference import ActionChoice, Difference, DiffStatus
from treectl.models.outcome import OutcomeStatus, RowOutcome, RunSummary
from treectl.utils.formatting import (
    console,
    format_signed_size,
    format_size,
    format_timestamp,
    print_success,
    print_warning,
)

STATUS_STYLES: dict[DiffStatus, str] = {
    DiffStatus.ONLY_IN_SOURCE: "only_source",
    DiffStatus.ONLY_IN_TARGET: "only_target",
    DiffStatus.SIZE_DIFFERENCE: "size_diff",
    DiffStatus.TIME_DIFFERENCE: "time_diff",
}

_OUTCOME_STYLES: dict[OutcomeStatus, str] = {
    OutcomeStatus.COPIED: "success",
    OutcomeStatus.DELETED: "warning",
    OutcomeStatus.FAILED: "error",
    OutcomeStatus.SKIPPED: "muted",
}


def create_differences_table(
    differences: Sequence[Difference],
    title: str = "Differences",
) -> Table:
    """Create a Rich table listing differences.

    Args:
        differences: Differences to display, in display order.
        title: Table title.

    Returns:
        Rich Table configured for difference display.
    """
    table = Table(
        title=title,
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", no_wrap=True)
    table.add_column("Type", width=9)
    table.add_column("Path", overflow="fold")
    table.add_column("Source", justify="right")
    table.add_column("Target", justify="right")
    table.add_column("Delta", justify="right")
    table.add_column("Modified (src / tgt)", style="muted")
    table.add_column("Recommendation", style="muted")

    for diff in differences:
        status = diff.status.value
        style = STATUS_STYLES[diff.status]
        src = diff.source_entry
        tgt = diff.target_entry
        table.add_row(
            f"[{style}]{status}[/]",
            diff.kind.value,
            diff.relative_path,
            format_size(src.size_bytes) if src else "-",
            format_size(tgt.size_bytes) if tgt else "-",
            format_signed_size(diff.size_delta),
            f"{format_timestamp(src.modified_at) if src else '-'} / "
            f"{format_timestamp(tgt.modified_at) if tgt else '-'}",
            diff.recommendation,
        )

    return table


def print_action_counts(rows: Sequence[ActionRow]) -> None:
    """Print how many rows carry each action."""
    counts = Counter(row.action for row in rows)
    parts = [f"{counts[choice]} {choice.value}" for choice in ActionChoice if counts[choice]]
    if parts:
        console.print(f"Actions: {', '.join(parts)}")


def create_report_tables(report: StructureReport) -> list[Table]:
    """Create the Rich tables of a structure report.

    Returns:
        Tables for counts per type and status, top prefixes, and
        largest missing files.
    """
    counts = Table(title="Differences by Type and Status", header_style="bold_header")
    counts.add_column("Type")
    counts.add_column("Status")
    counts.add_column("Count", justify="right")
    for (kind, status), count in report.counts.items():
        if count:
            counts.add_row(kind.value, f"[{STATUS_STYLES[status]}]{status.value}[/]", str(count))

    prefixes = Table(
        title=f"Top Path Prefixes (depth {report.prefix_depth})",
        header_style="bold_header",
    )
    prefixes.add_column("Prefix", overflow="fold")
    prefixes.add_column("Differences", justify="right")
    prefixes.add_column("Size", justify="right", style="info")
    for p in report.top_prefixes:
        prefixes.add_row(p.prefix, str(p.count), format_size(p.size_bytes))

    missing = Table(
        title=f"Largest Files Missing From Target (>= {format_size(report.min_missing_size)})",
        header_style="bold_header",
    )
    missing.add_column("Path", overflow="fold")
    missing.add_column("Size", justify="right", style="info")
    missing.add_column("Modified", style="muted")
    for diff in report.largest_missing:
        src = diff.source_entry
        missing.add_row(
            diff.relative_path,
            format_size(diff.source_size),
            format_timestamp(src.modified_at if src else None),
        )

    return [counts, prefixes, missing]


def create_results_table(outcomes: Sequence[RowOutcome], dry_run: bool = False) -> Table:
    """Create a Rich table displaying per-row execution outcomes.

    Args:
        outcomes: Outcomes to display.
        dry_run: Whether this is a dry-run (changes table title).

    Returns:
        Rich Table configured for results display.
    """
    table = Table(
        title="Planned Results (Dry Run)" if dry_run else "Results",
        show_header=True,
        header_style="bold_header",
        border_style="border",
    )
    table.add_column("Status", width=8, justify="center")
    table.add_column("Action", width=7)
    table.add_column("Path", overflow="fold")
    table.add_column("Message", style="muted", overflow="fold")

    for outcome in outcomes:
        style = _OUTCOME_STYLES[outcome.status]
        table.add_row(
            f"[{style}]{outcome.status.value}[/]",
            outcome.action.value,
            outcome.relative_path,
            outcome.message,
        )

    return table


def print_run_summary(summary: RunSummary) -> None:
    """Print the final counts of an executor run."""
    prefix = "Dry run: " if summary.dry_run else ""
    line = (
        f"{prefix}{summary.total} total, "
        f"[success]{summary.copied} copied[/], "
        f"[warning]{summary.deleted} deleted[/], "
        f"[error]{summary.failed} failed[/], "
        f"[muted]{summary.skipped} skipped[/]"
    )
    console.print(f"\nSummary: {line}")

    if summary.aborted:
        print_warning("Run aborted early: destination root became unreachable.")
    elif summary.failed == 0 and not summary.dry_run:
        print_success("All actionable rows completed successfully.")
