"""History command for viewing past executor runs."""

import json
from datetime import datetime
from typing import Annotated

import typer
from rich.table import Table

from treectl.core.runlog import RunLog, RunRecord
from treectl.utils.formatting import console, print_info

app = typer.Typer(
    name="history",
    help="View past action table runs.",
    invoke_without_command=True,
)


@app.callback(invoke_without_command=True)
def history(
    ctx: typer.Context,
    limit: Annotated[
        int,
        typer.Option(
            "--limit",
            "-n",
            min=1,
            help="Maximum number of runs to show.",
        ),
    ] = 20,
    json_output: Annotated[
        bool,
        typer.Option(
            "--json",
            help="Output as JSON.",
        ),
    ] = False,
) -> None:
    """Show recorded runs of 'treectl apply'.

    Dry runs are not recorded.

    Examples:
        treectl history              # Show last 20 runs
        treectl history -n 5         # Show last 5 runs
        treectl history --json       # JSON output for scripting
    """
    if ctx.invoked_subcommand is not None:
        return

    runs = RunLog().get_runs(limit=limit)
    if not runs:
        print_info("No runs recorded.")
        return

    if json_output:
        _print_json(runs)
    else:
        _print_table(runs)


def _print_table(runs: list[RunRecord]) -> None:
    """Print runs as a Rich table.

    Args:
        runs: Runs to display, newest first.
    """
    table = Table(title="Run History", header_style="bold_header")
    table.add_column("ID", style="dim")
    table.add_column("Timestamp", style="info")
    table.add_column("Destination", overflow="fold")
    table.add_column("Copied", justify="right", style="success")
    table.add_column("Deleted", justify="right", style="warning")
    table.add_column("Failed", justify="right", style="error")
    table.add_column("Skipped", justify="right", style="muted")

    for run in runs:
        summary = run.summary
        failed = str(summary.get("failed", 0))
        if summary.get("aborted"):
            failed += " (aborted)"
        table.add_row(
            run.id,
            _format_timestamp(run.timestamp),
            run.destination,
            str(summary.get("copied", 0)),
            str(summary.get("deleted", 0)),
            failed,
            str(summary.get("skipped", 0)),
        )

    console.print(table)


def _format_timestamp(iso_timestamp: str) -> str:
    """Format an ISO timestamp as YYYY-MM-DD HH:MM:SS."""
    try:
        return datetime.fromisoformat(iso_timestamp).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return iso_timestamp


def _print_json(runs: list[RunRecord]) -> None:
    """Print runs as JSON."""
    output = [json.loads(run.to_json_line()) for run in runs]
    console.print(json.dumps(output, indent=2))
