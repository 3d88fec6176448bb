"""Main CLI application entry point.

Defines the Typer application, global options and logging setup.
"""

import logging
from pathlib import Path
from typing import Annotated

import typer
from rich.logging import RichHandler

from treectl import __version__
from treectl.cli.commands import apply, config, diff, history, plan, report, scan
from treectl.utils.formatting import err_console, set_quiet

# Create main Typer app
app = typer.Typer(
    name="treectl",
    help="Compare directory trees and apply reviewed copy/delete actions.",
    no_args_is_help=True,
    rich_markup_mode="rich",
    context_settings={"help_option_names": ["-h", "--help"]},
)


def version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        typer.echo(f"treectl version {__version__}")
        raise typer.Exit()


def configure_logging(verbose: bool, quiet: bool) -> None:
    """Route log records to stderr through Rich.

    Args:
        verbose: Log at DEBUG level.
        quiet: Only log errors.
    """
    if verbose:
        level = logging.DEBUG
    elif quiet:
        level = logging.ERROR
    else:
        level = logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )


@app.callback()
def main(
    ctx: typer.Context,
    version: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
    verbose: Annotated[
        bool,
        typer.Option(
            "--verbose",
            "-v",
            help="Enable verbose output.",
        ),
    ] = False,
    quiet: Annotated[
        bool,
        typer.Option(
            "--quiet",
            "-q",
            help="Suppress non-essential output.",
        ),
    ] = False,
    config_path: Annotated[
        Path | None,
        typer.Option(
            "--config",
            "-c",
            help="Use this configuration file instead of the default.",
        ),
    ] = None,
) -> None:
    """treectl - Directory tree inventory, comparison and reconciliation.

    Scan two trees, review the differences as an action table, then copy
    missing entries and delete unwanted ones with a backup first.
    """
    configure_logging(verbose, quiet)
    set_quiet(quiet)

    # Store options in context for subcommands
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["config_path"] = config_path


# Register commands
app.command(name="scan")(scan.scan_tree)
app.command(name="diff")(diff.diff_trees)
app.command(name="plan")(plan.plan_actions)
app.command(name="report")(report.report_structure)
app.command(name="apply")(apply.apply_table)
app.add_typer(history.app, name="history")
app.add_typer(config.app, name="config")


if __name__ == "__main__":
    app()
