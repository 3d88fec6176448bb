"""Shared types and utilities for CLI commands.

This module provides common option types and helper functions used
across multiple CLI command modules to avoid code duplication.
"""

from enum import Enum
from pathlib import Path
from typing import Annotated, Any

import typer

from treectl.core.config import ConfigError, Settings, load_settings
from treectl.core.diff import DiffEngine, DiffResult
from treectl.core.inventory import InventoryError
from treectl.models.entry import InventoryLabel, TreeInventory
from treectl.scanners import ScanError, TreeScanner, get_inventory_source
from treectl.utils.formatting import print_error, print_warning


class OutputFormat(str, Enum):
    """Output format options."""

    TABLE = "table"
    JSON = "json"


# Shared option declarations
ExcludeOption = Annotated[
    list[str] | None,
    typer.Option(
        "--exclude",
        "-x",
        help="Glob pattern matched against entry names (repeatable).",
    ),
]
MaxDepthOption = Annotated[
    int | None,
    typer.Option("--max-depth", "-d", min=0, help="Maximum depth below the root (0 = unlimited)."),
]
IncludeHiddenOption = Annotated[
    bool,
    typer.Option("--include-hidden", help="Include hidden files and directories."),
]
ExcludeSubtreesOption = Annotated[
    bool,
    typer.Option("--exclude-subtrees", help="Do not descend into excluded directories."),
]
ToleranceOption = Annotated[
    float | None,
    typer.Option(
        "--tolerance",
        "-t",
        min=0.0,
        help="Seconds within which modification times count as equal.",
    ),
]


def get_settings(ctx: typer.Context | None = None) -> Settings:
    """Load the settings for a command.

    Uses the file selected with the global --config option, or the
    default location. The loaded settings are cached on the context.

    Raises:
        typer.Exit: If the configuration cannot be loaded.
    """
    obj = ctx.obj if ctx is not None and isinstance(ctx.obj, dict) else {}
    if "settings" in obj:
        return obj["settings"]
    try:
        settings = load_settings(obj.get("config_path"))
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    obj["settings"] = settings
    return settings


def scan_options(
    settings: Settings,
    *,
    exclude: list[str] | None = None,
    max_depth: int | None = None,
    include_hidden: bool = False,
    exclude_subtrees: bool = False,
) -> dict[str, Any]:
    """Merge command-line scan options over configured defaults.

    Exclude patterns from the command line are added to the configured ones.

    Returns:
        Keyword arguments for TreeScanner.
    """
    return {
        "exclude": [*settings.scan.exclude, *(exclude or [])],
        "max_depth": settings.scan.max_depth if max_depth is None else max_depth,
        "include_hidden": include_hidden or settings.scan.include_hidden,
        "exclude_subtrees": exclude_subtrees or settings.scan.exclude_subtrees,
        "follow_symlinks": settings.scan.follow_symlinks,
    }


def collect_inventory(path: Path, label: InventoryLabel, options: dict[str, Any]) -> TreeInventory:
    """Scan a directory or load an exported inventory file.

    Args:
        path: Directory or inventory JSON file.
        label: Role of the inventory.
        options: Keyword arguments for TreeScanner.

    Returns:
        The collected inventory.

    Raises:
        typer.Exit: If the path cannot be scanned or loaded.
    """
    source = get_inventory_source(path, label, **options)
    if not source.is_available():
        print_error(f"{label.value} not found or not a directory: {path}")
        raise typer.Exit(code=1)

    try:
        inventory = source.collect()
    except (ScanError, InventoryError) as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if isinstance(source, TreeScanner) and source.skipped:
        print_warning(f"{len(source.skipped)} unreadable path(s) skipped under {path}")
    return inventory


def compare_trees(
    source: Path,
    target: Path,
    settings: Settings,
    options: dict[str, Any],
    tolerance: float | None = None,
) -> DiffResult:
    """Collect both inventories and compute their differences.

    Raises:
        typer.Exit: If either side cannot be collected.
    """
    source_inventory = collect_inventory(source, InventoryLabel.SOURCE, options)
    target_inventory = collect_inventory(target, InventoryLabel.TARGET, options)
    seconds = settings.diff.time_tolerance_seconds if tolerance is None else tolerance
    return DiffEngine(time_tolerance=seconds).compute_diff(source_inventory, target_inventory)
