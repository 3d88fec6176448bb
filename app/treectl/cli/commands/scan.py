"""Scan command implementation.

Inventories a directory tree and optionally exports it as JSON.
"""

import json
from pathlib import Path
from typing import Annotated

import typer
from rich.table import Table

from treectl.cli.types import (
    ExcludeOption,
    ExcludeSubtreesOption,
    IncludeHiddenOption,
    MaxDepthOption,
    OutputFormat,
    collect_inventory,
    get_settings,
    scan_options,
)
from treectl.core.inventory import InventoryError, export_inventory, inventory_to_dict
from treectl.models.entry import InventoryLabel, TreeInventory
from treectl.utils.formatting import (
    console,
    format_size,
    format_timestamp,
    print_error,
    print_info,
)


def scan_tree(
    ctx: typer.Context,
    root: Annotated[Path, typer.Argument(help="Directory to scan.")],
    exclude: ExcludeOption = None,
    max_depth: MaxDepthOption = None,
    include_hidden: IncludeHiddenOption = False,
    exclude_subtrees: ExcludeSubtreesOption = False,
    label: Annotated[
        InventoryLabel,
        typer.Option("--label", help="Role recorded in the inventory.", case_sensitive=False),
    ] = InventoryLabel.SOURCE,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
    export_path: Annotated[
        Path | None,
        typer.Option("--export", "-e", help="Export the inventory to a JSON file."),
    ] = None,
    limit: Annotated[
        int,
        typer.Option("--limit", "-l", min=0, help="Number of largest files to list."),
    ] = 10,
) -> None:
    """Inventory a directory tree.

    Examples:
        treectl scan D:/Data
        treectl scan D:/Data -x "*.tmp" -x node_modules --export source.json
        treectl scan D:/Data --format json
    """
    settings = get_settings(ctx)
    options = scan_options(
        settings,
        exclude=exclude,
        max_depth=max_depth,
        include_hidden=include_hidden,
        exclude_subtrees=exclude_subtrees,
    )
    inventory = collect_inventory(root, label, options)

    if export_path is not None:
        _export(inventory, export_path)

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(inventory_to_dict(inventory)))
        return

    _print_summary(inventory, limit)


def _export(inventory: TreeInventory, export_path: Path) -> None:
    """Export the inventory, exiting on failure."""
    export_path = export_path.resolve()
    if export_path.is_dir():
        print_error(f"Export path is a directory: {export_path}")
        raise typer.Exit(code=1)
    try:
        export_inventory(inventory, export_path)
    except InventoryError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_info(f"Inventory exported to {export_path}")


def _print_summary(inventory: TreeInventory, limit: int) -> None:
    """Display inventory aggregates and the largest files."""
    summary = Table(title=f"{inventory.label.value} Inventory", header_style="bold_header")
    summary.add_column("Root", overflow="fold")
    summary.add_column("Files", justify="right")
    summary.add_column("Directories", justify="right")
    summary.add_column("Total Size", justify="right", style="info")
    summary.add_row(
        inventory.root_path,
        str(inventory.file_count),
        str(inventory.dir_count),
        format_size(inventory.total_size),
    )
    console.print(summary)

    largest = sorted(inventory.files, key=lambda e: (-e.size_bytes, e.relative_path))[:limit]
    if not largest:
        return

    table = Table(title="Largest Files", header_style="bold_header")
    table.add_column("Path", overflow="fold")
    table.add_column("Size", justify="right", style="info")
    table.add_column("Modified", style="muted")
    for entry in largest:
        table.add_row(
            entry.relative_path,
            format_size(entry.size_bytes),
            format_timestamp(entry.modified_at),
        )
    console.print(table)
