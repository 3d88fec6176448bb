"""Diff command implementation.

Compares a source tree with a target tree and lists every difference.
"""

import json
from pathlib import Path
from typing import Annotated

import typer

from treectl.cli.display import STATUS_STYLES, create_differences_table
from treectl.cli.types import (
    ExcludeOption,
    ExcludeSubtreesOption,
    IncludeHiddenOption,
    MaxDepthOption,
    OutputFormat,
    ToleranceOption,
    compare_trees,
    get_settings,
    scan_options,
)
from treectl.core.diff import DiffResult
from treectl.models.difference import DiffStatus
from treectl.utils.formatting import console, print_success


def diff_trees(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Source directory or inventory JSON.")],
    target: Annotated[Path, typer.Argument(help="Target directory or inventory JSON.")],
    exclude: ExcludeOption = None,
    max_depth: MaxDepthOption = None,
    include_hidden: IncludeHiddenOption = False,
    exclude_subtrees: ExcludeSubtreesOption = False,
    tolerance: ToleranceOption = None,
    output_format: Annotated[
        OutputFormat,
        typer.Option("--format", "-f", help="Output format.", case_sensitive=False),
    ] = OutputFormat.TABLE,
    limit: Annotated[
        int | None,
        typer.Option("--limit", "-l", min=1, help="Limit number of listed differences."),
    ] = None,
) -> None:
    """Show how a target tree differs from a source tree.

    Examples:
        treectl diff D:/Data E:/Backup/Data
        treectl diff source.json target.json --format json
    """
    settings = get_settings(ctx)
    options = scan_options(
        settings,
        exclude=exclude,
        max_depth=max_depth,
        include_hidden=include_hidden,
        exclude_subtrees=exclude_subtrees,
    )
    result = compare_trees(source, target, settings, options, tolerance)

    if output_format == OutputFormat.JSON:
        console.print_json(json.dumps(result.to_dict()))
        return

    if result.is_identical:
        print_success("Trees are identical.")
        return

    shown = result.differences[:limit] if limit else result.differences
    console.print(create_differences_table(shown))
    _print_summary(result)
    if limit and len(shown) < result.total_changes:
        console.print(f"[dim](showing {len(shown)} of {result.total_changes})[/dim]")


def _print_summary(result: DiffResult) -> None:
    """Print counts per status."""
    parts = [
        f"[{STATUS_STYLES[status]}]{result.count(status)} {status.value}[/]"
        for status in DiffStatus
        if result.count(status)
    ]
    console.print(f"\nFound {result.total_changes} difference(s): {', '.join(parts)}")
