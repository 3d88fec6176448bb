"""Report command implementation.

Summarizes where two trees differ: counts per type and status, the
path prefixes with most differences, and the largest missing files.
"""

from pathlib import Path
from typing import Annotated

import typer

from treectl.cli.display import create_report_tables
from treectl.cli.types import (
    ExcludeOption,
    ExcludeSubtreesOption,
    IncludeHiddenOption,
    MaxDepthOption,
    ToleranceOption,
    compare_trees,
    get_settings,
    scan_options,
)
from treectl.core.report import build_report, render_markdown
from treectl.utils.formatting import console, format_size, print_error, print_success


def report_structure(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Source directory or inventory JSON.")],
    target: Annotated[Path, typer.Argument(help="Target directory or inventory JSON.")],
    exclude: ExcludeOption = None,
    max_depth: MaxDepthOption = None,
    include_hidden: IncludeHiddenOption = False,
    exclude_subtrees: ExcludeSubtreesOption = False,
    tolerance: ToleranceOption = None,
    depth: Annotated[
        int | None,
        typer.Option("--depth", min=1, help="Path prefix depth used for grouping."),
    ] = None,
    top: Annotated[
        int | None,
        typer.Option("--top", min=1, help="Number of prefixes and missing files to list."),
    ] = None,
    min_size: Annotated[
        int | None,
        typer.Option("--min-size", min=0, help="Minimum size in bytes of listed missing files."),
    ] = None,
    markdown: Annotated[
        Path | None,
        typer.Option("--markdown", "-m", help="Also write the report as Markdown."),
    ] = None,
) -> None:
    """Summarize the structural differences between two trees.

    Examples:
        treectl report D:/Data E:/Backup/Data
        treectl report source.json target.json --depth 3 --top 10
        treectl report D:/Data E:/Backup/Data --markdown report.md
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

    report = build_report(
        result.differences,
        source_root=result.source_root,
        target_root=result.target_root,
        prefix_depth=depth if depth is not None else settings.report.prefix_depth,
        top_n=top if top is not None else settings.report.top_n,
        min_missing_size=min_size if min_size is not None else settings.report.min_missing_size,
    )

    if report.total == 0:
        print_success("Trees are identical.")
    else:
        for table in create_report_tables(report):
            console.print(table)
        console.print(
            f"\n{report.total} difference(s); "
            f"listed missing files total {format_size(report.missing_bytes)}."
        )

    if markdown is not None:
        try:
            markdown.write_text(render_markdown(report), encoding="utf-8")
        except OSError as e:
            print_error(f"Failed to write report {markdown}: {e}")
            raise typer.Exit(code=1) from e
        print_success(f"Report written to {markdown}")
