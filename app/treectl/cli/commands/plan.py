"""Plan command implementation.

Writes the reviewable action table for a source/target comparison.
"""

from pathlib import Path
from typing import Annotated

import typer

from treectl.cli.display import print_action_counts
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
from treectl.core.action_table import ActionTableError, load_action_table, save_action_table
from treectl.core.planner import apply_default_actions, build_action_table, merge_previous_actions
from treectl.utils.formatting import print_error, print_info, print_success


def plan_actions(
    ctx: typer.Context,
    source: Annotated[Path, typer.Argument(help="Source directory or inventory JSON.")],
    target: Annotated[Path, typer.Argument(help="Target directory or inventory JSON.")],
    output: Annotated[
        Path,
        typer.Option("--output", "-o", help="Path of the action table CSV to write."),
    ],
    exclude: ExcludeOption = None,
    max_depth: MaxDepthOption = None,
    include_hidden: IncludeHiddenOption = False,
    exclude_subtrees: ExcludeSubtreesOption = False,
    tolerance: ToleranceOption = None,
    defaults: Annotated[
        bool,
        typer.Option("--defaults", help="Pre-fill default actions (copy missing, ignore rest)."),
    ] = False,
    previous: Annotated[
        Path | None,
        typer.Option("--previous", "-p", help="Earlier reviewed table to carry actions from."),
    ] = None,
) -> None:
    """Write an action table for review.

    Every difference becomes one row. Rows start with an empty Action
    column unless --defaults is given or a reviewed --previous table
    supplies the decision.

    Examples:
        treectl plan D:/Data E:/Backup/Data -o actions.csv
        treectl plan D:/Data E:/Backup/Data -o actions.csv --defaults
        treectl plan D:/Data E:/Backup/Data -o actions.csv --previous reviewed.csv
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
    rows = build_action_table(result.differences)

    if previous is not None:
        try:
            reviewed = load_action_table(previous)
        except ActionTableError as e:
            print_error(f"Failed to load previous table: {e}")
            raise typer.Exit(code=1) from e
        rows = merge_previous_actions(rows, reviewed)

    if defaults:
        rows = apply_default_actions(rows)

    try:
        saved = save_action_table(rows, output)
    except ActionTableError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e

    if not rows:
        print_success("Trees are identical. Wrote an empty action table.")
    else:
        print_success(f"Wrote {len(rows)} row(s) to {saved}")
        print_action_counts(rows)
    print_info("Review the Action column, then run 'treectl apply' with this table.")
