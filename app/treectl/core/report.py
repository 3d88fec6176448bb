"""Structure report aggregation.

Summarizes a list of differences for review: counts per kind and
status, the path prefixes with the most differences, and the largest
files missing from the target.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from dataclasses import dataclass

from treectl.models.difference import Difference, DiffStatus
from treectl.models.entry import EntryKind
from treectl.utils.formatting import format_size

ROOT_PREFIX = "."


@dataclass(frozen=True, slots=True)
class PrefixCount:
    """Number of differences under one path prefix.

    Attributes:
        prefix: Relative directory prefix ("." for the root).
        count: Number of differences under the prefix.
        size_bytes: Sum of source and target sizes of those differences.
    """

    prefix: str
    count: int
    size_bytes: int


@dataclass(frozen=True, slots=True)
class StructureReport:
    """Aggregated view of a diff result.

    Attributes:
        source_root: Root path of the source tree.
        target_root: Root path of the target tree.
        counts: Number of differences per (kind, status).
        top_prefixes: Prefixes ranked by difference count.
        largest_missing: Files only in source, largest first.
        prefix_depth: Depth used for prefix grouping.
        min_missing_size: Size threshold for ``largest_missing``.
    """

    source_root: str
    target_root: str
    counts: dict[tuple[EntryKind, DiffStatus], int]
    top_prefixes: tuple[PrefixCount, ...]
    largest_missing: tuple[Difference, ...]
    prefix_depth: int
    min_missing_size: int

    @property
    def total(self) -> int:
        """Total number of differences."""
        return sum(self.counts.values())

    @property
    def missing_bytes(self) -> int:
        """Total size of the listed missing files."""
        return sum(d.source_size for d in self.largest_missing)


def path_prefix(diff: Difference, depth: int) -> str:
    """Get the grouping prefix of a difference.

    Files are grouped by their containing directory, directories by
    themselves; either is truncated to ``depth`` segments.

    Args:
        diff: Difference to group.
        depth: Maximum number of leading path segments.

    Returns:
        Prefix such as "Users/alice", or "." for entries at the root.
    """
    if depth < 1:
        msg = f"Prefix depth must be at least 1, got {depth}"
        raise ValueError(msg)
    parts = diff.relative_path.split("/")
    if diff.kind == EntryKind.FILE:
        parts = parts[:-1]
    return "/".join(parts[:depth]) or ROOT_PREFIX


def group_by_prefix(
    differences: Iterable[Difference],
    depth: int,
    top_n: int | None = None,
) -> list[PrefixCount]:
    """Group differences by path prefix and rank by count.

    Args:
        differences: Differences to group.
        depth: Prefix depth in path segments.
        top_n: Keep only the first ``top_n`` prefixes.

    Returns:
        Prefix counts, highest count first, ties by prefix.
    """
    counts: Counter[str] = Counter()
    sizes: Counter[str] = Counter()
    for diff in differences:
        prefix = path_prefix(diff, depth)
        counts[prefix] += 1
        sizes[prefix] += diff.source_size + diff.target_size

    ranked = sorted(counts.items(), key=lambda item: (-item[1], item[0]))
    if top_n is not None:
        ranked = ranked[:top_n]
    return [PrefixCount(prefix=p, count=c, size_bytes=sizes[p]) for p, c in ranked]


def largest_missing_files(
    differences: Iterable[Difference],
    min_size: int = 0,
    top_n: int | None = None,
) -> list[Difference]:
    """Rank files only in source by size, largest first.

    Args:
        differences: Differences to search.
        min_size: Minimum source size in bytes.
        top_n: Keep only the first ``top_n`` files.

    Returns:
        OnlyInSource file differences of at least ``min_size`` bytes.
    """
    missing = [
        d
        for d in differences
        if d.kind == EntryKind.FILE
        and d.status == DiffStatus.ONLY_IN_SOURCE
        and d.source_size >= min_size
    ]
    missing.sort(key=lambda d: (-d.source_size, d.relative_path))
    if top_n is not None:
        missing = missing[:top_n]
    return missing


def build_report(
    differences: tuple[Difference, ...],
    *,
    source_root: str = "",
    target_root: str = "",
    prefix_depth: int = 2,
    top_n: int = 20,
    min_missing_size: int = 0,
) -> StructureReport:
    """Aggregate differences into a StructureReport.

    Args:
        differences: Differences from the diff engine.
        source_root: Root path of the source tree.
        target_root: Root path of the target tree.
        prefix_depth: Prefix depth for grouping.
        top_n: Number of prefixes and missing files to keep.
        min_missing_size: Size threshold for missing files.

    Returns:
        StructureReport for the differences.
    """
    counts: dict[tuple[EntryKind, DiffStatus], int] = {
        (kind, status): 0 for kind in EntryKind for status in DiffStatus
    }
    for diff in differences:
        counts[(diff.kind, diff.status)] += 1

    return StructureReport(
        source_root=source_root,
        target_root=target_root,
        counts=counts,
        top_prefixes=tuple(group_by_prefix(differences, prefix_depth, top_n)),
        largest_missing=tuple(largest_missing_files(differences, min_missing_size, top_n)),
        prefix_depth=prefix_depth,
        min_missing_size=min_missing_size,
    )


def render_markdown(report: StructureReport) -> str:
    """Render a StructureReport as a Markdown document."""
    lines: list[str] = [
        "# Directory Structure Comparison",
        "",
        f"- Source: `{report.source_root}`",
        f"- Target: `{report.target_root}`",
        f"- Total differences: {report.total}",
        "",
        "## Differences by Type and Status",
        "",
        "| Type | Status | Count |",
        "|---|---|---:|",
    ]
    for (kind, status), count in report.counts.items():
        if count:
            lines.append(f"| {kind.value} | {status.value} | {count} |")

    lines += [
        "",
        f"## Top Path Prefixes (depth {report.prefix_depth})",
        "",
        "| Prefix | Differences | Size |",
        "|---|---:|---:|",
    ]
    lines += [
        f"| `{p.prefix}` | {p.count} | {format_size(p.size_bytes)} |" for p in report.top_prefixes
    ]

    lines += [
        "",
        f"## Largest Files Missing From Target (>= {format_size(report.min_missing_size)})",
        "",
    ]
    if report.largest_missing:
        lines += ["| Path | Size |", "|---|---:|"]
        lines += [
            f"| `{d.relative_path}` | {format_size(d.source_size)} |"
            for d in report.largest_missing
        ]
    else:
        lines.append("None.")

    return "\n".join(lines) + "\n"
