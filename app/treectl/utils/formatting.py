"""Rich console formatting utilities.

Provides consistent formatting for CLI output using Rich, plus the
human-readable size and timestamp renderings used in reports and in
the action table.
"""

from __future__ import annotations

import sys
from datetime import UTC, datetime

from rich.console import Console

from treectl.core.theme import get_theme

_SIZE_UNITS: tuple[str, ...] = ("B", "KB", "MB", "GB", "TB")

# Timestamp format used in the action table
TIMESTAMP_FORMAT = "%Y-%m-%d %H:%M:%S"


def _detect_color_system() -> str | None:
    """Detect the best color system for the current terminal.

    Returns "truecolor" for interactive terminals to enable full hex color support,
    None otherwise to let Rich auto-detect.
    """
    if sys.stdout.isatty():
        return "truecolor"
    return None


# Shared console instances (theme loaded once at import)
console = Console(theme=get_theme(), color_system=_detect_color_system())
err_console = Console(theme=get_theme(), stderr=True, color_system=_detect_color_system())


def format_size(size_bytes: int | None) -> str:
    """Format a byte count as a human-readable string.

    Args:
        size_bytes: Size in bytes (may be negative).

    Returns:
        String such as "0 B", "512 B" or "12.34 MB".
    """
    if not size_bytes:
        return "0 B"
    size = float(size_bytes)
    for unit in _SIZE_UNITS[:-1]:
        if abs(size) < 1024:
            return f"{int(size)} B" if unit == "B" else f"{size:.2f} {unit}"
        size /= 1024
    return f"{size:.2f} {_SIZE_UNITS[-1]}"


def format_signed_size(delta: int) -> str:
    """Format a size delta with an explicit sign ("+1.50 KB", "-3 B", "0 B")."""
    if delta > 0:
        return f"+{format_size(delta)}"
    return format_size(delta)


def format_timestamp(value: datetime | None) -> str:
    """Format a timestamp in UTC for tables; empty string for None."""
    if value is None:
        return ""
    if value.tzinfo is not None:
        value = value.astimezone(UTC)
    return value.strftime(TIMESTAMP_FORMAT)


_quiet = False


def set_quiet(quiet: bool) -> None:
    """Drop info messages; results, warnings and errors still print."""
    global _quiet
    _quiet = quiet


def print_info(message: str) -> None:
    """Print an info message unless quiet mode is on."""
    if _quiet:
        return
    console.print(f"[info]{message}[/]")


def print_warning(message: str) -> None:
    """Print a warning message."""
    err_console.print(f"[warning]Warning:[/] {message}")


def print_error(message: str) -> None:
    """Print an error message."""
    err_console.print(f"[error]Error:[/] {message}")


def print_success(message: str) -> None:
    """Print a success message."""
    console.print(f"[success]{message}[/]")
