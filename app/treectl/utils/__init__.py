"""Utility modules for treectl.

This module exports commonly used utility functions.
"""

from treectl.utils.formatting import (
    console,
    err_console,
    format_signed_size,
    format_size,
    format_timestamp,
    print_error,
    print_info,
    print_success,
    print_warning,
)

__all__ = [
    "console",
    "err_console",
    "format_signed_size",
    "format_size",
    "format_timestamp",
    "print_error",
    "print_info",
    "print_success",
    "print_warning",
]
