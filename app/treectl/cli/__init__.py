"""CLI package for treectl.

This package contains the Typer application and all subcommands.
"""

from treectl.cli.main import app

__all__ = ["app"]
