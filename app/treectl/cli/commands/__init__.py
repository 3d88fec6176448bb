"""CLI commands for treectl.

This package contains all subcommand implementations.
"""

from treectl.cli.commands import apply, config, diff, history, plan, report, scan

__all__ = ["apply", "config", "diff", "history", "plan", "report", "scan"]
