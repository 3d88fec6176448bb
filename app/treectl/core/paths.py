"""XDG-compliant path management for treectl.

This module provides standardized paths following the XDG Base Directory
Specification for configuration and state storage.

XDG defaults:
- Config: ~/.config/treectl/
- State: ~/.local/state/treectl/
"""

import os
from datetime import UTC, datetime
from pathlib import Path

# Application identifier for directory naming
APP_NAME = "treectl"


def _get_xdg_dir(env_var: str, default_subdir: str) -> Path:
    """Get XDG directory respecting environment variable override.

    Args:
        env_var: XDG environment variable name (e.g., "XDG_CONFIG_HOME").
        default_subdir: Default subdirectory under home (e.g., ".config").

    Returns:
        Path to the application-specific directory.
    """
    base = os.environ.get(env_var)
    if base:
        return Path(base) / APP_NAME
    return Path.home() / default_subdir / APP_NAME


def get_config_dir() -> Path:
    """Get the configuration directory path.

    Returns:
        Path to ~/.config/treectl/ (or XDG_CONFIG_HOME/treectl/).
    """
    return _get_xdg_dir("XDG_CONFIG_HOME", ".config")


def get_state_dir() -> Path:
    """Get the state directory path.

    State data includes the run log and default deletion backups.

    Returns:
        Path to ~/.local/state/treectl/ (or XDG_STATE_HOME/treectl/).
    """
    return _get_xdg_dir("XDG_STATE_HOME", ".local/state")


def get_config_path() -> Path:
    """Get the default configuration file path.

    Returns:
        Path to ~/.config/treectl/config.toml.
    """
    return get_config_dir() / "config.toml"


def get_run_log_path() -> Path:
    """Get the run log file path.

    Returns:
        Path to ~/.local/state/treectl/runs.jsonl.
    """
    return get_state_dir() / "runs.jsonl"


def get_backup_root() -> Path:
    """Get the directory holding deletion backups.

    Returns:
        Path to ~/.local/state/treectl/backups/.
    """
    return get_state_dir() / "backups"


def new_backup_dir() -> Path:
    """Get a fresh timestamped backup directory path for one run.

    The directory is not created; the executor creates it on first use.

    Returns:
        Path to ~/.local/state/treectl/backups/<UTC timestamp>/.
    """
    timestamp = datetime.now(UTC).strftime("%Y%m%dT%H%M%SZ")
    return get_backup_root() / timestamp
