"""Configuration file I/O and models.

This module defines the Pydantic models for ``config.toml`` and the
functions for loading and saving it. A missing file yields defaults;
a malformed one is a configuration error.
"""

import os
import tomllib
from pathlib import Path
from tempfile import NamedTemporaryFile
from typing import Annotated, Any

import tomli_w
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from treectl.core.paths import get_config_path


class ConfigError(Exception):
    """Raised when the configuration file cannot be read or is invalid."""


class ScanSettings(BaseModel):
    """Scanner options.

    Attributes:
        exclude: Glob patterns matched against entry names.
        max_depth: Maximum path depth relative to the root (0 = unlimited).
        include_hidden: Include hidden files and directories.
        exclude_subtrees: Do not descend into directories matching ``exclude``.
        follow_symlinks: Follow symbolic links and junctions.
    """

    model_config = ConfigDict(extra="forbid")

    exclude: Annotated[
        list[str],
        Field(default_factory=list, description="Glob patterns matched against entry names"),
    ]
    max_depth: Annotated[int, Field(ge=0, description="Maximum depth (0 = unlimited)")] = 0
    include_hidden: Annotated[bool, Field(description="Include hidden entries")] = False
    exclude_subtrees: Annotated[
        bool, Field(description="Skip the contents of excluded directories")
    ] = False
    follow_symlinks: Annotated[bool, Field(description="Follow symbolic links")] = False


class DiffSettings(BaseModel):
    """Differ options."""

    model_config = ConfigDict(extra="forbid")

    time_tolerance_seconds: Annotated[
        float,
        Field(ge=0.0, description="Modification times closer than this are considered equal"),
    ] = 2.0


class ReportSettings(BaseModel):
    """Structure report options."""

    model_config = ConfigDict(extra="forbid")

    prefix_depth: Annotated[int, Field(ge=1, description="Path prefix depth for grouping")] = 2
    top_n: Annotated[int, Field(ge=1, description="Number of ranked rows to show")] = 20
    min_missing_size: Annotated[
        int, Field(ge=0, description="Minimum size of listed missing files in bytes")
    ] = 1024 * 1024


class ApplySettings(BaseModel):
    """Executor options.

    Attributes:
        strip_prefix: Leading relative path prefix removed before
            computing destination paths.
        backup_dir: Backup directory for deletions (empty = state dir).
    """

    model_config = ConfigDict(extra="forbid")

    strip_prefix: Annotated[str, Field(description="Leading path prefix to strip")] = ""
    backup_dir: Annotated[str, Field(description="Backup directory for deletions")] = ""


class Settings(BaseModel):
    """Complete treectl configuration."""

    model_config = ConfigDict(extra="forbid")

    scan: Annotated[ScanSettings, Field(default_factory=ScanSettings)]
    diff: Annotated[DiffSettings, Field(default_factory=DiffSettings)]
    report: Annotated[ReportSettings, Field(default_factory=ReportSettings)]
    apply: Annotated[ApplySettings, Field(default_factory=ApplySettings)]


def load_settings(path: Path | None = None) -> Settings:
    """Load and validate settings from a TOML file.

    Args:
        path: Path to the config file. If None, uses the default path.

    Returns:
        Validated Settings; defaults if the file does not exist.

    Raises:
        ConfigError: If the file cannot be read, parsed or validated.
    """
    config_path = path or get_config_path()

    if not config_path.exists():
        return Settings()

    try:
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        raise ConfigError(f"Invalid TOML syntax in {config_path}: {e}") from e
    except OSError as e:
        raise ConfigError(f"Failed to read config {config_path}: {e}") from e

    try:
        return Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid config content in {config_path}: {e}") from e


def settings_to_dict(settings: Settings) -> dict[str, Any]:
    """Convert settings to a TOML-serializable dictionary."""
    return settings.model_dump(mode="json")


def save_settings(settings: Settings, path: Path | None = None) -> Path:
    """Save settings to a TOML file atomically.

    Args:
        settings: Settings to save.
        path: Target path. If None, uses the default path.

    Returns:
        Path where the settings were saved.

    Raises:
        ConfigError: If the file cannot be written.
    """
    config_path = path or get_config_path()

    tmp_path: Path | None = None
    try:
        config_path.parent.mkdir(parents=True, exist_ok=True)
        with NamedTemporaryFile(
            mode="wb",
            dir=config_path.parent,
            delete=False,
            suffix=".tmp",
        ) as f:
            tmp_path = Path(f.name)
            tomli_w.dump(settings_to_dict(settings), f)
        os.replace(str(tmp_path), str(config_path))
    except OSError as e:
        if tmp_path is not None and tmp_path.exists():
            tmp_path.unlink()
        raise ConfigError(f"Failed to write config: {e}") from e

    return config_path
