"""Configuration commands.

Shows the effective settings and writes a default configuration file.
"""

from pathlib import Path
from typing import Annotated

import tomli_w
import typer

from treectl.cli.types import get_settings
from treectl.core.config import ConfigError, Settings, save_settings, settings_to_dict
from treectl.core.paths import get_config_path
from treectl.utils.formatting import console, print_error, print_info, print_success

app = typer.Typer(
    help="Show or initialize the treectl configuration.",
    no_args_is_help=True,
)


def _config_path(ctx: typer.Context) -> Path:
    """Config file selected with --config, or the default location."""
    if isinstance(ctx.obj, dict) and ctx.obj.get("config_path") is not None:
        return ctx.obj["config_path"]
    return get_config_path()


@app.command()
def show(ctx: typer.Context) -> None:
    """Print the effective configuration as TOML."""
    settings = get_settings(ctx)
    path = _config_path(ctx)
    source = str(path) if path.exists() else "built-in defaults"
    print_info(f"Configuration from {source}")
    console.print(tomli_w.dumps(settings_to_dict(settings)), markup=False, highlight=False)


@app.command()
def init(
    ctx: typer.Context,
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite an existing configuration file."),
    ] = False,
) -> None:
    """Write a configuration file with default settings."""
    path = _config_path(ctx)
    if path.exists() and not force:
        print_error(f"Configuration already exists: {path}")
        print_info("Use --force to overwrite it.")
        raise typer.Exit(code=1)

    try:
        saved = save_settings(Settings(), path)
    except ConfigError as e:
        print_error(str(e))
        raise typer.Exit(code=1) from e
    print_success(f"Configuration written to {saved}")
