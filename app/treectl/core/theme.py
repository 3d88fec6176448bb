"""Console color theme for treectl.

Colors come from the bundled ``data/theme.toml``. Any subset can be
overridden in ``~/.config/treectl/theme.toml`` under ``[colors]``.
"""

import logging
import tomllib
from functools import lru_cache
from importlib import resources
from pathlib import Path
from typing import Annotated

from pydantic import AfterValidator, BaseModel, ConfigDict, ValidationError
from rich.theme import Theme

from treectl.core.paths import get_config_dir

logger = logging.getLogger(__name__)

THEME_FILENAME = "theme.toml"


def _hex_color(value: str) -> str:
    """Accept ``#RGB`` and ``#RRGGBB`` colors."""
    color = value.strip()
    if not color.startswith("#"):
        raise ValueError("color must start with '#'")
    digits = color[1:]
    if len(digits) not in (3, 6):
        raise ValueError("color must be #RGB or #RRGGBB format")
    try:
        int(digits, 16)
    except ValueError:
        raise ValueError(f"invalid hex color '{color}'") from None
    return color


HexColor = Annotated[str, AfterValidator(_hex_color)]


class ThemeColors(BaseModel):
    """Named colors of the console theme."""

    model_config = ConfigDict(extra="forbid")

    text: HexColor = "#ffffff"
    muted: HexColor = "#b2bec3"
    header: HexColor = "#69B9A1"
    border: HexColor = "#29526d"

    success: HexColor = "#03b971"
    warning: HexColor = "#f5b332"
    error: HexColor = "#f53263"
    info: HexColor = "#0ec1c8"

    # Difference statuses
    only_source: HexColor = "#c1ff62"
    only_target: HexColor = "#f53263"
    size_diff: HexColor = "#0e8ac8"
    time_diff: HexColor = "#faf870"


# Rich style name -> (color field, extra style attributes)
_STYLES: dict[str, tuple[str, str]] = {
    "text": ("text", ""),
    "muted": ("muted", ""),
    "dim": ("muted", ""),
    "header": ("header", ""),
    "bold_header": ("header", "bold"),
    "border": ("border", ""),
    "success": ("success", ""),
    "warning": ("warning", ""),
    "error": ("error", "bold"),
    "info": ("info", ""),
    "only_source": ("only_source", ""),
    "only_target": ("only_target", ""),
    "size_diff": ("size_diff", ""),
    "time_diff": ("time_diff", ""),
}


def get_user_theme_path() -> Path:
    """Path of the user's theme overrides."""
    return get_config_dir() / THEME_FILENAME


def get_bundled_theme_path() -> Path:
    """Path of the theme file shipped with the package."""
    return Path(str(resources.files("treectl.data") / THEME_FILENAME))


def _read_colors(path: Path) -> dict[str, str] | None:
    """Read the ``[colors]`` table of a theme file.

    Returns:
        Color names mapped to values, or None if the file is missing or unusable.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return None
    except (OSError, UnicodeDecodeError, tomllib.TOMLDecodeError) as e:
        logger.warning("Ignoring theme file %s: %s", path, e)
        return None

    colors = data.get("colors", {})
    if not isinstance(colors, dict):
        logger.warning("Ignoring theme file %s: [colors] is not a table", path)
        return None
    return {str(name): value for name, value in colors.items() if isinstance(value, str)}


def load_theme(user_path: Path | None = None) -> ThemeColors:
    """Load the bundled colors with the user's overrides applied.

    Args:
        user_path: Override file; defaults to the config directory.

    Returns:
        Validated colors, or the built-in defaults if validation fails.
    """
    colors = _read_colors(get_bundled_theme_path())
    if colors is None:
        logger.error("Bundled theme is missing, using built-in colors")
        colors = {}

    path = user_path if user_path is not None else get_user_theme_path()
    overrides = _read_colors(path)
    if overrides:
        logger.debug("Applying %d color override(s) from %s", len(overrides), path)
        colors.update(overrides)

    try:
        return ThemeColors.model_validate(colors)
    except ValidationError as e:
        logger.warning("Invalid theme colors, using defaults: %s", e)
        return ThemeColors()


def get_rich_theme(colors: ThemeColors | None = None) -> Theme:
    """Build the Rich theme used by the consoles.

    Args:
        colors: Colors to use; loaded from the theme files when None.
    """
    if colors is None:
        colors = load_theme()
    styles = {
        name: f"{attrs} {getattr(colors, field)}".strip()
        for name, (field, attrs) in _STYLES.items()
    }
    return Theme(styles)


@lru_cache(maxsize=1)
def get_theme() -> Theme:
    """Rich theme of the current user, built once per process."""
    return get_rich_theme()
