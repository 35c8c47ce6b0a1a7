"""
Tool settings management.

Settings are loaded once per process and cached. The default location is
`buildcycle.toml` in the working directory; when no such file exists the
built-in defaults are used.
"""

import logging
from pathlib import Path
from typing import Optional

from ..models.config import DEFAULT_SETTINGS_FILENAME, ToolSettings
from .loader import load_toml_file
from .validators import validate_tool_settings

logger = logging.getLogger(__name__)

# --- Cached settings instance ---

_SETTINGS: Optional[ToolSettings] = None

# An explicitly requested settings file; None means the default file, if present.
_SETTINGS_FILE_PATH: Optional[Path] = None


def set_settings_path(settings_path: Optional[Path]) -> None:
    """
    Set an explicit settings file path.

    A missing explicit file is an error on the next get_settings() call,
    whereas a missing default file is not. Passing None restores the
    default lookup.
    """
    global _SETTINGS_FILE_PATH, _SETTINGS
    _SETTINGS_FILE_PATH = Path(settings_path) if settings_path is not None else None
    _SETTINGS = None
    logger.debug(f"Settings path set to: {settings_path}")


def clear_settings_cache() -> None:
    """Clear the cached settings, forcing a reload on next access."""
    global _SETTINGS
    _SETTINGS = None
    logger.debug("Settings cache cleared")


def _load_settings() -> ToolSettings:
    if _SETTINGS_FILE_PATH is not None:
        data = load_toml_file(_SETTINGS_FILE_PATH, "settings file")
        logger.debug(f"Loaded settings from {_SETTINGS_FILE_PATH}")
        return validate_tool_settings(data)

    default_path = Path.cwd() / DEFAULT_SETTINGS_FILENAME
    if default_path.exists():
        data = load_toml_file(default_path, "settings file")
        logger.debug(f"Loaded settings from {default_path}")
        return validate_tool_settings(data)

    logger.debug("No settings file found, using defaults")
    return ToolSettings()


def get_settings() -> ToolSettings:
    """
    Get the tool settings, loading them if necessary.

    Raises:
        ConfigError: If an explicit settings file is missing or any file is invalid
    """
    global _SETTINGS
    if _SETTINGS is None:
        _SETTINGS = _load_settings()
    return _SETTINGS
