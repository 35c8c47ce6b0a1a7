"""
Configuration file loading utilities.

This module handles the low-level loading of the three kinds of files the
orchestrator reads: the TOML tool settings, the JSON project configuration
(`tsconfig.json`) and the Python override file.
"""

import importlib.util
import json
import logging
import tomllib
import uuid
from pathlib import Path
from types import ModuleType
from typing import Any, Dict

from ..validation import ConfigError, ErrorSeverity, handle_config_error, validate_path_exists

logger = logging.getLogger(__name__)


def load_toml_file(file_path: Path, description: str = "configuration file") -> Dict[str, Any]:
    """
    Load and parse a TOML file with error handling.

    Args:
        file_path: Path to the TOML file to load
        description: Human-readable description for error messages

    Returns:
        Parsed TOML data as a dictionary

    Raises:
        ConfigError: If the file doesn't exist or is malformed
    """
    logger.debug(f"Loading {description} from: {file_path}")

    validate_path_exists(file_path, field_name=description)

    try:
        with open(file_path, "rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        handle_config_error(
            error=e,
            context=f"parsing {description}",
            severity=ErrorSeverity.ERROR,
            reraise=False,
            logger=logger
        )
        raise ConfigError(f"Malformed {description} {file_path}: {e}", value=str(file_path)) from e


def load_project_config(ts_config_path: str) -> Dict[str, Any]:
    """
    Load the type-aware project configuration (`tsconfig.json`).

    Raises:
        ConfigError: If the file is missing or is not a valid JSON object
    """
    message = f"Unable to find a valid configuration JSON for typescript at '{ts_config_path}'"
    try:
        with open(ts_config_path, "r", encoding="utf-8") as f:
            data = json.load(f)
    except (OSError, ValueError) as e:
        raise ConfigError(message, field_name="ts_config_path", value=ts_config_path) from e

    if not isinstance(data, dict):
        raise ConfigError(message, field_name="ts_config_path", value=ts_config_path)
    return data


def load_override_module(override_path: Path) -> ModuleType:
    """
    Import an override file as an anonymous Python module.

    The module may define ``configure(config, options)`` and ``PLUGINS``.

    Raises:
        ConfigError: If the file cannot be imported
    """
    logger.debug(f"Loading override configuration from: {override_path}")
    module_name = f"_buildcycle_override_{uuid.uuid4().hex}"
    spec = importlib.util.spec_from_file_location(module_name, str(override_path))
    if spec is None or spec.loader is None:
        raise ConfigError(
            f"Override configuration is not a loadable Python file: {override_path}",
            field_name="config_path",
            value=str(override_path)
        )

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise ConfigError(
            f"Failed to load override configuration {override_path}: {type(e).__name__}: {e}",
            field_name="config_path",
            value=str(override_path)
        ) from e
    return module
