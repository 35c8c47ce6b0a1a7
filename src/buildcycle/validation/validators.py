"""
Validation functions for user-supplied options and settings.

Every validator returns the normalized value or raises ConfigError
carrying the name of the offending field.
"""

import json
import os
from pathlib import Path
from typing import Any, List, Optional, Sequence, Union

from .exceptions import ConfigError


def validate_entry(entry: Any, field_name: str = "entry") -> str:
    """
    Validate the build entry point.

    Args:
        entry: Entry path as given by the caller
        field_name: Name of the field being validated

    Returns:
        The entry as a string path

    Raises:
        ConfigError: If the entry is missing or not path-like
    """
    if entry is None or entry == "":
        raise ConfigError(
            f"'{field_name}' parameter is required",
            field_name=field_name,
            value=entry
        )

    if not isinstance(entry, (str, os.PathLike)):
        try:
            shown = json.dumps(entry)
        except (TypeError, ValueError):
            shown = repr(entry)
        raise ConfigError(
            f"'{field_name}' parameter must be of type string. {shown} was given instead",
            field_name=field_name,
            value=entry
        )

    return os.fspath(entry)


def validate_positive_float(
    value: Any,
    min_value: float = 0.0,
    max_value: Optional[float] = None,
    field_name: str = "value"
) -> float:
    """
    Validate that a value is a number within the given bounds.

    Raises:
        ConfigError: If validation fails
    """
    if isinstance(value, bool):
        raise ConfigError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    try:
        float_value = float(value)
    except (ValueError, TypeError):
        raise ConfigError(
            f"{field_name} must be a valid number, got {value}",
            field_name=field_name,
            value=value
        )
    if float_value < min_value:
        raise ConfigError(
            f"{field_name} must be >= {min_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    if max_value is not None and float_value > max_value:
        raise ConfigError(
            f"{field_name} must be <= {max_value}, got {float_value}",
            field_name=field_name,
            value=value
        )
    return float_value


def validate_path_exists(path: Union[str, Path], field_name: str = "path") -> str:
    """
    Validate that a path exists.

    Raises:
        ConfigError: If the path doesn't exist
    """
    path_str = os.fspath(path)
    if not os.path.exists(path_str):
        raise ConfigError(
            f"{field_name} does not exist: {path_str}",
            field_name=field_name,
            value=path_str
        )
    return path_str


def validate_string_list(value: Any, field_name: str = "value", allow_empty: bool = True) -> List[str]:
    """Validate that a value is a list of strings."""
    if not isinstance(value, (list, tuple)) or not all(isinstance(item, str) for item in value):
        raise ConfigError(
            f"{field_name} must be a list of strings, got {value!r}",
            field_name=field_name,
            value=value
        )
    if not allow_empty and not value:
        raise ConfigError(
            f"{field_name} must not be empty",
            field_name=field_name,
            value=value
        )
    return list(value)


def validate_command_template(
    template: Any,
    field_name: str = "command",
    required_placeholders: Sequence[Sequence[str]] = ()
) -> List[str]:
    """
    Validate an argv-style command template.

    Args:
        template: List of argument templates
        field_name: Name of the field being validated
        required_placeholders: Groups of placeholders; at least one
            placeholder of every group must appear somewhere in the template

    Returns:
        The template as a list of strings

    Raises:
        ConfigError: If the template is empty, malformed or lacks a placeholder
    """
    argv = validate_string_list(template, field_name=field_name, allow_empty=False)
    joined = " ".join(argv)
    for group in required_placeholders:
        if not any(placeholder in joined for placeholder in group):
            wanted = " or ".join(f"'{p}'" for p in group)
            raise ConfigError(
                f"{field_name} must contain {wanted} placeholder",
                field_name=field_name,
                value=template
            )
    return argv
