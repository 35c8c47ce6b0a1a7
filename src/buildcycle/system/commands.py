"""
Command line and environment helpers.

This module provides functions for expanding argv templates, splitting
user-supplied command strings and preparing child environments.
"""

import logging
import os
import shlex
from typing import Dict, List, Mapping, Optional, Sequence

from ..validation import ConfigError

logger = logging.getLogger(__name__)


def format_command(template: Sequence[str], placeholders: Mapping[str, str]) -> List[str]:
    """Expand every placeholder in an argv template.

    Args:
        template: Argument templates, e.g. ``["esbuild", "{entry}"]``.
        placeholders: Values keyed by placeholder name.

    Returns:
        The expanded argv.

    Raises:
        ConfigError: If a template references an unknown placeholder.

    Examples:
        >>> format_command(["tsc", "-p", "{tsconfig}"], {"tsconfig": "/p/tsconfig.json"})
        ['tsc', '-p', '/p/tsconfig.json']
    """
    argv = []
    for item in template:
        try:
            argv.append(item.format(**placeholders))
        except (KeyError, IndexError, ValueError) as e:
            raise ConfigError(
                f"Invalid placeholder in command argument '{item}': {e}",
                field_name="command",
                value=list(template)
            ) from e
    return argv


def split_command(command: str) -> List[str]:
    """Split a shell-like command string into argv.

    Raises:
        ConfigError: If the string is empty or has unbalanced quotes.
    """
    try:
        argv = shlex.split(command)
    except ValueError as e:
        raise ConfigError(f"Cannot parse command '{command}': {e}", value=command) from e
    if not argv:
        raise ConfigError("Command must not be empty", value=command)
    return argv


def build_child_env(mode_env_var: str, dev: bool, base: Optional[Mapping[str, str]] = None) -> Dict[str, str]:
    """Return the parent environment with the dev/release mode variable overridden."""
    env = dict(os.environ if base is None else base)
    env[mode_env_var] = "development" if dev else "production"
    return env
