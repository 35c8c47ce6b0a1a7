"""
Configuration management for the buildcycle package.

This module provides the tool settings (TOML, cached once per process) and
the resolution of an invocation's options into a BuildConfig.
"""

from .manager import (
    clear_settings_cache,
    get_settings,
    set_settings_path,
)
from .loader import (
    load_override_module,
    load_project_config,
    load_toml_file,
)
from .resolver import (
    allocate_temporary_output,
    apply_override_file,
    discard_temporary_output,
    requires_aliases,
    resolve_build_config,
    split_output_path,
)
from .validators import validate_tool_settings

__all__ = [
    # Settings
    "get_settings",
    "set_settings_path",
    "clear_settings_cache",
    "validate_tool_settings",
    # Loading
    "load_toml_file",
    "load_project_config",
    "load_override_module",
    # Resolution
    "resolve_build_config",
    "apply_override_file",
    "allocate_temporary_output",
    "discard_temporary_output",
    "requires_aliases",
    "split_output_path",
]
