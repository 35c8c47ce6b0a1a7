"""
Validation and error handling for the buildcycle package.

This module provides the error taxonomy (configuration, compile and
process errors), input validation and consistent error reporting.
"""

from .exceptions import (
    BuildCycleError,
    CompileError,
    ConfigError,
    ErrorSeverity,
    ProcessError,
    handle_cli_error,
    handle_config_error,
    handle_error,
    handle_subprocess_error,
)
from .validators import (
    validate_command_template,
    validate_entry,
    validate_path_exists,
    validate_positive_float,
    validate_string_list,
)

__all__ = [
    # Errors
    "BuildCycleError",
    "CompileError",
    "ConfigError",
    "ErrorSeverity",
    "ProcessError",
    "handle_cli_error",
    "handle_config_error",
    "handle_error",
    "handle_subprocess_error",
    # Validators
    "validate_command_template",
    "validate_entry",
    "validate_path_exists",
    "validate_positive_float",
    "validate_string_list",
]
