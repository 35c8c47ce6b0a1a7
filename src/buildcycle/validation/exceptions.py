"""
Exception types and error handling helpers.

This module defines the error taxonomy shared by the whole package and the
small set of helpers used to log errors consistently before re-raising or
exiting.
"""

import logging
import sys
from enum import Enum
from typing import Any, Optional, Union

logger = logging.getLogger(__name__)


class ErrorSeverity(Enum):
    """Severity levels for error handling."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class BuildCycleError(Exception):
    """Base class for every error raised or reported by buildcycle."""


class ConfigError(BuildCycleError):
    """
    Raised when a precondition of an invocation fails.

    Configuration errors are always raised synchronously, before the
    bundler is invoked, and are never retried.
    """

    def __init__(self, message: str, field_name: Optional[str] = None,
                 value: Any = None, severity: ErrorSeverity = ErrorSeverity.ERROR):
        super().__init__(message)
        self.field_name = field_name
        self.value = value
        self.severity = severity


class CompileError(BuildCycleError):
    """
    Diagnostics produced by the external bundler or type checker.

    Only ever delivered through the completion hook, never raised across
    the asynchronous boundary.
    """

    def __init__(self, diagnostic: str, fatal: bool = False, phase: str = "bundle"):
        super().__init__(diagnostic)
        self.diagnostic = diagnostic
        self.fatal = fatal
        self.phase = phase


class ProcessError(BuildCycleError):
    """A supervised child process exited with a non-zero code or was killed."""

    def __init__(self, role: str, returncode: Optional[int]):
        if returncode is None:
            message = f"{role} process could not be started"
        elif returncode < 0:
            message = f"{role} process was killed by signal {-returncode}"
        else:
            message = f"{role} process exited with code {returncode}"
        super().__init__(message)
        self.role = role
        self.returncode = returncode


def handle_error(
    error: Exception,
    context: str,
    severity: Union[ErrorSeverity, str] = ErrorSeverity.ERROR,
    reraise: bool = True,
    logger: Optional[logging.Logger] = None
) -> None:
    """
    Handle errors with consistent logging and optional re-raising.

    Args:
        error: The exception that occurred
        context: Context description of where the error occurred
        severity: Severity level for logging
        reraise: Whether to re-raise the exception after logging
        logger: Logger instance to use (defaults to module logger)
    """
    effective_logger = logger or globals()['logger']

    error_msg = f"Error in {context}: {error}"

    if isinstance(severity, str):
        severity_str = severity.lower()
    else:
        severity_str = severity.value

    if severity_str == "debug":
        effective_logger.debug(error_msg, exc_info=True)
    elif severity_str == "info":
        effective_logger.info(error_msg)
    elif severity_str == "warning":
        effective_logger.warning(error_msg)
    elif severity_str == "error":
        effective_logger.error(error_msg)
    elif severity_str == "critical":
        effective_logger.critical(error_msg, exc_info=True)

    if reraise:
        raise error


def handle_config_error(error: Exception, context: str, **kwargs) -> None:
    """Handle configuration-related errors."""
    handle_error(error, f"config {context}", **kwargs)


def handle_subprocess_error(error: Exception, command: str, **kwargs) -> None:
    """Handle subprocess-related errors."""
    handle_error(error, f"subprocess command '{command}'", **kwargs)


def handle_cli_error(error: Exception, context: str, **kwargs) -> None:
    """Log a CLI-level error and exit the interpreter."""
    exit_code = kwargs.pop('exit_code', 1)
    severity = kwargs.pop('severity', ErrorSeverity.ERROR)
    handle_error(error, f"CLI {context}", severity=severity, reraise=False, **kwargs)
    sys.exit(exit_code)
