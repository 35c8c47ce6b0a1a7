"""
buildcycle: Build-and-run orchestrator for TypeScript/JavaScript projects.

This package compiles an entry file with an external bundler, optionally
runs the artifact and an extra command, and in watch mode rebuilds and
restarts them on every source change.

The package is organized into specialized modules:
- config: Tool settings and build configuration resolution
- models: Data structures and type definitions
- validation: Input validation and error handling
- system: Commands, process trees and source watching
- orchestration: Bundler invocation, process supervision and the cycle controller
- cli: Command-line interface

Usage:
    From command line:
        buildcycle src/index.ts --run
    
    Programmatically:
        from buildcycle import CompileOptions, RunHook, compile_project
        result = compile_project(CompileOptions(entry="src/index.ts", run=RunHook.inherit()))
"""

__version__ = "1.0.0"

# Main interfaces
from .config import clear_settings_cache, get_settings, resolve_build_config, set_settings_path
from .orchestration import BuildRunner, compile_project
from .cli import main_cli

# Model classes for external use
from .models import (
    BuildConfig,
    ChildProcessHandle,
    CompileOptions,
    CycleResult,
    ProcessRole,
    RunHook,
    ToolSettings,
)

# Errors
from .validation import (
    BuildCycleError,
    CompileError,
    ConfigError,
    ProcessError,
)

__all__ = [
    # Main interfaces
    "compile_project",
    "BuildRunner",
    "resolve_build_config",
    "get_settings",
    "set_settings_path",
    "clear_settings_cache",
    "main_cli",
    # Models
    "BuildConfig",
    "ChildProcessHandle",
    "CompileOptions",
    "CycleResult",
    "ProcessRole",
    "RunHook",
    "ToolSettings",
    # Errors
    "BuildCycleError",
    "CompileError",
    "ConfigError",
    "ProcessError",
]
