"""
Data models for the build orchestrator.

Configuration Models:
- Tool settings loaded from TOML
- Per-invocation compile options
- The normalized, immutable build configuration

Event Models:
- Tagged build events carrying their cycle sequence number
- Process exit and shutdown notifications

Runtime Models:
- Process roles, stdio policies and supervised process handles
- The run hook choice
- Cycle states and results
"""

from .config import (
    DEFAULT_OUTPUT_FILENAME,
    DEFAULT_OVERRIDE_FILENAME,
    DEFAULT_SETTINGS_FILENAME,
    BuildConfig,
    BuildPlugin,
    CompileOptions,
    ToolSettings,
)
from .events import (
    BuildEvent,
    BuildFailed,
    BuildPhase,
    BuildStarted,
    BuildSucceeded,
    ProcessExited,
    ShutdownRequested,
    TypeCheckCompleted,
)
from .runtime import (
    ChildProcessHandle,
    CycleResult,
    CycleState,
    ProcessRole,
    RunHook,
    RunMode,
    StdioPolicy,
)

__all__ = [
    # Configuration
    "DEFAULT_OUTPUT_FILENAME",
    "DEFAULT_OVERRIDE_FILENAME",
    "DEFAULT_SETTINGS_FILENAME",
    "BuildConfig",
    "BuildPlugin",
    "CompileOptions",
    "ToolSettings",
    # Events
    "BuildEvent",
    "BuildFailed",
    "BuildPhase",
    "BuildStarted",
    "BuildSucceeded",
    "ProcessExited",
    "ShutdownRequested",
    "TypeCheckCompleted",
    # Runtime
    "ChildProcessHandle",
    "CycleResult",
    "CycleState",
    "ProcessRole",
    "RunHook",
    "RunMode",
    "StdioPolicy",
]
