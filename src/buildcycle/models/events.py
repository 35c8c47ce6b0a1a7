"""
Events flowing into the build cycle controller.

Build events are produced by the BuildInvoker and tagged with the cycle
sequence number that produced them. Process and shutdown events are
posted to the same queue by the supervisor and the signal handler.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from .runtime import ChildProcessHandle, ProcessRole


class BuildPhase(Enum):
    """Which external tool produced a diagnostic."""
    BUNDLE = "bundle"
    TYPE_CHECK = "type_check"


@dataclass(frozen=True)
class BuildEvent:
    """Base class of the events emitted by the BuildInvoker."""
    cycle: int


@dataclass(frozen=True)
class BuildStarted(BuildEvent):
    changed_paths: Tuple[str, ...] = ()


@dataclass(frozen=True)
class BuildFailed(BuildEvent):
    diagnostic: str = ""
    # Set when the bundler itself could not run, as opposed to a compile-error report.
    fatal: bool = False
    phase: BuildPhase = BuildPhase.BUNDLE
    elapsed_ms: Optional[int] = None


@dataclass(frozen=True)
class BuildSucceeded(BuildEvent):
    elapsed_ms: int = 0
    output: str = ""


@dataclass(frozen=True)
class TypeCheckCompleted(BuildEvent):
    elapsed_ms: int = 0


@dataclass(frozen=True)
class ProcessExited:
    role: ProcessRole
    handle: ChildProcessHandle
    returncode: Optional[int]


@dataclass(frozen=True)
class ShutdownRequested:
    reason: str = ""
