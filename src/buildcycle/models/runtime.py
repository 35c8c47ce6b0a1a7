"""
Runtime data models.

This module contains the structures that live for the duration of a build
session: process roles and handles, the run hook, cycle states and results.
"""

import subprocess
from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Callable, Optional


class ProcessRole(Enum):
    """Logical purpose of a supervised child process."""
    RUN = "run"
    EXEC = "exec"


class StdioPolicy(Enum):
    """How the standard output/error streams of a child are wired."""
    INHERIT = "inherit"
    DISCARD = "discard"
    PIPE = "pipe"


class CycleState(Enum):
    """States of the build cycle state machine."""
    IDLE = "idle"
    COMPILING = "compiling"
    TYPE_CHECKING = "type_checking"
    SPAWNING = "spawning"
    RUNNING = "running"
    FAILED = "failed"


@dataclass(eq=False)
class ChildProcessHandle:
    """
    One spawned OS process owned by the ProcessSupervisor.

    The exit listener is only ever attached, detached and invoked by the
    supervisor.
    """

    role: ProcessRole
    argv: list
    process: Optional[subprocess.Popen] = None
    _on_exit: Optional[Callable[["ChildProcessHandle", Optional[int]], None]] = field(
        default=None, repr=False
    )

    @property
    def pid(self) -> Optional[int]:
        return self.process.pid if self.process is not None else None

    @property
    def returncode(self) -> Optional[int]:
        if self.process is None:
            return None
        return self.process.poll()

    @property
    def stdout(self) -> Optional[IO[str]]:
        return self.process.stdout if self.process is not None else None

    @property
    def stderr(self) -> Optional[IO[str]]:
        return self.process.stderr if self.process is not None else None

    @property
    def is_alive(self) -> bool:
        return self.process is not None and self.process.poll() is None

    @property
    def listener_attached(self) -> bool:
        return self._on_exit is not None

    def detach_listener(self) -> Optional[Callable[["ChildProcessHandle", Optional[int]], None]]:
        """Remove and return the exit listener; later exits are not reported."""
        listener, self._on_exit = self._on_exit, None
        return listener


class RunMode(Enum):
    """Tag of the RunHook choice."""
    DISABLED = "disabled"
    INHERIT = "inherit"
    CUSTOM = "custom"


@dataclass(frozen=True)
class RunHook:
    """
    Whether and how the compiled artifact is run after a successful build.

    ``inherit`` spawns the artifact with the parent's stdio, ``custom``
    spawns it with piped stdio and hands the handle to a callback so the
    caller can wire stdout and exit handling itself.
    """

    mode: RunMode = RunMode.DISABLED
    callback: Optional[Callable[[ChildProcessHandle], None]] = None

    @classmethod
    def disabled(cls) -> "RunHook":
        return cls(RunMode.DISABLED)

    @classmethod
    def inherit(cls) -> "RunHook":
        return cls(RunMode.INHERIT)

    @classmethod
    def custom(cls, callback: Callable[[ChildProcessHandle], None]) -> "RunHook":
        if not callable(callback):
            raise TypeError("RunHook.custom() requires a callable")
        return cls(RunMode.CUSTOM, callback)

    @property
    def enabled(self) -> bool:
        return self.mode is not RunMode.DISABLED


@dataclass(frozen=True)
class CycleResult:
    """Terminal value of one build cycle. ``error`` is None on success."""

    cycle: int
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None
