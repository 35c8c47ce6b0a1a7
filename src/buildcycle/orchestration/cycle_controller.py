"""
The build cycle state machine.

The controller consumes every event (build, type check, process exit and
shutdown) from a single queue on one thread, so transitions never run
concurrently. Each build event is gated against the active cycle number;
events from an earlier cycle are discarded.
"""

import logging
import queue
from typing import Optional

from ..models.config import BuildConfig, CompileOptions, ToolSettings
from ..models.events import (
    BuildEvent,
    BuildFailed,
    BuildStarted,
    BuildSucceeded,
    ProcessExited,
    ShutdownRequested,
    TypeCheckCompleted,
)
from ..models.runtime import (
    ChildProcessHandle,
    CycleResult,
    CycleState,
    ProcessRole,
    RunHook,
    RunMode,
    StdioPolicy,
)
from ..system import build_child_env, split_command
from ..validation import CompileError, ProcessError
from .build_invoker import BuildInvoker, SubmissionMode
from .process_supervisor import ProcessSupervisor
from .shared_state import CycleAccounting, TimeoutConstants

logger = logging.getLogger(__name__)


class BuildCycleController:
    """
    Sequences compile, type check, spawn and teardown for every cycle.

    States: IDLE -> COMPILING -> (TYPE_CHECKING) -> SPAWNING -> RUNNING,
    with FAILED absorbing for the current cycle only. Processes are only
    ever touched through the ProcessSupervisor.
    """

    def __init__(
        self,
        config: BuildConfig,
        options: CompileOptions,
        settings: ToolSettings,
        supervisor: ProcessSupervisor,
    ):
        self.config = config
        self.options = options
        self.settings = settings
        self.supervisor = supervisor
        self.last_result: Optional[CycleResult] = None

        self._events: "queue.Queue[object]" = queue.Queue()
        self._acct = CycleAccounting()
        self._done = False

        # A temporary artifact is pointless unless it runs.
        if options.run.enabled:
            self._run_hook = options.run
        elif config.temporary_output:
            self._run_hook = RunHook.inherit()
        else:
            self._run_hook = RunHook.disabled()

        # Parsed up front so a malformed exec command fails before any build.
        self._exec_argv = split_command(options.exec_command) if options.exec_command else None

    @property
    def state(self) -> CycleState:
        return self._acct.state

    @property
    def cycle(self) -> int:
        return self._acct.cycle

    @property
    def finished(self) -> bool:
        return self._done

    def post(self, event: object) -> None:
        """Queue an event for the control thread. Thread-safe."""
        self._events.put(event)

    def request_shutdown(self, reason: str = "") -> None:
        self.post(ShutdownRequested(reason))

    def run(self, invoker: BuildInvoker) -> Optional[CycleResult]:
        """
        Submit the build and drive the state machine until the session ends.

        One-shot sessions end once the result is reported and no child is
        left; watch sessions end on a shutdown request. Every supervised
        process is torn down on exit.

        Returns:
            The result of the last reported cycle, if any
        """
        mode = SubmissionMode.WATCH if self.options.watch else SubmissionMode.ONCE
        invoker.submit(self.config, mode)
        try:
            while not self._done:
                try:
                    event = self._events.get(timeout=TimeoutConstants.EVENT_POLL_TIMEOUT)
                except queue.Empty:
                    continue
                self.handle(event)
        except KeyboardInterrupt:
            logger.info("Interrupted, shutting down...")
        finally:
            invoker.close()
            self.supervisor.teardown_all()
        return self.last_result

    def handle(self, event: object) -> None:
        """Apply one event to the state machine."""
        if isinstance(event, ShutdownRequested):
            logger.debug(f"Shutdown requested {event.reason}".rstrip())
            self._done = True
        elif isinstance(event, ProcessExited):
            self._on_process_exited(event)
        elif isinstance(event, BuildStarted):
            self._on_build_started(event)
        elif isinstance(event, BuildEvent) and event.cycle != self._acct.cycle:
            logger.debug(f"Discarding stale {type(event).__name__} (active cycle {self._acct.cycle})")
        elif isinstance(event, BuildFailed):
            self._on_build_failed(event)
        elif isinstance(event, BuildSucceeded):
            self._on_build_succeeded(event)
        elif isinstance(event, TypeCheckCompleted):
            self._on_type_check_completed(event)
        else:
            logger.warning(f"Ignoring unknown event {event!r}")

    # --- transitions ---

    def _on_build_started(self, event: BuildStarted) -> None:
        if event.cycle <= self._acct.cycle:
            logger.debug(f"Discarding stale BuildStarted for cycle {event.cycle}")
            return
        self._acct.begin(event.cycle)
        if not self.options.keep_alive_on_failure:
            self.supervisor.teardown_all()
        if event.cycle > 1:
            self._say("> Compiling...")
        logger.debug(f"Cycle {event.cycle} compiling")

    def _on_build_failed(self, event: BuildFailed) -> None:
        if self._acct.state is CycleState.FAILED:
            # A second diagnostic for the same cycle, e.g. type errors after syntax errors.
            self._alert(event.diagnostic)
            return
        if self._acct.state not in (CycleState.COMPILING, CycleState.TYPE_CHECKING):
            logger.debug(f"Ignoring BuildFailed in state {self._acct.state.value}")
            return

        self._acct.state = CycleState.FAILED
        if event.elapsed_ms is not None and not event.fatal:
            self._alert(f"> Compilation failed after {event.elapsed_ms}ms")
        else:
            self._alert("> Compilation failed")
        self._alert(event.diagnostic)

        self._report(CompileError(event.diagnostic, fatal=event.fatal, phase=event.phase.value))
        self._settle()

    def _on_build_succeeded(self, event: BuildSucceeded) -> None:
        if self._acct.state is not CycleState.COMPILING:
            logger.debug(f"Ignoring BuildSucceeded in state {self._acct.state.value}")
            return
        self._acct.compiled = True
        self._acct.elapsed_ms = event.elapsed_ms
        if self.options.verbose and event.output:
            logger.info(event.output)

        if not self.config.check_types or self._acct.checked:
            self._spawn()
        else:
            self._acct.state = CycleState.TYPE_CHECKING
            logger.debug(f"Cycle {self._acct.cycle} compiled in {event.elapsed_ms}ms, waiting for type check")

    def _on_type_check_completed(self, event: TypeCheckCompleted) -> None:
        if self._acct.state not in (CycleState.COMPILING, CycleState.TYPE_CHECKING):
            logger.debug(f"Ignoring TypeCheckCompleted in state {self._acct.state.value}")
            return
        self._acct.checked = True
        logger.debug(f"Cycle {self._acct.cycle} type-checked in {event.elapsed_ms}ms")
        if self._acct.compiled:
            self._spawn()

    def _spawn(self) -> None:
        self._acct.state = CycleState.SPAWNING
        self._say(f"> Successfully compiled in {self._acct.elapsed_ms}ms")

        if self.options.keep_alive_on_failure:
            self.supervisor.teardown_all()

        env = build_child_env(self.settings.mode_env_var, self.config.dev)

        if self._run_hook.enabled:
            if self._run_hook.mode is RunMode.CUSTOM:
                stdio = StdioPolicy.PIPE
            elif self.options.silent:
                stdio = StdioPolicy.DISCARD
            else:
                stdio = StdioPolicy.INHERIT
            argv = list(self.settings.runtime_command) + [self.config.artifact_path] + list(self.options.run_args)
            handle = self.supervisor.replace_and_spawn(
                ProcessRole.RUN, argv, env=env, stdio=stdio, on_exit=self._on_child_exit
            )
            if self._run_hook.mode is RunMode.CUSTOM and handle.process is not None:
                self._run_hook.callback(handle)

        if self._exec_argv:
            self._say("> Running exec command")
            stdio = StdioPolicy.DISCARD if self.options.is_quiet else StdioPolicy.INHERIT
            self.supervisor.replace_and_spawn(
                ProcessRole.EXEC, self._exec_argv, env=env, stdio=stdio, on_exit=self._on_child_exit
            )

        self._acct.state = CycleState.RUNNING
        logger.debug(f"Cycle {self._acct.cycle} running: {[role.value for role in self.supervisor.live_roles()]}")

        # One-shot runs report when the run process exits.
        if self.options.watch or not self._run_hook.enabled:
            self._report(None)
        self._settle()

    def _on_child_exit(self, handle: ChildProcessHandle, returncode: Optional[int]) -> None:
        # Called on supervisor threads; hand over to the control thread.
        self.post(ProcessExited(handle.role, handle, returncode))

    def _on_process_exited(self, event: ProcessExited) -> None:
        current = self.supervisor.get(event.role)
        if current is not None and current is not event.handle:
            logger.debug(f"Ignoring exit of replaced {event.role.value} process")
            return

        if event.returncode == 0:
            self._say("> Process finished")
        else:
            self._alert(f"> {ProcessError(event.role.value, event.returncode)}", level=logging.WARNING)

        if event.role is ProcessRole.RUN and not self.options.watch:
            if event.returncode == 0:
                self._report(None)
            else:
                self._report(ProcessError(event.role.value, event.returncode))
        self._settle()

    # --- helpers ---

    def _report(self, error: Optional[Exception]) -> None:
        """Deliver the active cycle's result, at most once per cycle."""
        if self._acct.result_reported:
            return
        self._acct.reported_cycle = self._acct.cycle
        self.last_result = CycleResult(self._acct.cycle, error)
        if self.options.on_compile is not None:
            self.options.on_compile(error)

    def _settle(self) -> None:
        """End a one-shot session once its result is out and no child is left."""
        if self.options.watch:
            return
        if self._acct.result_reported and len(self.supervisor) == 0:
            self._done = True

    def _say(self, message: str) -> None:
        if self.options.is_quiet:
            logger.debug(message)
        else:
            logger.info(message)

    def _alert(self, message: str, level: int = logging.ERROR) -> None:
        if not message:
            return
        logger.log(logging.DEBUG if self.options.silent else level, message)
