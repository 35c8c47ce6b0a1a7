"""
Process supervision for the orchestration module.

This module owns the child processes spawned from the most recent
successful build and enforces the teardown-before-spawn ordering between
a role's old and new process.
"""

import logging
import subprocess
import threading
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from ..models.runtime import ChildProcessHandle, ProcessRole, StdioPolicy
from ..system import escalate_termination, signal_process_tree
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)

ExitListener = Callable[[ChildProcessHandle, Optional[int]], None]


class ProcessSupervisor:
    """
    Owns the live ChildProcessHandle set, at most one handle per role.

    The handle map is only mutated here. Watcher threads reap exited
    children and notify their exit listener unless it was detached by a
    teardown.
    """

    def __init__(
        self,
        graceful_timeout: float = TimeoutConstants.TERMINATION_GRACEFUL_TIMEOUT,
        force_timeout: float = TimeoutConstants.TERMINATION_FORCE_TIMEOUT,
    ):
        self.graceful_timeout = graceful_timeout
        self.force_timeout = force_timeout
        self._handles: Dict[ProcessRole, ChildProcessHandle] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)

    def get(self, role: ProcessRole) -> Optional[ChildProcessHandle]:
        with self._lock:
            return self._handles.get(role)

    def live_roles(self) -> Tuple[ProcessRole, ...]:
        with self._lock:
            return tuple(self._handles)

    def replace_and_spawn(
        self,
        role: ProcessRole,
        argv: Sequence[str],
        env: Optional[Mapping[str, str]] = None,
        stdio: StdioPolicy = StdioPolicy.INHERIT,
        on_exit: Optional[ExitListener] = None,
        cwd: Optional[str] = None,
    ) -> ChildProcessHandle:
        """
        Tear down the current holder of ``role``, then spawn its replacement.

        Spawn failures are not raised: the returned handle has no process
        and ``on_exit`` is called with SPAWN_FAILURE_EXIT_CODE.
        """
        self.teardown(role)

        handle = ChildProcessHandle(role=role, argv=list(argv), _on_exit=on_exit)
        try:
            handle.process = subprocess.Popen(
                list(argv),
                env=dict(env) if env is not None else None,
                cwd=cwd,
                **self._stdio_kwargs(stdio),
            )
        except OSError as e:
            logger.error(f"Failed to start {role.value} process '{' '.join(argv)}': {e}")
            listener = handle.detach_listener()
            if listener is not None:
                listener(handle, TimeoutConstants.SPAWN_FAILURE_EXIT_CODE)
            return handle

        with self._lock:
            self._handles[role] = handle

        threading.Thread(
            target=self._watch_exit,
            args=(handle,),
            name=f"{role.value}-watcher-{handle.pid}",
            daemon=True,
        ).start()
        logger.debug(f"Started {role.value} process with PID {handle.pid}: {' '.join(argv)}")
        return handle

    def teardown(self, role: ProcessRole) -> None:
        """Tear down the handle of ``role``; a no-op when there is none."""
        with self._lock:
            handle = self._handles.pop(role, None)
            if handle is not None:
                handle.detach_listener()
        if handle is not None:
            self._terminate(handle)

    def teardown_all(self) -> None:
        """Tear down every live handle. Idempotent."""
        with self._lock:
            handles = list(self._handles.values())
            self._handles.clear()
            for handle in handles:
                handle.detach_listener()
        for handle in handles:
            self._terminate(handle)

    def _terminate(self, handle: ChildProcessHandle) -> None:
        # Listener is already detached; only the signal remains.
        if handle.process is None or handle.process.poll() is not None:
            return
        name = f"{handle.role.value} process"
        signalled = signal_process_tree(handle.pid, name=name)
        logger.debug(f"Tore down {name} (PID: {handle.pid})")
        if signalled:
            threading.Thread(
                target=self._reap,
                args=(signalled, name),
                name=f"{handle.role.value}-reaper-{handle.pid}",
                daemon=True,
            ).start()

    def _reap(self, processes: List, name: str) -> None:
        escalate_termination(processes, self.graceful_timeout, self.force_timeout, name=name)

    def _watch_exit(self, handle: ChildProcessHandle) -> None:
        returncode = handle.process.wait()
        with self._lock:
            listener = handle.detach_listener()
            if self._handles.get(handle.role) is handle:
                del self._handles[handle.role]
        if listener is not None:
            logger.debug(f"{handle.role.value} process {handle.pid} exited with code {returncode}")
            listener(handle, returncode)

    @staticmethod
    def _stdio_kwargs(stdio: StdioPolicy) -> Dict[str, object]:
        if stdio is StdioPolicy.DISCARD:
            return {"stdin": subprocess.DEVNULL, "stdout": subprocess.DEVNULL, "stderr": subprocess.DEVNULL}
        if stdio is StdioPolicy.PIPE:
            return {
                "stdout": subprocess.PIPE,
                "stderr": subprocess.PIPE,
                "text": True,
                "bufsize": 1,
            }
        return {}
