"""
Process tree termination utilities.

Termination is split in two halves: ``signal_process_tree`` delivers
SIGTERM to a process and all of its descendants synchronously, and
``escalate_termination`` waits for them and force-kills stragglers. The
second half may run on a background thread so callers are never blocked
by a slow child.
"""

import logging
from typing import List

import psutil

logger = logging.getLogger(__name__)


def is_process_alive(process: psutil.Process) -> bool:
    """Safely check if a process is still alive and not a zombie."""
    try:
        if not process.is_running():
            return False
        return process.status() not in (psutil.STATUS_ZOMBIE, psutil.STATUS_DEAD)
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return False


def _get_process_children(parent: psutil.Process) -> List[psutil.Process]:
    """Safely get all children of a process, handling race conditions."""
    try:
        return [child for child in parent.children(recursive=True) if is_process_alive(child)]
    except (psutil.NoSuchProcess, psutil.AccessDenied):
        return []


def signal_process_tree(pid: int, name: str = "process") -> List[psutil.Process]:
    """
    Send SIGTERM to a process and all of its descendants.

    Calling this on a process that already exited is a no-op.

    Args:
        pid: PID of the root process
        name: Human-readable name for log messages

    Returns:
        The processes that received the signal
    """
    if pid is None or pid <= 0:
        return []

    try:
        parent = psutil.Process(pid)
    except psutil.NoSuchProcess:
        logger.debug(f"{name} (PID: {pid}) already terminated")
        return []
    except psutil.AccessDenied:
        logger.warning(f"Access denied to {name} (PID: {pid})")
        return []

    # Collect children first: once the parent dies they get re-parented.
    children = _get_process_children(parent)
    signalled = []
    for process in [parent] + children:
        try:
            if not is_process_alive(process):
                continue
            process.terminate()
            signalled.append(process)
            logger.debug(f"Sent SIGTERM to PID {process.pid}")
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied sending SIGTERM to PID {process.pid}")
            continue

    if signalled:
        logger.debug(f"Signalled {name} (PID: {pid}) and {len(signalled) - 1} children")
    return signalled


def escalate_termination(
    processes: List[psutil.Process],
    graceful_timeout: float,
    force_timeout: float,
    name: str = "process",
) -> List[psutil.Process]:
    """
    Wait for signalled processes to exit, then SIGKILL the ones that don't.

    Returns:
        Processes still alive after the forced phase
    """
    if not processes:
        return []

    _, still_alive = psutil.wait_procs(processes, timeout=graceful_timeout)
    still_alive = [process for process in still_alive if is_process_alive(process)]
    if not still_alive:
        return []

    logger.warning(f"{len(still_alive)} processes of {name} ignored SIGTERM, sending SIGKILL")
    for process in still_alive:
        try:
            process.kill()
        except psutil.NoSuchProcess:
            continue
        except psutil.AccessDenied:
            logger.warning(f"Access denied sending SIGKILL to PID {process.pid}")

    _, stubborn = psutil.wait_procs(still_alive, timeout=force_timeout)
    stubborn = [process for process in stubborn if is_process_alive(process)]
    for process in stubborn:
        logger.error(f"Failed to terminate PID {process.pid} of {name}")
    return stubborn
