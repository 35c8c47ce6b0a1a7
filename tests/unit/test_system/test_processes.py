"""
Unit tests for process tree termination.
"""

import subprocess
import sys
import textwrap

import psutil
import pytest

from buildcycle.system import escalate_termination, is_process_alive, signal_process_tree

SLEEPER = [sys.executable, "-c", "import time; time.sleep(60)"]

# A parent that starts a sleeping child and then sleeps itself.
TREE = textwrap.dedent(
    """
    import subprocess, sys, time
    child = subprocess.Popen([sys.executable, "-c", "import time; time.sleep(60)"])
    print(child.pid, flush=True)
    time.sleep(60)
    """
)

# Ignores SIGTERM, so only SIGKILL ends it.
STUBBORN = textwrap.dedent(
    """
    import signal, time
    signal.signal(signal.SIGTERM, signal.SIG_IGN)
    print("ready", flush=True)
    time.sleep(60)
    """
)


@pytest.mark.unit
class TestSignalProcessTree:
    """Test cases for signal_process_tree."""

    def test_terminates_single_process(self):
        process = subprocess.Popen(SLEEPER)
        try:
            signalled = signal_process_tree(process.pid, name="sleeper")

            assert [p.pid for p in signalled] == [process.pid]
            assert process.wait(timeout=5) != 0
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()

    def test_terminates_descendants(self, wait_until):
        parent = subprocess.Popen([sys.executable, "-c", TREE], stdout=subprocess.PIPE, text=True)
        try:
            child_pid = int(parent.stdout.readline())

            signalled = signal_process_tree(parent.pid, name="tree")

            assert {p.pid for p in signalled} == {parent.pid, child_pid}
            parent.wait(timeout=5)
            child = next(p for p in signalled if p.pid == child_pid)
            assert wait_until(lambda: not is_process_alive(child), timeout=5)
        finally:
            if parent.poll() is None:
                parent.kill()
                parent.wait()
            parent.stdout.close()

    def test_exited_process_is_a_no_op(self):
        process = subprocess.Popen([sys.executable, "-c", "pass"])
        process.wait()

        assert signal_process_tree(process.pid) == []

    def test_invalid_pid(self):
        assert signal_process_tree(0) == []
        assert signal_process_tree(None) == []


@pytest.mark.unit
@pytest.mark.slow
class TestEscalateTermination:
    """Test cases for escalate_termination."""

    def test_kills_process_ignoring_sigterm(self):
        process = subprocess.Popen([sys.executable, "-c", STUBBORN], stdout=subprocess.PIPE, text=True)
        try:
            assert process.stdout.readline().strip() == "ready"
            signalled = signal_process_tree(process.pid, name="stubborn")

            stubborn = escalate_termination(signalled, graceful_timeout=0.3, force_timeout=5.0)

            assert stubborn == []
            process.wait(timeout=5)
            assert not psutil.pid_exists(process.pid)
        finally:
            if process.poll() is None:
                process.kill()
                process.wait()
            process.stdout.close()

    def test_empty_list(self):
        assert escalate_termination([], 1.0, 1.0) == []

    def test_is_process_alive(self):
        process = subprocess.Popen(SLEEPER)
        handle = psutil.Process(process.pid)
        assert is_process_alive(handle)

        process.kill()
        process.wait()

        assert not is_process_alive(handle)
