"""
Orchestration module for the build cycle.

Components:
- BuildRunner: Wires one invocation together and guarantees teardown
- BuildInvoker: Runs the bundler once or on every source change
- CommandBundler: Command-line bundler and type checker adapter
- ProcessSupervisor: Owns the run and exec child processes
- BuildCycleController: Event-driven cycle state machine
- SignalHandler: Signal handling management
"""

from .build_invoker import BuildInvoker, SubmissionMode
from .build_runner import BuildRunner, compile_project
from .bundler import BuildOutcome, Bundler, CommandBundler
from .cycle_controller import BuildCycleController
from .process_supervisor import ProcessSupervisor
from .shared_state import CycleAccounting, TimeoutConstants
from .signal_handler import SignalHandler

__all__ = [
    "BuildRunner",
    "compile_project",
    "BuildInvoker",
    "SubmissionMode",
    "Bundler",
    "BuildOutcome",
    "CommandBundler",
    "BuildCycleController",
    "ProcessSupervisor",
    "CycleAccounting",
    "TimeoutConstants",
    "SignalHandler",
]
