"""
System-level helpers: command templating, child environments, process tree
termination and source change detection.
"""

from .commands import build_child_env, format_command, split_command
from .processes import escalate_termination, is_process_alive, signal_process_tree
from .watcher import SourceWatcher

__all__ = [
    # Commands
    "build_child_env",
    "format_command",
    "split_command",
    # Processes
    "escalate_termination",
    "is_process_alive",
    "signal_process_tree",
    # Watching
    "SourceWatcher",
]
