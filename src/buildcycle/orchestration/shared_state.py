"""
Shared data structures for the orchestration module.

This module defines the per-cycle accounting owned by the controller and
the timeout constants used across orchestration components.
"""

from dataclasses import dataclass
from typing import Optional

from ..models.runtime import CycleState


@dataclass
class CycleAccounting:
    """
    Pending-event accounting of the active build cycle.

    Owned and mutated exclusively by the BuildCycleController.
    """
    cycle: int = 0
    state: CycleState = CycleState.IDLE
    compiled: bool = False
    checked: bool = False
    elapsed_ms: Optional[int] = None
    # The cycle number whose result was last reported to the completion hook.
    reported_cycle: int = 0

    def begin(self, cycle: int) -> None:
        """Enter COMPILING for a new cycle and reset its flags."""
        self.cycle = cycle
        self.state = CycleState.COMPILING
        self.compiled = False
        self.checked = False
        self.elapsed_ms = None

    @property
    def result_reported(self) -> bool:
        return self.reported_cycle == self.cycle and self.cycle > 0


class TimeoutConstants:
    """
    Centralized timeout configuration.
    """
    # Controller event loop
    EVENT_POLL_TIMEOUT = 0.5

    # Thread joins on shutdown
    PRODUCER_JOIN_TIMEOUT = 5.0
    WATCHER_JOIN_TIMEOUT = 2.0

    # Process termination
    TERMINATION_GRACEFUL_TIMEOUT = 3.0
    TERMINATION_FORCE_TIMEOUT = 2.0
    BUNDLER_CANCEL_TIMEOUT = 2.0

    # Exit code reported for a process that could not be started.
    SPAWN_FAILURE_EXIT_CODE = 127
