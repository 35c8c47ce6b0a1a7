"""
Signal handling for the orchestration module.

This module manages signal registration, cleanup, and delegation to active
BuildCycleController instances using a global registry pattern.
"""

import logging
import signal
import threading
from typing import TYPE_CHECKING, Any, Dict

if TYPE_CHECKING:
    from .cycle_controller import BuildCycleController

logger = logging.getLogger(__name__)

# Controllers notified by the process-wide handler.
_active_controllers: Dict[int, "BuildCycleController"] = {}
_active_controllers_lock = threading.Lock()


class SignalHandler:
    """
    Installs SIGINT/SIGTERM handlers that request a controller shutdown.

    Teardown runs on the controller thread, never inside the handler.
    """

    def __init__(self):
        self._original_sigint_handler = None
        self._original_sigterm_handler = None
        self._signal_handlers_set = False

    def setup_signal_handlers(self) -> None:
        """Set up the process-wide signal handlers."""
        try:
            self._original_sigint_handler = signal.signal(signal.SIGINT, self._global_signal_handler)
            self._original_sigterm_handler = signal.signal(signal.SIGTERM, self._global_signal_handler)
            self._signal_handlers_set = True
            logger.debug("Signal handlers set up")
        except ValueError as e:
            # Only the main thread of the main interpreter may install handlers.
            logger.debug(f"Signal handlers not installed: {e}")

    def cleanup_signal_handlers(self) -> None:
        """Restore original signal handlers."""
        if not self._signal_handlers_set:
            return

        try:
            if self._original_sigint_handler is not None:
                signal.signal(signal.SIGINT, self._original_sigint_handler)
            if self._original_sigterm_handler is not None:
                signal.signal(signal.SIGTERM, self._original_sigterm_handler)
            logger.debug("Signal handlers restored")
        except ValueError as e:
            logger.warning(f"Failed to restore signal handlers: {e}")
        finally:
            self._signal_handlers_set = False

    def register_controller(self, controller_id: int, controller: "BuildCycleController") -> None:
        """Register a controller to be notified of termination signals."""
        with _active_controllers_lock:
            _active_controllers[controller_id] = controller
            logger.debug(f"Registered controller {controller_id} for signal handling")

    def unregister_controller(self, controller_id: int) -> None:
        """Remove a controller from the registry."""
        with _active_controllers_lock:
            if _active_controllers.pop(controller_id, None) is not None:
                logger.debug(f"Unregistered controller {controller_id} from signal handling")

    @staticmethod
    def _global_signal_handler(signum: int, frame: Any) -> None:
        """
        Process-wide handler that asks every active controller to shut down.

        Args:
            signum: Signal number that was received
            frame: Current stack frame (unused)
        """
        logger.info(f"Signal {signal.Signals(signum).name} received, shutting down...")
        with _active_controllers_lock:
            controllers = list(_active_controllers.values())
        for controller in controllers:
            if controller.finished:
                logger.warning("Shutdown already in progress. Please be patient.")
                continue
            controller.request_shutdown(f"by signal {signal.Signals(signum).name}")
