"""
Build invocation for one-shot and watch sessions.

The BuildInvoker runs the bundler on a producer thread and translates every
outcome into a BuildEvent tagged with its cycle number. When type checking
is enabled it runs concurrently on its own thread and reports as a second,
independent signal.
"""

import logging
import os
import threading
from enum import Enum
from typing import Callable, List, Optional, Sequence

from ..models.config import BuildConfig, ToolSettings
from ..models.events import (
    BuildFailed,
    BuildPhase,
    BuildStarted,
    BuildSucceeded,
    TypeCheckCompleted,
)
from ..system import SourceWatcher
from ..validation import ErrorSeverity, handle_error
from .bundler import Bundler, BuildOutcome
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


class SubmissionMode(Enum):
    ONCE = "once"
    WATCH = "watch"


class BuildInvoker:
    """
    Submits a build configuration to the bundler and streams events.

    Events are handed to ``sink`` from the producer and checker threads;
    the sink must be thread-safe (the controller passes ``Queue.put``).
    """

    def __init__(
        self,
        bundler: Bundler,
        sink: Callable[[object], None],
        settings: ToolSettings,
        watcher_factory: Optional[Callable[[BuildConfig], SourceWatcher]] = None,
    ):
        self.bundler = bundler
        self.sink = sink
        self.settings = settings
        self.watcher_factory = watcher_factory or self._default_watcher
        self._stop = threading.Event()
        self._producer: Optional[threading.Thread] = None
        self._checkers: List[threading.Thread] = []
        self._cycle = 0

    @property
    def cycle(self) -> int:
        return self._cycle

    def submit(self, config: BuildConfig, mode: SubmissionMode) -> None:
        """Start producing events for ``config``; returns immediately."""
        if self._producer is not None:
            raise RuntimeError("A build has already been submitted to this invoker")

        target = self._run_once if mode is SubmissionMode.ONCE else self._run_watch
        self._producer = threading.Thread(
            target=target, args=(config,), name=f"build-{mode.value}", daemon=True
        )
        self._producer.start()
        logger.debug(f"Submitted build of {config.entry} in {mode.value} mode")

    def close(self) -> None:
        """Stop watching and cancel running bundler work. Safe to call twice."""
        self._stop.set()
        self.bundler.cancel()
        if self._producer is not None and self._producer is not threading.current_thread():
            self._producer.join(timeout=TimeoutConstants.PRODUCER_JOIN_TIMEOUT)
            if self._producer.is_alive():
                logger.warning("Build producer thread did not stop in time")
        for checker in self._checkers:
            checker.join(timeout=TimeoutConstants.WATCHER_JOIN_TIMEOUT)
        self._checkers = [checker for checker in self._checkers if checker.is_alive()]

    def _default_watcher(self, config: BuildConfig) -> SourceWatcher:
        ignore_paths = [config.artifact_path]
        # A temporary artifact lives in the shared temp directory.
        if not config.temporary_output:
            ignore_paths.append(config.output_dir)
        return SourceWatcher(
            roots=[os.path.dirname(config.entry), config.ts_config_path],
            extensions=self.settings.watch_extensions,
            ignore_names=self.settings.watch_ignore,
            ignore_paths=ignore_paths,
            poll_interval=self.settings.poll_interval,
        )

    def _run_once(self, config: BuildConfig) -> None:
        self._run_cycle(config, ())

    def _run_watch(self, config: BuildConfig) -> None:
        watcher = self.watcher_factory(config)
        watcher.prime()
        changed: Sequence[str] = ()
        while not self._stop.is_set():
            self._run_cycle(config, changed)
            changed = watcher.wait_for_change(self._stop)
            if changed is None:
                break
            logger.info(f"Change detected in {len(changed)} file(s), rebuilding...")
        logger.debug("Watch producer stopped")

    def _run_cycle(self, config: BuildConfig, changed: Sequence[str]) -> None:
        self._cycle += 1
        cycle = self._cycle
        self.sink(BuildStarted(cycle, tuple(changed)))

        if config.check_types:
            self.bundler.cancel(BuildPhase.TYPE_CHECK)
            self._checkers = [checker for checker in self._checkers if checker.is_alive()]
            checker = threading.Thread(
                target=self._check_types, args=(config, cycle), name=f"type-check-{cycle}", daemon=True
            )
            self._checkers.append(checker)
            checker.start()

        try:
            outcome = self.bundler.bundle(config)
        except Exception as e:
            self.sink(self._crash(cycle, e, BuildPhase.BUNDLE))
            return
        if outcome.cancelled or self._stop.is_set():
            return
        if outcome.success:
            self.sink(BuildSucceeded(cycle, elapsed_ms=outcome.elapsed_ms, output=outcome.output))
        else:
            self.sink(self._failure(cycle, outcome, BuildPhase.BUNDLE))

    def _check_types(self, config: BuildConfig, cycle: int) -> None:
        try:
            outcome = self.bundler.check_types(config)
        except Exception as e:
            self.sink(self._crash(cycle, e, BuildPhase.TYPE_CHECK))
            return
        if outcome.cancelled or self._stop.is_set():
            logger.debug(f"Type check of cycle {cycle} cancelled")
            return
        if outcome.success:
            self.sink(TypeCheckCompleted(cycle, elapsed_ms=outcome.elapsed_ms))
        else:
            self.sink(self._failure(cycle, outcome, BuildPhase.TYPE_CHECK))

    @staticmethod
    def _failure(cycle: int, outcome: BuildOutcome, phase: BuildPhase) -> BuildFailed:
        return BuildFailed(
            cycle,
            diagnostic=outcome.diagnostic,
            fatal=outcome.fatal,
            phase=phase,
            elapsed_ms=outcome.elapsed_ms,
        )

    @staticmethod
    def _crash(cycle: int, error: Exception, phase: BuildPhase) -> BuildFailed:
        # Worker threads always post a result for their cycle.
        handle_error(
            error=error,
            context=f"{phase.value} of cycle {cycle}",
            severity=ErrorSeverity.DEBUG,
            reraise=False,
            logger=logger,
        )
        return BuildFailed(cycle, diagnostic=f"{type(error).__name__}: {error}", fatal=True, phase=phase)
