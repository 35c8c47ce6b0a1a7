"""
Adapters around the external bundler and type checker.

The orchestrator treats compilation as a black box behind the Bundler
interface. CommandBundler drives command-line tools (esbuild and tsc by
default) configured through argv templates in the tool settings.
"""

import logging
import subprocess
import threading
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from ..models.config import BuildConfig, ToolSettings
from ..models.events import BuildPhase
from ..system import build_child_env, escalate_termination, format_command, signal_process_tree
from ..validation import ConfigError, ErrorSeverity, handle_subprocess_error
from .shared_state import TimeoutConstants

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class BuildOutcome:
    """Result of one bundler or type checker run."""
    success: bool
    elapsed_ms: int
    diagnostic: str = ""
    output: str = ""
    # The tool itself could not run (missing executable, permissions).
    fatal: bool = False
    cancelled: bool = False


class Bundler(ABC):
    """Interface of the external compiler used by the BuildInvoker."""

    @abstractmethod
    def bundle(self, config: BuildConfig) -> BuildOutcome:
        """Transpile and bundle ``config.entry`` into ``config.artifact_path``."""

    @abstractmethod
    def check_types(self, config: BuildConfig) -> BuildOutcome:
        """Run type analysis for the project."""

    def prepare(self, config: BuildConfig) -> None:
        """Check that ``config`` can be submitted; raise ConfigError when it cannot."""

    def cancel(self, phase: Optional[BuildPhase] = None) -> None:
        """Abort running work of ``phase``, or of every phase when None."""


class CommandBundler(Bundler):
    """
    Runs the bundler and type checker as subprocesses.

    Running subprocesses are tracked per phase so a stale type check can be
    cancelled when a new cycle starts.
    """

    def __init__(self, settings: ToolSettings):
        self.settings = settings
        self._lock = threading.Lock()
        self._running: Dict[BuildPhase, subprocess.Popen] = {}
        self._cancelled: Set[int] = set()

    @staticmethod
    def placeholders(config: BuildConfig) -> Dict[str, str]:
        return {
            "entry": config.entry,
            "output": config.artifact_path,
            "output_dir": config.output_dir,
            "output_file": config.output_filename,
            "tsconfig": config.ts_config_path,
            "mode": config.mode,
        }

    def bundle_command(self, config: BuildConfig) -> List[str]:
        """Expand the bundler command for ``config`` and apply its plugins."""
        values = self.placeholders(config)
        argv = format_command(self.settings.bundler_command, values)
        argv += format_command(self.settings.dev_args if config.dev else self.settings.release_args, values)
        if config.resolve_aliases:
            argv += format_command(self.settings.alias_args, values)
        if not config.temporary_output:
            argv += format_command(self.settings.externals_args, values)
        for plugin in config.plugins:
            argv = list(plugin(argv, config))
        return argv

    def check_command(self, config: BuildConfig) -> List[str]:
        return format_command(self.settings.checker_command, self.placeholders(config))

    def prepare(self, config: BuildConfig) -> None:
        """Expand both commands once so broken templates or plugins fail up front."""
        try:
            argv = self.bundle_command(config)
        except ConfigError:
            raise
        except Exception as e:
            raise ConfigError(
                f"Build plugin failed: {type(e).__name__}: {e}",
                field_name="plugins",
                value=[getattr(plugin, "__name__", repr(plugin)) for plugin in config.plugins]
            ) from e
        logger.debug(f"Bundler command: {' '.join(argv)}")
        if config.check_types:
            self.check_command(config)

    def bundle(self, config: BuildConfig) -> BuildOutcome:
        return self._execute(BuildPhase.BUNDLE, self.bundle_command(config), config)

    def check_types(self, config: BuildConfig) -> BuildOutcome:
        return self._execute(BuildPhase.TYPE_CHECK, self.check_command(config), config)

    def _execute(self, phase: BuildPhase, argv: List[str], config: BuildConfig) -> BuildOutcome:
        logger.debug(f"Running {phase.value}: {' '.join(argv)}")
        start = time.monotonic()
        try:
            process = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                text=True,
                encoding="utf-8",
                errors="replace",
                env=build_child_env(self.settings.mode_env_var, config.dev),
            )
        except OSError as e:
            handle_subprocess_error(e, argv[0], severity=ErrorSeverity.DEBUG, reraise=False, logger=logger)
            return BuildOutcome(
                success=False,
                elapsed_ms=int((time.monotonic() - start) * 1000),
                diagnostic=f"Unable to launch '{argv[0]}': {e}",
                fatal=True,
            )

        with self._lock:
            self._running[phase] = process
        try:
            stdout, stderr = process.communicate()
        finally:
            with self._lock:
                if self._running.get(phase) is process:
                    del self._running[phase]
                cancelled = process.pid in self._cancelled
                self._cancelled.discard(process.pid)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        if cancelled:
            return BuildOutcome(success=False, elapsed_ms=elapsed_ms, cancelled=True)

        output = stdout.strip()
        if process.returncode != 0:
            diagnostic = "\n".join(part for part in (output, stderr.strip()) if part)
            if not diagnostic:
                diagnostic = f"{argv[0]} exited with code {process.returncode}"
            return BuildOutcome(success=False, elapsed_ms=elapsed_ms, diagnostic=diagnostic, output=output)
        return BuildOutcome(success=True, elapsed_ms=elapsed_ms, output=output)

    def cancel(self, phase: Optional[BuildPhase] = None) -> None:
        with self._lock:
            targets = [
                process for running_phase, process in self._running.items()
                if phase is None or running_phase is phase
            ]
            for process in targets:
                self._cancelled.add(process.pid)

        for process in targets:
            signalled = signal_process_tree(process.pid, name=f"bundler PID {process.pid}")
            if signalled:
                threading.Thread(
                    target=escalate_termination,
                    args=(signalled, TimeoutConstants.BUNDLER_CANCEL_TIMEOUT,
                          TimeoutConstants.TERMINATION_FORCE_TIMEOUT, "bundler"),
                    name="bundler-reaper",
                    daemon=True,
                ).start()
