"""
BuildRunner for the orchestration module.

This module wires the config resolver, build invoker, process supervisor
and cycle controller together for one invocation and guarantees that every
spawned process is torn down when the session ends.
"""

import logging
from typing import Optional

from ..config import discard_temporary_output, get_settings, resolve_build_config
from ..models.config import CompileOptions, ToolSettings
from ..models.runtime import CycleResult
from .build_invoker import BuildInvoker
from .bundler import Bundler, CommandBundler
from .cycle_controller import BuildCycleController
from .process_supervisor import ProcessSupervisor
from .signal_handler import SignalHandler

logger = logging.getLogger(__name__)


class BuildRunner:
    """
    Coordinates a single compile session, one-shot or watching.

    Configuration is resolved on construction, so precondition failures
    raise ConfigError before the bundler is ever invoked.
    """

    def __init__(
        self,
        options: CompileOptions,
        settings: Optional[ToolSettings] = None,
        bundler: Optional[Bundler] = None,
    ):
        """
        Initialize the BuildRunner and its components.

        Args:
            options: Options of this invocation
            settings: Tool settings; the cached settings are used when omitted
            bundler: Bundler implementation; a CommandBundler when omitted

        Raises:
            ConfigError: If the configuration or its commands cannot be resolved
        """
        self.options = options
        self.settings = settings if settings is not None else get_settings()
        self.config = resolve_build_config(options)

        try:
            self.supervisor = ProcessSupervisor(graceful_timeout=self.settings.termination_timeout)
            self.controller = BuildCycleController(self.config, options, self.settings, self.supervisor)
            self.bundler = bundler if bundler is not None else CommandBundler(self.settings)
            self.bundler.prepare(self.config)
        except Exception:
            if self.config.temporary_output:
                discard_temporary_output(self.config.artifact_path)
            raise
        self.invoker = BuildInvoker(self.bundler, self.controller.post, self.settings)
        self.signal_handler = SignalHandler()

    def run(self) -> Optional[CycleResult]:
        """
        Execute the session until it completes or is interrupted.

        Returns:
            The result of the last reported cycle, if any
        """
        controller_id = id(self.controller)
        self.signal_handler.register_controller(controller_id, self.controller)
        self.signal_handler.setup_signal_handlers()

        logger.debug(
            f"Compiling {self.config.entry} to {self.config.artifact_path} "
            f"({self.config.mode}{', watching' if self.options.watch else ''})"
        )
        try:
            return self.controller.run(self.invoker)
        finally:
            self.teardown()
            self.signal_handler.cleanup_signal_handlers()
            self.signal_handler.unregister_controller(controller_id)

    def request_shutdown(self) -> None:
        """Ask the session to stop; safe to call from any thread."""
        self.controller.request_shutdown("on request")

    def teardown(self) -> None:
        """Release session resources after the controller has stopped."""
        self.supervisor.teardown_all()
        if self.config.temporary_output:
            discard_temporary_output(self.config.artifact_path)


def compile_project(
    options: CompileOptions,
    settings: Optional[ToolSettings] = None,
    bundler: Optional[Bundler] = None,
) -> Optional[CycleResult]:
    """
    Compile (and optionally run or watch) a project.

    Args:
        options: Options of this invocation
        settings: Tool settings; the cached settings are used when omitted
        bundler: Bundler implementation; a CommandBundler when omitted

    Returns:
        The result of the last reported cycle, if any

    Raises:
        ConfigError: If the configuration cannot be resolved
    """
    return BuildRunner(options, settings=settings, bundler=bundler).run()
