"""
Build configuration resolution.

Turns the options of an invocation into a normalized BuildConfig. Every
precondition failure surfaces here as a ConfigError, before the bundler is
ever invoked.
"""

import dataclasses
import logging
import os
import tempfile
from pathlib import Path
from typing import Any, Dict, Tuple

from ..models.config import (
    DEFAULT_OUTPUT_FILENAME,
    DEFAULT_OVERRIDE_FILENAME,
    BuildConfig,
    CompileOptions,
)
from ..validation import ConfigError, ErrorSeverity, handle_error, validate_entry
from .loader import load_override_module, load_project_config

logger = logging.getLogger(__name__)


def split_output_path(output: str) -> Tuple[str, str]:
    """
    Split a requested output into (absolute directory, filename).

    An output ending in a path separator names a directory; the artifact
    then gets the default filename.
    """
    separators = ("/", os.sep) if os.altsep is None else ("/", os.sep, os.altsep)
    if output.endswith(separators):
        return os.path.abspath(output), DEFAULT_OUTPUT_FILENAME
    resolved = os.path.abspath(output)
    return os.path.dirname(resolved), os.path.basename(resolved)


def allocate_temporary_output() -> str:
    """Reserve a uniquely named temporary file to hold the artifact."""
    fd, path = tempfile.mkstemp(prefix="buildcycle-", suffix=".js")
    os.close(fd)
    logger.debug(f"Allocated temporary output {path}")
    return path


def discard_temporary_output(path: str) -> None:
    """Remove a temporary artifact; a file that is already gone is fine."""
    try:
        os.remove(path)
        logger.debug(f"Removed temporary output {path}")
    except FileNotFoundError:
        pass
    except OSError as e:
        handle_error(
            error=e,
            context="removing temporary output",
            severity=ErrorSeverity.WARNING,
            reraise=False,
            logger=logger,
        )


def requires_aliases(project_config: Dict[str, Any]) -> bool:
    """Whether the project configuration declares a path-mapping table."""
    compiler_options = project_config.get("compilerOptions") or {}
    if not isinstance(compiler_options, dict):
        return False
    return bool(compiler_options.get("baseUrl") or compiler_options.get("paths"))


def apply_override_file(config: BuildConfig, options: CompileOptions) -> BuildConfig:
    """
    Let the override file transform the computed configuration.

    The default override file is optional; an explicitly requested one
    must exist.
    """
    default_path = (Path.cwd() / DEFAULT_OVERRIDE_FILENAME).resolve()
    override_path = Path(options.config_path).resolve() if options.config_path else default_path

    if not override_path.is_file():
        if override_path != default_path:
            raise ConfigError(
                f"Override configuration not found: {override_path}",
                field_name="config_path",
                value=str(override_path)
            )
        logger.debug(f"No override configuration at {override_path}")
        return config

    module = load_override_module(override_path)

    configure = getattr(module, "configure", None)
    if configure is not None:
        try:
            transformed = configure(config, options)
        except Exception as e:
            raise ConfigError(
                f"configure() in {override_path} failed: {type(e).__name__}: {e}",
                field_name="config_path",
                value=str(override_path)
            ) from e
        if not isinstance(transformed, BuildConfig):
            raise ConfigError(
                f"configure() in {override_path} must return a BuildConfig, "
                f"got {type(transformed).__name__}",
                field_name="config_path",
                value=str(override_path)
            )
        config = transformed

    plugins = tuple(getattr(module, "PLUGINS", ()))
    for plugin in plugins:
        if not callable(plugin):
            raise ConfigError(
                f"PLUGINS in {override_path} must only contain callables, got {plugin!r}",
                field_name="config_path",
                value=str(override_path)
            )
    if plugins:
        config = dataclasses.replace(config, plugins=config.plugins + plugins)

    logger.info(f"Applied override configuration {override_path}")
    return config


def resolve_build_config(options: CompileOptions) -> BuildConfig:
    """
    Produce the BuildConfig for an invocation.

    Args:
        options: The invocation options

    Returns:
        The normalized configuration, with an existing absolute output directory

    Raises:
        ConfigError: On a missing or invalid entry, an unreadable project
            configuration or a broken override file
    """
    project_config = load_project_config(options.ts_config_path)
    entry = validate_entry(options.entry)

    temporary_output = not options.output
    output = allocate_temporary_output() if temporary_output else os.fspath(options.output)
    output_dir, output_filename = split_output_path(output)

    config = BuildConfig(
        entry=os.path.abspath(entry),
        output_dir=output_dir,
        output_filename=output_filename,
        ts_config_path=os.path.abspath(options.ts_config_path),
        dev=options.dev,
        check_types=options.check_types,
        resolve_aliases=requires_aliases(project_config),
        temporary_output=temporary_output,
    )

    try:
        config = apply_override_file(config, options)

        if not os.path.isabs(config.output_dir):
            config = dataclasses.replace(config, output_dir=os.path.abspath(config.output_dir))
        os.makedirs(config.output_dir, exist_ok=True)
    except Exception:
        if temporary_output:
            discard_temporary_output(output)
        raise

    # The override moved the artifact away from the reserved file.
    if temporary_output and config.artifact_path != output:
        discard_temporary_output(output)

    logger.debug(f"Resolved build configuration: {config}")
    return config
