"""
Validation of the TOML tool settings.

Each section is optional. Missing keys fall back to the ToolSettings
defaults, unknown keys are reported at warning level and ignored.
"""

import logging
from typing import Any, Dict

from ..models.config import ToolSettings
from ..validation import (
    ConfigError,
    validate_command_template,
    validate_positive_float,
    validate_string_list,
)

logger = logging.getLogger(__name__)

_KNOWN_KEYS = {
    "bundler": {"command", "dev_args", "release_args", "alias_args", "externals_args"},
    "checker": {"command"},
    "runtime": {"command", "mode_env_var"},
    "watch": {"poll_interval", "extensions", "ignore"},
    "supervisor": {"termination_timeout"},
}


def _section(data: Dict[str, Any], name: str) -> Dict[str, Any]:
    section = data.get(name, {})
    if not isinstance(section, dict):
        raise ConfigError(f"[{name}] must be a table", field_name=name, value=section)
    unknown = set(section) - _KNOWN_KEYS[name]
    if unknown:
        logger.warning(f"Ignoring unknown keys in [{name}]: {', '.join(sorted(unknown))}")
    return section


def validate_tool_settings(data: Dict[str, Any]) -> ToolSettings:
    """
    Validate raw TOML data and build a ToolSettings instance.

    Args:
        data: Parsed content of `buildcycle.toml`

    Returns:
        Validated ToolSettings

    Raises:
        ConfigError: If any value is malformed
    """
    unknown_sections = set(data) - set(_KNOWN_KEYS)
    if unknown_sections:
        logger.warning(f"Ignoring unknown settings sections: {', '.join(sorted(unknown_sections))}")

    settings = ToolSettings()

    bundler = _section(data, "bundler")
    if "command" in bundler:
        settings.bundler_command = validate_command_template(
            bundler["command"],
            field_name="bundler.command",
            required_placeholders=[("{entry}",), ("{output}", "{output_dir}")],
        )
    for key in ("dev_args", "release_args", "alias_args", "externals_args"):
        if key in bundler:
            setattr(settings, key, validate_string_list(bundler[key], field_name=f"bundler.{key}"))

    checker = _section(data, "checker")
    if "command" in checker:
        settings.checker_command = validate_command_template(
            checker["command"], field_name="checker.command"
        )

    runtime = _section(data, "runtime")
    if "command" in runtime:
        settings.runtime_command = validate_command_template(
            runtime["command"], field_name="runtime.command"
        )
    if "mode_env_var" in runtime:
        env_var = runtime["mode_env_var"]
        if not isinstance(env_var, str) or not env_var or "=" in env_var:
            raise ConfigError(
                f"runtime.mode_env_var must be a valid variable name, got {env_var!r}",
                field_name="runtime.mode_env_var",
                value=env_var
            )
        settings.mode_env_var = env_var

    watch = _section(data, "watch")
    if "poll_interval" in watch:
        settings.poll_interval = validate_positive_float(
            watch["poll_interval"], min_value=0.01, max_value=60.0, field_name="watch.poll_interval"
        )
    if "extensions" in watch:
        extensions = validate_string_list(watch["extensions"], field_name="watch.extensions")
        settings.watch_extensions = [ext if ext.startswith(".") else f".{ext}" for ext in extensions]
    if "ignore" in watch:
        settings.watch_ignore = validate_string_list(watch["ignore"], field_name="watch.ignore")

    supervisor = _section(data, "supervisor")
    if "termination_timeout" in supervisor:
        settings.termination_timeout = validate_positive_float(
            supervisor["termination_timeout"],
            min_value=0.0,
            max_value=300.0,
            field_name="supervisor.termination_timeout"
        )

    return settings
