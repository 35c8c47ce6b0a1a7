"""
Configuration data models.

This module contains the tool settings loaded from `buildcycle.toml`, the
options of a single invocation and the normalized, immutable build
configuration derived from them.
"""

import os
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional, Sequence, Tuple

from .runtime import RunHook

DEFAULT_OUTPUT_FILENAME = "index.js"
DEFAULT_OVERRIDE_FILENAME = "buildcycle.config.py"
DEFAULT_SETTINGS_FILENAME = "buildcycle.toml"


def _default_bundler_command() -> List[str]:
    return [
        "npx", "--no-install", "esbuild", "{entry}",
        "--bundle", "--platform=node", "--outfile={output}",
    ]


def _default_checker_command() -> List[str]:
    return ["npx", "--no-install", "tsc", "--noEmit", "-p", "{tsconfig}"]


@dataclass
class ToolSettings:
    """
    Tool-wide settings, loaded from `buildcycle.toml`.

    Command templates are argv lists whose items may contain the
    placeholders {entry}, {output}, {output_dir}, {output_file},
    {tsconfig} and {mode}.
    """

    # [bundler]
    bundler_command: List[str] = field(default_factory=_default_bundler_command)
    dev_args: List[str] = field(default_factory=lambda: ["--sourcemap"])
    release_args: List[str] = field(default_factory=lambda: ["--minify", "--sourcemap"])
    # Appended when the project configuration declares baseUrl/paths.
    alias_args: List[str] = field(default_factory=lambda: ["--tsconfig={tsconfig}"])
    # Appended when an explicit output was requested; dependencies stay external.
    externals_args: List[str] = field(default_factory=lambda: ["--packages=external"])

    # [checker]
    checker_command: List[str] = field(default_factory=_default_checker_command)

    # [runtime]
    runtime_command: List[str] = field(default_factory=lambda: ["node"])
    mode_env_var: str = "NODE_ENV"

    # [watch]
    poll_interval: float = 0.3
    watch_extensions: List[str] = field(
        default_factory=lambda: [".ts", ".tsx", ".js", ".jsx", ".mjs", ".cjs", ".json"]
    )
    watch_ignore: List[str] = field(default_factory=lambda: ["node_modules", ".git", "__pycache__"])

    # [supervisor]
    # Seconds between SIGTERM and SIGKILL; the wait after SIGKILL is TERMINATION_FORCE_TIMEOUT.
    termination_timeout: float = 3.0


# rewrites the bundler argv for a given build configuration
BuildPlugin = Callable[[List[str], "BuildConfig"], List[str]]


@dataclass(frozen=True)
class BuildConfig:
    """
    Normalized configuration of one invocation or watch session.

    ``output_dir`` is always absolute.
    """

    entry: str
    output_dir: str
    output_filename: str
    ts_config_path: str
    dev: bool = True
    check_types: bool = False
    # Module-resolution aliasing is needed (baseUrl/paths present).
    resolve_aliases: bool = False
    # No output was requested: the artifact is a temp file, self-contained and always run.
    temporary_output: bool = False
    plugins: Tuple[BuildPlugin, ...] = ()

    @property
    def artifact_path(self) -> str:
        return os.path.join(self.output_dir, self.output_filename)

    @property
    def mode(self) -> str:
        return "development" if self.dev else "production"


@dataclass
class CompileOptions:
    """
    Options of a single invocation, as given by the CLI or a library caller.
    """

    entry: Any
    ts_config_path: str = "tsconfig.json"
    dev: bool = True
    output: Optional[str] = None
    # Override file; None means the default name in the working directory.
    config_path: Optional[str] = None
    verbose: bool = False
    quiet: bool = False
    silent: bool = False
    watch: bool = False
    check_types: bool = False
    run: RunHook = field(default_factory=RunHook.disabled)
    run_args: Sequence[str] = ()
    exec_command: Optional[str] = None
    # Keep the last good build's processes alive through a failed rebuild.
    keep_alive_on_failure: bool = False
    on_compile: Optional[Callable[[Optional[Exception]], Any]] = None

    @property
    def is_quiet(self) -> bool:
        return self.quiet or self.silent
