"""
Command-line interface for the buildcycle build orchestrator.

This module parses command-line arguments, configures logging for the
requested verbosity, runs one compile session and maps its result to the
process exit code.
"""

import argparse
import logging
import os
import sys
from pathlib import Path
from typing import Callable, List, Optional, Tuple

from .. import __version__
from ..config import get_settings, set_settings_path
from ..models.config import DEFAULT_OVERRIDE_FILENAME, CompileOptions
from ..models.runtime import RunHook
from ..orchestration import compile_project
from ..validation import ConfigError, handle_cli_error

LOG_FORMAT = "%(asctime)s [%(levelname)-5.5s] %(name)s:%(filename)s:%(lineno)d\t %(message)s"
SILENT_LEVEL = logging.CRITICAL + 10

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser of the ``buildcycle`` command."""
    parser = argparse.ArgumentParser(
        prog="buildcycle",
        description="Compile a TypeScript/JavaScript entry file, then optionally run it and rebuild on change.",
        epilog="Arguments after '--' are passed to the compiled program when it runs.",
    )
    parser.add_argument("entry", help="Entry file of the project.")
    parser.add_argument("-o", "--output", help="Output file path; a trailing separator names a directory.")
    parser.add_argument(
        "-p",
        "--project",
        help="Project configuration file (tsconfig.json). Defaults to ./tsconfig.json.",
    )
    parser.add_argument("-w", "--watch", action="store_true", help="Rebuild and restart on every source change.")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose mode.")
    parser.add_argument("-q", "--quiet", action="store_true", help="Only show diagnostics.")
    parser.add_argument("-s", "--silent", action="store_true", help="Show nothing.")
    parser.add_argument(
        "-c",
        "--config",
        help=f"Override configuration file. Defaults to ./{DEFAULT_OVERRIDE_FILENAME} when present.",
    )
    parser.add_argument("--settings", type=Path, help="Tool settings file (TOML).")
    parser.add_argument("--run", action="store_true", help="Run the compiled output.")
    parser.add_argument("-t", "--type-check", action="store_true", help="Enable type checking.")
    parser.add_argument("--release", action="store_true", help="Build for production.")
    parser.add_argument("-e", "--exec", dest="exec_command", help="Command to run after every successful build.")
    parser.add_argument(
        "--keep-alive-on-failure",
        action="store_true",
        help="Keep the previous processes running until the next successful build.",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return parser


def split_run_args(argv: List[str]) -> Tuple[List[str], List[str]]:
    """Split the command line at the first '--' into (own args, run args)."""
    if "--" in argv:
        index = argv.index("--")
        return argv[:index], argv[index + 1:]
    return argv, []


def configure_logging(args: argparse.Namespace) -> None:
    """Configure the root logger for the requested verbosity."""
    if args.silent:
        level = SILENT_LEVEL
    elif args.quiet:
        level = logging.WARNING
    elif args.verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        stream=sys.stdout,
    )
    logging.getLogger().setLevel(level)


def options_from_args(
    args: argparse.Namespace,
    run_args: List[str],
    on_compile: Optional[Callable[[Optional[Exception]], None]] = None,
) -> CompileOptions:
    """Translate parsed arguments into CompileOptions."""
    return CompileOptions(
        entry=args.entry,
        ts_config_path=args.project or os.path.abspath("tsconfig.json"),
        dev=not args.release,
        output=args.output,
        config_path=args.config,
        verbose=args.verbose,
        quiet=args.quiet,
        silent=args.silent,
        watch=args.watch,
        check_types=args.type_check,
        run=RunHook.inherit() if args.run else RunHook.disabled(),
        run_args=tuple(run_args),
        exec_command=args.exec_command,
        keep_alive_on_failure=args.keep_alive_on_failure,
        # Watch sessions keep going after a failed build.
        on_compile=None if args.watch else on_compile,
    )


def main_cli(argv: Optional[List[str]] = None) -> None:
    """
    Main command-line interface for the buildcycle application.

    Raises:
        SystemExit: With code 1 on configuration errors or when a one-shot
            build or its run process fails.
    """
    own_args, run_args = split_run_args(list(sys.argv[1:] if argv is None else argv))
    args = build_parser().parse_args(own_args)
    configure_logging(args)

    # Errors reported through the completion hook of a one-shot session.
    failures: List[Optional[Exception]] = []

    try:
        if args.settings is not None:
            set_settings_path(args.settings)
        settings = get_settings()
        options = options_from_args(args, run_args, on_compile=failures.append)
        result = compile_project(options, settings=settings)
    except ConfigError as e:
        handle_cli_error(
            error=e,
            context="configuration",
            exit_code=1,
            logger=logger,
        )

    if not args.watch and (any(failures) or (result is not None and not result.ok)):
        sys.exit(1)
