#!/usr/bin/env python3
"""
golive Command Line.

Auto-reload Go programs when source files change.

Usage:
    golive [--path DIR] [--ext .go] [--debounce 500] ... [-- PROGRAM ARGS]
    golive init
    golive version
"""

import argparse
import sys
from pathlib import Path

from golive import __version__
from golive.models import WatchConfig
from golive.utils.config import CONFIG_FILE_NAME, get_settings
from golive.utils.errors import FatalError, InvalidConfigError
from golive.utils.logger import configure_logging, get_logger
from golive.watcher.loop import WatchLoop
from golive.watcher.validate import validate_config

logger = get_logger("golive")

DEFAULT_CONFIG = """\
# golive configuration
path = "./"
ext = [".go", ".yaml"]
ignore = [".git", "vendor"]
out = "./appb"
# entry = "main.go"
debounce = 500
envs = []
# env_file = ".env"
flags = []
cli = []
"""


def build_parser() -> argparse.ArgumentParser:
    """Create the argument parser."""
    parser = argparse.ArgumentParser(
        prog="golive",
        description="Auto-reload Go apps when source files change",
    )
    parser.add_argument("-p", "--path", type=Path, help="Directory to watch")
    parser.add_argument(
        "-e", "--ext", action="append", help="File extension to watch (repeatable)"
    )
    parser.add_argument(
        "-i", "--ignore", action="append", help="File path or name to ignore (repeatable)"
    )
    parser.add_argument("-o", "--out", type=Path, help="Output binary name when compiling")
    parser.add_argument("-m", "--entry", type=Path, help="Main Go file entry point")
    parser.add_argument("-d", "--debounce", type=int, help="Debounce time in milliseconds")
    parser.add_argument(
        "-v", "--envs", action="append",
        help="KEY=VALUE set for go build, go run and the program (repeatable)",
    )
    parser.add_argument(
        "--env-file", type=Path, help="Path to .env file to load environment variables from"
    )
    parser.add_argument(
        "-f", "--flags", action="append",
        help="Build flag to pass to go build (repeatable; use -f=-race for dashed values)",
    )
    parser.add_argument(
        "-c", "--cli", action="append",
        help="Argument to pass to the program (repeatable; use -c=--port for dashed values, "
        "or put program arguments after --)",
    )
    parser.add_argument("--toolchain", help="Go toolchain binary to invoke")

    subcommands = parser.add_subparsers(dest="command")
    subcommands.add_parser("init", help=f"create a default {CONFIG_FILE_NAME} file")
    subcommands.add_parser("version", help="print the version number")
    return parser


def init_config(directory: Path) -> int:
    """Write the default config file unless one exists."""
    target = directory / CONFIG_FILE_NAME
    if target.exists():
        print(f"File already exists: {target.resolve()}", file=sys.stderr)
        return 0

    target.write_text(DEFAULT_CONFIG)
    print(f"Created default config: {target.resolve()}")
    return 0


def load_watch_config(args: argparse.Namespace) -> WatchConfig:
    """
    Merge settings with command line overrides and validate the result.

    Raises:
        InvalidConfigError: If the settings cannot be loaded or are invalid
    """
    try:
        config = get_settings().to_watch_config(
            path=args.path,
            ext=args.ext,
            ignore=args.ignore,
            out=args.out,
            entry=args.entry,
            debounce=args.debounce,
            envs=args.envs,
            env_file=args.env_file,
            flags=args.flags,
            cli=args.cli,
            toolchain=args.toolchain,
        )
    except ValueError as e:
        raise InvalidConfigError(str(e)) from e

    validate_config(config)
    return config


def parse_args(argv: list[str]) -> argparse.Namespace:
    """
    Parse golive arguments.

    Everything after a standalone -- is appended to the program arguments
    untouched, so dashed program flags need no escaping.
    """
    program_args: list[str] = []
    if "--" in argv:
        split = argv.index("--")
        argv, program_args = argv[:split], argv[split + 1:]

    args = build_parser().parse_args(argv)
    if program_args:
        args.cli = (args.cli or []) + program_args
    return args


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    args = parse_args(sys.argv[1:] if argv is None else list(argv))

    if args.command == "init":
        return init_config(Path.cwd())
    if args.command == "version":
        print(f"golive version {__version__}")
        return 0

    try:
        settings = get_settings()
        configure_logging(
            level=settings.logging.level,
            fmt=settings.logging.format,
            app_name=settings.app_name,
            app_version=settings.app_version,
        )
    except ValueError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        return 1

    try:
        config = load_watch_config(args)
        WatchLoop(config).run()
    except InvalidConfigError as e:
        logger.error("invalid_configuration", error=str(e))
        return 1
    except FatalError as e:
        logger.error("fatal_error", error=str(e), kind=type(e).__name__)
        return 1
    except KeyboardInterrupt:
        logger.info("cancelled_by_user")
        return 130
    return 0


if __name__ == "__main__":
    sys.exit(main())
