"""
golive Toolchain Commands.

Assembles argument lists and environments for the external toolchain.
Requires Python 3.11+.
"""

import os
import shlex
from collections.abc import Iterable, Mapping
from pathlib import Path

from golive.models import DEFAULT_ENTRY, WatchConfig
from golive.utils.errors import EntryNotFoundError
from golive.utils.logger import get_logger

logger = get_logger(__name__)


def normalize_flags(flags: Iterable[str]) -> list[str]:
    """
    Turn configured build flags into toolchain arguments.

    Each flag is trimmed, given a leading dash when it has none and
    shell-split, so "ldflags=-s -w" style values survive quoting.
    Blank entries are dropped.
    """
    args: list[str] = []
    for flag in flags:
        flag = flag.strip()
        if not flag:
            continue
        if not flag.startswith("-"):
            flag = "-" + flag
        try:
            args.extend(shlex.split(flag))
        except ValueError as e:
            logger.warning("build_flag_unparsable", flag=flag, error=str(e))
    return args


def clean_args(cli_args: Iterable[str]) -> list[str]:
    """Trim program arguments and drop blank ones."""
    return [arg.strip() for arg in cli_args if arg.strip()]


def build_args(flags: Iterable[str], output: str, entry: Path) -> list[str]:
    """Arguments for compiling the entry file into output."""
    return ["build", *normalize_flags(flags), "-o", output, str(entry)]


def run_args(entry: Path, cli_args: Iterable[str]) -> list[str]:
    """Arguments for compiling and running the entry file in one step."""
    return ["run", str(entry), *clean_args(cli_args)]


def build_env(envs: Iterable[str], base: Mapping[str, str] | None = None) -> dict[str, str]:
    """
    Child environment: the inherited one plus KEY=VALUE entries.

    Entries are applied in order, so a later duplicate key wins.
    Entries without "=" are skipped.
    """
    env = dict(os.environ if base is None else base)
    for entry in envs:
        entry = entry.strip()
        if not entry:
            continue
        key, sep, value = entry.partition("=")
        if not sep or not key:
            logger.warning("env_entry_malformed", entry=entry)
            continue
        env[key] = value
    return env


def resolve_entry(config: WatchConfig) -> Path:
    """
    Find the entry file for a configuration.

    Raises:
        EntryNotFoundError: If no entry is configured and the root has
            no main.go
    """
    if config.entry is not None:
        return config.entry

    candidate = config.path / DEFAULT_ENTRY
    if candidate.is_file():
        return candidate
    raise EntryNotFoundError(f"{DEFAULT_ENTRY} not found in {config.path}")
