"""
golive Data Models.

Defines the immutable watch configuration and file change events.
Requires Python 3.11+.
"""

from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path

SOURCE_SUFFIX = ".go"
DEFAULT_ENTRY = "main.go"
DEFAULT_TOOLCHAIN = "go"


class ChangeOp(str, Enum):
    """Kinds of file system changes."""

    WRITE = "write"
    CREATE = "create"
    REMOVE = "remove"
    RENAME = "rename"


# Operations that can trigger a rebuild. A bare rename never does.
REBUILD_OPS = frozenset({ChangeOp.WRITE, ChangeOp.CREATE, ChangeOp.REMOVE})


@dataclass(frozen=True, slots=True)
class ChangeEvent:
    """A single file change reported by the tree watcher."""

    path: Path
    op: ChangeOp


@dataclass(frozen=True, slots=True)
class WatchConfig:
    """
    Configuration consumed by the watch loop.

    Built once by the settings layer and never mutated afterwards.
    Structural checks live in validate_config, so an invalid value can
    be represented here and rejected before the loop starts.
    """

    path: Path
    extensions: tuple[str, ...]
    output: str
    ignore: frozenset[str] = field(default_factory=frozenset)
    entry: Path | None = None
    debounce_ms: int = 1000
    envs: tuple[str, ...] = ()
    build_flags: tuple[str, ...] = ()
    cli_args: tuple[str, ...] = ()
    toolchain: str = DEFAULT_TOOLCHAIN

    @property
    def debounce_seconds(self) -> float:
        """Debounce delay in seconds."""
        return self.debounce_ms / 1000.0
