"""
golive Error Types.

Fatal conditions end the process with a non-zero exit. Recoverable
conditions are handled inside the supervisor and never raised.
Requires Python 3.11+.
"""


class GoliveError(Exception):
    """Base class for all golive errors."""


class FatalError(GoliveError):
    """An unrecoverable condition that stops the watch loop."""


class InvalidConfigError(FatalError):
    """The configuration failed validation."""


class WatcherError(FatalError):
    """The file system watcher could not be set up or stopped working."""


class EntryNotFoundError(FatalError):
    """No entry file could be resolved."""


class ToolchainMissingError(FatalError):
    """The external toolchain binary is not available."""


class ProcessStartError(FatalError):
    """A child process could not be spawned."""
