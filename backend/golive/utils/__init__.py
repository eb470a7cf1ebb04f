"""
golive Utilities Package.

Configuration, logging and error types shared across golive.
Requires Python 3.11+.
"""

from golive.utils.errors import (
    EntryNotFoundError,
    FatalError,
    GoliveError,
    InvalidConfigError,
    ProcessStartError,
    ToolchainMissingError,
    WatcherError,
)
from golive.utils.logger import configure_logging, get_logger, LoggerMixin
from golive.utils.config import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "configure_logging",
    "get_logger",
    "LoggerMixin",
    "GoliveError",
    "FatalError",
    "InvalidConfigError",
    "WatcherError",
    "EntryNotFoundError",
    "ToolchainMissingError",
    "ProcessStartError",
]
