"""
golive Watcher Package.

File system watching, debouncing and the watch loop.
Requires Python 3.11+.
"""

from golive.models import ChangeEvent, ChangeOp, WatchConfig
from golive.watcher.filters import is_ignored, is_watched_file
from golive.watcher.validate import validate_config
from golive.watcher.debouncer import Debouncer
from golive.watcher.tree_watcher import TreeWatcher, walk_watch_dirs
from golive.watcher.loop import WatchLoop

__all__ = [
    "ChangeEvent",
    "ChangeOp",
    "WatchConfig",
    "is_ignored",
    "is_watched_file",
    "validate_config",
    "Debouncer",
    "TreeWatcher",
    "walk_watch_dirs",
    "WatchLoop",
]
