"""
golive Tree Watcher.

Watches the root recursively with watchdog and forwards changes outside
ignored or hidden directories to an inbox queue.
Requires Python 3.11+.
"""

import os
import queue
from collections.abc import Callable, Collection
from pathlib import Path
from typing import Any

from watchdog.events import (
    FileSystemEvent,
    FileSystemEventHandler,
    FileSystemMovedEvent,
)
from watchdog.observers import Observer
from watchdog.observers.api import BaseObserver

from golive.models import ChangeEvent, ChangeOp
from golive.utils.errors import WatcherError
from golive.utils.logger import LoggerMixin
from golive.watcher.filters import is_hidden, is_ignored


def walk_watch_dirs(root: Path, ignore: Collection[str]) -> list[Path]:
    """
    Collect the directories to register for change notifications.

    Ignored and hidden directories are pruned together with everything
    below them. The root itself is always included.

    Args:
        root: Directory to walk
        ignore: Root-relative paths or base names to skip

    Returns:
        Directories in walk order

    Raises:
        WatcherError: If any part of the tree cannot be read
    """

    def on_error(err: OSError) -> None:
        raise WatcherError(f"cannot walk {err.filename}: {err.strerror}") from err

    dirs: list[Path] = []
    for current, subdirs, _files in os.walk(root, onerror=on_error):
        dirs.append(Path(current))
        keep = []
        for name in sorted(subdirs):
            rel = Path(current, name).relative_to(root).as_posix()
            if is_ignored(rel, name, ignore) or is_hidden(name):
                continue
            keep.append(name)
        # os.walk only descends into what is left in subdirs
        subdirs[:] = keep
    return dirs


class _QueueingHandler(FileSystemEventHandler):
    """
    Translates watchdog events into ChangeEvents on a queue.

    The whole tree is observed recursively, so events below ignored or
    hidden directories are filtered out here.
    """

    def __init__(
        self, root: Path, inbox: "queue.Queue[Any]", ignore: Collection[str]
    ) -> None:
        super().__init__()
        self._root = root
        self._inbox = inbox
        self._ignore = ignore

    def excluded(self, path: Path) -> bool:
        """Check whether an event path lies in a pruned part of the tree."""
        if path.name in self._ignore:
            return True
        try:
            parts = path.relative_to(self._root).parts
        except ValueError:
            return False
        for depth, name in enumerate(parts[:-1], start=1):
            rel = "/".join(parts[:depth])
            if is_ignored(rel, name, self._ignore) or is_hidden(name):
                return True
        return is_ignored("/".join(parts), path.name, self._ignore)

    def _put(self, src: str | bytes, op: ChangeOp) -> None:
        path = Path(os.fsdecode(src))
        if self.excluded(path):
            return
        self._inbox.put(ChangeEvent(path=path, op=op))

    def on_created(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._put(event.src_path, ChangeOp.CREATE)

    def on_modified(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._put(event.src_path, ChangeOp.WRITE)

    def on_deleted(self, event: FileSystemEvent) -> None:
        if not event.is_directory:
            self._put(event.src_path, ChangeOp.REMOVE)

    def on_moved(self, event: FileSystemMovedEvent) -> None:
        if event.is_directory:
            return
        # The old name is renamed away, the new name shows up as created
        self._put(event.src_path, ChangeOp.RENAME)
        if event.dest_path:
            self._put(event.dest_path, ChangeOp.CREATE)


class TreeWatcher(LoggerMixin):
    """
    Watches a directory tree for file changes.

    The tree is walked once up front so unreadable directories fail
    startup, then a single recursive watch covers the root. One watch
    keeps the watcher within the per-user inotify instance limit.
    """

    def __init__(
        self,
        root: Path,
        ignore: Collection[str] = (),
        inbox: "queue.Queue[Any] | None" = None,
        observer_factory: Callable[[], BaseObserver] = Observer,
    ) -> None:
        """
        Initialize the tree watcher.

        Args:
            root: Root directory to watch
            ignore: Root-relative paths or base names to skip
            inbox: Queue receiving ChangeEvents
            observer_factory: Creates the watchdog observer
        """
        self._root = Path(os.path.abspath(root))
        self._ignore = frozenset(ignore)
        self.inbox: queue.Queue[Any] = inbox if inbox is not None else queue.Queue()
        self._observer_factory = observer_factory
        self._observer: BaseObserver | None = None
        self._watched: list[Path] = []

    def start(self) -> None:
        """
        Walk the tree and start observing.

        Raises:
            WatcherError: If the tree cannot be walked or watched
        """
        if self._observer is not None:
            return

        dirs = walk_watch_dirs(self._root, self._ignore)
        handler = _QueueingHandler(self._root, self.inbox, self._ignore)
        observer = self._observer_factory()
        try:
            observer.schedule(handler, str(self._root), recursive=True)
            observer.start()
        except OSError as e:
            observer.stop()
            raise WatcherError(f"cannot watch {self._root}: {e}") from e

        self._observer = observer
        self._watched = dirs
        self.log.info("tree_watcher_started", path=str(self._root), directories=len(dirs))

    def check_health(self) -> None:
        """
        Raise if the observer has stopped on its own.

        Raises:
            WatcherError: If the observer thread is no longer running
        """
        if self._observer is not None and not self._observer.is_alive():
            raise WatcherError("file system observer stopped unexpectedly")

    def stop(self) -> None:
        """Stop watching for file changes."""
        if self._observer is None:
            return

        self._observer.stop()
        self._observer.join(timeout=5.0)
        self._observer = None
        self.log.info("tree_watcher_stopped")

    @property
    def watched_dirs(self) -> list[Path]:
        """Directories currently registered."""
        return list(self._watched)

    @property
    def is_running(self) -> bool:
        """Check if the watcher is running."""
        return self._observer is not None

    def __enter__(self) -> "TreeWatcher":
        self.start()
        return self

    def __exit__(self, *args: Any) -> None:
        self.stop()
