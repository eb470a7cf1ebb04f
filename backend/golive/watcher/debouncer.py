"""
golive Debouncer.

Collapses bursts of qualifying file changes into a single rebuild.
Requires Python 3.11+.
"""

import threading
from collections.abc import Callable, Iterable
from pathlib import Path
from typing import Any

from golive.models import REBUILD_OPS, ChangeEvent, ChangeOp
from golive.utils.logger import LoggerMixin
from golive.watcher.filters import is_watched_file


class Debouncer(LoggerMixin):
    """
    Trailing-edge debouncer for file changes.

    Every qualifying change re-arms a single-shot timer; the callback
    runs once, delay_ms after the last change of a burst. There is no
    upper bound on how long a steady stream of changes can postpone it.
    """

    def __init__(
        self,
        extensions: Iterable[str],
        delay_ms: int = 500,
        callback: Callable[[], Any] | None = None,
    ) -> None:
        """
        Initialize the debouncer.

        Args:
            extensions: File suffixes that qualify for a rebuild
            delay_ms: Quiet period in milliseconds before firing
            callback: Function called once per burst, on the timer thread
        """
        self._extensions = tuple(extensions)
        self._delay = delay_ms / 1000.0
        self._callback = callback
        self._changed = False
        self._timer: threading.Timer | None = None
        # Bumped on every re-arm; a timer only fires if it is still current
        self._generation = 0
        self._lock = threading.Lock()

    def qualifies(self, event: ChangeEvent) -> bool:
        """Check if an event should schedule a rebuild."""
        return event.op in REBUILD_OPS and is_watched_file(str(event.path), self._extensions)

    def submit(self, event: ChangeEvent) -> bool:
        """
        Feed a raw change event.

        Returns:
            True if the event qualified and the timer was re-armed
        """
        if not self.qualifies(event):
            return False

        self.log.info("file_changed", path=str(event.path), op=event.op.value)
        self.debounce(event.path, event.op)
        return True

    def debounce(self, path: Path, op: ChangeOp) -> None:
        """
        Record a change and (re)arm the timer.

        Args:
            path: Path to the changed file
            op: Kind of change
        """
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()

            self._changed = True
            self._generation += 1
            self._timer = threading.Timer(self._delay, self._fire, args=(self._generation,))
            self._timer.daemon = True
            self._timer.start()

    def _fire(self, generation: int) -> None:
        """Timer handler; runs the callback if this timer is still current."""
        with self._lock:
            if generation != self._generation or not self._changed:
                return
            self._changed = False
            self._timer = None

        self.log.debug("debounce_fired")
        if self._callback is not None:
            self._callback()

    def cancel(self) -> None:
        """Disarm the timer and drop the pending change."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._generation += 1
            self._changed = False

    @property
    def pending(self) -> bool:
        """Whether a rebuild is scheduled."""
        return self._changed
