"""
golive Watch Loop.

Wires the tree watcher, debouncer and process supervisor together and
services their events until stopped or a fatal error occurs.
Requires Python 3.11+.
"""

import queue
import threading
from typing import Any, Protocol

from golive.models import WatchConfig
from golive.supervisor.commands import resolve_entry
from golive.supervisor.process import ProcessSupervisor
from golive.utils.errors import FatalError
from golive.utils.logger import LoggerMixin
from golive.watcher.debouncer import Debouncer
from golive.watcher.tree_watcher import TreeWatcher

_STOP = object()


class Supervisor(Protocol):
    """What the loop needs from a process supervisor."""

    def restart(self) -> None: ...

    def shutdown(self) -> None: ...


class WatchLoop(LoggerMixin):
    """
    The watch, debounce and supervise cycle.

    File events and errors arrive on one inbox queue and are handled in
    order on the thread calling run(). Debounce timers restart the
    program on their own thread; the supervisor lock serializes those
    restarts, and fatal errors they raise are posted back to the inbox.
    """

    def __init__(
        self,
        config: WatchConfig,
        supervisor: Supervisor | None = None,
        watcher: TreeWatcher | None = None,
        poll_interval: float = 1.0,
    ) -> None:
        """
        Initialize the watch loop.

        Args:
            config: Validated watch configuration
            supervisor: Process supervisor; built from config when omitted
            watcher: Tree watcher; built from config when omitted
            poll_interval: Seconds between watcher health checks when idle
        """
        self._config = config
        self._supervisor = supervisor
        self._watcher = watcher or TreeWatcher(config.path, config.ignore)
        self._inbox: queue.Queue[Any] = self._watcher.inbox
        self._debouncer = Debouncer(
            extensions=config.extensions,
            delay_ms=config.debounce_ms,
            callback=self._rebuild,
        )
        self._poll_interval = poll_interval
        self._stopping = threading.Event()

    def run(self) -> None:
        """
        Run until stop() is called.

        Raises:
            FatalError: On an unresolvable entry file, watcher failure or
                a missing toolchain
        """
        entry = resolve_entry(self._config)
        if self._supervisor is None:
            self._supervisor = ProcessSupervisor(self._config, entry)

        self._watcher.start()
        try:
            self._supervisor.restart()
            self.log.info(
                "watching",
                path=str(self._config.path),
                extensions=list(self._config.extensions),
                debounce_ms=self._config.debounce_ms,
            )
            while not self._stopping.is_set():
                try:
                    item = self._inbox.get(timeout=self._poll_interval)
                except queue.Empty:
                    self._watcher.check_health()
                    continue

                if item is _STOP:
                    break
                if isinstance(item, BaseException):
                    raise item
                self._debouncer.submit(item)
        finally:
            self._debouncer.cancel()
            self._watcher.stop()
            self._supervisor.shutdown()
            self.log.info("watch_loop_stopped")

    def stop(self) -> None:
        """Ask run() to return."""
        self._stopping.set()
        self._inbox.put(_STOP)

    def _rebuild(self) -> None:
        """Debounce callback; runs on the timer thread."""
        try:
            self._supervisor.restart()
        except FatalError as e:
            self._inbox.put(e)
