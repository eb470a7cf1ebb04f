"""
Tests for Tree Watcher.

Requires Python 3.11+.
"""

import queue
import time
from pathlib import Path

import pytest
from watchdog.events import FileModifiedEvent

from golive.models import ChangeEvent, ChangeOp
from golive.utils.errors import WatcherError
from golive.watcher.tree_watcher import TreeWatcher, _QueueingHandler, walk_watch_dirs


def relative_dirs(root: Path, dirs: list[Path]) -> set[str]:
    return {Path(d).relative_to(root).as_posix() for d in dirs}


class TestWalkWatchDirs:
    """Test cases for directory discovery."""

    def test_prunes_ignored_and_hidden(self, go_project: Path):
        """Test that ignored and hidden subtrees are never registered."""
        dirs = walk_watch_dirs(go_project, {"vendor"})

        assert relative_dirs(go_project, dirs) == {".", "internal", "internal/api", "internal/gen"}

    def test_ignore_by_relative_path(self, go_project: Path):
        """Test pruning a directory by its root-relative path."""
        dirs = walk_watch_dirs(go_project, {"vendor", "internal/gen"})

        assert relative_dirs(go_project, dirs) == {".", "internal", "internal/api"}

    def test_root_always_included(self, go_project: Path):
        """Test that the root is registered even if its name is ignored."""
        dirs = walk_watch_dirs(go_project, {go_project.name})

        assert Path(dirs[0]) == go_project

    def test_missing_root_is_fatal(self, tmp_path: Path):
        """Test that a walk failure aborts with WatcherError."""
        with pytest.raises(WatcherError):
            walk_watch_dirs(tmp_path / "missing", set())


class BrokenObserver:
    """Observer whose registration always fails."""

    def __init__(self) -> None:
        self.stopped = False

    def schedule(self, handler, path, recursive=False):
        raise OSError(28, "inotify watch limit reached")

    def start(self) -> None:
        pass

    def stop(self) -> None:
        self.stopped = True


class DeadObserver(BrokenObserver):
    """Observer that registers fine but whose thread has died."""

    def schedule(self, handler, path, recursive=False):
        return None

    def is_alive(self) -> bool:
        return False

    def join(self, timeout=None) -> None:
        pass


class TestTreeWatcher:
    """Test cases for TreeWatcher."""

    def test_registration_failure_is_fatal(self, go_project: Path):
        """Test that a failing directory registration raises WatcherError."""
        observer = BrokenObserver()
        watcher = TreeWatcher(go_project, {"vendor"}, observer_factory=lambda: observer)

        with pytest.raises(WatcherError, match="watch limit"):
            watcher.start()
        assert observer.stopped
        assert not watcher.is_running

    def test_dead_observer_reported(self, go_project: Path):
        """Test that check_health surfaces a stopped observer."""
        watcher = TreeWatcher(go_project, observer_factory=DeadObserver)
        watcher.start()

        with pytest.raises(WatcherError):
            watcher.check_health()
        watcher.stop()

    def test_registers_pruned_tree(self, go_project: Path):
        """Test the directories a started watcher observes."""
        with TreeWatcher(go_project, {"vendor"}) as watcher:
            assert watcher.is_running
            assert relative_dirs(go_project, watcher.watched_dirs) == {
                ".", "internal", "internal/api", "internal/gen",
            }
            watcher.check_health()
        assert not watcher.is_running

    def test_reports_file_changes(self, go_project: Path):
        """Test that edits in watched directories reach the inbox."""
        with TreeWatcher(go_project, {"vendor"}) as watcher:
            (go_project / "vendor" / "x.go").write_text("package vendor // edited\n")
            (go_project / "main.go").write_text("package main\n\nfunc main() { println() }\n")

            event = watcher.inbox.get(timeout=5.0)
            assert isinstance(event, ChangeEvent)
            assert event.path == go_project / "main.go"
            assert event.op in (ChangeOp.WRITE, ChangeOp.CREATE)

            seen = [event]
            while True:
                try:
                    seen.append(watcher.inbox.get(timeout=0.3))
                except queue.Empty:
                    break
            assert all(e.path != go_project / "vendor" / "x.go" for e in seen)

    def test_ignored_file_names_dropped(self, go_project: Path):
        """Test that events for ignored file names are not forwarded."""
        with TreeWatcher(go_project, {"vendor", "zz_generated.go"}) as watcher:
            (go_project / "zz_generated.go").write_text("package main\n")
            (go_project / "main.go").write_text("package main\n// touched\n")

            event = watcher.inbox.get(timeout=5.0)
            assert event.path.name == "main.go"

    def test_many_directories(self, go_project: Path):
        """Test that a large tree starts and still reports changes."""
        for i in range(250):
            (go_project / "pkg" / f"p{i}").mkdir(parents=True)

        with TreeWatcher(go_project, {"vendor"}) as watcher:
            assert len(watcher.watched_dirs) > 250
            (go_project / "pkg" / "p249" / "p.go").write_text("package p249\n")

            event = watcher.inbox.get(timeout=5.0)
            assert event.path == go_project / "pkg" / "p249" / "p.go"

    def test_new_directories_observed(self, go_project: Path):
        """Test that a package created after startup is watched."""
        with TreeWatcher(go_project, {"vendor"}) as watcher:
            (go_project / "cmd").mkdir()
            time.sleep(0.3)
            (go_project / "cmd" / "tool.go").write_text("package main\n")

            paths = drain(watcher.inbox)
            assert go_project / "cmd" / "tool.go" in paths


def drain(inbox: queue.Queue, timeout: float = 2.0) -> list[Path]:
    paths = []
    while True:
        try:
            paths.append(inbox.get(timeout=timeout).path)
        except queue.Empty:
            return paths


class TestEventFilter:
    """Test cases for dropping events in pruned parts of the tree."""

    @pytest.fixture
    def handler(self, tmp_path: Path) -> _QueueingHandler:
        return _QueueingHandler(tmp_path, queue.Queue(), frozenset({"vendor", "internal/gen", "skip.go"}))

    @pytest.mark.parametrize(
        "rel",
        [
            "vendor/x.go",
            "vendor/lib/deep/y.go",
            "internal/gen/z.go",
            ".git/objects/ab",
            "internal/.cache/c.go",
            "skip.go",
            "internal/skip.go",
        ],
    )
    def test_excluded(self, handler: _QueueingHandler, tmp_path: Path, rel: str):
        """Test paths below ignored or hidden directories."""
        assert handler.excluded(tmp_path / rel)

    @pytest.mark.parametrize(
        "rel",
        ["main.go", "internal/api/api.go", "internal/generate.go", ".hidden.go", "pkg/vendored.go"],
    )
    def test_kept(self, handler: _QueueingHandler, tmp_path: Path, rel: str):
        """Test paths that still reach the inbox."""
        assert not handler.excluded(tmp_path / rel)

    def test_excluded_events_not_queued(self, tmp_path: Path):
        """Test that handler callbacks skip excluded paths."""
        inbox: queue.Queue = queue.Queue()
        handler = _QueueingHandler(tmp_path, inbox, frozenset({"vendor"}))

        handler.on_modified(FileModifiedEvent(str(tmp_path / "vendor" / "x.go")))
        handler.on_modified(FileModifiedEvent(str(tmp_path / "main.go")))

        assert inbox.get_nowait() == ChangeEvent(path=tmp_path / "main.go", op=ChangeOp.WRITE)
        assert inbox.empty()
