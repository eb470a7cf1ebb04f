"""
Shared test helpers.

Requires Python 3.11+.
"""

import os
import time
from collections.abc import Callable
from pathlib import Path


def wait_for(predicate: Callable[[], bool], timeout: float = 5.0) -> bool:
    """Poll until predicate is true or the timeout expires."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(0.02)
    return predicate()


def read_log(path: Path) -> list[list[str]]:
    """Invocations recorded by the fake toolchain, one list per line."""
    if not path.exists():
        return []
    return [line.split() for line in path.read_text().splitlines() if line.strip()]


def pid_alive(pid: int) -> bool:
    """Check if a process id is still running."""
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True
