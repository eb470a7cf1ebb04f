"""
golive Process Supervisor.

Owns the single supervised child process and replaces it on rebuild.
Requires Python 3.11+.
"""

import os
import subprocess
import sys
import threading
from collections.abc import Sequence
from pathlib import Path
from typing import IO

from golive.models import WatchConfig
from golive.supervisor.commands import build_args, build_env, clean_args, run_args
from golive.utils.errors import ProcessStartError, ToolchainMissingError
from golive.utils.logger import LoggerMixin

# Below this many CPUs, compiling first costs more than `go run`
MIN_BUILD_CPUS = 4

# Printed when the toolchain binary does not understand "build"
TOOLCHAIN_MISSING_DIAGNOSTIC = "go : unknown command"


def _tee(stream: IO[str], sink: IO[str], captured: list[str], lock: threading.Lock) -> None:
    """Copy a pipe line by line to a sink while keeping a copy."""
    with stream:
        for line in iter(stream.readline, ""):
            sink.write(line)
            sink.flush()
            with lock:
                captured.append(line)


class ProcessSupervisor(LoggerMixin):
    """
    Builds and runs the watched program, one instance at a time.

    start, stop and restart share one lock, so at most one child is ever
    alive and a restart is never interleaved with another.
    """

    def __init__(
        self,
        config: WatchConfig,
        entry_file: Path,
        cpu_count: int | None = None,
    ) -> None:
        """
        Initialize the supervisor.

        Args:
            config: Validated watch configuration
            entry_file: Resolved entry source file
            cpu_count: CPUs to assume; defaults to os.cpu_count()
        """
        self._config = config
        self._entry = entry_file
        self._cpu_count = cpu_count
        self._process: subprocess.Popen[bytes] | None = None
        self._closed = False
        self._lock = threading.Lock()

    @property
    def process(self) -> subprocess.Popen[bytes] | None:
        """The currently held child process, if any."""
        return self._process

    def start(self) -> None:
        """
        Start the program, replacing any held process.

        Raises:
            ToolchainMissingError: If the toolchain cannot be invoked
            ProcessStartError: If the program cannot be spawned
        """
        with self._lock:
            if self._closed:
                self.log.debug("start_after_shutdown_ignored")
                return
            self._stop_locked()
            self._start_locked()

    def stop(self) -> None:
        """Kill the held process and wait for it. Never raises."""
        with self._lock:
            self._stop_locked()

    def restart(self) -> None:
        """Stop the held process and start a fresh build, atomically."""
        self.start()

    def shutdown(self) -> None:
        """Stop the held process and refuse any later start."""
        with self._lock:
            self._closed = True
            self._stop_locked()

    def _stop_locked(self) -> None:
        proc = self._process
        if proc is None:
            return
        self._process = None

        try:
            if proc.poll() is None:
                proc.kill()
            proc.wait()
        except OSError as e:
            self.log.warning("process_stop_failed", pid=proc.pid, error=str(e))
            return
        self.log.info("process_stopped", pid=proc.pid, returncode=proc.returncode)

    def _start_locked(self) -> None:
        config = self._config
        cpus = self._cpu_count if self._cpu_count is not None else (os.cpu_count() or 1)

        if cpus < MIN_BUILD_CPUS:
            self.log.info("low_cpu_system_using_run", cpus=cpus)
            self._process = self._spawn([config.toolchain, *run_args(self._entry, config.cli_args)])
            return

        self.log.info("compiling_binary", entry=str(self._entry), output=config.output)
        returncode, output = self._build()
        if returncode == 0:
            self.log.info("build_succeeded", output=config.output)
            artifact = str(Path(config.output).resolve())
            self._process = self._spawn([artifact, *clean_args(config.cli_args)])
            return

        self.log.warning("build_failed", returncode=returncode, build_output=output)
        if TOOLCHAIN_MISSING_DIAGNOSTIC in output:
            self.log.error("toolchain_unknown_command", toolchain=config.toolchain)
            raise ToolchainMissingError(
                f"{config.toolchain} does not support 'build': {output.strip()}"
            )

        self.log.info("falling_back_to_run", entry=str(self._entry))
        self._process = self._spawn([config.toolchain, *run_args(self._entry, config.cli_args)])

    def _build(self) -> tuple[int, str]:
        """
        Run the compiler, echoing its output live.

        Returns:
            Exit code and the combined stdout/stderr text
        """
        config = self._config
        argv = [config.toolchain, *build_args(config.build_flags, config.output, self._entry)]
        try:
            build = subprocess.Popen(
                argv,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                stdin=subprocess.DEVNULL,
                env=build_env(config.envs),
                text=True,
                errors="replace",
            )
        except FileNotFoundError as e:
            raise ToolchainMissingError(f"toolchain not found: {config.toolchain}") from e
        except OSError as e:
            raise ProcessStartError(f"cannot start {config.toolchain}: {e}") from e

        captured: list[str] = []
        lock = threading.Lock()
        readers = [
            threading.Thread(target=_tee, args=(build.stdout, sys.stdout, captured, lock), daemon=True),
            threading.Thread(target=_tee, args=(build.stderr, sys.stderr, captured, lock), daemon=True),
        ]
        for reader in readers:
            reader.start()
        returncode = build.wait()
        for reader in readers:
            reader.join()
        return returncode, "".join(captured)

    def _spawn(self, argv: Sequence[str]) -> subprocess.Popen[bytes]:
        """Start a child wired to our own stdin, stdout and stderr."""
        try:
            proc = subprocess.Popen(argv, env=build_env(self._config.envs))
        except FileNotFoundError as e:
            if argv[0] == self._config.toolchain:
                raise ToolchainMissingError(f"toolchain not found: {argv[0]}") from e
            raise ProcessStartError(f"cannot start {argv[0]}: {e}") from e
        except OSError as e:
            raise ProcessStartError(f"cannot start {argv[0]}: {e}") from e

        self.log.info("process_started", pid=proc.pid, command=" ".join(argv))
        return proc
