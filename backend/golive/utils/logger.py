"""
golive Structured Logging Module.

Log lines share the terminal with the supervised program, so they are
written to stderr and carry the emitting component's name.
Requires Python 3.11+.
"""

import logging
import sys
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

LOG_FORMATS = ("console", "json")


def _app_context(name: str, version: str) -> Processor:
    """Build a processor stamping every entry with the tool name and version."""

    def add_app_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        event_dict.setdefault("app", name)
        event_dict.setdefault("version", version)
        return event_dict

    return add_app_context


def configure_logging(
    level: str = "INFO",
    fmt: str = "console",
    stream: TextIO | None = None,
    app_name: str = "golive",
    app_version: str = "",
) -> None:
    """
    Configure structured logging.

    Call this once at startup, before the watch loop runs.

    Args:
        level: Minimum level name, e.g. "DEBUG"
        fmt: "console" for humans or "json" for machines
        stream: Where log lines go, stderr by default
        app_name: Tool name added to JSON entries
        app_version: Tool version added to JSON entries

    Raises:
        ValueError: If the level or format is unknown
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        raise ValueError(f"unknown log level: {level}")
    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format: {fmt}")
    out = stream if stream is not None else sys.stderr

    shared_processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.dev.set_exc_info,
        structlog.processors.TimeStamper(fmt="iso"),
    ]

    if fmt == "json":
        processors: list[Processor] = [
            *shared_processors,
            _app_context(app_name, app_version),
            structlog.processors.dict_tracebacks,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors = [
            *shared_processors,
            structlog.dev.ConsoleRenderer(
                colors=out.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            ),
        ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=out),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(format="%(message)s", stream=out, level=numeric_level, force=True)
    logging.getLogger("watchdog").setLevel(logging.WARNING)


def get_logger(name: str | None = None, **context: Any) -> structlog.stdlib.BoundLogger:
    """Get a structlog logger, optionally bound to initial context."""
    if context:
        return structlog.get_logger(name).bind(**context)
    return structlog.get_logger(name)


class LoggerMixin:
    """
    Gives a class a `log` attribute bound to component=<class name>.

    Usage:
        class Watcher(LoggerMixin):
            def start(self):
                self.log.info("watch_started", path=str(self.root))
    """

    @property
    def log(self) -> structlog.stdlib.BoundLogger:
        if not hasattr(self, "_logger"):
            self._logger = get_logger(component=type(self).__name__)
        return self._logger
