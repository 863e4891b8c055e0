"""Structured logging for kmd.

Log events go to stderr so captured child output on stdout stays untouched.
Every event emitted while a subcommand runs carries ``command=<name>``.
"""

from __future__ import annotations

import logging
import sys
from typing import Any, Optional, TextIO

import structlog
from structlog.types import Processor


class _StderrWriter:
    """Writes to whatever ``sys.stderr`` is at write time.

    click's CliRunner and pytest both swap ``sys.stderr`` per invocation,
    while the logger factory is built once in ``configure_logging``.
    """

    def write(self, s: str) -> int:
        return sys.stderr.write(s)

    def flush(self) -> None:
        sys.stderr.flush()


_stderr: TextIO = _StderrWriter()  # type: ignore[assignment]


def _renderer(json_logs: bool) -> Processor:
    if json_logs:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stderr.isatty())


def configure_logging(verbose: bool = False, json_logs: bool = False, command: Optional[str] = None) -> None:
    """Set up structlog for one kmd invocation.

    WARNING and above by default, DEBUG (every process launch) with
    ``verbose``. ``command`` is bound for the rest of the invocation.
    """
    level = logging.DEBUG if verbose else logging.WARNING

    structlog.contextvars.clear_contextvars()
    if command:
        structlog.contextvars.bind_contextvars(command=command)

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            _renderer(json_logs),
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level),
        logger_factory=structlog.PrintLoggerFactory(file=_stderr),
        # Reconfigured per invocation, so loggers must not be cached
        cache_logger_on_first_use=False,
    )


def get_logger(name: Optional[str] = None) -> Any:
    return structlog.get_logger(name)


__all__ = ["configure_logging", "get_logger"]
