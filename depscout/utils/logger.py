"""
Logging utilities for depscout.

This module centralizes logger configuration, formatting, and retrieval
for the depscout package. Library code only ever calls :func:`get_logger`;
handlers are installed by the CLI through :func:`setup_logging`, so that
embedding applications keep full control over output.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from depscout.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

#: Root of the depscout logger hierarchy.
LOGGER_NAMESPACE = "depscout"

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Logging formatter with optional ANSI color support."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        if not (self.use_color and self._should_use_color()):
            return super().format(record)

        color = self.COLORS.get(record.levelname)
        if not color:
            return super().format(record)

        # Color a copy so other handlers see the plain level name
        original = record.levelname
        record.levelname = f"{color}{original}{self.RESET}"
        try:
            return super().format(record)
        finally:
            record.levelname = original

    @staticmethod
    def _should_use_color() -> bool:
        """Determine whether ANSI colors should be emitted."""
        if os.environ.get("NO_COLOR"):
            return False
        if os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def level_for_verbosity(verbose: int) -> int:
    """Map a ``-v`` count to a logging level.

    Args:
        verbose: Number of ``-v`` flags (0 = WARNING, 1 = INFO, 2+ = DEBUG).

    Returns:
        A :mod:`logging` level constant.
    """
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Configure logging for depscout.

    This function is safe to call multiple times; configuration is
    protected by a process-wide lock and replaces earlier handlers.

    Args:
        level: Logging level (e.g., ``logging.INFO``, ``logging.DEBUG``).
        verbose: Enable verbose formatting with timestamps.
        stream: Output stream; defaults to ``sys.stderr``.
    """
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(LOGGER_NAMESPACE)
        root_logger.handlers.clear()
        root_logger.setLevel(level)

        handler = logging.StreamHandler(stream or sys.stderr)
        handler.setLevel(level)
        handler.setFormatter(
            ColoredFormatter(
                LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
                datefmt=LOG_DATE_FORMAT,
                use_color=not os.environ.get("NO_COLOR"),
            )
        )

        root_logger.addHandler(handler)
        root_logger.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return a logger within the depscout namespace.

    Args:
        name: Logger name, either relative (``"version_finder"``) or
            already qualified (``"depscout.core"``).

    Returns:
        A logger instance under the ``depscout`` hierarchy.
    """
    if not name or name == LOGGER_NAMESPACE:
        qualified = LOGGER_NAMESPACE
    elif name.startswith(f"{LOGGER_NAMESPACE}."):
        qualified = name
    else:
        qualified = f"{LOGGER_NAMESPACE}.{name}"

    logger = logging.getLogger(qualified)

    # Ensure library-safe behavior if logging is not configured
    if not logger.handlers and (not logger.parent or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger


def is_logging_configured() -> bool:
    """Return True if depscout logging has been configured."""
    return _logging_configured


def disable_logging() -> None:
    """Disable all depscout logging output."""
    global _logging_configured

    with _lock:
        root_logger = logging.getLogger(LOGGER_NAMESPACE)
        root_logger.handlers.clear()
        root_logger.addHandler(logging.NullHandler())
        root_logger.setLevel(logging.NOTSET)
        _logging_configured = False
