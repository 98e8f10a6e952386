"""Logging setup shared by the CLI and the MCP server."""

import logging
import sys
from typing import Any

TRACE_LEVEL = 5

VERBOSE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
QUIET_FORMAT = "%(levelname)s - %(message)s"


def add_trace_level() -> None:
    """Register TRACE and give every Logger a ``trace()`` method."""
    logging.addLevelName(TRACE_LEVEL, "TRACE")

    def trace(self: logging.Logger, message: str, *args: Any, **kwargs: Any) -> None:
        if self.isEnabledFor(TRACE_LEVEL):
            self._log(TRACE_LEVEL, message, args, **kwargs)

    logging.Logger.trace = trace  # type: ignore[attr-defined]


def get_logger(name: str) -> logging.Logger:
    """Get a module logger that supports ``trace()``."""
    if not hasattr(logging.Logger, "trace"):
        add_trace_level()

    return logging.getLogger(name)


def resolve_log_level(verbose: bool = False, trace: bool = False) -> int:
    """Map the command-line verbosity flags to a level (trace wins)."""
    if trace:
        return TRACE_LEVEL
    if verbose:
        return logging.DEBUG
    return logging.WARNING


def configure_logging(verbose: bool = False, trace: bool = False, stream: Any = None) -> int:
    """
    Configure root logging for an entry point.

    Args:
        verbose: Log at DEBUG with timestamps and logger names
        trace: Log at TRACE, including storage payload details
        stream: Destination stream (stderr by default, which keeps stdout
            free for command output and the MCP stdio transport)

    Returns:
        The level that was applied
    """
    add_trace_level()
    level = resolve_log_level(verbose, trace)
    log_format = VERBOSE_FORMAT if level < logging.WARNING else QUIET_FORMAT
    logging.basicConfig(level=level, format=log_format, stream=stream or sys.stderr)
    return level
