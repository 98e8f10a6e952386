"""Tests for logging setup."""

import io
import logging
from unittest.mock import patch

import pytest

from local_tasks.logging_utils import (
    TRACE_LEVEL,
    add_trace_level,
    configure_logging,
    get_logger,
    resolve_log_level,
)


@pytest.mark.unit
class TestLoggingUtils:
    """Test trace level registration and level selection."""

    @pytest.mark.parametrize(
        ("verbose", "trace", "expected"),
        [
            (False, False, logging.WARNING),
            (True, False, logging.DEBUG),
            (False, True, TRACE_LEVEL),
            (True, True, TRACE_LEVEL),
        ],
    )
    def test_resolve_log_level(self, verbose: bool, trace: bool, expected: int) -> None:
        """Test trace wins over verbose and quiet defaults to WARNING."""
        assert resolve_log_level(verbose=verbose, trace=trace) == expected

    def test_trace_level_is_named(self) -> None:
        """Test TRACE is registered as a level name."""
        add_trace_level()
        assert logging.getLevelName(TRACE_LEVEL) == "TRACE"

    def test_trace_messages_respect_level(self) -> None:
        """Test trace() only emits when the logger is at TRACE."""
        logger = get_logger("local_tasks.tests.trace")
        stream = io.StringIO()
        handler = logging.StreamHandler(stream)
        logger.addHandler(handler)
        try:
            logger.setLevel(logging.DEBUG)
            logger.trace("hidden")  # type: ignore[attr-defined]
            logger.setLevel(TRACE_LEVEL)
            logger.trace("shown %s", "payload")  # type: ignore[attr-defined]
        finally:
            logger.removeHandler(handler)
            logger.setLevel(logging.NOTSET)

        assert stream.getvalue() == "shown payload\n"

    def test_configure_logging_applies_level(self) -> None:
        """Test the chosen level and format reach basicConfig."""
        stream = io.StringIO()
        with patch("local_tasks.logging_utils.logging.basicConfig") as mock_basic:
            level = configure_logging(verbose=True, stream=stream)

        assert level == logging.DEBUG
        kwargs = mock_basic.call_args.kwargs
        assert kwargs["level"] == logging.DEBUG
        assert kwargs["stream"] is stream
        assert "%(name)s" in kwargs["format"]
