"""
Tests for SafeLogger.
"""

import logging
from unittest.mock import MagicMock

from vcsbridge.core.log import SafeLogger


class TestSafeLogger:
    """Tests for the logger wrapper."""

    def test_defaults_to_named_logger(self):
        safe = SafeLogger(name="AzureReposClient")
        assert safe.wrapped is logging.getLogger("AzureReposClient")

    def test_forwards_calls(self):
        logger = MagicMock()
        safe = SafeLogger(logger)

        safe.debug("one")
        safe.info("two %s", 2)
        safe.warning("three")

        logger.debug.assert_called_once_with("one")
        logger.info.assert_called_once_with("two %s", 2)
        logger.warning.assert_called_once_with("three")

    def test_failing_logger_is_ignored(self):
        """Should never let a logger exception escape."""
        logger = MagicMock()
        logger.info.side_effect = RuntimeError("sink closed")

        SafeLogger(logger).info("message")

    def test_logger_without_method_is_ignored(self):
        """Should accept objects missing a level method."""
        SafeLogger(object()).debug("message")

    def test_unwraps_nested(self):
        logger = MagicMock()
        assert SafeLogger(SafeLogger(logger)).wrapped is logger
