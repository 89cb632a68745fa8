"""Unit tests for sentinelqa.log."""

from __future__ import annotations

import logging

from rich.logging import RichHandler

from sentinelqa.log import configure_logging, format_arguments


class TestConfigureLogging:
    def test_repeated_calls_keep_one_handler(self):
        logger = configure_logging(logger_name="sentinelqa.tests.once")
        configure_logging(verbose=True, logger_name="sentinelqa.tests.once")
        assert sum(isinstance(h, RichHandler) for h in logger.handlers) == 1
        assert logger.level == logging.DEBUG

    def test_quiet_by_default(self):
        assert configure_logging(logger_name="sentinelqa.tests.quiet").level == logging.WARNING


class TestFormatArguments:
    def test_renders_pairs_in_order(self):
        assert format_arguments({"elementPath": "Submit", "delta": 100}) == "elementPath=Submit, delta=100"

    def test_empty(self):
        assert format_arguments({}) == "(none)"
        assert format_arguments(None) == "(none)"
