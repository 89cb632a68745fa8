"""Logging setup for SentinelQA.

Components never configure handlers themselves: each takes an optional
``logger`` argument and otherwise logs through its module logger.  The CLI
calls :func:`configure_logging` once at startup.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from rich.console import Console
from rich.logging import RichHandler

_ROOT_LOGGER = "sentinelqa"


def configure_logging(verbose: bool = False, logger_name: str = _ROOT_LOGGER) -> logging.Logger:
    """Install a Rich handler on the SentinelQA logger and return it.

    Safe to call more than once; an existing Rich handler is replaced.
    """
    logger = logging.getLogger(logger_name)
    for handler in list(logger.handlers):
        if isinstance(handler, RichHandler):
            logger.removeHandler(handler)

    # Logs go to stderr; stdout carries command output
    handler = RichHandler(
        console=Console(stderr=True), show_path=False, rich_tracebacks=verbose, markup=False
    )
    handler.setFormatter(logging.Formatter("%(name)s  %(message)s"))
    logger.addHandler(handler)
    logger.setLevel(logging.DEBUG if verbose else logging.WARNING)
    logger.propagate = False
    return logger


def format_arguments(arguments: Mapping[str, Any] | None) -> str:
    """Render tool-call arguments as ``k=v, k=v`` for log lines."""
    if not arguments:
        return "(none)"
    return ", ".join(f"{key}={value}" for key, value in arguments.items())
