"""
sdbaccess.core.logging - Structured Logging Setup
===================================================

Every component logs through structlog with a bound `component` (and,
where it applies, `domain`) and snake_case event names. This module only
decides how those events are rendered; it is optional, and applications
that configure structlog themselves can skip it.

Usage:
    >>> from sdbaccess.core.logging import configure_logging
    >>> configure_logging("DEBUG")
    >>> configure_logging("INFO", json_logs=True)
"""

from __future__ import annotations

import logging

import structlog


def configure_logging(level: str = "INFO", *, json_logs: bool = False) -> None:
    """Configure structlog processors and the minimum level.

    Args:
        level: Level name (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_logs: Render JSON lines instead of the console renderer.
    """
    numeric_level = logging.getLevelName(level.upper())
    if not isinstance(numeric_level, int):
        numeric_level = logging.INFO

    renderer = (
        structlog.processors.JSONRenderer()
        if json_logs
        else structlog.dev.ConsoleRenderer(colors=False)
    )

    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=False,
    )
