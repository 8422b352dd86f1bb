"""Structured logging setup for brewcoffee.

Modules log through ``structlog.get_logger(__name__)`` with snake_case
event names; this module decides how those events are rendered.
"""

from __future__ import annotations

import logging
import sys
from typing import Any

import structlog


def resolve_log_level(verbose: bool, override: str | None = None) -> str:
    """Pick the log level for a run.

    Args:
        verbose: True when --verbose was given.
        override: Explicit level from BREWCOFFEE_LOG_LEVEL.

    Returns:
        Upper-case level name.
    """
    if override:
        return override.upper()
    return "INFO" if verbose else "WARNING"


def configure_logging(
    *,
    log_level: str = "WARNING",
    json_format: bool = False,
    add_timestamp: bool = True,
) -> None:
    """Configure structured logging for brewcoffee.

    Log lines go to stderr so that stdout stays free for command output.

    Args:
        log_level: Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        json_format: If True, output JSON format. If False, output human-readable.
        add_timestamp: If True, add ISO timestamp to log entries.

    Example:
        >>> configure_logging(log_level="INFO")
    """
    processors: list[Any] = [
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if add_timestamp:
        processors.insert(1, structlog.processors.TimeStamper(fmt="iso"))

    if json_format:
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=False,
    )

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stderr,
        level=getattr(logging, log_level.upper(), logging.WARNING),
        force=True,
    )
