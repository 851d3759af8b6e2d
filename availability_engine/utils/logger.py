"""Structured logging utilities.

Engine log lines read ``<event> | key=value | key=value``. Modules pass the
fields as keywords to :func:`log_event` instead of formatting them by hand,
and formatting is deferred until a handler actually emits the record.
"""

from __future__ import annotations

import logging
import sys
from typing import Optional

from availability_engine.utils.config import get_settings


FIELD_SEPARATOR = " | "

_LOGGER_INITIALIZED = False


def configure_logging(level: Optional[str] = None) -> None:
    """Configure process-wide logging once."""

    global _LOGGER_INITIALIZED
    if _LOGGER_INITIALIZED:
        return

    settings = get_settings()
    resolved_level = (level or settings.log_level).upper()

    logging.basicConfig(
        level=resolved_level,
        format=settings.log_format,
        stream=sys.stdout,
    )
    _LOGGER_INITIALIZED = True


def get_logger(name: str) -> logging.Logger:
    """Return a configured logger for the requested module."""
    configure_logging()
    return logging.getLogger(name)


def event_template(event: str, field_names) -> str:
    """``"event | a=%s | b=%s"`` for the given field names."""
    return FIELD_SEPARATOR.join([event, *(f"{name}=%s" for name in field_names)])


def log_event(logger: logging.Logger, level: int, event: str, **fields: object) -> None:
    """Log ``event`` followed by ``key=value`` pairs in keyword order."""
    if not logger.isEnabledFor(level):
        return
    logger.log(level, event_template(event, fields), *fields.values())
