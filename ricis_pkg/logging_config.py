"""Structured logging configuration for RICIS."""

import logging
import sys
from datetime import datetime
from typing import Optional

from .config import LOG_LEVEL

# ``extra`` keys rendered after the message, in this order
CONTEXT_FIELDS = ("phase", "variable", "root")


class StructuredFormatter(logging.Formatter):
    """One line per record: timestamp, level, logger, message and simplifier context.

    Records logged with ``extra={"phase": ..., "variable": ..., "root": ...}``
    get those values appended as ``key=value`` pairs, e.g.::

        2026-01-01T12:00:00 [WARNING] ricis.phases: pass failed | phase=RicisTransform
    """

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).isoformat(timespec="seconds")
        message = f"{timestamp} [{record.levelname}] {record.name}: {record.getMessage()}"
        context = [
            f"{field}={getattr(record, field)}"
            for field in CONTEXT_FIELDS
            if getattr(record, field, None) is not None
        ]
        if context:
            message = f"{message} | {' '.join(context)}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(
    level: str = LOG_LEVEL, log_file: Optional[str] = None
) -> logging.Logger:
    """Attach structured handlers to the ``ricis`` logger tree.

    Args:
        level: Level name; unknown names fall back to WARNING
        log_file: Optional path; records go to stderr and, if given, this file

    Returns:
        The ``ricis`` logger
    """
    logger = logging.getLogger("ricis")
    logger.setLevel(getattr(logging, level.upper(), logging.WARNING))
    logger.handlers.clear()

    formatter = StructuredFormatter()
    handlers = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file, encoding="utf-8"))
    for handler in handlers:
        handler.setFormatter(formatter)
        logger.addHandler(handler)
    return logger


def get_logger(name: str = "ricis") -> logging.Logger:
    """Logger for one module, namespaced under ``ricis.``."""
    return logging.getLogger(f"ricis.{name}")
