"""Logging setup for SiteCheck.

Modules log through ``logging.getLogger(__name__)``; this module only installs
the single console handler on the package logger.
"""

from __future__ import annotations

import logging
import sys
from datetime import datetime


class CrawlFormatter(logging.Formatter):
    """Render records as ``[ Mon Oct 19 10:37:00 AM 2026 ] : INFO : name : message``."""

    def format(self, record: logging.LogRecord) -> str:
        timestamp = datetime.fromtimestamp(record.created).strftime("%a %b %d %I:%M:%S %p %Y")
        message = f"[ {timestamp} ] : {record.levelname} : {record.name} : {record.getMessage()}"
        if record.exc_info:
            message = f"{message}\n{self.formatException(record.exc_info)}"
        return message


def setup_logging(level: int = logging.INFO, name: str = "sitecheck") -> logging.Logger:
    """Attach a stdout handler to the *name* logger and set its level.

    Safe to call repeatedly: the handler is only added once, later calls
    adjust the level and point the handler at the current ``sys.stdout``.
    """
    logger = logging.getLogger(name)
    logger.setLevel(level)

    for handler in logger.handlers:
        if getattr(handler, "_sitecheck", False):
            handler.stream = sys.stdout
            return logger

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(CrawlFormatter())
    handler._sitecheck = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
