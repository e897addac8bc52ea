"""Logging setup shared by the service and its scripts."""

from __future__ import annotations

import logging
import sys
from datetime import datetime, timezone

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s] %(message)s"


class IsoFormatter(logging.Formatter):
    """Formatter that stamps records with UTC ISO-8601 times."""

    def formatTime(self, record: logging.LogRecord, datefmt: str | None = None) -> str:
        ts = datetime.fromtimestamp(record.created, tz=timezone.utc)
        return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


def setup_logging(level: str | int = "INFO") -> logging.Logger:
    """Install a single stream handler on the package logger."""
    logger = logging.getLogger("pokefusion")
    logger.setLevel(level)
    for h in list(logger.handlers):
        if getattr(h, "_pokefusion", False):
            logger.removeHandler(h)
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(IsoFormatter(LOG_FORMAT))
    handler._pokefusion = True  # type: ignore[attr-defined]
    logger.addHandler(handler)
    return logger
