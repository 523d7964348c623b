"""
Logging setup for rowgate.

Modules log through ``logging.getLogger(__name__)`` and pass structured
context with ``extra=``. ``setup_logging`` attaches a single stream handler
to the ``rowgate`` logger that renders either JSON lines or plain text.
"""

import json
import logging
import sys
from datetime import datetime, timezone

from rowgate.settings import get_settings

# Attributes every LogRecord carries; anything else came in through ``extra=``.
_RESERVED_ATTRS = frozenset(
    logging.LogRecord("", 0, "", 0, "", (), None).__dict__.keys()
) | {"message", "asctime"}


class JSONFormatter(logging.Formatter):
    """Render each record as one JSON object per line."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS and not key.startswith("_"):
                entry[key] = value

        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)

        return json.dumps(entry, default=str)


class TextFormatter(logging.Formatter):
    """Human-readable single line format with any extra context appended."""

    def __init__(self):
        super().__init__("%(asctime)s - %(name)s - %(levelname)s - %(message)s")

    def format(self, record: logging.LogRecord) -> str:
        line = super().format(record)
        context = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RESERVED_ATTRS and not key.startswith("_")
        }
        if context:
            line = f"{line} {context}"
        return line


def setup_logging(level: str | None = None, fmt: str | None = None) -> logging.Logger:
    """
    Configure the ``rowgate`` logger.

    Safe to call more than once: existing handlers are replaced.

    Args:
        level: Log level name (defaults to settings.log_level)
        fmt: "json" or "text" (defaults to settings.log_format)

    Returns:
        The configured package logger
    """
    settings = get_settings()
    level = level or settings.log_level
    fmt = fmt or settings.log_format

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter() if fmt == "json" else TextFormatter())

    logger = logging.getLogger("rowgate")
    logger.handlers.clear()
    logger.addHandler(handler)
    logger.setLevel(level)
    logger.propagate = False

    return logger
