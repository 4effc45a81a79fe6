"""Logging setup: text or JSON lines on stderr, tagged with the message id."""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import TextIO

from .context import get_message_id

TEXT_FORMAT = "%(asctime)s [%(levelname)s][%(message_id)s] %(name)s: %(message)s"
LOG_FORMATS = ("text", "json")

NOTICE = 25
logging.addLevelName(NOTICE, "NOTICE")

LOG_LEVELS: dict[str, int] = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "notice": NOTICE,
    "warning": logging.WARNING,
    "warn": logging.WARNING,
    "error": logging.ERROR,
}


class MessageIdFilter(logging.Filter):
    """Adds ``message_id`` to every record (``-`` outside a message)."""

    def filter(self, record: logging.LogRecord) -> bool:
        if not hasattr(record, "message_id"):
            record.message_id = get_message_id() or "-"
        return True


class JsonFormatter(logging.Formatter):
    """One JSON object per line: time, level, logger, message_id, message."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, object] = {
            "time": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname.lower(),
            "logger": record.name,
            "message_id": getattr(record, "message_id", None),
            "message": record.getMessage(),
        }
        if record.exc_info:
            entry["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(entry)


def configure_logging(
    level: str = "info",
    fmt: str = "text",
    stream: TextIO | None = None,
) -> logging.Handler:
    """Install a stderr handler on the ``sqs_pulser`` logger and return it."""
    if fmt not in LOG_FORMATS:
        raise ValueError(f"unknown log format {fmt!r}, expected one of {LOG_FORMATS}")
    numeric = LOG_LEVELS.get(level.lower())
    if numeric is None:
        raise ValueError(f"unknown log level {level!r}, expected one of {tuple(LOG_LEVELS)}")

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.addFilter(MessageIdFilter())
    if fmt == "json":
        handler.setFormatter(JsonFormatter())
    else:
        handler.setFormatter(logging.Formatter(TEXT_FORMAT))

    root = logging.getLogger("sqs_pulser")
    for existing in list(root.handlers):
        root.removeHandler(existing)
    root.addHandler(handler)
    root.setLevel(numeric)
    root.propagate = False
    return handler
