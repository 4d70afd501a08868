"""Structured logging for Ciku.

Emits one JSON object per line on stderr.
Set CIKU_LOG_LEVEL to DEBUG/INFO/WARNING/ERROR to control verbosity and
CIKU_LOG_FORMAT=text for human-readable lines while debugging the matcher.
"""
import json
import logging
import os
import sys
from typing import Any

# Fields callers may attach with `extra=`
EXTRA_FIELDS = (
    "component", "detail", "duration_ms", "count",
    "matched", "unmatched", "endpoint", "status_code", "ip", "model",
)


class JSONFormatter(logging.Formatter):
    """Render a record as a single JSON line."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "ts": self.formatTime(record, "%Y-%m-%dT%H:%M:%S"),
            "level": record.levelname.lower(),
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if record.exc_info and record.exc_info[1]:
            entry["error"] = str(record.exc_info[1])
            entry["error_type"] = type(record.exc_info[1]).__name__
        for key in EXTRA_FIELDS:
            val = getattr(record, key, None)
            if val is not None:
                entry[key] = val
        # Chinese text stays readable in the log stream
        return json.dumps(entry, ensure_ascii=False, default=str)


def _make_handler() -> logging.Handler:
    handler = logging.StreamHandler(sys.stderr)
    if os.environ.get("CIKU_LOG_FORMAT", "json") == "text":
        handler.setFormatter(logging.Formatter(
            "%(asctime)s [%(levelname)s] %(name)s: %(message)s",
            datefmt="%H:%M:%S",
        ))
    else:
        handler.setFormatter(JSONFormatter())
    return handler


def get_logger(name: str = "ciku") -> logging.Logger:
    """Return a configured logger, attaching the handler only once.

    Usage:
        from log import get_logger
        logger = get_logger("ciku.matcher")
        logger.debug("Scan finished", extra={"component": "matcher", "count": 3})
    """
    logger = logging.getLogger(name)
    if not logger.handlers:
        level = os.environ.get("CIKU_LOG_LEVEL", "INFO").upper()
        logger.setLevel(getattr(logging, level, logging.INFO))
        logger.addHandler(_make_handler())
        logger.propagate = False
    return logger
