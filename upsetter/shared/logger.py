"""Structured JSON logging for upsetter.

Records about a single metrics group carry its key via
``extra={"group_key": key}``; it is emitted as a top-level ``group`` field so
one group's history can be filtered out of the log stream.
"""

import json
import logging
from datetime import datetime, timezone


class JsonFormatter(logging.Formatter):
    """Formats log records as single-line JSON objects."""

    def format(self, record):
        entry = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "component": record.name.replace("upsetter.", ""),
            "level": record.levelname,
            "message": record.getMessage(),
        }
        if hasattr(record, "group_key"):
            entry["group"] = record.group_key
        if hasattr(record, "event_data"):
            entry["data"] = record.event_data
        return json.dumps(entry)


def get_logger(
    name: str,
    log_file: str | None = None,
    level: int = logging.INFO,
) -> logging.Logger:
    """Return a named logger that emits structured JSON.

    Args:
        name: Short component name (e.g. "reconciler").
        log_file: Optional path; writes JSON lines to this file instead of stderr.
        level: Logging level, defaults to INFO.

    Returns:
        A ``logging.Logger`` instance named ``upsetter.<name>``.
    """
    logger = logging.getLogger(f"upsetter.{name}")
    logger.setLevel(level)

    if not logger.handlers:
        if log_file:
            handler = logging.FileHandler(log_file)
        else:
            handler = logging.StreamHandler()
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)

    return logger
