"""One-line JSON logs on stdout for the reservation service.

Each line carries the service name, the process role (public or worker)
and the request's correlation id. Call-site context goes in
``extra={"extra_fields": {...}}``; keys that would clobber a core field are
kept under a ``ctx_`` prefix instead.
"""

import json
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

from .correlation import current_correlation_id

SERVICE_NAME = "reservation-service"

_CORE_KEYS = frozenset(
    {"timestamp", "level", "service", "role", "logger", "message", "correlationId", "exception"}
)


def _level_from_env() -> int:
    name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


class JsonFormatter(logging.Formatter):
    def __init__(self, role: str | None = None) -> None:
        super().__init__()
        self.role = role or os.environ.get("APP_ROLE", "public")

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, timezone.utc).isoformat(),
            "level": record.levelname,
            "service": SERVICE_NAME,
            "role": self.role,
            "logger": record.name,
            "message": record.getMessage(),
        }

        cid = current_correlation_id()
        if cid:
            entry["correlationId"] = cid

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)

        for key, value in getattr(record, "extra_fields", {}).items():
            entry[f"ctx_{key}" if key in _CORE_KEYS else key] = value

        return json.dumps(entry, default=str)


def get_logger(name: str) -> logging.Logger:
    """Logger writing JSON lines to stdout at LOG_LEVEL (INFO if unset or unknown)."""
    logger = logging.getLogger(name)

    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
        logger.propagate = False

    return logger
