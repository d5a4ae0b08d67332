"""Structured JSON logging with decode-scope support."""

import json
import logging
import os
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any

# Label of the collection currently being decoded (e.g. a node id)
decode_scope_var: ContextVar[str] = ContextVar("decode_scope", default="")


def get_decode_scope() -> str:
    """Get current decode scope from context."""
    return decode_scope_var.get()


@contextmanager
def decode_scope(label: str) -> Iterator[None]:
    """Tag every record logged inside the block with `label`."""
    token = decode_scope_var.set(label)
    try:
        yield
    finally:
        decode_scope_var.reset(token)


class JsonFormatter(logging.Formatter):
    """JSON formatter that includes the decode scope."""

    def format(self, record: logging.LogRecord) -> str:
        log_obj: dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        scope = get_decode_scope()
        if scope:
            log_obj["decodeScope"] = scope

        if record.exc_info:
            log_obj["exception"] = self.formatException(record.exc_info)

        # Include extra fields if present
        if hasattr(record, "extra_fields"):
            log_obj.update(record.extra_fields)

        return json.dumps(log_obj, default=str)


def _level_from_env() -> int:
    name = os.environ.get("TASKS_LOG_LEVEL", "INFO").upper()
    level = logging.getLevelName(name)
    return level if isinstance(level, int) else logging.INFO


def get_logger(name: str) -> logging.Logger:
    """Get a logger configured for JSON output."""
    logger = logging.getLogger(name)

    # Only configure if no handlers (avoid duplicate handlers)
    if not logger.handlers:
        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(JsonFormatter())
        logger.addHandler(handler)
        logger.setLevel(_level_from_env())
        logger.propagate = False

    return logger
