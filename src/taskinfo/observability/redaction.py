"""Redaction helpers for safe logging of task data.

Task headers and descriptions are copied from client requests and can
carry credentials or user identifiers, so they pass through here first.
"""

import re
from typing import Any

# Patterns that should never appear in logs
_CREDENTIAL_PATTERN = re.compile(r"(?i)\b(bearer|basic|apikey)\s+[A-Za-z0-9._~+/=-]+")
_EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}")

_REDACTED = "[REDACTED]"
_MAX_TEXT = 120


def redact_string(value: str) -> str:
    """Redact credentials and emails, then truncate long text."""
    result = _CREDENTIAL_PATTERN.sub(_REDACTED, value)
    result = _EMAIL_PATTERN.sub(_REDACTED, result)
    if len(result) > _MAX_TEXT:
        result = result[:_MAX_TEXT] + "..."
    return result


def redact_value(value: Any) -> str:
    """Redact any value for safe logging. Returns string representation."""
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, dict):
        # Header maps: log keys (structure), never values
        return f"dict(keys={sorted(map(str, value.keys()))})"
    if isinstance(value, (list, tuple)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """Build a context dict safe for logging. All values are redacted."""
    return {k: redact_value(v) for k, v in kwargs.items()}
