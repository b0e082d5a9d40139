"""Scrubbing for values that end up in log lines.

Bearer tokens are forwarded verbatim to the user service, peer and driver
errors can echo URLs or DSNs with credentials, and the user service may
answer with e-mail addresses. None of that may reach the logs.
"""

import re
from datetime import date
from enum import Enum
from typing import Any

_REDACTED = "[REDACTED]"

# order matters: URL credentials look like e-mail addresses
_SCRUBBERS: tuple[tuple[re.Pattern[str], str], ...] = (
    (re.compile(r"(?i)\b([a-z][a-z0-9+.\-]*://)[^\s/@:]+:[^\s/@]+@"), rf"\1{_REDACTED}@"),
    (re.compile(r"(?i)\bpassword=\S+"), f"password={_REDACTED}"),
    (re.compile(r"(?i)(x-internal-task-secret[\"']?\s*[:=]\s*[\"']?)[^\s\"',}]+"), rf"\1{_REDACTED}"),
    (re.compile(r"(?i)bearer\s+[A-Za-z0-9\-_.~+/]+=*"), _REDACTED),
    (re.compile(r"eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]*"), _REDACTED),
    (re.compile(r"[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}"), _REDACTED),
)


def redact_string(value: str) -> str:
    for pattern, replacement in _SCRUBBERS:
        value = pattern.sub(replacement, value)
    return value


def redact_value(value: Any) -> str:
    """Render a value for a log line with secrets removed.

    Scalars and dates print as-is, enums by value, exceptions as
    ``Type: message`` with the message scrubbed. Containers are reduced to
    their shape so that nested payloads never leak.
    """
    if value is None:
        return "null"
    if isinstance(value, bool):
        return str(value).lower()
    if isinstance(value, Enum):
        return redact_value(value.value)
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, str):
        return redact_string(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, BaseException):
        message = redact_string(str(value))
        return f"{type(value).__name__}: {message}" if message else type(value).__name__
    if isinstance(value, dict):
        return f"dict(keys={list(value.keys())})"
    if isinstance(value, (list, tuple, set, frozenset)):
        return f"list(len={len(value)})"
    return f"<{type(value).__name__}>"


def safe_log_context(**kwargs: Any) -> dict[str, str]:
    """extra_fields payload with every value passed through redact_value."""
    return {k: redact_value(v) for k, v in kwargs.items()}
