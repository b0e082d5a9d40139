"""Correlation IDs for tracing one call across the reservation service and its peers.

An inbound X-Correlation-ID is honoured when it looks like an id; anything
else (empty, oversized, header-injection attempts) is replaced by a fresh
one. The id lives in a ContextVar for the duration of the request and is
forwarded on every call to the accommodation and user services.
"""

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator

CORRELATION_ID_HEADER = "X-Correlation-ID"

_current: ContextVar[str] = ContextVar("staybook_correlation_id", default="")

_ACCEPTABLE_ID = re.compile(r"[A-Za-z0-9._:\-]{1,128}")


def new_correlation_id() -> str:
    return uuid.uuid4().hex


def accept_inbound(value: str | None) -> str:
    """Return the caller's id if usable, otherwise a new one."""
    if value and _ACCEPTABLE_ID.fullmatch(value):
        return value
    return new_correlation_id()


def current_correlation_id() -> str:
    """Id bound to the running request, or "" outside one."""
    return _current.get()


@contextmanager
def correlation_scope(cid: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    With no argument a new id is generated. The previous binding is
    restored on exit, including when the block raises.
    """
    cid = cid or new_correlation_id()
    token = _current.set(cid)
    try:
        yield cid
    finally:
        _current.reset(token)


def outbound_headers() -> dict[str, str]:
    """Headers to attach to peer-service calls made inside this request."""
    cid = current_correlation_id()
    return {CORRELATION_ID_HEADER: cid} if cid else {}
