from __future__ import annotations

import re
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Iterator, Optional

REQUEST_ID_HEADER = "X-Request-ID"

_MAX_LENGTH = 64
_ACCEPTABLE = re.compile(r"^[A-Za-z0-9._:-]+$")

_current: ContextVar[Optional[str]] = ContextVar("booking_request_id", default=None)


def accept_request_id(incoming: Optional[str]) -> str:
    """Reuse the caller's id when it is short and log-safe, otherwise mint a fresh one."""
    if incoming and len(incoming) <= _MAX_LENGTH and _ACCEPTABLE.match(incoming):
        return incoming
    return uuid.uuid4().hex


@contextmanager
def bound_request_id(request_id: str) -> Iterator[str]:
    token = _current.set(request_id)
    try:
        yield request_id
    finally:
        _current.reset(token)


def current_request_id() -> Optional[str]:
    return _current.get()
