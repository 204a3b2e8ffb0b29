"""Request correlation for governance logs and problem responses.

Each HTTP request runs inside ``correlation_scope``: the caller's
``X-Correlation-ID`` is kept when it is a plausible token, otherwise a
fresh time-ordered id is issued. The id lives in a ContextVar so ledger
writes, gate decisions and problem bodies logged during the request all
carry it, and it is reset when the request ends.

Governance Constraints:
- Caller ids are echoed only when they are 1-128 characters of
  ``[A-Za-z0-9._:-]``; anything else is replaced, never truncated
- Outside a request scope no correlation id is reported
"""

from __future__ import annotations

import re
from collections.abc import Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import Any

from uuid6 import uuid7

CORRELATION_ID_HEADER = "X-Correlation-ID"

_ACCEPTED_ID = re.compile(r"^[A-Za-z0-9._:-]{1,128}$")

_request_correlation: ContextVar[str | None] = ContextVar(
    "govgate_request_correlation", default=None
)


def generate_correlation_id() -> str:
    """A new UUIDv7 correlation id, ordered like ledger event ids."""
    return str(uuid7())


def accept_correlation_id(raw: str | None) -> str:
    """Return ``raw`` when it is an acceptable caller id, else a new one."""
    candidate = (raw or "").strip()
    if _ACCEPTED_ID.match(candidate):
        return candidate
    return generate_correlation_id()


def get_correlation_id() -> str | None:
    return _request_correlation.get()


@contextmanager
def correlation_scope(raw: str | None = None) -> Iterator[str]:
    """Bind a correlation id for the duration of the block.

    Args:
        raw: Incoming header value, if any.

    Yields:
        The id in effect inside the block.
    """
    correlation_id = accept_correlation_id(raw)
    token = _request_correlation.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _request_correlation.reset(token)


def correlation_id_processor(
    logger: Any, method_name: str, event_dict: dict[str, Any]
) -> dict[str, Any]:
    """Structlog processor stamping ``correlation_id`` inside a request scope."""
    correlation_id = _request_correlation.get()
    if correlation_id is not None:
        event_dict.setdefault("correlation_id", correlation_id)
    return event_dict
