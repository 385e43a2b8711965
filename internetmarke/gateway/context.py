"""Correlation id shared by log records and outgoing requests.

Every orchestrator operation runs inside ``correlation_scope()``. The
scope reuses an id already bound by the caller (for example a web request
id) and otherwise generates a UUIDv4 for the duration of the operation.
The HTTP transport forwards the bound id as ``X-Request-ID`` and
``CorrelationIdFilter`` copies it onto log records.
"""

import contextvars
import uuid
from contextlib import contextmanager
from typing import Iterator, Optional

CORRELATION_ID_CTX = contextvars.ContextVar("correlation_id", default="-")


def current_correlation_id() -> str:
    """Return the bound correlation id, or "-" when none is bound."""
    return CORRELATION_ID_CTX.get()


@contextmanager
def correlation_scope(correlation_id: Optional[str] = None) -> Iterator[str]:
    """Bind a correlation id for the enclosed block.

    Args:
        correlation_id: Explicit id to bind. When omitted, an id already
            bound by an outer scope is kept; otherwise a new UUIDv4 is used.

    Yields:
        str: The id bound inside the block.
    """
    rid = correlation_id
    if not rid:
        outer = CORRELATION_ID_CTX.get()
        rid = outer if outer != "-" else str(uuid.uuid4())
    token = CORRELATION_ID_CTX.set(rid)
    try:
        yield rid
    finally:
        CORRELATION_ID_CTX.reset(token)
