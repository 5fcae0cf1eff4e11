"""JSON-line logging with request correlation.

Log lines are plain JSON strings on stdlib loggers so any collector can pick
them up. The correlation ID lives in a ContextVar set per HTTP request.
"""

from __future__ import annotations

import json
import logging
from contextlib import contextmanager
from contextvars import ContextVar
from datetime import UTC, datetime
from typing import Any
from uuid import uuid4

_request_id_var: ContextVar[str | None] = ContextVar("request_id", default=None)


def get_request_id() -> str | None:
    """Get the current request correlation ID (if any)."""

    return _request_id_var.get()


def new_request_id() -> str:
    return str(uuid4())


@contextmanager
def request_id_context(request_id: str | None):
    """Bind the correlation ID for the duration of the block."""

    token = _request_id_var.set(request_id)
    try:
        yield
    finally:
        _request_id_var.reset(token)


def log_json(
    logger: logging.Logger,
    level: int,
    event: str,
    **fields: Any,
) -> None:
    """Emit a single JSON log line with the current correlation ID."""

    payload: dict[str, Any] = {
        "timestamp": datetime.now(UTC).isoformat(),
        "event": event,
    }
    request_id = get_request_id()
    if request_id:
        payload["request_id"] = request_id

    payload.update(fields)
    logger.log(level, json.dumps(payload, default=str))
