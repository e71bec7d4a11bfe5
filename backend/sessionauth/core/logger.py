"""JSON logging on stdout, correlated by request id.

Auth events are logged as short dotted names (``tokens.rejected``,
``auth.login.bad_password``) with context passed through ``extra``. Only the
whitelisted keys below are rendered, and credential-bearing keys are masked.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from flask import Flask, g, has_request_context, request

REQUEST_ID_HEADER = "X-Request-ID"
CORRELATION_HEADERS = (REQUEST_ID_HEADER, "X-Correlation-ID")

# ``extra`` attributes rendered when present
EXTRA_KEYS = ("endpoint", "elapsed_ms", "identity", "reason", "token_type", "error")
# Masked even if a caller passes them through ``extra``
REDACTED_KEYS = ("password", "password_hash", "access_token", "refresh_token", "authorization")
REDACTED = "[REDACTED]"


class JSONFormatter(logging.Formatter):
    """One JSON object per record."""

    def format(self, record: logging.LogRecord) -> str:
        payload: dict[str, Any] = {
            "time": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
            "level": record.levelname,
            "name": record.name,
            "message": record.getMessage(),
            "request_id": getattr(record, "request_id", None),
        }
        payload.update(
            {key: getattr(record, key) for key in EXTRA_KEYS if hasattr(record, key)}
        )
        payload.update({key: REDACTED for key in REDACTED_KEYS if hasattr(record, key)})
        if record.exc_info:
            payload["exc_info"] = self.formatException(record.exc_info)
        return json.dumps(payload, default=str)


class RequestIdFilter(logging.Filter):
    """Stamp ``request_id`` on every record (``None`` outside a request)."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.request_id = ensure_request_id() if has_request_context() else None
        return True


def _incoming_request_id() -> str | None:
    for header in CORRELATION_HEADERS:
        value = request.headers.get(header)
        if value:
            return value
    return None


def ensure_request_id() -> str:
    """
    Return the id correlating the current request.

    Reuses a client-supplied correlation header when present and caches the
    value on :data:`flask.g`; outside a request a throwaway id is returned.
    """
    if not has_request_context():
        return str(uuid4())
    if "request_id" not in g:
        g.request_id = _incoming_request_id() or str(uuid4())
    return g.request_id


def configure_logging(level: str | int = "INFO") -> None:
    """Replace the root handlers with a single JSON stdout handler at ``level``."""
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(JSONFormatter())
    handler.addFilter(RequestIdFilter())

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(handler)
    root.setLevel(level.upper() if isinstance(level, str) else level)


def init_app(app: Flask) -> None:
    """Seed the request id early and echo it back on every response."""
    app.logger.addFilter(RequestIdFilter())

    @app.before_request
    def _seed_request_id() -> None:
        ensure_request_id()

    @app.after_request
    def _echo_request_id(response):
        response.headers.setdefault(REQUEST_ID_HEADER, ensure_request_id())
        return response


__all__ = ["configure_logging", "init_app", "ensure_request_id", "JSONFormatter"]
