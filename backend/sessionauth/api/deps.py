"""Shared API helpers: service wiring, auth guard and response helpers."""

from __future__ import annotations

import functools
import time
from collections.abc import Callable
from typing import Any, TypeVar

from flask import Response, current_app, g, jsonify, request

from sessionauth.core.extensions import db, get_refresh_store
from sessionauth.repositories.user import SqlAlchemyUserDirectory
from sessionauth.services.auth.service import AuthService
from sessionauth.services.tokens.service import TokenService

F = TypeVar("F", bound=Callable[..., Any])


def get_token_service() -> TokenService:
    """Build a :class:`TokenService` over the process-wide refresh store."""

    return TokenService(
        signer=current_app.extensions["token_signer"],
        refresh_store=get_refresh_store(),
        token_cfg=current_app.extensions["token_config"],
    )


def get_auth_service() -> AuthService:
    """Build the request-scoped :class:`AuthService`."""

    return AuthService(
        users=SqlAlchemyUserDirectory(db.session),
        tokens=get_token_service(),
        hasher=current_app.extensions["password_hasher"],
    )


def require_auth(func: F) -> F:
    """Resolve the ``Authorization`` header into ``g.identity`` or answer 401."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        service = get_auth_service()
        g.identity = service.parse_authorization_header(request.headers.get("Authorization"))
        return func(*args, **kwargs)

    return wrapper  # type: ignore[return-value]


def json_response(payload: Any, *, status: int = 200) -> Response:
    """Return a JSON response enforcing a consistent MIME type."""

    response = jsonify(payload)
    response.status_code = status
    return response


def timing(func: F) -> F:
    """Decorator capturing handler execution time in milliseconds."""

    @functools.wraps(func)
    def wrapper(*args: Any, **kwargs: Any):
        start = time.perf_counter()
        try:
            return func(*args, **kwargs)
        finally:
            elapsed_ms = (time.perf_counter() - start) * 1000
            current_app.logger.debug(
                "request.elapsed",
                extra={"endpoint": request.endpoint, "elapsed_ms": round(elapsed_ms, 2)},
            )

    return wrapper  # type: ignore[return-value]
