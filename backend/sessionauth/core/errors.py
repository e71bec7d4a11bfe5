"""RFC 7807 problem responses for every error the API can surface.

Auth failures are answered with deliberately terse details: a 401 never says
whether a token expired, was forged or was rotated away.
"""

from __future__ import annotations

import logging
from http import HTTPStatus
from typing import Any

from flask import Flask, Response, jsonify, request
from marshmallow import ValidationError
from sqlalchemy.exc import OperationalError
from werkzeug.exceptions import HTTPException

from sessionauth.core.logger import ensure_request_id

log = logging.getLogger(__name__)

PROBLEM_MIMETYPE = "application/problem+json"

# Stable machine-readable codes by status
_STATUS_CODES: dict[int, str] = {
    400: "bad_request",
    401: "unauthorized",
    404: "not_found",
    405: "method_not_allowed",
    409: "conflict",
    415: "unsupported_media_type",
    422: "unprocessable_entity",
    500: "internal_server_error",
    503: "service_unavailable",
}


def code_for_status(status: int) -> str:
    """Return the canonical error code for ``status`` (``"error"`` if unmapped)."""
    return _STATUS_CODES.get(status, "error")


def build_problem(
    status: int,
    detail: str,
    *,
    code: str | None = None,
    details: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Assemble a Problem Details document for the current request.

    :param status: HTTP status code.
    :param detail: Client-safe summary.
    :param code: Error code; derived from ``status`` when omitted.
    :param details: Optional structured payload (e.g. validation messages).
    :returns: Problem+JSON dictionary carrying the request id.
    """
    problem: dict[str, Any] = {
        "type": "about:blank",
        "title": HTTPStatus(status).phrase,
        "status": int(status),
        "detail": detail,
        "code": code or code_for_status(status),
        "instance": request.path if request else None,
        "request_id": ensure_request_id(),
    }
    if details:
        problem["details"] = details
    return problem


def problem_response(problem: dict[str, Any]) -> tuple[Response, int]:
    """Serialize ``problem`` with the ``application/problem+json`` media type."""
    resp = jsonify(problem)
    resp.mimetype = PROBLEM_MIMETYPE
    return resp, problem["status"]


class APIError(Exception):
    """
    Error raised by views and translated service errors.

    Subclasses pin ``status_code`` and ``code``; ``message`` is what the
    client reads in ``detail``.
    """

    status_code: int = HTTPStatus.BAD_REQUEST
    code: str = "bad_request"
    default_message: str = "Bad request"

    def __init__(
        self,
        message: str | None = None,
        *,
        status_code: int | None = None,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)
        if status_code is not None:
            self.status_code = int(status_code)
        if code is not None:
            self.code = code
        self.details = details or {}

    def to_problem(self) -> dict[str, Any]:
        return build_problem(
            int(self.status_code), self.message, code=self.code, details=self.details or None
        )


class NotFound(APIError):
    status_code = HTTPStatus.NOT_FOUND
    code = "not_found"
    default_message = "Resource not found"


class Conflict(APIError):
    status_code = HTTPStatus.CONFLICT
    code = "conflict"
    default_message = "Conflict"


class Unauthorized(APIError):
    status_code = HTTPStatus.UNAUTHORIZED
    code = "unauthorized"
    default_message = "Unauthorized"


class ServiceUnavailable(APIError):
    """503 when a backing store or the signer cannot be used."""

    status_code = HTTPStatus.SERVICE_UNAVAILABLE
    code = "service_unavailable"
    default_message = "Service temporarily unavailable"


def _log_problem(kind: str, problem: dict[str, Any], *, exc_info: Any = None) -> None:
    # 5xx are operator problems, 4xx are client mistakes
    level = logging.ERROR if problem["status"] >= 500 else logging.WARNING
    log.log(
        level,
        "%s: code=%s status=%s request_id=%s",
        kind,
        problem["code"],
        problem["status"],
        problem["request_id"],
        exc_info=exc_info,
    )


def init_app(app: Flask) -> None:
    """
    Register the JSON error handlers on ``app``.

    Service errors go through ``BaseService.translate_exceptions`` so the
    service layer stays free of HTTP concerns.
    """
    from sessionauth.services._shared.base import BaseService
    from sessionauth.services._shared.errors import ServiceError

    @app.errorhandler(APIError)
    def handle_api_error(err: APIError):
        problem = err.to_problem()
        _log_problem("APIError", problem)
        return problem_response(problem)

    @app.errorhandler(ServiceError)
    def handle_service_error(err: ServiceError):
        translated = BaseService.translate_exceptions(err)
        if not isinstance(translated, APIError):  # pragma: no cover - every ServiceError maps
            translated = APIError(str(err))
        problem = translated.to_problem()
        # The root cause of a 503 is only written to the log
        _log_problem(type(err).__name__, problem, exc_info=err if problem["status"] >= 500 else None)
        return problem_response(problem)

    @app.errorhandler(ValidationError)
    def handle_validation_error(err: ValidationError):
        problem = build_problem(
            HTTPStatus.UNPROCESSABLE_ENTITY,
            "Validation failed",
            code="validation_error",
            details={"errors": err.messages},
        )
        _log_problem("ValidationError", problem)
        return problem_response(problem)

    @app.errorhandler(HTTPException)
    def handle_http_exception(err: HTTPException):
        status = int(err.code or HTTPStatus.INTERNAL_SERVER_ERROR)
        if status == HTTPStatus.NOT_FOUND:
            detail = f"Route '{request.path}' not found"
        else:
            detail = (err.description or HTTPStatus(status).phrase).strip()
        problem = build_problem(status, detail)
        _log_problem("HTTPException", problem)
        return problem_response(problem)

    @app.errorhandler(OperationalError)
    def handle_operational_error(err: OperationalError):
        problem = build_problem(HTTPStatus.SERVICE_UNAVAILABLE, ServiceUnavailable.default_message)
        _log_problem("OperationalError", problem, exc_info=err)
        return problem_response(problem)

    @app.errorhandler(Exception)
    def handle_unexpected_error(err: Exception):
        # Never leak internals to the client
        problem = build_problem(HTTPStatus.INTERNAL_SERVER_ERROR, "Unexpected error")
        _log_problem("Unhandled exception", problem, exc_info=err)
        return problem_response(problem)
