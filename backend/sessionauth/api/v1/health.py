"""Health check endpoint."""

from __future__ import annotations

from flask import Blueprint, current_app
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from sessionauth.api.deps import json_response, timing
from sessionauth.core.extensions import db, get_redis

bp = Blueprint("health", __name__)


@bp.get("/health")
@timing
def healthcheck():
    """Return application, database and token store health."""

    db_status = "ok"
    try:
        db.session.execute(text("SELECT 1"))
    except SQLAlchemyError:  # pragma: no cover - depends on DB backend
        current_app.logger.exception("healthcheck.db_error")
        db_status = "fail"

    store_status = "memory"
    if current_app.config.get("REDIS_URL"):
        try:
            get_redis().ping()
            store_status = "ok"
        except RedisError:  # pragma: no cover - depends on Redis availability
            current_app.logger.exception("healthcheck.redis_error")
            store_status = "fail"

    payload = {
        "status": "ok",
        "db": db_status,
        "token_store": store_status,
        "version": current_app.config.get("APP_VERSION", "dev"),
    }
    return json_response(payload)
