"""Global Flask extension instances and initialization helpers."""

from __future__ import annotations

import redis  # type: ignore[import-untyped]
from flask import Flask, current_app
from flask_sqlalchemy import SQLAlchemy
from redis.exceptions import RedisError  # type: ignore[import-untyped]
from sqlalchemy import MetaData

from sessionauth.infra.jwt.hmac_token_signer import HmacTokenSigner
from sessionauth.infra.redis.redis_refresh_token_store import RedisRefreshTokenStore
from sessionauth.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from sessionauth.services._shared.ports import InMemoryRefreshTokenStore, RefreshTokenStore
from sessionauth.services.tokens.dto import AuthTokenConfig

# Global naming convention for all constraints
convention = {
    "ix": "ix_%(table_name)s_%(column_0_name)s",
    "uq": "uq_%(table_name)s_%(column_0_name)s",
    "ck": "ck_%(table_name)s_%(constraint_name)s",
    "fk": "fk_%(table_name)s_%(column_0_name)s_%(referred_table_name)s",
    "pk": "pk_%(table_name)s",
}

metadata = MetaData(naming_convention=convention)

# Global singletons (import-safe)
db: SQLAlchemy = SQLAlchemy(session_options={"autoflush": False}, metadata=metadata)
redis_client: redis.Redis | None = None

PLACEHOLDER_PREFIX = "CHANGE_ME"


def init_app(app: Flask) -> None:
    """Initialize SQLAlchemy, the refresh token store and the token machinery.

    Parameters
    ----------
    app: flask.Flask
        Application used to bind extension instances. The refresh token store
        is created here once per process and shared by every request.

    Raises
    ------
    RuntimeError
        If Redis is configured but unreachable, or placeholder secrets are
        used outside debug/testing.
    """
    db.init_app(app)

    # Ensure models are imported so metadata is complete
    from sessionauth import models as _models  # noqa: F401

    token_cfg = AuthTokenConfig.from_mapping(app.config)
    if not (app.debug or app.testing) and any(
        str(secret).startswith(PLACEHOLDER_PREFIX)
        for secret in (token_cfg.access_secret, token_cfg.refresh_secret)
    ):
        raise RuntimeError("Token secrets still hold placeholder values.")

    app.extensions["token_config"] = token_cfg
    app.extensions["token_signer"] = HmacTokenSigner(
        algorithm=app.config.get("TOKEN_ALGORITHM", "HS256")
    )
    app.extensions["password_hasher"] = WerkzeugPasswordHasher(
        method=app.config.get("PASSWORD_HASH_METHOD", "scrypt")
    )
    app.extensions["refresh_token_store"] = _build_refresh_store(app)


def _build_refresh_store(app: Flask) -> RefreshTokenStore:
    global redis_client
    redis_url = app.config.get("REDIS_URL")
    if not redis_url:
        redis_client = None
        app.extensions.pop("redis_client", None)
        return InMemoryRefreshTokenStore()

    redis_client = redis.Redis.from_url(redis_url)
    try:
        redis_client.ping()
    except RedisError as exc:
        raise RuntimeError(f"Failed to connect to Redis at {redis_url!r}") from exc
    app.extensions["redis_client"] = redis_client
    return RedisRefreshTokenStore(r=redis_client)


def get_redis() -> redis.Redis:
    """Return the initialized Redis client."""
    if redis_client is None:
        raise RuntimeError("Redis client is not initialized. Call init_app() first.")
    return redis_client


def get_refresh_store() -> RefreshTokenStore:
    """Return the process-wide refresh token store of the current app."""
    return current_app.extensions["refresh_token_store"]
