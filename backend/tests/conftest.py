"""Pytest fixtures for the token lifecycle, the auth flows and the HTTP layer.

Service-level fixtures are wired to in-memory doubles and need no Flask app.
The ``app`` fixture builds a fresh application (own in-memory SQLite engine and
own refresh token store) per test, so no state leaks between cases.
"""

from __future__ import annotations

import os
from collections.abc import Generator
from datetime import timedelta
from typing import Any

import pytest
from flask import Flask

from sessionauth import create_app
from sessionauth.core.config import TestingConfig
from sessionauth.core.extensions import db
from sessionauth.infra.jwt.hmac_token_signer import HmacTokenSigner
from sessionauth.infra.security.werkzeug_password_hasher import WerkzeugPasswordHasher
from sessionauth.services._shared.ports import InMemoryRefreshTokenStore, InMemoryUserDirectory
from sessionauth.services.auth.service import AuthService
from sessionauth.services.tokens.dto import AuthTokenConfig
from sessionauth.services.tokens.service import TokenService

ACCESS_SECRET = "unit-access-secret-0123456789abcdef0123"
REFRESH_SECRET = "unit-refresh-secret-0123456789abcdef012"

# Cheap hash so suites stay fast; production uses scrypt.
FAST_HASH_METHOD = "pbkdf2:sha256:1000"


# ------------------------------ Services ---------------------------------- #


@pytest.fixture()
def token_cfg() -> AuthTokenConfig:
    """Token settings with distinct secrets and default-like lifetimes."""
    return AuthTokenConfig(
        access_secret=ACCESS_SECRET,
        refresh_secret=REFRESH_SECRET,
        access_expires=timedelta(minutes=15),
        refresh_expires=timedelta(days=7),
    )


@pytest.fixture()
def signer() -> HmacTokenSigner:
    return HmacTokenSigner()


@pytest.fixture()
def refresh_store() -> InMemoryRefreshTokenStore:
    return InMemoryRefreshTokenStore()


@pytest.fixture()
def token_service(signer, refresh_store, token_cfg) -> TokenService:
    """Build a TokenService wired to the real signer and an in-memory store."""
    return TokenService(signer=signer, refresh_store=refresh_store, token_cfg=token_cfg)


@pytest.fixture()
def hasher() -> WerkzeugPasswordHasher:
    return WerkzeugPasswordHasher(method=FAST_HASH_METHOD)


@pytest.fixture()
def users() -> InMemoryUserDirectory:
    return InMemoryUserDirectory()


@pytest.fixture()
def auth_service(users, token_service, hasher) -> AuthService:
    """Build an AuthService wired to in-memory doubles."""
    return AuthService(users=users, tokens=token_service, hasher=hasher)


# -------------------------------- Flask ----------------------------------- #


class _TestConfig(TestingConfig):
    """Testing configuration with a cheap password hash."""

    PASSWORD_HASH_METHOD = FAST_HASH_METHOD
    LOG_LEVEL = "WARNING"


@pytest.fixture()
def app() -> Generator[Flask, None, None]:
    """Create a Flask application configured for testing.

    Yields
    ------
    flask.Flask
        Application with an active app context; tables are dropped afterwards.
    """
    # Ensure env-based config does not leak into tests
    os.environ.pop("DATABASE_URL", None)
    application = create_app(_TestConfig)
    application.logger.setLevel("WARNING")
    with application.app_context():
        yield application
        db.session.remove()
        db.drop_all()


@pytest.fixture()
def session(app: Flask) -> Any:
    """Return the app's scoped session and hand it to Factory Boy."""
    from tests.factories import SQLAlchemySession

    SQLAlchemySession.set(db.session)
    yield db.session
    SQLAlchemySession.set(None)


@pytest.fixture()
def client(app: Flask) -> Any:
    """Return a Flask test client."""
    return app.test_client()
