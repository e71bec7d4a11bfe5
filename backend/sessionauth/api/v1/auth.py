"""Authentication endpoints using the service layer."""

from __future__ import annotations

from flask import Blueprint, g, request

from sessionauth.api.deps import get_auth_service, json_response, require_auth, timing
from sessionauth.core.errors import Conflict
from sessionauth.schemas import (
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
    WhoAmISchema,
)
from sessionauth.services.auth.dto import AlreadyExists, LoginIn, LogoutIn, RefreshIn, RegisterIn

bp = Blueprint("auth", __name__)

register_schema = RegisterSchema()
login_schema = LoginSchema()
refresh_schema = RefreshTokenSchema()
token_schema = TokenPairSchema()
whoami_schema = WhoAmISchema()


@bp.post("/register")
@timing
def register():
    """Create an account and return its first token pair."""

    payload = register_schema.load(request.get_json(silent=True) or {})
    result = get_auth_service().registration(RegisterIn(**payload))
    if isinstance(result, AlreadyExists):
        raise Conflict("A user with this email already exists")
    return json_response({"data": token_schema.dump(result)}, status=201)


@bp.post("/login")
@timing
def login():
    """Authenticate credentials and issue a token pair."""

    payload = login_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().login(LoginIn(email=payload["email"], password=payload["password"]))
    return json_response({"data": token_schema.dump(pair)})


@bp.post("/refresh")
@timing
def refresh():
    """Rotate the refresh token; the response carries both new tokens."""

    payload = refresh_schema.load(request.get_json(silent=True) or {})
    pair = get_auth_service().refresh_access_token(RefreshIn(refresh_token=payload["refresh_token"]))
    return json_response({"data": token_schema.dump(pair)})


@bp.post("/logout")
@timing
def logout():
    """Close the session; answers 204 whatever the token's state."""

    body = request.get_json(silent=True) or {}
    token = body.get("refresh_token") if isinstance(body, dict) else None
    if isinstance(token, str) and token:
        get_auth_service().logout(LogoutIn(refresh_token=token))
    return "", 204


@bp.get("/me")
@require_auth
@timing
def whoami():
    """Return the identity carried by the bearer access token."""

    return json_response({"data": whoami_schema.dump({"id": g.identity})})
