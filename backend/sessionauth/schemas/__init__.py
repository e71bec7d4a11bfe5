"""Marshmallow schemas used by the HTTP layer."""

from sessionauth.schemas.auth import (
    LoginSchema,
    RefreshTokenSchema,
    RegisterSchema,
    TokenPairSchema,
    WhoAmISchema,
)

__all__ = [
    "LoginSchema",
    "RefreshTokenSchema",
    "RegisterSchema",
    "TokenPairSchema",
    "WhoAmISchema",
]
