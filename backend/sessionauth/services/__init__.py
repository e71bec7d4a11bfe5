"""Service layer public API.

This package exposes the essential building blocks for the service layer so that
callers can import from :mod:`sessionauth.services` without knowing internal structure.

Re-exports
----------
- Base primitives (from ``sessionauth.services._shared.base``)
    * :class:`BaseService`

- Token service (from ``sessionauth.services.tokens``)
    * :class:`TokenService`
    * DTOs: :class:`TokenPairOut`, :class:`AuthTokenConfig`

- Credential verifier (from ``sessionauth.services.credentials``)
    * :class:`CredentialVerifier`

- Auth service (from ``sessionauth.services.auth``)
    * :class:`AuthService`
    * DTOs: :class:`LoginIn`, :class:`RegisterIn`, :class:`RefreshIn`,
      :class:`LogoutIn`, :class:`AlreadyExists`
"""

from __future__ import annotations

from sessionauth.services._shared.base import BaseService
from sessionauth.services.auth.dto import AlreadyExists, LoginIn, LogoutIn, RefreshIn, RegisterIn
from sessionauth.services.auth.service import AuthService
from sessionauth.services.credentials.verifier import CredentialVerifier
from sessionauth.services.tokens.dto import AuthTokenConfig, TokenPairOut
from sessionauth.services.tokens.service import TokenService

__all__ = [
    "BaseService",
    "TokenService",
    "TokenPairOut",
    "AuthTokenConfig",
    "CredentialVerifier",
    "AuthService",
    "LoginIn",
    "RegisterIn",
    "RefreshIn",
    "LogoutIn",
    "AlreadyExists",
]
