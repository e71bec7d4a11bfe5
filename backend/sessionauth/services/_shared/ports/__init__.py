"""
sessionauth.services._shared.ports
==================================

Collection of *ports* (hexagonal interfaces) that define the contracts
for token signing, refresh-token persistence, password hashing and user lookup.

These ports decouple the service layer from concrete implementations
(PyJWT, Redis, werkzeug, SQLAlchemy).

Modules
-------
- :mod:`token_signer`:
    Defines :class:`~.TokenSigner` and :class:`~.TokenClaims`: signing and
    verification of compact tokens with a symmetric secret.

- :mod:`refresh_token_store`:
    Defines :class:`~.RefreshTokenStore`, :class:`~.SwapResult` and the
    process-local :class:`~.InMemoryRefreshTokenStore`.

- :mod:`password_hasher`:
    Defines :class:`~.PasswordHasher`: one-way hash with constant-time compare.

- :mod:`user_directory`:
    Defines :class:`~.UserDirectory`, :class:`~.UserRecord` and
    :class:`~.InMemoryUserDirectory`.

Design Notes
------------
Concrete adapters (Redis, database) implement these interfaces under
``sessionauth.infra`` and ``sessionauth.repositories``.
"""

from __future__ import annotations

from .password_hasher import PasswordHasher
from .refresh_token_store import (
    InMemoryRefreshTokenStore,
    RefreshTokenStore,
    SwapResult,
    tokens_match,
)
from .token_signer import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    Identity,
    TokenClaims,
    TokenSigner,
)
from .user_directory import InMemoryUserDirectory, UserDirectory, UserRecord, UserView

__all__ = [
    "ACCESS_TOKEN_TYPE",
    "REFRESH_TOKEN_TYPE",
    "Identity",
    "TokenClaims",
    "TokenSigner",
    "RefreshTokenStore",
    "SwapResult",
    "InMemoryRefreshTokenStore",
    "tokens_match",
    "PasswordHasher",
    "UserDirectory",
    "UserRecord",
    "UserView",
    "InMemoryUserDirectory",
]
