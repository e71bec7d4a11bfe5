from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Protocol

Identity = int | str

ACCESS_TOKEN_TYPE = "access"
REFRESH_TOKEN_TYPE = "refresh"


@dataclass(frozen=True, slots=True)
class TokenClaims:
    """
    Verified content of a signed token.

    :ivar identity: Opaque user identifier the token asserts.
    :ivar token_type: ``"access"`` or ``"refresh"``.
    :ivar issued_at: Issuance instant (UTC).
    :ivar expires_at: Absolute expiration (UTC).
    :ivar jti: Random token identifier, unique per issued token.
    """

    identity: Identity
    token_type: str
    issued_at: datetime
    expires_at: datetime
    jti: str


class TokenSigner(Protocol):
    """
    Port for signing and verifying compact token payloads with a symmetric secret.

    Implementations are pure: output depends only on the inputs and the wall clock.
    ``verify`` raises a :class:`~sessionauth.services._shared.errors.TokenError`
    subclass (expired, malformed, bad signature) on failure.
    """

    def sign(
        self,
        identity: Identity,
        *,
        secret: str | bytes,
        ttl: timedelta,
        token_type: str,
    ) -> str: ...

    def verify(self, token: str, *, secret: str | bytes, token_type: str) -> TokenClaims: ...
