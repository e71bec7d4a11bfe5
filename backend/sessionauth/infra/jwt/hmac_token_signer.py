# sessionauth/infra/jwt/hmac_token_signer.py
from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import Any
from uuid import uuid4

import jwt

from sessionauth.services._shared.errors import (
    InfrastructureError,
    TokenBadSignatureError,
    TokenExpiredError,
    TokenMalformedError,
)
from sessionauth.services._shared.ports import Identity, TokenClaims, TokenSigner

_REQUIRED_CLAIMS = ["exp", "iat", "sub", "jti"]


@dataclass(slots=True)
class HmacTokenSigner(TokenSigner):
    """
    HMAC-SHA signer producing compact JWS strings via PyJWT.

    Payload layout: ``sub`` (identity as text), ``uid`` (identity as issued),
    ``type``, ``jti``, ``iat`` and ``exp``.

    :param algorithm: One of PyJWT's HMAC algorithms.
    """

    algorithm: str = "HS256"

    def __post_init__(self) -> None:
        if self.algorithm not in {"HS256", "HS384", "HS512"}:
            raise InfrastructureError(f"Unsupported signing algorithm: {self.algorithm}")

    @staticmethod
    def _ensure_secret(secret: str | bytes) -> None:
        if not secret:
            raise InfrastructureError("Token signing secret is not configured.")

    def sign(
        self,
        identity: Identity,
        *,
        secret: str | bytes,
        ttl: timedelta,
        token_type: str,
    ) -> str:
        self._ensure_secret(secret)
        now = datetime.now(UTC)
        payload: dict[str, Any] = {
            "sub": str(identity),
            "uid": identity,
            "type": token_type,
            "jti": uuid4().hex,
            "iat": now,
            "exp": now + ttl,
        }
        return jwt.encode(payload, secret, algorithm=self.algorithm)

    def verify(self, token: str, *, secret: str | bytes, token_type: str) -> TokenClaims:
        self._ensure_secret(secret)
        try:
            payload = jwt.decode(
                token,
                secret,
                algorithms=[self.algorithm],
                options={"require": _REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as exc:
            raise TokenExpiredError(str(exc)) from exc
        except jwt.InvalidSignatureError as exc:
            raise TokenBadSignatureError(str(exc)) from exc
        except jwt.InvalidTokenError as exc:
            # DecodeError, missing claims, immature iat, wrong algorithm...
            raise TokenMalformedError(str(exc)) from exc
        except UnicodeError as exc:
            # PyJWT encodes str input to UTF-8 before parsing; lone surrogates fail there
            raise TokenMalformedError("Token is not valid UTF-8.") from exc

        if payload.get("type") != token_type:
            raise TokenMalformedError(f"Expected a {token_type} token.")
        identity = payload.get("uid")
        if not isinstance(identity, int | str) or isinstance(identity, bool):
            raise TokenMalformedError("Token subject is missing or has an unexpected type.")

        return TokenClaims(
            identity=identity,
            token_type=token_type,
            issued_at=datetime.fromtimestamp(int(payload["iat"]), tz=UTC),
            expires_at=datetime.fromtimestamp(int(payload["exp"]), tz=UTC),
            jti=str(payload["jti"]),
        )
