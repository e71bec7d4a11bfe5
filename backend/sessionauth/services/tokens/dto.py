# sessionauth/services/tokens/dto.py
from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass
from datetime import timedelta
from typing import Any

from sessionauth.services._shared.errors import InfrastructureError

# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class TokenPairOut:
    """
    Output DTO with access and refresh tokens, always issued together.

    :param access_token: Encoded access token.
    :type access_token: str
    :param refresh_token: Encoded refresh token.
    :type refresh_token: str
    :param expires_in: Seconds until the access token expires.
    :type expires_in: int
    :param token_type: Authorization scheme the access token is meant for.
    :type token_type: str
    """

    access_token: str
    refresh_token: str
    expires_in: int
    token_type: str = "bearer"


# ------------------------------ Config DTO -------------------------------- #


@dataclass(frozen=True, slots=True)
class AuthTokenConfig:
    """
    Token emission configuration.

    Access and refresh tokens are signed with independent secrets so that a
    leak of one cannot be used to forge the other.

    :param access_secret: Key for access tokens.
    :type access_secret: str | bytes
    :param refresh_secret: Key for refresh tokens.
    :type refresh_secret: str | bytes
    :param access_expires: Access token lifetime.
    :type access_expires: timedelta
    :param refresh_expires: Refresh token lifetime.
    :type refresh_expires: timedelta
    :raises InfrastructureError: If secrets are empty or identical, or a lifetime is not positive.
    """

    access_secret: str | bytes
    refresh_secret: str | bytes
    access_expires: timedelta = timedelta(minutes=15)
    refresh_expires: timedelta = timedelta(days=7)

    def __post_init__(self) -> None:
        if not self.access_secret or not self.refresh_secret:
            raise InfrastructureError("Access and refresh secrets must both be set.")
        if self.access_secret == self.refresh_secret:
            raise InfrastructureError("Access and refresh secrets must differ.")
        if self.access_expires <= timedelta(0) or self.refresh_expires <= timedelta(0):
            raise InfrastructureError("Token lifetimes must be positive.")

    @classmethod
    def from_mapping(cls, cfg: Mapping[str, Any]) -> AuthTokenConfig:
        """
        Build the configuration from a Flask-style config mapping.

        Recognized keys: ``ACCESS_TOKEN_SECRET``, ``REFRESH_TOKEN_SECRET``,
        ``ACCESS_TOKEN_TTL`` and ``REFRESH_TOKEN_TTL`` (seconds).
        """
        return cls(
            access_secret=cfg.get("ACCESS_TOKEN_SECRET", ""),
            refresh_secret=cfg.get("REFRESH_TOKEN_SECRET", ""),
            access_expires=timedelta(seconds=int(cfg.get("ACCESS_TOKEN_TTL", 900))),
            refresh_expires=timedelta(seconds=int(cfg.get("REFRESH_TOKEN_TTL", 604800))),
        )
