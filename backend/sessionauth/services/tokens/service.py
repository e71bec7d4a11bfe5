# sessionauth/services/tokens/service.py
from __future__ import annotations

import hmac
import logging

from sessionauth.services._shared.base import BaseService
from sessionauth.services._shared.errors import TokenError, UnauthorizedError
from sessionauth.services._shared.ports import (
    ACCESS_TOKEN_TYPE,
    REFRESH_TOKEN_TYPE,
    Identity,
    RefreshTokenStore,
    SwapResult,
    TokenClaims,
    TokenSigner,
)
from sessionauth.services.tokens.dto import AuthTokenConfig, TokenPairOut

log = logging.getLogger(__name__)


class TokenService(BaseService):
    """
    Token lifecycle service (issue / verify / rotate / revoke).

    Access tokens are stateless: signature and expiry are all that is checked.
    Refresh tokens are stateful: a validly-signed refresh token is accepted
    only while it is the value held by the :class:`RefreshTokenStore` for its
    identity. Issuing overwrites that value, so each identity has a single
    active session.

    Every verification failure surfaces as the same :class:`UnauthorizedError`;
    the precise reason is only written to the log.
    """

    def __init__(
        self,
        *,
        signer: TokenSigner,
        refresh_store: RefreshTokenStore,
        token_cfg: AuthTokenConfig,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param signer: Adapter signing and verifying tokens.
        :param refresh_store: Holder of the current refresh token per identity.
        :param token_cfg: Secrets and lifetimes.
        """
        super().__init__()
        self.signer = signer
        self.refresh_store = refresh_store
        self.cfg = token_cfg

    # ------------------------------------------------------------------ #
    # Issue
    # ------------------------------------------------------------------ #

    def issue(self, identity: Identity) -> TokenPairOut:
        """
        Sign a fresh token pair and make its refresh token the current one.

        Any previous session of ``identity`` is superseded.

        :param identity: Opaque user identifier.
        :returns: Access/Refresh token pair.
        """
        pair = self._sign_pair(identity)
        self.refresh_store.put(identity, pair.refresh_token, ttl=self.cfg.refresh_expires)
        log.info("tokens.issued", extra={"identity": identity})
        return pair

    # ------------------------------------------------------------------ #
    # Verification
    # ------------------------------------------------------------------ #

    def verify_access(self, token: str) -> Identity:
        """
        Verify an access token and return the identity it asserts.

        :raises UnauthorizedError: If the token is malformed, expired or mis-signed.
        """
        claims = self._decode(token, secret=self.cfg.access_secret, token_type=ACCESS_TOKEN_TYPE)
        return claims.identity

    def verify_refresh(self, token: str) -> Identity:
        """
        Verify a refresh token cryptographically, then against the store.

        A token that verifies but is not the stored value was rotated away or
        logged out, and is rejected.

        :raises UnauthorizedError: On any failure of either check.
        """
        identity = self._decode(
            token, secret=self.cfg.refresh_secret, token_type=REFRESH_TOKEN_TYPE
        ).identity

        stored = self.refresh_store.get(identity)
        if stored is None:
            raise self._rejected("not_found", identity=identity)
        if not hmac.compare_digest(stored.encode(), token.encode()):
            raise self._rejected("stale", identity=identity)
        return identity

    # ------------------------------------------------------------------ #
    # Rotation
    # ------------------------------------------------------------------ #

    def rotate(self, refresh_token: str) -> TokenPairOut:
        """
        Exchange a current refresh token for a brand-new pair.

        The store swap is a single compare-and-set: the old token stops being
        valid at the instant the new one becomes valid, and when two callers
        race with the same token only one of them wins.

        :raises UnauthorizedError: If the token is invalid or lost the race.
        """
        identity = self.verify_refresh(refresh_token)

        pair = self._sign_pair(identity)
        result = self.refresh_store.swap(
            identity,
            expected=refresh_token,
            new=pair.refresh_token,
            ttl=self.cfg.refresh_expires,
        )
        if result is not SwapResult.OK:
            reason = "stale" if result is SwapResult.MISMATCH else "not_found"
            raise self._rejected(reason, identity=identity)

        log.info("tokens.rotated", extra={"identity": identity})
        return pair

    # ------------------------------------------------------------------ #
    # Revocation
    # ------------------------------------------------------------------ #

    def revoke(self, identity: Identity, *, expected: str | None = None) -> bool:
        """
        Drop the stored refresh token of ``identity``. Idempotent.

        :param expected: When given, delete only while the stored token is
            still this one, so a session that replaced it survives.
        :returns: ``False`` when ``expected`` no longer matched (nothing removed).
        """
        if expected is None:
            self.refresh_store.delete(identity)
        elif not self.refresh_store.delete_if(identity, expected=expected):
            log.info("tokens.revoke.superseded", extra={"identity": identity})
            return False
        log.info("tokens.revoked", extra={"identity": identity})
        return True

    # ------------------------------------------------------------------ #
    # Utilities
    # ------------------------------------------------------------------ #

    def _sign_pair(self, identity: Identity) -> TokenPairOut:
        access = self.signer.sign(
            identity,
            secret=self.cfg.access_secret,
            ttl=self.cfg.access_expires,
            token_type=ACCESS_TOKEN_TYPE,
        )
        refresh = self.signer.sign(
            identity,
            secret=self.cfg.refresh_secret,
            ttl=self.cfg.refresh_expires,
            token_type=REFRESH_TOKEN_TYPE,
        )
        return TokenPairOut(
            access_token=access,
            refresh_token=refresh,
            expires_in=int(self.cfg.access_expires.total_seconds()),
        )

    def _decode(self, token: str, *, secret: str | bytes, token_type: str) -> TokenClaims:
        if not isinstance(token, str) or not token:
            raise self._rejected("malformed", token_type=token_type)
        try:
            return self.signer.verify(token, secret=secret, token_type=token_type)
        except TokenError as exc:
            raise self._rejected(exc.reason, token_type=token_type) from None

    @staticmethod
    def _rejected(reason: str, **context: object) -> UnauthorizedError:
        log.info("tokens.rejected", extra={"reason": reason, **context})
        return UnauthorizedError()
