# sessionauth/services/auth/service.py
from __future__ import annotations

import logging

from sessionauth.services._shared.base import BaseService
from sessionauth.services._shared.errors import (
    ConflictError,
    InvalidInputError,
    NotFoundError,
    UnauthorizedError,
)
from sessionauth.services._shared.ports import Identity, PasswordHasher, UserDirectory
from sessionauth.services.auth.dto import (
    AlreadyExists,
    LoginIn,
    LogoutIn,
    RefreshIn,
    RegisterIn,
    RegistrationResult,
)
from sessionauth.services.credentials.verifier import CredentialVerifier
from sessionauth.services.tokens.dto import TokenPairOut
from sessionauth.services.tokens.service import TokenService

log = logging.getLogger(__name__)

BEARER_SCHEME = "Bearer"


class AuthService(BaseService):
    """
    User-facing authentication flows (login / registration / refresh / logout).

    Composes the :class:`UserDirectory` port, :class:`CredentialVerifier` and
    :class:`TokenService`. Directory calls never run under a token store lock:
    the store serializes its own writes.
    """

    def __init__(
        self,
        *,
        users: UserDirectory,
        tokens: TokenService,
        hasher: PasswordHasher,
    ) -> None:
        """
        Initialize the service with its dependencies.

        :param users: Directory used for lookup and account creation.
        :param tokens: Token lifecycle service.
        :param hasher: One-way password hash (also backs credential checks).
        """
        super().__init__()
        self.users = users
        self.tokens = tokens
        self.hasher = hasher
        self.credentials = CredentialVerifier(hasher)

    # ------------------------------------------------------------------ #
    # Login
    # ------------------------------------------------------------------ #

    def login(self, dto: LoginIn) -> TokenPairOut:
        """
        Authenticate credentials and issue a fresh token pair.

        :param dto: Login input.
        :returns: Access/Refresh token pair.
        :raises NotFoundError: If no user is registered under the email.
        :raises UnauthorizedError: If the password does not match.
        """
        user = self.users.find_by_email(dto.email)
        if user is None:
            raise NotFoundError("User", dto.email)

        if not self.credentials.verify(dto.password, user.password_hash):
            log.info("auth.login.bad_password", extra={"identity": user.id})
            raise UnauthorizedError("Incorrect password")

        return self.tokens.issue(user.id)

    # ------------------------------------------------------------------ #
    # Registration
    # ------------------------------------------------------------------ #

    def registration(self, dto: RegisterIn) -> RegistrationResult:
        """
        Create an account and open its first session.

        :param dto: Registration input.
        :returns: The new token pair, or :class:`AlreadyExists` when the email
            is taken (nothing created, no tokens issued).
        :raises InvalidInputError: If the email or password is empty.
        """
        if not dto.email or not dto.password:
            raise InvalidInputError("Email and password are required.")

        if self.users.find_by_email(dto.email) is not None:
            return AlreadyExists(email=dto.email)

        password_hash = self.hasher.hash(dto.password)
        try:
            user = self.users.create(
                email=dto.email,
                password_hash=password_hash,
                full_name=dto.full_name,
            )
        except ConflictError:
            # Lost a race with a concurrent registration of the same email
            return AlreadyExists(email=dto.email)

        log.info("auth.registered", extra={"identity": user.id})
        return self.tokens.issue(user.id)

    # ------------------------------------------------------------------ #
    # Refresh
    # ------------------------------------------------------------------ #

    def refresh_access_token(self, dto: RefreshIn) -> TokenPairOut:
        """
        Rotate the refresh token and return the new pair.

        The whole pair is returned: the presented refresh token is dead after
        this call, so the client needs the new one to renew again.

        :raises UnauthorizedError: If the refresh token is not the current one.
        """
        return self.tokens.rotate(dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Logout
    # ------------------------------------------------------------------ #

    def logout(self, dto: LogoutIn) -> None:
        """
        Close the session the refresh token belongs to.

        Always succeeds for authentication problems: an invalid, expired or
        already-rotated token means the caller is not logged in, which is the
        requested end state. Infrastructure failures still propagate.
        """
        try:
            identity = self.tokens.verify_refresh(dto.refresh_token)
        except UnauthorizedError:
            log.info("auth.logout.noop")
            return
        # A rotation may have landed since the check; only this session is ended
        self.tokens.revoke(identity, expected=dto.refresh_token)

    # ------------------------------------------------------------------ #
    # Authorization header
    # ------------------------------------------------------------------ #

    def parse_authorization_header(self, header: str | None) -> Identity:
        """
        Resolve the identity carried by an ``Authorization: Bearer <token>`` header.

        :raises UnauthorizedError: If the header is malformed or the token invalid.
        """
        parts = (header or "").split()
        if len(parts) != 2 or parts[0] != BEARER_SCHEME:
            raise UnauthorizedError("Incorrect auth headers")
        return self.tokens.verify_access(parts[1])
