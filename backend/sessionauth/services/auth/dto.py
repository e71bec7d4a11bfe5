# sessionauth/services/auth/dto.py
from __future__ import annotations

from dataclasses import dataclass

from sessionauth.services.tokens.dto import TokenPairOut

# ---------------------------- Input DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class LoginIn:
    """
    Input DTO for login.

    :param email: User email.
    :type email: str
    :param password: Raw password (to be verified).
    :type password: str
    """

    email: str
    password: str


@dataclass(frozen=True, slots=True)
class RegisterIn:
    """
    Input DTO for registration.

    :param email: User email (must not be on file yet).
    :type email: str
    :param password: Raw password, hashed before it reaches the directory.
    :type password: str
    :param full_name: Optional display name.
    :type full_name: str | None
    """

    email: str
    password: str
    full_name: str | None = None


@dataclass(frozen=True, slots=True)
class RefreshIn:
    """
    Input DTO for token refresh.

    :param refresh_token: Encoded refresh token.
    :type refresh_token: str
    """

    refresh_token: str


@dataclass(frozen=True, slots=True)
class LogoutIn:
    """
    Input DTO for logout.

    :param refresh_token: Encoded refresh token of the session to close.
    :type refresh_token: str
    """

    refresh_token: str


# --------------------------- Output DTOs ---------------------------------- #


@dataclass(frozen=True, slots=True)
class AlreadyExists:
    """
    Registration outcome when the email is already on file.

    Returned, not raised: callers must branch on it explicitly.

    :param email: The email that was rejected.
    :type email: str
    """

    email: str


RegistrationResult = TokenPairOut | AlreadyExists
