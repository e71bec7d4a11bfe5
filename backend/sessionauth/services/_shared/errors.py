"""
Domain-level exceptions used within the service layer.

These exceptions are **framework-agnostic** and should never import or depend
on Flask or HTTP directly. They serve as stable contracts between persistence
adapters, the token machinery and application services.

The translation to HTTP responses (RFC 7807) is handled by
``sessionauth/core/errors.py`` via ``BaseService.translate_exceptions()``.
"""

from __future__ import annotations

from dataclasses import dataclass

from sqlalchemy.exc import IntegrityError


def violates(exc: IntegrityError, constraint_name: str, *, column: str | None = None) -> bool:
    """
    Check whether an IntegrityError originates from a specific constraint.

    Supports PostgreSQL (constraint name lookup) and SQLite
    (``UNIQUE constraint failed: <table>.<column>``).

    Parameters
    ----------
    exc : IntegrityError
        The exception raised by SQLAlchemy during flush/commit.
    constraint_name : str
        The name of the database constraint to match (e.g., 'uq_users_email').
    column : str | None
        Qualified column (e.g., 'users.email') matched when the dialect does
        not report constraint names.

    Returns
    -------
    bool
        True if the IntegrityError matches the given constraint.
    """
    message = str(exc.orig).lower() if exc.orig else ""
    if constraint_name.lower() in message:
        return True
    return column is not None and column.lower() in message


# --------------------------------------------------------------------------- #
# Base types
# --------------------------------------------------------------------------- #


class ServiceError(Exception):
    """
    Base class for all service-level errors.

    Notes
    -----
    - These are *not* HTTP errors.
    - The API layer translates them to APIError.
    """

    pass


# --------------------------------------------------------------------------- #
# Specific domain-level errors
# --------------------------------------------------------------------------- #


@dataclass(slots=True)
class NotFoundError(ServiceError):
    """
    Raised when an entity is not found in the directory.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param key: Identifier or search key.
    :type key: str | int
    """

    entity: str
    key: str | int

    def __str__(self) -> str:
        return f"There is no {self.entity.lower()} under this key {self.key}"


@dataclass(slots=True)
class ConflictError(ServiceError):
    """
    Raised when a unique constraint or business rule conflict occurs.

    :param entity: Entity name (e.g., "User").
    :type entity: str
    :param detail: Short human-readable explanation.
    :type detail: str
    """

    entity: str
    detail: str

    def __str__(self) -> str:
        return f"Conflict on {self.entity}: {self.detail}"


class UnauthorizedError(ServiceError):
    """
    Raised when authentication fails.

    The message is deliberately generic for token failures; callers must not
    be able to tell an expired token from a forged one.
    """

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(message)
        self.message = message


class InvalidInputError(ServiceError):
    """Raised when a service is called with input it cannot act on."""


class InfrastructureError(ServiceError):
    """
    Raised when a collaborator is unavailable or misconfigured
    (store unreachable, signing secrets invalid).

    Never suppressed by the auth flows, including logout.
    """


# --------------------------------------------------------------------------- #
# Token diagnosis (internal to the token machinery)
# --------------------------------------------------------------------------- #


class TokenError(Exception):
    """Base class for signer-level verification failures."""

    reason = "invalid"


class TokenExpiredError(TokenError):
    """The token carried a valid signature but its ``exp`` has passed."""

    reason = "expired"


class TokenMalformedError(TokenError):
    """The token could not be parsed or carried unexpected claims."""

    reason = "malformed"


class TokenBadSignatureError(TokenError):
    """The signature does not match the payload under the given secret."""

    reason = "bad_signature"
