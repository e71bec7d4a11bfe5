from __future__ import annotations

import itertools
import threading
from dataclasses import dataclass
from typing import Any, Protocol

from sessionauth.services._shared.errors import ConflictError
from sessionauth.services._shared.ports.token_signer import Identity


class UserRecord(Protocol):
    """Minimal view of a user the auth flows rely on."""

    @property
    def id(self) -> Identity: ...

    @property
    def email(self) -> str: ...

    @property
    def password_hash(self) -> str: ...


class UserDirectory(Protocol):
    """
    Port for user lookup and creation.

    ``find_by_email`` returns ``None`` for unknown emails instead of raising.
    ``create`` raises :class:`ConflictError` when the email is already taken.
    """

    def find_by_email(self, email: str) -> UserRecord | None: ...

    def create(self, *, email: str, password_hash: str, **fields: Any) -> UserRecord: ...


@dataclass(frozen=True, slots=True)
class UserView:
    """Plain user record returned by :class:`InMemoryUserDirectory`."""

    id: int
    email: str
    password_hash: str
    full_name: str | None = None


class InMemoryUserDirectory(UserDirectory):
    """Dictionary-backed directory used in unit tests and local wiring."""

    def __init__(self) -> None:
        self._by_email: dict[str, UserView] = {}
        self._ids = itertools.count(1)
        self._lock = threading.Lock()

    @staticmethod
    def _normalize(email: str) -> str:
        return email.strip().lower()

    def find_by_email(self, email: str) -> UserView | None:
        return self._by_email.get(self._normalize(email))

    def create(self, *, email: str, password_hash: str, **fields: Any) -> UserView:
        key = self._normalize(email)
        with self._lock:
            if key in self._by_email:
                raise ConflictError("User", "email already registered")
            user = UserView(
                id=next(self._ids),
                email=key,
                password_hash=password_hash,
                full_name=fields.get("full_name"),
            )
            self._by_email[key] = user
            return user

    def __len__(self) -> int:
        return len(self._by_email)
