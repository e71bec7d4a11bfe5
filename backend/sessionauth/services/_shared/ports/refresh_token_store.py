from __future__ import annotations

import hmac
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import Enum, auto
from typing import Protocol

from sessionauth.services._shared.ports.token_signer import Identity


class SwapResult(Enum):
    """Outcome of an atomic refresh token replacement."""

    OK = auto()
    NOT_FOUND = auto()
    MISMATCH = auto()


def tokens_match(current: str, expected: str) -> bool:
    """Constant-time equality of two stored/presented refresh tokens."""
    return hmac.compare_digest(current.encode(), expected.encode())


class RefreshTokenStore(Protocol):
    """
    Stateful store holding **at most one** refresh token per identity.

    Operations on one identity are serialized; operations on different
    identities are independent. ``put`` always overwrites, ``delete`` is
    idempotent, while ``swap`` and ``delete_if`` are atomic compare-and-set
    operations against the presented token.
    """

    def put(self, identity: Identity, token: str, *, ttl: timedelta | None = None) -> None:
        """Store ``token`` as the current refresh token, replacing any previous one."""

    def get(self, identity: Identity) -> str | None:
        """Return the current refresh token, or ``None`` when absent or expired."""

    def delete(self, identity: Identity) -> None:
        """Drop the current refresh token. Deleting an absent identity is not an error."""

    def delete_if(self, identity: Identity, *, expected: str) -> bool:
        """
        Drop the current refresh token only while it still equals ``expected``.

        :returns: ``True`` when a token was removed.
        """

    def swap(
        self,
        identity: Identity,
        *,
        expected: str,
        new: str,
        ttl: timedelta | None = None,
    ) -> SwapResult:
        """
        Atomically replace ``expected`` with ``new``.

        :returns: ``SwapResult.OK`` on success, otherwise why nothing was written.
        """


@dataclass(frozen=True, slots=True)
class _Entry:
    token: str
    expires_at: datetime | None


@dataclass(slots=True)
class _KeyLock:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class InMemoryRefreshTokenStore(RefreshTokenStore):
    """
    Process-local refresh token store.

    .. note::
       Each identity gets its own lock, so concurrent rotations for one user
       are serialized while other users never wait on it. A lock only lives
       while some call holds or waits on it.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._locks: dict[str, _KeyLock] = {}
        self._locks_guard = threading.Lock()

    # ------------------------- helpers -------------------------

    @staticmethod
    def _k(identity: Identity) -> str:
        return str(identity)

    @contextmanager
    def _locked(self, key: str) -> Iterator[None]:
        with self._locks_guard:
            key_lock = self._locks.get(key)
            if key_lock is None:
                key_lock = self._locks[key] = _KeyLock()
            key_lock.holders += 1
        try:
            with key_lock.lock:
                yield
        finally:
            with self._locks_guard:
                key_lock.holders -= 1
                if key_lock.holders == 0:
                    del self._locks[key]

    @staticmethod
    def _expiry(ttl: timedelta | None) -> datetime | None:
        return datetime.now(UTC) + ttl if ttl is not None else None

    def _current(self, key: str) -> str | None:
        entry = self._entries.get(key)
        if entry is None:
            return None
        if entry.expires_at is not None and entry.expires_at <= datetime.now(UTC):
            del self._entries[key]
            return None
        return entry.token

    # -------------------------- API ----------------------------

    def put(self, identity: Identity, token: str, *, ttl: timedelta | None = None) -> None:
        key = self._k(identity)
        with self._locked(key):
            self._entries[key] = _Entry(token=token, expires_at=self._expiry(ttl))

    def get(self, identity: Identity) -> str | None:
        key = self._k(identity)
        with self._locked(key):
            return self._current(key)

    def delete(self, identity: Identity) -> None:
        key = self._k(identity)
        with self._locked(key):
            self._entries.pop(key, None)

    def delete_if(self, identity: Identity, *, expected: str) -> bool:
        key = self._k(identity)
        with self._locked(key):
            current = self._current(key)
            if current is None or not tokens_match(current, expected):
                return False
            del self._entries[key]
            return True

    def swap(
        self,
        identity: Identity,
        *,
        expected: str,
        new: str,
        ttl: timedelta | None = None,
    ) -> SwapResult:
        key = self._k(identity)
        with self._locked(key):
            current = self._current(key)
            if current is None:
                return SwapResult.NOT_FOUND
            if not tokens_match(current, expected):
                return SwapResult.MISMATCH
            self._entries[key] = _Entry(token=new, expires_at=self._expiry(ttl))
            return SwapResult.OK
