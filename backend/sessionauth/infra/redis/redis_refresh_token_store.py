# sessionauth/infra/redis/redis_refresh_token_store.py
from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import timedelta

import redis  # type: ignore[import-untyped]
from redis.client import Pipeline  # type: ignore[import-untyped]

from sessionauth.services._shared.errors import InfrastructureError
from sessionauth.services._shared.ports import Identity, RefreshTokenStore, SwapResult, tokens_match

log = logging.getLogger(__name__)

# Optimistic transactions give up after this many lost races
MAX_WATCH_RETRIES = 16


@dataclass(slots=True)
class RedisRefreshTokenStore(RefreshTokenStore):
    """
    Redis-backed refresh token store, one key per identity.

    :param r: A Redis client (already connected).
    :param prefix: Key namespace.
    """

    r: redis.Redis
    prefix: str = "rt:u:"

    # -------------------- helpers --------------------

    def _k(self, identity: Identity) -> str:
        return f"{self.prefix}{identity}"

    @staticmethod
    def _ttl_seconds(ttl: timedelta | None) -> int | None:
        if ttl is None:
            return None
        return max(1, int(ttl.total_seconds()))

    @staticmethod
    def _s(value: bytes | str | None) -> str | None:
        if value is None:
            return None
        return value.decode() if isinstance(value, bytes | bytearray) else str(value)

    # -------------------- API ------------------------

    def put(self, identity: Identity, token: str, *, ttl: timedelta | None = None) -> None:
        try:
            self.r.set(self._k(identity), token, ex=self._ttl_seconds(ttl))
        except redis.RedisError as exc:
            raise InfrastructureError("Refresh token store is unavailable.") from exc

    def get(self, identity: Identity) -> str | None:
        try:
            return self._s(self.r.get(self._k(identity)))
        except redis.RedisError as exc:
            raise InfrastructureError("Refresh token store is unavailable.") from exc

    def delete(self, identity: Identity) -> None:
        try:
            self.r.delete(self._k(identity))
        except redis.RedisError as exc:
            raise InfrastructureError("Refresh token store is unavailable.") from exc

    def delete_if(self, identity: Identity, *, expected: str) -> bool:
        """Delete the key only while it still holds ``expected`` (WATCH/MULTI/EXEC)."""
        result = self._compare_and_write(
            identity, expected, lambda p, key: p.delete(key), op="delete_if"
        )
        return result is SwapResult.OK

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

        Uses Redis WATCH/MULTI/EXEC (optimistic locking): if another writer
        touches the key between the read and the commit, the transaction is
        retried against the fresh value.
        """
        ex = self._ttl_seconds(ttl)
        return self._compare_and_write(
            identity, expected, lambda p, key: p.set(key, new, ex=ex), op="swap"
        )

    # -------------------- transactions ---------------

    def _compare_and_write(
        self,
        identity: Identity,
        expected: str,
        write: Callable[[Pipeline, str], object],
        *,
        op: str,
    ) -> SwapResult:
        """
        Run ``write`` in a transaction guarded by ``current == expected``.

        :raises InfrastructureError: If Redis fails, or the key keeps changing
            under us for ``MAX_WATCH_RETRIES`` attempts.
        """
        key = self._k(identity)
        try:
            for _ in range(MAX_WATCH_RETRIES):
                try:
                    with self.r.pipeline() as p:
                        p.watch(key)
                        current = self._s(p.get(key))
                        if current is None:
                            p.unwatch()
                            return SwapResult.NOT_FOUND
                        if not tokens_match(current, expected):
                            p.unwatch()
                            return SwapResult.MISMATCH

                        p.multi()
                        write(p, key)
                        p.execute()
                    return SwapResult.OK
                except redis.WatchError:
                    log.debug(f"refresh_store.{op}.retry", extra={"identity": identity})
        except redis.RedisError as exc:
            raise InfrastructureError("Refresh token store is unavailable.") from exc

        log.warning(f"refresh_store.{op}.contention", extra={"identity": identity})
        raise InfrastructureError("Refresh token store is too contended to commit.")
