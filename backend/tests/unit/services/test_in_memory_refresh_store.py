# tests/unit/services/test_in_memory_refresh_store.py
"""Unit tests for the process-local refresh token store."""

from __future__ import annotations

import threading
from datetime import timedelta

from freezegun import freeze_time

from sessionauth.services._shared.ports import InMemoryRefreshTokenStore, SwapResult
from tests.helpers.utils import not_raises


def test_put_then_get(refresh_store):
    refresh_store.put(1, "tok")
    assert refresh_store.get(1) == "tok"


def test_put_overwrites(refresh_store):
    refresh_store.put(1, "first")
    refresh_store.put(1, "second")
    assert refresh_store.get(1) == "second"


def test_int_and_str_identities_share_a_key(refresh_store):
    """Identities are keyed by their text form."""
    refresh_store.put(7, "tok")
    assert refresh_store.get("7") == "tok"


def test_delete_is_idempotent(refresh_store):
    refresh_store.put(1, "tok")
    refresh_store.delete(1)
    with not_raises(Exception):
        refresh_store.delete(1)
        refresh_store.delete("never-stored")
    assert refresh_store.get(1) is None


def test_swap_outcomes(refresh_store):
    assert refresh_store.swap(1, expected="a", new="b") is SwapResult.NOT_FOUND

    refresh_store.put(1, "a")
    assert refresh_store.swap(1, expected="x", new="b") is SwapResult.MISMATCH
    assert refresh_store.get(1) == "a"

    assert refresh_store.swap(1, expected="a", new="b") is SwapResult.OK
    assert refresh_store.get(1) == "b"


def test_entries_expire_after_ttl(refresh_store):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        refresh_store.put(1, "tok", ttl=timedelta(minutes=5))
        frozen.tick(timedelta(minutes=4))
        assert refresh_store.get(1) == "tok"

        frozen.tick(timedelta(minutes=2))
        assert refresh_store.get(1) is None
        assert refresh_store.swap(1, expected="tok", new="other") is SwapResult.NOT_FOUND


def test_swap_refreshes_ttl(refresh_store):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        refresh_store.put(1, "a", ttl=timedelta(minutes=5))
        frozen.tick(timedelta(minutes=4))
        refresh_store.swap(1, expected="a", new="b", ttl=timedelta(minutes=5))

        frozen.tick(timedelta(minutes=4))
        assert refresh_store.get(1) == "b"


def test_concurrent_swaps_have_a_single_winner():
    store = InMemoryRefreshTokenStore()
    store.put(1, "old")
    barrier = threading.Barrier(8)
    results: list[SwapResult] = []
    results_lock = threading.Lock()

    def worker(n: int) -> None:
        barrier.wait()
        res = store.swap(1, expected="old", new=f"new-{n}")
        with results_lock:
            results.append(res)

    threads = [threading.Thread(target=worker, args=(n,)) for n in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert results.count(SwapResult.OK) == 1
    assert results.count(SwapResult.MISMATCH) == 7
    assert store.get(1).startswith("new-")


def test_lock_on_one_identity_does_not_block_another():
    store = InMemoryRefreshTokenStore()
    store.put(1, "a")
    store.put(2, "b")

    with store._locked("1"):
        # identity 2 has its own lock; this would deadlock otherwise
        done = threading.Event()

        def other() -> None:
            store.put(2, "c")
            done.set()

        t = threading.Thread(target=other)
        t.start()
        assert done.wait(timeout=2)
        t.join()

    assert store.get(2) == "c"
    assert store.get(1) == "a"


def test_delete_if_only_removes_the_expected_token(refresh_store):
    refresh_store.put(1, "current")

    assert refresh_store.delete_if(1, expected="stale") is False
    assert refresh_store.get(1) == "current"

    assert refresh_store.delete_if(1, expected="current") is True
    assert refresh_store.get(1) is None
    assert refresh_store.delete_if(1, expected="current") is False


def test_delete_if_ignores_expired_entries(refresh_store):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        refresh_store.put(1, "tok", ttl=timedelta(minutes=1))
        frozen.tick(timedelta(minutes=2))

        assert refresh_store.delete_if(1, expected="tok") is False


def test_locks_do_not_outlive_the_calls_holding_them():
    store = InMemoryRefreshTokenStore()

    for n in range(10_000):
        store.put(n, "tok")
        store.get(n)
        store.swap(n, expected="tok", new="tok-2")
        store.delete_if(n, expected="other")
        store.delete(n)

    assert store._entries == {}
    assert store._locks == {}


def test_lock_is_shared_while_held():
    store = InMemoryRefreshTokenStore()

    with store._locked("1"):
        assert store._locks["1"].holders == 1
    assert "1" not in store._locks
