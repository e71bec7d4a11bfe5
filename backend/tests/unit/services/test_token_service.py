# tests/unit/services/test_token_service.py
"""
Unit tests for TokenService.

The service is wired to the real HMAC signer and the in-memory store, so
these cases cover issue/verify, rotation, revocation and the collapse of
every failure into one generic UnauthorizedError.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from datetime import timedelta

import pytest
from freezegun import freeze_time

from sessionauth.services._shared.errors import UnauthorizedError
from sessionauth.services.tokens.dto import AuthTokenConfig, TokenPairOut
from sessionauth.services.tokens.service import TokenService
from tests.helpers.utils import flip_signature_byte, not_raises

SERVICE_LOGGER = "sessionauth.services.tokens.service"


# -------------------------------- Issue ----------------------------------- #


def test_issue_returns_pair_and_stores_refresh(token_service, refresh_store):
    pair = token_service.issue(42)

    assert isinstance(pair, TokenPairOut)
    assert pair.token_type == "bearer"
    assert pair.expires_in == 15 * 60
    assert pair.access_token != pair.refresh_token
    assert refresh_store.get(42) == pair.refresh_token


def test_access_and_refresh_verify_to_same_identity(token_service):
    pair = token_service.issue(42)

    assert token_service.verify_access(pair.access_token) == 42
    assert token_service.verify_refresh(pair.refresh_token) == 42


def test_string_identity_round_trips(token_service):
    pair = token_service.issue("user-abc")
    assert token_service.verify_access(pair.access_token) == "user-abc"


def test_reissue_supersedes_previous_session(token_service):
    first = token_service.issue(1)
    second = token_service.issue(1)

    assert first.refresh_token != second.refresh_token
    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(first.refresh_token)
    assert token_service.verify_refresh(second.refresh_token) == 1


def test_sessions_of_different_identities_are_independent(token_service):
    a = token_service.issue(1)
    b = token_service.issue(2)

    token_service.revoke(1)

    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(a.refresh_token)
    assert token_service.verify_refresh(b.refresh_token) == 2


# ----------------------------- Verification ------------------------------- #


def test_tokens_are_not_interchangeable(token_service):
    pair = token_service.issue(1)

    with pytest.raises(UnauthorizedError):
        token_service.verify_access(pair.refresh_token)
    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(pair.access_token)


@pytest.mark.parametrize("bad", ["", "garbage", "a.b.c", None])
def test_malformed_tokens_are_rejected(token_service, bad):
    with pytest.raises(UnauthorizedError) as err:
        token_service.verify_access(bad)
    assert err.value.message == "Unauthorized"


def test_tampered_access_token_is_rejected(token_service):
    pair = token_service.issue(1)

    with pytest.raises(UnauthorizedError):
        token_service.verify_access(flip_signature_byte(pair.access_token))


def test_tampered_refresh_token_is_rejected(token_service):
    pair = token_service.issue(1)

    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(flip_signature_byte(pair.refresh_token, 5))


def test_token_signed_under_other_config_is_rejected(signer, refresh_store, token_service):
    other = TokenService(
        signer=signer,
        refresh_store=refresh_store,
        token_cfg=AuthTokenConfig(access_secret="other-a" * 6, refresh_secret="other-r" * 6),
    )
    pair = other.issue(1)

    with pytest.raises(UnauthorizedError):
        token_service.verify_access(pair.access_token)
    # Store holds ``pair.refresh_token`` yet the signature check fails first
    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(pair.refresh_token)


def test_access_token_expires(token_service):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        pair = token_service.issue(1)
        frozen.tick(timedelta(minutes=14))
        assert token_service.verify_access(pair.access_token) == 1

        frozen.tick(timedelta(minutes=2))
        with pytest.raises(UnauthorizedError):
            token_service.verify_access(pair.access_token)
        # the refresh token outlives the access token
        assert token_service.verify_refresh(pair.refresh_token) == 1


def test_refresh_token_expires(token_service):
    with freeze_time("2026-01-01 12:00:00") as frozen:
        pair = token_service.issue(1)
        frozen.tick(timedelta(days=7, seconds=1))

        with pytest.raises(UnauthorizedError):
            token_service.verify_refresh(pair.refresh_token)
        with pytest.raises(UnauthorizedError):
            token_service.rotate(pair.refresh_token)


def test_failures_share_one_message_and_log_reason(token_service, caplog):
    caplog.set_level(logging.INFO, logger=SERVICE_LOGGER)
    pair = token_service.issue(1)
    token_service.revoke(1)

    with pytest.raises(UnauthorizedError) as not_found:
        token_service.verify_refresh(pair.refresh_token)
    with pytest.raises(UnauthorizedError) as bad_sig:
        token_service.verify_access(flip_signature_byte(pair.access_token))

    assert str(not_found.value) == str(bad_sig.value) == "Unauthorized"
    reasons = [getattr(r, "reason", None) for r in caplog.records if r.msg == "tokens.rejected"]
    assert reasons == ["not_found", "bad_signature"]


# ------------------------------- Rotation --------------------------------- #


def test_rotate_issues_new_pair_and_invalidates_old(token_service, refresh_store):
    pair1 = token_service.issue(1)

    pair2 = token_service.rotate(pair1.refresh_token)

    assert pair2.refresh_token != pair1.refresh_token
    assert refresh_store.get(1) == pair2.refresh_token
    assert token_service.verify_access(pair2.access_token) == 1
    with pytest.raises(UnauthorizedError):
        token_service.rotate(pair1.refresh_token)


def test_sequential_rotations_kill_each_predecessor(token_service):
    pair1 = token_service.issue(1)
    pair2 = token_service.rotate(pair1.refresh_token)
    pair3 = token_service.rotate(pair2.refresh_token)

    for stale in (pair1.refresh_token, pair2.refresh_token):
        with pytest.raises(UnauthorizedError):
            token_service.verify_refresh(stale)
    assert token_service.verify_refresh(pair3.refresh_token) == 1


def test_rotate_with_access_token_fails(token_service):
    pair = token_service.issue(1)

    with pytest.raises(UnauthorizedError):
        token_service.rotate(pair.access_token)


def test_rotate_after_revoke_fails(token_service):
    pair = token_service.issue(1)
    token_service.revoke(1)

    with pytest.raises(UnauthorizedError):
        token_service.rotate(pair.refresh_token)


def test_concurrent_rotation_has_single_winner(token_service, refresh_store):
    pair = token_service.issue(1)

    def attempt(_: int) -> TokenPairOut | None:
        try:
            return token_service.rotate(pair.refresh_token)
        except UnauthorizedError:
            return None

    with ThreadPoolExecutor(max_workers=8) as pool:
        outcomes = list(pool.map(attempt, range(8)))

    winners = [o for o in outcomes if o is not None]
    assert len(winners) == 1
    assert refresh_store.get(1) == winners[0].refresh_token


# ------------------------------ Revocation -------------------------------- #


def test_revoke_is_idempotent(token_service):
    pair = token_service.issue(1)

    token_service.revoke(1)
    with not_raises(Exception):
        token_service.revoke(1)
        token_service.revoke(999)

    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(pair.refresh_token)


def test_revoke_leaves_access_token_valid_until_expiry(token_service):
    """Access tokens are stateless; revocation only ends the refresh side."""
    pair = token_service.issue(1)
    token_service.revoke(1)

    assert token_service.verify_access(pair.access_token) == 1


def test_revoke_with_expected_token_spares_a_newer_session(token_service):
    old = token_service.issue(1)
    new = token_service.rotate(old.refresh_token)

    assert token_service.revoke(1, expected=old.refresh_token) is False
    assert token_service.verify_refresh(new.refresh_token) == 1

    assert token_service.revoke(1, expected=new.refresh_token) is True
    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(new.refresh_token)


# --------------------------- Non-UTF-8 input ------------------------------ #


@pytest.mark.parametrize("bad", ["\ud800", "eyJ\udfff.e30.sig", "a.\ud800.c"])
def test_unencodable_tokens_are_rejected_as_unauthorized(token_service, bad):
    token_service.issue(1)

    with pytest.raises(UnauthorizedError):
        token_service.verify_access(bad)
    with pytest.raises(UnauthorizedError):
        token_service.verify_refresh(bad)
    with pytest.raises(UnauthorizedError):
        token_service.rotate(bad)
