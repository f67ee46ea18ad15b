"""Tests for session bookkeeping, token signing and the session/token issuer."""

from datetime import timedelta

import jwt
import pytest

from otp_auth.errors import AuthError, ConfigError
from otp_auth.services.identity import Identity
from otp_auth.services.tokens import TokenSigner

TEST_SECRET = "test-secret-key-for-testing-only"


# ── Token signer ─────────────────────────────────────────

def test_sign_and_verify_roundtrip(signer):
    token = signer.sign({"sub": "7", "sid": "abc", "collection": "users"}, timedelta(hours=2))

    data = signer.verify(token)
    assert data.user_id == 7
    assert data.session_id == "abc"
    assert data.collection == "users"
    assert data.expires_at - data.issued_at == 7200


def test_missing_secret_is_a_config_error():
    with pytest.raises(ConfigError):
        TokenSigner("")


def test_tampered_token_is_rejected(signer):
    token = signer.sign({"sub": "7", "sid": "abc"}, timedelta(hours=2))
    forged = TokenSigner("another-secret").sign({"sub": "8", "sid": "abc"}, timedelta(hours=2))

    header, _, signature = token.split(".")
    tampered = ".".join([header, forged.split(".")[1], signature])

    with pytest.raises(AuthError, match="Invalid token"):
        signer.verify(forged)
    with pytest.raises(AuthError, match="Invalid token"):
        signer.verify(tampered)


def test_expired_token_is_rejected(signer):
    token = signer.sign({"sub": "7", "sid": "abc"}, timedelta(seconds=-10))

    with pytest.raises(AuthError, match="expired"):
        signer.verify(token)


def test_token_without_session_is_rejected(signer):
    token = signer.sign({"sub": "7"}, timedelta(hours=1))

    with pytest.raises(AuthError, match="session"):
        signer.verify(token)


def test_foreign_token_type_is_rejected():
    token = jwt.encode({"sub": "7", "sid": "abc", "type": "refresh", "iat": 0, "exp": 9999999999}, TEST_SECRET)

    with pytest.raises(AuthError, match="type"):
        TokenSigner(TEST_SECRET).verify(token)


def test_empty_token_is_rejected(signer):
    with pytest.raises(AuthError):
        signer.verify("")


# ── Session store ────────────────────────────────────────

def test_sessions_are_kept_in_issuance_order(session_store, clock):
    first = session_store.add_session(1)
    clock.advance(minutes=1)
    second = session_store.add_session(1)

    assert [s.id for s in session_store.list_sessions(1)] == [first.id, second.id]
    assert first.id != second.id
    assert second.expires_at == clock.now + timedelta(hours=2)


def test_expired_sessions_are_pruned_on_append(session_store, clock):
    stale = session_store.add_session(1)
    other_user = session_store.add_session(2)
    clock.advance(hours=3)

    fresh = session_store.add_session(1)

    assert [s.id for s in session_store.list_sessions(1)] == [fresh.id]
    # Pruning is per user.
    assert [s.id for s in session_store.list_sessions(2)] == [other_user.id]
    assert session_store.is_active(1, stale.id) is False


def test_is_active(session_store, clock):
    record = session_store.add_session(1)

    assert session_store.is_active(1, record.id) is True
    assert session_store.is_active(2, record.id) is False
    clock.advance(hours=2, seconds=1)
    assert session_store.is_active(1, record.id) is False


# ── Issuer ───────────────────────────────────────────────

def test_issue_binds_token_to_new_session(issuer, signer, user_store, session_store):
    user = user_store.resolve(Identity.from_fields(mobile="+15551234567"))

    issued = issuer.issue(user)
    data = signer.verify(issued.token)

    assert data.user_id == user.id
    assert data.session_id == issued.session.id
    assert data.collection == "users"
    assert data.email == "+15551234567@mobile.user"
    assert data.mobile == "+15551234567"
    assert session_store.is_active(user.id, issued.session.id) is True


def test_issue_prunes_expired_sessions(issuer, user_store, session_store, clock):
    user = user_store.resolve(Identity.from_fields(email="alice@example.com"))
    issuer.issue(user)
    clock.advance(hours=3)

    latest = issuer.issue(user)

    assert [s.id for s in session_store.list_sessions(user.id)] == [latest.session.id]
