"""Shared fixtures: in-memory database, controllable clock, wired services."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from otp_auth.database import Database
from otp_auth.services.issuer import SessionTokenIssuer
from otp_auth.services.otp import OtpStore
from otp_auth.services.otp_service import OtpConfig, OtpService
from otp_auth.services.sessions import SessionStore
from otp_auth.services.tokens import TokenSigner
from otp_auth.services.users import UserStore
from otp_auth.services.verifier import Verifier

TEST_SECRET = "test-secret-key-for-testing-only"
TOKEN_TTL_SECONDS = 7200


class FakeClock:
    """Callable clock that only moves when a test tells it to."""

    def __init__(self) -> None:
        self.now = datetime.now(timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


class RecordingNotifier:
    def __init__(self, result: bool = True) -> None:
        self.result = result
        self.sent: list[tuple[str, str]] = []

    def notify(self, identity, code: str) -> bool:
        self.sent.append((identity.value, code))
        return self.result


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def database():
    """Fresh in-memory SQLite database with all tables created."""
    db = Database("sqlite://")
    db.init_db()
    yield db
    db.drop_all()
    db.dispose()


@pytest.fixture
def otp_store(database, clock):
    return OtpStore(database, clock=clock)


@pytest.fixture
def verifier(database, otp_store):
    return Verifier(database, otp_store)


@pytest.fixture
def user_store(database, clock):
    return UserStore(database, clock=clock)


@pytest.fixture
def session_store(database, clock):
    return SessionStore(database, TOKEN_TTL_SECONDS, clock=clock)


@pytest.fixture
def signer():
    return TokenSigner(TEST_SECRET)


@pytest.fixture
def issuer(session_store, signer):
    return SessionTokenIssuer(session_store, signer, TOKEN_TTL_SECONDS)


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def make_service(otp_store, verifier, user_store, issuer, notifier):
    """Factory so tests can swap the config or the code generator."""

    def _make(config: OtpConfig | None = None, code_generator=None) -> OtpService:
        kwargs = {}
        if code_generator is not None:
            kwargs["code_generator"] = code_generator
        return OtpService(
            config=config or OtpConfig(),
            store=otp_store,
            verifier=verifier,
            users=user_store,
            issuer=issuer,
            notifier=notifier,
            **kwargs,
        )

    return _make


@pytest.fixture
def fixed_code():
    """Code generator that always yields the same code."""

    def _generate(length: int, allow_leading_zero: bool = True) -> str:
        return "483920"

    return _generate
