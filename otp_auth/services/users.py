from dataclasses import dataclass
from datetime import datetime
import logging
import secrets
from typing import Optional

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from otp_auth.database import Database
from otp_auth.errors import StorageError, ValidationError
from otp_auth.models.user import UserEntry
from otp_auth.services.clock import Clock, as_utc, utcnow
from otp_auth.services.identity import MOBILE_EMAIL_DOMAIN, Identity

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class UserRecord:
    id: int
    email: str
    mobile: Optional[str]
    email_verified: bool
    mobile_verified: bool
    created_at: datetime
    updated_at: datetime


def placeholder_email(mobile: str) -> str:
    return f"{mobile}@{MOBILE_EMAIL_DOMAIN}"


def _to_record(entry: UserEntry) -> UserRecord:
    return UserRecord(
        id=entry.id,
        email=entry.email,
        mobile=entry.mobile,
        email_verified=bool(entry.email_verified),
        mobile_verified=bool(entry.mobile_verified),
        created_at=as_utc(entry.created_at),
        updated_at=as_utc(entry.updated_at),
    )


def _mark_identity_verified(entry: UserEntry, identity: Identity) -> bool:
    if identity.is_mobile and entry.mobile_verified is not True:
        entry.mobile_verified = True
        return True
    if identity.is_email and entry.email_verified is not True:
        entry.email_verified = True
        return True
    return False


class UserStore:
    """Finds or provisions the account behind a verified identity."""

    def __init__(self, database: Database, clock: Clock = utcnow) -> None:
        self._database = database
        self._clock = clock

    def resolve(self, identity: Optional[Identity]) -> UserRecord:
        if identity is None or not identity.value:
            raise ValidationError("Mobile or email is required")

        try:
            return self._find_or_create(identity)
        except StorageError as exc:
            if not isinstance(exc.__cause__, IntegrityError):
                raise
            # Another login provisioned this identity between our lookup and insert.
            LOGGER.info("User for %s was provisioned concurrently; reloading", identity)
        return self._find_or_create(identity)

    def _lookup(self, session: Session, identity: Identity) -> Optional[UserEntry]:
        column = getattr(UserEntry, identity.field)
        return session.execute(
            select(UserEntry).where(column == identity.value)
        ).scalar_one_or_none()

    def _find_or_create(self, identity: Identity) -> UserRecord:
        with self._database.session_scope() as session:
            entry = self._lookup(session, identity)
            if entry is not None:
                if _mark_identity_verified(entry, identity):
                    entry.updated_at = self._clock()
                session.flush()
                return _to_record(entry)

            now = self._clock()
            if identity.is_mobile:
                entry = UserEntry(
                    email=placeholder_email(identity.value),
                    mobile=identity.value,
                    email_verified=False,
                    mobile_verified=True,
                )
            else:
                entry = UserEntry(
                    email=identity.value,
                    mobile=None,
                    email_verified=True,
                    mobile_verified=False,
                )
            # Never handed out; the account is only reachable through OTP login.
            entry.placeholder_credential = secrets.token_urlsafe(48)
            entry.created_at = now
            entry.updated_at = now
            session.add(entry)
            session.flush()
            LOGGER.info("Provisioned user %s for %s", entry.id, identity)
            return _to_record(entry)

    def get_user(self, user_id: int) -> Optional[UserRecord]:
        with self._database.session_scope() as session:
            entry = session.get(UserEntry, user_id)
            if entry is None:
                return None
            return _to_record(entry)
