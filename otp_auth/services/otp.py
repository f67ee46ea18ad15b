from dataclasses import dataclass
from datetime import datetime, timedelta
import logging
from typing import Optional

from sqlalchemy import delete, select, update
from sqlalchemy.orm import Session

from otp_auth.database import Database
from otp_auth.models.otp import OtpEntry
from otp_auth.services.clock import Clock, as_utc, utcnow
from otp_auth.services.identity import Identity

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class OtpRecord:
    id: int
    identity: Identity
    code: str
    created_at: datetime
    expires_at: datetime
    verified: bool

    @classmethod
    def from_entry(cls, entry: OtpEntry, identity: Identity) -> "OtpRecord":
        return cls(
            id=entry.id,
            identity=identity,
            code=entry.code,
            created_at=as_utc(entry.created_at),
            expires_at=as_utc(entry.expires_at),
            verified=bool(entry.verified),
        )


def _identity_column(identity: Identity):
    return getattr(OtpEntry, identity.field)


class OtpStore:
    """Persistence for OTP records, keyed by identity.

    Methods that take ``session`` join the caller's transaction when one is
    given and open their own otherwise.
    """

    def __init__(self, database: Database, clock: Clock = utcnow) -> None:
        self._database = database
        self._clock = clock

    def cleanup_expired(self, identity: Identity) -> int:
        now = self._clock()
        with self._database.session_scope() as session:
            result = session.execute(
                delete(OtpEntry).where(
                    _identity_column(identity) == identity.value,
                    OtpEntry.expires_at < now,
                ).execution_options(synchronize_session=False)
            )
            deleted = result.rowcount or 0
        if deleted:
            LOGGER.debug("Removed %d expired OTP record(s) for %s", deleted, identity)
        return deleted

    def create(self, identity: Identity, code: str, ttl: timedelta) -> OtpRecord:
        now = self._clock()
        column = _identity_column(identity)
        with self._database.session_scope() as session:
            # Retire any code that is still live so only the new one matches.
            session.execute(
                update(OtpEntry)
                .where(
                    column == identity.value,
                    OtpEntry.verified.is_(False),
                    OtpEntry.expires_at > now,
                )
                .values(expires_at=now, updated_at=now)
                .execution_options(synchronize_session=False)
            )
            entry = OtpEntry(
                **identity.as_fields(),
                code=code,
                verified=False,
                expires_at=now + ttl,
                created_at=now,
                updated_at=now,
            )
            session.add(entry)
            session.flush()
            return OtpRecord.from_entry(entry, identity)

    def find_live(
        self,
        identity: Identity,
        code: str,
        session: Optional[Session] = None,
        lock: bool = False,
    ) -> Optional[OtpRecord]:
        if session is None:
            with self._database.session_scope() as own_session:
                return self.find_live(identity, code, session=own_session, lock=lock)

        now = self._clock()
        stmt = (
            select(OtpEntry)
            .where(
                _identity_column(identity) == identity.value,
                OtpEntry.code == code,
                OtpEntry.verified.is_(False),
                OtpEntry.expires_at > now,
            )
            .order_by(OtpEntry.created_at, OtpEntry.id)
            .limit(1)
        )
        if lock:
            stmt = stmt.with_for_update()
        entry = session.execute(stmt).scalars().first()
        if entry is None:
            return None
        return OtpRecord.from_entry(entry, identity)

    def mark_verified(self, record_id: int, session: Optional[Session] = None) -> bool:
        """Flip ``verified`` on an unverified record.

        Returns ``True`` only for the call that performed the flip, so two
        racing verifications of one code cannot both succeed.
        """
        if session is None:
            with self._database.session_scope() as own_session:
                return self.mark_verified(record_id, session=own_session)

        result = session.execute(
            update(OtpEntry)
            .where(OtpEntry.id == record_id, OtpEntry.verified.is_(False))
            .values(verified=True, updated_at=self._clock())
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
