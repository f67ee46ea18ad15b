from dataclasses import dataclass
from datetime import datetime, timedelta
import uuid

from sqlalchemy import delete, select

from otp_auth.database import Database
from otp_auth.models.session import SessionEntry
from otp_auth.services.clock import Clock, as_utc, utcnow


@dataclass(frozen=True)
class SessionRecord:
    id: str
    created_at: datetime
    expires_at: datetime


def _to_record(entry: SessionEntry) -> SessionRecord:
    return SessionRecord(
        id=entry.sid,
        created_at=as_utc(entry.created_at),
        expires_at=as_utc(entry.expires_at),
    )


class SessionStore:
    def __init__(
        self, database: Database, ttl_seconds: int, clock: Clock = utcnow
    ) -> None:
        self._database = database
        self._ttl = timedelta(seconds=ttl_seconds)
        self._clock = clock

    def add_session(self, user_id: int) -> SessionRecord:
        """Prune the user's expired sessions and append a fresh one."""
        now = self._clock()
        with self._database.session_scope() as session:
            session.execute(
                delete(SessionEntry).where(
                    SessionEntry.user_id == user_id,
                    SessionEntry.expires_at <= now,
                ).execution_options(synchronize_session=False)
            )
            entry = SessionEntry(
                sid=str(uuid.uuid4()),
                user_id=user_id,
                created_at=now,
                expires_at=now + self._ttl,
            )
            session.add(entry)
            session.flush()
            return _to_record(entry)

    def list_sessions(self, user_id: int) -> list[SessionRecord]:
        with self._database.session_scope() as session:
            result = session.execute(
                select(SessionEntry)
                .where(SessionEntry.user_id == user_id)
                .order_by(SessionEntry.id)
            )
            return [_to_record(entry) for entry in result.scalars().all()]

    def is_active(self, user_id: int, sid: str) -> bool:
        now = self._clock()
        with self._database.session_scope() as session:
            entry = session.execute(
                select(SessionEntry).where(
                    SessionEntry.sid == sid,
                    SessionEntry.user_id == user_id,
                    SessionEntry.expires_at > now,
                )
            ).scalar_one_or_none()
            return entry is not None
