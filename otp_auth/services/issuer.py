from dataclasses import dataclass
from datetime import timedelta
import logging

from otp_auth.services.sessions import SessionRecord, SessionStore
from otp_auth.services.tokens import TokenSigner
from otp_auth.services.users import UserRecord

LOGGER = logging.getLogger(__name__)

USERS_COLLECTION = "users"


@dataclass(frozen=True)
class IssuedToken:
    token: str
    session: SessionRecord


class SessionTokenIssuer:
    def __init__(self, sessions: SessionStore, signer: TokenSigner, ttl_seconds: int) -> None:
        self._sessions = sessions
        self._signer = signer
        self._ttl = timedelta(seconds=ttl_seconds)

    def issue(self, user: UserRecord) -> IssuedToken:
        session = self._sessions.add_session(user.id)
        claims = {
            "sub": str(user.id),
            "collection": USERS_COLLECTION,
            "email": user.email,
            "sid": session.id,
        }
        if user.mobile:
            claims["mobile"] = user.mobile
        token = self._signer.sign(claims, self._ttl)
        LOGGER.info("Issued session %s for user %s", session.id, user.id)
        return IssuedToken(token=token, session=session)
