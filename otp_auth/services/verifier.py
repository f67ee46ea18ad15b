from dataclasses import dataclass, replace
import logging
from typing import Optional

from otp_auth.database import Database
from otp_auth.errors import ValidationError
from otp_auth.services.identity import Identity
from otp_auth.services.otp import OtpRecord, OtpStore

LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True)
class VerificationResult:
    valid: bool
    record: Optional[OtpRecord] = None


class Verifier:
    def __init__(self, database: Database, store: OtpStore) -> None:
        self._database = database
        self._store = store

    def verify(self, identity: Identity, code: Optional[str]) -> VerificationResult:
        """Check ``code`` against the identity's live record and consume it.

        The lookup and the ``verified`` flip share one transaction with the
        row locked, and the flip only applies to a still-unverified row.
        """
        clean_code = (code or "").strip()
        if not clean_code:
            raise ValidationError("OTP code is required")

        with self._database.session_scope() as session:
            record = self._store.find_live(identity, clean_code, session=session, lock=True)
            if record is None:
                return VerificationResult(valid=False)
            if not self._store.mark_verified(record.id, session=session):
                LOGGER.info("OTP record %s was consumed by a concurrent login", record.id)
                return VerificationResult(valid=False)
        LOGGER.info("OTP verified for %s", identity)
        return VerificationResult(valid=True, record=replace(record, verified=True))
