"""Out-of-band delivery of generated codes.

Delivery itself (SMS gateways, mail providers) lives outside this package.
Anything with a ``notify(identity, code) -> bool`` method can be plugged into
:class:`otp_auth.services.otp_service.OtpService`.
"""

from dataclasses import dataclass
import logging
from typing import Callable, Protocol

from otp_auth.services.identity import Identity
from otp_auth.services.otp import OtpRecord

LOGGER = logging.getLogger(__name__)


class Notifier(Protocol):
    def notify(self, identity: Identity, code: str) -> bool:
        ...


@dataclass(frozen=True)
class AfterSendEvent:
    code: str
    identity: Identity
    record: OtpRecord


AfterSendHook = Callable[[AfterSendEvent], None]


class LoggingNotifier:
    """Writes the code to the log instead of delivering it. For development."""

    def notify(self, identity: Identity, code: str) -> bool:
        LOGGER.debug("OTP for %s: %s", identity, code)
        return True
