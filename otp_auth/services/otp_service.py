"""Send and login operations that tie the OTP lifecycle together.

Per identity the flow is ``NoCode -> CodeSent -> Verified -> Authenticated``.
``send`` (re)enters ``CodeSent``; ``login`` moves a matching live code to
``Verified`` and hands the identity on to user resolution and token issuance.
A wrong code leaves the live code untouched.
"""

from dataclasses import dataclass
from datetime import timedelta
import logging
from typing import Any, Callable, Optional

from otp_auth.errors import AuthError, ConfigError, OtpAuthError, StorageError, ValidationError
from otp_auth.services.codes import MAX_CODE_LENGTH, generate_code
from otp_auth.services.identity import Identity
from otp_auth.services.issuer import SessionTokenIssuer
from otp_auth.services.notifier import AfterSendEvent, AfterSendHook, Notifier
from otp_auth.services.otp import OtpStore
from otp_auth.services.sessions import SessionRecord
from otp_auth.services.users import UserRecord, UserStore
from otp_auth.services.verifier import Verifier

LOGGER = logging.getLogger(__name__)

SEND_SUCCESS_MESSAGE = "OTP sent successfully"
SEND_FAILURE_MESSAGE = "Failed to send OTP"
LOGIN_SUCCESS_MESSAGE = "Login successful"
LOGIN_FAILURE_MESSAGE = "Login failed"
INVALID_OTP_MESSAGE = "Invalid or expired OTP"
LOGIN_REQUIRED_MESSAGE = "Mobile/email and OTP are required"

CodeGenerator = Callable[..., str]


@dataclass(frozen=True)
class OtpConfig:
    otp_length: int = 6
    otp_expiry_ms: int = 300000
    allow_leading_zero: bool = True
    after_send_hook: Optional[AfterSendHook] = None

    def __post_init__(self) -> None:
        if not 0 < self.otp_length <= MAX_CODE_LENGTH:
            raise ConfigError(f"otp_length must be between 1 and {MAX_CODE_LENGTH}")
        if self.otp_expiry_ms <= 0:
            raise ConfigError("otp_expiry_ms must be a positive integer")

    @property
    def ttl(self) -> timedelta:
        return timedelta(milliseconds=self.otp_expiry_ms)


@dataclass(frozen=True)
class LoginData:
    token: str
    user: UserRecord
    session: SessionRecord


@dataclass(frozen=True)
class ServiceResult:
    success: bool
    message: str
    data: Any = None
    error: Optional[OtpAuthError] = None


class OtpService:
    def __init__(
        self,
        config: OtpConfig,
        store: OtpStore,
        verifier: Verifier,
        users: UserStore,
        issuer: SessionTokenIssuer,
        notifier: Optional[Notifier] = None,
        code_generator: CodeGenerator = generate_code,
    ) -> None:
        self.config = config
        self._store = store
        self._verifier = verifier
        self._users = users
        self._issuer = issuer
        self._notifier = notifier
        self._generate_code = code_generator

    def send(self, email: Optional[str] = None, mobile: Optional[str] = None) -> ServiceResult:
        try:
            identity = Identity.from_fields(email=email, mobile=mobile)
        except ValidationError as exc:
            return ServiceResult(success=False, message=str(exc), error=exc)

        try:
            self._store.cleanup_expired(identity)
            code = self._generate_code(
                self.config.otp_length,
                allow_leading_zero=self.config.allow_leading_zero,
            )
            record = self._store.create(identity, code, self.config.ttl)
        except StorageError:
            LOGGER.exception("Storage failure while sending OTP to %s", identity)
            return ServiceResult(
                success=False,
                message=SEND_FAILURE_MESSAGE,
                error=StorageError(SEND_FAILURE_MESSAGE),
            )

        self._run_after_send_hook(AfterSendEvent(code=code, identity=identity, record=record))
        self._deliver(identity, code)
        return ServiceResult(success=True, message=SEND_SUCCESS_MESSAGE)

    def login(
        self,
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        code: Optional[str] = None,
    ) -> ServiceResult:
        if not (email or mobile) or not (code or "").strip():
            error = ValidationError(LOGIN_REQUIRED_MESSAGE)
            return ServiceResult(success=False, message=str(error), error=error)
        try:
            identity = Identity.from_fields(email=email, mobile=mobile)
            verification = self._verifier.verify(identity, code)
            if not verification.valid:
                error = AuthError(INVALID_OTP_MESSAGE)
                return ServiceResult(success=False, message=str(error), error=error)
            user = self._users.resolve(identity)
            issued = self._issuer.issue(user)
        except ValidationError as exc:
            return ServiceResult(success=False, message=str(exc), error=exc)
        except StorageError:
            LOGGER.exception("Storage failure during OTP login for %s", email or mobile)
            return ServiceResult(
                success=False,
                message=LOGIN_FAILURE_MESSAGE,
                error=StorageError(LOGIN_FAILURE_MESSAGE),
            )

        return ServiceResult(
            success=True,
            message=LOGIN_SUCCESS_MESSAGE,
            data=LoginData(token=issued.token, user=user, session=issued.session),
        )

    def login_with_mobile(
        self,
        email: Optional[str] = None,
        mobile: Optional[str] = None,
        code: Optional[str] = None,
    ) -> dict[str, Any]:
        """Flat result shape kept for older clients."""
        result = self.login(email=email, mobile=mobile, code=code)
        return {
            "success": result.success,
            "token": result.data.token if result.data else None,
            "user": result.data.user if result.data else None,
            "message": result.message,
        }

    def _run_after_send_hook(self, event: AfterSendEvent) -> None:
        hook = self.config.after_send_hook
        if hook is None:
            return
        try:
            hook(event)
        except Exception:
            LOGGER.exception("after_send_hook failed for %s", event.identity)

    def _deliver(self, identity: Identity, code: str) -> None:
        if self._notifier is None:
            return
        try:
            delivered = self._notifier.notify(identity, code)
        except Exception:
            LOGGER.exception("Notifier raised while delivering OTP to %s", identity)
            return
        if not delivered:
            LOGGER.warning("Notifier reported failed OTP delivery to %s", identity)
