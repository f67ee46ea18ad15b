from contextlib import asynccontextmanager
import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from otp_auth.config import Settings, settings
from otp_auth.database import Database
from otp_auth.routers import health, otp, users
from otp_auth.services.issuer import SessionTokenIssuer
from otp_auth.services.notifier import AfterSendHook, LoggingNotifier, Notifier
from otp_auth.services.otp import OtpStore
from otp_auth.services.otp_service import OtpConfig, OtpService
from otp_auth.services.sessions import SessionStore
from otp_auth.services.tokens import TokenSigner
from otp_auth.services.users import UserStore
from otp_auth.services.verifier import Verifier

LOGGER = logging.getLogger(__name__)


def create_app(
    app_settings: Optional[Settings] = None,
    notifier: Optional[Notifier] = None,
    after_send_hook: Optional[AfterSendHook] = None,
) -> FastAPI:
    """Build the API. Raises ``ConfigError`` when the settings are unusable.

    Run with ``uvicorn otp_auth.main:create_app --factory``.
    """
    app_settings = (app_settings or settings).validate()
    logging.basicConfig(level=app_settings.log_level)

    database = Database(app_settings.database_url, app_settings.storage_timeout_seconds)
    signer = TokenSigner(app_settings.jwt_secret, app_settings.jwt_algorithm)
    session_store = SessionStore(database, app_settings.token_expiration_seconds)
    user_store = UserStore(database)
    otp_store = OtpStore(database)
    otp_service = OtpService(
        config=OtpConfig(
            otp_length=app_settings.otp_length,
            otp_expiry_ms=app_settings.otp_expiry_ms,
            allow_leading_zero=app_settings.otp_allow_leading_zero,
            after_send_hook=after_send_hook,
        ),
        store=otp_store,
        verifier=Verifier(database, otp_store),
        users=user_store,
        issuer=SessionTokenIssuer(
            session_store, signer, app_settings.token_expiration_seconds
        ),
        notifier=notifier or LoggingNotifier(),
    )

    @asynccontextmanager
    async def lifespan(_: FastAPI):
        database.init_db()
        yield
        database.dispose()

    app = FastAPI(title="OTP Auth", lifespan=lifespan)
    app.state.settings = app_settings
    app.state.database = database
    app.state.token_signer = signer
    app.state.session_store = session_store
    app.state.user_store = user_store
    app.state.otp_service = otp_service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(app_settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(health.router, prefix="/api")
    if app_settings.otp_plugin_disabled:
        LOGGER.info("OTP routes are disabled; schema is still managed")
    else:
        app.include_router(otp.router, prefix="/api")
        app.include_router(otp.router)  # Compatibility for clients calling /otp/* without /api.
    app.include_router(users.router, prefix="/api")

    @app.get("/")
    def root():
        return {"status": "Backend running"}

    return app
