from fastapi import Header, HTTPException, Request, status

from otp_auth.errors import AuthError, StorageError
from otp_auth.services.otp_service import OtpService
from otp_auth.services.sessions import SessionStore
from otp_auth.services.tokens import TokenSigner
from otp_auth.services.users import UserStore


def get_otp_service(request: Request) -> OtpService:
    return request.app.state.otp_service


def get_user_store(request: Request) -> UserStore:
    return request.app.state.user_store


def get_current_user_id(
    request: Request, authorization: str | None = Header(default=None)
) -> int:
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing Authorization header",
        )
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid Authorization header",
        )
    signer: TokenSigner = request.app.state.token_signer
    sessions: SessionStore = request.app.state.session_store
    try:
        access_data = signer.verify(token)
    except AuthError as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    try:
        active = sessions.is_active(access_data.user_id, access_data.session_id)
    except StorageError as exc:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Internal server error",
        ) from exc
    if not active:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid session token",
        )
    return access_data.user_id
