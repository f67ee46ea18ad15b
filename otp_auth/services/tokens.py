from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Optional

import jwt

from otp_auth.errors import AuthError, ConfigError
from otp_auth.services.clock import Clock, utcnow

ACCESS_TOKEN_TYPE = "access"


@dataclass(frozen=True)
class AccessTokenData:
    user_id: int
    session_id: str
    collection: str
    email: Optional[str]
    mobile: Optional[str]
    issued_at: int
    expires_at: int


class TokenSigner:
    """HS256 signing and verification of access tokens with PyJWT."""

    def __init__(self, secret: str, algorithm: str = "HS256", clock: Clock = utcnow) -> None:
        if not secret:
            raise ConfigError("JWT secret is not configured")
        self._secret = secret
        self._algorithm = algorithm
        self._clock = clock

    def sign(self, claims: dict[str, Any], ttl: timedelta) -> str:
        now = self._clock()
        payload = {
            **claims,
            "type": ACCESS_TOKEN_TYPE,
            "iat": int(now.timestamp()),
            "exp": int((now + ttl).timestamp()),
        }
        return jwt.encode(payload, self._secret, algorithm=self._algorithm)

    def verify(self, token: str) -> AccessTokenData:
        payload = self._decode(token)
        session_id = payload.get("sid")
        if not session_id:
            raise AuthError("Access token is missing session id")
        return AccessTokenData(
            user_id=_parse_subject(payload),
            session_id=session_id,
            collection=payload.get("collection", ""),
            email=payload.get("email"),
            mobile=payload.get("mobile"),
            issued_at=int(payload["iat"]),
            expires_at=int(payload["exp"]),
        )

    def _decode(self, token: str) -> dict:
        if not token:
            raise AuthError("Token is missing")
        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={"require": ["exp", "iat", "sub"]},
            )
        except jwt.ExpiredSignatureError as exc:
            raise AuthError("Token has expired") from exc
        except jwt.InvalidTokenError as exc:
            raise AuthError("Invalid token") from exc
        if payload.get("type") != ACCESS_TOKEN_TYPE:
            raise AuthError("Invalid token type")
        return payload


def _parse_subject(payload: dict) -> int:
    subject = payload.get("sub")
    if not subject:
        raise AuthError("Token subject is missing")
    try:
        return int(subject)
    except (TypeError, ValueError) as exc:
        raise AuthError("Invalid token subject") from exc
