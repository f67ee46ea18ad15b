import logging
import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

from otp_auth.errors import ConfigError
from otp_auth.services.codes import MAX_CODE_LENGTH

load_dotenv(override=True)


def _env_bool(name: str, default: bool = False) -> bool:
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_int(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if raw_value is None or not raw_value.strip():
        return default
    try:
        return int(raw_value)
    except ValueError as exc:
        raise ConfigError(f"{name} must be an integer") from exc


def _env_list(name: str, default: str = "") -> tuple[str, ...]:
    raw_value = os.getenv(name, default)
    return tuple(item.strip() for item in raw_value.split(",") if item.strip())


@dataclass(frozen=True)
class Settings:
    jwt_secret: str = os.getenv("JWT_SECRET", "")
    jwt_algorithm: str = os.getenv("ALGORITHM", "HS256")
    database_url: str = os.getenv("DATABASE_URL", "sqlite:///./otp_auth.db")
    otp_length: int = _env_int("OTP_LENGTH", 6)
    otp_expiry_ms: int = _env_int("OTP_EXPIRY_MS", 300000)
    otp_allow_leading_zero: bool = _env_bool("OTP_ALLOW_LEADING_ZERO", True)
    token_expiration_seconds: int = _env_int("TOKEN_EXPIRATION_SECONDS", 7200)
    storage_timeout_seconds: int = _env_int("STORAGE_TIMEOUT_SECONDS", 10)
    otp_plugin_disabled: bool = _env_bool("OTP_PLUGIN_DISABLED", False)
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()
    cors_origins: tuple[str, ...] = field(
        default_factory=lambda: _env_list(
            "CORS_ORIGINS", "http://localhost:5173,http://127.0.0.1:5173"
        )
    )

    def validate(self) -> "Settings":
        if not self.jwt_secret:
            raise ConfigError("JWT secret is not configured")
        if not self.database_url:
            raise ConfigError("DATABASE_URL is not configured")
        if not 0 < self.otp_length <= MAX_CODE_LENGTH:
            raise ConfigError(f"OTP_LENGTH must be between 1 and {MAX_CODE_LENGTH}")
        if self.otp_expiry_ms <= 0:
            raise ConfigError("OTP_EXPIRY_MS must be a positive integer")
        if self.token_expiration_seconds <= 0:
            raise ConfigError("TOKEN_EXPIRATION_SECONDS must be a positive integer")
        if self.storage_timeout_seconds <= 0:
            raise ConfigError("STORAGE_TIMEOUT_SECONDS must be a positive integer")
        if not isinstance(logging.getLevelName(self.log_level), int):
            raise ConfigError(f"LOG_LEVEL {self.log_level!r} is not a logging level")
        return self


settings = Settings()
