class OtpAuthError(Exception):
    pass


class ValidationError(OtpAuthError, ValueError):
    """Malformed or missing caller input."""


class AuthError(OtpAuthError):
    """Invalid or expired OTP, or an invalid or expired token."""


class StorageError(OtpAuthError, RuntimeError):
    """Persistence unavailable, timed out, or rejected the write."""


class ConfigError(OtpAuthError, RuntimeError):
    """Missing signing secret or malformed configuration. Fatal at startup."""
