from dataclasses import dataclass
import re
from typing import Optional

from otp_auth.errors import ValidationError

EMAIL = "email"
MOBILE = "mobile"

# Placeholder addresses for mobile-only accounts live here; no real mailbox does.
MOBILE_EMAIL_DOMAIN = "mobile.user"


def normalize_email(email: str) -> str:
    return email.strip().lower()


def normalize_mobile(mobile: str) -> str:
    cleaned = mobile.strip()
    digits = re.sub(r"\D", "", cleaned)
    if cleaned.startswith("+"):
        return f"+{digits}"
    return digits


@dataclass(frozen=True)
class Identity:
    """The email address or mobile number a code is issued against."""

    field: str
    value: str

    @classmethod
    def from_fields(
        cls, email: Optional[str] = None, mobile: Optional[str] = None
    ) -> "Identity":
        email = (email or "").strip()
        mobile = (mobile or "").strip()
        if email and mobile:
            raise ValidationError("Provide either mobile or email, not both")
        if email:
            normalized = normalize_email(email)
            local, _, domain = normalized.partition("@")
            if not local or not domain or domain == MOBILE_EMAIL_DOMAIN:
                raise ValidationError("Email address is invalid")
            return cls(field=EMAIL, value=normalized)
        if mobile:
            normalized = normalize_mobile(mobile)
            digit_count = len(normalized.lstrip("+"))
            if digit_count < 7 or digit_count > 15:
                raise ValidationError("Mobile number must contain 7 to 15 digits")
            return cls(field=MOBILE, value=normalized)
        raise ValidationError("Mobile or email is required")

    @property
    def is_email(self) -> bool:
        return self.field == EMAIL

    @property
    def is_mobile(self) -> bool:
        return self.field == MOBILE

    def as_fields(self) -> dict[str, Optional[str]]:
        return {
            EMAIL: self.value if self.is_email else None,
            MOBILE: self.value if self.is_mobile else None,
        }

    def __str__(self) -> str:
        return self.value
