"""Tests for identity parsing and normalisation."""

import pytest

from otp_auth.errors import ValidationError
from otp_auth.services.identity import Identity


def test_email_is_trimmed_and_lowercased():
    identity = Identity.from_fields(email="  Alice@Example.COM ")
    assert identity.is_email
    assert identity.value == "alice@example.com"
    assert identity.as_fields() == {"email": "alice@example.com", "mobile": None}


def test_mobile_keeps_leading_plus_and_digits_only():
    identity = Identity.from_fields(mobile="+1 (555) 123-4567")
    assert identity.is_mobile
    assert identity.value == "+15551234567"


def test_mobile_without_plus():
    assert Identity.from_fields(mobile="555-123-4567").value == "5551234567"


def test_missing_identity_is_rejected():
    with pytest.raises(ValidationError, match="Mobile or email is required"):
        Identity.from_fields()
    with pytest.raises(ValidationError):
        Identity.from_fields(email="   ", mobile="")


def test_both_identities_are_rejected():
    with pytest.raises(ValidationError, match="not both"):
        Identity.from_fields(email="alice@example.com", mobile="+15551234567")


@pytest.mark.parametrize("email", ["alice", "@example.com", "alice@"])
def test_malformed_email_is_rejected(email):
    with pytest.raises(ValidationError):
        Identity.from_fields(email=email)


@pytest.mark.parametrize("mobile", ["12345", "+1234567890123456", "phone"])
def test_malformed_mobile_is_rejected(mobile):
    with pytest.raises(ValidationError):
        Identity.from_fields(mobile=mobile)


def test_placeholder_domain_is_not_a_login_email():
    with pytest.raises(ValidationError):
        Identity.from_fields(email="+15551234567@Mobile.User")
