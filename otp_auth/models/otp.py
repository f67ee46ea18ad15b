from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String

from otp_auth.database import Base
from otp_auth.services.codes import MAX_CODE_LENGTH


class OtpEntry(Base):
    __tablename__ = "otp_codes"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=True)
    mobile = Column(String(32), nullable=True)
    code = Column(String(MAX_CODE_LENGTH), nullable=False)
    verified = Column(Boolean, nullable=False, default=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        Index("ix_otp_email_expires_at", "email", "expires_at"),
        Index("ix_otp_mobile_expires_at", "mobile", "expires_at"),
    )
