from sqlalchemy import Boolean, Column, DateTime, Integer, String

from otp_auth.database import Base


class UserEntry(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String(255), nullable=False, unique=True)
    mobile = Column(String(32), nullable=True, unique=True)
    email_verified = Column(Boolean, nullable=False, default=False)
    mobile_verified = Column(Boolean, nullable=False, default=False)
    placeholder_credential = Column(String(128), nullable=False)
    created_at = Column(DateTime(timezone=True), nullable=False)
    updated_at = Column(DateTime(timezone=True), nullable=False)
