from sqlalchemy import Column, DateTime, ForeignKey, Integer, String

from otp_auth.database import Base


class SessionEntry(Base):
    __tablename__ = "auth_sessions"

    # Row id doubles as issuance order.
    id = Column(Integer, primary_key=True)
    sid = Column(String(36), nullable=False, unique=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    created_at = Column(DateTime(timezone=True), nullable=False)
    expires_at = Column(DateTime(timezone=True), nullable=False)
