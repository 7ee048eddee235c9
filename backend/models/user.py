"""User model definitions."""

import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from backend.auth.tokens import utcnow
from backend.database import Base


def _new_user_id() -> str:
    return uuid.uuid4().hex


class User(Base):
    """Represents an account holder and its pending verification, reset and 2FA state."""
    __tablename__ = "users"

    id = Column(String(32), primary_key=True, default=_new_user_id)
    email = Column(String(254), unique=True, index=True, nullable=False)
    name = Column(String(50), nullable=False)
    hashed_password = Column(String(128), nullable=False)

    email_verified = Column(Boolean, default=False, nullable=False)
    email_verification_token = Column(String(64), index=True)
    email_verification_expires = Column(DateTime)

    password_reset_token = Column(String(64), index=True)
    password_reset_expires = Column(DateTime)

    two_factor_enabled = Column(Boolean, default=False, nullable=False)
    two_factor_secret = Column(String(64))

    last_login = Column(DateTime)
    created_at = Column(DateTime, default=utcnow, nullable=False)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow, nullable=False)

    backup_codes = relationship(
        "BackupCode",
        back_populates="user",
        cascade="all, delete-orphan",
    )


class BackupCode(Base):
    """A single-use two-factor fallback code."""
    __tablename__ = "two_factor_backup_codes"
    __table_args__ = (UniqueConstraint("user_id", "code", name="uq_backup_code_user_code"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(String(32), ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)
    code = Column(String(16), nullable=False)

    user = relationship("User", back_populates="backup_codes")
