"""
Identity store model

Users are owned by the identity system; this service creates and lists them
but never issues their tokens.
"""
import uuid

from sqlalchemy import Column, String, DateTime
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


def _new_user_id() -> str:
    return str(uuid.uuid4())


class AuthUser(Base):
    __tablename__ = "auth_users"

    id = Column(String(36), primary_key=True, default=_new_user_id)
    email = Column(String(320), unique=True, nullable=False, index=True)
    password_hash = Column(String, nullable=True)
    email_confirmed_at = Column(DateTime(timezone=True), nullable=True)
    last_sign_in_at = Column(DateTime(timezone=True), nullable=True)
    created_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), nullable=False)

    # Relationships
    profile = relationship("Profile", back_populates="user", uselist=False, cascade="all, delete-orphan")
