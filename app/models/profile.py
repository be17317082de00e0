"""
Profile model (1:1 with an identity)
"""
from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func
from app.db.base import Base


class Profile(Base):
    __tablename__ = "profiles"

    id = Column(String(36), ForeignKey("auth_users.id", ondelete="CASCADE"), primary_key=True)
    full_name = Column(String(200), nullable=True)
    avatar_url = Column(String(2048), nullable=True)
    phone = Column(String(32), nullable=True)
    updated_at = Column(DateTime(timezone=True), server_default=func.current_timestamp(), onupdate=func.current_timestamp(), nullable=False)

    user = relationship("AuthUser", back_populates="profile")
