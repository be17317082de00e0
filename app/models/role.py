"""
Role model

A role is a named bundle of default page masks.
"""
from sqlalchemy import Column, Integer, String
from sqlalchemy.orm import relationship

from app.db.base import Base


class Role(Base):
    __tablename__ = "roles"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    label = Column(String(200), nullable=False)

    page_perms = relationship("RolePagePerm", back_populates="role", cascade="all, delete-orphan")
