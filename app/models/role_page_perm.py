"""
Role default mask for a page
"""
from sqlalchemy import Column, Integer, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class RolePagePerm(Base):
    __tablename__ = "role_page_perms"
    __table_args__ = (
        UniqueConstraint("role_id", "page_id", name="uq_role_page_perms_role_page"),
        CheckConstraint("perms_mask >= 0 AND perms_mask <= 15", name="ck_role_page_perms_mask"),
    )

    id = Column(Integer, primary_key=True, index=True)
    role_id = Column(Integer, ForeignKey("roles.id", ondelete="CASCADE"), nullable=False, index=True)
    page_id = Column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    perms_mask = Column(Integer, nullable=False, default=0)

    role = relationship("Role", back_populates="page_perms")
    page = relationship("Page")
