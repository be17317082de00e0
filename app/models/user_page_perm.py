"""
Per-user page override

A row here fully replaces the role default for that page, including a row
whose mask is 0.
"""
from sqlalchemy import Column, Integer, String, ForeignKey, CheckConstraint, UniqueConstraint
from sqlalchemy.orm import relationship

from app.db.base import Base


class UserPagePerm(Base):
    __tablename__ = "user_page_perms"
    __table_args__ = (
        UniqueConstraint("user_id", "page_id", name="uq_user_page_perms_user_page"),
        CheckConstraint("perms_mask >= 0 AND perms_mask <= 15", name="ck_user_page_perms_mask"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(String(36), ForeignKey("auth_users.id", ondelete="CASCADE"), nullable=False, index=True)
    page_id = Column(Integer, ForeignKey("pages.id", ondelete="CASCADE"), nullable=False, index=True)
    perms_mask = Column(Integer, nullable=False)

    page = relationship("Page")
