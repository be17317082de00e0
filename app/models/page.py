"""
Page model

Pages are the unit of access control and do not nest.
"""
from sqlalchemy import Column, Integer, String

from app.db.base import Base


class Page(Base):
    __tablename__ = "pages"

    id = Column(Integer, primary_key=True, index=True)
    slug = Column(String(64), unique=True, nullable=False, index=True)
    label = Column(String(200), nullable=False)
