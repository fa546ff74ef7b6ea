from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean, Index
from sqlalchemy.orm import relationship
from datetime import datetime, timezone
import uuid
from category_admin.core.database import Base


def _utcnow():
    return datetime.now(timezone.utc)


def _new_id():
    return str(uuid.uuid4())


class Category(Base):
    __tablename__ = "categories"
    __table_args__ = (Index("ix_categories_active_position", "active", "position"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    name = Column(String(255), nullable=False, unique=True)
    description = Column(Text, nullable=True)
    icon_url = Column(String(500), nullable=True)
    active = Column(Boolean, default=True, nullable=False)
    # Dense 1-based display order, kept contiguous by the store
    position = Column(Integer, default=0, nullable=False)
    # Derived from content, refreshed on reassignment and reconciliation
    content_count = Column(Integer, default=0, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    content = relationship("Content", back_populates="category")
