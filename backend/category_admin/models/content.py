from sqlalchemy import Column, String, Text, DateTime, Boolean, ForeignKey, Index
from sqlalchemy.orm import relationship
from category_admin.core.database import Base
from category_admin.models.category import _new_id, _utcnow


class Content(Base):
    __tablename__ = "content"
    __table_args__ = (Index("ix_content_category_active", "category_id", "active"),)

    id = Column(String(36), primary_key=True, default=_new_id)
    category_id = Column(
        String(36),
        ForeignKey("categories.id", ondelete="RESTRICT", onupdate="CASCADE"),
        nullable=False,
    )
    title = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    content_type = Column(String(20), default="article", nullable=False)
    active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime, default=_utcnow)
    updated_at = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    # Relationships
    category = relationship("Category", back_populates="content")
