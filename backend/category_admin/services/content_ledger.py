"""Tracks which content items belong to which category."""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Dict, List, Optional
from sqlalchemy.orm import Session
from category_admin.models.content import Content as ContentModel
from category_admin.schemas.content import Content, ContentCreate


class ContentLedger(ABC):
    @abstractmethod
    def count_by_category(self, category_id: str) -> int:
        ...

    @abstractmethod
    def reassign_category(self, from_category_id: str, to_category_id: str) -> int:
        """Move every item of one category to another; returns how many moved."""

    @abstractmethod
    def list_by_category(self, category_id: str) -> List[Content]:
        ...

    @abstractmethod
    def add_content(self, category_id: str, data: ContentCreate) -> Content:
        ...


class InMemoryContentLedger(ContentLedger):
    def __init__(self, items: Optional[List[Content]] = None):
        self._items: Dict[str, Content] = {item.id: item for item in items or []}

    def count_by_category(self, category_id: str) -> int:
        return sum(1 for item in self._items.values() if item.category_id == category_id)

    def reassign_category(self, from_category_id: str, to_category_id: str) -> int:
        moved = 0
        now = datetime.now(timezone.utc)
        for item in self._items.values():
            if item.category_id == from_category_id:
                item.category_id = to_category_id
                item.updated_at = now
                moved += 1
        return moved

    def list_by_category(self, category_id: str) -> List[Content]:
        return [
            item.model_copy()
            for item in self._items.values()
            if item.category_id == category_id
        ]

    def add_content(self, category_id: str, data: ContentCreate) -> Content:
        now = datetime.now(timezone.utc)
        item = Content(
            id=str(uuid.uuid4()),
            category_id=category_id,
            created_at=now,
            updated_at=now,
            **data.model_dump(),
        )
        self._items[item.id] = item
        return item.model_copy()


class SqlContentLedger(ContentLedger):
    def __init__(self, db: Session):
        self.db = db

    def count_by_category(self, category_id: str) -> int:
        return (
            self.db.query(ContentModel)
            .filter(ContentModel.category_id == category_id)
            .count()
        )

    def reassign_category(self, from_category_id: str, to_category_id: str) -> int:
        # Single UPDATE statement, so the move is all-or-nothing
        moved = (
            self.db.query(ContentModel)
            .filter(ContentModel.category_id == from_category_id)
            .update(
                {
                    "category_id": to_category_id,
                    "updated_at": datetime.now(timezone.utc),
                },
                synchronize_session=False,
            )
        )
        self.db.commit()
        return moved

    def list_by_category(self, category_id: str) -> List[Content]:
        rows = (
            self.db.query(ContentModel)
            .filter(ContentModel.category_id == category_id)
            .order_by(ContentModel.created_at)
            .all()
        )
        return [Content.model_validate(row) for row in rows]

    def add_content(self, category_id: str, data: ContentCreate) -> Content:
        row = ContentModel(category_id=category_id, **data.model_dump())
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return Content.model_validate(row)
