"""
Category persistence with a manually maintained dense ordering.

Two implementations share the CategoryStore interface: InMemoryCategoryStore
keeps records in process, SqlCategoryStore persists them through SQLAlchemy.
Both keep positions contiguous (1..N) after create, delete and reorder.
"""

import uuid
from abc import ABC, abstractmethod
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional
from sqlalchemy import func
from sqlalchemy.orm import Session
from category_admin.models.category import Category as CategoryModel
from category_admin.schemas.category import Category
import logging

logger = logging.getLogger(__name__)

# Fields a patch may touch; id, position and timestamps are store-managed
PATCHABLE_FIELDS = ("name", "description", "icon_url", "active", "content_count")


def _filter_patch(patch: Dict[str, Any]) -> Dict[str, Any]:
    return {k: v for k, v in patch.items() if k in PATCHABLE_FIELDS}


def _reordered_ids(current_ids: List[str], requested: List[str]) -> List[str]:
    """
    Merge a requested order with the current one.

    Known ids come first in the requested order; everything not mentioned
    follows in its previous relative order. Unknown and repeated ids are
    skipped, so a partial or empty request never loses a category.
    """
    known = set(current_ids)
    ordered = []
    for category_id in requested:
        if category_id in known:
            ordered.append(category_id)
            known.discard(category_id)
    return ordered + [category_id for category_id in current_ids if category_id in known]


class CategoryStore(ABC):
    """Storage capability for categories."""

    @abstractmethod
    def find_all(self) -> List[Category]:
        """All categories ordered by position ascending."""

    @abstractmethod
    def find_by_id(self, category_id: str) -> Optional[Category]:
        ...

    @abstractmethod
    def find_by_name(self, name: str) -> Optional[Category]:
        ...

    @abstractmethod
    def create(self, fields: Dict[str, Any]) -> Category:
        """Persist a new category at the end of the ordering."""

    @abstractmethod
    def update(self, category_id: str, patch: Dict[str, Any]) -> Optional[Category]:
        """Merge patch into the record; None when the id is unknown."""

    @abstractmethod
    def delete(self, category_id: str) -> bool:
        """Remove the record and renumber the rest to 1..N."""

    @abstractmethod
    def reorder(self, category_ids: List[str]) -> List[Category]:
        ...

    @abstractmethod
    def bulk_update(self, category_ids: List[str], patch: Dict[str, Any]) -> List[Category]:
        """Apply patch to every known id, skipping unknown ones."""

    def set_content_count(self, category_id: str, count: int) -> Optional[Category]:
        return self.update(category_id, {"content_count": count})


class InMemoryCategoryStore(CategoryStore):
    """Process-local store. Returns copies so callers cannot mutate state."""

    def __init__(self):
        self._items: Dict[str, Category] = {}

    def _sorted(self) -> List[Category]:
        return sorted(self._items.values(), key=lambda c: c.position)

    def find_all(self) -> List[Category]:
        return [c.model_copy() for c in self._sorted()]

    def find_by_id(self, category_id: str) -> Optional[Category]:
        item = self._items.get(category_id)
        return item.model_copy() if item else None

    def find_by_name(self, name: str) -> Optional[Category]:
        for item in self._sorted():
            if item.name == name:
                return item.model_copy()
        return None

    def create(self, fields: Dict[str, Any]) -> Category:
        now = datetime.now(timezone.utc)
        position = max((c.position for c in self._items.values()), default=0) + 1
        active = fields.get("active")
        item = Category(
            id=str(uuid.uuid4()),
            name=fields.get("name") or "Untitled",
            description=fields.get("description") or "",
            icon_url=fields.get("icon_url") or "",
            active=True if active is None else active,
            position=position,
            content_count=0,
            created_at=now,
            updated_at=now,
        )
        self._items[item.id] = item
        return item.model_copy()

    def update(self, category_id: str, patch: Dict[str, Any]) -> Optional[Category]:
        item = self._items.get(category_id)
        if not item:
            return None
        for key, value in _filter_patch(patch).items():
            setattr(item, key, value)
        item.updated_at = datetime.now(timezone.utc)
        return item.model_copy()

    def delete(self, category_id: str) -> bool:
        if category_id not in self._items:
            return False
        del self._items[category_id]
        for index, item in enumerate(self._sorted(), start=1):
            item.position = index
        return True

    def reorder(self, category_ids: List[str]) -> List[Category]:
        current_ids = [c.id for c in self._sorted()]
        for index, category_id in enumerate(
            _reordered_ids(current_ids, category_ids), start=1
        ):
            self._items[category_id].position = index
        return self.find_all()

    def bulk_update(self, category_ids: List[str], patch: Dict[str, Any]) -> List[Category]:
        updated = []
        seen = set()
        for category_id in category_ids:
            if category_id in seen:
                continue
            seen.add(category_id)
            item = self.update(category_id, patch)
            if item:
                updated.append(item)
        return updated


class SqlCategoryStore(CategoryStore):
    """SQLAlchemy-backed store. Each mutation is committed once."""

    def __init__(self, db: Session):
        self.db = db

    def _query_ordered(self):
        return self.db.query(CategoryModel).order_by(CategoryModel.position)

    def find_all(self) -> List[Category]:
        return [Category.model_validate(row) for row in self._query_ordered().all()]

    def find_by_id(self, category_id: str) -> Optional[Category]:
        row = self.db.query(CategoryModel).filter(CategoryModel.id == category_id).first()
        return Category.model_validate(row) if row else None

    def find_by_name(self, name: str) -> Optional[Category]:
        row = self.db.query(CategoryModel).filter(CategoryModel.name == name).first()
        return Category.model_validate(row) if row else None

    def create(self, fields: Dict[str, Any]) -> Category:
        max_position = self.db.query(func.max(CategoryModel.position)).scalar() or 0
        active = fields.get("active")
        row = CategoryModel(
            name=fields.get("name") or "Untitled",
            description=fields.get("description") or "",
            icon_url=fields.get("icon_url") or "",
            active=True if active is None else active,
            position=max_position + 1,
            content_count=0,
        )
        self.db.add(row)
        self.db.commit()
        self.db.refresh(row)
        return Category.model_validate(row)

    def update(self, category_id: str, patch: Dict[str, Any]) -> Optional[Category]:
        row = self.db.query(CategoryModel).filter(CategoryModel.id == category_id).first()
        if not row:
            return None
        for key, value in _filter_patch(patch).items():
            setattr(row, key, value)
        row.updated_at = datetime.now(timezone.utc)
        self.db.commit()
        self.db.refresh(row)
        return Category.model_validate(row)

    def delete(self, category_id: str) -> bool:
        deleted = (
            self.db.query(CategoryModel)
            .filter(CategoryModel.id == category_id)
            .delete(synchronize_session=False)
        )
        if not deleted:
            self.db.rollback()
            return False

        # Renumber in the same transaction as the delete
        for index, row in enumerate(self._query_ordered().all(), start=1):
            row.position = index
        self.db.commit()
        return True

    def reorder(self, category_ids: List[str]) -> List[Category]:
        rows = self._query_ordered().all()
        row_map = {row.id: row for row in rows}
        for index, category_id in enumerate(
            _reordered_ids([row.id for row in rows], category_ids), start=1
        ):
            row_map[category_id].position = index
        self.db.commit()
        return self.find_all()

    def bulk_update(self, category_ids: List[str], patch: Dict[str, Any]) -> List[Category]:
        rows = (
            self.db.query(CategoryModel)
            .filter(CategoryModel.id.in_(category_ids))
            .all()
        )
        row_map = {row.id: row for row in rows}
        now = datetime.now(timezone.utc)
        values = _filter_patch(patch)
        updated_rows = []
        for category_id in category_ids:
            row = row_map.get(category_id)
            if row is None or row in updated_rows:
                continue
            for key, value in values.items():
                setattr(row, key, value)
            row.updated_at = now
            updated_rows.append(row)
        self.db.commit()
        return [Category.model_validate(row) for row in updated_rows]
