"""
Category use cases.

Each operation sequences the store mutation, content reassignment, cache
invalidation and change notification for one admin action. Unknown ids are
reported as None (no event, no cache access); validation problems raise
CategoryValidationError before anything is written.
"""

from typing import Any, Dict, List, Optional
from category_admin.core.config import settings
from category_admin.core.exceptions import CategoryValidationError, CategoryDeleteFailed
from category_admin.core.logging_config import log_audit_event
from category_admin.schemas.category import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategoryDeleteResult,
)
from category_admin.schemas.content import Content, ContentCreate
from category_admin.schemas.events import (
    CategoryCreatedEvent,
    CategoryUpdatedEvent,
    CategoryDeletedEvent,
    CategoryEnabledEvent,
    CategoryDisabledEvent,
    CategoriesReorderedEvent,
    CategoriesBulkToggledEvent,
)
from category_admin.services.cache import CacheFront, CacheKeys, category_invalidation_keys
from category_admin.services.category_store import CategoryStore
from category_admin.services.content_ledger import ContentLedger
from category_admin.services.notifications import NotificationBus
import logging

logger = logging.getLogger(__name__)

UNCATEGORIZED_NAME = "Uncategorized"
UNCATEGORIZED_DESCRIPTION = "Auto-created"


class CategoryService:
    def __init__(
        self,
        store: CategoryStore,
        ledger: ContentLedger,
        cache: CacheFront,
        bus: NotificationBus,
    ):
        self.store = store
        self.ledger = ledger
        self.cache = cache
        self.bus = bus

    # Helpers

    def _with_count(self, category: Category) -> Category:
        category.content_count = self.ledger.count_by_category(category.id)
        return category

    def _clean_name(self, name: Optional[str], exclude_id: Optional[str] = None) -> str:
        cleaned = (name or "").strip()
        if not cleaned:
            raise CategoryValidationError("Name is required")
        existing = self.store.find_by_name(cleaned)
        if existing and existing.id != exclude_id:
            raise CategoryValidationError(f"Category named '{cleaned}' already exists")
        return cleaned

    async def _invalidate(self, *category_ids: Optional[str]) -> None:
        keys: List[str] = []
        for category_id in category_ids or (None,):
            keys.extend(category_invalidation_keys(category_id))
        await self.cache.delete_many(keys)
        # Names, descriptions and flags all feed search results
        await self.cache.clear_namespace(CacheKeys.SEARCH_NAMESPACE)

    # Reads

    async def list_categories(self) -> List[Category]:
        cached = await self.cache.get(CacheKeys.CATEGORY_ALL)
        if cached:
            return [Category.model_validate(item) for item in cached]

        categories = [self._with_count(c) for c in self.store.find_all()]
        await self.cache.set(
            CacheKeys.CATEGORY_ALL,
            [c.model_dump(mode="json") for c in categories],
            settings.CACHE_TTL_LONG,
        )
        return categories

    async def get_category(self, category_id: str) -> Optional[Category]:
        key = CacheKeys.category_by_id(category_id)
        cached = await self.cache.get(key)
        if cached:
            return Category.model_validate(cached)

        category = self.store.find_by_id(category_id)
        if not category:
            return None
        category = self._with_count(category)
        await self.cache.set(key, category.model_dump(mode="json"), settings.CACHE_TTL_LONG)
        return category

    async def search_categories(self, query: str) -> List[Category]:
        """Case-insensitive substring match on name and description."""
        term = (query or "").strip().lower()
        if not term:
            return await self.list_categories()

        async def compute():
            matches = [
                self._with_count(c)
                for c in self.store.find_all()
                if term in c.name.lower() or term in (c.description or "").lower()
            ]
            return [c.model_dump(mode="json") for c in matches]

        results = await self.cache.get_or_set(
            CacheKeys.search_results(term), compute, settings.CACHE_TTL_SHORT
        )
        return [Category.model_validate(item) for item in results]

    # Mutations

    async def create_category(self, data: CategoryCreate) -> Category:
        name = self._clean_name(data.name)
        category = self.store.create(
            {
                "name": name,
                "description": data.description,
                "icon_url": data.icon_url,
                "active": data.active,
            }
        )
        category.content_count = 0

        await self._invalidate()
        self.bus.publish(CategoryCreatedEvent(category=category))
        log_audit_event(
            "category.created",
            f"Category '{category.name}' created at position {category.position}",
            category_id=category.id,
        )
        return category

    async def update_category(
        self, category_id: str, data: CategoryUpdate
    ) -> Optional[Category]:
        current = self.store.find_by_id(category_id)
        if not current:
            return None

        # Only fields the caller actually sent; None means "not provided"
        patch: Dict[str, Any] = {
            key: value
            for key, value in data.model_dump(exclude_unset=True).items()
            if value is not None
        }
        if "name" in patch:
            patch["name"] = self._clean_name(patch["name"], exclude_id=category_id)

        updated = self.store.update(category_id, patch)
        if not updated:
            return None
        updated = self._with_count(updated)

        await self._invalidate(category_id)
        self.bus.publish(CategoryUpdatedEvent(category=updated))
        log_audit_event(
            "category.updated",
            f"Category '{updated.name}' updated",
            category_id=category_id,
            fields=sorted(patch),
        )
        return updated

    async def _resolve_reassign_target(
        self, category_id: str, reassign_to: Optional[str]
    ) -> str:
        if reassign_to:
            if reassign_to == category_id:
                raise CategoryValidationError("Cannot reassign content to the category being deleted")
            if not self.store.find_by_id(reassign_to):
                raise CategoryValidationError(f"Reassignment target {reassign_to} not found")
            return reassign_to

        existing = self.store.find_by_name(UNCATEGORIZED_NAME)
        if existing:
            if existing.id == category_id:
                raise CategoryValidationError(
                    f"Deleting '{UNCATEGORIZED_NAME}' requires an explicit reassignment target"
                )
            return existing.id

        created = self.store.create(
            {"name": UNCATEGORIZED_NAME, "description": UNCATEGORIZED_DESCRIPTION}
        )
        logger.info(f"Created '{UNCATEGORIZED_NAME}' category {created.id} for reassignment")
        self.bus.publish(CategoryCreatedEvent(category=created))
        return created.id

    async def delete_category(
        self, category_id: str, reassign_to: Optional[str] = None
    ) -> Optional[CategoryDeleteResult]:
        current = self.store.find_by_id(category_id)
        if not current:
            return None

        target_id = await self._resolve_reassign_target(category_id, reassign_to)

        moved = self.ledger.reassign_category(category_id, target_id)
        self.store.set_content_count(target_id, self.ledger.count_by_category(target_id))

        try:
            if not self.store.delete(category_id):
                raise CategoryDeleteFailed(category_id)
        finally:
            # Later positions shift on success; on failure the target may be
            # new and the content already moved
            await self._invalidate(category_id, target_id)
            await self.cache.clear_namespace(CacheKeys.CATEGORY_NAMESPACE)

        self.bus.publish(
            CategoryDeletedEvent(category_id=category_id, reassigned_to=target_id, moved=moved)
        )
        log_audit_event(
            "category.deleted",
            f"Category '{current.name}' deleted, {moved} content items moved to {target_id}",
            category_id=category_id,
            reassigned_to=target_id,
            moved=moved,
        )
        return CategoryDeleteResult(category_id=category_id, reassigned_to=target_id, moved=moved)

    async def _set_active(self, category_id: str, active: bool) -> Optional[Category]:
        updated = self.store.update(category_id, {"active": active})
        if not updated:
            return None
        updated = self._with_count(updated)

        await self._invalidate(category_id)
        if active:
            self.bus.publish(CategoryEnabledEvent(category=updated))
        else:
            self.bus.publish(CategoryDisabledEvent(category=updated))
        log_audit_event(
            "category.enabled" if active else "category.disabled",
            f"Category '{updated.name}' {'enabled' if active else 'disabled'}",
            category_id=category_id,
        )
        return updated

    async def enable_category(self, category_id: str) -> Optional[Category]:
        return await self._set_active(category_id, True)

    async def disable_category(self, category_id: str) -> Optional[Category]:
        return await self._set_active(category_id, False)

    async def reorder_categories(self, order: List[str]) -> List[Category]:
        categories = [self._with_count(c) for c in self.store.reorder(order)]

        # Every position may have shifted, so drop the whole namespace
        await self.cache.clear_namespace(CacheKeys.CATEGORY_NAMESPACE)
        self.bus.publish(CategoriesReorderedEvent(order=list(order), categories=categories))
        log_audit_event(
            "category.reordered",
            f"Categories reordered ({len(order)} ids requested)",
            order=list(order),
        )
        return categories

    async def bulk_toggle(self, category_ids: List[str], active: bool) -> List[Category]:
        updated = [
            self._with_count(c)
            for c in self.store.bulk_update(category_ids, {"active": active})
        ]

        # Invalidate every requested id, known or not
        await self._invalidate(*category_ids)
        self.bus.publish(CategoriesBulkToggledEvent(active=active, categories=updated))
        log_audit_event(
            "category.bulk_toggle",
            f"{len(updated)} of {len(category_ids)} categories set active={active}",
            active=active,
            category_ids=[c.id for c in updated],
        )
        return updated

    # Content

    async def list_content(self, category_id: str) -> Optional[List[Content]]:
        if not self.store.find_by_id(category_id):
            return None
        return self.ledger.list_by_category(category_id)

    async def add_content(self, category_id: str, data: ContentCreate) -> Optional[Content]:
        category = self.store.find_by_id(category_id)
        if not category:
            return None

        content = self.ledger.add_content(category_id, data)
        count = self.ledger.count_by_category(category_id)
        updated = self.store.set_content_count(category_id, count)

        await self._invalidate(category_id)
        if updated:
            self.bus.publish(CategoryUpdatedEvent(category=updated))
        return content
