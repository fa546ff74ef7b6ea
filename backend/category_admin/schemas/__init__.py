from category_admin.schemas.category import (
    Category,
    CategoryCreate,
    CategoryUpdate,
    CategoryReorder,
    CategoryBulkToggle,
    CategoryDeleteResult,
)
from category_admin.schemas.content import Content, ContentCreate
from category_admin.schemas.events import (
    ChangeEvent,
    CategoryCreatedEvent,
    CategoryUpdatedEvent,
    CategoryDeletedEvent,
    CategoryEnabledEvent,
    CategoryDisabledEvent,
    CategoriesReorderedEvent,
    CategoriesBulkToggledEvent,
    CategoriesSnapshotEvent,
)

__all__ = [
    "Category",
    "CategoryCreate",
    "CategoryUpdate",
    "CategoryReorder",
    "CategoryBulkToggle",
    "CategoryDeleteResult",
    "Content",
    "ContentCreate",
    "ChangeEvent",
    "CategoryCreatedEvent",
    "CategoryUpdatedEvent",
    "CategoryDeletedEvent",
    "CategoryEnabledEvent",
    "CategoryDisabledEvent",
    "CategoriesReorderedEvent",
    "CategoriesBulkToggledEvent",
    "CategoriesSnapshotEvent",
]
