"""
Change events pushed to live admin clients.

Events only exist in flight between the category service and the
notification bus subscribers; they are never persisted.
"""

from pydantic import BaseModel, Field
from typing import Annotated, List, Literal, Union
from category_admin.schemas.category import Category


class CategoryCreatedEvent(BaseModel):
    type: Literal["created"] = "created"
    category: Category


class CategoryUpdatedEvent(BaseModel):
    type: Literal["updated"] = "updated"
    category: Category


class CategoryDeletedEvent(BaseModel):
    type: Literal["deleted"] = "deleted"
    category_id: str
    reassigned_to: str
    moved: int


class CategoryEnabledEvent(BaseModel):
    type: Literal["enabled"] = "enabled"
    category: Category


class CategoryDisabledEvent(BaseModel):
    type: Literal["disabled"] = "disabled"
    category: Category


class CategoriesReorderedEvent(BaseModel):
    type: Literal["reordered"] = "reordered"
    order: List[str]
    categories: List[Category]


class CategoriesBulkToggledEvent(BaseModel):
    type: Literal["bulk-toggle"] = "bulk-toggle"
    active: bool
    categories: List[Category]


class CategoriesSnapshotEvent(BaseModel):
    """First frame of every change stream."""

    type: Literal["init"] = "init"
    categories: List[Category]


ChangeEvent = Annotated[
    Union[
        CategoryCreatedEvent,
        CategoryUpdatedEvent,
        CategoryDeletedEvent,
        CategoryEnabledEvent,
        CategoryDisabledEvent,
        CategoriesReorderedEvent,
        CategoriesBulkToggledEvent,
        CategoriesSnapshotEvent,
    ],
    Field(discriminator="type"),
]
