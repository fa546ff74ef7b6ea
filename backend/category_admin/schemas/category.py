from pydantic import BaseModel
from datetime import datetime
from typing import List, Optional


class CategoryBase(BaseModel):
    name: str
    description: Optional[str] = None
    icon_url: Optional[str] = None
    active: bool = True


class CategoryCreate(BaseModel):
    # Checked by the service so a missing and a blank name fail the same way
    name: Optional[str] = None
    description: Optional[str] = None
    icon_url: Optional[str] = None
    active: Optional[bool] = None


class CategoryUpdate(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    icon_url: Optional[str] = None
    active: Optional[bool] = None


class Category(CategoryBase):
    id: str
    position: int
    content_count: int = 0
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True


class CategoryReorder(BaseModel):
    order: List[str]


class CategoryBulkToggle(BaseModel):
    ids: List[str]
    active: bool


class CategoryDeleteResult(BaseModel):
    category_id: str
    reassigned_to: str
    moved: int
