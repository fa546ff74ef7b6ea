from pydantic import BaseModel
from datetime import datetime
from typing import Literal, Optional

ContentType = Literal["image", "video", "article", "audio", "document"]


class ContentCreate(BaseModel):
    title: str
    description: Optional[str] = None
    content_type: ContentType = "article"
    active: bool = True


class Content(ContentCreate):
    id: str
    category_id: str
    created_at: datetime
    updated_at: datetime

    class Config:
        from_attributes = True
