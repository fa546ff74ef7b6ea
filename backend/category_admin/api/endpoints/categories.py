from fastapi import APIRouter, Depends, HTTPException, Query, Request
from fastapi.responses import StreamingResponse
from typing import List, Optional
from category_admin.api.deps import get_category_service
from category_admin.core.config import settings
from category_admin.core.exceptions import CategoryValidationError, CategoryDeleteFailed
from category_admin.schemas.category import (
    Category as CategorySchema,
    CategoryCreate,
    CategoryUpdate,
    CategoryReorder,
    CategoryBulkToggle,
    CategoryDeleteResult,
)
from category_admin.schemas.content import Content as ContentSchema, ContentCreate
from category_admin.services.category_service import CategoryService
from category_admin.services.notifications import category_event_stream
import logging

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/", response_model=List[CategorySchema])
async def get_categories(service: CategoryService = Depends(get_category_service)):
    """Get all categories ordered by position, with content counts."""
    return await service.list_categories()


@router.get("/search", response_model=List[CategorySchema])
async def search_categories(
    q: str = Query("", max_length=255, description="Text to match in name or description"),
    service: CategoryService = Depends(get_category_service),
):
    """Search categories by name or description (case-insensitive)."""
    return await service.search_categories(q)


@router.get("/stream")
async def stream_categories(
    request: Request,
    service: CategoryService = Depends(get_category_service),
):
    """
    Server-sent events stream of category changes.

    The first frame is an `init` snapshot of the current list; every
    mutation afterwards is pushed as it happens.
    """
    return StreamingResponse(
        category_event_stream(
            service.bus,
            service.list_categories,
            is_disconnected=request.is_disconnected,
            keepalive_seconds=settings.STREAM_KEEPALIVE_SECONDS,
        ),
        media_type="text/event-stream",
        headers={
            "Cache-Control": "no-cache",
            "Connection": "keep-alive",
            "X-Accel-Buffering": "no",
        },
    )


@router.post("/", response_model=CategorySchema, status_code=201)
async def create_category(
    category: CategoryCreate,
    service: CategoryService = Depends(get_category_service),
):
    """Create a category at the end of the ordering."""
    try:
        return await service.create_category(category)
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/reorder", response_model=List[CategorySchema])
async def reorder_categories(
    reorder: CategoryReorder,
    service: CategoryService = Depends(get_category_service),
):
    """
    Reorder categories.

    Accepts category IDs in the desired order. IDs left out keep their
    relative order after the listed ones; unknown IDs are ignored.
    """
    return await service.reorder_categories(reorder.order)


@router.post("/bulk/toggle", response_model=List[CategorySchema])
async def bulk_toggle_categories(
    toggle: CategoryBulkToggle,
    service: CategoryService = Depends(get_category_service),
):
    """Enable or disable several categories; returns the ones that exist."""
    return await service.bulk_toggle(toggle.ids, toggle.active)


@router.get("/{category_id}", response_model=CategorySchema)
async def get_category(
    category_id: str,
    service: CategoryService = Depends(get_category_service),
):
    category = await service.get_category(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.put("/{category_id}", response_model=CategorySchema)
async def update_category(
    category_id: str,
    category_update: CategoryUpdate,
    service: CategoryService = Depends(get_category_service),
):
    """Update the provided fields of a category."""
    try:
        category = await service.update_category(category_id, category_update)
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.delete("/{category_id}", response_model=CategoryDeleteResult)
async def delete_category(
    category_id: str,
    reassign_to: Optional[str] = Query(None, description="Category receiving the content"),
    service: CategoryService = Depends(get_category_service),
):
    """
    Delete a category.

    Its content is moved to `reassign_to`, or to an "Uncategorized" category
    that is created on first use.
    """
    try:
        result = await service.delete_category(category_id, reassign_to)
    except CategoryValidationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except CategoryDeleteFailed as e:
        logger.error(str(e))
        raise HTTPException(status_code=409, detail="Delete failed")
    if not result:
        raise HTTPException(status_code=404, detail="Category not found")
    return result


@router.post("/{category_id}/enable", response_model=CategorySchema)
async def enable_category(
    category_id: str,
    service: CategoryService = Depends(get_category_service),
):
    category = await service.enable_category(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.post("/{category_id}/disable", response_model=CategorySchema)
async def disable_category(
    category_id: str,
    service: CategoryService = Depends(get_category_service),
):
    category = await service.disable_category(category_id)
    if not category:
        raise HTTPException(status_code=404, detail="Category not found")
    return category


@router.get("/{category_id}/content", response_model=List[ContentSchema])
async def get_category_content(
    category_id: str,
    service: CategoryService = Depends(get_category_service),
):
    content = await service.list_content(category_id)
    if content is None:
        raise HTTPException(status_code=404, detail="Category not found")
    return content


@router.post("/{category_id}/content", response_model=ContentSchema, status_code=201)
async def add_category_content(
    category_id: str,
    content: ContentCreate,
    service: CategoryService = Depends(get_category_service),
):
    created = await service.add_content(category_id, content)
    if not created:
        raise HTTPException(status_code=404, detail="Category not found")
    return created
