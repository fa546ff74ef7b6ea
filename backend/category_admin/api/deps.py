from fastapi import Depends
from sqlalchemy.orm import Session
from category_admin.core.database import get_db
from category_admin.services.cache import get_cache_front
from category_admin.services.category_service import CategoryService
from category_admin.services.notifications import notification_bus
from category_admin.services.storage import build_storage


def get_category_service(db: Session = Depends(get_db)) -> CategoryService:
    """Category service wired to the configured storage, cache and bus."""
    store, ledger = build_storage(db)
    return CategoryService(store, ledger, get_cache_front(), notification_bus)
