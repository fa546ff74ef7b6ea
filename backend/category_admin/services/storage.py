"""Selects the storage implementation (in-memory or database) from settings."""

from contextlib import contextmanager
from typing import Iterator, Optional, Tuple
from sqlalchemy.orm import Session
from category_admin.core.config import settings
from category_admin.core.database import SessionLocal
from category_admin.services.category_store import (
    CategoryStore,
    InMemoryCategoryStore,
    SqlCategoryStore,
)
from category_admin.services.content_ledger import (
    ContentLedger,
    InMemoryContentLedger,
    SqlContentLedger,
)

# Process-wide state for the in-memory backend
memory_store = InMemoryCategoryStore()
memory_ledger = InMemoryContentLedger()


def build_storage(
    db: Optional[Session], backend: Optional[str] = None
) -> Tuple[CategoryStore, ContentLedger]:
    backend = backend or settings.STORAGE_BACKEND
    if backend == "database":
        if db is None:
            raise ValueError("The database storage backend needs a session")
        return SqlCategoryStore(db), SqlContentLedger(db)
    return memory_store, memory_ledger


@contextmanager
def storage_session() -> Iterator[Tuple[CategoryStore, ContentLedger]]:
    """Storage outside a request, e.g. for scheduled jobs and scripts."""
    db = SessionLocal()
    try:
        yield build_storage(db)
    finally:
        db.close()
