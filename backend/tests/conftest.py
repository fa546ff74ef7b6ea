"""
Pytest configuration and fixtures for category admin tests.
"""

import pytest
from typing import Generator, List
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient

from category_admin.core.database import Base
from category_admin.api.deps import get_category_service
from category_admin.schemas.category import Category
from category_admin.schemas.content import ContentCreate
from category_admin.services.cache import CacheFront, MemoryCacheBackend
from category_admin.services.category_service import CategoryService
from category_admin.services.category_store import (
    InMemoryCategoryStore,
    SqlCategoryStore,
)
from category_admin.services.content_ledger import (
    InMemoryContentLedger,
    SqlContentLedger,
)
from category_admin.services.notifications import NotificationBus

# Register models on Base.metadata
import category_admin.models  # noqa: F401


# Use in-memory SQLite database for tests
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_engine():
    """Create a test database engine."""
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture(scope="function")
def db_session(db_engine) -> Generator[Session, None, None]:
    """Create a test database session."""
    TestingSessionLocal = sessionmaker(
        autocommit=False, autoflush=False, bind=db_engine
    )
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture(params=["memory", "database"])
def storage(request, db_session):
    """(store, ledger) pair for each storage implementation."""
    if request.param == "database":
        return SqlCategoryStore(db_session), SqlContentLedger(db_session)
    return InMemoryCategoryStore(), InMemoryContentLedger()


@pytest.fixture
def store(storage):
    return storage[0]


@pytest.fixture
def ledger(storage):
    return storage[1]


@pytest.fixture
def cache_backend() -> MemoryCacheBackend:
    return MemoryCacheBackend()


@pytest.fixture
def cache(cache_backend) -> CacheFront:
    return CacheFront(cache_backend, default_ttl=3600)


@pytest.fixture
def bus() -> NotificationBus:
    return NotificationBus()


@pytest.fixture
def events(bus) -> List:
    """Every event published on the bus, in order."""
    received = []
    bus.subscribe(received.append)
    return received


@pytest.fixture
def service(store, ledger, cache, bus) -> CategoryService:
    return CategoryService(store, ledger, cache, bus)


@pytest.fixture
def memory_service(cache, bus) -> CategoryService:
    """Service on in-memory storage only, for tests that don't need both backends."""
    return CategoryService(InMemoryCategoryStore(), InMemoryContentLedger(), cache, bus)


@pytest.fixture(scope="function")
def test_app(memory_service):
    """Create a FastAPI test app without lifespan events."""
    from fastapi import FastAPI
    from category_admin.api.endpoints import categories

    # Create app without lifespan to avoid event loop issues
    test_app = FastAPI(title="Category Admin - Test", version="1.0.0")

    test_app.include_router(
        categories.router, prefix="/api/categories", tags=["categories"]
    )

    @test_app.get("/health")
    def health():
        return {"status": "ok"}

    # Override service dependency
    test_app.dependency_overrides[get_category_service] = lambda: memory_service

    return test_app


@pytest.fixture(scope="function")
def client(test_app) -> TestClient:
    """Create a test client without entering context manager."""
    return TestClient(test_app, raise_server_exceptions=False)


def make_categories(store, *names) -> List[Category]:
    return [store.create({"name": name}) for name in names]


@pytest.fixture
def three_categories(store) -> List[Category]:
    """Categories A, B, C at positions 1, 2, 3."""
    return make_categories(store, "A", "B", "C")


@pytest.fixture
def content_for(ledger):
    """Factory adding n content items to a category."""

    def _add(category_id: str, n: int = 1):
        return [
            ledger.add_content(category_id, ContentCreate(title=f"Item {i + 1}"))
            for i in range(n)
        ]

    return _add
