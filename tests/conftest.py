"""Shared fixtures for catalog tests."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from catalog_api.api.auth import ROLE_ADMIN, ROLE_USER, issue_token
from catalog_api.catalog.documents import Product, User
from catalog_api.catalog.repository import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
)
from catalog_api.catalog.service import (
    CatalogService,
    get_memory_catalog_service,
    get_order_repository,
    get_product_repository,
    get_user_repository,
    reset_repositories,
)
from catalog_api.infrastructure.config import settings
from catalog_api.main import app

BASE_TIME = datetime(2026, 1, 1, tzinfo=timezone.utc)


def make_product(title: str = "Trail Runner", minutes: int = 0, **fields) -> Product:
    """Create a test product with a deterministic creation time."""
    created = BASE_TIME + timedelta(minutes=minutes)
    return Product(title=title, created_at=created, updated_at=created, **fields)


def bearer(user_id: str, role: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {issue_token(user_id, role)}"}


@pytest.fixture(autouse=True)
def isolated_catalog(tmp_path: Path, monkeypatch: pytest.MonkeyPatch):
    """Fresh in-memory stores and a temporary image directory per test."""
    monkeypatch.setattr(settings, "storage_backend", "memory")
    monkeypatch.setattr(settings, "image_dir", str(tmp_path / "images"))
    reset_repositories()
    yield
    reset_repositories()


@pytest.fixture
def image_dir(tmp_path: Path) -> Path:
    path = tmp_path / "images"
    path.mkdir(exist_ok=True)
    return path


@pytest.fixture
def products() -> InMemoryProductRepository:
    return get_product_repository()


@pytest.fixture
def orders() -> InMemoryOrderRepository:
    return get_order_repository()


@pytest.fixture
def users() -> InMemoryUserRepository:
    return get_user_repository()


@pytest.fixture
def service() -> CatalogService:
    return get_memory_catalog_service()


@pytest.fixture
def customer() -> User:
    """A customer that is not stored yet."""
    return User(username="customer")


# ============================================================================
# Client Fixtures
# ============================================================================


@pytest.fixture
def client() -> TestClient:
    """Create test client without authentication."""
    return TestClient(app)


@pytest.fixture
def admin_client() -> TestClient:
    """Create test client authenticated as an admin."""
    return TestClient(app, headers=bearer("admin-1", ROLE_ADMIN))


@pytest.fixture
def customer_client(customer: User) -> TestClient:
    """Create test client authenticated as ``customer``."""
    return TestClient(app, headers=bearer(customer.id, ROLE_USER))
