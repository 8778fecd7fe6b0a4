"""Request-scoped dependencies for the catalog API."""

from collections.abc import AsyncGenerator

from fastapi import Request

from catalog_api.catalog.image_store import ImageStore
from catalog_api.catalog.service import (
    CatalogService,
    get_image_store,
    get_memory_catalog_service,
)
from catalog_api.catalog.sql_repository import (
    SqlOrderRepository,
    SqlProductRepository,
    SqlUserRepository,
)
from catalog_api.infrastructure.config import settings
from catalog_api.infrastructure.database import session_scope


async def get_catalog_service() -> AsyncGenerator[CatalogService, None]:
    """Yield a catalog service for the configured storage backend.

    With the database backend every request runs in one session, so the
    delete cascade commits or rolls back as a unit.
    """
    if settings.storage_backend != "database":
        yield get_memory_catalog_service()
        return

    async with session_scope() as session:
        yield CatalogService(
            products=SqlProductRepository(session),
            orders=SqlOrderRepository(session),
            users=SqlUserRepository(session),
            images=get_image_store(),
        )


def get_images() -> ImageStore:
    return get_image_store()


def request_base_url(request: Request) -> str:
    """Scheme and host the client used, e.g. ``http://shop.example``."""
    host = request.headers.get("host") or request.url.netloc
    return f"{request.url.scheme}://{host}"
