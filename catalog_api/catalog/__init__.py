"""Product Catalog Service.

Documents, repositories, image store and the service that ties them
together for product lifecycle and catalog queries.
"""

from catalog_api.catalog.documents import Order, OrderLine, Product, Review, User
from catalog_api.catalog.image_store import ImageStore, IncomingImage, RemovalReport
from catalog_api.catalog.repository import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)
from catalog_api.catalog.service import (
    CatalogService,
    DeleteProductResult,
    ImageRemovalResult,
    ListQuery,
)

__all__ = [
    # Documents
    "Order",
    "OrderLine",
    "Product",
    "Review",
    "User",
    # Images
    "ImageStore",
    "IncomingImage",
    "RemovalReport",
    # Repositories
    "InMemoryOrderRepository",
    "InMemoryProductRepository",
    "InMemoryUserRepository",
    "OrderRepository",
    "ProductRepository",
    "UserRepository",
    # Service
    "CatalogService",
    "DeleteProductResult",
    "ImageRemovalResult",
    "ListQuery",
]
