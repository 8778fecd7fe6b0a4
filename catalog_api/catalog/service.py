"""Catalog service for product operations.

High-level service that combines the product, order and user
repositories with the image store. Owns the cross-collection rules:
the delete cascade into orders and the delivered-order review gate.
"""

from dataclasses import dataclass, field
from typing import Any

import structlog

from catalog_api.catalog.documents import PRODUCT_FIELDS, Product, Review
from catalog_api.catalog.image_store import ImageStore, IncomingImage
from catalog_api.catalog.repository import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
    InMemoryUserRepository,
    OrderRepository,
    ProductRepository,
    UserRepository,
)
from catalog_api.domain.exceptions import (
    NoFilesUploadedError,
    PersistenceError,
    ProductNotFoundError,
    ReviewNotAllowedError,
    ValidationError,
)
from catalog_api.infrastructure.config import settings

logger = structlog.get_logger()


# ============================================================================
# Service Result Types
# ============================================================================


@dataclass
class ImageRemovalResult:
    """Result of removing one image from a product."""

    product: Product
    warnings: list[str] = field(default_factory=list)


@dataclass
class DeleteProductResult:
    """Result of deleting a product and cascading into orders."""

    product_id: str
    images_removed: int = 0
    orders_updated: int = 0
    orders_deleted: int = 0
    warnings: list[str] = field(default_factory=list)


@dataclass
class ListQuery:
    """Listing flags, applied in precedence order.

    Attributes:
        new: Newest first, limited to ``limit`` (default 5).
        category: Exact membership in the product's categories.
        search: Case-insensitive substring of title or category.
        limit: Maximum results. Only bounds non-``new`` listings when set.
    """

    new: bool = False
    category: str | None = None
    search: str | None = None
    limit: int | None = None


# ============================================================================
# Catalog Service
# ============================================================================


class CatalogService:
    """Service for catalog operations.

    Example usage:
        service = CatalogService(products, orders, users, image_store)
        product = await service.create_product({"title": "Runner"})
        await service.upload_images(product.id, [IncomingImage("a.png", data)])
        await service.delete_product(product.id)
    """

    def __init__(
        self,
        products: ProductRepository,
        orders: OrderRepository,
        users: UserRepository,
        images: ImageStore,
        max_upload_files: int | None = None,
        default_list_limit: int | None = None,
    ) -> None:
        self.products = products
        self.orders = orders
        self.users = users
        self.images = images
        self.max_upload_files = max_upload_files or settings.max_upload_files
        self.default_list_limit = default_list_limit or settings.default_list_limit

    # ------------------------------------------------------------------
    # Product lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    def _check_fields(data: dict[str, Any]) -> None:
        unknown = sorted(set(data) - set(PRODUCT_FIELDS))
        if unknown:
            raise ValidationError(
                "Unrecognized product fields",
                errors=[
                    {"field": name, "message": "Unrecognized field"}
                    for name in unknown
                ],
            )

    async def create_product(self, data: dict[str, Any]) -> Product:
        """Create a product from recognized fields.

        Images and reviews always start empty.

        Raises:
            ValidationError: Unknown fields or missing title.
            PersistenceError: The store did not return the saved document.
        """
        self._check_fields(data)
        if not data.get("title"):
            raise ValidationError(
                errors=[{"field": "title", "message": "Title is required"}]
            )

        saved = await self.products.create(Product(**data))
        if saved is None:
            raise PersistenceError("Product was not saved", status_code=400)

        logger.info("Product created", product_id=saved.id, title=saved.title)
        return saved

    async def get_product(self, product_id: str) -> Product:
        product = await self.products.get(product_id)
        if product is None:
            raise ProductNotFoundError(product_id)
        return product

    async def update_product(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product:
        """Overwrite the supplied fields in one write. Lists are replaced,
        not merged, and fields not supplied are never written."""
        self._check_fields(changes)
        if not changes:
            return await self.get_product(product_id)

        updated = await self.products.update_fields(product_id, changes)
        if updated is None:
            raise ProductNotFoundError(product_id)

        logger.info(
            "Product updated",
            product_id=product_id,
            fields=sorted(changes),
        )
        return updated

    async def delete_product(self, product_id: str) -> DeleteProductResult:
        """Delete a product, its image files, and its order line items.

        Orders left with no line items are deleted. The steps run in
        sequence without a surrounding transaction on the in-memory store.
        """
        product = await self.get_product(product_id)

        await self.products.delete(product_id)
        result = DeleteProductResult(product_id=product_id)

        report = await self.images.remove_all(product.images)
        result.images_removed = len(report.removed) + len(report.missing)
        result.warnings.extend(report.warnings)

        for order in await self.orders.find_by_product(product_id):
            order.drop_product(product_id)
            if not order.products:
                await self.orders.delete(order.id)
                result.orders_deleted += 1
                logger.info(
                    "Order deleted with product",
                    order_id=order.id,
                    product_id=product_id,
                )
            else:
                await self.orders.save(order)
                result.orders_updated += 1
                logger.info(
                    "Product removed from order",
                    order_id=order.id,
                    product_id=product_id,
                    remaining_items=len(order.products),
                )

        logger.info(
            "Product deleted",
            product_id=product_id,
            images_removed=result.images_removed,
            orders_updated=result.orders_updated,
            orders_deleted=result.orders_deleted,
            warnings=len(result.warnings),
        )
        return result

    # ------------------------------------------------------------------
    # Images
    # ------------------------------------------------------------------

    async def upload_images(
        self, product_id: str, images: list[IncomingImage]
    ) -> Product:
        """Store uploaded files and append their names to the product.

        The product is resolved before anything is written.
        """
        if not images:
            raise NoFilesUploadedError(product_id)
        if len(images) > self.max_upload_files:
            raise ValidationError(
                "Too many files",
                errors=[
                    {
                        "field": "images",
                        "message": f"At most {self.max_upload_files} files per upload",
                    }
                ],
            )

        await self.get_product(product_id)

        filenames = await self.images.save_all(images)
        updated = await self.products.append_images(product_id, filenames)
        if updated is None:
            await self.images.remove_all(filenames)
            raise ProductNotFoundError(product_id)

        logger.info(
            "Images appended",
            product_id=product_id,
            added=len(filenames),
            total=len(updated.images),
        )
        return updated

    async def remove_image(self, product_id: str, index: int) -> ImageRemovalResult:
        """Remove the image at ``index`` from the product and the disk.

        The document is written before the file is deleted, so a failed
        delete leaves an orphaned file rather than a dangling reference.
        """
        removed = await self.products.remove_image_at(product_id, index)
        if removed is None:
            raise ProductNotFoundError(product_id)
        product, filename = removed

        report = await self.images.remove(filename)
        logger.info(
            "Image removed",
            product_id=product_id,
            index=index,
            filename=filename,
            file_deleted=bool(report.removed),
        )
        return ImageRemovalResult(product=product, warnings=report.warnings)

    # ------------------------------------------------------------------
    # Reviews
    # ------------------------------------------------------------------

    async def add_review(
        self,
        user_id: str,
        product_id: str,
        name: str,
        rating: float,
        comment: str,
    ) -> Product:
        """Append a review if the user has a delivered order for the product.

        Raises:
            ReviewNotAllowedError: No matching delivered entry.
            ProductNotFoundError: Delivered, but the product is gone.
        """
        user = await self.users.get(user_id)
        if user is None or not user.has_received(product_id):
            logger.info(
                "Review rejected",
                user_id=user_id,
                product_id=product_id,
                user_found=user is not None,
            )
            raise ReviewNotAllowedError(user_id, product_id)

        review = Review(name=name, rating=rating, comment=comment)
        updated = await self.products.append_review(product_id, review)
        if updated is None:
            raise ProductNotFoundError(product_id)

        logger.info(
            "Review added",
            user_id=user_id,
            product_id=product_id,
            rating=rating,
        )
        return updated

    # ------------------------------------------------------------------
    # Sale
    # ------------------------------------------------------------------

    async def set_sale(self, sale: float) -> int:
        """Apply one sale value to every product.

        Returns:
            Number of products updated.
        """
        updated = await self.products.update_many({"sale": sale})
        logger.info("Sale set", sale=sale, products_updated=updated)
        return updated

    async def get_sale(self) -> float | None:
        """Storewide sale, read from the oldest product. None when empty."""
        product = await self.products.first()
        return product.sale if product else None

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    async def list_products(self, query: ListQuery) -> list[Product]:
        """List products by the first flag that is set.

        Precedence is ``new``, then ``category``, then ``search``, then
        everything.
        """
        if query.new:
            return await self.products.find(
                newest_first=True,
                limit=query.limit or self.default_list_limit,
            )
        if query.category:
            return await self.products.find(
                category=query.category, limit=query.limit
            )
        if query.search:
            return await self.products.find(search=query.search, limit=query.limit)
        return await self.products.find(limit=query.limit)

    async def ping(self) -> bool:
        return await self.products.ping()


# ============================================================================
# In-Memory Wiring
# ============================================================================

_product_repo: InMemoryProductRepository | None = None
_order_repo: InMemoryOrderRepository | None = None
_user_repo: InMemoryUserRepository | None = None
_image_store: ImageStore | None = None


def get_product_repository() -> InMemoryProductRepository:
    """Get or create the in-memory product repository."""
    global _product_repo
    if _product_repo is None:
        _product_repo = InMemoryProductRepository()
    return _product_repo


def get_order_repository() -> InMemoryOrderRepository:
    """Get or create the in-memory order repository."""
    global _order_repo
    if _order_repo is None:
        _order_repo = InMemoryOrderRepository()
    return _order_repo


def get_user_repository() -> InMemoryUserRepository:
    """Get or create the in-memory user repository."""
    global _user_repo
    if _user_repo is None:
        _user_repo = InMemoryUserRepository()
    return _user_repo


def get_image_store() -> ImageStore:
    """Get or create the image store configured by settings."""
    global _image_store
    if _image_store is None:
        _image_store = ImageStore(
            settings.image_dir,
            allowed_extensions=settings.allowed_image_extensions,
            url_path=settings.image_url_path,
        )
    return _image_store


def reset_repositories() -> None:
    """Reset in-memory repositories and the image store (for testing)."""
    global _product_repo, _order_repo, _user_repo, _image_store
    _product_repo = None
    _order_repo = None
    _user_repo = None
    _image_store = None


def get_memory_catalog_service() -> CatalogService:
    """Build a service over the in-memory repositories."""
    return CatalogService(
        products=get_product_repository(),
        orders=get_order_repository(),
        users=get_user_repository(),
        images=get_image_store(),
    )
