"""Repositories for the catalog collections.

Defines the store-agnostic interfaces the catalog service consumes and
dict-backed implementations of them. Documents are copied on the way in
and out so callers see document-store semantics: a document changes in
the store only through a repository write.
"""

import copy
from abc import ABC, abstractmethod
from collections.abc import Iterable
from typing import Any

from catalog_api.catalog.documents import Order, Product, Review, User, utcnow
from catalog_api.domain.exceptions import InvalidImageIndexError


# ============================================================================
# Interfaces
# ============================================================================


class ProductRepository(ABC):
    """Persistence operations for products."""

    @abstractmethod
    async def create(self, product: Product) -> Product:
        """Insert a new product and return the stored document."""

    @abstractmethod
    async def get(self, product_id: str) -> Product | None:
        """Get product by ID."""

    @abstractmethod
    async def update_fields(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product | None:
        """Overwrite recognized fields in one write, leaving the rest untouched.

        Returns None if the product does not exist.
        """

    @abstractmethod
    async def remove_image_at(
        self, product_id: str, index: int
    ) -> tuple[Product, str] | None:
        """Remove the image at ``index`` in one write.

        Returns:
            The updated product and the removed filename, or None if the
            product does not exist.

        Raises:
            InvalidImageIndexError: ``index`` is outside the image list.
        """

    @abstractmethod
    async def delete(self, product_id: str) -> bool:
        """Delete a product. Returns whether anything was deleted."""

    @abstractmethod
    async def append_images(
        self, product_id: str, filenames: list[str]
    ) -> Product | None:
        """Append filenames to a product's images in one write."""

    @abstractmethod
    async def append_review(self, product_id: str, review: Review) -> Product | None:
        """Append a review to a product in one write."""

    @abstractmethod
    async def find(
        self,
        category: str | None = None,
        search: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[Product]:
        """Find products.

        Args:
            category: Exact membership in the product's categories.
            search: Case-insensitive substring of title or any category.
            newest_first: Sort by creation time descending instead of ascending.
            limit: Maximum results.
        """

    @abstractmethod
    async def first(self) -> Product | None:
        """Get the oldest product."""

    @abstractmethod
    async def update_many(self, changes: dict[str, Any]) -> int:
        """Set fields on every product. Returns the number updated."""

    async def ping(self) -> bool:
        """Check that the backing store is reachable."""
        return True


class OrderRepository(ABC):
    """Persistence operations for orders."""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """Insert a new order."""

    @abstractmethod
    async def get(self, order_id: str) -> Order | None:
        """Get order by ID."""

    @abstractmethod
    async def save(self, order: Order) -> Order:
        """Persist an existing order."""

    @abstractmethod
    async def delete(self, order_id: str) -> bool:
        """Delete an order."""

    @abstractmethod
    async def find_by_product(self, product_id: str) -> list[Order]:
        """Find every order with a line item referencing ``product_id``."""


class UserRepository(ABC):
    """Read access to users, plus create for seeding and tests."""

    @abstractmethod
    async def create(self, user: User) -> User:
        """Insert a new user."""

    @abstractmethod
    async def get(self, user_id: str) -> User | None:
        """Get user by ID."""


# ============================================================================
# In-Memory Implementations
# ============================================================================


def matches_filters(
    product: Product, category: str | None, search: str | None
) -> bool:
    """Apply the category and search filters to one product."""
    if category is not None and category not in product.categories:
        return False
    if search is not None:
        needle = search.lower()
        haystack = [product.title, *product.categories]
        if not any(needle in value.lower() for value in haystack):
            return False
    return True


class InMemoryProductRepository(ProductRepository):
    """Dict-backed product repository."""

    def __init__(self, products: Iterable[Product] = ()) -> None:
        self._products: dict[str, Product] = {}
        for product in products:
            self._products[product.id] = copy.deepcopy(product)

    async def create(self, product: Product) -> Product:
        self._products[product.id] = copy.deepcopy(product)
        return copy.deepcopy(product)

    async def get(self, product_id: str) -> Product | None:
        product = self._products.get(product_id)
        return copy.deepcopy(product) if product else None

    async def update_fields(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        product.apply(copy.deepcopy(changes))
        return copy.deepcopy(product)

    async def remove_image_at(
        self, product_id: str, index: int
    ) -> tuple[Product, str] | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        if index < 0 or index >= len(product.images):
            raise InvalidImageIndexError(product_id, index, len(product.images))
        filename = product.images.pop(index)
        product.updated_at = utcnow()
        return copy.deepcopy(product), filename

    async def delete(self, product_id: str) -> bool:
        return self._products.pop(product_id, None) is not None

    async def append_images(
        self, product_id: str, filenames: list[str]
    ) -> Product | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        product.images.extend(filenames)
        product.updated_at = utcnow()
        return copy.deepcopy(product)

    async def append_review(self, product_id: str, review: Review) -> Product | None:
        product = self._products.get(product_id)
        if product is None:
            return None
        product.reviews.append(copy.deepcopy(review))
        product.updated_at = utcnow()
        return copy.deepcopy(product)

    async def find(
        self,
        category: str | None = None,
        search: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[Product]:
        products = [
            p for p in self._products.values() if matches_filters(p, category, search)
        ]
        products.sort(key=lambda p: p.created_at, reverse=newest_first)
        if limit is not None:
            products = products[:limit]
        return [copy.deepcopy(p) for p in products]

    async def first(self) -> Product | None:
        products = await self.find(limit=1)
        return products[0] if products else None

    async def update_many(self, changes: dict[str, Any]) -> int:
        for product in self._products.values():
            product.apply(changes)
        return len(self._products)


class InMemoryOrderRepository(OrderRepository):
    """Dict-backed order repository."""

    def __init__(self, orders: Iterable[Order] = ()) -> None:
        self._orders: dict[str, Order] = {}
        for order in orders:
            self._orders[order.id] = copy.deepcopy(order)

    async def create(self, order: Order) -> Order:
        self._orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def get(self, order_id: str) -> Order | None:
        order = self._orders.get(order_id)
        return copy.deepcopy(order) if order else None

    async def save(self, order: Order) -> Order:
        self._orders[order.id] = copy.deepcopy(order)
        return copy.deepcopy(order)

    async def delete(self, order_id: str) -> bool:
        return self._orders.pop(order_id, None) is not None

    async def find_by_product(self, product_id: str) -> list[Order]:
        return [
            copy.deepcopy(order)
            for order in self._orders.values()
            if order.references(product_id)
        ]


class InMemoryUserRepository(UserRepository):
    """Dict-backed user repository."""

    def __init__(self, users: Iterable[User] = ()) -> None:
        self._users: dict[str, User] = {}
        for user in users:
            self._users[user.id] = copy.deepcopy(user)

    async def create(self, user: User) -> User:
        self._users[user.id] = copy.deepcopy(user)
        return copy.deepcopy(user)

    async def get(self, user_id: str) -> User | None:
        user = self._users.get(user_id)
        return copy.deepcopy(user) if user else None
