"""Catalog documents.

Plain dataclasses for the three collections the service works over.
Identifiers are canonical UUID4 strings everywhere; values coming from
outside (path parameters, delivered-order lists) are compared as ``str``.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4


def new_id() -> str:
    """Generate a document identifier."""
    return str(uuid4())


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


# ============================================================================
# Product
# ============================================================================


@dataclass
class Review:
    """Customer review embedded in a product. Never edited once appended."""

    name: str
    rating: float
    comment: str

    def to_dict(self) -> dict[str, Any]:
        return {"name": self.name, "rating": self.rating, "comment": self.comment}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "Review":
        return cls(
            name=data["name"],
            rating=data["rating"],
            comment=data["comment"],
        )


# Fields an admin may set on create or overwrite on update.
PRODUCT_FIELDS = ("title", "desc", "categories", "size", "color", "price", "sale")


@dataclass
class Product:
    """Catalog product.

    Attributes:
        id: Product identifier.
        title: Product title.
        desc: Free-text description.
        categories: Category tags, matched exactly by the category filter.
        size: Size label.
        color: Color label.
        price: Unit price.
        sale: Storewide sale percentage replicated onto every product.
        images: Stored image filenames, in display order.
        reviews: Reviews in submission order.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    title: str
    id: str = field(default_factory=new_id)
    desc: str | None = None
    categories: list[str] = field(default_factory=list)
    size: str | None = None
    color: str | None = None
    price: float = 0.0
    sale: float = 0.0
    images: list[str] = field(default_factory=list)
    reviews: list[Review] = field(default_factory=list)
    created_at: datetime = field(default_factory=utcnow)
    updated_at: datetime = field(default_factory=utcnow)

    def apply(self, changes: dict[str, Any]) -> None:
        """Overwrite recognized fields wholesale.

        Lists are replaced, not merged. Unrecognized keys raise ``KeyError``.
        """
        for key, value in changes.items():
            if key not in PRODUCT_FIELDS:
                raise KeyError(key)
            setattr(self, key, value)
        self.updated_at = utcnow()

    def to_dict(self) -> dict[str, Any]:
        """Convert to the wire representation."""
        return {
            "_id": self.id,
            "title": self.title,
            "desc": self.desc,
            "Categories": list(self.categories),
            "size": self.size,
            "color": self.color,
            "price": self.price,
            "sale": self.sale,
            "images": list(self.images),
            "reviews": [review.to_dict() for review in self.reviews],
            "createdAt": self.created_at.isoformat(),
            "updatedAt": self.updated_at.isoformat(),
        }


# ============================================================================
# Order
# ============================================================================


@dataclass
class OrderLine:
    """Order line item holding a weak reference to a product."""

    product_id: str
    quantity: int = 1


@dataclass
class Order:
    """Purchase record. Only the line items matter to the catalog."""

    user_id: str
    products: list[OrderLine] = field(default_factory=list)
    id: str = field(default_factory=new_id)
    created_at: datetime = field(default_factory=utcnow)

    def references(self, product_id: str) -> bool:
        """Check whether any line item points at ``product_id``."""
        return any(line.product_id == product_id for line in self.products)

    def drop_product(self, product_id: str) -> int:
        """Remove every line item for ``product_id``.

        Returns:
            Number of line items removed.
        """
        before = len(self.products)
        self.products = [
            line for line in self.products if line.product_id != product_id
        ]
        return before - len(self.products)


# ============================================================================
# User
# ============================================================================


@dataclass
class User:
    """Customer record, read by the review gate."""

    username: str
    id: str = field(default_factory=new_id)
    delivered_orders: list[Any] = field(default_factory=list)

    def has_received(self, product_id: str) -> bool:
        """Check whether ``product_id`` appears among delivered entries."""
        return any(str(entry) == product_id for entry in self.delivered_orders)
