"""SQLAlchemy models for the catalog collections.

Each table stores one document per row. List-shaped fields live in JSON
columns so the rows mirror the document shape.
"""

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, Float, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from catalog_api.catalog.documents import (
    Order,
    OrderLine,
    Product,
    Review,
    User,
    new_id,
    utcnow,
)
from catalog_api.infrastructure.database import Base


class ProductRecord(Base):
    """Product row.

    Attributes:
        id: Product identifier (UUID text).
        title: Product title.
        desc: Description.
        categories: JSON list of category tags.
        size: Size label.
        color: Color label.
        price: Unit price.
        sale: Storewide sale percentage.
        images: JSON list of stored image filenames.
        reviews: JSON list of review objects.
        created_at: Creation timestamp.
        updated_at: Last update timestamp.
    """

    __tablename__ = "products"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(500), nullable=False, index=True)
    desc: Mapped[str | None] = mapped_column(Text, nullable=True)
    categories: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    size: Mapped[str | None] = mapped_column(String(50), nullable=True)
    color: Mapped[str | None] = mapped_column(String(50), nullable=True)
    price: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    sale: Mapped[float] = mapped_column(Float, nullable=False, default=0.0)
    images: Mapped[list[str]] = mapped_column(JSON, nullable=False, default=list)
    reviews: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        index=True,
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
        onupdate=utcnow,
    )

    def __repr__(self) -> str:
        return f"<ProductRecord(id={self.id}, title={self.title[:30]})>"

    @classmethod
    def from_document(cls, product: Product) -> "ProductRecord":
        return cls(
            id=product.id,
            title=product.title,
            desc=product.desc,
            categories=list(product.categories),
            size=product.size,
            color=product.color,
            price=product.price,
            sale=product.sale,
            images=list(product.images),
            reviews=[review.to_dict() for review in product.reviews],
            created_at=product.created_at,
            updated_at=product.updated_at,
        )

    def to_document(self) -> Product:
        return Product(
            id=self.id,
            title=self.title,
            desc=self.desc,
            categories=list(self.categories or []),
            size=self.size,
            color=self.color,
            price=self.price,
            sale=self.sale,
            images=list(self.images or []),
            reviews=[Review.from_dict(r) for r in self.reviews or []],
            created_at=self.created_at,
            updated_at=self.updated_at,
        )


class OrderRecord(Base):
    """Order row. Line items are a JSON list of ``{productId, quantity}``."""

    __tablename__ = "orders"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    user_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    products: Mapped[list[dict[str, Any]]] = mapped_column(
        JSON, nullable=False, default=list
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        nullable=False,
        default=utcnow,
    )

    @staticmethod
    def dump_lines(order: Order) -> list[dict[str, Any]]:
        return [
            {"productId": line.product_id, "quantity": line.quantity}
            for line in order.products
        ]

    @classmethod
    def from_document(cls, order: Order) -> "OrderRecord":
        return cls(
            id=order.id,
            user_id=order.user_id,
            products=cls.dump_lines(order),
            created_at=order.created_at,
        )

    def to_document(self) -> Order:
        return Order(
            id=self.id,
            user_id=self.user_id,
            products=[
                OrderLine(
                    product_id=str(line["productId"]),
                    quantity=line.get("quantity", 1),
                )
                for line in self.products or []
            ],
            created_at=self.created_at,
        )


class UserRecord(Base):
    """User row. Only the fields the catalog reads are mapped."""

    __tablename__ = "users"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    username: Mapped[str] = mapped_column(String(100), nullable=False, unique=True)
    delivered_orders: Mapped[list[Any]] = mapped_column(
        JSON, nullable=False, default=list
    )

    @classmethod
    def from_document(cls, user: User) -> "UserRecord":
        return cls(
            id=user.id,
            username=user.username,
            delivered_orders=list(user.delivered_orders),
        )

    def to_document(self) -> User:
        return User(
            id=self.id,
            username=self.username,
            delivered_orders=list(self.delivered_orders or []),
        )
