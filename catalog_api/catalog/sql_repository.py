"""SQLAlchemy-backed repositories.

Implement the catalog repository interfaces over the ``products``,
``orders`` and ``users`` tables. JSON columns are matched as text in SQL
to narrow the candidate rows, then checked exactly against the document.
"""

from typing import Any

from sqlalchemy import String, cast, select, text, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from catalog_api.catalog.documents import (
    PRODUCT_FIELDS,
    Order,
    Product,
    Review,
    User,
    utcnow,
)
from catalog_api.catalog.models import OrderRecord, ProductRecord, UserRecord
from catalog_api.catalog.repository import (
    OrderRepository,
    ProductRepository,
    UserRepository,
    matches_filters,
)
from catalog_api.domain.exceptions import InvalidImageIndexError, PersistenceError
from catalog_api.infrastructure.database import json_text


class SqlProductRepository(ProductRepository):
    """Repository for product rows.

    Example usage:
        async with get_session_factory()() as session:
            repo = SqlProductRepository(session)
            newest = await repo.find(newest_first=True, limit=5)
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize repository with database session.

        Args:
            session: Async SQLAlchemy session.
        """
        self.session = session

    async def _get_record(
        self, product_id: str, for_update: bool = False, refresh: bool = False
    ) -> ProductRecord | None:
        query = select(ProductRecord).where(ProductRecord.id == product_id)
        if for_update:
            query = query.with_for_update()
        if for_update or refresh:
            # Overwrite any copy this session loaded before the row changed.
            query = query.execution_options(populate_existing=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def create(self, product: Product) -> Product:
        record = ProductRecord.from_document(product)
        self.session.add(record)
        try:
            await self.session.flush()
        except SQLAlchemyError as e:
            raise PersistenceError(
                "Product was not saved",
                details={"error": str(e)},
                status_code=400,
            ) from e
        return record.to_document()

    async def get(self, product_id: str) -> Product | None:
        record = await self._get_record(product_id)
        return record.to_document() if record else None

    async def update_fields(
        self, product_id: str, changes: dict[str, Any]
    ) -> Product | None:
        unknown = set(changes) - set(PRODUCT_FIELDS)
        if unknown:
            raise KeyError(sorted(unknown)[0])
        result = await self.session.execute(
            update(ProductRecord)
            .where(ProductRecord.id == product_id)
            .values(**changes, updated_at=utcnow())
            .execution_options(synchronize_session=False)
        )
        if result.rowcount == 0:
            return None
        record = await self._get_record(product_id, refresh=True)
        return record.to_document() if record else None

    async def remove_image_at(
        self, product_id: str, index: int
    ) -> tuple[Product, str] | None:
        record = await self._get_record(product_id, for_update=True)
        if record is None:
            return None
        images = list(record.images or [])
        if index < 0 or index >= len(images):
            raise InvalidImageIndexError(product_id, index, len(images))
        filename = images.pop(index)
        record.images = images
        record.updated_at = utcnow()
        await self.session.flush()
        return record.to_document(), filename

    async def delete(self, product_id: str) -> bool:
        record = await self._get_record(product_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True

    async def append_images(
        self, product_id: str, filenames: list[str]
    ) -> Product | None:
        record = await self._get_record(product_id, for_update=True)
        if record is None:
            return None
        record.images = [*(record.images or []), *filenames]
        await self.session.flush()
        return record.to_document()

    async def append_review(self, product_id: str, review: Review) -> Product | None:
        record = await self._get_record(product_id, for_update=True)
        if record is None:
            return None
        record.reviews = [*(record.reviews or []), review.to_dict()]
        await self.session.flush()
        return record.to_document()

    async def find(
        self,
        category: str | None = None,
        search: str | None = None,
        newest_first: bool = False,
        limit: int | None = None,
    ) -> list[Product]:
        query = select(ProductRecord)
        categories_text = cast(ProductRecord.categories, String)

        if category is not None:
            query = query.where(
                categories_text.contains(json_text(category), autoescape=True)
            )

        if search is not None:
            query = query.where(
                ProductRecord.title.icontains(search, autoescape=True)
                | categories_text.icontains(json_text(search), autoescape=True)
            )

        if newest_first:
            query = query.order_by(ProductRecord.created_at.desc())
        else:
            query = query.order_by(ProductRecord.created_at.asc())

        narrowed = category is not None or search is not None
        if limit is not None and not narrowed:
            query = query.limit(limit)

        result = await self.session.execute(query)
        products = [record.to_document() for record in result.scalars().all()]

        if narrowed:
            products = [p for p in products if matches_filters(p, category, search)]
            if limit is not None:
                products = products[:limit]
        return products

    async def first(self) -> Product | None:
        products = await self.find(limit=1)
        return products[0] if products else None

    async def update_many(self, changes: dict[str, Any]) -> int:
        unknown = set(changes) - set(PRODUCT_FIELDS)
        if unknown:
            raise KeyError(sorted(unknown)[0])
        result = await self.session.execute(
            update(ProductRecord).values(**changes, updated_at=utcnow())
        )
        await self.session.flush()
        return result.rowcount

    async def ping(self) -> bool:
        await self.session.execute(text("SELECT 1"))
        return True


class SqlOrderRepository(OrderRepository):
    """Repository for order rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, order: Order) -> Order:
        record = OrderRecord.from_document(order)
        self.session.add(record)
        await self.session.flush()
        return record.to_document()

    async def get(self, order_id: str) -> Order | None:
        record = await self.session.get(OrderRecord, order_id)
        return record.to_document() if record else None

    async def save(self, order: Order) -> Order:
        record = await self.session.get(OrderRecord, order.id)
        if record is None:
            record = OrderRecord.from_document(order)
            self.session.add(record)
        else:
            record.products = OrderRecord.dump_lines(order)
        await self.session.flush()
        return record.to_document()

    async def delete(self, order_id: str) -> bool:
        record = await self.session.get(OrderRecord, order_id)
        if record is None:
            return False
        await self.session.delete(record)
        await self.session.flush()
        return True

    async def find_by_product(self, product_id: str) -> list[Order]:
        query = select(OrderRecord).where(
            cast(OrderRecord.products, String).contains(
                json_text(product_id), autoescape=True
            )
        )
        result = await self.session.execute(query)
        orders = [record.to_document() for record in result.scalars().all()]
        return [order for order in orders if order.references(product_id)]


class SqlUserRepository(UserRepository):
    """Repository for user rows."""

    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def create(self, user: User) -> User:
        record = UserRecord.from_document(user)
        self.session.add(record)
        await self.session.flush()
        return record.to_document()

    async def get(self, user_id: str) -> User | None:
        record = await self.session.get(UserRecord, user_id)
        return record.to_document() if record else None
