"""Tests for the SQLAlchemy repositories on SQLite."""

from collections.abc import AsyncIterator
from pathlib import Path

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from catalog_api.catalog import models  # noqa: F401  (registers tables)
from catalog_api.catalog.documents import Order, OrderLine, Review, User
from catalog_api.catalog.image_store import ImageStore
from catalog_api.catalog.service import CatalogService
from catalog_api.catalog.sql_repository import (
    SqlOrderRepository,
    SqlProductRepository,
    SqlUserRepository,
)
from catalog_api.domain.exceptions import InvalidImageIndexError
from catalog_api.infrastructure.database import Base, dump_json
from tests.conftest import make_product


@pytest_asyncio.fixture
async def session() -> AsyncIterator[AsyncSession]:
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        poolclass=StaticPool,
        json_serializer=dump_json,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    factory = async_sessionmaker(engine, expire_on_commit=False)
    async with factory() as session:
        yield session
    await engine.dispose()


class TestSqlProductRepository:
    """Tests for SqlProductRepository."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, session: AsyncSession) -> None:
        repo = SqlProductRepository(session)
        product = await repo.create(
            make_product(categories=["shoes"], price=12.5, desc="Käse")
        )

        loaded = await repo.get(product.id)
        assert loaded.title == "Trail Runner"
        assert loaded.categories == ["shoes"]
        assert loaded.desc == "Käse"
        assert await repo.get("missing") is None

    @pytest.mark.asyncio
    async def test_append_images_and_reviews(self, session: AsyncSession) -> None:
        repo = SqlProductRepository(session)
        product = await repo.create(make_product(images=["a.png"]))

        updated = await repo.append_images(product.id, ["b.png", "c.png"])
        assert updated.images == ["a.png", "b.png", "c.png"]

        reviewed = await repo.append_review(product.id, Review("Ann", 5, "Nice"))
        assert reviewed.reviews == [Review("Ann", 5, "Nice")]

        assert await repo.append_images("missing", ["x.png"]) is None

    @pytest.mark.asyncio
    async def test_update_fields_and_delete(self, session: AsyncSession) -> None:
        repo = SqlProductRepository(session)
        product = await repo.create(make_product(images=["a.png"]))

        updated = await repo.update_fields(
            product.id, {"price": 99.0, "categories": ["new"]}
        )
        assert updated.price == 99.0
        assert updated.categories == ["new"]
        assert updated.images == ["a.png"]

        with pytest.raises(KeyError):
            await repo.update_fields(product.id, {"images": []})

        assert await repo.delete(product.id) is True
        assert await repo.delete(product.id) is False
        assert await repo.update_fields(product.id, {"price": 1.0}) is None

    @pytest.mark.asyncio
    async def test_remove_image_at(self, session: AsyncSession) -> None:
        repo = SqlProductRepository(session)
        product = await repo.create(make_product(images=["a.png", "b.png", "c.png"]))

        updated, filename = await repo.remove_image_at(product.id, 1)
        assert filename == "b.png"
        assert updated.images == ["a.png", "c.png"]

        with pytest.raises(InvalidImageIndexError):
            await repo.remove_image_at(product.id, 2)
        assert (await repo.get(product.id)).images == ["a.png", "c.png"]
        assert await repo.remove_image_at("missing", 0) is None

    @pytest.mark.asyncio
    async def test_find_matches_quoted_and_escaped_text(
        self, session: AsyncSession
    ) -> None:
        repo = SqlProductRepository(session)
        await repo.create(make_product("Poster", 0, categories=['12" frame', "a\\b"]))
        await repo.create(make_product("Mug", 1, categories=["kitchen"]))

        assert [p.title for p in await repo.find(category='12" frame')] == ["Poster"]
        assert [p.title for p in await repo.find(search='2" FR')] == ["Poster"]
        assert [p.title for p in await repo.find(search="a\\b")] == ["Poster"]

    @pytest.mark.asyncio
    async def test_find_filters(self, session: AsyncSession) -> None:
        repo = SqlProductRepository(session)
        await repo.create(make_product("Running Shoe", 0, categories=["shoes"]))
        await repo.create(make_product("Boot", 1, categories=["Shoes", "winter"]))
        await repo.create(make_product("Hat", 2, categories=["hats", "shoes_acc"]))
        await repo.create(make_product("100% Wool", 3, categories=["knit"]))

        exact = await repo.find(category="shoes")
        assert [p.title for p in exact] == ["Running Shoe"]

        found = await repo.find(search="shoe")
        assert [p.title for p in found] == ["Running Shoe", "Boot", "Hat"]

        assert [p.title for p in await repo.find(search="shoe", limit=2)] == [
            "Running Shoe",
            "Boot",
        ]
        assert [p.title for p in await repo.find(search="0%")] == ["100% Wool"]

        newest = await repo.find(newest_first=True, limit=2)
        assert [p.title for p in newest] == ["100% Wool", "Hat"]

    @pytest.mark.asyncio
    async def test_update_many_and_first(self, session: AsyncSession) -> None:
        repo = SqlProductRepository(session)
        assert await repo.first() is None

        await repo.create(make_product("A", 0))
        await repo.create(make_product("B", 1))

        assert await repo.update_many({"sale": 25.0}) == 2
        first = await repo.first()
        assert first.title == "A"
        assert first.sale == 25.0

        with pytest.raises(KeyError):
            await repo.update_many({"images": []})

    @pytest.mark.asyncio
    async def test_ping(self, session: AsyncSession) -> None:
        assert await SqlProductRepository(session).ping() is True


class TestSqlOrderRepository:
    """Tests for SqlOrderRepository."""

    @pytest.mark.asyncio
    async def test_find_by_product_is_exact(self, session: AsyncSession) -> None:
        repo = SqlOrderRepository(session)
        hit = await repo.create(
            Order(user_id="u1", products=[OrderLine("p-1", 2), OrderLine("p-2")])
        )
        await repo.create(Order(user_id="u2", products=[OrderLine("p-10")]))

        found = await repo.find_by_product("p-1")
        assert [o.id for o in found] == [hit.id]

    @pytest.mark.asyncio
    async def test_save_and_delete(self, session: AsyncSession) -> None:
        repo = SqlOrderRepository(session)
        order = await repo.create(
            Order(user_id="u1", products=[OrderLine("p-1"), OrderLine("p-2", 4)])
        )

        order.drop_product("p-1")
        await repo.save(order)
        assert (await repo.get(order.id)).products == [OrderLine("p-2", 4)]

        assert await repo.delete(order.id) is True
        assert await repo.get(order.id) is None


class TestSqlUserRepository:
    """Tests for SqlUserRepository."""

    @pytest.mark.asyncio
    async def test_create_and_get(self, session: AsyncSession) -> None:
        repo = SqlUserRepository(session)
        user = await repo.create(User(username="ann", delivered_orders=["p-1"]))

        loaded = await repo.get(user.id)
        assert loaded.has_received("p-1")
        assert not loaded.has_received("p-2")
        assert await repo.get("missing") is None


# ============================================================================
# Concurrent Sessions
# ============================================================================


@pytest_asyncio.fixture
async def file_sessions(tmp_path: Path) -> AsyncIterator[async_sessionmaker[AsyncSession]]:
    """Session factory over a file database, so sessions see each other's commits."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'catalog.db'}",
        json_serializer=dump_json,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, expire_on_commit=False)
    await engine.dispose()


def sql_service(session: AsyncSession, tmp_path: Path) -> CatalogService:
    return CatalogService(
        products=SqlProductRepository(session),
        orders=SqlOrderRepository(session),
        users=SqlUserRepository(session),
        images=ImageStore(tmp_path / "img"),
    )


class TestConcurrentWrites:
    """Writes from one session must not erase another session's commits."""

    @pytest.mark.asyncio
    async def test_update_keeps_review_committed_after_read(
        self, file_sessions: async_sessionmaker[AsyncSession], tmp_path: Path
    ) -> None:
        async with file_sessions() as setup:
            product = await SqlProductRepository(setup).create(make_product(price=10.0))
            await setup.commit()

        async with file_sessions() as admin_session:
            service = sql_service(admin_session, tmp_path)
            await service.get_product(product.id)

            async with file_sessions() as customer_session:
                await SqlProductRepository(customer_session).append_review(
                    product.id, Review("Ann", 5, "Nice")
                )
                await customer_session.commit()

            updated = await service.update_product(product.id, {"price": 9.0})
            await admin_session.commit()

        assert updated.price == 9.0
        assert updated.reviews == [Review("Ann", 5, "Nice")]

        async with file_sessions() as check:
            stored = await SqlProductRepository(check).get(product.id)
        assert stored.price == 9.0
        assert stored.reviews == [Review("Ann", 5, "Nice")]

    @pytest.mark.asyncio
    async def test_remove_image_keeps_upload_committed_after_read(
        self, file_sessions: async_sessionmaker[AsyncSession], tmp_path: Path
    ) -> None:
        async with file_sessions() as setup:
            product = await SqlProductRepository(setup).create(
                make_product(images=["a.png", "b.png"])
            )
            await setup.commit()

        async with file_sessions() as admin_session:
            service = sql_service(admin_session, tmp_path)
            await service.get_product(product.id)

            async with file_sessions() as other_session:
                await SqlProductRepository(other_session).append_images(
                    product.id, ["c.png"]
                )
                await other_session.commit()

            result = await service.remove_image(product.id, 0)
            await admin_session.commit()

        assert result.product.images == ["b.png", "c.png"]

        async with file_sessions() as check:
            stored = await SqlProductRepository(check).get(product.id)
        assert stored.images == ["b.png", "c.png"]
