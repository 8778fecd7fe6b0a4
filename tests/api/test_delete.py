"""Tests for product deletion and its cascade into orders."""

from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from catalog_api.catalog.documents import Order, OrderLine
from catalog_api.catalog.repository import (
    InMemoryOrderRepository,
    InMemoryProductRepository,
)
from tests.conftest import make_product


class TestDeleteProduct:
    """Tests for DELETE /products/{id}."""

    @pytest.mark.asyncio
    async def test_delete_cascades_into_orders(
        self,
        admin_client: TestClient,
        products: InMemoryProductRepository,
        orders: InMemoryOrderRepository,
        image_dir: Path,
    ) -> None:
        (image_dir / "p1.png").write_bytes(b"data")
        doomed = await products.create(make_product("Doomed", images=["p1.png"]))
        kept = await products.create(make_product("Kept", minutes=1))

        only_doomed = await orders.create(
            Order(user_id="u1", products=[OrderLine(doomed.id, 2)])
        )
        mixed = await orders.create(
            Order(
                user_id="u2",
                products=[OrderLine(doomed.id), OrderLine(kept.id, 3)],
            )
        )
        untouched = await orders.create(
            Order(user_id="u3", products=[OrderLine(kept.id)])
        )

        response = admin_client.delete(f"/products/{doomed.id}")
        assert response.status_code == 200
        data = response.json()
        assert data["Success"] is True
        assert data["Message"] == "Product and associated images have been deleted"
        assert data["OrdersUpdated"] == 1
        assert data["OrdersDeleted"] == 1

        assert await products.get(doomed.id) is None
        assert await products.get(kept.id) is not None
        assert not (image_dir / "p1.png").exists()

        assert await orders.get(only_doomed.id) is None
        remaining = await orders.get(mixed.id)
        assert remaining.products == [OrderLine(kept.id, 3)]
        assert (await orders.get(untouched.id)).products == [OrderLine(kept.id)]

    @pytest.mark.asyncio
    async def test_delete_with_missing_image_file(
        self,
        admin_client: TestClient,
        products: InMemoryProductRepository,
        image_dir: Path,
    ) -> None:
        product = await products.create(make_product(images=["never-written.png"]))

        response = admin_client.delete(f"/products/{product.id}")
        assert response.status_code == 200
        assert await products.get(product.id) is None

    def test_delete_unknown_product(self, admin_client: TestClient) -> None:
        response = admin_client.delete("/products/missing")
        assert response.status_code == 404
        assert response.json()["Message"] == "Product not found"

    @pytest.mark.asyncio
    async def test_delete_requires_admin(
        self,
        customer_client: TestClient,
        products: InMemoryProductRepository,
    ) -> None:
        product = await products.create(make_product())

        response = customer_client.delete(f"/products/{product.id}")
        assert response.status_code == 403
        assert await products.get(product.id) is not None

    @pytest.mark.asyncio
    async def test_delete_reports_file_removal_failure(
        self,
        admin_client: TestClient,
        products: InMemoryProductRepository,
        image_dir: Path,
    ) -> None:
        (image_dir / "stuck.png").mkdir()
        (image_dir / "ok.png").write_bytes(b"data")
        product = await products.create(make_product(images=["stuck.png", "ok.png"]))

        response = admin_client.delete(f"/products/{product.id}")
        assert response.status_code == 200
        warnings = response.json()["Warnings"]
        assert len(warnings) == 1
        assert "stuck.png" in warnings[0]

        assert await products.get(product.id) is None
        assert not (image_dir / "ok.png").exists()
