#!/usr/bin/env python3
"""Seed the catalog database for local development.

Creates the tables, a handful of products, a customer with a delivered
order, and prints bearer tokens for an admin and for that customer.

Usage:
    python scripts/seed_catalog.py
    python scripts/seed_catalog.py --products 20
"""

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from catalog_api.api.auth import ROLE_ADMIN, ROLE_USER, issue_token
from catalog_api.catalog.documents import Order, OrderLine, User
from catalog_api.catalog.service import CatalogService, get_image_store
from catalog_api.catalog.sql_repository import (
    SqlOrderRepository,
    SqlProductRepository,
    SqlUserRepository,
)
from catalog_api.infrastructure.database import Base, get_engine, session_scope

SAMPLE_PRODUCTS = [
    ("Trail Running Shoe", ["shoes", "running"], 89.0),
    ("Leather Boot", ["shoes", "boots"], 149.0),
    ("Wool Beanie", ["hats"], 19.5),
    ("Rain Jacket", ["jackets", "outdoor"], 120.0),
    ("Canvas Tote", ["bags"], 25.0),
]


async def create_tables() -> None:
    """Create database tables if they don't exist."""
    async with get_engine().begin() as conn:
        await conn.run_sync(Base.metadata.create_all)


async def seed(product_count: int) -> dict:
    """Insert sample documents.

    Args:
        product_count: Number of products to create.

    Returns:
        Identifiers of the seeded documents.
    """
    async with session_scope() as session:
        service = CatalogService(
            products=SqlProductRepository(session),
            orders=SqlOrderRepository(session),
            users=SqlUserRepository(session),
            images=get_image_store(),
        )

        product_ids = []
        for i in range(product_count):
            title, categories, price = SAMPLE_PRODUCTS[i % len(SAMPLE_PRODUCTS)]
            if i >= len(SAMPLE_PRODUCTS):
                title = f"{title} #{i // len(SAMPLE_PRODUCTS) + 1}"
            product = await service.create_product(
                {"title": title, "categories": categories, "price": price}
            )
            product_ids.append(product.id)

        customer = await service.users.create(
            User(username="customer", delivered_orders=product_ids[:1])
        )
        order = await service.orders.create(
            Order(
                user_id=customer.id,
                products=[OrderLine(product_id=pid) for pid in product_ids[:2]],
            )
        )

    return {
        "products": product_ids,
        "customer_id": customer.id,
        "order_id": order.id,
    }


async def main() -> None:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Seed the product catalog")
    parser.add_argument(
        "--products",
        type=int,
        default=len(SAMPLE_PRODUCTS),
        help="Number of products to create",
    )
    args = parser.parse_args()

    print("Creating tables...")
    await create_tables()

    result = await seed(args.products)
    print(f"Seeded {len(result['products'])} products")
    print(f"Customer: {result['customer_id']} (order {result['order_id']})")
    print(f"Admin token:    {issue_token('admin', ROLE_ADMIN)}")
    print(f"Customer token: {issue_token(result['customer_id'], ROLE_USER)}")


if __name__ == "__main__":
    asyncio.run(main())
