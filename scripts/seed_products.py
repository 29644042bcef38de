#!/usr/bin/env python3
"""
Seed Script: Sample Products
============================

Creates 50 sample products so the listing endpoint has something to filter,
sort and paginate.

Usage:
    python scripts/seed_products.py [--count N]

Requirements:
    - DATABASE_URL pointing at the target database (defaults to ./catalog.db)

Each product gets:
    - name "Product N" and description "Description for product N"
    - a random price between 1.00 and 100.00
    - a random stock quantity between 0 and 100
"""

import argparse
import asyncio
import random
import sys
from decimal import Decimal

from catalog_api.core.config import settings
from catalog_api.core.logging_config import get_logger, setup_logging
from catalog_api.db.session import AsyncSessionLocal, engine, init_models
from catalog_api.repositories.product_repository import ProductRepository


logger = get_logger("catalog_api.scripts.seed_products")

DEFAULT_COUNT = 50


async def seed_products(count: int = DEFAULT_COUNT) -> int:
    """Insert ``count`` sample products in a single transaction."""
    await init_models()

    async with AsyncSessionLocal() as session:
        repo = ProductRepository(session)
        try:
            for number in range(1, count + 1):
                await repo.create(
                    name=f"Product {number}",
                    description=f"Description for product {number}",
                    price=Decimal(str(round(random.uniform(1.0, 100.0), 2))),
                    stock_quantity=random.randint(0, 100),
                )
            await session.commit()
        except Exception as exc:
            await session.rollback()
            logger.error("seed_products_failed", error_type=type(exc).__name__, error=str(exc), exc_info=True)
            raise

    await engine.dispose()
    logger.info("seed_products_completed", count=count, database_url=settings.DATABASE_URL)
    return count


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed the catalog with sample products")
    parser.add_argument("--count", type=int, default=DEFAULT_COUNT, help="number of products to create")
    args = parser.parse_args()

    if args.count <= 0:
        parser.error("--count must be positive")

    setup_logging(debug=settings.is_debug_mode, json_logs=settings.use_json_logs)
    asyncio.run(seed_products(args.count))
    return 0


if __name__ == "__main__":
    sys.exit(main())
