"""Seed the reference product catalog.

Populates products, packages, package benefits, package limits and rating
factors for the Personal Accident, Hospital Cash and Domestic products.

Usage:
    python scripts/seed_catalog.py [--force]
"""

import argparse
import asyncio
import os

import asyncpg
from dotenv import load_dotenv

from policy_rating.core.config import get_settings
from policy_rating.storage.seed import (
    BENEFITS,
    FACTOR_ROWS,
    LIMITS,
    PACKAGES,
    PRODUCTS,
)

load_dotenv()


async def seed_products(conn: asyncpg.Connection) -> None:
    """Seed products and their packages."""
    print("Seeding products and packages...")

    for product in PRODUCTS:
        await conn.execute(
            """
            INSERT INTO products (product_id, name, rating_type, status)
            VALUES ($1, $2, $3, $4)
            """,
            product["product_id"],
            product["name"],
            product["rating_type"],
            product["status"],
        )

    currency = get_settings().default_currency
    for package in PACKAGES:
        await conn.execute(
            """
            INSERT INTO packages (
                package_id, product_id, name, rate, rate_type, currency,
                minimum_premium, sort_order
            ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8)
            """,
            package["package_id"],
            package["product_id"],
            package["name"],
            package["rate"],
            package["rate_type"],
            currency,
            package["minimum_premium"],
            package["sort_order"],
        )

    print(f"✅ Seeded {len(PRODUCTS)} products and {len(PACKAGES)} packages")


async def seed_benefits_and_limits(conn: asyncpg.Connection) -> None:
    """Seed package benefits and eligibility limits."""
    print("Seeding package benefits and limits...")

    for order, (package_id, benefit_type, value, unit) in enumerate(BENEFITS):
        await conn.execute(
            """
            INSERT INTO package_benefits (
                package_id, benefit_type, benefit_value, benefit_unit, sort_order
            ) VALUES ($1, $2, $3, $4, $5)
            """,
            package_id,
            benefit_type,
            value,
            unit or None,
            order,
        )

    for package_id, limits in LIMITS.items():
        await conn.execute(
            """
            INSERT INTO package_limits (
                package_id, min_age, max_age, min_family_size, max_family_size,
                min_sum_insured, max_sum_insured
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            package_id,
            limits.get("min_age"),
            limits.get("max_age"),
            limits.get("min_family_size"),
            limits.get("max_family_size"),
            limits.get("min_sum_insured"),
            limits.get("max_sum_insured"),
        )

    print(f"✅ Seeded {len(BENEFITS)} benefits and {len(LIMITS)} limit rows")


async def seed_rating_factors(conn: asyncpg.Connection) -> None:
    """Seed rating factors in application order."""
    print("Seeding rating factors...")

    for order, factor in enumerate(FACTOR_ROWS):
        await conn.execute(
            """
            INSERT INTO rating_factors (
                product_id, factor_type, factor_key, multiplier, addition,
                description, sort_order
            ) VALUES ($1, $2, $3, $4, $5, $6, $7)
            """,
            factor["product_id"],
            factor["factor_type"],
            factor["factor_key"],
            factor["multiplier"],
            factor["addition"],
            factor["description"],
            order,
        )

    print(f"✅ Seeded {len(FACTOR_ROWS)} rating factors")


async def main(force: bool) -> None:
    """Seed all catalog tables in one transaction."""
    database_url = os.getenv("DATABASE_URL", get_settings().database_url)

    conn = await asyncpg.connect(database_url)
    print("Connected to database")
    try:
        existing = await conn.fetchval("SELECT COUNT(*) FROM products")
        if existing and not force:
            print(f"⚠️  Catalog already contains {existing} products. Skipping seed.")
            return

        async with conn.transaction():
            if force:
                await conn.execute("DELETE FROM rating_factors")
                await conn.execute("DELETE FROM package_limits")
                await conn.execute("DELETE FROM package_benefits")
                await conn.execute("DELETE FROM packages")
                await conn.execute("DELETE FROM products")
            await seed_products(conn)
            await seed_benefits_and_limits(conn)
            await seed_rating_factors(conn)

        print("\n✅ Catalog seeded successfully!")
    finally:
        await conn.close()


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description=__doc__.splitlines()[0])
    parser.add_argument(
        "--force",
        action="store_true",
        help="Replace existing catalog rows (fails if quotes reference them)",
    )
    asyncio.run(main(parser.parse_args().force))
