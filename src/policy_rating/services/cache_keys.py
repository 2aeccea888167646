# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Centralized cache key management for catalog data.

Only catalog reads are cached; quotes and policies always go to storage.
"""

from beartype import beartype


class CacheKeys:
    """Centralized cache key management."""

    CATALOG_PREFIX = "catalog"

    @staticmethod
    @beartype
    def packages_by_product(product_id: str) -> str:
        """Cache key for the active packages of a product."""
        return f"{CacheKeys.CATALOG_PREFIX}:packages:{product_id}"

    @staticmethod
    @beartype
    def factor_rows_by_product(product_id: str) -> str:
        """Cache key for the raw rating factor rows of a product."""
        return f"{CacheKeys.CATALOG_PREFIX}:factors:{product_id}"

    @staticmethod
    @beartype
    def product_pattern(product_id: str) -> str:
        """Pattern matching every cached entry for a product."""
        return f"{CacheKeys.CATALOG_PREFIX}:*:{product_id}"

    @staticmethod
    def catalog_pattern() -> str:
        return f"{CacheKeys.CATALOG_PREFIX}:*"
