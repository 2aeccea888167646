# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Catalog reads: products and their packages."""

from typing import Any

import redis.asyncio as redis
from beartype import beartype
from pydantic import ValidationError

from ..core.cache import Cache
from ..core.errors import RatingError
from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..models.catalog import Package
from ..storage.base import RatingStore, StorageUnavailableError
from .cache_keys import CacheKeys

logger = get_logger(__name__)


class CatalogService:
    """Read active packages, optionally through the Redis cache."""

    def __init__(self, store: RatingStore, cache: Cache | None = None) -> None:
        """Initialize catalog service.

        Args:
            store: Persistence backend holding the catalog
            cache: Optional read-through cache; ``None`` disables caching
        """
        self._store = store
        self._cache = cache

    @beartype
    async def get_packages(self, product_id: str) -> Result[list[Package], RatingError]:
        """Active packages of an active product, in catalog order."""
        cached = await self._read_cache(product_id)
        if cached is not None:
            return Ok(cached)

        try:
            packages = await self._store.list_packages(product_id)
            product = None if packages else await self._store.get_product(product_id)
        except StorageUnavailableError as e:
            logger.warning(
                "Catalog read failed", extra={"product_id": product_id, "error": str(e)}
            )
            return Err(RatingError.storage_unavailable(str(e), product_id=product_id))

        if not packages:
            if product is None:
                return Err(
                    RatingError.not_found(
                        f"Product {product_id} not found", product_id=product_id
                    )
                )
            return Err(
                RatingError.not_found(
                    f"No active packages found for product {product_id}",
                    product_id=product_id,
                    product_status=product.status.value,
                )
            )

        await self._write_cache(product_id, packages)
        return Ok(packages)

    @beartype
    async def get_package(
        self, product_id: str, package_id: str
    ) -> Result[Package, RatingError]:
        """One active package of a product."""
        result = await self.get_packages(product_id)
        if isinstance(result, Err):
            return result

        for package in result.value:
            if package.package_id == package_id:
                return Ok(package)
        return Err(
            RatingError.not_found(
                f"Package {package_id} not found for product {product_id}",
                product_id=product_id,
                package_id=package_id,
            )
        )

    @beartype
    async def resolve_package(
        self, product_id: str, package_id: str | None
    ) -> Result[Package, RatingError]:
        """Pick the package a quote is priced against.

        Without an explicit ``package_id`` the product must offer exactly one
        package.
        """
        if package_id is not None:
            return await self.get_package(product_id, package_id)

        result = await self.get_packages(product_id)
        if isinstance(result, Err):
            return result

        packages = result.value
        if len(packages) != 1:
            return Err(
                RatingError.invalid_input(
                    f"Product {product_id} offers {len(packages)} packages; "
                    "a package id is required",
                    product_id=product_id,
                    package_ids=[p.package_id for p in packages],
                )
            )
        return Ok(packages[0])

    @beartype
    async def invalidate(self, product_id: str | None = None) -> int:
        """Drop cached catalog entries for one product, or for all products."""
        if self._cache is None:
            return 0
        pattern = (
            CacheKeys.product_pattern(product_id)
            if product_id is not None
            else CacheKeys.catalog_pattern()
        )
        return await self._cache.clear_pattern(pattern)

    async def _read_cache(self, product_id: str) -> list[Package] | None:
        if self._cache is None:
            return None
        try:
            data: Any = await self._cache.get(CacheKeys.packages_by_product(product_id))
            if data is None:
                return None
            return [Package.model_validate(item) for item in data]
        except (redis.RedisError, OSError, ValidationError, TypeError) as e:
            logger.warning(
                "Ignoring unreadable package cache entry",
                extra={"product_id": product_id, "error": str(e)},
            )
            return None

    async def _write_cache(self, product_id: str, packages: list[Package]) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(
                CacheKeys.packages_by_product(product_id),
                [p.model_dump(mode="json") for p in packages],
            )
        except (redis.RedisError, OSError) as e:
            logger.warning(
                "Failed to cache packages",
                extra={"product_id": product_id, "error": str(e)},
            )
