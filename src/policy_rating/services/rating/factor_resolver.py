# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Rating factor loading and matching.

Stored factor rows are validated into the closed set of factor variants.
Rows that fail validation (unknown type, both or neither of multiplier and
addition) are logged and dropped, so a bad row can never change a premium.
"""

from collections.abc import Mapping
from typing import Any

import redis.asyncio as redis
from beartype import beartype
from pydantic import ValidationError

from ...core.cache import Cache
from ...core.errors import RatingError
from ...core.logging_utils import get_logger
from ...core.result_types import Err, Ok, Result
from ...models.factor import RatingFactor, RiskAttributes, parse_factor
from ...storage.base import RatingStore, StorageUnavailableError
from ..cache_keys import CacheKeys

logger = get_logger(__name__)


class FactorResolver:
    """Resolve which rating factors apply to a set of risk attributes."""

    def __init__(self, store: RatingStore, cache: Cache | None = None) -> None:
        self._store = store
        self._cache = cache

    @beartype
    async def load_factors(
        self, product_id: str
    ) -> Result[list[RatingFactor], RatingError]:
        """All valid factors of a product, in definition order."""
        rows = await self._read_cache(product_id)
        if rows is None:
            try:
                rows = await self._store.list_factor_rows(product_id)
            except StorageUnavailableError as e:
                logger.warning(
                    "Factor read failed",
                    extra={"product_id": product_id, "error": str(e)},
                )
                return Err(
                    RatingError.storage_unavailable(str(e), product_id=product_id)
                )
            await self._write_cache(product_id, rows)

        factors: list[RatingFactor] = []
        for row in rows:
            factor = self._parse_row(product_id, row)
            if factor is not None:
                factors.append(factor)
        return Ok(factors)

    @beartype
    async def applicable_factors(
        self, product_id: str, risk_attributes: Mapping[str, Any]
    ) -> Result[list[RatingFactor], RatingError]:
        """Factors whose predicate matches, in definition order."""
        try:
            risk = RiskAttributes.from_mapping(risk_attributes)
        except ValidationError as e:
            return Err(
                RatingError.invalid_input(
                    "Invalid risk attributes", errors=e.errors(include_url=False)
                )
            )

        result = await self.load_factors(product_id)
        if isinstance(result, Err):
            return result
        return Ok([f for f in result.value if f.matches(risk)])

    @staticmethod
    def _parse_row(product_id: str, row: Mapping[str, Any]) -> RatingFactor | None:
        try:
            return parse_factor(row)
        except ValidationError as e:
            logger.warning(
                "Skipping invalid rating factor",
                extra={
                    "product_id": product_id,
                    "factor_type": row.get("factor_type"),
                    "factor_key": row.get("factor_key"),
                    "error_count": e.error_count(),
                },
            )
            return None

    async def _read_cache(self, product_id: str) -> list[dict[str, Any]] | None:
        if self._cache is None:
            return None
        try:
            data = await self._cache.get(CacheKeys.factor_rows_by_product(product_id))
        except (redis.RedisError, OSError) as e:
            logger.warning(
                "Factor cache read failed",
                extra={"product_id": product_id, "error": str(e)},
            )
            return None
        if not isinstance(data, list):
            return None
        return data

    async def _write_cache(self, product_id: str, rows: list[dict[str, Any]]) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(CacheKeys.factor_rows_by_product(product_id), rows)
        except (redis.RedisError, OSError) as e:
            logger.warning(
                "Failed to cache rating factors",
                extra={"product_id": product_id, "error": str(e)},
            )
