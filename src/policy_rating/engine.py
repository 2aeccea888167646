# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Rating engine assembly and lifecycle.

``create_engine`` owns the PostgreSQL pool and the optional Redis client: it
opens them on entry and closes them on exit, so every resource the engine
uses has an explicit owner.
"""

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from attrs import frozen
from beartype import beartype

from .core.cache import Cache, CacheConfig
from .core.config import Settings, get_settings
from .core.database import Database
from .core.logging_utils import configure_logging, get_logger, level_from_name
from .services.catalog_service import CatalogService
from .services.policy_service import PolicyService
from .services.quote_service import Clock, QuoteService, utc_now
from .services.rating.factor_resolver import FactorResolver
from .storage.base import RatingStore
from .storage.postgres import PostgresRatingStore

logger = get_logger(__name__)


@frozen
class RatingEngine:
    """The wired set of services sharing one store."""

    store: RatingStore
    catalog: CatalogService
    factors: FactorResolver
    quotes: QuoteService
    policies: PolicyService

    @classmethod
    @beartype
    def from_store(
        cls,
        store: RatingStore,
        cache: Cache | None = None,
        clock: Clock = utc_now,
    ) -> "RatingEngine":
        """Wire services on top of an existing store."""
        catalog = CatalogService(store, cache)
        factors = FactorResolver(store, cache)
        quotes = QuoteService(store, catalog, factors, clock)
        policies = PolicyService(store, quotes, clock)
        return cls(
            store=store,
            catalog=catalog,
            factors=factors,
            quotes=quotes,
            policies=policies,
        )


@asynccontextmanager
async def create_engine(settings: Settings | None = None) -> AsyncIterator[RatingEngine]:
    """Open storage connections, yield a ready engine, then close them."""
    settings = settings or get_settings()
    configure_logging(level=level_from_name(settings.log_level))

    db = Database(settings)
    cache = (
        Cache(CacheConfig.from_settings(settings))
        if settings.catalog_cache_enabled
        else None
    )

    await db.connect()
    try:
        if cache is not None:
            await cache.connect()
        logger.info(
            "Rating engine started",
            extra={"env": settings.api_env, "catalog_cache": cache is not None},
        )
        yield RatingEngine.from_store(PostgresRatingStore(db), cache)
    finally:
        if cache is not None:
            await cache.disconnect()
        await db.disconnect()
        logger.info("Rating engine stopped")
