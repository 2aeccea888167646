# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Quote generation and management service."""

import secrets
from collections.abc import Callable, Mapping
from datetime import datetime, timezone
from typing import Any
from uuid import UUID, uuid4

from beartype import beartype
from pydantic import ValidationError

from ..core.errors import RatingError
from ..core.logging_utils import get_logger
from ..core.result_types import Err, Ok, Result
from ..models.catalog import Package
from ..models.factor import RiskAttributes
from ..models.quote import QUOTE_VALIDITY, Quote, QuoteStatus
from ..storage.base import (
    DuplicateQuoteNumberError,
    RatingStore,
    StorageUnavailableError,
)
from .catalog_service import CatalogService
from .rating.calculators import PremiumCalculator
from .rating.factor_resolver import FactorResolver

logger = get_logger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock: timezone-aware current UTC time."""
    return datetime.now(timezone.utc)


class QuoteService:
    """Service for quote generation, lookup and validity checks."""

    MAX_NUMBER_ATTEMPTS = 3

    def __init__(
        self,
        store: RatingStore,
        catalog: CatalogService,
        factors: FactorResolver,
        clock: Clock = utc_now,
    ) -> None:
        """Initialize quote service.

        Args:
            store: Persistence backend for quotes
            catalog: Package lookup
            factors: Rating factor lookup
            clock: Source of the current time; injected by tests
        """
        self._store = store
        self._catalog = catalog
        self._factors = factors
        self._clock = clock

    @beartype
    async def generate_quote(
        self,
        product_id: str,
        package_id: str | None,
        customer_info: Mapping[str, Any],
        risk_attributes: Mapping[str, Any],
        duration_months: int,
    ) -> Result[Quote, RatingError]:
        """Price a package and persist the quote, valid for 48 hours."""
        package_result = await self._catalog.resolve_package(product_id, package_id)
        if isinstance(package_result, Err):
            return package_result
        package = package_result.value

        eligibility = self._check_limits(package, risk_attributes)
        if isinstance(eligibility, Err):
            return eligibility

        factors_result = await self._factors.applicable_factors(
            product_id, risk_attributes
        )
        if isinstance(factors_result, Err):
            return factors_result

        premium_result = PremiumCalculator.calculate(
            package, factors_result.value, risk_attributes, duration_months
        )
        if isinstance(premium_result, Err):
            return premium_result
        premium = premium_result.value

        now = self._clock()
        for attempt in range(1, self.MAX_NUMBER_ATTEMPTS + 1):
            quote = Quote(
                quote_id=uuid4(),
                quote_number=self._generate_quote_number(product_id, now),
                product_id=product_id,
                package_id=package.package_id,
                customer_info=dict(customer_info),
                risk_factors=dict(risk_attributes),
                duration_months=duration_months,
                base_premium=premium.base_premium,
                monthly_premium=premium.monthly_premium,
                total_premium=premium.total_premium,
                currency=premium.currency,
                applied_factors=premium.applied_factors,
                breakdown=premium.breakdown,
                status=QuoteStatus.ACTIVE,
                expires_at=now + QUOTE_VALIDITY,
                created_at=now,
            )
            try:
                stored = await self._store.insert_quote(quote)
            except DuplicateQuoteNumberError:
                logger.warning(
                    "Quote number collision, retrying",
                    extra={"quote_number": quote.quote_number, "attempt": attempt},
                )
                continue
            except StorageUnavailableError as e:
                return Err(
                    RatingError.storage_unavailable(str(e), product_id=product_id)
                )

            logger.info(
                "Quote generated",
                extra={
                    "quote_number": stored.quote_number,
                    "package_id": stored.package_id,
                    "total_premium": str(stored.total_premium),
                },
            )
            return Ok(stored)

        return Err(
            RatingError.storage_unavailable(
                "Could not allocate a unique quote number",
                product_id=product_id,
                attempts=self.MAX_NUMBER_ATTEMPTS,
            )
        )

    @beartype
    async def get_quote(self, quote_number: str) -> Result[Quote, RatingError]:
        """Load a quote by its public number."""
        try:
            quote = await self._store.get_quote_by_number(quote_number)
        except StorageUnavailableError as e:
            return Err(RatingError.storage_unavailable(str(e), quote_number=quote_number))
        if quote is None:
            return Err(
                RatingError.not_found(
                    f"Quote {quote_number} not found", quote_number=quote_number
                )
            )
        return Ok(quote)

    @beartype
    async def get_quote_by_id(self, quote_id: UUID) -> Result[Quote, RatingError]:
        try:
            quote = await self._store.get_quote_by_id(quote_id)
        except StorageUnavailableError as e:
            return Err(RatingError.storage_unavailable(str(e), quote_id=str(quote_id)))
        if quote is None:
            return Err(
                RatingError.not_found(
                    f"Quote {quote_id} not found", quote_id=str(quote_id)
                )
            )
        return Ok(quote)

    @beartype
    def is_valid(self, quote: Quote) -> bool:
        """A quote is valid while ACTIVE and strictly before its expiry."""
        return quote.is_valid_at(self._clock())

    @beartype
    def check_issuable(self, quote: Quote) -> Result[None, RatingError]:
        """Explain why a policy cannot be issued from ``quote``, if it cannot."""
        if quote.status is QuoteStatus.ACCEPTED:
            return Err(RatingError.quote_already_consumed(quote.quote_number))
        if quote.is_expired_at(self._clock()):
            return Err(RatingError.quote_expired(quote.quote_number))
        return Ok(None)

    @beartype
    async def expire_stale_quotes(self) -> Result[int, RatingError]:
        """Mark lapsed ACTIVE quotes as EXPIRED for reporting."""
        try:
            count = await self._store.expire_quotes(self._clock())
        except StorageUnavailableError as e:
            return Err(RatingError.storage_unavailable(str(e)))
        if count:
            logger.info("Expired stale quotes", extra={"count": count})
        return Ok(count)

    def _generate_quote_number(self, product_id: str, now: datetime) -> str:
        """Generate a quote number like ``PA-QTE-1735689600000A3F9``."""
        millis = int(now.timestamp() * 1000)
        return f"{product_id}-QTE-{millis}{secrets.token_hex(2).upper()}"

    def _check_limits(
        self, package: Package, risk_attributes: Mapping[str, Any]
    ) -> Result[None, RatingError]:
        """Reject risks outside the package's eligibility bounds."""
        try:
            risk = RiskAttributes.from_mapping(risk_attributes)
        except ValidationError as e:
            return Err(
                RatingError.invalid_input(
                    "Invalid risk attributes", errors=e.errors(include_url=False)
                )
            )

        limits = package.limits
        if limits.min_age is not None or limits.max_age is not None:
            if risk.age is None:
                return Err(
                    RatingError.invalid_input(
                        f"age is required for package {package.package_id}",
                        package_id=package.package_id,
                    )
                )
            if not _within(risk.age, limits.min_age, limits.max_age):
                return Err(
                    RatingError.invalid_input(
                        f"Age {risk.age} is outside {limits.min_age}-"
                        f"{limits.max_age} for package {package.package_id}",
                        package_id=package.package_id,
                        age=risk.age,
                    )
                )

        # An absent family size means a single insured person
        family_size = risk.family_size if risk.family_size is not None else 1
        if not _within(family_size, limits.min_family_size, limits.max_family_size):
            return Err(
                RatingError.invalid_input(
                    f"Family size {family_size} is outside "
                    f"{limits.min_family_size}-{limits.max_family_size} "
                    f"for package {package.package_id}",
                    package_id=package.package_id,
                    family_size=family_size,
                )
            )

        if risk.sum_insured is not None and not _within(
            risk.sum_insured, limits.min_sum_insured, limits.max_sum_insured
        ):
            return Err(
                RatingError.invalid_input(
                    f"Sum insured {risk.sum_insured} is outside "
                    f"{limits.min_sum_insured}-{limits.max_sum_insured} "
                    f"for package {package.package_id}",
                    package_id=package.package_id,
                    sum_insured=str(risk.sum_insured),
                )
            )
        return Ok(None)


def _within(value: Any, low: Any, high: Any) -> bool:
    return (low is None or value >= low) and (high is None or value <= high)
