# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium results and the quote entity."""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from beartype import beartype
from pydantic import Field, model_validator

from .base import BaseModelConfig, round2
from .factor import AppliedFactor

QUOTE_VALIDITY = timedelta(hours=48)


class QuoteStatus(str, Enum):
    """Quote lifecycle; ACCEPTED and EXPIRED are terminal."""

    ACTIVE = "ACTIVE"
    ACCEPTED = "ACCEPTED"
    EXPIRED = "EXPIRED"


class CalculationMethod(str, Enum):
    FLAT = "FLAT"
    PERCENTAGE = "PERCENTAGE"


@beartype
class PremiumBreakdown(BaseModelConfig):
    """Intermediate values kept for audit reproduction of a premium."""

    calculation_method: CalculationMethod
    base_rate: Decimal
    adjusted_monthly: Decimal = Field(
        ..., description="Monthly premium before rounding to cents"
    )
    duration_months: int
    sum_insured: Decimal | None = None
    minimum_applied: bool = False


@beartype
class PremiumResult(BaseModelConfig):
    """Output of the premium calculator."""

    base_premium: Decimal
    monthly_premium: Decimal
    total_premium: Decimal
    currency: str
    applied_factors: list[AppliedFactor] = Field(default_factory=list)
    breakdown: PremiumBreakdown


@beartype
class Quote(BaseModelConfig):
    """A price-locked, time-bounded offer for one package."""

    quote_id: UUID
    # Room for a 50-character product id plus "-QTE-", millis and suffix
    quote_number: str = Field(..., min_length=1, max_length=80)
    product_id: str = Field(..., min_length=1)
    package_id: str = Field(..., min_length=1)
    customer_info: dict[str, Any] = Field(default_factory=dict)
    risk_factors: dict[str, Any] = Field(default_factory=dict)
    duration_months: int = Field(..., ge=1, le=12)
    base_premium: Decimal
    monthly_premium: Decimal
    total_premium: Decimal
    currency: str = Field(..., min_length=3, max_length=3)
    applied_factors: list[AppliedFactor] = Field(default_factory=list)
    breakdown: PremiumBreakdown | None = None
    status: QuoteStatus = QuoteStatus.ACTIVE
    expires_at: datetime
    created_at: datetime
    updated_at: datetime | None = None

    @model_validator(mode="after")
    def validate_total(self) -> "Quote":
        """Total premium is always the rounded monthly premium times duration."""
        expected = round2(self.monthly_premium * self.duration_months)
        if self.total_premium != expected:
            raise ValueError(
                f"total_premium {self.total_premium} does not match "
                f"monthly_premium x duration_months ({expected})"
            )
        return self

    def is_valid_at(self, now: datetime) -> bool:
        """Whether a policy may still be issued from this quote at ``now``."""
        return self.status is QuoteStatus.ACTIVE and now < self.expires_at

    def is_expired_at(self, now: datetime) -> bool:
        return self.status is QuoteStatus.EXPIRED or now >= self.expires_at
