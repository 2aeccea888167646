# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Product catalog models: products, packages, benefits and limits."""

from decimal import Decimal
from enum import Enum
from typing import Any

from beartype import beartype
from pydantic import Field, field_validator, model_validator

from .base import BaseModelConfig


class RateType(str, Enum):
    """How a package's ``rate`` is turned into a premium."""

    FLAT = "FLAT"
    PERCENTAGE = "PERCENTAGE"


class ProductStatus(str, Enum):
    """Catalog lifecycle of a product."""

    ACTIVE = "ACTIVE"
    INACTIVE = "INACTIVE"
    DISCONTINUED = "DISCONTINUED"


@beartype
def format_benefit(benefit_type: str, value: str, unit: str | None = None) -> str:
    """Render a benefit row, e.g. ``Maximum Days: 30 days``."""
    if unit:
        return f"{benefit_type}: {value} {unit}"
    return f"{benefit_type}: {value}"


@beartype
class Product(BaseModelConfig):
    """An insurance product grouping one or more packages."""

    product_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    rating_type: RateType = Field(default=RateType.FLAT)
    status: ProductStatus = Field(default=ProductStatus.ACTIVE)


@beartype
class PackageLimits(BaseModelConfig):
    """Eligibility bounds for a package; every bound is optional."""

    min_age: int | None = Field(None, ge=0)
    max_age: int | None = Field(None, ge=0)
    min_family_size: int | None = Field(None, ge=1)
    max_family_size: int | None = Field(None, ge=1)
    min_sum_insured: Decimal | None = Field(None, ge=0)
    max_sum_insured: Decimal | None = Field(None, ge=0)
    additional: dict[str, Any] = Field(default_factory=dict)

    @model_validator(mode="after")
    def validate_ranges(self) -> "PackageLimits":
        """Lower bounds must not exceed upper bounds."""
        pairs = (
            ("age", self.min_age, self.max_age),
            ("family_size", self.min_family_size, self.max_family_size),
            ("sum_insured", self.min_sum_insured, self.max_sum_insured),
        )
        for name, low, high in pairs:
            if low is not None and high is not None and low > high:
                raise ValueError(f"min_{name} ({low}) exceeds max_{name} ({high})")
        return self


@beartype
class Package(BaseModelConfig):
    """A purchasable coverage option within a product."""

    package_id: str = Field(..., min_length=1, max_length=100)
    product_id: str = Field(..., min_length=1, max_length=50)
    name: str = Field(..., min_length=1, max_length=255)
    rate: Decimal = Field(..., ge=0, description="Monthly amount or annual percentage")
    rate_type: RateType = Field(default=RateType.FLAT)
    currency: str = Field(default="USD", min_length=3, max_length=3)
    minimum_premium: Decimal | None = Field(
        None, ge=0, description="Annual floor, PERCENTAGE packages only"
    )
    benefits: list[str] = Field(default_factory=list)
    limits: PackageLimits = Field(default_factory=PackageLimits)
    sort_order: int = Field(default=0)

    @field_validator("currency")
    @classmethod
    def normalize_currency(cls, v: str) -> str:
        return v.upper()
