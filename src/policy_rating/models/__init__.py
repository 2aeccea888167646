# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Domain models for catalog, rating, quotes and policies."""

from .base import BaseModelConfig, round2
from .catalog import (
    Package,
    PackageLimits,
    Product,
    ProductStatus,
    RateType,
    format_benefit,
)
from .factor import (
    AgeBandFactor,
    AppliedFactor,
    CoverTypeFactor,
    FamilySizeFactor,
    LocationFactor,
    OccupationFactor,
    RatingFactor,
    RiskAttributes,
    parse_factor,
)
from .policy import (
    PaymentConfirmation,
    PaymentMethod,
    PaymentTransaction,
    Policy,
    PolicyStatus,
    TransactionStatus,
    policy_expiry,
)
from .quote import (
    QUOTE_VALIDITY,
    CalculationMethod,
    PremiumBreakdown,
    PremiumResult,
    Quote,
    QuoteStatus,
)

__all__ = [
    # Base
    "BaseModelConfig",
    "round2",
    # Catalog
    "Package",
    "PackageLimits",
    "Product",
    "ProductStatus",
    "RateType",
    "format_benefit",
    # Factors
    "AgeBandFactor",
    "AppliedFactor",
    "CoverTypeFactor",
    "FamilySizeFactor",
    "LocationFactor",
    "OccupationFactor",
    "RatingFactor",
    "RiskAttributes",
    "parse_factor",
    # Quotes
    "QUOTE_VALIDITY",
    "CalculationMethod",
    "PremiumBreakdown",
    "PremiumResult",
    "Quote",
    "QuoteStatus",
    # Policies
    "PaymentConfirmation",
    "PaymentMethod",
    "PaymentTransaction",
    "Policy",
    "PolicyStatus",
    "TransactionStatus",
    "policy_expiry",
]
