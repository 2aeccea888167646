# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium rating: factor resolution and premium calculation."""

from .calculators import MAX_DURATION_MONTHS, MIN_DURATION_MONTHS, PremiumCalculator
from .factor_resolver import FactorResolver

__all__ = [
    "MAX_DURATION_MONTHS",
    "MIN_DURATION_MONTHS",
    "FactorResolver",
    "PremiumCalculator",
]
