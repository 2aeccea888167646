# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Business logic services for catalog, quotes and policies."""

from .cache_keys import CacheKeys
from .catalog_service import CatalogService
from .policy_service import PolicyService
from .quote_service import QuoteService, utc_now
from .rating import FactorResolver, PremiumCalculator

__all__ = [
    "CacheKeys",
    "CatalogService",
    "FactorResolver",
    "PolicyService",
    "PremiumCalculator",
    "QuoteService",
    "utc_now",
]
