# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Reference catalog: Personal Accident, Hospital Cash and Domestic products.

Used by ``scripts/seed_catalog.py`` to populate PostgreSQL and by
``load_reference_catalog`` to populate an in-memory store.
"""

from decimal import Decimal
from typing import Any

from ..core.config import get_settings
from ..models.catalog import (
    Package,
    PackageLimits,
    Product,
    ProductStatus,
    RateType,
    format_benefit,
)
from .memory import InMemoryRatingStore

PRODUCTS: list[dict[str, Any]] = [
    {
        "product_id": "HCP",
        "name": "Hospital Cash Plan",
        "rating_type": "FLAT",
        "status": "ACTIVE",
    },
    {
        "product_id": "PA",
        "name": "Personal Accident",
        "rating_type": "FLAT",
        "status": "ACTIVE",
    },
    {
        "product_id": "DOMESTIC",
        "name": "Domestic Insurance",
        "rating_type": "PERCENTAGE",
        "status": "ACTIVE",
    },
]

PACKAGES: list[dict[str, Any]] = [
    {
        "package_id": "HCP_INDIVIDUAL",
        "product_id": "HCP",
        "name": "Individual Hospital Cash Plan",
        "rate": Decimal("2.00"),
        "rate_type": "FLAT",
        "minimum_premium": None,
        "sort_order": 1,
    },
    {
        "package_id": "HCP_FAMILY",
        "product_id": "HCP",
        "name": "Family Hospital Cash Plan",
        "rate": Decimal("5.00"),
        "rate_type": "FLAT",
        "minimum_premium": None,
        "sort_order": 2,
    },
    {
        "package_id": "PA_STANDARD",
        "product_id": "PA",
        "name": "Standard Personal Accident",
        "rate": Decimal("1.00"),
        "rate_type": "FLAT",
        "minimum_premium": None,
        "sort_order": 1,
    },
    {
        "package_id": "PA_PRESTIGE",
        "product_id": "PA",
        "name": "Prestige Personal Accident",
        "rate": Decimal("2.50"),
        "rate_type": "FLAT",
        "minimum_premium": None,
        "sort_order": 2,
    },
    {
        "package_id": "PA_PREMIER",
        "product_id": "PA",
        "name": "Premier Personal Accident",
        "rate": Decimal("5.00"),
        "rate_type": "FLAT",
        "minimum_premium": None,
        "sort_order": 3,
    },
    {
        "package_id": "DOMESTIC_STANDARD",
        "product_id": "DOMESTIC",
        "name": "Standard Domestic Insurance",
        "rate": Decimal("0.75"),
        "rate_type": "PERCENTAGE",
        "minimum_premium": Decimal("25.00"),
        "sort_order": 1,
    },
    {
        "package_id": "DOMESTIC_ENHANCED",
        "product_id": "DOMESTIC",
        "name": "Enhanced Domestic Insurance",
        "rate": Decimal("1.00"),
        "rate_type": "PERCENTAGE",
        "minimum_premium": Decimal("35.00"),
        "sort_order": 2,
    },
    {
        "package_id": "DOMESTIC_COMPREHENSIVE",
        "product_id": "DOMESTIC",
        "name": "Comprehensive Domestic Insurance",
        "rate": Decimal("1.25"),
        "rate_type": "PERCENTAGE",
        "minimum_premium": Decimal("50.00"),
        "sort_order": 3,
    },
]

# (package_id, benefit_type, benefit_value, benefit_unit)
BENEFITS: list[tuple[str, str, str, str]] = [
    ("HCP_INDIVIDUAL", "Daily Cash Benefit", "50", "USD/day"),
    ("HCP_INDIVIDUAL", "Maximum Days", "30", "days"),
    ("HCP_FAMILY", "Daily Cash Benefit", "50", "USD/day per person"),
    ("HCP_FAMILY", "Maximum Days", "30", "days per person"),
    ("HCP_FAMILY", "Family Members", "6", "max members"),
    ("PA_STANDARD", "Accidental Death", "1000", "USD"),
    ("PA_STANDARD", "Permanent Total Disablement", "1000", "USD"),
    ("PA_PRESTIGE", "Accidental Death", "2500", "USD"),
    ("PA_PRESTIGE", "Permanent Total Disablement", "2500", "USD"),
    ("PA_PREMIER", "Accidental Death", "10000", "USD"),
    ("PA_PREMIER", "Permanent Total Disablement", "10000", "USD"),
    ("DOMESTIC_STANDARD", "Contents Cover", "Yes", ""),
    ("DOMESTIC_STANDARD", "Buildings Cover", "Yes", ""),
    ("DOMESTIC_ENHANCED", "Contents Cover", "Yes", ""),
    ("DOMESTIC_ENHANCED", "Buildings Cover", "Yes", ""),
    ("DOMESTIC_ENHANCED", "Alternative Accommodation", "Yes", ""),
    ("DOMESTIC_COMPREHENSIVE", "Contents Cover", "Yes", ""),
    ("DOMESTIC_COMPREHENSIVE", "Buildings Cover", "Yes", ""),
    ("DOMESTIC_COMPREHENSIVE", "Alternative Accommodation", "Yes", ""),
    ("DOMESTIC_COMPREHENSIVE", "All Risks Extension", "Yes", ""),
]

LIMITS: dict[str, dict[str, Any]] = {
    "HCP_INDIVIDUAL": {
        "min_age": 18,
        "max_age": 65,
        "min_family_size": 1,
        "max_family_size": 1,
    },
    "HCP_FAMILY": {
        "min_age": 18,
        "max_age": 65,
        "min_family_size": 2,
        "max_family_size": 6,
    },
    "PA_STANDARD": {"min_age": 18, "max_age": 70},
    "PA_PRESTIGE": {"min_age": 18, "max_age": 70},
    "PA_PREMIER": {"min_age": 18, "max_age": 70},
    "DOMESTIC_STANDARD": {
        "min_sum_insured": Decimal("1000"),
        "max_sum_insured": Decimal("100000"),
    },
    "DOMESTIC_ENHANCED": {
        "min_sum_insured": Decimal("1000"),
        "max_sum_insured": Decimal("200000"),
    },
    "DOMESTIC_COMPREHENSIVE": {
        "min_sum_insured": Decimal("1000"),
        "max_sum_insured": Decimal("500000"),
    },
}

FACTOR_ROWS: list[dict[str, Any]] = [
    {
        "product_id": "PA",
        "factor_type": "AGE_BAND",
        "factor_key": "18-30",
        "multiplier": Decimal("1.0"),
        "addition": None,
        "description": "Standard rate for ages 18-30",
    },
    {
        "product_id": "PA",
        "factor_type": "AGE_BAND",
        "factor_key": "31-45",
        "multiplier": Decimal("1.2"),
        "addition": None,
        "description": "20% increase for ages 31-45",
    },
    {
        "product_id": "PA",
        "factor_type": "AGE_BAND",
        "factor_key": "46-60",
        "multiplier": Decimal("1.5"),
        "addition": None,
        "description": "50% increase for ages 46-60",
    },
    {
        "product_id": "PA",
        "factor_type": "AGE_BAND",
        "factor_key": "61-70",
        "multiplier": Decimal("2.0"),
        "addition": None,
        "description": "100% increase for ages 61-70",
    },
    {
        "product_id": "HCP",
        "factor_type": "FAMILY_SIZE",
        "factor_key": "EXTRA_MEMBER",
        "multiplier": None,
        "addition": Decimal("1.0"),
        "description": "$1 per additional family member above 2",
    },
    {
        "product_id": "DOMESTIC",
        "factor_type": "COVER_TYPE",
        "factor_key": "HOMEOWNERS",
        "multiplier": Decimal("1.0"),
        "addition": None,
        "description": "Standard rate for homeowners",
    },
    {
        "product_id": "DOMESTIC",
        "factor_type": "COVER_TYPE",
        "factor_key": "HOUSEHOLDERS",
        "multiplier": Decimal("0.8"),
        "addition": None,
        "description": "20% discount for contents only",
    },
]


def reference_products() -> list[Product]:
    return [
        Product(
            product_id=row["product_id"],
            name=row["name"],
            rating_type=RateType(row["rating_type"]),
            status=ProductStatus(row["status"]),
        )
        for row in PRODUCTS
    ]


def reference_packages(currency: str | None = None) -> list[Package]:
    """Packages with their benefits and limits attached.

    Packages are priced in ``currency``, or in the configured
    ``default_currency`` when none is given.
    """
    currency = currency or get_settings().default_currency
    packages = []
    for row in PACKAGES:
        package_id = row["package_id"]
        packages.append(
            Package(
                package_id=package_id,
                product_id=row["product_id"],
                name=row["name"],
                rate=row["rate"],
                rate_type=RateType(row["rate_type"]),
                currency=currency,
                minimum_premium=row["minimum_premium"],
                benefits=[
                    format_benefit(benefit_type, value, unit)
                    for pid, benefit_type, value, unit in BENEFITS
                    if pid == package_id
                ],
                limits=PackageLimits(**LIMITS.get(package_id, {})),
                sort_order=row["sort_order"],
            )
        )
    return packages


def load_reference_catalog(
    store: InMemoryRatingStore, currency: str | None = None
) -> InMemoryRatingStore:
    """Populate an in-memory store with the reference catalog."""
    for product in reference_products():
        store.add_product(product)
    for package in reference_packages(currency):
        store.add_package(package)
    for order, row in enumerate(FACTOR_ROWS):
        store.add_factor(row, sort_order=order)
    return store
