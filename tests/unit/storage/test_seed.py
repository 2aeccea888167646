"""Unit tests for the reference catalog."""

from decimal import Decimal

from policy_rating.core.config import clear_settings_cache
from policy_rating.models.catalog import RateType
from policy_rating.storage.seed import (
    FACTOR_ROWS,
    reference_packages,
    reference_products,
)


class TestReferenceCatalog:
    """Test consistency of the seeded catalog."""

    def test_every_package_belongs_to_a_product(self):
        product_ids = {p.product_id for p in reference_products()}

        assert {p.product_id for p in reference_packages()} == product_ids

    def test_percentage_packages_have_a_floor(self):
        for package in reference_packages():
            if package.rate_type is RateType.PERCENTAGE:
                assert package.minimum_premium is not None
                assert package.limits.max_sum_insured is not None
            else:
                assert package.minimum_premium is None

    def test_currency_applied(self):
        packages = reference_packages(currency="zwg")

        assert {p.currency for p in packages} == {"ZWG"}

    def test_factor_rows_have_one_effect(self):
        for row in FACTOR_ROWS:
            assert (row["multiplier"] is None) != (row["addition"] is None)

    def test_family_plan_limits(self):
        family = next(
            p for p in reference_packages() if p.package_id == "HCP_FAMILY"
        )

        assert family.rate == Decimal("5.00")
        assert (family.limits.min_family_size, family.limits.max_family_size) == (2, 6)

    def test_configured_currency_used_by_default(self, monkeypatch):
        monkeypatch.setenv("DEFAULT_CURRENCY", "zwg")
        clear_settings_cache()
        try:
            packages = reference_packages()
        finally:
            clear_settings_cache()

        assert {p.currency for p in packages} == {"ZWG"}
