"""Unit tests for rating factor resolution."""

import logging
from decimal import Decimal

import pytest

from policy_rating.core.errors import ErrorKind
from policy_rating.services.cache_keys import CacheKeys
from policy_rating.services.rating.factor_resolver import FactorResolver
from policy_rating.storage.base import StorageUnavailableError
from policy_rating.storage.memory import InMemoryRatingStore


def factor_row(factor_type, factor_key, multiplier=None, addition=None, product="PA"):
    return {
        "product_id": product,
        "factor_type": factor_type,
        "factor_key": factor_key,
        "multiplier": multiplier,
        "addition": addition,
        "description": None,
    }


class TestFactorResolver:
    """Test loading and matching of rating factors."""

    async def test_load_factors_in_definition_order(self, store):
        resolver = FactorResolver(store)

        result = await resolver.load_factors("PA")

        assert result.is_ok()
        keys = [f.factor_key for f in result.unwrap()]
        assert keys == ["18-30", "31-45", "46-60", "61-70"]

    async def test_sort_order_wins_over_insertion(self):
        store = InMemoryRatingStore()
        store.add_factor(factor_row("AGE_BAND", "18-30", Decimal("1")), sort_order=2)
        store.add_factor(factor_row("LOCATION", "HARARE", Decimal("1.1")), sort_order=1)
        resolver = FactorResolver(store)

        factors = (await resolver.load_factors("PA")).unwrap()

        assert [f.factor_type for f in factors] == ["LOCATION", "AGE_BAND"]

    async def test_applicable_factors_by_age(self, store):
        resolver = FactorResolver(store)

        result = await resolver.applicable_factors("PA", {"age": 50})

        [factor] = result.unwrap()
        assert factor.factor_key == "46-60"
        assert factor.multiplier == Decimal("1.5")

    async def test_no_match_outside_bands(self, store):
        resolver = FactorResolver(store)

        result = await resolver.applicable_factors("PA", {"age": 75})

        assert result.unwrap() == []

    async def test_family_size_factor(self, store):
        resolver = FactorResolver(store)

        small = await resolver.applicable_factors("HCP", {"familySize": 2})
        large = await resolver.applicable_factors("HCP", {"familySize": 4})

        assert small.unwrap() == []
        assert [f.factor_type for f in large.unwrap()] == ["FAMILY_SIZE"]

    async def test_product_without_factors(self, store):
        resolver = FactorResolver(store)

        result = await resolver.load_factors("TRAVEL")

        assert result.unwrap() == []

    async def test_invalid_rows_are_skipped(self, caplog):
        store = InMemoryRatingStore()
        store.add_factor(factor_row("AGE_BAND", "18-30", Decimal("1.0")))
        store.add_factor(factor_row("CREDIT_SCORE", "A", Decimal("0.9")))
        store.add_factor(
            factor_row("COVER_TYPE", "BOTH", Decimal("1.1"), Decimal("2.0"))
        )
        store.add_factor(factor_row("LOCATION", "NONE"))
        resolver = FactorResolver(store)

        with caplog.at_level(logging.WARNING):
            result = await resolver.load_factors("PA")

        assert [f.factor_key for f in result.unwrap()] == ["18-30"]
        skipped = [r for r in caplog.records if "Skipping invalid" in r.getMessage()]
        assert len(skipped) == 3

    async def test_inactive_rows_are_ignored(self):
        store = InMemoryRatingStore()
        store.add_factor(factor_row("AGE_BAND", "18-30", Decimal("1.0")), active=False)
        resolver = FactorResolver(store)

        assert (await resolver.load_factors("PA")).unwrap() == []

    async def test_invalid_risk_attributes(self, store):
        resolver = FactorResolver(store)

        result = await resolver.applicable_factors("PA", {"familySize": 0})

        assert result.is_err()
        assert result.unwrap_err().kind is ErrorKind.INVALID_INPUT

    async def test_storage_failure_is_retryable(self, store):
        store.fail_next("list_factor_rows", StorageUnavailableError("connection lost"))
        resolver = FactorResolver(store)

        result = await resolver.load_factors("PA")

        assert result.is_err()
        error = result.unwrap_err()
        assert error.kind is ErrorKind.STORAGE_UNAVAILABLE
        assert error.retryable


class TestFactorCache:
    """Test the read-through factor cache."""

    async def test_rows_cached_after_first_load(self, store, fake_cache):
        resolver = FactorResolver(store, fake_cache)

        await resolver.load_factors("PA")
        cached = await fake_cache.get(CacheKeys.factor_rows_by_product("PA"))

        assert [row["factor_key"] for row in cached] == [
            "18-30",
            "31-45",
            "46-60",
            "61-70",
        ]

    async def test_cached_rows_served_without_storage(self, store, fake_cache):
        resolver = FactorResolver(store, fake_cache)
        await resolver.load_factors("PA")

        store.fail_next("list_factor_rows", StorageUnavailableError("down"))
        result = await resolver.applicable_factors("PA", {"age": 50})

        [factor] = result.unwrap()
        assert factor.multiplier == Decimal("1.5")

    @pytest.mark.parametrize("cached", [None, "garbage"])
    async def test_cache_miss_falls_back_to_storage(self, store, mock_cache, cached):
        mock_cache.get.return_value = cached
        resolver = FactorResolver(store, mock_cache)

        result = await resolver.load_factors("PA")

        assert len(result.unwrap()) == 4
        mock_cache.set.assert_awaited_once()
