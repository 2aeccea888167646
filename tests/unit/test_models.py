"""Unit tests for domain models."""

from datetime import datetime, timedelta, timezone
from decimal import Decimal
from uuid import uuid4

import pytest
from pydantic import ValidationError

from policy_rating.models import (
    AgeBandFactor,
    CoverTypeFactor,
    FamilySizeFactor,
    LocationFactor,
    PackageLimits,
    Policy,
    Quote,
    QuoteStatus,
    RiskAttributes,
    format_benefit,
    parse_factor,
    policy_expiry,
    round2,
)
from policy_rating.models.factor import parse_band

NOW = datetime(2025, 7, 1, 12, 0, tzinfo=timezone.utc)


def make_quote(**overrides):
    data = {
        "quote_id": uuid4(),
        "quote_number": "PA-QTE-1751371200000ABCD",
        "product_id": "PA",
        "package_id": "PA_STANDARD",
        "duration_months": 12,
        "base_premium": Decimal("1.00"),
        "monthly_premium": Decimal("1.50"),
        "total_premium": Decimal("18.00"),
        "currency": "USD",
        "expires_at": NOW + timedelta(hours=48),
        "created_at": NOW,
    }
    data.update(overrides)
    return Quote(**data)


class TestMoney:
    """Test money rounding."""

    def test_round_half_up(self):
        assert round2(Decimal("2.085")) == Decimal("2.09")
        assert round2(Decimal("2.0833")) == Decimal("2.08")
        assert round2(Decimal("0.005")) == Decimal("0.01")


class TestPackageLimits:
    """Test package eligibility bounds."""

    def test_all_bounds_optional(self):
        limits = PackageLimits()
        assert limits.min_age is None
        assert limits.additional == {}

    def test_inverted_range_rejected(self):
        with pytest.raises(ValidationError, match="min_age"):
            PackageLimits(min_age=70, max_age=18)

    def test_benefit_formatting(self):
        assert format_benefit("Maximum Days", "30", "days") == "Maximum Days: 30 days"
        assert format_benefit("Contents Cover", "Yes", None) == "Contents Cover: Yes"


class TestRiskAttributes:
    """Test the typed view over caller risk attributes."""

    def test_reads_camel_case_keys(self):
        risk = RiskAttributes.from_mapping(
            {"familySize": 4, "sumInsured": "1000", "coverType": "HOMEOWNERS"}
        )
        assert risk.family_size == 4
        assert risk.sum_insured == Decimal("1000")
        assert risk.cover_type == "HOMEOWNERS"

    def test_keeps_unknown_keys(self):
        risk = RiskAttributes.from_mapping({"age": 30, "vehicle": "bike"})
        assert risk.age == 30
        assert risk.model_extra == {"vehicle": "bike"}


class TestRatingFactors:
    """Test factor variants and their predicates."""

    @pytest.mark.parametrize(
        ("key", "expected"),
        [
            ("31-45", (31, 45)),
            ("71+", (71, None)),
            (" 18 - 30 ", (18, 30)),
            ("45-31", None),
            ("adult", None),
        ],
    )
    def test_parse_band(self, key, expected):
        assert parse_band(key) == expected

    def test_age_band_is_inclusive(self):
        factor = AgeBandFactor(
            product_id="PA", factor_key="31-45", multiplier=Decimal("1.2")
        )
        assert factor.matches(RiskAttributes(age=31))
        assert factor.matches(RiskAttributes(age=45))
        assert not factor.matches(RiskAttributes(age=46))
        assert not factor.matches(RiskAttributes())

    def test_open_ended_band(self):
        factor = AgeBandFactor(product_id="PA", factor_key="71+", multiplier=Decimal("3"))
        assert factor.matches(RiskAttributes(age=99))
        assert not factor.matches(RiskAttributes(age=70))

    def test_malformed_band_never_matches(self):
        factor = AgeBandFactor(
            product_id="PA", factor_key="senior", multiplier=Decimal("2")
        )
        assert not factor.matches(RiskAttributes(age=65))

    def test_family_size_addition_scales_per_extra_member(self):
        factor = FamilySizeFactor(
            product_id="HCP", factor_key="EXTRA_MEMBER", addition=Decimal("1.0")
        )
        assert not factor.matches(RiskAttributes(familySize=2))
        risk = RiskAttributes(familySize=5)
        assert factor.matches(risk)
        assert factor.applied_value(risk) == Decimal("3.0")

    def test_family_size_multiplier_is_not_scaled(self):
        factor = FamilySizeFactor(
            product_id="HCP", factor_key="LARGE", multiplier=Decimal("1.1")
        )
        assert factor.applied_value(RiskAttributes(familySize=6)) == Decimal("1.1")

    def test_attribute_equality(self):
        cover = CoverTypeFactor(
            product_id="DOMESTIC", factor_key="HOUSEHOLDERS", multiplier=Decimal("0.8")
        )
        location = LocationFactor(
            product_id="DOMESTIC", factor_key="HARARE", addition=Decimal("2")
        )
        assert cover.matches(RiskAttributes(coverType="HOUSEHOLDERS"))
        assert not cover.matches(RiskAttributes(coverType="householders"))
        assert location.matches(RiskAttributes(location="HARARE"))

    def test_parse_factor_dispatches_on_type(self):
        factor = parse_factor(
            {
                "product_id": "PA",
                "factor_type": "OCCUPATION",
                "factor_key": "MINER",
                "multiplier": "1.75",
                "addition": None,
                "description": None,
            }
        )
        assert factor.factor_type == "OCCUPATION"
        assert factor.multiplier == Decimal("1.75")

    def test_unknown_type_rejected(self):
        with pytest.raises(ValidationError):
            parse_factor(
                {
                    "product_id": "PA",
                    "factor_type": "CREDIT_SCORE",
                    "factor_key": "A",
                    "multiplier": "1.1",
                }
            )

    @pytest.mark.parametrize(
        ("multiplier", "addition"),
        [(Decimal("1.1"), Decimal("1.0")), (None, None)],
    )
    def test_exactly_one_effect_required(self, multiplier, addition):
        with pytest.raises(ValidationError, match="exactly one"):
            AgeBandFactor(
                product_id="PA",
                factor_key="18-30",
                multiplier=multiplier,
                addition=addition,
            )


class TestQuote:
    """Test quote invariants and validity."""

    def test_total_must_match_monthly_times_duration(self):
        with pytest.raises(ValidationError, match="total_premium"):
            make_quote(total_premium=Decimal("18.01"))

    def test_duration_bounds(self):
        with pytest.raises(ValidationError):
            make_quote(duration_months=13, total_premium=Decimal("19.50"))

    def test_valid_until_expiry(self):
        quote = make_quote()
        assert quote.is_valid_at(NOW)
        assert quote.is_valid_at(NOW + timedelta(hours=47, minutes=59))
        assert not quote.is_valid_at(NOW + timedelta(hours=48))

    def test_expired_when_past_expiry_even_if_active(self):
        quote = make_quote(expires_at=NOW - timedelta(seconds=1))
        assert quote.status is QuoteStatus.ACTIVE
        assert quote.is_expired_at(NOW)
        assert not quote.is_valid_at(NOW)

    def test_accepted_quote_is_not_valid(self):
        quote = make_quote(status=QuoteStatus.ACCEPTED)
        assert not quote.is_valid_at(NOW)

    def test_quote_is_immutable(self):
        quote = make_quote()
        with pytest.raises(ValidationError):
            quote.status = QuoteStatus.ACCEPTED


class TestPolicy:
    """Test policy model rules."""

    def test_expiry_uses_thirty_day_months(self):
        assert policy_expiry(NOW, 12) == NOW + timedelta(days=360)
        assert policy_expiry(NOW, 1) == NOW + timedelta(days=30)

    def test_expiry_must_follow_effective_date(self):
        with pytest.raises(ValidationError, match="Expiry date"):
            Policy(
                policy_id=uuid4(),
                policy_number="POL-1",
                quote_id=uuid4(),
                product_id="PA",
                package_id="PA_STANDARD",
                premium_amount=Decimal("18.00"),
                currency="USD",
                effective_date=NOW,
                expiry_date=NOW,
                created_at=NOW,
            )
