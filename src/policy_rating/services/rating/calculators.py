# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Premium calculation algorithms.

Pure functions of their inputs: no I/O, no clock, no randomness. Money is
carried as ``Decimal`` throughout and rounded half-up to cents only when the
monthly and total premiums are produced.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any

from beartype import beartype
from pydantic import ValidationError

from ...core.errors import RatingError
from ...core.result_types import Err, Ok, Result
from ...models.base import round2
from ...models.catalog import Package, RateType
from ...models.factor import AppliedFactor, RatingFactor, RiskAttributes
from ...models.quote import CalculationMethod, PremiumBreakdown, PremiumResult

MIN_DURATION_MONTHS = 1
MAX_DURATION_MONTHS = 12
MONTHS_PER_YEAR = Decimal("12")
PERCENT = Decimal("100")


class PremiumCalculator:
    """Premium calculation for flat-rate and sum-insured packages."""

    @beartype
    @staticmethod
    def calculate(
        package: Package,
        factors: Sequence[RatingFactor],
        risk_attributes: Mapping[str, Any],
        duration_months: int,
    ) -> Result[PremiumResult, RatingError]:
        """Calculate monthly and total premium for a package.

        Args:
            package: The package being priced
            factors: Applicable factors in the order they must be applied
            risk_attributes: Caller-supplied risk attributes
            duration_months: Cover length, 1 to 12 months

        Returns:
            Result containing the premium with its audit trail, or an
            INVALID_INPUT error
        """
        if not MIN_DURATION_MONTHS <= duration_months <= MAX_DURATION_MONTHS:
            return Err(
                RatingError.invalid_input(
                    f"Duration must be between {MIN_DURATION_MONTHS} and "
                    f"{MAX_DURATION_MONTHS} months, got {duration_months}",
                    duration_months=duration_months,
                )
            )

        try:
            risk = RiskAttributes.from_mapping(risk_attributes)
        except ValidationError as e:
            return Err(
                RatingError.invalid_input(
                    "Invalid risk attributes", errors=e.errors(include_url=False)
                )
            )

        if package.rate_type is RateType.PERCENTAGE:
            return PremiumCalculator._calculate_percentage(
                package, risk, duration_months
            )
        return PremiumCalculator._calculate_flat(
            package, factors, risk, duration_months
        )

    @staticmethod
    def _calculate_flat(
        package: Package,
        factors: Sequence[RatingFactor],
        risk: RiskAttributes,
        duration_months: int,
    ) -> Result[PremiumResult, RatingError]:
        monthly = package.rate
        applied: list[AppliedFactor] = []

        for factor in factors:
            value = factor.applied_value(risk)
            adjusted = monthly * value if factor.is_multiplicative else monthly + value
            applied.append(
                AppliedFactor(
                    factor_type=factor.factor_type,
                    factor_key=factor.factor_key,
                    multiplier=factor.multiplier,
                    addition=factor.addition,
                    applied_value=value,
                    premium_impact=round2(adjusted - monthly),
                )
            )
            monthly = adjusted

        breakdown = PremiumBreakdown(
            calculation_method=CalculationMethod.FLAT,
            base_rate=package.rate,
            adjusted_monthly=monthly,
            duration_months=duration_months,
        )
        return Ok(
            PremiumCalculator._finalize(package, monthly, applied, breakdown)
        )

    @staticmethod
    def _calculate_percentage(
        package: Package,
        risk: RiskAttributes,
        duration_months: int,
    ) -> Result[PremiumResult, RatingError]:
        sum_insured = risk.sum_insured
        if sum_insured is None or sum_insured <= 0:
            return Err(
                RatingError.invalid_input(
                    f"sumInsured must be a positive amount for package "
                    f"{package.package_id}",
                    package_id=package.package_id,
                    sum_insured=str(sum_insured) if sum_insured is not None else None,
                )
            )

        # Annual percentage of the sum insured, spread over twelve months
        monthly = sum_insured * package.rate / PERCENT / MONTHS_PER_YEAR
        minimum_applied = False
        if (
            package.minimum_premium is not None
            and monthly * MONTHS_PER_YEAR < package.minimum_premium
        ):
            monthly = package.minimum_premium / MONTHS_PER_YEAR
            minimum_applied = True

        breakdown = PremiumBreakdown(
            calculation_method=CalculationMethod.PERCENTAGE,
            base_rate=package.rate,
            adjusted_monthly=monthly,
            duration_months=duration_months,
            sum_insured=sum_insured,
            minimum_applied=minimum_applied,
        )
        return Ok(PremiumCalculator._finalize(package, monthly, [], breakdown))

    @staticmethod
    def _finalize(
        package: Package,
        monthly: Decimal,
        applied: list[AppliedFactor],
        breakdown: PremiumBreakdown,
    ) -> PremiumResult:
        monthly_premium = round2(monthly)
        return PremiumResult(
            base_premium=package.rate,
            monthly_premium=monthly_premium,
            total_premium=round2(monthly_premium * breakdown.duration_months),
            currency=package.currency,
            applied_factors=applied,
            breakdown=breakdown,
        )
