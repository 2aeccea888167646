# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Rating factor variants and the risk attributes they match against.

Factor kinds form a closed set discriminated by ``factor_type``. A stored row
whose type is not one of the variants below fails validation, so it can never
silently match. Adding a kind means adding a variant class and listing it in
``RatingFactor``.
"""

import re
from collections.abc import Mapping
from decimal import Decimal
from typing import Annotated, Any, ClassVar, Literal, Union

from beartype import beartype
from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    TypeAdapter,
    model_validator,
)

from .base import BaseModelConfig

_BAND_PATTERN = re.compile(r"^\s*(\d+)\s*(?:-\s*(\d+)|(\+))\s*$")


class RiskAttributes(BaseModel):
    """Typed view over the opaque risk-attribute mapping supplied by callers.

    Keys the engine does not read are kept as extras and never interpreted.
    """

    model_config = ConfigDict(
        frozen=True,
        extra="allow",
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    age: int | None = Field(None, ge=0, le=130)
    family_size: int | None = Field(None, ge=1, alias="familySize")
    cover_type: str | None = Field(None, alias="coverType")
    sum_insured: Decimal | None = Field(None, alias="sumInsured")
    occupation: str | None = None
    location: str | None = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "RiskAttributes":
        return cls.model_validate(dict(data))


@beartype
def parse_band(factor_key: str) -> tuple[int, int | None] | None:
    """Parse ``"31-45"`` into ``(31, 45)`` and ``"71+"`` into ``(71, None)``.

    Returns None for keys that are not a band.
    """
    match = _BAND_PATTERN.match(factor_key)
    if match is None:
        return None
    low = int(match.group(1))
    high = None if match.group(3) else int(match.group(2))
    if high is not None and high < low:
        return None
    return low, high


class _FactorBase(BaseModelConfig):
    """Fields shared by every factor kind."""

    product_id: str = Field(..., min_length=1)
    factor_key: str = Field(..., min_length=1)
    multiplier: Decimal | None = Field(None, ge=0)
    addition: Decimal | None = None
    description: str | None = None

    @model_validator(mode="after")
    def validate_single_effect(self) -> "_FactorBase":
        """A factor is either multiplicative or additive, never both."""
        if (self.multiplier is None) == (self.addition is None):
            raise ValueError(
                "A rating factor must carry exactly one of multiplier or addition"
            )
        return self

    @property
    def is_multiplicative(self) -> bool:
        return self.multiplier is not None

    def matches(self, risk: RiskAttributes) -> bool:
        raise NotImplementedError

    def applied_value(self, risk: RiskAttributes) -> Decimal:
        """Value fed into the premium: the multiplier, or the amount to add."""
        if self.multiplier is not None:
            return self.multiplier
        return self.addition  # type: ignore[return-value]


class AgeBandFactor(_FactorBase):
    """Matches when ``age`` falls inside the inclusive band in ``factor_key``."""

    factor_type: Literal["AGE_BAND"] = "AGE_BAND"

    def matches(self, risk: RiskAttributes) -> bool:
        band = parse_band(self.factor_key)
        if band is None or risk.age is None:
            return False
        low, high = band
        return risk.age >= low and (high is None or risk.age <= high)


class FamilySizeFactor(_FactorBase):
    """Matches families larger than two; additions scale per extra member."""

    factor_type: Literal["FAMILY_SIZE"] = "FAMILY_SIZE"

    base_family_size: ClassVar[int] = 2

    def matches(self, risk: RiskAttributes) -> bool:
        return risk.family_size is not None and risk.family_size > self.base_family_size

    def applied_value(self, risk: RiskAttributes) -> Decimal:
        if self.addition is not None and risk.family_size is not None:
            return (risk.family_size - self.base_family_size) * self.addition
        return super().applied_value(risk)


class _AttributeEqualsFactor(_FactorBase):
    """Matches when one string attribute equals ``factor_key`` exactly."""

    attribute: ClassVar[str]

    def matches(self, risk: RiskAttributes) -> bool:
        value = getattr(risk, self.attribute)
        return value is not None and value == self.factor_key


class CoverTypeFactor(_AttributeEqualsFactor):
    factor_type: Literal["COVER_TYPE"] = "COVER_TYPE"

    attribute: ClassVar[str] = "cover_type"


class OccupationFactor(_AttributeEqualsFactor):
    factor_type: Literal["OCCUPATION"] = "OCCUPATION"

    attribute: ClassVar[str] = "occupation"


class LocationFactor(_AttributeEqualsFactor):
    factor_type: Literal["LOCATION"] = "LOCATION"

    attribute: ClassVar[str] = "location"


RatingFactor = Annotated[
    Union[
        AgeBandFactor,
        FamilySizeFactor,
        CoverTypeFactor,
        OccupationFactor,
        LocationFactor,
    ],
    Field(discriminator="factor_type"),
]

_RATING_FACTOR_ADAPTER: TypeAdapter[Any] = TypeAdapter(RatingFactor)


def parse_factor(data: Mapping[str, Any]) -> RatingFactor:
    """Build the factor variant for a stored row.

    Raises ``pydantic.ValidationError`` for unknown types and for rows that
    carry both or neither effect.
    """
    return _RATING_FACTOR_ADAPTER.validate_python(dict(data))


@beartype
class AppliedFactor(BaseModelConfig):
    """Audit record of one factor's contribution to a premium."""

    factor_type: str
    factor_key: str
    multiplier: Decimal | None = None
    addition: Decimal | None = None
    applied_value: Decimal = Field(..., description="Multiplier or scaled addition")
    premium_impact: Decimal = Field(
        ..., description="Change in the monthly premium caused by this factor"
    )
