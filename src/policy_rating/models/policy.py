# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Policy domain models with strict validation and business rules.

This module defines the policy created from an accepted quote, the payment
transaction recorded with it, and the payment confirmation that triggers
issuance.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from enum import Enum
from typing import Any
from uuid import UUID

from beartype import beartype
from pydantic import Field, model_validator

from .base import BaseModelConfig

DAYS_PER_POLICY_MONTH = 30


class PolicyStatus(str, Enum):
    """Enumeration of policy lifecycle states."""

    ACTIVE = "ACTIVE"
    EXPIRED = "EXPIRED"
    CANCELLED = "CANCELLED"
    SUSPENDED = "SUSPENDED"


class PaymentMethod(str, Enum):
    """Channels through which a premium can be paid."""

    ICECASH = "ICECASH"
    BANK_TRANSFER = "BANK_TRANSFER"
    MOBILE_MONEY = "MOBILE_MONEY"
    CARD = "CARD"


class TransactionStatus(str, Enum):
    PENDING = "PENDING"
    COMPLETED = "COMPLETED"
    FAILED = "FAILED"
    CANCELLED = "CANCELLED"
    REFUNDED = "REFUNDED"


@beartype
def policy_expiry(effective_date: datetime, duration_months: int) -> datetime:
    """Policy term uses fixed 30-day months."""
    return effective_date + timedelta(days=duration_months * DAYS_PER_POLICY_MONTH)


@beartype
class PaymentConfirmation(BaseModelConfig):
    """Upstream confirmation that the quoted premium has been paid."""

    payment_reference: str = Field(..., min_length=1, max_length=255)
    external_reference: str | None = Field(None, max_length=255)
    transaction_id: str | None = Field(
        None,
        min_length=1,
        max_length=100,
        description="Caller-supplied transaction id; generated when omitted",
    )
    payment_method: PaymentMethod = Field(default=PaymentMethod.ICECASH)


@beartype
class Policy(BaseModelConfig):
    """Durable contract created exactly once from an accepted quote."""

    policy_id: UUID
    policy_number: str = Field(..., min_length=1, max_length=50)
    quote_id: UUID
    product_id: str
    package_id: str
    customer_info: dict[str, Any] = Field(default_factory=dict)
    premium_amount: Decimal = Field(..., ge=0)
    currency: str = Field(..., min_length=3, max_length=3)
    effective_date: datetime
    expiry_date: datetime
    status: PolicyStatus = PolicyStatus.ACTIVE
    payment_reference: str | None = None
    created_at: datetime

    @model_validator(mode="after")
    def validate_dates(self) -> "Policy":
        """Ensure expiry date is after effective date."""
        if self.expiry_date <= self.effective_date:
            raise ValueError("Expiry date must be after effective date")
        return self


@beartype
class PaymentTransaction(BaseModelConfig):
    """Ledger row tying a policy to the payment that funded it."""

    transaction_id: str = Field(..., min_length=1, max_length=100)
    policy_id: UUID
    quote_id: UUID
    payment_method: PaymentMethod = PaymentMethod.ICECASH
    amount: Decimal = Field(..., ge=0)
    currency: str = Field(..., min_length=3, max_length=3)
    status: TransactionStatus = TransactionStatus.COMPLETED
    payment_reference: str | None = None
    external_reference: str | None = None
    processed_at: datetime
