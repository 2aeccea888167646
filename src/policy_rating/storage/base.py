# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""Persistence contract for the rating engine.

Both the PostgreSQL store and the in-memory store implement this contract;
services only ever see ``RatingStore``. Store implementations raise the
exceptions below and services translate them into ``RatingError`` results.
"""

from abc import ABC, abstractmethod
from contextlib import AbstractAsyncContextManager
from datetime import datetime
from typing import Any
from uuid import UUID

from ..models.catalog import Package, Product
from ..models.policy import PaymentTransaction, Policy
from ..models.quote import Quote


class StorageError(Exception):
    """Base class for persistence failures."""


class StorageUnavailableError(StorageError):
    """Transient failure; the whole operation can be retried."""


class DuplicateIssuanceError(StorageError):
    """A policy already exists for the quote."""


class DuplicateTransactionError(StorageError):
    """A payment transaction with the same id already exists."""


class DuplicateQuoteNumberError(StorageError):
    """The generated quote number is already taken."""


class IssuanceUnit(ABC):
    """Writes performed together while converting a quote into a policy.

    Obtained from ``RatingStore.issuance()``. If the ``async with`` block
    raises, none of the writes made through the unit are kept.
    """

    @abstractmethod
    async def accept_quote(self, quote_id: UUID, now: datetime) -> bool:
        """Move the quote ACTIVE -> ACCEPTED if it is still ACTIVE and unexpired.

        Returns False when another caller already changed the status.
        """

    @abstractmethod
    async def insert_policy(self, policy: Policy) -> Policy:
        """Insert a policy; raises ``DuplicateIssuanceError`` for a reused quote."""

    @abstractmethod
    async def insert_transaction(
        self, transaction: PaymentTransaction
    ) -> PaymentTransaction:
        """Insert a payment transaction; raises ``DuplicateTransactionError``."""


class RatingStore(ABC):
    """Read catalog data and persist quotes, policies and transactions."""

    @abstractmethod
    async def get_product(self, product_id: str) -> Product | None: ...

    @abstractmethod
    async def list_packages(self, product_id: str) -> list[Package]:
        """Active packages of an active product, in catalog order."""

    @abstractmethod
    async def list_factor_rows(self, product_id: str) -> list[dict[str, Any]]:
        """Raw active factor rows for a product, in definition order."""

    @abstractmethod
    async def insert_quote(self, quote: Quote) -> Quote: ...

    @abstractmethod
    async def get_quote_by_number(self, quote_number: str) -> Quote | None: ...

    @abstractmethod
    async def get_quote_by_id(self, quote_id: UUID) -> Quote | None: ...

    @abstractmethod
    async def expire_quotes(self, now: datetime) -> int:
        """Mark ACTIVE quotes past their expiry as EXPIRED; returns the count."""

    @abstractmethod
    async def get_policy_by_number(self, policy_number: str) -> Policy | None: ...

    @abstractmethod
    async def get_policy_by_quote_id(self, quote_id: UUID) -> Policy | None: ...

    @abstractmethod
    async def get_transaction_by_policy_id(
        self, policy_id: UUID
    ) -> PaymentTransaction | None: ...

    @abstractmethod
    def issuance(self) -> AbstractAsyncContextManager[IssuanceUnit]:
        """Open a unit of work for policy issuance."""
