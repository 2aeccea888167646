# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""In-memory rating store.

Stands in for PostgreSQL in tests and local runs. It keeps the same
guarantees as the database store: issuance units are serialized by a single
lock, and a unit that raises undoes only its own writes, so quotes inserted
by other callers while it was open survive. Every call yields to the event
loop once so concurrent callers interleave the way they would around real
I/O.
"""

import asyncio
import contextlib
import functools
from collections.abc import AsyncIterator, Callable, Mapping
from datetime import datetime
from typing import Any
from uuid import UUID

from ..models.catalog import Package, Product, ProductStatus
from ..models.policy import PaymentTransaction, Policy
from ..models.quote import Quote, QuoteStatus
from .base import (
    DuplicateIssuanceError,
    DuplicateQuoteNumberError,
    DuplicateTransactionError,
    IssuanceUnit,
    RatingStore,
    StorageUnavailableError,
)

_FACTOR_FIELDS = (
    "product_id",
    "factor_type",
    "factor_key",
    "multiplier",
    "addition",
    "description",
)


class InMemoryRatingStore(RatingStore):
    """Dictionary-backed store with transactional issuance."""

    def __init__(self) -> None:
        self._products: dict[str, Product] = {}
        self._packages: dict[str, Package] = {}
        self._factor_rows: list[tuple[int, dict[str, Any]]] = []
        self._quotes: dict[str, Quote] = {}
        self._policies: dict[UUID, Policy] = {}
        self._transactions: dict[str, PaymentTransaction] = {}
        self._issuance_lock = asyncio.Lock()
        self._failures: dict[str, Exception] = {}

    # Catalog administration

    def add_product(self, product: Product) -> None:
        self._products[product.product_id] = product

    def add_package(self, package: Package) -> None:
        self._packages[package.package_id] = package

    def add_factor(
        self, row: Mapping[str, Any], *, sort_order: int = 0, active: bool = True
    ) -> None:
        """Register a raw factor row; inactive rows are never listed."""
        if active:
            self._factor_rows.append(
                (sort_order, {k: row.get(k) for k in _FACTOR_FIELDS})
            )

    def fail_next(self, operation: str, error: Exception) -> None:
        """Make the next call to ``operation`` raise ``error``."""
        self._failures[operation] = error

    async def _io(self, operation: str) -> None:
        await asyncio.sleep(0)
        error = self._failures.pop(operation, None)
        if error is not None:
            raise error

    # Reads

    async def get_product(self, product_id: str) -> Product | None:
        await self._io("get_product")
        return self._products.get(product_id)

    async def list_packages(self, product_id: str) -> list[Package]:
        await self._io("list_packages")
        product = self._products.get(product_id)
        if product is None or product.status is not ProductStatus.ACTIVE:
            return []
        packages = [p for p in self._packages.values() if p.product_id == product_id]
        return sorted(packages, key=lambda p: p.sort_order)

    async def list_factor_rows(self, product_id: str) -> list[dict[str, Any]]:
        await self._io("list_factor_rows")
        rows = [
            (order, row)
            for order, row in self._factor_rows
            if row["product_id"] == product_id
        ]
        return [dict(row) for _, row in sorted(rows, key=lambda item: item[0])]

    async def get_quote_by_number(self, quote_number: str) -> Quote | None:
        await self._io("get_quote_by_number")
        return self._quotes.get(quote_number)

    async def get_quote_by_id(self, quote_id: UUID) -> Quote | None:
        await self._io("get_quote_by_id")
        for quote in self._quotes.values():
            if quote.quote_id == quote_id:
                return quote
        return None

    async def get_policy_by_number(self, policy_number: str) -> Policy | None:
        await self._io("get_policy_by_number")
        for policy in self._policies.values():
            if policy.policy_number == policy_number:
                return policy
        return None

    async def get_policy_by_quote_id(self, quote_id: UUID) -> Policy | None:
        await self._io("get_policy_by_quote_id")
        for policy in self._policies.values():
            if policy.quote_id == quote_id:
                return policy
        return None

    async def get_transaction_by_policy_id(
        self, policy_id: UUID
    ) -> PaymentTransaction | None:
        await self._io("get_transaction_by_policy_id")
        for transaction in self._transactions.values():
            if transaction.policy_id == policy_id:
                return transaction
        return None

    # Writes

    async def insert_quote(self, quote: Quote) -> Quote:
        await self._io("insert_quote")
        if quote.quote_number in self._quotes:
            raise DuplicateQuoteNumberError(quote.quote_number)
        self._quotes[quote.quote_number] = quote
        return quote

    async def expire_quotes(self, now: datetime) -> int:
        await self._io("expire_quotes")
        expired = 0
        async with self._issuance_lock:
            for number, quote in list(self._quotes.items()):
                if quote.status is QuoteStatus.ACTIVE and quote.expires_at <= now:
                    self._quotes[number] = quote.model_copy(
                        update={"status": QuoteStatus.EXPIRED, "updated_at": now}
                    )
                    expired += 1
        return expired

    @contextlib.asynccontextmanager
    async def issuance(self) -> AsyncIterator[IssuanceUnit]:
        async with self._issuance_lock:
            unit = _InMemoryIssuanceUnit(self)
            try:
                yield unit
            except BaseException:
                unit.rollback()
                raise

    # Inspection helpers for tests and local tooling

    @property
    def policies(self) -> list[Policy]:
        return list(self._policies.values())

    @property
    def transactions(self) -> list[PaymentTransaction]:
        return list(self._transactions.values())


class _InMemoryIssuanceUnit(IssuanceUnit):
    """Applies writes directly and keeps an undo entry for each one."""

    def __init__(self, store: InMemoryRatingStore) -> None:
        self._store = store
        self._undo: list[Callable[[], None]] = []

    def rollback(self) -> None:
        while self._undo:
            self._undo.pop()()

    async def accept_quote(self, quote_id: UUID, now: datetime) -> bool:
        store = self._store
        await store._io("accept_quote")
        for number, quote in store._quotes.items():
            if quote.quote_id != quote_id:
                continue
            if quote.status is not QuoteStatus.ACTIVE or now >= quote.expires_at:
                return False
            store._quotes[number] = quote.model_copy(
                update={"status": QuoteStatus.ACCEPTED, "updated_at": now}
            )
            self._undo.append(
                functools.partial(store._quotes.__setitem__, number, quote)
            )
            return True
        return False

    async def insert_policy(self, policy: Policy) -> Policy:
        store = self._store
        await store._io("insert_policy")
        for existing in store._policies.values():
            if existing.quote_id == policy.quote_id:
                raise DuplicateIssuanceError(str(policy.quote_id))
            if existing.policy_number == policy.policy_number:
                raise StorageUnavailableError(
                    f"Policy number {policy.policy_number} collided"
                )
        store._policies[policy.policy_id] = policy
        self._undo.append(functools.partial(store._policies.pop, policy.policy_id))
        return policy

    async def insert_transaction(
        self, transaction: PaymentTransaction
    ) -> PaymentTransaction:
        store = self._store
        await store._io("insert_transaction")
        if transaction.transaction_id in store._transactions:
            raise DuplicateTransactionError(transaction.transaction_id)
        store._transactions[transaction.transaction_id] = transaction
        self._undo.append(
            functools.partial(store._transactions.pop, transaction.transaction_id)
        )
        return transaction
