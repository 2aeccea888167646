# PolicyCore - Policy Decision Management System
# Copyright (C) 2025 Luiz Frias <luizf35@gmail.com>
# Form F[x] Labs
#
# This software is dual-licensed under AGPL-3.0 and Commercial License.
# For commercial licensing, contact: luizf35@gmail.com
# See LICENSE file for full terms.

"""PostgreSQL rating store on top of the asyncpg pool.

Issuance runs inside one database transaction. The quote is claimed with a
conditional ``UPDATE ... WHERE status = 'ACTIVE'`` so that of two concurrent
issuers only one sees a row come back; the unique constraint on
``policies.quote_id`` backs that up at the schema level.
"""

import asyncio
import contextlib
from collections.abc import AsyncIterator, Iterator
from datetime import datetime
from decimal import Decimal
from typing import Any
from uuid import UUID

import asyncpg
from beartype import beartype

from ..core.database import Database
from ..core.logging_utils import get_logger
from ..models.catalog import Package, PackageLimits, Product, format_benefit
from ..models.policy import PaymentTransaction, Policy
from ..models.quote import Quote
from .base import (
    DuplicateIssuanceError,
    DuplicateQuoteNumberError,
    DuplicateTransactionError,
    IssuanceUnit,
    RatingStore,
    StorageUnavailableError,
)

logger = get_logger(__name__)

POLICY_QUOTE_CONSTRAINT = "uq_policies_quote_id"

# Failures after which retrying the whole operation is safe.
TRANSIENT_ERRORS: tuple[type[BaseException], ...] = (
    asyncpg.exceptions.PostgresConnectionError,
    asyncpg.exceptions.InterfaceError,
    asyncpg.exceptions.TooManyConnectionsError,
    asyncpg.exceptions.SerializationError,
    asyncpg.exceptions.DeadlockDetectedError,
    asyncpg.exceptions.QueryCanceledError,
    asyncio.TimeoutError,
    OSError,
)


@contextlib.contextmanager
def _translate_errors(operation: str) -> Iterator[None]:
    try:
        yield
    except TRANSIENT_ERRORS as e:
        logger.warning("Storage operation %s failed: %s", operation, e)
        raise StorageUnavailableError(f"{operation} failed: {e}") from e


def _row_to_product(row: Any) -> Product:
    return Product(
        product_id=row["product_id"],
        name=row["name"],
        rating_type=row["rating_type"],
        status=row["status"],
    )


def _row_to_package(row: Any, benefits: list[str]) -> Package:
    return Package(
        package_id=row["package_id"],
        product_id=row["product_id"],
        name=row["name"],
        rate=Decimal(str(row["rate"])),
        rate_type=row["rate_type"],
        currency=row["currency"],
        minimum_premium=(
            Decimal(str(row["minimum_premium"]))
            if row["minimum_premium"] is not None
            else None
        ),
        benefits=benefits,
        limits=PackageLimits(
            min_age=row["min_age"],
            max_age=row["max_age"],
            min_family_size=row["min_family_size"],
            max_family_size=row["max_family_size"],
            min_sum_insured=row["min_sum_insured"],
            max_sum_insured=row["max_sum_insured"],
            additional=row["additional_limits"] or {},
        ),
        sort_order=row["sort_order"],
    )


def _row_to_quote(row: Any) -> Quote:
    return Quote(
        quote_id=row["quote_id"],
        quote_number=row["quote_number"],
        product_id=row["product_id"],
        package_id=row["package_id"],
        customer_info=row["customer_info"] or {},
        risk_factors=row["risk_factors"] or {},
        duration_months=row["duration_months"],
        base_premium=Decimal(str(row["base_premium"])),
        monthly_premium=Decimal(str(row["monthly_premium"])),
        total_premium=Decimal(str(row["total_premium"])),
        currency=row["currency"],
        applied_factors=row["applied_factors"] or [],
        breakdown=row["breakdown"],
        status=row["status"],
        expires_at=row["expires_at"],
        created_at=row["created_at"],
        updated_at=row["updated_at"],
    )


def _row_to_policy(row: Any) -> Policy:
    return Policy(
        policy_id=row["policy_id"],
        policy_number=row["policy_number"],
        quote_id=row["quote_id"],
        product_id=row["product_id"],
        package_id=row["package_id"],
        customer_info=row["customer_info"] or {},
        premium_amount=Decimal(str(row["premium_amount"])),
        currency=row["currency"],
        effective_date=row["effective_date"],
        expiry_date=row["expiry_date"],
        status=row["status"],
        payment_reference=row["payment_reference"],
        created_at=row["created_at"],
    )


def _row_to_transaction(row: Any) -> PaymentTransaction:
    return PaymentTransaction(
        transaction_id=row["transaction_id"],
        policy_id=row["policy_id"],
        quote_id=row["quote_id"],
        payment_method=row["payment_method"],
        amount=Decimal(str(row["amount"])),
        currency=row["currency"],
        status=row["status"],
        payment_reference=row["payment_reference"],
        external_reference=row["external_reference"],
        processed_at=row["processed_at"],
    )


class PostgresRatingStore(RatingStore):
    """Rating store backed by the tables created in the alembic migrations."""

    def __init__(self, db: Database) -> None:
        self._db = db

    @beartype
    async def get_product(self, product_id: str) -> Product | None:
        with _translate_errors("get_product"):
            row = await self._db.fetchrow(
                """
                SELECT product_id, name, rating_type, status
                FROM products
                WHERE product_id = $1
                """,
                product_id,
            )
        return _row_to_product(row) if row else None

    @beartype
    async def list_packages(self, product_id: str) -> list[Package]:
        with _translate_errors("list_packages"):
            async with self._db.acquire() as conn:
                rows = await conn.fetch(
                    """
                    SELECT p.package_id, p.product_id, p.name, p.rate, p.rate_type,
                           p.currency, p.minimum_premium, p.sort_order,
                           l.min_age, l.max_age, l.min_family_size,
                           l.max_family_size, l.min_sum_insured,
                           l.max_sum_insured, l.additional_limits
                    FROM packages p
                    JOIN products pr ON pr.product_id = p.product_id
                    LEFT JOIN package_limits l ON l.package_id = p.package_id
                    WHERE p.product_id = $1
                      AND p.is_active = TRUE
                      AND pr.status = 'ACTIVE'
                    ORDER BY p.sort_order, p.package_id
                    """,
                    product_id,
                )
                if not rows:
                    return []
                benefit_rows = await conn.fetch(
                    """
                    SELECT package_id, benefit_type, benefit_value, benefit_unit
                    FROM package_benefits
                    WHERE package_id = ANY($1::varchar[])
                    ORDER BY package_id, sort_order, id
                    """,
                    [row["package_id"] for row in rows],
                )

        benefits: dict[str, list[str]] = {}
        for benefit in benefit_rows:
            benefits.setdefault(benefit["package_id"], []).append(
                format_benefit(
                    benefit["benefit_type"],
                    benefit["benefit_value"],
                    benefit["benefit_unit"],
                )
            )
        return [_row_to_package(row, benefits.get(row["package_id"], [])) for row in rows]

    @beartype
    async def list_factor_rows(self, product_id: str) -> list[dict[str, Any]]:
        with _translate_errors("list_factor_rows"):
            rows = await self._db.fetch(
                """
                SELECT product_id, factor_type, factor_key, multiplier,
                       addition, description
                FROM rating_factors
                WHERE product_id = $1 AND is_active = TRUE
                ORDER BY sort_order, id
                """,
                product_id,
            )
        return [dict(row) for row in rows]

    @beartype
    async def insert_quote(self, quote: Quote) -> Quote:
        data = quote.model_dump(mode="json")
        try:
            with _translate_errors("insert_quote"):
                row = await self._db.fetchrow(
                    """
                    INSERT INTO quotes (
                        quote_id, quote_number, product_id, package_id,
                        customer_info, risk_factors, duration_months,
                        base_premium, monthly_premium, total_premium, currency,
                        applied_factors, breakdown, status, expires_at,
                        created_at, updated_at
                    ) VALUES (
                        $1, $2, $3, $4, $5::jsonb, $6::jsonb, $7, $8, $9, $10,
                        $11, $12::jsonb, $13::jsonb, $14, $15, $16, $17
                    ) RETURNING *
                    """,
                    quote.quote_id,
                    quote.quote_number,
                    quote.product_id,
                    quote.package_id,
                    data["customer_info"],
                    data["risk_factors"],
                    quote.duration_months,
                    quote.base_premium,
                    quote.monthly_premium,
                    quote.total_premium,
                    quote.currency,
                    data["applied_factors"],
                    data["breakdown"],
                    quote.status.value,
                    quote.expires_at,
                    quote.created_at,
                    quote.updated_at,
                )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateQuoteNumberError(quote.quote_number) from e
        return _row_to_quote(row)

    @beartype
    async def get_quote_by_number(self, quote_number: str) -> Quote | None:
        with _translate_errors("get_quote_by_number"):
            row = await self._db.fetchrow(
                "SELECT * FROM quotes WHERE quote_number = $1", quote_number
            )
        return _row_to_quote(row) if row else None

    @beartype
    async def get_quote_by_id(self, quote_id: UUID) -> Quote | None:
        with _translate_errors("get_quote_by_id"):
            row = await self._db.fetchrow(
                "SELECT * FROM quotes WHERE quote_id = $1", quote_id
            )
        return _row_to_quote(row) if row else None

    @beartype
    async def expire_quotes(self, now: datetime) -> int:
        with _translate_errors("expire_quotes"):
            status = await self._db.execute(
                """
                UPDATE quotes
                SET status = 'EXPIRED', updated_at = $1
                WHERE status = 'ACTIVE' AND expires_at <= $1
                """,
                now,
            )
        # asyncpg returns the command tag, e.g. "UPDATE 3"
        return int(status.split()[-1])

    @beartype
    async def get_policy_by_number(self, policy_number: str) -> Policy | None:
        with _translate_errors("get_policy_by_number"):
            row = await self._db.fetchrow(
                "SELECT * FROM policies WHERE policy_number = $1", policy_number
            )
        return _row_to_policy(row) if row else None

    @beartype
    async def get_policy_by_quote_id(self, quote_id: UUID) -> Policy | None:
        with _translate_errors("get_policy_by_quote_id"):
            row = await self._db.fetchrow(
                "SELECT * FROM policies WHERE quote_id = $1", quote_id
            )
        return _row_to_policy(row) if row else None

    @beartype
    async def get_transaction_by_policy_id(
        self, policy_id: UUID
    ) -> PaymentTransaction | None:
        with _translate_errors("get_transaction_by_policy_id"):
            row = await self._db.fetchrow(
                """
                SELECT * FROM payment_transactions
                WHERE policy_id = $1
                ORDER BY processed_at DESC
                LIMIT 1
                """,
                policy_id,
            )
        return _row_to_transaction(row) if row else None

    @contextlib.asynccontextmanager
    async def issuance(self) -> AsyncIterator[IssuanceUnit]:
        with _translate_errors("issuance"):
            async with self._db.transaction() as conn:
                yield _PostgresIssuanceUnit(conn)


class _PostgresIssuanceUnit(IssuanceUnit):
    """Writes bound to the connection of one open transaction."""

    def __init__(self, conn: asyncpg.Connection) -> None:
        self._conn = conn

    async def accept_quote(self, quote_id: UUID, now: datetime) -> bool:
        row = await self._conn.fetchrow(
            """
            UPDATE quotes
            SET status = 'ACCEPTED', updated_at = $2
            WHERE quote_id = $1 AND status = 'ACTIVE' AND expires_at > $2
            RETURNING quote_id
            """,
            quote_id,
            now,
        )
        return row is not None

    async def insert_policy(self, policy: Policy) -> Policy:
        try:
            row = await self._conn.fetchrow(
                """
                INSERT INTO policies (
                    policy_id, policy_number, quote_id, product_id, package_id,
                    customer_info, premium_amount, currency, effective_date,
                    expiry_date, status, payment_reference, created_at
                ) VALUES (
                    $1, $2, $3, $4, $5, $6::jsonb, $7, $8, $9, $10, $11, $12, $13
                ) RETURNING *
                """,
                policy.policy_id,
                policy.policy_number,
                policy.quote_id,
                policy.product_id,
                policy.package_id,
                policy.model_dump(mode="json")["customer_info"],
                policy.premium_amount,
                policy.currency,
                policy.effective_date,
                policy.expiry_date,
                policy.status.value,
                policy.payment_reference,
                policy.created_at,
            )
        except asyncpg.UniqueViolationError as e:
            if getattr(e, "constraint_name", None) == POLICY_QUOTE_CONSTRAINT:
                raise DuplicateIssuanceError(str(policy.quote_id)) from e
            # A policy number collision leaves nothing committed; retry is safe.
            raise StorageUnavailableError(
                f"Policy number {policy.policy_number} collided"
            ) from e
        return _row_to_policy(row)

    async def insert_transaction(
        self, transaction: PaymentTransaction
    ) -> PaymentTransaction:
        try:
            row = await self._conn.fetchrow(
                """
                INSERT INTO payment_transactions (
                    transaction_id, policy_id, quote_id, payment_method, amount,
                    currency, status, payment_reference, external_reference,
                    processed_at
                ) VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10)
                RETURNING *
                """,
                transaction.transaction_id,
                transaction.policy_id,
                transaction.quote_id,
                transaction.payment_method.value,
                transaction.amount,
                transaction.currency,
                transaction.status.value,
                transaction.payment_reference,
                transaction.external_reference,
                transaction.processed_at,
            )
        except asyncpg.UniqueViolationError as e:
            raise DuplicateTransactionError(transaction.transaction_id) from e
        return _row_to_transaction(row)
