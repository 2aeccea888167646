"""Unit tests for the PostgreSQL store with a mocked asyncpg layer."""

import asyncio
from contextlib import asynccontextmanager
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import asyncpg
import pytest

from policy_rating.models.catalog import ProductStatus, RateType
from policy_rating.models.policy import PaymentTransaction, Policy, policy_expiry
from policy_rating.models.quote import Quote
from policy_rating.storage.base import (
    DuplicateIssuanceError,
    DuplicateQuoteNumberError,
    DuplicateTransactionError,
    StorageUnavailableError,
)
from policy_rating.storage.postgres import POLICY_QUOTE_CONSTRAINT, PostgresRatingStore

NOW = datetime(2025, 7, 1, 9, 0, tzinfo=timezone.utc)


def unique_violation(constraint_name):
    error = asyncpg.UniqueViolationError("duplicate key value violates unique constraint")
    error.constraint_name = constraint_name
    return error


@pytest.fixture
def conn():
    connection = MagicMock()
    connection.fetch = AsyncMock(return_value=[])
    connection.fetchrow = AsyncMock(return_value=None)
    connection.execute = AsyncMock(return_value="UPDATE 0")
    return connection


@pytest.fixture
def db(mock_db, conn):
    @asynccontextmanager
    async def acquire(timeout=None):
        yield conn

    @asynccontextmanager
    async def transaction():
        yield conn

    mock_db.acquire = acquire
    mock_db.transaction = transaction
    return mock_db


@pytest.fixture
def pg_store(db):
    return PostgresRatingStore(db)


@pytest.fixture
def quote():
    return Quote(
        quote_id=uuid4(),
        quote_number="PA-QTE-1751360400000BEEF",
        product_id="PA",
        package_id="PA_STANDARD",
        customer_info={"name": "Farai"},
        risk_factors={"age": 50},
        duration_months=12,
        base_premium=Decimal("1.00"),
        monthly_premium=Decimal("1.50"),
        total_premium=Decimal("18.00"),
        currency="USD",
        expires_at=NOW + timedelta(hours=48),
        created_at=NOW,
    )


@pytest.fixture
def policy(quote):
    return Policy(
        policy_id=uuid4(),
        policy_number="POL-0001",
        quote_id=quote.quote_id,
        product_id="PA",
        package_id="PA_STANDARD",
        premium_amount=Decimal("18.00"),
        currency="USD",
        effective_date=NOW,
        expiry_date=policy_expiry(NOW, 12),
        created_at=NOW,
    )


@pytest.fixture
def transaction(quote, policy):
    return PaymentTransaction(
        transaction_id="TXN-1",
        policy_id=policy.policy_id,
        quote_id=quote.quote_id,
        amount=Decimal("18.00"),
        currency="USD",
        processed_at=NOW,
    )


class TestReads:
    """Test row mapping on reads."""

    async def test_quote_round_trip(self, pg_store, mock_db, quote):
        mock_db.fetchrow.return_value = quote.model_dump()

        loaded = await pg_store.get_quote_by_number(quote.quote_number)

        assert loaded == quote
        assert mock_db.fetchrow.await_args.args[1] == quote.quote_number

    async def test_product_row(self, pg_store, mock_db):
        mock_db.fetchrow.return_value = {
            "product_id": "DOMESTIC",
            "name": "Domestic Insurance",
            "rating_type": "PERCENTAGE",
            "status": "INACTIVE",
        }

        product = await pg_store.get_product("DOMESTIC")

        assert product.rating_type is RateType.PERCENTAGE
        assert product.status is ProductStatus.INACTIVE

    async def test_missing_quote(self, pg_store):
        assert await pg_store.get_quote_by_id(uuid4()) is None

    async def test_factor_rows_are_plain_dicts(self, pg_store, mock_db):
        row = {
            "product_id": "PA",
            "factor_type": "AGE_BAND",
            "factor_key": "18-30",
            "multiplier": Decimal("1.0"),
            "addition": None,
            "description": None,
        }
        mock_db.fetch.return_value = [row]

        rows = await pg_store.list_factor_rows("PA")

        assert rows == [row]

    async def test_packages_with_benefits_and_limits(self, pg_store, conn):
        package_row = {
            "package_id": "HCP_FAMILY",
            "product_id": "HCP",
            "name": "Family Hospital Cash Plan",
            "rate": Decimal("5.00"),
            "rate_type": "FLAT",
            "currency": "USD",
            "minimum_premium": None,
            "sort_order": 2,
            "min_age": 18,
            "max_age": 65,
            "min_family_size": 2,
            "max_family_size": 6,
            "min_sum_insured": None,
            "max_sum_insured": None,
            "additional_limits": None,
        }
        benefit_rows = [
            {
                "package_id": "HCP_FAMILY",
                "benefit_type": "Daily Cash",
                "benefit_value": "50",
                "benefit_unit": "USD per day",
            },
            {
                "package_id": "HCP_FAMILY",
                "benefit_type": "Maternity Cover",
                "benefit_value": "Included",
                "benefit_unit": None,
            },
        ]
        conn.fetch.side_effect = [[package_row], benefit_rows]

        [package] = await pg_store.list_packages("HCP")

        assert package.benefits == [
            "Daily Cash: 50 USD per day",
            "Maternity Cover: Included",
        ]
        assert package.limits.max_family_size == 6
        assert package.limits.additional == {}
        assert conn.fetch.await_args_list[1].args[1] == ["HCP_FAMILY"]

    async def test_no_packages_skips_benefit_query(self, pg_store, conn):
        assert await pg_store.list_packages("TRAVEL") == []
        conn.fetch.assert_awaited_once()


class TestWrites:
    """Test quote writes and expiry."""

    async def test_duplicate_quote_number(self, pg_store, mock_db, quote):
        mock_db.fetchrow.side_effect = unique_violation("uq_quotes_quote_number")

        with pytest.raises(DuplicateQuoteNumberError):
            await pg_store.insert_quote(quote)

    async def test_quote_json_columns(self, pg_store, mock_db, quote):
        mock_db.fetchrow.return_value = quote.model_dump()

        await pg_store.insert_quote(quote)

        args = mock_db.fetchrow.await_args.args
        assert args[5] == {"name": "Farai"}
        assert args[6] == {"age": 50}
        assert args[14] == "ACTIVE"

    async def test_expire_quotes_reads_command_tag(self, pg_store, mock_db):
        mock_db.execute.return_value = "UPDATE 3"

        assert await pg_store.expire_quotes(NOW) == 3
        assert mock_db.execute.await_args.args[1] == NOW


class TestErrorTranslation:
    """Test mapping of driver failures to storage errors."""

    @pytest.mark.parametrize(
        "error",
        [
            asyncpg.exceptions.ConnectionDoesNotExistError("connection was closed"),
            asyncpg.exceptions.TooManyConnectionsError("too many clients"),
            asyncio.TimeoutError(),
            ConnectionRefusedError("refused"),
        ],
    )
    async def test_transient_errors_are_retryable(self, pg_store, mock_db, error):
        mock_db.fetchrow.side_effect = error

        with pytest.raises(StorageUnavailableError):
            await pg_store.get_quote_by_number("PA-QTE-1")

    async def test_other_database_errors_propagate(self, pg_store, mock_db):
        mock_db.fetch.side_effect = asyncpg.exceptions.UndefinedTableError(
            'relation "rating_factors" does not exist'
        )

        with pytest.raises(asyncpg.exceptions.UndefinedTableError):
            await pg_store.list_factor_rows("PA")


class TestIssuance:
    """Test the issuance unit of work."""

    async def test_claim_lost(self, pg_store, conn, quote):
        conn.fetchrow.return_value = None

        async with pg_store.issuance() as unit:
            claimed = await unit.accept_quote(quote.quote_id, NOW)

        assert claimed is False
        sql = conn.fetchrow.await_args.args[0]
        assert "status = 'ACTIVE'" in sql
        assert "expires_at > $2" in sql

    async def test_claim_won(self, pg_store, conn, quote):
        conn.fetchrow.return_value = {"quote_id": quote.quote_id}

        async with pg_store.issuance() as unit:
            assert await unit.accept_quote(quote.quote_id, NOW) is True

    async def test_policy_for_consumed_quote(self, pg_store, conn, policy):
        conn.fetchrow.side_effect = unique_violation(POLICY_QUOTE_CONSTRAINT)

        with pytest.raises(DuplicateIssuanceError):
            async with pg_store.issuance() as unit:
                await unit.insert_policy(policy)

    async def test_policy_number_collision_is_retryable(
        self, pg_store, conn, policy
    ):
        conn.fetchrow.side_effect = unique_violation("uq_policies_policy_number")

        with pytest.raises(StorageUnavailableError):
            async with pg_store.issuance() as unit:
                await unit.insert_policy(policy)

    async def test_duplicate_transaction(self, pg_store, conn, transaction):
        conn.fetchrow.side_effect = unique_violation("payment_transactions_pkey")

        with pytest.raises(DuplicateTransactionError):
            async with pg_store.issuance() as unit:
                await unit.insert_transaction(transaction)

    async def test_connection_lost_mid_unit(self, pg_store, conn, quote):
        conn.fetchrow.side_effect = asyncpg.exceptions.ConnectionDoesNotExistError(
            "connection was closed in the middle of operation"
        )

        with pytest.raises(StorageUnavailableError):
            async with pg_store.issuance() as unit:
                await unit.accept_quote(quote.quote_id, NOW)

    async def test_policy_row_mapped_back(self, pg_store, conn, policy):
        conn.fetchrow.return_value = policy.model_dump()

        async with pg_store.issuance() as unit:
            stored = await unit.insert_policy(policy)

        assert stored == policy
        assert conn.fetchrow.await_args.args[11] == "ACTIVE"
