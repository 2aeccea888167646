"""Create rating engine tables.

Revision ID: 001
Revises:
Create Date: 2025-07-05

This migration creates:
1. Product catalog: products, packages, package benefits and limits
2. Rating factors applied on top of package rates
3. Quotes, policies and payment transactions
"""

from collections.abc import Sequence

import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

from alembic import op

# revision identifiers, used by Alembic.
revision: str = "001"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
    ]


def upgrade() -> None:
    """Create rating engine tables."""

    op.create_table(
        "products",
        sa.Column("product_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column("rating_type", sa.String(20), nullable=False, server_default="FLAT"),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("product_id", name=op.f("pk_products")),
        sa.CheckConstraint(
            "rating_type IN ('FLAT', 'PERCENTAGE')",
            name=op.f("ck_products_rating_type"),
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'INACTIVE', 'DISCONTINUED')",
            name=op.f("ck_products_status"),
        ),
    )

    op.create_table(
        "packages",
        sa.Column("package_id", sa.String(100), nullable=False),
        sa.Column("product_id", sa.String(50), nullable=False),
        sa.Column("name", sa.String(255), nullable=False),
        sa.Column(
            "rate",
            sa.Numeric(12, 4),
            nullable=False,
            comment="Monthly amount (FLAT) or annual percentage (PERCENTAGE)",
        ),
        sa.Column("rate_type", sa.String(20), nullable=False, server_default="FLAT"),
        sa.Column("currency", sa.String(3), nullable=False, server_default="USD"),
        sa.Column(
            "minimum_premium",
            sa.Numeric(12, 2),
            nullable=True,
            comment="Annual premium floor for PERCENTAGE packages",
        ),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        *_timestamps(),
        sa.PrimaryKeyConstraint("package_id", name=op.f("pk_packages")),
        sa.ForeignKeyConstraint(
            ["product_id"],
            ["products.product_id"],
            name=op.f("fk_packages_product_id"),
            ondelete="CASCADE",
        ),
        sa.CheckConstraint("rate >= 0", name=op.f("ck_packages_rate_positive")),
        sa.CheckConstraint(
            "rate_type IN ('FLAT', 'PERCENTAGE')",
            name=op.f("ck_packages_rate_type"),
        ),
    )
    op.create_index(
        op.f("ix_packages_product_sort"),
        "packages",
        ["product_id", "sort_order"],
    )

    op.create_table(
        "package_benefits",
        sa.Column("id", sa.Integer(), sa.Identity(), nullable=False),
        sa.Column("package_id", sa.String(100), nullable=False),
        sa.Column("benefit_type", sa.String(100), nullable=False),
        sa.Column("benefit_value", sa.String(100), nullable=False),
        sa.Column("benefit_unit", sa.String(20), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_package_benefits")),
        sa.ForeignKeyConstraint(
            ["package_id"],
            ["packages.package_id"],
            name=op.f("fk_package_benefits_package_id"),
            ondelete="CASCADE",
        ),
    )

    op.create_table(
        "package_limits",
        sa.Column("package_id", sa.String(100), nullable=False),
        sa.Column("min_age", sa.Integer(), nullable=True),
        sa.Column("max_age", sa.Integer(), nullable=True),
        sa.Column("min_family_size", sa.Integer(), nullable=True),
        sa.Column("max_family_size", sa.Integer(), nullable=True),
        sa.Column("min_sum_insured", sa.Numeric(14, 2), nullable=True),
        sa.Column("max_sum_insured", sa.Numeric(14, 2), nullable=True),
        sa.Column(
            "additional_limits",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=True,
            server_default="{}",
        ),
        sa.PrimaryKeyConstraint("package_id", name=op.f("pk_package_limits")),
        sa.ForeignKeyConstraint(
            ["package_id"],
            ["packages.package_id"],
            name=op.f("fk_package_limits_package_id"),
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "min_age IS NULL OR max_age IS NULL OR min_age <= max_age",
            name=op.f("ck_package_limits_age_range"),
        ),
    )

    op.create_table(
        "rating_factors",
        sa.Column("id", sa.Integer(), sa.Identity(), nullable=False),
        sa.Column("product_id", sa.String(50), nullable=False),
        sa.Column("factor_type", sa.String(50), nullable=False),
        sa.Column("factor_key", sa.String(100), nullable=False),
        sa.Column("multiplier", sa.Numeric(8, 4), nullable=True),
        sa.Column("addition", sa.Numeric(12, 2), nullable=True),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="true"),
        sa.Column("sort_order", sa.Integer(), nullable=False, server_default="0"),
        sa.PrimaryKeyConstraint("id", name=op.f("pk_rating_factors")),
        sa.ForeignKeyConstraint(
            ["product_id"],
            ["products.product_id"],
            name=op.f("fk_rating_factors_product_id"),
            ondelete="CASCADE",
        ),
        sa.CheckConstraint(
            "(multiplier IS NULL) <> (addition IS NULL)",
            name=op.f("ck_rating_factors_single_effect"),
        ),
    )
    op.create_index(
        op.f("ix_rating_factors_product_order"),
        "rating_factors",
        ["product_id", "sort_order", "id"],
    )

    op.create_table(
        "quotes",
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("quote_number", sa.String(80), nullable=False),
        sa.Column("product_id", sa.String(50), nullable=False),
        sa.Column("package_id", sa.String(100), nullable=False),
        sa.Column(
            "customer_info",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column(
            "risk_factors",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("duration_months", sa.Integer(), nullable=False),
        sa.Column("base_premium", sa.Numeric(12, 4), nullable=False),
        sa.Column("monthly_premium", sa.Numeric(12, 2), nullable=False),
        sa.Column("total_premium", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column(
            "applied_factors",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="[]",
        ),
        sa.Column("breakdown", postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("expires_at", sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("quote_id", name=op.f("pk_quotes")),
        sa.UniqueConstraint("quote_number", name=op.f("uq_quotes_quote_number")),
        sa.ForeignKeyConstraint(
            ["package_id"],
            ["packages.package_id"],
            name=op.f("fk_quotes_package_id"),
        ),
        sa.CheckConstraint(
            "duration_months BETWEEN 1 AND 12",
            name=op.f("ck_quotes_duration_months"),
        ),
        sa.CheckConstraint(
            "status IN ('ACTIVE', 'ACCEPTED', 'EXPIRED')",
            name=op.f("ck_quotes_status"),
        ),
    )
    op.create_index(
        op.f("ix_quotes_status_expires_at"), "quotes", ["status", "expires_at"]
    )

    op.create_table(
        "policies",
        sa.Column("policy_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("policy_number", sa.String(50), nullable=False),
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("product_id", sa.String(50), nullable=False),
        sa.Column("package_id", sa.String(100), nullable=False),
        sa.Column(
            "customer_info",
            postgresql.JSONB(astext_type=sa.Text()),
            nullable=False,
            server_default="{}",
        ),
        sa.Column("premium_amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("effective_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("expiry_date", sa.DateTime(timezone=True), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="ACTIVE"),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.PrimaryKeyConstraint("policy_id", name=op.f("pk_policies")),
        sa.UniqueConstraint("policy_number", name=op.f("uq_policies_policy_number")),
        # One policy per quote; the issuance backstop relies on this name.
        sa.UniqueConstraint("quote_id", name=op.f("uq_policies_quote_id")),
        sa.ForeignKeyConstraint(
            ["quote_id"],
            ["quotes.quote_id"],
            name=op.f("fk_policies_quote_id"),
        ),
        sa.CheckConstraint(
            "expiry_date > effective_date",
            name=op.f("ck_policies_date_order"),
        ),
    )

    op.create_table(
        "payment_transactions",
        sa.Column("transaction_id", sa.String(100), nullable=False),
        sa.Column("policy_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("quote_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column(
            "payment_method", sa.String(20), nullable=False, server_default="ICECASH"
        ),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column("currency", sa.String(3), nullable=False),
        sa.Column("status", sa.String(20), nullable=False, server_default="COMPLETED"),
        sa.Column("payment_reference", sa.String(255), nullable=True),
        sa.Column("external_reference", sa.String(255), nullable=True),
        sa.Column("processed_at", sa.DateTime(timezone=True), nullable=False),
        sa.PrimaryKeyConstraint(
            "transaction_id", name=op.f("pk_payment_transactions")
        ),
        sa.ForeignKeyConstraint(
            ["policy_id"],
            ["policies.policy_id"],
            name=op.f("fk_payment_transactions_policy_id"),
        ),
        sa.CheckConstraint(
            "amount >= 0", name=op.f("ck_payment_transactions_amount_positive")
        ),
    )
    op.create_index(
        op.f("ix_payment_transactions_policy_id"),
        "payment_transactions",
        ["policy_id"],
    )


def downgrade() -> None:
    """Drop rating engine tables."""
    op.drop_table("payment_transactions")
    op.drop_table("policies")
    op.drop_table("quotes")
    op.drop_table("rating_factors")
    op.drop_table("package_limits")
    op.drop_table("package_benefits")
    op.drop_table("packages")
    op.drop_table("products")
