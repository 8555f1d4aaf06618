"""Create the ledger, subscription and sales tables read by the financial engine.

Revision ID: 20260105_0001
Revises:
Create Date: 2026-01-05
"""

from __future__ import annotations

from typing import Sequence

import sqlalchemy as sa
from alembic import op

from bizdash.db_types import GUID

revision = "20260105_0001"
down_revision = None
branch_labels: Sequence[str] | None = None
depends_on: Sequence[str] | None = None

PAYMENT_STATUS_VALUES = ("paid", "pending", "partial")


def _payment_status_enum(name: str) -> sa.Enum:
    return sa.Enum(*PAYMENT_STATUS_VALUES, name=name, native_enum=False)


def upgrade() -> None:
    op.create_table(
        "customers",
        sa.Column("customer_id", GUID(), primary_key=True),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=True),
        sa.Column("phone", sa.String(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "expense_categories",
        sa.Column("expense_category_id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("name", sa.String(length=100), nullable=False, unique=True),
        sa.Column("color", sa.String(length=20), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )

    op.create_table(
        "financial_entries",
        sa.Column("financial_entry_id", GUID(), primary_key=True),
        sa.Column(
            "type",
            sa.Enum("income", "expense", name="financial_entry_type_enum", native_enum=False),
            nullable=False,
        ),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "payment_status",
            _payment_status_enum("financial_entry_payment_status_enum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("remaining_amount", sa.Numeric(12, 2), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.Column("due_date", sa.Date(), nullable=True),
        sa.Column("paid_at", sa.Date(), nullable=True),
        sa.Column(
            "customer_id",
            GUID(),
            sa.ForeignKey("customers.customer_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column(
            "category_id",
            sa.Integer(),
            sa.ForeignKey("expense_categories.expense_category_id", ondelete="SET NULL"),
            nullable=True,
        ),
    )
    op.create_index(
        "financial_entries_type_status_idx", "financial_entries", ["type", "payment_status"]
    )
    op.create_index("financial_entries_paid_at_idx", "financial_entries", ["paid_at"])
    op.create_index("financial_entries_customer_idx", "financial_entries", ["customer_id"])

    op.create_table(
        "subscriptions",
        sa.Column("subscription_id", GUID(), primary_key=True),
        sa.Column(
            "customer_id",
            GUID(),
            sa.ForeignKey("customers.customer_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("monthly_value", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column("start_date", sa.Date(), nullable=False, server_default=sa.text("CURRENT_DATE")),
        sa.Column("end_date", sa.Date(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False, server_default="1"),
        sa.Column("payment_day", sa.Integer(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.CheckConstraint(
            "monthly_value >= 0", name="ck_subscriptions_monthly_value_non_negative"
        ),
        sa.CheckConstraint(
            "payment_day IS NULL OR (payment_day >= 1 AND payment_day <= 31)",
            name="ck_subscriptions_payment_day_range",
        ),
    )
    op.create_index("subscriptions_customer_idx", "subscriptions", ["customer_id"])

    op.create_table(
        "subscription_payments",
        sa.Column("subscription_payment_id", GUID(), primary_key=True),
        sa.Column(
            "subscription_id",
            GUID(),
            sa.ForeignKey("subscriptions.subscription_id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("month", sa.Integer(), nullable=False),
        sa.Column("year", sa.Integer(), nullable=False),
        sa.Column("amount", sa.Numeric(12, 2), nullable=False),
        sa.Column(
            "payment_status",
            _payment_status_enum("subscription_payment_status_enum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("paid_at", sa.Date(), nullable=True),
        sa.Column("financial_entry_id", GUID(), nullable=True),
        sa.Column("is_skipped", sa.Boolean(), nullable=False, server_default="0"),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
        sa.UniqueConstraint(
            "subscription_id", "month", "year", name="uq_subscription_payments_period"
        ),
        sa.CheckConstraint(
            "month >= 1 AND month <= 12", name="ck_subscription_payments_month_range"
        ),
    )
    op.create_index(
        "subscription_payments_entry_idx", "subscription_payments", ["financial_entry_id"]
    )

    op.create_table(
        "sales",
        sa.Column("sale_id", GUID(), primary_key=True),
        sa.Column(
            "customer_id",
            GUID(),
            sa.ForeignKey("customers.customer_id", ondelete="SET NULL"),
            nullable=True,
        ),
        sa.Column("title", sa.String(), nullable=False),
        sa.Column("total", sa.Numeric(12, 2), nullable=False, server_default="0"),
        sa.Column(
            "payment_status",
            _payment_status_enum("sale_payment_status_enum"),
            nullable=False,
            server_default="pending",
        ),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("sold_at", sa.Date(), nullable=False),
        sa.Column("paid_at", sa.Date(), nullable=True),
        sa.Column("delivery_date", sa.Date(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.func.now(), nullable=False),
    )
    op.create_index("sales_customer_sold_idx", "sales", ["customer_id", "sold_at"])


def downgrade() -> None:
    op.drop_index("sales_customer_sold_idx", table_name="sales")
    op.drop_table("sales")
    op.drop_index("subscription_payments_entry_idx", table_name="subscription_payments")
    op.drop_table("subscription_payments")
    op.drop_index("subscriptions_customer_idx", table_name="subscriptions")
    op.drop_table("subscriptions")
    op.drop_index("financial_entries_customer_idx", table_name="financial_entries")
    op.drop_index("financial_entries_paid_at_idx", table_name="financial_entries")
    op.drop_index("financial_entries_type_status_idx", table_name="financial_entries")
    op.drop_table("financial_entries")
    op.drop_table("expense_categories")
    op.drop_table("customers")
