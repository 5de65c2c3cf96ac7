"""Create token ledger tables

Revision ID: 3f2c9a1d7b60
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = "3f2c9a1d7b60"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "users",
        sa.Column("id", sa.UUID(), nullable=False, comment="Identity provider subject"),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("email", sa.String(), nullable=False),
        sa.Column("roles", sa.JSON(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
    )

    op.create_table(
        "accounts",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("scope_id", sa.String(), nullable=False),
        sa.Column("balance", sa.BigInteger(), nullable=False),
        sa.Column("lifetime_purchased", sa.BigInteger(), nullable=False),
        sa.Column("lifetime_used", sa.BigInteger(), nullable=False),
        sa.Column("lifetime_actual", sa.BigInteger(), nullable=False),
        sa.Column("lifetime_spent_minor_units", sa.BigInteger(), nullable=False),
        sa.Column("auto_recharge_enabled", sa.Boolean(), nullable=False),
        sa.Column("auto_recharge_threshold", sa.BigInteger(), nullable=True),
        sa.Column("auto_recharge_amount", sa.BigInteger(), nullable=True),
        sa.Column("payment_customer_ref", sa.String(), nullable=True),
        sa.Column("currency", sa.String(length=3), nullable=False),
        sa.Column("status", sa.String(), nullable=False),
        sa.Column("last_purchase_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("transaction_count", sa.Integer(), nullable=False),
        sa.Column("version", sa.Integer(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("user_id", "scope_id", name="uq_account_user_scope"),
        sa.CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),
    )
    op.create_index("ix_accounts_user_id", "accounts", ["user_id"])
    op.create_index("ix_accounts_status", "accounts", ["status"])

    op.create_table(
        "usage_events",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("scope_id", sa.String(), nullable=False),
        sa.Column("idempotency_key", sa.String(length=255), nullable=False),
        sa.Column("operation_type", sa.String(), nullable=False),
        sa.Column("provider", sa.String(), nullable=False),
        sa.Column("model", sa.String(), nullable=False),
        sa.Column("input_tokens", sa.BigInteger(), nullable=True),
        sa.Column("output_tokens", sa.BigInteger(), nullable=True),
        sa.Column("total_tokens", sa.BigInteger(), nullable=True),
        sa.Column("image_count", sa.Integer(), nullable=True),
        sa.Column("image_size", sa.String(), nullable=True),
        sa.Column("billable_tokens", sa.BigInteger(), nullable=False),
        sa.Column("attempted_billable_tokens", sa.BigInteger(), nullable=False),
        sa.Column("charge_type", sa.String(), nullable=False),
        sa.Column("pricing_value", sa.Float(), nullable=False),
        sa.Column("charge_status", sa.String(), nullable=False),
        sa.Column("success", sa.Boolean(), nullable=False),
        sa.Column("error_message", sa.String(), nullable=True),
        sa.Column("request_metadata", sa.JSON(), nullable=True),
        sa.Column("transaction_id", sa.UUID(), nullable=True),
        sa.Column("balance_after", sa.BigInteger(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("idempotency_key"),
    )
    op.create_index("ix_usage_events_account_id", "usage_events", ["account_id"])
    op.create_index("ix_usage_events_user_id", "usage_events", ["user_id"])
    op.create_index(
        "ix_usage_events_operation_type", "usage_events", ["operation_type"]
    )
    op.create_index("ix_usage_events_model", "usage_events", ["model"])
    op.create_index("ix_usage_events_created_at", "usage_events", ["created_at"])

    op.create_table(
        "transactions",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("account_id", sa.UUID(), nullable=False),
        sa.Column("user_id", sa.UUID(), nullable=False),
        sa.Column("sequence", sa.Integer(), nullable=False),
        sa.Column("transaction_type", sa.String(), nullable=False),
        sa.Column("amount", sa.BigInteger(), nullable=False),
        sa.Column("balance_before", sa.BigInteger(), nullable=False),
        sa.Column("balance_after", sa.BigInteger(), nullable=False),
        sa.Column("amount_minor_units", sa.BigInteger(), nullable=True),
        sa.Column("usage_event_id", sa.UUID(), nullable=True),
        sa.Column("payment_reference", sa.String(), nullable=True),
        sa.Column("admin_user_id", sa.UUID(), nullable=True),
        sa.Column("description", sa.String(), nullable=False),
        sa.Column("metadata", sa.JSON(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(["account_id"], ["accounts.id"], ondelete="RESTRICT"),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("account_id", "sequence", name="uq_transaction_sequence"),
        sa.UniqueConstraint(
            "usage_event_id", "transaction_type", name="uq_transaction_usage_event"
        ),
        sa.UniqueConstraint("payment_reference"),
        sa.CheckConstraint(
            "balance_after = balance_before + amount",
            name="ck_transaction_balance_chain",
        ),
    )
    op.create_index("ix_transactions_user_id", "transactions", ["user_id"])
    op.create_index(
        "ix_transactions_transaction_type", "transactions", ["transaction_type"]
    )
    op.create_index("ix_transactions_created_at", "transactions", ["created_at"])

    op.create_table(
        "pricing_packages",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("name", sa.String(), nullable=False),
        sa.Column("token_amount", sa.Integer(), nullable=False),
        sa.Column("price_minor_units", sa.Integer(), nullable=False),
        sa.Column("is_popular", sa.Boolean(), nullable=False),
        sa.Column("sort_order", sa.Integer(), nullable=False),
        sa.Column("payment_price_ref", sa.String(), nullable=True),
        sa.Column("is_active", sa.Boolean(), nullable=False),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
    )
    op.create_index(
        "ix_pricing_packages_is_active", "pricing_packages", ["is_active"]
    )

    op.create_table(
        "system_settings",
        sa.Column("id", sa.UUID(), nullable=False),
        sa.Column("key", sa.String(), nullable=False),
        sa.Column("default_multiplier", sa.Float(), nullable=False),
        sa.Column("image_costs", sa.JSON(), nullable=False),
        sa.Column("tokens_per_usd", sa.Integer(), nullable=False),
        sa.Column("min_purchase_minor_units", sa.Integer(), nullable=False),
        sa.Column("new_account_bonus", sa.Integer(), nullable=False),
        sa.Column("low_balance_threshold", sa.Integer(), nullable=False),
        sa.Column("critical_balance_threshold", sa.Integer(), nullable=False),
        sa.Column("updated_by_id", sa.UUID(), nullable=True),
        sa.Column("created_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("updated_at", sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("key"),
    )


def downgrade() -> None:
    op.drop_table("system_settings")
    op.drop_index("ix_pricing_packages_is_active", table_name="pricing_packages")
    op.drop_table("pricing_packages")
    op.drop_index("ix_transactions_created_at", table_name="transactions")
    op.drop_index("ix_transactions_transaction_type", table_name="transactions")
    op.drop_index("ix_transactions_user_id", table_name="transactions")
    op.drop_table("transactions")
    op.drop_index("ix_usage_events_created_at", table_name="usage_events")
    op.drop_index("ix_usage_events_model", table_name="usage_events")
    op.drop_index("ix_usage_events_operation_type", table_name="usage_events")
    op.drop_index("ix_usage_events_user_id", table_name="usage_events")
    op.drop_index("ix_usage_events_account_id", table_name="usage_events")
    op.drop_table("usage_events")
    op.drop_index("ix_accounts_status", table_name="accounts")
    op.drop_index("ix_accounts_user_id", table_name="accounts")
    op.drop_table("accounts")
    op.drop_table("users")
