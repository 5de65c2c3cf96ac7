"""Append-only ledger transaction model."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    CheckConstraint,
    DateTime,
    ForeignKey,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class TransactionType(str, Enum):
    PURCHASE = "purchase"
    USAGE = "usage"
    ADMIN_GRANT = "admin_grant"
    ADMIN_DEDUCTION = "admin_deduction"
    REFUND = "refund"
    BONUS = "bonus"
    AUTO_RECHARGE = "auto_recharge"


CREDIT_TYPES = frozenset(
    {
        TransactionType.PURCHASE,
        TransactionType.ADMIN_GRANT,
        TransactionType.REFUND,
        TransactionType.BONUS,
        TransactionType.AUTO_RECHARGE,
    }
)
DEBIT_TYPES = frozenset({TransactionType.USAGE, TransactionType.ADMIN_DEDUCTION})


class Transaction(Base):
    __tablename__ = "transactions"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False
    )
    user_id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=False, index=True
    )
    sequence: Mapped[int] = mapped_column(Integer, nullable=False)
    transaction_type: Mapped[TransactionType] = mapped_column(
        String, nullable=False, index=True
    )
    amount: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_before: Mapped[int] = mapped_column(BigInteger, nullable=False)
    balance_after: Mapped[int] = mapped_column(BigInteger, nullable=False)
    amount_minor_units: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )

    usage_event_id: Mapped[UUID | None] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=True
    )
    payment_reference: Mapped[str | None] = mapped_column(
        String, nullable=True, unique=True
    )
    admin_user_id: Mapped[UUID | None] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=True
    )
    description: Mapped[str] = mapped_column(String, nullable=False)
    transaction_metadata: Mapped[dict | None] = mapped_column(
        "metadata", JSON, nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("account_id", "sequence", name="uq_transaction_sequence"),
        UniqueConstraint(
            "usage_event_id", "transaction_type", name="uq_transaction_usage_event"
        ),
        CheckConstraint(
            "balance_after = balance_before + amount",
            name="ck_transaction_balance_chain",
        ),
    )
