"""Token account model and status lifecycle."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    BigInteger,
    Boolean,
    CheckConstraint,
    DateTime,
    Integer,
    String,
    UniqueConstraint,
)
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class AccountStatus(str, Enum):
    ACTIVE = "active"
    SUSPENDED = "suspended"
    BLOCKED = "blocked"


class Account(Base):
    """Billing account for one (user, scope) pair.

    ``balance`` is a cache over the account's transactions and is only
    written together with a new ledger row.
    """

    __tablename__ = "accounts"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=False, index=True
    )
    scope_id: Mapped[str] = mapped_column(String, nullable=False)

    balance: Mapped[int] = mapped_column(BigInteger, nullable=False, default=0)
    lifetime_purchased: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    lifetime_used: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    lifetime_actual: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    lifetime_spent_minor_units: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )

    auto_recharge_enabled: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False
    )
    auto_recharge_threshold: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )
    auto_recharge_amount: Mapped[int | None] = mapped_column(
        BigInteger, nullable=True
    )

    payment_customer_ref: Mapped[str | None] = mapped_column(String, nullable=True)
    currency: Mapped[str] = mapped_column(String(3), nullable=False, default="usd")
    status: Mapped[AccountStatus] = mapped_column(
        String, nullable=False, default=AccountStatus.ACTIVE, index=True
    )
    last_purchase_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    transaction_count: Mapped[int] = mapped_column(
        Integer, nullable=False, default=0
    )
    version: Mapped[int] = mapped_column(Integer, nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("user_id", "scope_id", name="uq_account_user_scope"),
        CheckConstraint("balance >= 0", name="ck_account_balance_non_negative"),
    )
    __mapper_args__ = {"version_id_col": version}

    @property
    def is_active(self) -> bool:
        return self.status == AccountStatus.ACTIVE
