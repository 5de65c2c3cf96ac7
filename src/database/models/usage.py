"""Usage event models."""

import uuid
from datetime import datetime, timezone
from enum import Enum
from uuid import UUID

from sqlalchemy import (
    JSON,
    BigInteger,
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
)
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base


class OperationType(str, Enum):
    CONTENT_GENERATION = "content_generation"
    CONTENT_REFINEMENT = "content_refinement"
    CONTENT_REPURPOSE = "content_repurpose"
    CHAT_RESPONSE = "chat_response"
    IMAGE_GENERATION = "image_generation"
    IMAGE_PROMPT_GENERATION = "image_prompt_generation"


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"


class ChargeType(str, Enum):
    MULTIPLIER = "multiplier"
    FIXED = "fixed"


class ChargeStatus(str, Enum):
    CHARGED = "charged"
    FAILED_OPERATION = "failed_operation"
    INSUFFICIENT_BALANCE = "insufficient_balance"
    ACCOUNT_NOT_ACTIVE = "account_not_active"
    # Returned for a repeated idempotency key; never stored
    DUPLICATE = "duplicate"


class UsageEvent(Base):
    """One reported AI operation. Rows are never updated."""

    __tablename__ = "usage_events"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    account_id: Mapped[UUID] = mapped_column(
        ForeignKey("accounts.id", ondelete="RESTRICT"), nullable=False, index=True
    )
    user_id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=False, index=True
    )
    scope_id: Mapped[str] = mapped_column(String, nullable=False)
    idempotency_key: Mapped[str] = mapped_column(
        String(255), nullable=False, unique=True
    )

    operation_type: Mapped[OperationType] = mapped_column(
        String, nullable=False, index=True
    )
    provider: Mapped[Provider] = mapped_column(String, nullable=False)
    model: Mapped[str] = mapped_column(String, nullable=False, index=True)

    input_tokens: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    output_tokens: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    total_tokens: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    image_count: Mapped[int | None] = mapped_column(Integer, nullable=True)
    image_size: Mapped[str | None] = mapped_column(String, nullable=True)

    billable_tokens: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    attempted_billable_tokens: Mapped[int] = mapped_column(
        BigInteger, nullable=False, default=0
    )
    charge_type: Mapped[ChargeType] = mapped_column(String, nullable=False)
    pricing_value: Mapped[float] = mapped_column(Float, nullable=False)
    charge_status: Mapped[ChargeStatus] = mapped_column(String, nullable=False)

    success: Mapped[bool] = mapped_column(Boolean, nullable=False)
    error_message: Mapped[str | None] = mapped_column(String, nullable=True)
    request_metadata: Mapped[dict | None] = mapped_column(JSON, nullable=True)

    transaction_id: Mapped[UUID | None] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=True
    )
    balance_after: Mapped[int | None] = mapped_column(BigInteger, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        index=True,
    )

    @property
    def is_charged(self) -> bool:
        return self.charge_status == ChargeStatus.CHARGED
