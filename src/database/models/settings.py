"""Global billing configuration stored as a single keyed row."""

import uuid
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import JSON, DateTime, Float, Integer, String
from sqlalchemy import UUID as SQLAlchemyUUID
from sqlalchemy.orm import Mapped, mapped_column

from .base import Base

GLOBAL_SETTINGS_KEY = "global_settings"


class SystemSettings(Base):
    __tablename__ = "system_settings"

    id: Mapped[UUID] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), primary_key=True, default=uuid.uuid4
    )
    key: Mapped[str] = mapped_column(
        String, nullable=False, unique=True, default=GLOBAL_SETTINGS_KEY
    )
    default_multiplier: Mapped[float] = mapped_column(Float, nullable=False)
    # "provider/model" -> billable tokens per image; "provider/*" matches any model
    image_costs: Mapped[dict[str, int]] = mapped_column(JSON, nullable=False)
    tokens_per_usd: Mapped[int] = mapped_column(Integer, nullable=False)
    min_purchase_minor_units: Mapped[int] = mapped_column(Integer, nullable=False)
    new_account_bonus: Mapped[int] = mapped_column(Integer, nullable=False)
    low_balance_threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    critical_balance_threshold: Mapped[int] = mapped_column(Integer, nullable=False)
    updated_by_id: Mapped[UUID | None] = mapped_column(
        SQLAlchemyUUID(as_uuid=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=lambda: datetime.now(timezone.utc)
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
