"""Account API schemas (combined requests/models)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from src.api.core.messages import APIResponse, Paginated
from src.database.models import AccountStatus, TransactionType
from src.modules.billing.constants import MAX_TOKEN_AMOUNT


class AccountModel(BaseModel):
    id: UUID
    user_id: UUID
    scope_id: str
    balance: int
    lifetime_purchased: int
    lifetime_used: int
    lifetime_actual: int
    lifetime_spent_minor_units: int
    auto_recharge_enabled: bool
    auto_recharge_threshold: int | None
    auto_recharge_amount: int | None
    currency: str
    status: AccountStatus
    last_purchase_at: datetime | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AutoRechargeUpdateRequest(BaseModel):
    enabled: bool
    threshold: int | None = Field(default=None, gt=0, le=MAX_TOKEN_AMOUNT)
    amount: int | None = Field(default=None, gt=0, le=MAX_TOKEN_AMOUNT)
    scope_id: str | None = None


class TransactionModel(BaseModel):
    id: UUID
    sequence: int
    transaction_type: TransactionType
    amount: int
    balance_before: int
    balance_after: int
    amount_minor_units: int | None
    usage_event_id: UUID | None
    payment_reference: str | None
    admin_user_id: UUID | None
    description: str
    created_at: datetime

    model_config = {"from_attributes": True}


# Response Models
AccountResponse = APIResponse[AccountModel]
TransactionsResponse = APIResponse[Paginated[TransactionModel]]
