"""Admin API schemas (combined requests/models)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, field_validator

from src.api.core.messages import APIResponse, Paginated
from src.database.models import AccountStatus, OperationType
from src.modules.billing.constants import MAX_TOKEN_AMOUNT


class AdminUserSummary(BaseModel):
    id: UUID
    email: str
    name: str
    roles: list[str]

    model_config = {"from_attributes": True}


class AdminAccountSummary(BaseModel):
    id: UUID
    user_id: UUID
    scope_id: str
    balance: int
    lifetime_purchased: int
    lifetime_used: int
    status: AccountStatus
    auto_recharge_enabled: bool
    last_purchase_at: datetime | None
    created_at: datetime
    user: AdminUserSummary | None = None


class TokenStats(BaseModel):
    total_billable_tokens_used: int
    total_actual_tokens_used: int
    total_revenue_minor_units: int
    active_accounts: int
    total_accounts: int
    total_balance: int
    average_balance: float
    profit_margin: float


class ModelUsageStats(BaseModel):
    model: str
    operation_count: int
    billable_tokens: int
    actual_tokens: int


class OperationUsageStats(BaseModel):
    operation_type: OperationType
    operation_count: int
    billable_tokens: int


class BalanceAdjustmentRequest(BaseModel):
    amount: int = Field(gt=0, le=MAX_TOKEN_AMOUNT)
    reason: str = Field(min_length=1, max_length=500)
    scope_id: str | None = None

    @field_validator("reason")
    @classmethod
    def reason_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Reason must not be blank")
        return v.strip()


class BalanceAdjustmentModel(BaseModel):
    transaction_id: UUID
    new_balance: int


class AccountStatusRequest(BaseModel):
    status: AccountStatus
    reason: str = Field(min_length=1, max_length=500)
    scope_id: str | None = None


class AccountStatusModel(BaseModel):
    account_id: UUID
    status: AccountStatus


class LedgerVerificationModel(BaseModel):
    account_id: UUID
    transaction_count: int
    replayed_balance: int
    cached_balance: int


class SystemSettingsModel(BaseModel):
    default_multiplier: float
    image_costs: dict[str, int]
    tokens_per_usd: int
    min_purchase_minor_units: int
    new_account_bonus: int
    low_balance_threshold: int
    critical_balance_threshold: int


class SystemSettingsUpdateRequest(BaseModel):
    default_multiplier: float | None = Field(default=None, gt=0)
    image_costs: dict[str, int] | None = None
    tokens_per_usd: int | None = Field(default=None, gt=0)
    min_purchase_minor_units: int | None = Field(default=None, gt=0)
    new_account_bonus: int | None = Field(default=None, ge=0)
    low_balance_threshold: int | None = Field(default=None, ge=0)
    critical_balance_threshold: int | None = Field(default=None, ge=0)


# Response Models
TokenStatsResponse = APIResponse[TokenStats]
ModelUsageStatsResponse = APIResponse[list[ModelUsageStats]]
OperationUsageStatsResponse = APIResponse[list[OperationUsageStats]]
AdminAccountsResponse = APIResponse[Paginated[AdminAccountSummary]]
AdminUserSearchResponse = APIResponse[list[AdminUserSummary]]
BalanceAdjustmentResponse = APIResponse[BalanceAdjustmentModel]
AccountStatusResponse = APIResponse[AccountStatusModel]
LedgerVerificationResponse = APIResponse[LedgerVerificationModel]
SystemSettingsResponse = APIResponse[SystemSettingsModel]
