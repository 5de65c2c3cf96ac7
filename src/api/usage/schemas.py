"""Usage API schemas (combined requests/models)."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field, model_validator

from src.api.core.messages import APIResponse, Paginated
from src.database.models import ChargeStatus, ChargeType, OperationType, Provider
from src.modules.billing.constants import MAX_TOKEN_AMOUNT
from src.modules.billing.metering import UsageMetadata
from src.modules.billing.metering.metadata import metadata_matches_operation


class RecordUsageRequest(BaseModel):
    user_id: UUID
    scope_id: str | None = Field(default=None, min_length=1, max_length=255)
    operation_type: OperationType
    provider: Provider
    model: str = Field(min_length=1, max_length=255)
    input_tokens: int | None = Field(default=None, ge=0, le=MAX_TOKEN_AMOUNT)
    output_tokens: int | None = Field(default=None, ge=0, le=MAX_TOKEN_AMOUNT)
    total_tokens: int | None = Field(default=None, ge=0, le=MAX_TOKEN_AMOUNT)
    image_count: int | None = Field(default=None, ge=1)
    image_size: str | None = None
    success: bool = True
    idempotency_key: str = Field(min_length=1, max_length=255)
    error_message: str | None = Field(default=None, max_length=2000)
    metadata: UsageMetadata | None = None

    @model_validator(mode="after")
    def metadata_fits_operation(self) -> "RecordUsageRequest":
        if self.metadata is not None and not metadata_matches_operation(
            self.metadata, self.operation_type
        ):
            raise ValueError(
                f"metadata kind '{self.metadata.kind}' does not match "
                f"operation type '{self.operation_type.value}'"
            )
        return self


class ChargeResultModel(BaseModel):
    status: ChargeStatus
    usage_event_id: UUID
    billable_tokens: int
    attempted_billable_tokens: int
    new_balance: int
    charge_type: ChargeType
    transaction_id: UUID | None = None
    original_status: ChargeStatus | None = None


class RefundRequest(BaseModel):
    reason: str | None = Field(default=None, max_length=500)


class RefundModel(BaseModel):
    transaction_id: UUID
    new_balance: int
    already_refunded: bool


class BalanceCheckModel(BaseModel):
    sufficient: bool
    balance: int
    required: int
    account_status: str


class UsageEventModel(BaseModel):
    id: UUID
    operation_type: OperationType
    provider: Provider
    model: str
    input_tokens: int | None
    output_tokens: int | None
    total_tokens: int | None
    image_count: int | None
    image_size: str | None
    billable_tokens: int
    attempted_billable_tokens: int
    charge_type: ChargeType
    pricing_value: float
    charge_status: ChargeStatus
    success: bool
    error_message: str | None
    request_metadata: dict | None
    transaction_id: UUID | None
    balance_after: int | None
    created_at: datetime

    model_config = {"from_attributes": True}


# Response Models
ChargeResultResponse = APIResponse[ChargeResultModel]
RefundResponse = APIResponse[RefundModel]
BalanceCheckResponse = APIResponse[BalanceCheckModel]
UsageHistoryResponse = APIResponse[Paginated[UsageEventModel]]
