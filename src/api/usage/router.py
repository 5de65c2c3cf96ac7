"""Service-to-service metering endpoints."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Query, Request

from src.api.core.dependencies import (
    AccountServiceDep,
    AlertPublisherDep,
    MeteringServiceDep,
)
from src.api.core.messages import APIResponse, MessageCode
from src.database.models import ChargeStatus
from src.modules.billing.alerts import dispatch_alerts
from src.modules.billing.exceptions import (
    AccountNotActiveException,
    InsufficientBalanceException,
)
from src.modules.billing.pricing import RawUsage
from .schemas import (
    BalanceCheckModel,
    BalanceCheckResponse,
    ChargeResultModel,
    ChargeResultResponse,
    RecordUsageRequest,
    RefundModel,
    RefundRequest,
    RefundResponse,
)

router = APIRouter(
    prefix="/usage",
    tags=["usage"],
)

_RESULT_MESSAGES = {
    ChargeStatus.CHARGED: MessageCode.USAGE_RECORDED,
    ChargeStatus.DUPLICATE: MessageCode.USAGE_DUPLICATE,
    ChargeStatus.FAILED_OPERATION: MessageCode.USAGE_NOT_CHARGED,
}


@router.post("/record", response_model=ChargeResultResponse)
async def record_usage(
    request: Request,
    body: RecordUsageRequest,
    metering_service: MeteringServiceDep,
    alert_publisher: AlertPublisherDep,
    background_tasks: BackgroundTasks,
) -> ChargeResultResponse:
    """Record one AI operation reported by the inference service and charge it."""
    result = await metering_service.record_usage(
        user_id=body.user_id,
        scope_id=body.scope_id,
        operation_type=body.operation_type,
        provider=body.provider,
        model=body.model,
        usage=RawUsage(
            input_tokens=body.input_tokens,
            output_tokens=body.output_tokens,
            total_tokens=body.total_tokens,
            image_count=body.image_count,
            image_size=body.image_size,
        ),
        success=body.success,
        idempotency_key=body.idempotency_key,
        error_message=body.error_message,
        metadata=body.metadata,
    )

    if result.status == ChargeStatus.INSUFFICIENT_BALANCE:
        raise InsufficientBalanceException(
            result.new_balance,
            result.attempted_billable_tokens,
            usage_event_id=str(result.usage_event_id),
        )
    if result.status == ChargeStatus.ACCOUNT_NOT_ACTIVE:
        raise AccountNotActiveException(
            result.account_status.value,
            usage_event_id=str(result.usage_event_id),
        )

    background_tasks.add_task(dispatch_alerts, alert_publisher, result.alert)
    return APIResponse.success(
        message_code=_RESULT_MESSAGES[result.status],
        data=ChargeResultModel(
            status=result.status,
            usage_event_id=result.usage_event_id,
            billable_tokens=result.billable_tokens,
            attempted_billable_tokens=result.attempted_billable_tokens,
            new_balance=result.new_balance,
            charge_type=result.charge_type,
            transaction_id=result.transaction_id,
            original_status=result.original_status,
        ),
    )


@router.post("/{usage_event_id}/refund", response_model=RefundResponse)
async def refund_usage(
    request: Request,
    usage_event_id: UUID,
    metering_service: MeteringServiceDep,
    alert_publisher: AlertPublisherDep,
    background_tasks: BackgroundTasks,
    body: RefundRequest | None = None,
) -> RefundResponse:
    """Refund a charged usage event. Repeated calls return the first refund."""
    result = await metering_service.refund(
        usage_event_id, reason=body.reason if body else None
    )
    background_tasks.add_task(dispatch_alerts, alert_publisher, result.alert)
    return APIResponse.success(
        message_code=MessageCode.REFUND_RECORDED,
        data=RefundModel(
            transaction_id=result.transaction_id,
            new_balance=result.new_balance,
            already_refunded=result.already_refunded,
        ),
    )


@router.get("/balance-check", response_model=BalanceCheckResponse)
async def balance_check(
    request: Request,
    account_service: AccountServiceDep,
    user_id: UUID,
    required_tokens: int = Query(ge=0),
    scope_id: str | None = None,
) -> BalanceCheckResponse:
    """Pre-flight check before starting an operation; never charges."""
    check = await account_service.check_balance(user_id, required_tokens, scope_id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=BalanceCheckModel(
            sufficient=check.sufficient,
            balance=check.balance,
            required=check.required,
            account_status=check.account_status,
        ),
    )
