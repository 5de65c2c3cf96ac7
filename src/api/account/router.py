"""Token account endpoints for the signed-in user."""

from fastapi import APIRouter, Query, Request

from src.api.core.constants import DEFAULT_PAGE_SIZE, MAX_PAGE_SIZE
from src.api.core.dependencies import (
    AccountServiceDep,
    CurrentUserDep,
    LedgerServiceDep,
    MeteringServiceDep,
)
from src.api.core.messages import APIResponse, MessageCode, Paginated, PaginationInfo
from src.api.usage.schemas import UsageEventModel, UsageHistoryResponse
from src.database.models import OperationType
from .schemas import (
    AccountModel,
    AccountResponse,
    AutoRechargeUpdateRequest,
    TransactionModel,
    TransactionsResponse,
)

router = APIRouter(
    prefix="/account",
    tags=["account"],
)


@router.get("", response_model=AccountResponse)
async def get_account(
    request: Request,
    current_user: CurrentUserDep,
    account_service: AccountServiceDep,
    scope_id: str | None = None,
) -> AccountResponse:
    """Get the caller's token account, creating it on first access."""
    account = await account_service.get_or_create(current_user.id, scope_id)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=AccountModel.model_validate(account),
    )


@router.patch("/auto-recharge", response_model=AccountResponse)
async def update_auto_recharge(
    request: Request,
    body: AutoRechargeUpdateRequest,
    current_user: CurrentUserDep,
    account_service: AccountServiceDep,
) -> AccountResponse:
    account = await account_service.update_auto_recharge(
        current_user.id,
        enabled=body.enabled,
        threshold=body.threshold,
        amount=body.amount,
        scope_id=body.scope_id,
    )
    return APIResponse.success(
        message_code=MessageCode.ACCOUNT_UPDATED,
        data=AccountModel.model_validate(account),
    )


@router.get("/transactions", response_model=TransactionsResponse)
async def list_transactions(
    request: Request,
    current_user: CurrentUserDep,
    account_service: AccountServiceDep,
    ledger_service: LedgerServiceDep,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    scope_id: str | None = None,
) -> TransactionsResponse:
    """Ledger rows of the caller's account, newest first."""
    account = await account_service.get_account_or_none(current_user.id, scope_id)
    transactions, total = (
        await ledger_service.get_transactions(account.id, limit, offset)
        if account is not None
        else ([], 0)
    )
    items = [TransactionModel.model_validate(t) for t in transactions]
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=Paginated[TransactionModel](
            items=items,
            pagination=PaginationInfo(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(items) < total,
            ),
        ),
    )


@router.get("/usage", response_model=UsageHistoryResponse)
async def usage_history(
    request: Request,
    current_user: CurrentUserDep,
    metering_service: MeteringServiceDep,
    limit: int = Query(default=DEFAULT_PAGE_SIZE, ge=1, le=MAX_PAGE_SIZE),
    offset: int = Query(default=0, ge=0),
    operation_type: OperationType | None = None,
    scope_id: str | None = None,
) -> UsageHistoryResponse:
    events, total = await metering_service.get_usage_history(
        current_user.id,
        limit=limit,
        offset=offset,
        operation_type=operation_type,
        scope_id=scope_id,
    )
    items = [UsageEventModel.model_validate(e) for e in events]
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=Paginated[UsageEventModel](
            items=items,
            pagination=PaginationInfo(
                total=total,
                limit=limit,
                offset=offset,
                has_more=offset + len(items) < total,
            ),
        ),
    )
