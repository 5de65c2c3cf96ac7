"""Admin control: balance adjustments, account status, reports and settings."""

from uuid import UUID

from fastapi import APIRouter, BackgroundTasks, Query, Request

from src.api.core.decorators.admin import admin
from src.api.core.dependencies import (
    AccountServiceDep,
    AdminBillingServiceDep,
    AlertPublisherDep,
    BillingReportServiceDep,
    CurrentUserDep,
    LedgerServiceDep,
    PricingPackageServiceDep,
    SystemSettingsServiceDep,
)
from src.api.core.messages import APIResponse, MessageCode
from src.api.pricing.schemas import (
    PricingPackageCreateRequest,
    PricingPackageModel,
    PricingPackageResponse,
    PricingPackageUpdateRequest,
)
from src.database.models import AccountStatus
from src.modules.billing.alerts import dispatch_alerts
from .schemas import (
    AccountStatusModel,
    AccountStatusRequest,
    AccountStatusResponse,
    AdminAccountsResponse,
    AdminUserSearchResponse,
    AdminUserSummary,
    BalanceAdjustmentModel,
    BalanceAdjustmentRequest,
    BalanceAdjustmentResponse,
    LedgerVerificationModel,
    LedgerVerificationResponse,
    ModelUsageStatsResponse,
    OperationUsageStatsResponse,
    SystemSettingsModel,
    SystemSettingsResponse,
    SystemSettingsUpdateRequest,
    TokenStatsResponse,
)

router = APIRouter(
    prefix="/admin",
    tags=["admin"],
)


@router.post("/accounts/{user_id}/grant", response_model=BalanceAdjustmentResponse)
@admin(require_superadmin=True)
async def grant_tokens(
    request: Request,
    user_id: UUID,
    body: BalanceAdjustmentRequest,
    current_user: CurrentUserDep,
    admin_service: AdminBillingServiceDep,
    alert_publisher: AlertPublisherDep,
    background_tasks: BackgroundTasks,
) -> BalanceAdjustmentResponse:
    result = await admin_service.grant_tokens(
        user_id, body.amount, body.reason, current_user, scope_id=body.scope_id
    )
    background_tasks.add_task(dispatch_alerts, alert_publisher, result.alert)
    return APIResponse.success(
        message_code=MessageCode.TOKENS_GRANTED,
        data=BalanceAdjustmentModel(
            transaction_id=result.transaction_id, new_balance=result.new_balance
        ),
    )


@router.post("/accounts/{user_id}/deduct", response_model=BalanceAdjustmentResponse)
@admin(require_superadmin=True)
async def deduct_tokens(
    request: Request,
    user_id: UUID,
    body: BalanceAdjustmentRequest,
    current_user: CurrentUserDep,
    admin_service: AdminBillingServiceDep,
    alert_publisher: AlertPublisherDep,
    background_tasks: BackgroundTasks,
) -> BalanceAdjustmentResponse:
    result = await admin_service.deduct_tokens(
        user_id, body.amount, body.reason, current_user, scope_id=body.scope_id
    )
    background_tasks.add_task(dispatch_alerts, alert_publisher, result.alert)
    return APIResponse.success(
        message_code=MessageCode.TOKENS_DEDUCTED,
        data=BalanceAdjustmentModel(
            transaction_id=result.transaction_id, new_balance=result.new_balance
        ),
    )


@router.patch("/accounts/{user_id}/status", response_model=AccountStatusResponse)
@admin(require_superadmin=True)
async def set_account_status(
    request: Request,
    user_id: UUID,
    body: AccountStatusRequest,
    current_user: CurrentUserDep,
    admin_service: AdminBillingServiceDep,
) -> AccountStatusResponse:
    account = await admin_service.set_account_status(
        user_id, body.status, body.reason, current_user, scope_id=body.scope_id
    )
    return APIResponse.success(
        message_code=MessageCode.ACCOUNT_UPDATED,
        data=AccountStatusModel(account_id=account.id, status=account.status),
    )


@router.get("/accounts/{user_id}/verify", response_model=LedgerVerificationResponse)
@admin()
async def verify_account_ledger(
    request: Request,
    user_id: UUID,
    account_service: AccountServiceDep,
    ledger_service: LedgerServiceDep,
    scope_id: str | None = None,
) -> LedgerVerificationResponse:
    """Replay the account's ledger and compare it with the cached balance."""
    account = await account_service.get_account(user_id, scope_id)
    verification = await ledger_service.verify_account(account.id)
    return APIResponse.success(
        message_code=MessageCode.LEDGER_VERIFIED,
        data=LedgerVerificationModel(
            account_id=verification.account_id,
            transaction_count=verification.transaction_count,
            replayed_balance=verification.replayed_balance,
            cached_balance=verification.cached_balance,
        ),
    )


@router.get("/stats", response_model=TokenStatsResponse)
@admin()
async def token_stats(
    request: Request,
    report_service: BillingReportServiceDep,
) -> TokenStatsResponse:
    stats = await report_service.get_token_stats()
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=stats)


@router.get("/stats/models", response_model=ModelUsageStatsResponse)
@admin()
async def model_usage_stats(
    request: Request,
    report_service: BillingReportServiceDep,
) -> ModelUsageStatsResponse:
    stats = await report_service.get_model_usage_stats()
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=stats)


@router.get("/stats/operations", response_model=OperationUsageStatsResponse)
@admin()
async def operation_stats(
    request: Request,
    report_service: BillingReportServiceDep,
) -> OperationUsageStatsResponse:
    stats = await report_service.get_operation_stats()
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=stats)


@router.get("/accounts", response_model=AdminAccountsResponse)
@admin()
async def list_accounts(
    request: Request,
    report_service: BillingReportServiceDep,
    limit: int = Query(default=100, ge=1, le=500),
    offset: int = Query(default=0, ge=0),
    status: AccountStatus | None = None,
) -> AdminAccountsResponse:
    accounts = await report_service.list_accounts(
        limit=limit, offset=offset, status=status
    )
    return APIResponse.success(message_code=MessageCode.SUCCESS, data=accounts)


@router.get("/users/search", response_model=AdminUserSearchResponse)
@admin()
async def search_users(
    request: Request,
    report_service: BillingReportServiceDep,
    q: str = Query(min_length=1, max_length=100),
    limit: int = Query(default=20, ge=1, le=100),
) -> AdminUserSearchResponse:
    users = await report_service.search_users(q, limit=limit)
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=[AdminUserSummary.model_validate(user) for user in users],
    )


@router.get("/settings", response_model=SystemSettingsResponse)
@admin()
async def get_settings(
    request: Request,
    settings_service: SystemSettingsServiceDep,
) -> SystemSettingsResponse:
    snapshot = await settings_service.get_snapshot()
    return APIResponse.success(
        message_code=MessageCode.SUCCESS,
        data=SystemSettingsModel(**snapshot.to_dict()),
    )


@router.patch("/settings", response_model=SystemSettingsResponse)
@admin(require_superadmin=True)
async def update_settings(
    request: Request,
    body: SystemSettingsUpdateRequest,
    current_user: CurrentUserDep,
    settings_service: SystemSettingsServiceDep,
) -> SystemSettingsResponse:
    """Partial update; applies to charges recorded after it commits."""
    snapshot = await settings_service.update_settings(
        body.model_dump(exclude_unset=True, exclude_none=True),
        updated_by=current_user.id,
    )
    return APIResponse.success(
        message_code=MessageCode.SETTINGS_UPDATED,
        data=SystemSettingsModel(**snapshot.to_dict()),
    )


@router.post("/packages", response_model=PricingPackageResponse)
@admin()
async def create_package(
    request: Request,
    body: PricingPackageCreateRequest,
    package_service: PricingPackageServiceDep,
) -> PricingPackageResponse:
    package = await package_service.create_package(**body.model_dump())
    return APIResponse.success(
        message_code=MessageCode.CREATED,
        data=PricingPackageModel.model_validate(package),
    )


@router.patch("/packages/{package_id}", response_model=PricingPackageResponse)
@admin()
async def update_package(
    request: Request,
    package_id: UUID,
    body: PricingPackageUpdateRequest,
    package_service: PricingPackageServiceDep,
) -> PricingPackageResponse:
    package = await package_service.update_package(
        package_id, **body.model_dump(exclude_unset=True)
    )
    return APIResponse.success(
        message_code=MessageCode.UPDATED,
        data=PricingPackageModel.model_validate(package),
    )


@router.post("/packages/seed")
@admin()
async def seed_packages(
    request: Request,
    package_service: PricingPackageServiceDep,
) -> APIResponse[dict]:
    created = await package_service.seed_default_packages()
    return APIResponse.success(
        message_code=MessageCode.CREATED, data={"created": created}
    )
