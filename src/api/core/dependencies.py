from typing import Annotated, AsyncGenerator

from fastapi import Depends, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode
from src.database.models import User
from src.modules.billing.accounts import AccountService
from src.modules.billing.admin import AdminBillingService, BillingReportService
from src.modules.billing.alerts import AlertPublisher
from src.modules.billing.ledger import LedgerService
from src.modules.billing.metering import MeteringService
from src.modules.billing.packages import PricingPackageService
from src.modules.billing.settings import SystemSettingsService
from src.modules.billing.stripe import StripeWebhookService


async def get_db_session(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Get database session from app state."""
    session_factory = request.app.state.session_factory
    async with session_factory() as session:
        yield session


async def get_metering_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> MeteringService:
    return MeteringService(db)


async def get_account_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> AccountService:
    return AccountService(db)


async def get_ledger_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> LedgerService:
    return LedgerService(db)


async def get_admin_billing_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> AdminBillingService:
    return AdminBillingService(db)


async def get_billing_report_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> BillingReportService:
    return BillingReportService(db)


async def get_system_settings_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> SystemSettingsService:
    return SystemSettingsService(db)


async def get_pricing_package_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> PricingPackageService:
    return PricingPackageService(db)


async def get_stripe_webhook_service(
    db: Annotated[AsyncSession, Depends(get_db_session)],
) -> StripeWebhookService:
    return StripeWebhookService(db)


async def get_alert_publisher(request: Request) -> AlertPublisher | None:
    return getattr(request.app.state, "alert_publisher", None)


async def get_current_user(request: Request) -> User:
    """Dependency to get the user resolved by the auth middleware."""
    user = getattr(request.state, "user", None)
    if not user:
        raise TokenMeterException(
            MessageCode.AUTH_REQUIRED, status.HTTP_401_UNAUTHORIZED
        )
    return user


AsyncSessionDep = Annotated[AsyncSession, Depends(get_db_session)]
MeteringServiceDep = Annotated[MeteringService, Depends(get_metering_service)]
AccountServiceDep = Annotated[AccountService, Depends(get_account_service)]
LedgerServiceDep = Annotated[LedgerService, Depends(get_ledger_service)]
AdminBillingServiceDep = Annotated[
    AdminBillingService, Depends(get_admin_billing_service)
]
BillingReportServiceDep = Annotated[
    BillingReportService, Depends(get_billing_report_service)
]
SystemSettingsServiceDep = Annotated[
    SystemSettingsService, Depends(get_system_settings_service)
]
PricingPackageServiceDep = Annotated[
    PricingPackageService, Depends(get_pricing_package_service)
]
StripeWebhookServiceDep = Annotated[
    StripeWebhookService, Depends(get_stripe_webhook_service)
]
AlertPublisherDep = Annotated[AlertPublisher | None, Depends(get_alert_publisher)]

CurrentUserDep = Annotated[User, Depends(get_current_user)]
