"""Admin balance adjustments and account status control."""

from uuid import uuid4

import pytest
from sqlalchemy import select

from src.api.core.messages import MessageCode
from src.database.models import AccountStatus, Transaction, TransactionType
from src.modules.billing.admin import AdminBillingService
from src.modules.billing.exceptions import (
    AccountNotFoundException,
    AdjustmentReasonRequiredException,
    InsufficientBalanceException,
    InvalidAmountException,
    InvalidStatusTransitionException,
    UnauthorizedBillingActionException,
)
from tests.utils.assertions import assert_tokenmeter_exception


@pytest.fixture
def admin_service(db_session) -> AdminBillingService:
    return AdminBillingService(db_session)


@pytest.mark.asyncio
async def test_grant_accumulates_and_is_audited(
    db_session, admin_service, create_account, test_superadmin_user
):
    account = await create_account(balance=500)

    result = await admin_service.grant_tokens(
        account.user_id, 2000, "  goodwill credit ", test_superadmin_user
    )

    assert result.new_balance == 2500
    transaction = await db_session.get(Transaction, result.transaction_id)
    assert transaction.transaction_type == TransactionType.ADMIN_GRANT
    assert transaction.admin_user_id == test_superadmin_user.id
    assert transaction.description == "goodwill credit"


@pytest.mark.asyncio
async def test_grant_creates_missing_account(
    admin_service, flat_pricing, test_superadmin_user
):
    user_id = uuid4()

    result = await admin_service.grant_tokens(
        user_id, 700, "onboarding", test_superadmin_user
    )

    assert result.new_balance == 700


@pytest.mark.asyncio
async def test_deduct_to_exactly_zero(
    admin_service, create_account, test_superadmin_user
):
    account = await create_account(balance=300)

    result = await admin_service.deduct_tokens(
        account.user_id, 300, "chargeback", test_superadmin_user
    )

    assert result.new_balance == 0
    assert result.alert is not None
    assert result.alert.is_critical


@pytest.mark.asyncio
async def test_deduct_beyond_balance_is_rejected(
    db_session, admin_service, create_account, test_superadmin_user
):
    account = await create_account(balance=300)

    with pytest.raises(InsufficientBalanceException) as exc_info:
        await admin_service.deduct_tokens(
            account.user_id, 301, "chargeback", test_superadmin_user
        )

    assert_tokenmeter_exception(exc_info.value, MessageCode.INSUFFICIENT_BALANCE, 402)
    await db_session.refresh(account)
    assert account.balance == 300


@pytest.mark.asyncio
async def test_deduct_from_unknown_account_raises(admin_service, test_superadmin_user):
    with pytest.raises(AccountNotFoundException):
        await admin_service.deduct_tokens(uuid4(), 10, "cleanup", test_superadmin_user)


@pytest.mark.asyncio
async def test_plain_admin_cannot_adjust(
    db_session, admin_service, create_account, test_admin_user
):
    account = await create_account(balance=100)

    with pytest.raises(UnauthorizedBillingActionException):
        await admin_service.grant_tokens(
            account.user_id, 100, "not allowed", test_admin_user
        )

    ledger_rows = (
        await db_session.execute(
            select(Transaction).where(Transaction.account_id == account.id)
        )
    ).scalars().all()
    assert len(ledger_rows) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize("reason", ["", "   ", None])
async def test_reason_is_required(
    admin_service, create_account, test_superadmin_user, reason
):
    account = await create_account(balance=100)

    with pytest.raises(AdjustmentReasonRequiredException):
        await admin_service.grant_tokens(
            account.user_id, 100, reason, test_superadmin_user
        )


@pytest.mark.asyncio
@pytest.mark.parametrize("amount", [0, -5, 1.5, True])
async def test_amount_must_be_positive_integer(
    admin_service, create_account, test_superadmin_user, amount
):
    account = await create_account(balance=100)

    with pytest.raises(InvalidAmountException):
        await admin_service.grant_tokens(
            account.user_id, amount, "bad amount", test_superadmin_user
        )


@pytest.mark.asyncio
async def test_superadmin_blocks_and_reactivates(
    admin_service, create_account, test_superadmin_user
):
    account = await create_account(balance=100)

    blocked = await admin_service.set_account_status(
        account.user_id, AccountStatus.BLOCKED, "fraud review", test_superadmin_user
    )
    assert blocked.status == AccountStatus.BLOCKED

    reactivated = await admin_service.set_account_status(
        account.user_id, AccountStatus.ACTIVE, "cleared", test_superadmin_user
    )
    assert reactivated.status == AccountStatus.ACTIVE


@pytest.mark.asyncio
async def test_blocked_account_cannot_be_suspended(
    admin_service, create_account, test_superadmin_user
):
    account = await create_account(status=AccountStatus.BLOCKED)

    with pytest.raises(InvalidStatusTransitionException) as exc_info:
        await admin_service.set_account_status(
            account.user_id, AccountStatus.SUSPENDED, "retry", test_superadmin_user
        )

    assert exc_info.value.details["current"] == "blocked"
