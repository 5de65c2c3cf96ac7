"""Purchase crediting tests."""

from uuid import uuid4

import pytest

from src.database.models import AccountStatus, Transaction, TransactionType
from src.modules.billing.exceptions import InvalidAmountException
from src.modules.billing.ledger import LedgerService
from src.modules.billing.purchases import PurchaseService


@pytest.fixture
def purchases(db_session) -> PurchaseService:
    return PurchaseService(db_session)


@pytest.mark.asyncio
async def test_purchase_credits_package_tokens(
    db_session, purchases, create_account, test_package
):
    account = await create_account(balance=100)

    result = await purchases.purchase_completed(
        account.user_id,
        test_package.id,
        payment_reference="pi_123",
        payment_customer_ref="cus_1",
    )

    assert result.new_balance == 100 + test_package.token_amount
    transaction = await db_session.get(Transaction, result.transaction_id)
    assert transaction.transaction_type == TransactionType.PURCHASE
    assert transaction.amount_minor_units == test_package.price_minor_units

    await db_session.refresh(account)
    assert account.lifetime_purchased == test_package.token_amount
    assert account.lifetime_spent_minor_units == test_package.price_minor_units
    assert account.payment_customer_ref == "cus_1"
    assert account.last_purchase_at is not None


@pytest.mark.asyncio
async def test_same_payment_reference_credits_once(
    purchases, create_account, test_package
):
    account = await create_account(balance=0)

    first = await purchases.purchase_completed(
        account.user_id, test_package.id, payment_reference="pi_dup"
    )
    second = await purchases.purchase_completed(
        account.user_id, test_package.id, payment_reference="pi_dup"
    )

    assert second.already_processed
    assert second.transaction_id == first.transaction_id
    assert second.new_balance == first.new_balance


@pytest.mark.asyncio
async def test_purchase_reactivates_suspended_account(
    db_session, purchases, create_account, test_package
):
    account = await create_account(status=AccountStatus.SUSPENDED)

    await purchases.purchase_completed(
        account.user_id, test_package.id, payment_reference="pi_reactivate"
    )

    await db_session.refresh(account)
    assert account.status == AccountStatus.ACTIVE


@pytest.mark.asyncio
async def test_purchase_keeps_blocked_account_blocked(
    db_session, purchases, create_account, test_package
):
    account = await create_account(status=AccountStatus.BLOCKED)

    await purchases.purchase_completed(
        account.user_id, test_package.id, payment_reference="pi_blocked"
    )

    await db_session.refresh(account)
    assert account.status == AccountStatus.BLOCKED
    assert account.balance == test_package.token_amount


@pytest.mark.asyncio
async def test_auto_recharge_credit(db_session, purchases, create_account):
    account = await create_account(balance=50)

    result = await purchases.auto_recharge_completed(
        account.user_id, 10_000, 1_000, payment_reference="pi_auto"
    )

    assert result.new_balance == 10_050
    verification = await LedgerService(db_session).verify_account(account.id)
    assert verification.cached_balance == 10_050


@pytest.mark.asyncio
async def test_auto_recharge_rejects_non_positive_tokens(purchases):
    with pytest.raises(InvalidAmountException):
        await purchases.auto_recharge_completed(uuid4(), 0, 100, "pi_zero")


@pytest.mark.asyncio
async def test_payment_failure_suspends_active_account(
    purchases, create_account
):
    account = await create_account(balance=10)

    updated = await purchases.payment_failed(account.user_id)

    assert updated.status == AccountStatus.SUSPENDED


@pytest.mark.asyncio
async def test_payment_failure_for_unknown_user(purchases):
    assert await purchases.payment_failed(uuid4()) is None
