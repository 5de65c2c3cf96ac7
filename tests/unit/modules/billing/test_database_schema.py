"""Database schema tests for token-carrying columns."""

import pytest
from sqlalchemy import BigInteger

from src.database.models import (
    Account,
    ChargeStatus,
    OperationType,
    Provider,
    Transaction,
    UsageEvent,
)
from src.modules.billing.metering import MeteringService
from src.modules.billing.pricing import RawUsage

TOKEN_COLUMNS = {
    Account: (
        "balance",
        "lifetime_purchased",
        "lifetime_used",
        "lifetime_actual",
        "lifetime_spent_minor_units",
        "auto_recharge_threshold",
        "auto_recharge_amount",
    ),
    Transaction: ("amount", "balance_before", "balance_after", "amount_minor_units"),
    UsageEvent: (
        "input_tokens",
        "output_tokens",
        "total_tokens",
        "billable_tokens",
        "attempted_billable_tokens",
        "balance_after",
    ),
}


@pytest.mark.parametrize(
    "model, column",
    [(model, column) for model, columns in TOKEN_COLUMNS.items() for column in columns],
)
def test_token_columns_are_64_bit(model, column):
    assert isinstance(model.__table__.c[column].type, BigInteger)


@pytest.mark.asyncio
async def test_charge_beyond_32_bit_range_is_stored(
    db_session, create_account, flat_pricing
):
    account = await create_account(balance=5_000_000_000)

    result = await MeteringService(db_session).record_usage(
        user_id=account.user_id,
        operation_type=OperationType.CHAT_RESPONSE,
        provider=Provider.OPENAI,
        model="gpt-4o",
        usage=RawUsage(total_tokens=3_000_000_000),
        success=True,
        idempotency_key="large-report",
    )

    assert result.status == ChargeStatus.CHARGED
    assert result.new_balance == 2_000_000_000
    await db_session.refresh(account)
    assert account.lifetime_actual == 3_000_000_000
    assert account.lifetime_used == 3_000_000_000
