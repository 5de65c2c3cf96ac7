"""Account endpoint tests for signed-in users."""

from uuid import uuid4

import pytest
from httpx import AsyncClient
from jose import jwt

from src.api.core.messages import MessageCode
from src.database.models import OperationType, Provider
from src.modules.billing.metering import MeteringService
from src.modules.billing.pricing import RawUsage
from tests.utils.assertions import (
    ResponseHelper,
    assert_authentication_error,
    assert_error_response,
    assert_success_response,
)


@pytest.mark.asyncio
async def test_get_account_creates_with_welcome_bonus(
    authorized_client: AsyncClient, test_user
):
    response = await authorized_client.get("/v1/account")

    assert_success_response(
        response,
        data_assertions={
            "user_id": str(test_user.id),
            "scope_id": "default",
            "balance": 10_000,
            "status": "active",
        },
    )


@pytest.mark.asyncio
async def test_transactions_list_ledger_rows(authorized_client: AsyncClient):
    await authorized_client.get("/v1/account")

    response = await authorized_client.get("/v1/account/transactions")

    items = ResponseHelper.assert_paginated_response(response, expected_total=1)
    assert items[0]["transaction_type"] == "bonus"
    assert items[0]["amount"] == 10_000


@pytest.mark.asyncio
async def test_transactions_without_account_are_empty(authorized_client: AsyncClient):
    response = await authorized_client.get("/v1/account/transactions")

    assert ResponseHelper.assert_paginated_response(response, expected_total=0) == []


@pytest.mark.asyncio
async def test_usage_history(
    authorized_client: AsyncClient, db_session, create_account, test_user, flat_pricing
):
    await create_account(user_id=test_user.id, balance=1000)
    for tokens in (10, 20, 30):
        await MeteringService(db_session).record_usage(
            user_id=test_user.id,
            operation_type=OperationType.CHAT_RESPONSE,
            provider=Provider.ANTHROPIC,
            model="claude-haiku",
            usage=RawUsage(total_tokens=tokens),
            success=True,
            idempotency_key=f"history-{uuid4()}",
        )

    response = await authorized_client.get(
        "/v1/account/usage", params={"limit": 2}
    )

    items = ResponseHelper.assert_paginated_response(
        response, expected_total=3, expected_limit=2
    )
    assert len(items) == 2
    assert response.json()["data"]["pagination"]["has_more"] is True


@pytest.mark.asyncio
async def test_enable_auto_recharge(authorized_client: AsyncClient):
    response = await authorized_client.patch(
        "/v1/account/auto-recharge",
        json={"enabled": True, "threshold": 2000, "amount": 50_000},
    )

    assert_success_response(
        response,
        MessageCode.ACCOUNT_UPDATED,
        data_assertions={
            "auto_recharge_enabled": True,
            "auto_recharge_threshold": 2000,
            "auto_recharge_amount": 50_000,
        },
    )


@pytest.mark.asyncio
async def test_enable_auto_recharge_without_threshold(authorized_client: AsyncClient):
    response = await authorized_client.patch(
        "/v1/account/auto-recharge", json={"enabled": True, "amount": 50_000}
    )

    assert_error_response(response, MessageCode.INVALID_AMOUNT, 400)


@pytest.mark.asyncio
async def test_account_requires_authentication(public_client: AsyncClient):
    response = await public_client.get("/v1/account")

    assert_authentication_error(response)


@pytest.mark.asyncio
async def test_account_rejects_forged_token(public_client: AsyncClient):
    token = jwt.encode(
        {"sub": str(uuid4()), "email": "x@example.com", "aud": "authenticated"},
        "not-the-secret",
        algorithm="HS256",
    )

    response = await public_client.get(
        "/v1/account", headers={"Authorization": f"Bearer {token}"}
    )

    assert_error_response(response, MessageCode.INVALID_TOKEN, 401)
