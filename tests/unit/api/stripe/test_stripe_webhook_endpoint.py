"""Stripe webhook endpoint tests with locally signed payloads."""

import pytest
from httpx import AsyncClient

from src.api.core.messages import MessageCode
from src.database.models import AccountStatus
from tests.unit.modules.billing.fixtures_stripe_webhooks import (
    checkout_session_completed,
    encode_event,
    payment_intent_failed,
    sign_payload,
)
from tests.utils.assertions import assert_error_response


async def _post_event(client: AsyncClient, event: dict, signature: str | None = None):
    payload = encode_event(event)
    headers = {"Content-Type": "application/json"}
    headers["stripe-signature"] = signature or sign_payload(payload)
    return await client.post("/stripe/webhook", content=payload, headers=headers)


@pytest.mark.asyncio
async def test_checkout_completed_credits_purchase(
    public_client: AsyncClient, create_account, test_package, db_session
):
    account = await create_account(balance=0)

    response = await _post_event(
        public_client, checkout_session_completed(account.user_id, test_package.id)
    )

    assert response.status_code == 200
    assert response.json() == {"status": "success"}
    await db_session.refresh(account)
    assert account.balance == 150_000
    assert account.lifetime_purchased == 150_000


@pytest.mark.asyncio
async def test_redelivered_checkout_is_credited_once(
    public_client: AsyncClient, create_account, test_package, db_session
):
    account = await create_account(balance=0)
    event = checkout_session_completed(account.user_id, test_package.id)

    await _post_event(public_client, event)
    response = await _post_event(public_client, event)

    assert response.status_code == 200
    await db_session.refresh(account)
    assert account.balance == 150_000


@pytest.mark.asyncio
async def test_failed_auto_recharge_suspends_account(
    public_client: AsyncClient, create_account, db_session
):
    account = await create_account(balance=10, auto_recharge_enabled=True)

    response = await _post_event(public_client, payment_intent_failed(account.user_id))

    assert response.status_code == 200
    await db_session.refresh(account)
    assert account.status == AccountStatus.SUSPENDED


@pytest.mark.asyncio
async def test_unhandled_event_is_ignored(public_client: AsyncClient):
    event = {
        "id": "evt_customer",
        "object": "event",
        "type": "customer.created",
        "data": {"object": {"id": "cus_1", "object": "customer"}},
    }

    response = await _post_event(public_client, event)

    assert response.status_code == 200
    assert response.json() == {"status": "ignored"}


@pytest.mark.asyncio
async def test_bad_signature_is_rejected(
    public_client: AsyncClient, create_account, test_package
):
    account = await create_account(balance=0)
    event = checkout_session_completed(account.user_id, test_package.id)
    forged = sign_payload(encode_event(event), secret="whsec_someone_else")

    response = await _post_event(public_client, event, signature=forged)

    assert_error_response(response, MessageCode.WEBHOOK_SIGNATURE_INVALID, 400)


@pytest.mark.asyncio
async def test_missing_signature_header(public_client: AsyncClient):
    response = await public_client.post("/stripe/webhook", content=b'{"id": "evt"}')

    body = assert_error_response(response, MessageCode.BAD_REQUEST, 400)
    assert body["details"]["description"] == "Missing stripe-signature header"
