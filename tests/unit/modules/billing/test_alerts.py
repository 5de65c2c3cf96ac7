"""Alert evaluation and delivery tests."""

from uuid import uuid4

import orjson
import pytest

from src.database.models import Account, AccountStatus
from src.modules.billing.alerts import (
    RedisAlertPublisher,
    dispatch_alerts,
    evaluate_alerts,
)
from src.modules.billing.constants import AlertEventType
from src.modules.billing.settings import SettingsSnapshot
from tests.utils.fakes import FailingAlertPublisher, FakeRedis, RecordingAlertPublisher

SETTINGS = SettingsSnapshot(low_balance_threshold=1000, critical_balance_threshold=100)


def _account(balance: int, **fields) -> Account:
    defaults = {
        "id": uuid4(),
        "user_id": uuid4(),
        "scope_id": "default",
        "balance": balance,
        "status": AccountStatus.ACTIVE,
        "auto_recharge_enabled": False,
    }
    defaults.update(fields)
    return Account(**defaults)


@pytest.mark.parametrize(
    "balance, low, critical, expected",
    [
        (5000, False, False, []),
        (999, True, False, [AlertEventType.BALANCE_LOW]),
        (1000, False, False, []),
        (99, True, True, [AlertEventType.BALANCE_CRITICAL]),
        (0, True, True, [AlertEventType.BALANCE_CRITICAL]),
    ],
)
def test_threshold_evaluation(balance, low, critical, expected):
    state = evaluate_alerts(_account(balance), SETTINGS)

    assert state.is_low is low
    assert state.is_critical is critical
    assert [event.event_type for event in state.events] == expected


def test_auto_recharge_requested_below_threshold():
    account = _account(
        400,
        auto_recharge_enabled=True,
        auto_recharge_threshold=500,
        auto_recharge_amount=10_000,
    )

    state = evaluate_alerts(account, SETTINGS)

    assert state.auto_recharge_requested
    recharge = state.events[-1]
    assert recharge.event_type == AlertEventType.AUTO_RECHARGE_REQUESTED
    assert recharge.auto_recharge_amount == 10_000
    assert recharge.threshold == 500


def test_auto_recharge_not_requested_for_suspended_account():
    account = _account(
        400,
        status=AccountStatus.SUSPENDED,
        auto_recharge_enabled=True,
        auto_recharge_threshold=500,
        auto_recharge_amount=10_000,
    )

    assert not evaluate_alerts(account, SETTINGS).auto_recharge_requested


def test_auto_recharge_disabled():
    account = _account(400, auto_recharge_threshold=500, auto_recharge_amount=10_000)

    assert not evaluate_alerts(account, SETTINGS).auto_recharge_requested


@pytest.mark.asyncio
async def test_dispatch_publishes_every_event():
    publisher = RecordingAlertPublisher()
    account = _account(
        50,
        auto_recharge_enabled=True,
        auto_recharge_threshold=500,
        auto_recharge_amount=10_000,
    )

    await dispatch_alerts(publisher, evaluate_alerts(account, SETTINGS))

    assert publisher.event_types() == [
        AlertEventType.BALANCE_CRITICAL.value,
        AlertEventType.AUTO_RECHARGE_REQUESTED.value,
    ]


@pytest.mark.asyncio
async def test_dispatch_swallows_publisher_failures():
    publisher = FailingAlertPublisher()
    state = evaluate_alerts(_account(10), SETTINGS)

    await dispatch_alerts(publisher, state)

    assert publisher.attempts == 1


@pytest.mark.asyncio
async def test_dispatch_without_state_is_noop():
    publisher = RecordingAlertPublisher()

    await dispatch_alerts(publisher, None)

    assert publisher.events == []


@pytest.mark.asyncio
async def test_redis_publisher_sends_json_payload():
    redis_client = FakeRedis()
    publisher = RedisAlertPublisher(redis_client, channel="alerts-test")
    account = _account(10)
    event = evaluate_alerts(account, SETTINGS).events[0]

    await publisher.publish(event)

    channel, message = redis_client.published[0]
    payload = orjson.loads(message)
    assert channel == "alerts-test"
    assert payload["event_type"] == "balance.critical"
    assert payload["account_id"] == str(account.id)
    assert payload["balance"] == 10
