"""Delivery of alert events to external collaborators."""

from typing import Protocol

import orjson
import redis.asyncio as redis

from src.modules.billing.alerts.evaluator import AlertEvent, AlertState
from src.utils.logger import get_logger
from src.utils.settings.billing import BillingSettings

logger = get_logger(__name__)


class AlertPublisher(Protocol):
    async def publish(self, event: AlertEvent) -> None: ...


class RedisAlertPublisher:
    """Publish alert events on a Redis pub/sub channel as JSON."""

    def __init__(self, redis_client: redis.Redis, channel: str | None = None):
        self.redis_client = redis_client
        self.channel = channel or BillingSettings().BILLING_ALERT_CHANNEL

    async def publish(self, event: AlertEvent) -> None:
        await self.redis_client.publish(self.channel, orjson.dumps(event.to_payload()))


async def dispatch_alerts(publisher: AlertPublisher | None, state: AlertState | None):
    """Publish every event of an evaluation.

    Runs after the balance change has committed, so delivery failures are
    logged and dropped.
    """
    if publisher is None or state is None:
        return

    for event in state.events:
        try:
            await publisher.publish(event)
        except Exception as e:
            logger.warning(
                "Failed to publish billing alert",
                event_type=event.event_type.value,
                account_id=str(event.account_id),
                error=str(e),
            )
        else:
            logger.info(
                "Billing alert published",
                event_type=event.event_type.value,
                account_id=str(event.account_id),
                balance=event.balance,
            )
