"""Alert and auto-recharge evaluation."""

from .evaluator import (
    AlertEvent,
    AlertState,
    evaluate_after_commit,
    evaluate_alerts,
)
from .publisher import AlertPublisher, RedisAlertPublisher, dispatch_alerts

__all__ = [
    "AlertEvent",
    "AlertPublisher",
    "AlertState",
    "RedisAlertPublisher",
    "dispatch_alerts",
    "evaluate_after_commit",
    "evaluate_alerts",
]
