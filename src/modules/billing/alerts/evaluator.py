"""Low-balance and auto-recharge evaluation.

Pure functions over an account snapshot; nothing here touches the database
or the payment processor.
"""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from uuid import UUID

from src.database.models import Account, AccountStatus
from src.modules.billing.constants import AlertEventType
from src.modules.billing.settings.snapshot import SettingsSnapshot
from src.utils.logger import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class AlertEvent:
    event_type: AlertEventType
    account_id: UUID
    user_id: UUID
    scope_id: str
    balance: int
    threshold: int
    auto_recharge_amount: int | None = None
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def to_payload(self) -> dict:
        return {
            "event_type": self.event_type.value,
            "account_id": str(self.account_id),
            "user_id": str(self.user_id),
            "scope_id": self.scope_id,
            "balance": self.balance,
            "threshold": self.threshold,
            "auto_recharge_amount": self.auto_recharge_amount,
            "created_at": self.created_at.isoformat(),
        }


@dataclass(frozen=True)
class AlertState:
    balance: int
    is_low: bool
    is_critical: bool
    auto_recharge_requested: bool
    events: tuple[AlertEvent, ...] = ()


def evaluate_alerts(account: Account, settings: SettingsSnapshot) -> AlertState:
    """Evaluate thresholds for an account right after a balance change."""
    balance = account.balance
    is_critical = balance < settings.critical_balance_threshold
    is_low = balance < settings.low_balance_threshold
    events: list[AlertEvent] = []

    common = {
        "account_id": account.id,
        "user_id": account.user_id,
        "scope_id": account.scope_id,
        "balance": balance,
    }
    if is_critical:
        events.append(
            AlertEvent(
                event_type=AlertEventType.BALANCE_CRITICAL,
                threshold=settings.critical_balance_threshold,
                **common,
            )
        )
    elif is_low:
        events.append(
            AlertEvent(
                event_type=AlertEventType.BALANCE_LOW,
                threshold=settings.low_balance_threshold,
                **common,
            )
        )

    auto_recharge_requested = (
        account.status == AccountStatus.ACTIVE
        and bool(account.auto_recharge_enabled)
        and account.auto_recharge_threshold is not None
        and bool(account.auto_recharge_amount)
        and balance < account.auto_recharge_threshold
    )
    if auto_recharge_requested:
        events.append(
            AlertEvent(
                event_type=AlertEventType.AUTO_RECHARGE_REQUESTED,
                threshold=account.auto_recharge_threshold,
                auto_recharge_amount=account.auto_recharge_amount,
                **common,
            )
        )

    return AlertState(
        balance=balance,
        is_low=is_low,
        is_critical=is_critical,
        auto_recharge_requested=auto_recharge_requested,
        events=tuple(events),
    )


def evaluate_after_commit(
    account: Account, settings: SettingsSnapshot
) -> AlertState | None:
    """Evaluate alerts for a committed balance change.

    The change is already durable, so an evaluation error is logged and the
    caller carries on without alerts.
    """
    try:
        return evaluate_alerts(account, settings)
    except Exception as e:
        logger.warning(
            "Alert evaluation failed",
            account_id=str(account.id),
            error=str(e),
        )
        return None
