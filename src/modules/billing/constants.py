"""Billing defaults, package catalogue seeds and event names."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class AlertEventType(str, Enum):
    """Events emitted after a balance change."""

    BALANCE_LOW = "balance.low"
    BALANCE_CRITICAL = "balance.critical"
    AUTO_RECHARGE_REQUESTED = "auto_recharge.requested"


# Fixed-cost keys are "provider/model/size", "provider/model" for any size,
# or "provider/*" for any model of that provider
DEFAULT_IMAGE_COST_KEY = "openai/dall-e-3"
DEFAULT_IMAGE_COSTS: dict[str, int] = {
    "openai/dall-e-3": 6000,
    "openai/dall-e-3/1024x1792": 8000,
    "openai/dall-e-3/1792x1024": 8000,
    "openai/dall-e-2": 3000,
    "openai/dall-e-2/512x512": 2000,
    "google/*": 4500,
}

DEFAULT_MULTIPLIER = 1.5
DEFAULT_TOKENS_PER_USD = 10_000
DEFAULT_MIN_PURCHASE_MINOR_UNITS = 500
DEFAULT_NEW_ACCOUNT_BONUS = 10_000
DEFAULT_LOW_BALANCE_THRESHOLD = 1_000
DEFAULT_CRITICAL_BALANCE_THRESHOLD = 100

# Upper bound for one reported token count or balance adjustment
MAX_TOKEN_AMOUNT = 1_000_000_000_000

# Stripe metadata flag set on off-session auto-recharge payment intents
AUTO_RECHARGE_METADATA_FLAG = "auto_recharge"


@dataclass(frozen=True)
class PackageSeed:
    """Default purchasable package."""

    name: str
    token_amount: int
    price_minor_units: int
    sort_order: int
    is_popular: bool = False


DEFAULT_PACKAGES: tuple[PackageSeed, ...] = (
    PackageSeed("Starter", 150_000, 1_500, sort_order=1),
    PackageSeed("Pro", 750_000, 6_500, sort_order=2, is_popular=True),
    PackageSeed("Business", 2_250_000, 17_500, sort_order=3),
    PackageSeed("Enterprise", 7_500_000, 50_000, sort_order=4),
)
