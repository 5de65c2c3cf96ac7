"""Translate raw AI usage into billable tokens.

Everything here is pure: the caller passes the settings snapshot it loaded
for the charge, so one charge is always priced against one configuration.
"""

import math
from dataclasses import dataclass
from decimal import Decimal

from src.database.models import ChargeType, OperationType, Provider
from src.modules.billing.constants import (
    DEFAULT_IMAGE_COST_KEY,
    DEFAULT_IMAGE_COSTS,
    MAX_TOKEN_AMOUNT,
)
from src.modules.billing.exceptions import InvalidAmountException
from src.modules.billing.settings.snapshot import SettingsSnapshot

FIXED_COST_OPERATIONS = frozenset({OperationType.IMAGE_GENERATION})


@dataclass(frozen=True)
class RawUsage:
    """Usage as reported by the inference collaborator."""

    input_tokens: int | None = None
    output_tokens: int | None = None
    total_tokens: int | None = None
    image_count: int | None = None
    image_size: str | None = None

    @property
    def total_raw_tokens(self) -> int:
        if self.total_tokens is not None:
            return self.total_tokens
        return (self.input_tokens or 0) + (self.output_tokens or 0)


@dataclass(frozen=True)
class PriceQuote:
    billable_tokens: int
    charge_type: ChargeType
    # Multiplier for LLM operations, per-image cost for fixed-cost operations
    pricing_value: float
    actual_tokens: int


def is_fixed_cost(operation_type: OperationType) -> bool:
    return operation_type in FIXED_COST_OPERATIONS


def image_cost_for(
    provider: Provider,
    model: str,
    settings: SettingsSnapshot,
    image_size: str | None = None,
) -> int:
    """Look up the per-image cost for a provider/model/size.

    The most specific key wins: the exact size, then the model at any size,
    then the provider wildcard, then the dall-e-3 cost.
    """
    provider_value = Provider(provider).value
    costs = settings.image_costs
    candidates = [f"{provider_value}/{model}", f"{provider_value}/*"]
    if image_size:
        size = image_size.strip().lower()
        candidates.insert(0, f"{provider_value}/{model}/{size}")
    for key in candidates:
        if key in costs:
            return int(costs[key])
    fallback = DEFAULT_IMAGE_COSTS[DEFAULT_IMAGE_COST_KEY]
    return int(costs.get(DEFAULT_IMAGE_COST_KEY, fallback))


def _validate_usage(usage: RawUsage) -> None:
    for field_name in ("input_tokens", "output_tokens", "total_tokens"):
        value = getattr(usage, field_name)
        if value is not None and not 0 <= value <= MAX_TOKEN_AMOUNT:
            raise InvalidAmountException(value, field=field_name)
    if usage.image_count is not None and usage.image_count < 1:
        raise InvalidAmountException(usage.image_count, field="image_count")


def resolve_price(
    operation_type: OperationType,
    provider: Provider,
    model: str,
    usage: RawUsage,
    settings: SettingsSnapshot,
) -> PriceQuote:
    """Price one operation against a settings snapshot."""
    _validate_usage(usage)

    if is_fixed_cost(OperationType(operation_type)):
        unit_cost = image_cost_for(provider, model, settings, usage.image_size)
        image_count = usage.image_count or 1
        return PriceQuote(
            billable_tokens=unit_cost * image_count,
            charge_type=ChargeType.FIXED,
            pricing_value=float(unit_cost),
            actual_tokens=0,
        )

    total_raw = usage.total_raw_tokens
    # Float products such as 100 * 1.1 would ceil to 111
    multiplier = Decimal(str(settings.default_multiplier))
    billable = math.ceil(Decimal(total_raw) * multiplier)
    return PriceQuote(
        billable_tokens=int(billable),
        charge_type=ChargeType.MULTIPLIER,
        pricing_value=settings.default_multiplier,
        actual_tokens=total_raw,
    )
