"""Immutable view of the global billing configuration."""

from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Mapping

from src.database.models import SystemSettings
from src.modules.billing.constants import (
    DEFAULT_CRITICAL_BALANCE_THRESHOLD,
    DEFAULT_IMAGE_COSTS,
    DEFAULT_LOW_BALANCE_THRESHOLD,
    DEFAULT_MIN_PURCHASE_MINOR_UNITS,
    DEFAULT_MULTIPLIER,
    DEFAULT_NEW_ACCOUNT_BONUS,
    DEFAULT_TOKENS_PER_USD,
)


@dataclass(frozen=True)
class SettingsSnapshot:
    """Settings captured once per charge and passed down explicitly."""

    default_multiplier: float = DEFAULT_MULTIPLIER
    image_costs: Mapping[str, int] = field(
        default_factory=lambda: MappingProxyType(dict(DEFAULT_IMAGE_COSTS))
    )
    tokens_per_usd: int = DEFAULT_TOKENS_PER_USD
    min_purchase_minor_units: int = DEFAULT_MIN_PURCHASE_MINOR_UNITS
    new_account_bonus: int = DEFAULT_NEW_ACCOUNT_BONUS
    low_balance_threshold: int = DEFAULT_LOW_BALANCE_THRESHOLD
    critical_balance_threshold: int = DEFAULT_CRITICAL_BALANCE_THRESHOLD

    @classmethod
    def from_model(cls, settings: SystemSettings) -> "SettingsSnapshot":
        return cls(
            default_multiplier=settings.default_multiplier,
            image_costs=MappingProxyType(dict(settings.image_costs or {})),
            tokens_per_usd=settings.tokens_per_usd,
            min_purchase_minor_units=settings.min_purchase_minor_units,
            new_account_bonus=settings.new_account_bonus,
            low_balance_threshold=settings.low_balance_threshold,
            critical_balance_threshold=settings.critical_balance_threshold,
        )

    def to_dict(self) -> dict:
        return {
            "default_multiplier": self.default_multiplier,
            "image_costs": dict(self.image_costs),
            "tokens_per_usd": self.tokens_per_usd,
            "min_purchase_minor_units": self.min_purchase_minor_units,
            "new_account_bonus": self.new_account_bonus,
            "low_balance_threshold": self.low_balance_threshold,
            "critical_balance_threshold": self.critical_balance_threshold,
        }
