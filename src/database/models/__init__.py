"""Database models for the TokenMeter API."""

from .accounts import Account, AccountStatus
from .base import Base
from .pricing import PricingPackage
from .settings import GLOBAL_SETTINGS_KEY, SystemSettings
from .transactions import (
    CREDIT_TYPES,
    DEBIT_TYPES,
    Transaction,
    TransactionType,
)
from .usage import ChargeStatus, ChargeType, OperationType, Provider, UsageEvent
from .users import ADMIN_ROLES, User, UserRole

__all__ = [
    # Base
    "Base",
    # Enums
    "AccountStatus",
    "ChargeStatus",
    "ChargeType",
    "OperationType",
    "Provider",
    "TransactionType",
    "UserRole",
    # Constants
    "ADMIN_ROLES",
    "CREDIT_TYPES",
    "DEBIT_TYPES",
    "GLOBAL_SETTINGS_KEY",
    # Models
    "Account",
    "PricingPackage",
    "SystemSettings",
    "Transaction",
    "UsageEvent",
    "User",
]
