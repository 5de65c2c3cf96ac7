"""Token account store."""

from .service import AccountService, BalanceCheck, can_transition, default_scope

__all__ = ["AccountService", "BalanceCheck", "can_transition", "default_scope"]
