"""Transaction ledger."""

from .service import LedgerService, LedgerVerification

__all__ = ["LedgerService", "LedgerVerification"]
