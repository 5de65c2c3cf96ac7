"""Purchase crediting."""

from .service import PurchaseResult, PurchaseService

__all__ = ["PurchaseResult", "PurchaseService"]
