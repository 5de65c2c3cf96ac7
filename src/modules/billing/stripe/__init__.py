"""Stripe webhook handling."""

from .service import StripeWebhookService

__all__ = ["StripeWebhookService"]
