"""Stripe webhook intake for token purchases and auto-recharge payments."""

from uuid import UUID

import stripe  # type: ignore

from src.core.base import BaseService
from src.modules.billing.constants import AUTO_RECHARGE_METADATA_FLAG
from src.modules.billing.exceptions import WebhookSignatureException
from src.modules.billing.purchases.service import PurchaseResult, PurchaseService
from src.utils.settings.stripe import StripeSettings


def _parse_uuid(value) -> UUID | None:
    try:
        return UUID(str(value))
    except (ValueError, TypeError):
        return None


def _is_auto_recharge(metadata: dict) -> bool:
    return str(metadata.get(AUTO_RECHARGE_METADATA_FLAG, "")).lower() == "true"


class StripeWebhookService(BaseService):
    """Translate verified Stripe events into purchase-path calls."""

    def __init__(self, db):
        super().__init__(db)
        self.purchases = PurchaseService(db)
        self.last_result: PurchaseResult | None = None

    def validate_webhook_signature(self, payload: bytes, signature: str) -> dict:
        settings = StripeSettings()
        try:
            event = stripe.Webhook.construct_event(
                payload,
                signature,
                settings.STRIPE_WEBHOOK_SECRET.get_secret_value(),
                tolerance=settings.STRIPE_WEBHOOK_TOLERANCE_SECONDS,
            )
        except stripe.SignatureVerificationError as e:
            raise WebhookSignatureException("signature verification failed") from e
        except ValueError as e:
            raise WebhookSignatureException("invalid payload") from e
        # StripeObject is not a dict; handlers read plain nested dicts
        return event.to_dict()

    async def handle_webhook_event(self, event: dict) -> bool:
        """Dispatch an event; returns False for event types that are ignored."""
        event_type = event["type"]
        data = event["data"]["object"]

        webhook_handlers = {
            "checkout.session.completed": self._handle_checkout_completed,
            "payment_intent.succeeded": self._handle_payment_succeeded,
            "payment_intent.payment_failed": self._handle_payment_failed,
        }

        handler = webhook_handlers.get(event_type)
        if not handler:
            return False

        try:
            return await handler(data)
        except Exception as e:
            self.logger.error(
                "Error handling webhook",
                event_type=event_type,
                event_id=event.get("id"),
                error=str(e),
            )
            raise

    async def _handle_checkout_completed(self, session_data: dict) -> bool:
        if session_data.get("payment_status") != "paid":
            self.logger.info(
                "Checkout session not paid yet",
                session_id=session_data.get("id"),
                payment_status=session_data.get("payment_status"),
            )
            return False

        metadata = session_data.get("metadata") or {}
        user_id = _parse_uuid(metadata.get("user_id"))
        package_id = _parse_uuid(metadata.get("package_id"))
        if user_id is None or package_id is None:
            self.logger.warning(
                "Checkout session metadata missing user or package",
                session_id=session_data.get("id"),
            )
            return False

        payment_reference = session_data.get("payment_intent") or session_data["id"]
        self.last_result = await self.purchases.purchase_completed(
            user_id=user_id,
            package_id=package_id,
            payment_reference=payment_reference,
            scope_id=metadata.get("scope_id"),
            payment_customer_ref=session_data.get("customer"),
        )
        return True

    async def _handle_payment_succeeded(self, intent_data: dict) -> bool:
        metadata = intent_data.get("metadata") or {}
        # One-off purchases arrive through checkout.session.completed
        if not _is_auto_recharge(metadata):
            return False

        user_id = _parse_uuid(metadata.get("user_id"))
        try:
            token_amount = int(metadata.get("token_amount", 0))
        except (TypeError, ValueError):
            token_amount = 0
        if user_id is None or token_amount <= 0:
            self.logger.warning(
                "Auto-recharge payment metadata incomplete",
                payment_intent=intent_data.get("id"),
            )
            return False

        amount = intent_data.get("amount_received") or intent_data.get("amount") or 0
        self.last_result = await self.purchases.auto_recharge_completed(
            user_id=user_id,
            token_amount=token_amount,
            amount_minor_units=int(amount),
            payment_reference=intent_data["id"],
            scope_id=metadata.get("scope_id"),
        )
        return True

    async def _handle_payment_failed(self, intent_data: dict) -> bool:
        metadata = intent_data.get("metadata") or {}
        if not _is_auto_recharge(metadata):
            return False

        user_id = _parse_uuid(metadata.get("user_id"))
        if user_id is None:
            return False

        self.logger.warning(
            "Auto-recharge payment failed",
            payment_intent=intent_data.get("id"),
            user_id=str(user_id),
        )
        await self.purchases.payment_failed(user_id, metadata.get("scope_id"))
        return True
