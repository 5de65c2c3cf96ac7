"""Stripe webhook event payloads and signing helpers for tests."""

import hashlib
import hmac
import json
import time

from src.utils.settings.stripe import StripeSettings


def sign_payload(
    payload: bytes, secret: str | None = None, timestamp: int | None = None
) -> str:
    """Build a stripe-signature header the way Stripe does."""
    secret = secret or StripeSettings().STRIPE_WEBHOOK_SECRET.get_secret_value()
    timestamp = timestamp or int(time.time())
    signed = f"{timestamp}.".encode() + payload
    signature = hmac.new(secret.encode(), signed, hashlib.sha256).hexdigest()
    return f"t={timestamp},v1={signature}"


def encode_event(event: dict) -> bytes:
    return json.dumps(event).encode()


def checkout_session_completed(
    user_id, package_id, payment_intent="pi_checkout_1", payment_status="paid"
) -> dict:
    return {
        "id": "evt_checkout_completed",
        "object": "event",
        "type": "checkout.session.completed",
        "data": {
            "object": {
                "id": "cs_test_a1",
                "object": "checkout.session",
                "payment_status": payment_status,
                "payment_intent": payment_intent,
                "customer": "cus_test_1",
                "amount_total": 1500,
                "currency": "usd",
                "metadata": {
                    "user_id": str(user_id),
                    "package_id": str(package_id),
                },
            }
        },
    }


def payment_intent_succeeded(
    user_id, token_amount=10_000, intent_id="pi_auto_1", auto_recharge="true"
) -> dict:
    return {
        "id": "evt_intent_succeeded",
        "object": "event",
        "type": "payment_intent.succeeded",
        "data": {
            "object": {
                "id": intent_id,
                "object": "payment_intent",
                "amount": 1000,
                "amount_received": 1000,
                "currency": "usd",
                "metadata": {
                    "auto_recharge": auto_recharge,
                    "user_id": str(user_id),
                    "token_amount": str(token_amount),
                },
            }
        },
    }


def payment_intent_failed(user_id, intent_id="pi_auto_failed") -> dict:
    return {
        "id": "evt_intent_failed",
        "object": "event",
        "type": "payment_intent.payment_failed",
        "data": {
            "object": {
                "id": intent_id,
                "object": "payment_intent",
                "amount": 1000,
                "currency": "usd",
                "metadata": {"auto_recharge": "true", "user_id": str(user_id)},
            }
        },
    }
