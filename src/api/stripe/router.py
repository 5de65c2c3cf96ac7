"""Stripe webhook endpoint."""

from fastapi import APIRouter, BackgroundTasks, Request, status

from src.api.core.dependencies import AlertPublisherDep, StripeWebhookServiceDep
from src.api.core.exceptions.base import TokenMeterException
from src.api.core.messages import MessageCode
from src.modules.billing.alerts import dispatch_alerts
from src.utils.logger import get_logger

logger = get_logger(__name__)

router = APIRouter(prefix="/stripe", tags=["stripe"])

# Stripe event payloads stay far below this
MAX_WEBHOOK_PAYLOAD_BYTES = 1024 * 1024


@router.post("/webhook")
async def stripe_webhook(
    request: Request,
    stripe_service: StripeWebhookServiceDep,
    alert_publisher: AlertPublisherDep,
    background_tasks: BackgroundTasks,
):
    """Credit token purchases and auto-recharges confirmed by Stripe."""
    payload = await request.body()

    if not payload:
        raise TokenMeterException(
            MessageCode.BAD_REQUEST,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Empty webhook payload"},
        )

    if len(payload) > MAX_WEBHOOK_PAYLOAD_BYTES:
        raise TokenMeterException(
            MessageCode.BAD_REQUEST,
            status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
            details={"description": "Webhook payload too large"},
        )

    signature = request.headers.get("stripe-signature")
    if not signature:
        raise TokenMeterException(
            MessageCode.BAD_REQUEST,
            status.HTTP_400_BAD_REQUEST,
            details={"description": "Missing stripe-signature header"},
        )

    # Signature check includes the timestamp tolerance
    event = stripe_service.validate_webhook_signature(payload, signature)

    handled = await stripe_service.handle_webhook_event(event)
    if not handled:
        logger.debug("Webhook event not handled", event_type=event["type"])
        return {"status": "ignored"}

    if stripe_service.last_result is not None:
        background_tasks.add_task(
            dispatch_alerts, alert_publisher, stripe_service.last_result.alert
        )
    logger.info("Processed webhook event", event_type=event["type"])
    return {"status": "success"}
