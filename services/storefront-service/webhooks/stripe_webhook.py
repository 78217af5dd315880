"""Stripe webhook handler - payment_intent.succeeded/payment_failed, charge.refunded."""

import json
import logging

import stripe
from fastapi import APIRouter, BackgroundTasks, HTTPException, Request, Response

from config import settings
from emails import send_order_confirmation
from payment_flow import process_successful_payment, record_refund, record_refund_total, update_payment_status

from packages.shared.errors import NotFoundError

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/webhooks", tags=["Webhooks"])


def _construct_event(payload: bytes, sig_header: str):
    if not settings.stripe_webhook_secret:
        if settings.is_production:
            raise HTTPException(status_code=500, detail="Webhook secret not configured")
        logger.warning("STRIPE_WEBHOOK_SECRET not configured, skipping verification")
        return stripe.Event.construct_from(json.loads(payload), settings.stripe_secret_key)
    try:
        return stripe.Webhook.construct_event(payload, sig_header, settings.stripe_webhook_secret)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid payload: {e}")
    except stripe.SignatureVerificationError as e:
        raise HTTPException(status_code=400, detail=f"Invalid signature: {e}")


@router.post("/stripe")
async def stripe_webhook(request: Request, background_tasks: BackgroundTasks):
    """Handle Stripe webhooks for online order payments."""
    payload = await request.body()
    event = _construct_event(payload, request.headers.get("stripe-signature", ""))
    obj = event.data.object

    if event.type == "payment_intent.succeeded":
        latest_charge = obj.get("latest_charge")
        if latest_charge is not None and not isinstance(latest_charge, str):
            latest_charge = latest_charge.get("id")
        processed = await process_successful_payment(obj.id, charge_id=latest_charge)
        if processed:
            background_tasks.add_task(send_order_confirmation, str(processed["order_id"]))
        else:
            logger.warning("Succeeded intent %s has no payment record", obj.id)

    elif event.type == "payment_intent.payment_failed":
        last_error = (obj.get("last_payment_error") or {}).get("message")
        result = await update_payment_status(obj.id, "failed", last_error)
        logger.warning("Payment failed for order %s: %s", (result or {}).get("order_id"), last_error)

    elif event.type == "charge.refunded":
        intent_id = obj.get("payment_intent")
        refunds = (obj.get("refunds") or {}).get("data") or []
        if not refunds and obj.get("amount_refunded"):
            # Newer API versions omit the refunds list on the charge.
            try:
                await record_refund_total(
                    intent_id,
                    obj.id,
                    int(obj["amount_refunded"]),
                    obj.get("currency") or settings.payment_currency,
                )
            except NotFoundError:
                logger.warning("Refund on %s for unknown intent %s", obj.id, intent_id)
        for refund in refunds:
            try:
                await record_refund(
                    payment_intent_id=intent_id,
                    refund_id=refund["id"],
                    amount_minor=int(refund.get("amount") or 0),
                    currency=refund.get("currency") or obj.get("currency") or settings.payment_currency,
                    reason=refund.get("reason"),
                    created_at=refund.get("created"),
                )
            except NotFoundError:
                logger.warning("Refund %s for unknown intent %s", refund.get("id"), intent_id)
                break

    else:
        logger.info("Ignoring Stripe event %s", event.type)

    return Response(status_code=200)
