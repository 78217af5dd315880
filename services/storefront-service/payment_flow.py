"""Online payment lifecycle: pending order + payment record, success, failure, refunds."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from checkout import place_order
from db import (
    claim_payment_success,
    clear_cart,
    create_payment,
    get_payment_by_intent,
    increment_sold_count,
    update_order,
    update_payment,
)
from stripe_adapter import create_payment_intent, ensure_stripe_configured, summarize_items

from packages.shared.errors import NotFoundError, ServiceUnavailableError, ValidationError

logger = logging.getLogger(__name__)

SETTLED_STATUSES = ("succeeded", "refunded")


async def start_online_checkout(
    *,
    user_id: Optional[str],
    customer: Dict[str, Any],
    shipping_address: str,
    delivery_type: str,
    delivery_datetime: Optional[str],
    courier_city_id: Optional[str],
    items: Optional[List[Dict[str, Any]]],
    currency: str,
) -> Dict[str, Any]:
    """Create the pending order, its payment record and the Stripe PaymentIntent."""
    ensure_stripe_configured()
    order = await place_order(
        user_id=user_id,
        customer_name=customer["name"],
        customer_email=customer["email"],
        shipping_address=shipping_address,
        delivery_type=delivery_type,
        payment_method="full_online",
        delivery_datetime=delivery_datetime,
        courier_city_id=courier_city_id,
        items=items,
        awaiting_payment=True,
    )

    amount = float(order["grand_total"])
    amount_minor = int(round(amount * 100))
    if amount_minor <= 0:
        raise ValidationError("Calculated order total is invalid")

    payment = await create_payment({
        "order_id": order["id"],
        "user_id": order["user_id"],
        "status": "requires_payment_method",
        "amount": amount,
        "amount_minor": amount_minor,
        "currency": currency,
        "customer": customer,
        "items": order["items"],
        "refunds": [],
    })
    if not payment:
        raise ServiceUnavailableError("Could not create payment record")

    metadata = {
        "orderId": str(order["id"]),
        "paymentId": str(payment["id"]),
        "customerEmail": customer["email"],
        "deliveryType": delivery_type,
        "items": summarize_items(order["items"]),
    }
    intent = await create_payment_intent(
        amount_minor=amount_minor,
        currency=currency,
        customer=customer,
        shipping_address=shipping_address,
        metadata=metadata,
        description=f"Order {order['id']}",
    )

    await update_payment(
        payment["id"],
        stripe_payment_intent_id=intent["payment_intent_id"],
        stripe_client_secret=intent["client_secret"],
        status=intent["status"],
    )
    await update_order(order["id"], payment_intent_id=intent["payment_intent_id"])

    return {
        "payment_intent_id": intent["payment_intent_id"],
        "client_secret": intent["client_secret"],
        "order_id": order["id"],
        "payment_id": payment["id"],
        "amount_minor": amount_minor,
        "currency": currency,
        "status": intent["status"],
    }


async def process_successful_payment(
    payment_intent_id: str, charge_id: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    """Mark payment succeeded and order confirmed. Safe to call more than once.

    Only the caller that moves the payment to succeeded runs the side effects.
    Refunded payments are left alone. Returns {payment_id, order_id,
    newly_confirmed} or None for an unknown intent.
    """
    payment = await get_payment_by_intent(payment_intent_id)
    if not payment:
        return None
    result = {"payment_id": payment["id"], "order_id": payment["order_id"], "newly_confirmed": False}
    if payment.get("status") in SETTLED_STATUSES:
        return result

    claimed = await claim_payment_success(
        payment["id"],
        stripe_latest_charge_id=charge_id,
        last_error=None,
    )
    if not claimed:
        return result

    await update_order(payment["order_id"], status="confirmed", payment_intent_id=payment_intent_id)
    for item in payment.get("items") or []:
        await increment_sold_count(item["product_id"], int(item.get("quantity") or 1))
    if payment.get("user_id"):
        await clear_cart(payment["user_id"])

    logger.info("Payment %s succeeded for order %s", payment_intent_id, payment["order_id"])
    result["newly_confirmed"] = True
    return result


async def update_payment_status(
    payment_intent_id: str, status: str, last_error: Optional[str] = None
) -> Optional[Dict[str, Any]]:
    payment = await get_payment_by_intent(payment_intent_id)
    if not payment:
        return None
    await update_payment(payment["id"], status=status, last_error=last_error)
    return {"payment_id": payment["id"], "order_id": payment["order_id"]}


async def record_refund(
    payment_intent_id: str,
    refund_id: str,
    amount_minor: int,
    currency: str,
    reason: Optional[str] = None,
    created_at: Optional[int] = None,
) -> Dict[str, Any]:
    """Append a refund to the payment and mark it refunded. Repeated refund ids are ignored."""
    payment = await get_payment_by_intent(payment_intent_id)
    if not payment:
        raise NotFoundError("Payment not found", details={"payment_intent_id": payment_intent_id})

    refunds = list(payment.get("refunds") or [])
    if any(r.get("stripe_refund_id") == refund_id for r in refunds):
        return payment
    created = created_at or int(datetime.now(timezone.utc).timestamp())
    refunds.append({
        "stripe_refund_id": refund_id,
        "amount_minor": amount_minor,
        "amount": amount_minor / 100,
        "currency": currency,
        "reason": reason,
        "created_at": created,
    })
    updated = await update_payment(payment["id"], refunds=refunds, status="refunded")
    logger.info("Refund %s recorded for %s", refund_id, payment_intent_id)
    return updated or {**payment, "refunds": refunds, "status": "refunded"}


async def record_refund_total(
    payment_intent_id: str, charge_id: str, amount_refunded: int, currency: str
) -> Dict[str, Any]:
    """Record a charge's cumulative ``amount_refunded`` as the part not yet on the payment.

    The refund id is ``<charge>:<cumulative amount>`` so a redelivered event is ignored.
    """
    payment = await get_payment_by_intent(payment_intent_id)
    if not payment:
        raise NotFoundError("Payment not found", details={"payment_intent_id": payment_intent_id})
    recorded = sum(int(r.get("amount_minor") or 0) for r in payment.get("refunds") or [])
    delta = int(amount_refunded) - recorded
    if delta <= 0:
        return payment
    return await record_refund(payment_intent_id, f"{charge_id}:{amount_refunded}", delta, currency)
