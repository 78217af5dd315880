"""Stripe adapter - PaymentIntent create/retrieve and status mapping."""

import logging
from typing import Any, Dict, Iterable, Optional

import stripe

from config import settings
from packages.shared.errors import ServiceUnavailableError
from packages.shared.retry import create_retry_decorator

logger = logging.getLogger(__name__)

PAYMENT_STATUSES = (
    "requires_payment_method",
    "requires_confirmation",
    "requires_action",
    "processing",
    "requires_capture",
    "succeeded",
    "canceled",
    "failed",
    "refunded",
)

# Statuses Stripe reports that are stored as-is.
_PASSTHROUGH_STATUSES = (
    "requires_payment_method",
    "requires_confirmation",
    "requires_action",
    "processing",
    "requires_capture",
    "succeeded",
    "canceled",
)

METADATA_ITEMS_LIMIT = 15

_stripe_retry = create_retry_decorator(
    "stripe", retryable_exceptions=(stripe.APIConnectionError, stripe.RateLimitError)
)


def ensure_stripe_configured():
    if not settings.stripe_configured:
        raise ServiceUnavailableError("Stripe not configured (STRIPE_SECRET_KEY)")
    stripe.api_key = settings.stripe_secret_key


def derive_payment_status(stripe_status: Optional[str], last_error: Optional[str] = None) -> str:
    if stripe_status == "requires_payment_method" and last_error:
        return "failed"
    if stripe_status in _PASSTHROUGH_STATUSES:
        return stripe_status
    return "requires_payment_method"


def summarize_items(items: Iterable[Dict[str, Any]]) -> str:
    """'2x Heart Bouquet, 1x Mini Set' for PaymentIntent metadata (first 15 lines)."""
    parts = [f"{item.get('quantity', 1)}x {item.get('product_name', '')}" for item in items]
    return ", ".join(parts[:METADATA_ITEMS_LIMIT])


def summarize_intent(intent: Any) -> Dict[str, Any]:
    """Flatten a PaymentIntent into the fields the payment record keeps."""
    last_error = (intent.get("last_payment_error") or {}).get("message")
    latest_charge = intent.get("latest_charge")
    if latest_charge is not None and not isinstance(latest_charge, str):
        latest_charge = latest_charge.get("id")
    if not intent.get("client_secret"):
        raise ServiceUnavailableError("Stripe did not return a client secret")
    return {
        "payment_intent_id": intent["id"],
        "client_secret": intent["client_secret"],
        "status": derive_payment_status(intent.get("status"), last_error),
        "latest_charge_id": latest_charge,
        "last_error": last_error,
    }


@_stripe_retry
def _create_intent(**params: Any):
    return stripe.PaymentIntent.create(**params)


@_stripe_retry
def _retrieve_intent(payment_intent_id: str):
    return stripe.PaymentIntent.retrieve(payment_intent_id)


async def create_payment_intent(
    amount_minor: int,
    currency: str,
    customer: Dict[str, Any],
    shipping_address: str,
    metadata: Dict[str, str],
    description: Optional[str] = None,
) -> Dict[str, Any]:
    """Create a card PaymentIntent without redirect-based methods.

    Returns the summarized intent (payment_intent_id, client_secret, status, ...).
    """
    ensure_stripe_configured()
    shipping: Dict[str, Any] = {
        "name": customer["name"],
        "address": {"line1": shipping_address},
    }
    if customer.get("phone"):
        shipping["phone"] = customer["phone"]
    try:
        intent = _create_intent(
            amount=amount_minor,
            currency=currency,
            automatic_payment_methods={"enabled": True, "allow_redirects": "never"},
            receipt_email=customer["email"],
            description=description,
            shipping=shipping,
            metadata=metadata,
        )
    except stripe.StripeError as e:
        logger.error("Stripe PaymentIntent create failed: %s", e)
        raise ServiceUnavailableError("Could not reach payment provider") from e
    return summarize_intent(intent)


async def retrieve_payment_intent(payment_intent_id: str) -> Dict[str, Any]:
    ensure_stripe_configured()
    try:
        intent = _retrieve_intent(payment_intent_id)
    except stripe.StripeError as e:
        logger.warning("Stripe retrieve failed: %s", e)
        raise ServiceUnavailableError("Could not reach payment provider") from e
    return summarize_intent(intent)
