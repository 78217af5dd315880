"""Checkout rules: scheduling, item pricing, delivery fees and order placement."""

import logging
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from config import settings
from db import (
    clear_cart,
    create_order,
    create_user,
    get_products_by_ids,
    get_user_by_email,
    increment_sold_count,
    list_cart_items,
    list_delivery_bookings,
    list_discounts,
)
from store import STORE_INFO, get_courier_city

from packages.shared.delivery_slots import assert_slot_valid, parse_iso
from packages.shared.discounts import (
    apply_discount_to_amount,
    filter_active,
    resolve_discount_for_product,
    round_currency,
)
from packages.shared.errors import ServiceUnavailableError, ValidationError
from packages.shared.monitoring import log_with_context
from packages.shared.personalization import normalize_personalization

logger = logging.getLogger(__name__)


def _one_year_after(now: datetime) -> datetime:
    try:
        return now.replace(year=now.year + 1)
    except ValueError:
        # Feb 29
        return now.replace(year=now.year + 1, day=28)


def validate_schedule(value: Optional[str], now: Optional[datetime] = None) -> Optional[datetime]:
    """Customer-chosen pickup/delivery datetime: preparation lead time up to one year ahead."""
    if not value:
        return None
    selected = parse_iso(value)
    if selected is None:
        raise ValidationError("Invalid pickup/delivery datetime")
    now = now or datetime.now(timezone.utc)
    hours = settings.preparation_hours
    if selected < now + timedelta(hours=hours):
        raise ValidationError(f"Pickup/delivery date must be at least {hours} hours in advance")
    if selected > _one_year_after(now):
        raise ValidationError("Pickup date cannot be more than 1 year in advance")
    return selected


def validate_reschedule(value: str, now: Optional[datetime] = None) -> Optional[datetime]:
    """Admin reschedule: any future datetime up to one year ahead. Empty clears."""
    value = (value or "").strip()
    if not value:
        return None
    selected = parse_iso(value)
    if selected is None:
        raise ValidationError("Invalid pickup/delivery datetime")
    now = now or datetime.now(timezone.utc)
    if selected < now:
        raise ValidationError("Pickup/delivery datetime must be in the future")
    if selected > _one_year_after(now):
        raise ValidationError("Pickup date cannot be more than 1 year in advance")
    return selected


async def assert_delivery_slot(
    slot_iso: str,
    ignore_order_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    bookings = await list_delivery_bookings(limit=settings.recent_orders_scan_limit)
    return assert_slot_valid(
        slot_iso,
        bookings,
        settings.delivery_window,
        ignore_order_id=ignore_order_id,
        now=now,
    )


def assert_payment_method_allowed(payment_method: str, delivery_type: str) -> None:
    if payment_method == "cash" and delivery_type != "pickup":
        raise ValidationError("Cash payment is only available for pickup")


def delivery_fee_for(delivery_type: str, courier_city_id: Optional[str] = None) -> float:
    if delivery_type != "delivery":
        return 0.0
    city = get_courier_city(courier_city_id)
    if city:
        return float(city["price"])
    return float(STORE_INFO["delivery"]["cost"])


def _unit_price_for_variant(product: Dict[str, Any], variant: Optional[Dict[str, Any]]) -> Tuple[float, Optional[Dict[str, str]]]:
    sizes = product.get("mini_set_sizes") or []
    requested = ((variant or {}).get("size") or "").strip()
    if sizes:
        if not requested:
            raise ValidationError("Please select a size for this mini-set")
        match = next(
            (s for s in sizes if str(s.get("label", "")).strip().lower() == requested.lower()),
            None,
        )
        if match is None:
            raise ValidationError("Selected size is not available")
        unit_price = (variant or {}).get("unit_price")
        if unit_price is None:
            unit_price = match["price"]
        return float(unit_price), {"size": str(match["label"]).strip()}
    if requested:
        raise ValidationError("Variant size is not supported for this product")
    return float(product.get("price") or 0), None


def resolve_order_items(
    requested: List[Dict[str, Any]],
    products_by_id: Dict[str, Dict[str, Any]],
    active_discounts: List[Dict[str, Any]],
) -> Tuple[List[Dict[str, Any]], float]:
    """Price each requested line against current products and discounts.

    Lines whose product no longer exists are dropped. Returns (items, subtotal).
    """
    items: List[Dict[str, Any]] = []
    subtotal = 0.0
    for line in requested:
        product = products_by_id.get(str(line["product_id"]))
        if not product:
            continue
        if not product.get("in_stock"):
            raise ValidationError(f"{product['name']} is out of stock")

        unit_price, variant = _unit_price_for_variant(product, line.get("variant"))
        discount = resolve_discount_for_product(product, active_discounts)
        price = apply_discount_to_amount(unit_price, discount["percentage"]) if discount else unit_price
        quantity = int(line.get("quantity") or 1)

        images = product.get("image_urls") or []
        items.append({
            "product_id": str(product["id"]),
            "product_name": product["name"],
            "quantity": quantity,
            "price": price,
            "original_price": unit_price if discount else None,
            "discount_pct": float(discount["percentage"]) if discount else None,
            "discount_id": str(discount["id"]) if discount else None,
            "variant": variant,
            "personalization": normalize_personalization(line.get("personalization")),
            "product_image_url": images[0] if images else None,
        })
        subtotal += price * quantity
    return items, round_currency(subtotal)


async def price_items(requested: List[Dict[str, Any]]) -> Tuple[List[Dict[str, Any]], float]:
    if not requested:
        raise ValidationError("Cart is empty")
    products = await get_products_by_ids([str(r["product_id"]) for r in requested])
    discounts = filter_active(await list_discounts(include_inactive=False))
    items, subtotal = resolve_order_items(requested, products, discounts)
    if not items:
        raise ValidationError("Cart is empty")
    return items, subtotal


async def resolve_customer_user(user_id: Optional[str], email: str, name: str) -> str:
    """Signed-in user id, else the user with this email, else a new guest user."""
    if user_id:
        return user_id
    existing = await get_user_by_email(email)
    if existing:
        return str(existing["id"])
    created = await create_user(email=email, name=name)
    if not created:
        raise ServiceUnavailableError("Could not create customer record")
    return str(created["id"])


async def validate_checkout(
    delivery_type: str,
    payment_method: str,
    delivery_datetime: Optional[str],
    now: Optional[datetime] = None,
) -> None:
    """All checks that do not depend on the cart contents."""
    assert_payment_method_allowed(payment_method, delivery_type)
    validate_schedule(delivery_datetime, now=now)
    if delivery_type == "delivery":
        if not delivery_datetime:
            raise ValidationError("Delivery requires a delivery time slot")
        await assert_delivery_slot(delivery_datetime, now=now)


async def place_order(
    *,
    user_id: Optional[str],
    customer_name: str,
    customer_email: str,
    shipping_address: str,
    delivery_type: str,
    payment_method: str,
    delivery_datetime: Optional[str],
    courier_city_id: Optional[str] = None,
    items: Optional[List[Dict[str, Any]]] = None,
    awaiting_payment: bool = False,
) -> Dict[str, Any]:
    """Create an order from explicit items (guest) or the user's cart (signed in).

    Cash orders are created confirmed; everything else starts pending. With
    ``awaiting_payment`` sold counts and the cart are left for the payment
    success path.
    """
    await validate_checkout(delivery_type, payment_method, delivery_datetime)

    from_cart = items is None
    if from_cart:
        if not user_id:
            raise ValidationError("Cart is empty")
        items = await list_cart_items(user_id)

    order_items, subtotal = await price_items(items)
    fee = delivery_fee_for(delivery_type, courier_city_id)
    owner_id = await resolve_customer_user(user_id, customer_email, customer_name)

    order = await create_order({
        "user_id": owner_id,
        "items": order_items,
        "total_amount": subtotal,
        "status": "confirmed" if payment_method == "cash" else "pending",
        "customer_name": customer_name,
        "customer_email": customer_email,
        "shipping_address": shipping_address,
        "delivery_type": delivery_type,
        "payment_method": payment_method,
        "delivery_datetime": delivery_datetime or None,
        "currency": settings.payment_currency.upper(),
        "delivery_fee": fee,
        "grand_total": round_currency(subtotal + fee),
    })
    if not order:
        raise ServiceUnavailableError("Could not create order")

    if not awaiting_payment:
        for item in order_items:
            await increment_sold_count(item["product_id"], item["quantity"])
        if from_cart:
            await clear_cart(owner_id)

    log_with_context(
        logger,
        logging.INFO,
        "Order created",
        order_id=str(order["id"]),
        delivery_type=delivery_type,
        payment_method=payment_method,
        grand_total=float(order.get("grand_total") or 0),
    )
    return order
