"""Supabase client for the storefront service."""

import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from supabase import create_client, Client

from config import settings
from packages.shared.delivery_slots import DeliveryBooking
from packages.shared.errors import ServiceUnavailableError

_client: Optional[Client] = None
logger = logging.getLogger(__name__)

SOLD_COUNT_ATTEMPTS = 5


def get_supabase() -> Optional[Client]:
    """Get Supabase client."""
    global _client
    if _client is not None:
        return _client
    if not settings.supabase_configured:
        return None
    _client = create_client(settings.supabase_url, settings.supabase_key)
    return _client


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


def _first(result) -> Optional[Dict[str, Any]]:
    return result.data[0] if result.data else None


# --- Products ---


async def list_products() -> List[Dict[str, Any]]:
    """All catalog products, newest first."""
    client = get_supabase()
    if not client:
        return []
    try:
        result = (
            client.table("products")
            .select("*")
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.warning("list_products error: %s", e)
        return []


async def get_product(product_id: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = client.table("products").select("*").eq("id", product_id).limit(1).execute()
        return _first(result)
    except Exception as e:
        logger.warning("get_product error: %s", e)
        return None


async def get_product_by_slug(slug: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = client.table("products").select("*").eq("slug", slug).limit(1).execute()
        return _first(result)
    except Exception as e:
        logger.warning("get_product_by_slug error: %s", e)
        return None


async def get_products_by_ids(product_ids: List[str]) -> Dict[str, Dict[str, Any]]:
    """Products keyed by id. Missing ids are simply absent."""
    client = get_supabase()
    if not client or not product_ids:
        return {}
    try:
        result = (
            client.table("products")
            .select("*")
            .in_("id", list(set(product_ids)))
            .execute()
        )
        return {str(p["id"]): p for p in result.data or []}
    except Exception as e:
        logger.warning("get_products_by_ids error: %s", e)
        return {}


async def create_product(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        row = {**data, "sold_count": 0, "created_at": _now_iso()}
        return _first(client.table("products").insert(row).execute())
    except Exception as e:
        logger.warning("create_product error: %s", e)
        return None


async def update_product(product_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = client.table("products").update(fields).eq("id", product_id).execute()
        return _first(result)
    except Exception as e:
        logger.warning("update_product error: %s", e)
        return None


async def delete_product(product_id: str) -> bool:
    client = get_supabase()
    if not client:
        return False
    try:
        client.table("products").delete().eq("id", product_id).execute()
        return True
    except Exception as e:
        logger.warning("delete_product error: %s", e)
        return False


async def increment_sold_count(product_id: str, quantity: int) -> bool:
    """Add ``quantity`` to the product's sold_count.

    Conditional update on the value read, retried when another writer got there first.
    """
    client = get_supabase()
    if not client:
        return False
    for _ in range(SOLD_COUNT_ATTEMPTS):
        product = await get_product(product_id)
        if not product:
            return False
        current = product.get("sold_count")
        try:
            q = client.table("products").update({"sold_count": int(current or 0) + quantity}).eq("id", product_id)
            q = q.is_("sold_count", "null") if current is None else q.eq("sold_count", current)
            if q.execute().data:
                return True
        except Exception as e:
            logger.warning("increment_sold_count error: %s", e)
            return False
    logger.warning("increment_sold_count gave up on %s after %d attempts", product_id, SOLD_COUNT_ATTEMPTS)
    return False


# --- Discounts ---


async def list_discounts(include_inactive: bool = True) -> List[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return []
    try:
        q = client.table("discounts").select("*")
        if not include_inactive:
            q = q.eq("is_active", True)
        result = q.order("created_at", desc=True).execute()
        return result.data or []
    except Exception as e:
        logger.warning("list_discounts error: %s", e)
        return []


async def get_discount(discount_id: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        return _first(client.table("discounts").select("*").eq("id", discount_id).limit(1).execute())
    except Exception as e:
        logger.warning("get_discount error: %s", e)
        return None


async def get_product_discount(product_id: str) -> Optional[Dict[str, Any]]:
    """The product-scoped discount row for a product, if any."""
    client = get_supabase()
    if not client:
        return None
    try:
        result = (
            client.table("discounts")
            .select("*")
            .eq("scope_type", "product")
            .eq("product_id", product_id)
            .order("created_at", desc=True)
            .limit(1)
            .execute()
        )
        return _first(result)
    except Exception as e:
        logger.warning("get_product_discount error: %s", e)
        return None


async def create_discount(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        now = _now_iso()
        row = {**data, "created_at": now, "updated_at": now}
        return _first(client.table("discounts").insert(row).execute())
    except Exception as e:
        logger.warning("create_discount error: %s", e)
        return None


async def update_discount(discount_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        fields["updated_at"] = _now_iso()
        result = client.table("discounts").update(fields).eq("id", discount_id).execute()
        return _first(result)
    except Exception as e:
        logger.warning("update_discount error: %s", e)
        return None


async def delete_discount(discount_id: str) -> bool:
    client = get_supabase()
    if not client:
        return False
    try:
        client.table("discounts").delete().eq("id", discount_id).execute()
        return True
    except Exception as e:
        logger.warning("delete_discount error: %s", e)
        return False


# --- Users ---


async def get_user(user_id: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        return _first(client.table("users").select("*").eq("id", user_id).limit(1).execute())
    except Exception as e:
        logger.warning("get_user error: %s", e)
        return None


async def get_user_by_email(email: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = client.table("users").select("*").eq("email", email.lower()).limit(1).execute()
        return _first(result)
    except Exception as e:
        logger.warning("get_user_by_email error: %s", e)
        return None


async def create_user(email: str, name: Optional[str] = None, phone: Optional[str] = None) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = client.table("users").insert({
            "email": email.lower(),
            "name": name,
            "phone": phone,
            "is_admin": False,
            "created_at": _now_iso(),
        }).execute()
        return _first(result)
    except Exception as e:
        logger.warning("create_user error: %s", e)
        return None


async def get_users_by_ids(user_ids: List[str]) -> Dict[str, Dict[str, Any]]:
    client = get_supabase()
    if not client or not user_ids:
        return {}
    try:
        result = (
            client.table("users")
            .select("id, email, name, phone")
            .in_("id", list(set(user_ids)))
            .execute()
        )
        return {str(u["id"]): u for u in result.data or []}
    except Exception as e:
        logger.warning("get_users_by_ids error: %s", e)
        return {}


# --- Cart ---


async def list_cart_items(user_id: str) -> List[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return []
    try:
        result = (
            client.table("cart_items")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at")
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.warning("list_cart_items error: %s", e)
        return []


async def insert_cart_item(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        return _first(client.table("cart_items").insert({**data, "created_at": _now_iso()}).execute())
    except Exception as e:
        logger.warning("insert_cart_item error: %s", e)
        return None


async def update_cart_item(item_id: str, user_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = (
            client.table("cart_items")
            .update(fields)
            .eq("id", item_id)
            .eq("user_id", user_id)
            .execute()
        )
        return _first(result)
    except Exception as e:
        logger.warning("update_cart_item error: %s", e)
        return None


async def delete_cart_item(item_id: str, user_id: str) -> bool:
    client = get_supabase()
    if not client:
        return False
    try:
        client.table("cart_items").delete().eq("id", item_id).eq("user_id", user_id).execute()
        return True
    except Exception as e:
        logger.warning("delete_cart_item error: %s", e)
        return False


async def clear_cart(user_id: str) -> bool:
    client = get_supabase()
    if not client:
        return False
    try:
        client.table("cart_items").delete().eq("user_id", user_id).execute()
        return True
    except Exception as e:
        logger.warning("clear_cart error: %s", e)
        return False


# --- Orders ---


async def create_order(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        now = _now_iso()
        return _first(client.table("orders").insert({**data, "created_at": now, "updated_at": now}).execute())
    except Exception as e:
        logger.warning("create_order error: %s", e)
        return None


async def get_order(order_id: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        return _first(client.table("orders").select("*").eq("id", order_id).limit(1).execute())
    except Exception as e:
        logger.warning("get_order error: %s", e)
        return None


async def list_orders_for_user(user_id: str) -> List[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return []
    try:
        result = (
            client.table("orders")
            .select("*")
            .eq("user_id", user_id)
            .order("created_at", desc=True)
            .execute()
        )
        return result.data or []
    except Exception as e:
        logger.warning("list_orders_for_user error: %s", e)
        return []


async def list_orders(status: Optional[str] = None, newest_first: bool = True) -> List[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return []
    try:
        q = client.table("orders").select("*")
        if status:
            q = q.eq("status", status)
        result = q.order("created_at", desc=newest_first).execute()
        return result.data or []
    except Exception as e:
        logger.warning("list_orders error: %s", e)
        return []


async def update_order(order_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        fields["updated_at"] = _now_iso()
        return _first(client.table("orders").update(fields).eq("id", order_id).execute())
    except Exception as e:
        logger.warning("update_order error: %s", e)
        return None


async def delete_order(order_id: str) -> bool:
    client = get_supabase()
    if not client:
        return False
    try:
        client.table("orders").delete().eq("id", order_id).execute()
        return True
    except Exception as e:
        logger.warning("delete_order error: %s", e)
        return False


async def list_delivery_bookings(limit: int = 500) -> List[DeliveryBooking]:
    """Delivery datetimes of the most recent ``limit`` non-canceled courier orders.

    Raises ServiceUnavailableError when the scan fails; an empty result would
    make every slot look free.
    """
    client = get_supabase()
    if not client:
        return []
    try:
        result = (
            client.table("orders")
            .select("id, status, delivery_type, delivery_datetime")
            .neq("status", "canceled")
            .order("created_at", desc=True)
            .limit(limit)
            .execute()
        )
    except Exception as e:
        logger.error("list_delivery_bookings error: %s", e)
        raise ServiceUnavailableError("Could not check delivery slot availability") from e
    return [
        DeliveryBooking(order_id=str(o["id"]), delivery_iso=o["delivery_datetime"])
        for o in result.data or []
        if o.get("delivery_type") == "delivery"
        and o.get("delivery_datetime")
        and o.get("status") != "canceled"
    ]


# --- Payments ---


async def create_payment(data: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        now = _now_iso()
        return _first(client.table("payments").insert({**data, "created_at": now, "updated_at": now}).execute())
    except Exception as e:
        logger.warning("create_payment error: %s", e)
        return None


async def get_payment(payment_id: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        return _first(client.table("payments").select("*").eq("id", payment_id).limit(1).execute())
    except Exception as e:
        logger.warning("get_payment error: %s", e)
        return None


async def get_payment_by_intent(payment_intent_id: str) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        result = (
            client.table("payments")
            .select("*")
            .eq("stripe_payment_intent_id", payment_intent_id)
            .limit(1)
            .execute()
        )
        return _first(result)
    except Exception as e:
        logger.warning("get_payment_by_intent error: %s", e)
        return None


async def update_payment(payment_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    client = get_supabase()
    if not client:
        return None
    try:
        fields["updated_at"] = _now_iso()
        return _first(client.table("payments").update(fields).eq("id", payment_id).execute())
    except Exception as e:
        logger.warning("update_payment error: %s", e)
        return None


async def claim_payment_success(payment_id: str, **fields: Any) -> Optional[Dict[str, Any]]:
    """Move a payment to succeeded unless it already succeeded or was refunded.

    Returns the updated row only for the caller that made the transition.
    """
    client = get_supabase()
    if not client:
        return None
    try:
        row = {**fields, "status": "succeeded", "updated_at": _now_iso()}
        result = (
            client.table("payments")
            .update(row)
            .eq("id", payment_id)
            .neq("status", "succeeded")
            .neq("status", "refunded")
            .execute()
        )
    except Exception as e:
        logger.error("claim_payment_success error: %s", e)
        raise ServiceUnavailableError("Could not record payment") from e
    return _first(result)

