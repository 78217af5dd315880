"""Orders API - checkout, customer order history and admin order management."""

import logging
from dataclasses import asdict
from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, Query
from pydantic import BaseModel, EmailStr, Field

from auth import current_user, require_admin, require_user
from checkout import assert_delivery_slot, place_order, validate_reschedule
from db import delete_order, get_order, get_users_by_ids, list_orders, list_orders_for_user, update_order
from emails import send_order_confirmation
from store import whatsapp_link, whatsapp_order_message

from packages.shared.address import AddressFields, compose_address, parse_address
from packages.shared.delivery_slots import format_iso

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1", tags=["Orders"])

OrderStatus = Literal["pending", "confirmed", "shipped", "delivered", "canceled"]
DeliveryType = Literal["pickup", "delivery"]
PaymentMethod = Literal["full_online", "partial_online", "cash"]


class PersonalizationBody(BaseModel):
    text: Optional[str] = None
    color: Optional[str] = None
    number: Optional[str] = None


class AddressBody(BaseModel):
    street_address: str = ""
    city: str = ""
    postal_code: str = ""
    delivery_notes: str = ""

    def compose(self) -> str:
        return compose_address(AddressFields(**self.model_dump()))


class VariantBody(BaseModel):
    size: str


class OrderItemBody(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    variant: Optional[VariantBody] = None
    personalization: Optional[PersonalizationBody] = None


class CreateOrderBody(BaseModel):
    """Checkout request. Guests send ``items``; signed-in users check out their cart."""

    customer_name: str = Field(..., min_length=1)
    customer_email: EmailStr
    shipping_address: str = ""
    address: Optional[AddressBody] = None
    delivery_type: DeliveryType
    payment_method: PaymentMethod
    delivery_datetime: Optional[str] = None
    courier_city_id: Optional[str] = None
    items: Optional[List[OrderItemBody]] = None
    locale: Literal["ru", "de"] = "de"


class StatusBody(BaseModel):
    status: OrderStatus


class RescheduleBody(BaseModel):
    delivery_datetime: str = ""


@router.post("/orders")
async def create_order_endpoint(
    body: CreateOrderBody,
    background_tasks: BackgroundTasks,
    user: Optional[dict] = Depends(current_user),
):
    """Place an order. Cash orders are confirmed immediately and get a WhatsApp link."""
    shipping_address = body.address.compose() if body.address else body.shipping_address
    items = None
    if body.items is not None or not user:
        items = [i.model_dump(exclude_none=True) for i in body.items or []]

    order = await place_order(
        user_id=user["id"] if user else None,
        customer_name=body.customer_name,
        customer_email=str(body.customer_email),
        shipping_address=shipping_address,
        delivery_type=body.delivery_type,
        payment_method=body.payment_method,
        delivery_datetime=body.delivery_datetime,
        courier_city_id=body.courier_city_id,
        items=items,
    )

    result = {"order_id": str(order["id"]), "status": order["status"], "order": order}
    if body.payment_method == "cash":
        background_tasks.add_task(send_order_confirmation, str(order["id"]))
        message = whatsapp_order_message(
            customer_name=body.customer_name,
            customer_email=str(body.customer_email),
            shipping_address=shipping_address,
            delivery_type=body.delivery_type,
            delivery_datetime=body.delivery_datetime,
            items=order.get("items"),
            total=float(order.get("grand_total") or 0),
            locale=body.locale,
        )
        result["whatsapp_url"] = whatsapp_link(message)
    return result


@router.get("/orders")
async def my_orders(user: dict = Depends(require_user)):
    """Signed-in user's orders, newest first."""
    return {"orders": await list_orders_for_user(user["id"])}


@router.get("/orders/{order_id}")
async def my_order(order_id: str, user: dict = Depends(require_user)):
    order = await get_order(order_id)
    if not order or str(order.get("user_id")) != str(user["id"]):
        raise HTTPException(status_code=404, detail="Order not found")
    return order


@router.get("/orders/{order_id}/public")
async def public_order(order_id: str):
    """Order by id for the confirmation page right after checkout (guests included)."""
    order = await get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    return {**order, "address_fields": asdict(parse_address(order.get("shipping_address") or ""))}


@router.get("/admin/orders")
async def admin_orders(
    status: Optional[OrderStatus] = None,
    sort: Literal["newest", "oldest"] = Query("newest"),
    _: dict = Depends(require_admin),
):
    """All orders, optionally by status, with the customer's phone for search."""
    orders = await list_orders(status=status, newest_first=sort != "oldest")
    users = await get_users_by_ids([str(o["user_id"]) for o in orders if o.get("user_id")])
    enriched = []
    for order in orders:
        phone = (users.get(str(order.get("user_id"))) or {}).get("phone")
        enriched.append({**order, "phone": phone.strip() if isinstance(phone, str) and phone.strip() else None})
    return {"orders": enriched}


@router.patch("/admin/orders/{order_id}/status")
async def admin_update_status(order_id: str, body: StatusBody, _: dict = Depends(require_admin)):
    order = await get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    result = await update_order(order_id, status=body.status)
    if not result:
        raise HTTPException(status_code=500, detail="Failed to update order")
    logger.info("Order %s status %s -> %s", order_id, order.get("status"), body.status)
    return {"message": "Order updated", "order_id": order_id, "status": body.status}


@router.patch("/admin/orders/{order_id}/schedule")
async def admin_reschedule(order_id: str, body: RescheduleBody, _: dict = Depends(require_admin)):
    """Move the pickup/delivery datetime. An empty value clears it."""
    order = await get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    selected = validate_reschedule(body.delivery_datetime)
    value = None
    if selected is not None:
        if (order.get("delivery_type") or "pickup") == "delivery":
            slot = await assert_delivery_slot(body.delivery_datetime.strip(), ignore_order_id=order_id)
            value = slot["iso"]
        else:
            value = format_iso(selected)

    result = await update_order(order_id, delivery_datetime=value)
    if not result:
        raise HTTPException(status_code=500, detail="Failed to update order")
    return {"message": "Order rescheduled", "order_id": order_id, "delivery_datetime": value}


@router.delete("/admin/orders/{order_id}")
async def admin_delete_order(order_id: str, _: dict = Depends(require_admin)):
    order = await get_order(order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")
    ok = await delete_order(order_id)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to delete order")
    return {"message": "Order deleted", "order_id": order_id}
