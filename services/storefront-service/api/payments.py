"""Payments API - Stripe PaymentIntent for online checkout and client-side status sync."""

from typing import List, Literal, Optional

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException
from pydantic import BaseModel, EmailStr, Field

from auth import current_user
from config import settings
from db import get_payment_by_intent
from emails import send_order_confirmation
from payment_flow import process_successful_payment, start_online_checkout, update_payment_status
from stripe_adapter import retrieve_payment_intent

from api.orders import OrderItemBody

router = APIRouter(prefix="/api/v1/payments", tags=["Payments"])


class CustomerBody(BaseModel):
    name: str = Field(..., min_length=1)
    email: EmailStr
    phone: Optional[str] = None


class ShippingBody(BaseModel):
    address: str = ""
    delivery_type: Literal["pickup", "delivery"]
    delivery_datetime: Optional[str] = None
    courier_city_id: Optional[str] = None


class CreateIntentBody(BaseModel):
    """Online checkout. Guests send ``items``; signed-in users pay for their cart."""

    customer: CustomerBody
    shipping: ShippingBody
    items: Optional[List[OrderItemBody]] = None


class SyncBody(BaseModel):
    payment_intent_id: str


@router.post("/intent")
async def create_intent(body: CreateIntentBody, user: Optional[dict] = Depends(current_user)):
    """Create pending order + payment, return the PaymentIntent client secret."""
    items = None
    if body.items is not None or not user:
        items = [i.model_dump(exclude_none=True) for i in body.items or []]
    customer = body.customer.model_dump()
    customer["email"] = str(customer["email"])

    return await start_online_checkout(
        user_id=user["id"] if user else None,
        customer=customer,
        shipping_address=body.shipping.address,
        delivery_type=body.shipping.delivery_type,
        delivery_datetime=body.shipping.delivery_datetime,
        courier_city_id=body.shipping.courier_city_id,
        items=items,
        currency=settings.payment_currency,
    )


@router.post("/sync")
async def sync_intent(body: SyncBody, background_tasks: BackgroundTasks):
    """Pull the intent's status from Stripe after client-side confirmation."""
    record = await get_payment_by_intent(body.payment_intent_id)
    if not record:
        raise HTTPException(status_code=404, detail="Payment not found")

    intent = await retrieve_payment_intent(body.payment_intent_id)
    if intent["status"] == "succeeded":
        processed = await process_successful_payment(
            body.payment_intent_id, charge_id=intent.get("latest_charge_id")
        )
        order_id = (processed or {}).get("order_id") or record["order_id"]
        background_tasks.add_task(send_order_confirmation, str(order_id))
        return {
            "payment_intent_id": intent["payment_intent_id"],
            "status": "succeeded",
            "order_id": order_id,
            "payment_id": (processed or {}).get("payment_id") or record["id"],
            "client_secret": intent["client_secret"],
            "last_error": None,
        }

    await update_payment_status(body.payment_intent_id, intent["status"], intent.get("last_error"))
    return {
        "payment_intent_id": intent["payment_intent_id"],
        "status": intent["status"],
        "order_id": record["order_id"],
        "payment_id": record["id"],
        "client_secret": intent["client_secret"],
        "last_error": intent.get("last_error"),
    }
