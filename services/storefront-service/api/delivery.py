"""Delivery API - courier slots and delivery cities."""

from typing import Optional

from fastapi import APIRouter, Query

from config import settings
from db import list_delivery_bookings
from store import COURIER_DELIVERY_CITIES, STORE_INFO

from packages.shared.delivery_slots import build_slots_for_date, mark_availability

router = APIRouter(prefix="/api/v1/delivery", tags=["Delivery"])


@router.get("/slots")
async def delivery_slots(
    date: str = Query(..., description="Local store date, YYYY-MM-DD"),
    ignore_order_id: Optional[str] = Query(None, description="Order being rescheduled"),
):
    """Courier slots for a date with availability against recent bookings.

    Malformed dates return an empty list.
    """
    window = settings.delivery_window
    slots = build_slots_for_date(date, window)
    if not slots:
        return {"date": date, "slots": []}

    bookings = await list_delivery_bookings(limit=settings.recent_orders_scan_limit)
    booked = [
        b.delivery_iso
        for b in bookings
        if not ignore_order_id or b.order_id != ignore_order_id
    ]
    return {
        "date": date,
        "timezone": window.timezone,
        "slots": mark_availability(slots, booked, window),
    }


@router.get("/cities")
async def delivery_cities():
    """Courier cities with price and ETA; other addresses pay the flat fee."""
    return {
        "cities": COURIER_DELIVERY_CITIES,
        "default_fee": STORE_INFO["delivery"]["cost"],
        "hours": STORE_INFO["delivery"]["hours"],
    }
