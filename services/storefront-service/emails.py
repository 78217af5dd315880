"""Order confirmation email: claim, render and send once per order."""

import logging
import smtplib
from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from fastapi.templating import Jinja2Templates
from starlette.concurrency import run_in_threadpool

from config import settings
from db import get_order, update_order
from mailer import send_email
from store import STORE_INFO

from packages.shared.delivery_slots import parse_iso
from packages.shared.json_ld import order_ld

logger = logging.getLogger(__name__)

_tpl = Path(__file__).resolve().parent / "templates"
templates = Jinja2Templates(directory=str(_tpl))

SEND_CLAIM_TTL = timedelta(minutes=5)

PAYMENT_METHOD_LABELS = {
    "full_online": "Vollständige Online-Zahlung",
    "partial_online": "Teilweise Online-Zahlung",
    "cash": "Barzahlung bei Abholung",
}
DELIVERY_TYPE_LABELS = {"pickup": "Selbstabholung", "delivery": "Kurierlieferung"}
STATUS_LABELS = {"pending": "Ausstehend", "confirmed": "Bestätigt"}


def should_claim(order: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """False when the email already went out or another send started recently."""
    if order.get("confirmation_email_sent_at"):
        return False
    now = now or datetime.now(timezone.utc)
    sending_at = parse_iso(order.get("confirmation_email_sending_at"))
    return sending_at is None or now - sending_at >= SEND_CLAIM_TTL


def email_subject(order_id: Any) -> str:
    return f"Bestellbestätigung #{str(order_id)[-8:]} - Ballon Boutique"


def format_money(value: Any, currency: str = "EUR") -> str:
    """de-AT style: € 1.234,50"""
    amount = f"{float(value or 0):,.2f}".replace(",", "_").replace(".", ",").replace("_", ".")
    symbol = "€" if currency.upper() == "EUR" else currency.upper()
    return f"{symbol} {amount}"


def format_local_datetime(value: Any) -> Optional[str]:
    instant = parse_iso(value)
    if instant is None:
        return None
    return instant.astimezone(settings.delivery_window.tz).strftime("%d.%m.%Y, %H:%M")


def confirmation_url(order_id: Any) -> str:
    return f"{settings.site_url}/checkout/confirmant/{order_id}"


def render_confirmation(order: Dict[str, Any]) -> Tuple[str, str]:
    """(html, text) bodies for a confirmed order."""
    currency = order.get("currency") or "EUR"
    total = order.get("grand_total")
    if total is None:
        total = order.get("total_amount")
    context = {
        "order": order,
        "short_id": str(order["id"])[-8:],
        "items": order.get("items") or [],
        "total": total,
        "currency": currency,
        "delivery_label": DELIVERY_TYPE_LABELS.get(order.get("delivery_type") or "pickup"),
        "payment_label": PAYMENT_METHOD_LABELS.get(order.get("payment_method") or "full_online"),
        "status_label": STATUS_LABELS.get(order.get("status"), order.get("status")),
        "scheduled_for": format_local_datetime(order.get("delivery_datetime")),
        "confirmation_url": confirmation_url(order["id"]),
        "store": STORE_INFO,
        "json_ld": order_ld(order, STORE_INFO["name"], confirmation_url(order["id"])),
        "money": lambda v: format_money(v, currency),
    }
    html = templates.get_template("emails/order_confirmation.html").render(context)
    text = templates.get_template("emails/order_confirmation.txt").render(context)
    return html, text.strip()


async def send_order_confirmation(order_id: str) -> bool:
    """Send the confirmation email for a confirmed order at most once.

    Returns True when the email was sent or nothing needed sending.
    """
    order = await get_order(order_id)
    if not order:
        logger.warning("Confirmation email: order %s not found", order_id)
        return False
    if not should_claim(order):
        return True
    if order.get("status") != "confirmed":
        return True

    await update_order(order_id, confirmation_email_sending_at=datetime.now(timezone.utc).isoformat())

    html, text = render_confirmation(order)
    try:
        sent = await run_in_threadpool(send_email, order["customer_email"], email_subject(order_id), html, text)
    except (smtplib.SMTPException, OSError) as e:
        logger.error("Order confirmation email failed for %s: %s", order_id, e)
        await update_order(
            order_id,
            confirmation_email_sending_at=None,
            confirmation_email_last_status=getattr(e, "smtp_code", None) or 500,
            confirmation_email_last_error=str(e),
        )
        return False

    if not sent:
        await update_order(
            order_id,
            confirmation_email_sending_at=None,
            confirmation_email_last_status=503,
            confirmation_email_last_error="Email is not configured",
        )
        return False

    await update_order(
        order_id,
        confirmation_email_sent_at=datetime.now(timezone.utc).isoformat(),
        confirmation_email_last_status=None,
        confirmation_email_last_error=None,
    )
    return True
