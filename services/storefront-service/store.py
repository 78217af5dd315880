"""Ballon Boutique shop constants: store info, courier cities, payment rules, WhatsApp."""

from typing import Any, Dict, List, Optional
from urllib.parse import quote

WHATSAPP_NUMBER = "48572296004"

STORE_INFO: Dict[str, Any] = {
    "name": "Ballon Boutique",
    "slogan": "Wenn Momente zu Emotionen werden",
    "address": {
        "street": "Sandgasse 3",
        "city": "Knittelfeld",
        "postal_code": "8720",
        "country": "Austria",
        "country_code": "AT",
    },
    "contact": {
        "email": "service@ballonboutique.at",
        "phone": "+43 660 713 90 12",
    },
    "delivery": {
        "hours": "16:00-21:00",
        "cost": 16,
    },
    "order_policy": {
        "preparation_hours": 72,
        "cancellation_hours": 48,
    },
}

PAYMENT_METHODS = ("full_online", "partial_online", "cash")
ONLINE_PAYMENT_METHODS = ("full_online", "partial_online")

PAYMENT_CONFIG: Dict[str, Any] = {
    "full_online": {"enabled": True},
    "cash": {"enabled": True, "requires_whatsapp": True, "only_for_pickup": True},
}

COURIER_DELIVERY_CITIES: List[Dict[str, Any]] = [
    {"id": "knittelfeld", "name": "Knittelfeld", "price": 10, "eta_days": {"min": 1, "max": 2}},
    {"id": "spielberg", "name": "Spielberg", "price": 13, "eta_days": {"min": 1, "max": 2}},
    {"id": "fohnsdorf", "name": "Fohnsdorf", "price": 20, "eta_days": {"min": 1, "max": 3}},
    {"id": "judenburg", "name": "Judenburg", "price": 23, "eta_days": {"min": 1, "max": 3}},
    {
        "id": "st-margarethen-bei-knittelfeld",
        "name": "St. Margarethen bei Knittelfeld",
        "price": 11,
        "eta_days": {"min": 1, "max": 2},
    },
    {"id": "kobenz", "name": "Kobenz", "price": 12, "eta_days": {"min": 1, "max": 2}},
    {"id": "kraubath-an-der-mur", "name": "Kraubath an der Mur", "price": 20, "eta_days": {"min": 1, "max": 3}},
    {
        "id": "sankt-michael-in-obersteiermark",
        "name": "Sankt Michael in Obersteiermark",
        "price": 20,
        "eta_days": {"min": 1, "max": 3},
    },
    {"id": "leoben", "name": "Leoben", "price": 36, "eta_days": {"min": 2, "max": 4}},
]

# Storefront category groups. Only mini-sets carry size variants.
CATEGORY_GROUPS: List[Dict[str, Any]] = [
    {
        "value": "balloons",
        "label": "Balloons",
        "category_value": "balloons",
        "subcategories": [
            "Love", "For Kids Boys", "For Kids Girls", "For Her", "For Him",
            "Mom", "Anniversary", "Baby Birth", "Any Event", "Surprise Box",
        ],
    },
    {
        "value": "balloon-bouquets",
        "label": "Balloon Bouquets",
        "category_value": "bouquets",
        "subcategories": ["For Kids"],
    },
    {"value": "mini-sets", "label": "Mini Sets", "category_value": "mini-sets", "subcategories": []},
    {"value": "balloon-in-toys", "label": "Balloon in Toys", "category_value": "toys", "subcategories": []},
]

SIZED_CATEGORY_GROUPS = ("mini-sets",)


def get_courier_city(city_id: Optional[str]) -> Optional[Dict[str, Any]]:
    if not city_id:
        return None
    return next((c for c in COURIER_DELIVERY_CITIES if c["id"] == city_id), None)


def formatted_store_address() -> str:
    a = STORE_INFO["address"]
    return f"{a['street']}, {a['postal_code']} {a['city']}, {a['country']}"


_WHATSAPP_TEXT = {
    "ru": {
        "greeting": "Добрый день! Я хочу подтвердить заказ.",
        "name": "Имя",
        "address": "Адрес",
        "delivery_type": "Способ доставки",
        "datetime": "Дата и время",
        "pickup": "Самовывоз",
        "delivery": "Доставка",
        "not_set": "не указано",
        "items": "Товары",
        "color": "цвет",
        "text": "текст",
        "number": "номер",
        "total": "Итого",
    },
    "de": {
        "greeting": "Guten Tag! Ich möchte meine Bestellung bestätigen.",
        "name": "Name",
        "address": "Adresse",
        "delivery_type": "Lieferart",
        "datetime": "Datum und Uhrzeit",
        "pickup": "Abholung",
        "delivery": "Lieferung",
        "not_set": "nicht angegeben",
        "items": "Produkte",
        "color": "Farbe",
        "text": "Text",
        "number": "Nummer",
        "total": "Gesamt",
    },
}


def whatsapp_order_message(
    customer_name: str,
    customer_email: str,
    shipping_address: str,
    delivery_type: str,
    delivery_datetime: Optional[str] = None,
    items: Optional[List[Dict[str, Any]]] = None,
    total: Optional[float] = None,
    locale: str = "ru",
) -> str:
    """Message a cash customer sends to confirm their order over WhatsApp."""
    t = _WHATSAPP_TEXT.get(locale, _WHATSAPP_TEXT["ru"])
    lines = [
        t["greeting"],
        "",
        f"{t['name']}: {customer_name}",
        f"Email: {customer_email}",
        f"{t['address']}: {shipping_address}",
        f"{t['delivery_type']}: {t['pickup'] if delivery_type == 'pickup' else t['delivery']}",
        f"{t['datetime']}: {delivery_datetime or t['not_set']}",
    ]
    if items:
        lines += ["", f"{t['items']}:"]
        for item in items:
            parts = [f"- {item.get('name') or item.get('product_name')} x{item.get('quantity', 1)}"]
            p = item.get("personalization") or {}
            if p.get("color"):
                parts.append(f"{t['color']}: {p['color']}")
            if p.get("text"):
                parts.append(f"{t['text']}: \"{p['text']}\"")
            if p.get("number"):
                parts.append(f"{t['number']}: {p['number']}")
            lines.append(", ".join(parts))
    if total is not None:
        lines += ["", f"{t['total']}: {total:g} EUR"]
    return "\n".join(lines)


def whatsapp_link(message: str) -> str:
    return f"https://wa.me/{WHATSAPP_NUMBER}?text={quote(message, safe='')}"
