"""Discount resolution: which percentage applies to a product right now.

Precedence is product scope, then category group, then category. Within a
scope the highest percentage wins; ties go to the most recently created.
"""

from datetime import datetime, timezone
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional

from .catalog import product_categories
from .delivery_slots import parse_iso
from .errors import ValidationError

SCOPE_TYPES = ("product", "group", "category")

_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def round_currency(value: float) -> float:
    return float(Decimal(str(value)).quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def is_discount_active(discount: Dict[str, Any], now: Optional[datetime] = None) -> bool:
    """Active flag set, inside the optional window, and a positive percentage."""
    if not discount.get("is_active"):
        return False
    now = now or datetime.now(timezone.utc)
    starts_at = parse_iso(discount.get("starts_at"))
    if starts_at is not None and now < starts_at:
        return False
    ends_at = parse_iso(discount.get("ends_at"))
    if ends_at is not None and now > ends_at:
        return False
    return float(discount.get("percentage") or 0) > 0


def filter_active(
    discounts: Iterable[Dict[str, Any]], now: Optional[datetime] = None
) -> List[Dict[str, Any]]:
    now = now or datetime.now(timezone.utc)
    return [d for d in discounts if is_discount_active(d, now)]


def _best_key(discount: Dict[str, Any]):
    created = parse_iso(discount.get("created_at")) or _EPOCH
    return (float(discount.get("percentage") or 0), created)


def pick_best_discount(discounts: List[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if not discounts:
        return None
    return max(discounts, key=_best_key)


def resolve_discount_for_product(
    product: Dict[str, Any],
    discounts: List[Dict[str, Any]],
) -> Optional[Dict[str, Any]]:
    """Best active discount for ``product`` from already-filtered ``discounts``."""
    if not discounts:
        return None

    product_id = str(product.get("id"))
    best = pick_best_discount([
        d for d in discounts
        if d.get("scope_type") == "product" and str(d.get("product_id")) == product_id
    ])
    if best:
        return best

    group = product.get("category_group")
    best = pick_best_discount([
        d for d in discounts
        if d.get("scope_type") == "group" and d.get("category_group") == group
    ])
    if best:
        return best

    categories = product_categories(product)
    category_matches = []
    for d in discounts:
        if d.get("scope_type") != "category":
            continue
        if d.get("category") and d["category"] not in categories:
            continue
        if d.get("category_group") and d["category_group"] != group:
            continue
        category_matches.append(d)
    return pick_best_discount(category_matches)


def apply_discount_to_amount(amount: float, percentage: Optional[float] = None) -> float:
    """Discounted amount rounded to cents."""
    if not percentage or percentage <= 0:
        return round_currency(amount)
    factor = max(0.0, 1 - percentage / 100)
    return round_currency(amount * factor)


def price_with_discount(
    product: Dict[str, Any], discounts: List[Dict[str, Any]]
) -> Dict[str, Any]:
    """Product dict annotated with ``discount_pct`` and ``discounted_price`` for listings."""
    discount = resolve_discount_for_product(product, discounts)
    price = float(product.get("price") or 0)
    pct = float(discount["percentage"]) if discount else None
    return {
        **product,
        "discount_pct": pct,
        "discounted_price": apply_discount_to_amount(price, pct) if discount else None,
    }


def validate_discount_input(
    percentage: float,
    scope_type: str,
    product_id: Optional[str] = None,
    category_group: Optional[str] = None,
    category: Optional[str] = None,
) -> None:
    if percentage <= 0 or percentage > 100:
        raise ValidationError("Discount percentage must be between 0 and 100")
    if scope_type not in SCOPE_TYPES:
        raise ValidationError(f"Unknown discount scope: {scope_type}")
    if scope_type == "product" and not product_id:
        raise ValidationError("Product discount requires a product")
    if scope_type == "group" and not category_group:
        raise ValidationError("Group discount requires a category group")
    if scope_type == "category" and not category:
        raise ValidationError("Category discount requires a category")
