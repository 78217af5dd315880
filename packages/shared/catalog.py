"""Catalog helpers: category normalisation, filtering, sorting and page sizes."""

import re
import unicodedata
from typing import Any, Dict, Iterable, List, Optional
from urllib.parse import unquote

_SEPARATORS = re.compile(r"[_\s]+")
_NON_SLUG = re.compile(r"[^a-z0-9]+")

SORT_OPTIONS = ("newest", "price_asc", "price_desc", "popular")

# Storefront grid: 2 columns on mobile, auto-fill by min item width above that.
GRID_SM_BREAKPOINT = 640
GRID_2XL_BREAKPOINT = 1536
GRID_SM_MIN_ITEM_WIDTH = 240
GRID_2XL_MIN_ITEM_WIDTH = 280
MIN_ITEMS_TO_LOAD = 8


def product_categories(product: Dict[str, Any]) -> List[str]:
    """Categories as a clean list; legacy rows store a comma-separated string."""
    raw = product.get("categories")
    if isinstance(raw, str):
        raw = raw.split(",")
    if not isinstance(raw, list):
        return []
    return [c.strip() for c in raw if isinstance(c, str) and c.strip()]


def _slugish(value: str) -> str:
    return _SEPARATORS.sub("-", value.strip().lower())


def normalize_group(value: Optional[str], groups: Iterable[Dict[str, Any]]) -> Optional[str]:
    """Map a user/URL supplied group name to a known group value.

    Matches by value, then label, then category value, then substring.
    """
    if not value:
        return None
    normalized = _slugish(unquote(value))
    groups = list(groups)

    for key in ("value", "label", "category_value"):
        for group in groups:
            if _slugish(group.get(key) or "") == normalized:
                return group["value"]

    for group in groups:
        if group["value"] in normalized:
            return group["value"]
    return None


def filter_products(
    products: Iterable[Dict[str, Any]],
    category_group: Optional[str] = None,
    category: Optional[str] = None,
    min_price: Optional[float] = None,
    max_price: Optional[float] = None,
    in_stock_only: bool = False,
    search: Optional[str] = None,
) -> List[Dict[str, Any]]:
    needle = (search or "").strip().lower()
    category_key = (category or "").strip().lower()
    out = []
    for p in products:
        if category_group and p.get("category_group") != category_group:
            continue
        if category_key and category_key not in {c.lower() for c in product_categories(p)}:
            continue
        price = float(p.get("price") or 0)
        if min_price is not None and price < min_price:
            continue
        if max_price is not None and price > max_price:
            continue
        if in_stock_only and not p.get("in_stock"):
            continue
        if needle:
            haystack = f"{p.get('name', '')} {p.get('description', '')}".lower()
            if needle not in haystack:
                continue
        out.append(p)
    return out


def sort_products(products: List[Dict[str, Any]], sort: str = "newest") -> List[Dict[str, Any]]:
    if sort == "price_asc":
        return sorted(products, key=lambda p: float(p.get("price") or 0))
    if sort == "price_desc":
        return sorted(products, key=lambda p: float(p.get("price") or 0), reverse=True)
    if sort == "popular":
        return sorted(products, key=lambda p: int(p.get("sold_count") or 0), reverse=True)
    return sorted(products, key=lambda p: str(p.get("created_at") or ""), reverse=True)


def columns_for_width(width: int) -> int:
    if width < GRID_SM_BREAKPOINT:
        return 2
    if width >= GRID_2XL_BREAKPOINT:
        return width // GRID_2XL_MIN_ITEM_WIDTH
    return width // GRID_SM_MIN_ITEM_WIDTH


def items_to_load(viewport_width: Optional[int] = None) -> int:
    """Page size that fills two full grid rows, never fewer than 8 items."""
    columns = columns_for_width(viewport_width or 0)
    return max(columns * 2, MIN_ITEMS_TO_LOAD)


def slugify(name: str) -> str:
    """'Herz Ballon Set für Sie' -> 'herz-ballon-set-fur-sie'."""
    ascii_name = unicodedata.normalize("NFKD", name or "").encode("ascii", "ignore").decode()
    return _NON_SLUG.sub("-", ascii_name.lower()).strip("-")
