"""Schema.org JSON-LD for Product / ItemList."""

from typing import Any, Dict, List, Optional

IN_STOCK = "https://schema.org/InStock"
OUT_OF_STOCK = "https://schema.org/OutOfStock"


def product_ld(
    product_id: str,
    name: str,
    description: Optional[str] = None,
    price: Optional[float] = None,
    currency: str = "EUR",
    in_stock: bool = True,
    images: Optional[List[str]] = None,
    url: Optional[str] = None,
    category: Optional[str] = None,
    brand: Optional[str] = None,
    **kwargs: Any,
) -> Dict[str, Any]:
    """Single product as Schema.org Product with an Offer."""
    out: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Product",
        "sku": product_id,
        "name": name,
    }
    if description:
        out["description"] = description
    if images:
        out["image"] = images
    if category:
        out["category"] = category
    if brand:
        out["brand"] = {"@type": "Brand", "name": brand}
    if price is not None:
        offer: Dict[str, Any] = {
            "@type": "Offer",
            "price": f"{price:.2f}",
            "priceCurrency": currency,
            "availability": IN_STOCK if in_stock else OUT_OF_STOCK,
        }
        if url:
            offer["url"] = url
        out["offers"] = offer
    if url:
        out["url"] = url
    out.update(kwargs)
    return out


def product_list_ld(
    products: List[Dict[str, Any]],
    base_url: str = "",
) -> Dict[str, Any]:
    """ItemList for a catalog page. Uses the discounted price when present."""
    items = []
    for position, p in enumerate(products, start=1):
        price = p.get("discounted_price")
        if price is None:
            price = p.get("price")
        slug = p.get("slug") or p.get("id")
        items.append({
            "@type": "ListItem",
            "position": position,
            "item": product_ld(
                product_id=str(p.get("id", "")),
                name=p.get("name", ""),
                price=float(price) if price is not None else None,
                in_stock=bool(p.get("in_stock", True)),
                images=(p.get("image_urls") or [])[:1] or None,
                url=f"{base_url}/catalog/{slug}" if base_url and slug else None,
            ),
        })
    return {
        "@context": "https://schema.org",
        "@type": "ItemList",
        "numberOfItems": len(items),
        "itemListElement": items,
    }
