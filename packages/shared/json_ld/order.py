"""Schema.org JSON-LD for Order (embedded in the confirmation email and page)."""

from typing import Any, Dict, Optional

ORDER_STATUS_URLS = {
    "pending": "https://schema.org/OrderPaymentDue",
    "confirmed": "https://schema.org/OrderProcessing",
    "shipped": "https://schema.org/OrderInTransit",
    "delivered": "https://schema.org/OrderDelivered",
    "canceled": "https://schema.org/OrderCancelled",
}


def order_ld(
    order: Dict[str, Any],
    seller_name: str,
    confirmation_url: Optional[str] = None,
) -> Dict[str, Any]:
    """Order row as Schema.org Order."""
    currency = order.get("currency") or "EUR"
    out: Dict[str, Any] = {
        "@context": "https://schema.org",
        "@type": "Order",
        "orderNumber": str(order.get("id", "")),
        "seller": {"@type": "Organization", "name": seller_name},
        "priceCurrency": currency,
        "price": f"{float(order.get('grand_total') or order.get('total_amount') or 0):.2f}",
        "acceptedOffer": [
            {
                "@type": "Offer",
                "itemOffered": {"@type": "Product", "name": item.get("product_name", "")},
                "price": f"{float(item.get('price') or 0):.2f}",
                "priceCurrency": currency,
                "eligibleQuantity": {"@type": "QuantitativeValue", "value": item.get("quantity", 1)},
            }
            for item in order.get("items") or []
        ],
    }
    status = ORDER_STATUS_URLS.get(order.get("status") or "")
    if status:
        out["orderStatus"] = status
    if order.get("created_at"):
        out["orderDate"] = order["created_at"]
    if confirmation_url:
        out["url"] = confirmation_url
    return out
