"""Schema.org JSON-LD for storefront SEO and email markup."""

from .organization import organization_ld
from .order import order_ld
from .product import product_ld, product_list_ld

__all__ = [
    "organization_ld",
    "order_ld",
    "product_ld",
    "product_list_ld",
]
