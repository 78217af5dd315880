"""Cart API - per-user cart lines with size and personalization."""

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from auth import require_user
from db import (
    clear_cart,
    delete_cart_item,
    get_product,
    insert_cart_item,
    list_cart_items,
    update_cart_item,
)

from packages.shared.errors import ValidationError
from packages.shared.personalization import normalize_personalization, personalization_signature

router = APIRouter(prefix="/api/v1/cart", tags=["Cart"])


class PersonalizationBody(BaseModel):
    text: Optional[str] = None
    color: Optional[str] = None
    number: Optional[str] = None


class AddToCartBody(BaseModel):
    product_id: str
    quantity: int = Field(1, ge=1)
    size: Optional[str] = None
    personalization: Optional[PersonalizationBody] = None


class QuantityBody(BaseModel):
    quantity: int


def _variant_for(product: Dict[str, Any], size: Optional[str]) -> Optional[Dict[str, Any]]:
    sizes = product.get("mini_set_sizes") or []
    requested = (size or "").strip()
    if not sizes:
        if requested:
            raise ValidationError("Variant size is not supported for this product")
        return None
    if not requested:
        raise ValidationError("Please select a size for this mini-set")
    match = next(
        (s for s in sizes if str(s.get("label", "")).strip().lower() == requested.lower()),
        None,
    )
    if match is None:
        raise ValidationError("Selected size is not available")
    return {"size": str(match["label"]).strip(), "unit_price": float(match["price"])}


@router.get("")
async def get_cart(user: dict = Depends(require_user)):
    items = await list_cart_items(user["id"])
    return {"items": items, "count": sum(int(i.get("quantity") or 0) for i in items)}


@router.post("/items")
async def add_to_cart(body: AddToCartBody, user: dict = Depends(require_user)):
    """Add a line, merging with an identical one (same product, size and personalization)."""
    product = await get_product(body.product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    if not product.get("in_stock"):
        raise ValidationError(f"{product['name']} is out of stock")

    variant = _variant_for(product, body.size)
    raw = body.personalization.model_dump() if body.personalization else None
    personalization = normalize_personalization(raw)
    signature = personalization_signature(raw)

    for item in await list_cart_items(user["id"]):
        same_size = ((item.get("variant") or {}).get("size")) == ((variant or {}).get("size"))
        if (
            str(item.get("product_id")) == body.product_id
            and same_size
            and (item.get("personalization_signature") or personalization_signature(item.get("personalization"))) == signature
        ):
            updated = await update_cart_item(
                item["id"], user["id"], quantity=int(item.get("quantity") or 0) + body.quantity
            )
            if not updated:
                raise HTTPException(status_code=500, detail="Failed to update cart")
            return {"item": updated, "merged": True}

    created = await insert_cart_item({
        "user_id": user["id"],
        "product_id": body.product_id,
        "quantity": body.quantity,
        "variant": variant,
        "personalization": personalization,
        "personalization_signature": signature,
    })
    if not created:
        raise HTTPException(status_code=500, detail="Failed to add to cart")
    return {"item": created, "merged": False}


@router.patch("/items/{item_id}")
async def set_quantity(item_id: str, body: QuantityBody, user: dict = Depends(require_user)):
    """Set a line's quantity; zero or less removes it."""
    if body.quantity <= 0:
        await delete_cart_item(item_id, user["id"])
        return {"removed": True, "item_id": item_id}
    updated = await update_cart_item(item_id, user["id"], quantity=body.quantity)
    if not updated:
        raise HTTPException(status_code=404, detail="Cart item not found")
    return {"item": updated}


@router.delete("/items/{item_id}")
async def remove_item(item_id: str, user: dict = Depends(require_user)):
    ok = await delete_cart_item(item_id, user["id"])
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to remove item")
    return {"removed": True, "item_id": item_id}


@router.delete("")
async def empty_cart(user: dict = Depends(require_user)):
    ok = await clear_cart(user["id"])
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to clear cart")
    return {"cleared": True}
