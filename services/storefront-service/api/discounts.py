"""Discounts API - admin management and the public list of running discounts."""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field

from auth import require_admin
from db import (
    create_discount,
    delete_discount,
    get_discount,
    get_product,
    get_product_discount,
    get_products_by_ids,
    list_discounts,
    update_discount,
)

from packages.shared.discounts import filter_active, validate_discount_input

router = APIRouter(prefix="/api/v1", tags=["Discounts"])

ScopeType = Literal["product", "group", "category"]

PUBLIC_FIELDS = ("id", "name", "percentage", "scope_type", "product_id", "category_group", "category", "product_name")


# Fields an admin may reset to null on edit.
CLEARABLE_FIELDS = {"product_id", "category_group", "category", "starts_at", "ends_at"}


class DiscountBody(BaseModel):
    name: str = Field(..., min_length=1)
    percentage: float
    scope_type: ScopeType
    product_id: Optional[str] = None
    category_group: Optional[str] = None
    category: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: bool = True


class DiscountUpdateBody(BaseModel):
    name: Optional[str] = None
    percentage: Optional[float] = None
    scope_type: Optional[ScopeType] = None
    product_id: Optional[str] = None
    category_group: Optional[str] = None
    category: Optional[str] = None
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    is_active: Optional[bool] = None


class ProductDiscountBody(BaseModel):
    percentage: float


def _clean(data: Dict[str, Any]) -> Dict[str, Any]:
    """Trim text fields, blank -> None, datetimes -> ISO strings."""
    out = {}
    for key, value in data.items():
        if isinstance(value, str):
            value = value.strip() or None
        elif isinstance(value, datetime):
            value = value.isoformat()
        out[key] = value
    return out


def _validate(d: Dict[str, Any]) -> None:
    validate_discount_input(
        percentage=float(d.get("percentage") or 0),
        scope_type=d.get("scope_type"),
        product_id=d.get("product_id"),
        category_group=d.get("category_group"),
        category=d.get("category"),
    )


async def _with_product_names(discounts: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    ids = [str(d["product_id"]) for d in discounts if d.get("scope_type") == "product" and d.get("product_id")]
    products = await get_products_by_ids(ids)
    return [
        {**d, "product_name": (products.get(str(d.get("product_id"))) or {}).get("name")}
        for d in discounts
    ]


@router.get("/admin/discounts")
async def admin_list_discounts(include_inactive: bool = False, _: dict = Depends(require_admin)):
    discounts = await list_discounts(include_inactive=include_inactive)
    return {"discounts": await _with_product_names(discounts)}


@router.get("/discounts/active")
async def active_discounts():
    """Discounts running right now (no admin fields)."""
    discounts = filter_active(await list_discounts(include_inactive=False))
    enriched = await _with_product_names(discounts)
    return {"discounts": [{k: d.get(k) for k in PUBLIC_FIELDS} for d in enriched]}


@router.post("/admin/discounts")
async def add_discount(body: DiscountBody, _: dict = Depends(require_admin)):
    data = _clean(body.model_dump())
    _validate(data)
    discount = await create_discount(data)
    if not discount:
        raise HTTPException(status_code=500, detail="Failed to create discount")
    return {"discount_id": str(discount["id"]), "message": "Discount created"}


@router.patch("/admin/discounts/{discount_id}")
async def edit_discount(discount_id: str, body: DiscountUpdateBody, _: dict = Depends(require_admin)):
    """Merge the changes over the stored discount, then validate the result."""
    existing = await get_discount(discount_id)
    if not existing:
        raise HTTPException(status_code=404, detail="Discount not found")
    updates = {
        k: v
        for k, v in _clean(body.model_dump(exclude_unset=True)).items()
        if v is not None or k in CLEARABLE_FIELDS
    }
    _validate({**existing, **updates})
    result = await update_discount(discount_id, **updates)
    if not result:
        raise HTTPException(status_code=500, detail="Failed to update discount")
    return {"message": "Discount updated", "discount_id": discount_id}


@router.delete("/admin/discounts/{discount_id}")
async def remove_discount(discount_id: str, _: dict = Depends(require_admin)):
    ok = await delete_discount(discount_id)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to delete discount")
    return {"message": "Discount deleted", "discount_id": discount_id}


@router.put("/admin/products/{product_id}/discount")
async def set_product_discount(product_id: str, body: ProductDiscountBody, _: dict = Depends(require_admin)):
    """Quick per-product discount from the product table. Zero or less removes it."""
    product = await get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    existing = await get_product_discount(product_id)

    if body.percentage <= 0:
        if existing:
            await delete_discount(existing["id"])
        return {"message": "Product discount removed", "product_id": product_id}

    validate_discount_input(body.percentage, "product", product_id=product_id)
    if existing:
        await update_discount(
            existing["id"],
            name=existing.get("name") or product["name"],
            percentage=body.percentage,
            is_active=True,
        )
    else:
        await create_discount({
            "name": product["name"],
            "percentage": body.percentage,
            "scope_type": "product",
            "product_id": product_id,
            "is_active": True,
        })
    return {"message": "Product discount set", "product_id": product_id, "percentage": body.percentage}
