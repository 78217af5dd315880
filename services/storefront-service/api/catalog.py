"""Catalog API - product listing, detail and admin product management."""

from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field, field_validator

from auth import require_admin
from config import settings
from db import (
    create_product,
    delete_product,
    get_product,
    get_product_by_slug,
    list_discounts,
    list_products,
    update_product,
)
from store import CATEGORY_GROUPS, SIZED_CATEGORY_GROUPS, STORE_INFO

from packages.shared.catalog import (
    SORT_OPTIONS,
    filter_products,
    items_to_load,
    normalize_group,
    product_categories,
    slugify,
    sort_products,
)
from packages.shared.discounts import filter_active, price_with_discount
from packages.shared.errors import ValidationError
from packages.shared.json_ld import product_ld, product_list_ld

router = APIRouter(prefix="/api/v1", tags=["Catalog"])


class MiniSetSize(BaseModel):
    label: str = Field(..., min_length=1)
    price: float = Field(..., ge=0)

    @field_validator("label")
    @classmethod
    def _label_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Size label is required")
        return v.strip()


class Personalizable(BaseModel):
    name: bool = False
    number: bool = False


class ProductBody(BaseModel):
    """Admin product form."""

    name: str = Field(..., min_length=3)
    description: str = Field(..., min_length=10)
    price: float = Field(..., ge=0)
    categories: List[str] = Field(..., min_length=1)
    category_group: Optional[str] = None
    in_stock: bool = True
    image_urls: List[str] = Field(default_factory=list)
    mini_set_sizes: List[MiniSetSize] = Field(default_factory=list)
    is_personalizable: Personalizable = Field(default_factory=Personalizable)
    available_colors: List[str] = Field(default_factory=list)


class ProductUpdateBody(BaseModel):
    """Product update (partial)."""

    name: Optional[str] = Field(None, min_length=3)
    description: Optional[str] = Field(None, min_length=10)
    price: Optional[float] = Field(None, ge=0)
    categories: Optional[List[str]] = Field(None, min_length=1)
    category_group: Optional[str] = None
    in_stock: Optional[bool] = None
    image_urls: Optional[List[str]] = None
    mini_set_sizes: Optional[List[MiniSetSize]] = None
    is_personalizable: Optional[Personalizable] = None
    available_colors: Optional[List[str]] = None


def _check_sizes(category_group: Optional[str], sizes) -> None:
    if sizes and category_group not in SIZED_CATEGORY_GROUPS:
        raise ValidationError("Sizes are only available for mini-sets")


async def _unique_slug(name: str, exclude_id: Optional[str] = None) -> str:
    base = slugify(name) or "product"
    slug, n = base, 2
    while True:
        existing = await get_product_by_slug(slug)
        if not existing or str(existing["id"]) == str(exclude_id):
            return slug
        slug = f"{base}-{n}"
        n += 1


@router.get("/products")
async def get_products(
    group: Optional[str] = Query(None, description="Category group (value, label or URL form)"),
    category: Optional[str] = None,
    min_price: Optional[float] = Query(None, ge=0),
    max_price: Optional[float] = Query(None, ge=0),
    in_stock: bool = False,
    search: Optional[str] = None,
    sort: str = Query("newest"),
    offset: int = Query(0, ge=0),
    limit: Optional[int] = Query(None, ge=1, le=100),
    viewport_width: Optional[int] = Query(None, ge=0),
):
    """Filtered, sorted, paginated catalog with active discounts applied."""
    if sort not in SORT_OPTIONS:
        raise HTTPException(status_code=400, detail=f"sort must be one of {', '.join(SORT_OPTIONS)}")
    group_value = normalize_group(group, CATEGORY_GROUPS) if group else None
    if group and not group_value:
        return {"products": [], "total": 0, "offset": offset, "limit": limit or items_to_load(viewport_width)}

    products = filter_products(
        await list_products(),
        category_group=group_value,
        category=category,
        min_price=min_price,
        max_price=max_price,
        in_stock_only=in_stock,
        search=search,
    )
    products = sort_products(products, sort)
    page_size = limit or items_to_load(viewport_width)
    page = products[offset:offset + page_size]

    discounts = filter_active(await list_discounts(include_inactive=False))
    page = [price_with_discount(p, discounts) for p in page]
    return {
        "products": page,
        "total": len(products),
        "offset": offset,
        "limit": page_size,
        "json_ld": product_list_ld(page, base_url=settings.site_url),
    }


@router.get("/categories")
async def get_category_groups():
    return {"groups": CATEGORY_GROUPS}


@router.get("/products/{slug}")
async def get_product_detail(slug: str):
    """Product by slug (or id), with discount and Product JSON-LD."""
    product = await get_product_by_slug(slug) or await get_product(slug)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    discounts = filter_active(await list_discounts(include_inactive=False))
    priced = price_with_discount(product, discounts)
    categories = product_categories(product)
    price = priced["discounted_price"] if priced["discounted_price"] is not None else priced.get("price")
    priced["json_ld"] = product_ld(
        product_id=str(product["id"]),
        name=product["name"],
        description=product.get("description"),
        price=float(price) if price is not None else None,
        in_stock=bool(product.get("in_stock")),
        images=product.get("image_urls") or None,
        url=f"{settings.site_url}/catalog/{product.get('slug') or product['id']}",
        category=categories[0] if categories else None,
        brand=STORE_INFO["name"],
    )
    return priced


@router.post("/admin/products")
async def add_product(body: ProductBody, _: dict = Depends(require_admin)):
    """Create a product."""
    _check_sizes(body.category_group, body.mini_set_sizes)
    data = body.model_dump()
    data["slug"] = await _unique_slug(body.name)
    product = await create_product(data)
    if not product:
        raise HTTPException(status_code=500, detail="Failed to create product")
    return {"product_id": str(product["id"]), "slug": product.get("slug"), "message": "Product created successfully"}


@router.patch("/admin/products/{product_id}")
async def update_product_endpoint(
    product_id: str,
    body: ProductUpdateBody,
    _: dict = Depends(require_admin),
):
    """Update a product."""
    product = await get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    updates = body.model_dump(exclude_unset=True)
    group = updates.get("category_group", product.get("category_group"))
    sizes = updates.get("mini_set_sizes", product.get("mini_set_sizes"))
    _check_sizes(group, sizes)
    if "name" in updates and updates["name"] != product.get("name"):
        updates["slug"] = await _unique_slug(updates["name"], exclude_id=product_id)
    result = await update_product(product_id, **updates)
    if not result:
        raise HTTPException(status_code=500, detail="Failed to update product")
    return {"message": "Product updated", "product_id": product_id}


@router.delete("/admin/products/{product_id}")
async def delete_product_endpoint(product_id: str, _: dict = Depends(require_admin)):
    """Delete a product."""
    product = await get_product(product_id)
    if not product:
        raise HTTPException(status_code=404, detail="Product not found")
    ok = await delete_product(product_id)
    if not ok:
        raise HTTPException(status_code=500, detail="Failed to delete product")
    return {"message": "Product deleted", "product_id": product_id}
