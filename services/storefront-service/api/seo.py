"""SEO API - store Organization JSON-LD and public store info."""

from fastapi import APIRouter

from config import settings
from store import PAYMENT_CONFIG, STORE_INFO, formatted_store_address

from packages.shared.json_ld import organization_ld

router = APIRouter(prefix="/api/v1", tags=["SEO"])


@router.get("/seo/organization")
async def organization():
    return organization_ld(
        name=STORE_INFO["name"],
        url=settings.site_url,
        address=STORE_INFO["address"],
        phone=STORE_INFO["contact"]["phone"],
        email=STORE_INFO["contact"]["email"],
        description=STORE_INFO["slogan"],
        logo=f"{settings.site_url}/logo.png",
    )


@router.get("/store")
async def store_info():
    """Contact, hours and payment rules shown in the footer and at checkout."""
    return {
        **STORE_INFO,
        "formatted_address": formatted_store_address(),
        "payment": PAYMENT_CONFIG,
    }
