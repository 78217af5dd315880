"""Storefront Service - Ballon Boutique catalog, cart, checkout, payments and admin API."""

import sys
from pathlib import Path

_root = Path(__file__).resolve().parents[2]
_svc = Path(__file__).resolve().parent
sys.path.insert(0, str(_root))
sys.path.insert(0, str(_svc))

from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from api.cart import router as cart_router
from api.catalog import router as catalog_router
from api.delivery import router as delivery_router
from api.discounts import router as discounts_router
from api.media import router as media_router
from api.orders import router as orders_router
from api.payments import router as payments_router
from api.seo import router as seo_router
from auth import user_from_request
from config import settings
from webhooks.stripe_webhook import router as stripe_webhook_router

# Shared packages
from packages.shared.errors import BoutiqueError
from packages.shared.errors.middleware import (
    boutique_exception_handler,
    generic_exception_handler,
    request_id_middleware,
)
from packages.shared.monitoring import (
    DependencyCheck,
    DependencyStatus,
    HealthChecker,
    configure_logging,
    health_router,
)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Startup/shutdown lifespan."""
    configure_logging(
        service_name="storefront-service",
        level=settings.log_level,
        json_format=settings.is_production,
    )
    yield


app = FastAPI(
    title="Ballon Boutique Storefront",
    description="Catalog, cart, delivery slots, checkout, Stripe payments and admin",
    version="1.0.0",
    lifespan=lifespan,
)

# CORS
origins = [o.strip() for o in settings.cors_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=origins if origins else ["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# Auth: resolve bearer session token into request.state.user
@app.middleware("http")
async def auth_middleware(request, call_next):
    request.state.user = user_from_request(request)
    return await call_next(request)


# Request ID (registered last so it runs first)
app.middleware("http")(request_id_middleware)

# Exception handlers
app.add_exception_handler(BoutiqueError, boutique_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)

# Health
health_checker = HealthChecker(service_name="storefront-service", version="1.0.0")


async def db_health_check() -> DependencyCheck:
    """Check Supabase connectivity."""
    from db import get_supabase

    client = get_supabase()
    if not client:
        return DependencyCheck(
            name="supabase",
            status=DependencyStatus.UNHEALTHY,
            message="Supabase not configured",
        )
    try:
        client.table("products").select("id").limit(1).execute()
        return DependencyCheck(name="supabase", status=DependencyStatus.HEALTHY)
    except Exception as e:
        return DependencyCheck(
            name="supabase",
            status=DependencyStatus.UNHEALTHY,
            message=str(e),
        )


async def stripe_health_check() -> DependencyCheck:
    """Stripe is optional for cash-only operation."""
    if settings.stripe_configured:
        return DependencyCheck(name="stripe", status=DependencyStatus.HEALTHY)
    return DependencyCheck(
        name="stripe",
        status=DependencyStatus.DEGRADED,
        message="STRIPE_SECRET_KEY not set; online payments disabled",
    )


health_checker.add_check("supabase", db_health_check)
health_checker.add_check("stripe", stripe_health_check)
app.include_router(health_router(health_checker))

app.include_router(catalog_router)
app.include_router(cart_router)
app.include_router(delivery_router)
app.include_router(orders_router)
app.include_router(payments_router)
app.include_router(discounts_router)
app.include_router(seo_router)
app.include_router(media_router)
app.include_router(stripe_webhook_router)


@app.get("/")
async def root():
    return {
        "service": "storefront-service",
        "version": "1.0.0",
        "endpoints": {
            "products": "GET /api/v1/products",
            "delivery_slots": "GET /api/v1/delivery/slots?date=YYYY-MM-DD",
            "orders": "POST /api/v1/orders",
            "payment_intent": "POST /api/v1/payments/intent",
            "stripe_webhook": "POST /webhooks/stripe",
            "health": "GET /health",
        },
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=8000)
