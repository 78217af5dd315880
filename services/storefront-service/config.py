"""Configuration from environment variables."""

import os
import sys
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

_project_root = Path(__file__).resolve().parents[2]
if str(_project_root) not in sys.path:
    sys.path.insert(0, str(_project_root))
load_dotenv(_project_root / ".env")

from packages.shared.delivery_slots import DeliveryWindow, parse_clock  # noqa: E402


def get_env(key: str, default: Optional[str] = None) -> Optional[str]:
    """Get environment variable."""
    return os.getenv(key, default)


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean env var."""
    v = os.getenv(key, "").lower()
    return v in ("1", "true", "yes") if v else default


def get_env_int(key: str, default: int) -> int:
    """Get non-negative int env var (fallback to default on garbage)."""
    v = os.getenv(key)
    if v is None:
        return default
    try:
        return max(0, int(v))
    except ValueError:
        return default


class Settings:
    """Storefront service settings."""

    # Supabase
    supabase_url: str = get_env("SUPABASE_URL") or ""
    supabase_key: str = get_env("SUPABASE_SECRET_KEY") or get_env("SUPABASE_SERVICE_KEY") or ""

    # Stripe
    stripe_secret_key: str = get_env("STRIPE_SECRET_KEY") or ""
    stripe_webhook_secret: str = get_env("STRIPE_WEBHOOK_SECRET") or ""
    payment_currency: str = (get_env("PAYMENT_CURRENCY") or "eur").lower()

    # Gmail SMTP
    gmail_user: str = get_env("GMAIL_USER") or ""
    gmail_app_password: str = get_env("GMAIL_APP_PASSWORD") or ""
    smtp_host: str = get_env("SMTP_HOST", "smtp.gmail.com")
    smtp_port: int = get_env_int("SMTP_PORT", 587)

    # ImageKit
    imagekit_private_key: str = get_env("IMAGEKIT_PRIVATE_KEY") or ""
    imagekit_public_key: str = get_env("IMAGEKIT_PUBLIC_KEY") or get_env("NEXT_PUBLIC_IMAGEKIT_PUBLIC_KEY") or ""

    # Auth (HS256 session JWTs issued by the storefront frontend)
    auth_jwt_secret: str = get_env("AUTH_JWT_SECRET") or ""
    auth_required: bool = get_env_bool("AUTH_REQUIRED", True)

    # Service
    environment: str = get_env("ENVIRONMENT", "development")
    log_level: str = get_env("LOG_LEVEL", "INFO")
    cors_origins: str = get_env("CORS_ORIGINS", "*")
    site_url: str = (get_env("SITE_URL") or "https://ballon.boutique").rstrip("/")

    # Delivery window (store-local wall clock)
    delivery_timezone: str = get_env("DELIVERY_TIMEZONE", "Europe/Vienna")
    delivery_start: str = get_env("DELIVERY_START", "16:00")
    delivery_end: str = get_env("DELIVERY_END", "21:00")
    delivery_slot_minutes: int = get_env_int("DELIVERY_SLOT_MINUTES", 30)
    delivery_buffer_minutes: int = get_env_int("DELIVERY_BUFFER_MINUTES", 90)

    # Order policy
    preparation_hours: int = get_env_int("ORDER_PREPARATION_HOURS", 72)
    recent_orders_scan_limit: int = get_env_int("RECENT_ORDERS_SCAN_LIMIT", 500)

    @property
    def supabase_configured(self) -> bool:
        return bool(self.supabase_url and self.supabase_key)

    @property
    def stripe_configured(self) -> bool:
        return bool(self.stripe_secret_key)

    @property
    def mail_configured(self) -> bool:
        return bool(self.gmail_user and self.gmail_app_password)

    @property
    def imagekit_configured(self) -> bool:
        return bool(self.imagekit_private_key and self.imagekit_public_key)

    @property
    def is_production(self) -> bool:
        return self.environment.lower() == "production"

    @property
    def delivery_window(self) -> DeliveryWindow:
        return DeliveryWindow(
            timezone=self.delivery_timezone,
            start_minutes=parse_clock(self.delivery_start),
            end_minutes=parse_clock(self.delivery_end),
            slot_minutes=self.delivery_slot_minutes or 30,
            buffer_minutes=self.delivery_buffer_minutes,
        )


settings = Settings()
