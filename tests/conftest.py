"""Pytest configuration: service import path, app client and server-test base URL."""

import os
import sys
from pathlib import Path

import jwt
import pytest

_root = Path(__file__).resolve().parents[1]
_storefront = _root / "services" / "storefront-service"
sys.path.insert(0, str(_root))
sys.path.insert(0, str(_storefront))

TEST_JWT_SECRET = "test-session-secret"


def _get_base_url() -> str:
    """Resolve storefront service base URL from environment."""
    url = os.environ.get("STOREFRONT_SERVICE_URL") or os.environ.get("API_BASE_URL")
    if not url:
        pytest.skip(
            "STOREFRONT_SERVICE_URL or API_BASE_URL must be set for server tests. "
            "Example: export STOREFRONT_SERVICE_URL=http://localhost:8000"
        )
    return url.rstrip("/")


@pytest.fixture(scope="session")
def base_url() -> str:
    """Base URL for a running storefront service (from env)."""
    return _get_base_url()


@pytest.fixture
def test_settings(monkeypatch):
    """Settings with no external services configured and a known JWT secret."""
    from config import settings

    monkeypatch.setattr(settings, "supabase_url", "")
    monkeypatch.setattr(settings, "supabase_key", "")
    monkeypatch.setattr(settings, "stripe_secret_key", "")
    monkeypatch.setattr(settings, "stripe_webhook_secret", "")
    monkeypatch.setattr(settings, "gmail_user", "")
    monkeypatch.setattr(settings, "gmail_app_password", "")
    monkeypatch.setattr(settings, "imagekit_private_key", "")
    monkeypatch.setattr(settings, "imagekit_public_key", "")
    monkeypatch.setattr(settings, "auth_jwt_secret", TEST_JWT_SECRET)
    monkeypatch.setattr(settings, "auth_required", True)
    monkeypatch.setattr(settings, "environment", "test")
    monkeypatch.setattr(settings, "delivery_timezone", "Europe/Vienna")
    monkeypatch.setattr(settings, "delivery_start", "16:00")
    monkeypatch.setattr(settings, "delivery_end", "21:00")
    monkeypatch.setattr(settings, "delivery_slot_minutes", 30)
    monkeypatch.setattr(settings, "delivery_buffer_minutes", 90)
    monkeypatch.setattr(settings, "preparation_hours", 72)
    return settings


@pytest.fixture
def client(test_settings):
    """In-process TestClient for the storefront app."""
    from fastapi.testclient import TestClient

    from main import app

    with TestClient(app) as c:
        yield c


@pytest.fixture
def auth_headers():
    """Build an Authorization header for a user id."""

    def _make(user_id: str = "user-1", email: str = "kunde@example.com") -> dict:
        token = jwt.encode({"sub": user_id, "email": email}, TEST_JWT_SECRET, algorithm="HS256")
        return {"Authorization": f"Bearer {token}"}

    return _make
