"""Server-based tests for a running storefront service."""

from datetime import date, timedelta

import pytest
import httpx


@pytest.mark.server
def test_health_liveness(base_url: str) -> None:
    """GET /health returns 200 and healthy status."""
    r = httpx.get(f"{base_url}/health", timeout=10.0)
    assert r.status_code == 200
    data = r.json()
    assert data.get("status") == "healthy"
    assert data.get("service") == "storefront-service"


@pytest.mark.server
def test_health_readiness(base_url: str) -> None:
    """GET /ready lists dependency checks (503 when Supabase is down)."""
    r = httpx.get(f"{base_url}/ready", timeout=10.0)
    assert r.status_code in (200, 503)
    data = r.json()
    assert data.get("status") in ("healthy", "unhealthy", "degraded")
    assert isinstance(data["dependencies"], list)


@pytest.mark.server
def test_root_service_info(base_url: str) -> None:
    r = httpx.get(base_url, timeout=10.0)
    assert r.status_code == 200
    data = r.json()
    assert data.get("service") == "storefront-service"
    assert "delivery_slots" in data.get("endpoints", {})


@pytest.mark.server
def test_delivery_slots(base_url: str) -> None:
    """Ten half-hour slots for a date a month ahead."""
    day = (date.today() + timedelta(days=30)).isoformat()
    r = httpx.get(f"{base_url}/api/v1/delivery/slots", params={"date": day}, timeout=10.0)
    assert r.status_code == 200
    slots = r.json()["slots"]
    assert [s["label"] for s in slots][:2] == ["16:00", "16:30"]
    assert all("available" in s for s in slots)


@pytest.mark.server
def test_catalog_listing(base_url: str) -> None:
    r = httpx.get(f"{base_url}/api/v1/products", params={"limit": 4}, timeout=10.0)
    assert r.status_code == 200
    data = r.json()
    assert len(data["products"]) <= 4
    assert "total" in data
