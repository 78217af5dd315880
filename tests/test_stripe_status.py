"""Tests for Stripe status mapping and PaymentIntent summaries."""

import pytest

from packages.shared.errors import ServiceUnavailableError
from stripe_adapter import derive_payment_status, summarize_intent, summarize_items


@pytest.mark.parametrize(
    "status,last_error,expected",
    [
        ("succeeded", None, "succeeded"),
        ("processing", None, "processing"),
        ("requires_action", None, "requires_action"),
        ("requires_payment_method", None, "requires_payment_method"),
        ("requires_payment_method", "Your card was declined.", "failed"),
        ("something_new", None, "requires_payment_method"),
        (None, None, "requires_payment_method"),
    ],
)
def test_derive_payment_status(status, last_error, expected):
    assert derive_payment_status(status, last_error) == expected


def test_summarize_items_keeps_first_fifteen():
    items = [{"product_name": f"Ballon {i}", "quantity": 1} for i in range(20)]
    summary = summarize_items(items)
    assert summary.startswith("1x Ballon 0, 1x Ballon 1")
    assert summary.count(",") == 14
    assert "Ballon 15" not in summary


def test_summarize_intent_with_expanded_charge_and_error():
    intent = {
        "id": "pi_123",
        "client_secret": "pi_123_secret_abc",
        "status": "requires_payment_method",
        "latest_charge": {"id": "ch_1"},
        "last_payment_error": {"message": "Your card was declined."},
    }
    assert summarize_intent(intent) == {
        "payment_intent_id": "pi_123",
        "client_secret": "pi_123_secret_abc",
        "status": "failed",
        "latest_charge_id": "ch_1",
        "last_error": "Your card was declined.",
    }


def test_summarize_intent_requires_client_secret():
    with pytest.raises(ServiceUnavailableError):
        summarize_intent({"id": "pi_123", "status": "succeeded"})
