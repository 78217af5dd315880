"""Tests for the online payment lifecycle (success, failure, refunds)."""

from unittest.mock import AsyncMock, patch

import pytest

from packages.shared.errors import NotFoundError

PAYMENT = {
    "id": "pay-1",
    "order_id": "order-1",
    "user_id": "user-1",
    "status": "requires_payment_method",
    "items": [{"product_id": "p-1", "quantity": 2}, {"product_id": "p-2", "quantity": 1}],
    "refunds": [],
}


@pytest.mark.asyncio
async def test_success_confirms_order_once():
    from payment_flow import process_successful_payment

    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=PAYMENT), \
         patch("payment_flow.claim_payment_success", new_callable=AsyncMock,
               return_value={**PAYMENT, "status": "succeeded"}) as claim, \
         patch("payment_flow.update_order", new_callable=AsyncMock) as update_order, \
         patch("payment_flow.increment_sold_count", new_callable=AsyncMock) as sold, \
         patch("payment_flow.clear_cart", new_callable=AsyncMock) as clear:
        result = await process_successful_payment("pi_1", charge_id="ch_1")

    assert result == {"payment_id": "pay-1", "order_id": "order-1", "newly_confirmed": True}
    claim.assert_awaited_once_with("pay-1", stripe_latest_charge_id="ch_1", last_error=None)
    update_order.assert_awaited_once_with("order-1", status="confirmed", payment_intent_id="pi_1")
    assert sold.await_count == 2
    clear.assert_awaited_once_with("user-1")


@pytest.mark.asyncio
@pytest.mark.parametrize("status", ["succeeded", "refunded"])
async def test_settled_payment_is_left_alone(status):
    from payment_flow import process_successful_payment

    settled = {**PAYMENT, "status": status}
    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=settled), \
         patch("payment_flow.claim_payment_success", new_callable=AsyncMock) as claim, \
         patch("payment_flow.update_order", new_callable=AsyncMock) as update_order, \
         patch("payment_flow.increment_sold_count", new_callable=AsyncMock) as sold, \
         patch("payment_flow.clear_cart", new_callable=AsyncMock) as clear:
        result = await process_successful_payment("pi_1")

    assert result["newly_confirmed"] is False
    claim.assert_not_awaited()
    update_order.assert_not_awaited()
    sold.assert_not_awaited()
    clear.assert_not_awaited()


@pytest.mark.asyncio
async def test_concurrent_success_runs_side_effects_once():
    """Webhook and sync both read an unsettled payment; only the claim winner confirms."""
    from payment_flow import process_successful_payment

    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=PAYMENT), \
         patch("payment_flow.claim_payment_success", new_callable=AsyncMock,
               side_effect=[{**PAYMENT, "status": "succeeded"}, None]), \
         patch("payment_flow.update_order", new_callable=AsyncMock) as update_order, \
         patch("payment_flow.increment_sold_count", new_callable=AsyncMock) as sold, \
         patch("payment_flow.clear_cart", new_callable=AsyncMock) as clear:
        first = await process_successful_payment("pi_1")
        second = await process_successful_payment("pi_1")

    assert first["newly_confirmed"] is True
    assert second["newly_confirmed"] is False
    update_order.assert_awaited_once()
    assert sold.await_count == 2
    clear.assert_awaited_once()


@pytest.mark.asyncio
async def test_unknown_intent_returns_none():
    from payment_flow import process_successful_payment, update_payment_status

    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=None):
        assert await process_successful_payment("pi_x") is None
        assert await update_payment_status("pi_x", "failed") is None


@pytest.mark.asyncio
async def test_refund_is_recorded_once():
    from payment_flow import record_refund

    refunded = {**PAYMENT, "refunds": [{"stripe_refund_id": "re_1", "amount_minor": 500}]}
    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=PAYMENT), \
         patch("payment_flow.update_payment", new_callable=AsyncMock, return_value=refunded) as update:
        await record_refund("pi_1", "re_1", 500, "eur", reason="requested_by_customer", created_at=1700000000)

    refunds = update.await_args.kwargs["refunds"]
    assert refunds == [{
        "stripe_refund_id": "re_1",
        "amount_minor": 500,
        "amount": 5.0,
        "currency": "eur",
        "reason": "requested_by_customer",
        "created_at": 1700000000,
    }]
    assert update.await_args.kwargs["status"] == "refunded"

    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=refunded), \
         patch("payment_flow.update_payment", new_callable=AsyncMock) as update:
        assert await record_refund("pi_1", "re_1", 500, "eur") == refunded
    update.assert_not_awaited()


@pytest.mark.asyncio
async def test_refund_for_unknown_payment_raises():
    from payment_flow import record_refund

    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=None):
        with pytest.raises(NotFoundError):
            await record_refund("pi_x", "re_1", 100, "eur")


@pytest.mark.asyncio
async def test_online_checkout_creates_intent_with_metadata(test_settings, monkeypatch):
    from payment_flow import start_online_checkout

    monkeypatch.setattr(test_settings, "stripe_secret_key", "sk_test_123")
    order = {"id": "order-1", "user_id": "user-1", "grand_total": 56.0,
             "items": [{"product_id": "p-1", "product_name": "Herz Bouquet", "quantity": 1}]}
    intent = {"payment_intent_id": "pi_1", "client_secret": "pi_1_secret", "status": "requires_payment_method",
              "latest_charge_id": None, "last_error": None}
    with patch("payment_flow.place_order", new_callable=AsyncMock, return_value=order) as place, \
         patch("payment_flow.create_payment", new_callable=AsyncMock, return_value={"id": "pay-1"}), \
         patch("payment_flow.create_payment_intent", new_callable=AsyncMock, return_value=intent) as create, \
         patch("payment_flow.update_payment", new_callable=AsyncMock), \
         patch("payment_flow.update_order", new_callable=AsyncMock) as update_order:
        result = await start_online_checkout(
            user_id="user-1",
            customer={"name": "Anna", "email": "anna@example.com"},
            shipping_address="Ring 5\n8740 Zeltweg",
            delivery_type="delivery",
            delivery_datetime="2030-06-10T14:00:00.000Z",
            courier_city_id="spielberg",
            items=None,
            currency="eur",
        )

    assert place.await_args.kwargs["awaiting_payment"] is True
    assert create.await_args.kwargs["amount_minor"] == 5600
    assert create.await_args.kwargs["metadata"] == {
        "orderId": "order-1",
        "paymentId": "pay-1",
        "customerEmail": "anna@example.com",
        "deliveryType": "delivery",
        "items": "1x Herz Bouquet",
    }
    update_order.assert_awaited_once_with("order-1", payment_intent_id="pi_1")
    assert result["client_secret"] == "pi_1_secret"


@pytest.mark.asyncio
async def test_cumulative_refund_records_only_the_new_part():
    from payment_flow import record_refund_total

    partly = {**PAYMENT, "refunds": [{"stripe_refund_id": "ch_1:1000", "amount_minor": 1000}]}
    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=partly), \
         patch("payment_flow.update_payment", new_callable=AsyncMock) as update:
        await record_refund_total("pi_1", "ch_1", 1500, "eur")

    refunds = update.await_args.kwargs["refunds"]
    assert [r["stripe_refund_id"] for r in refunds] == ["ch_1:1000", "ch_1:1500"]
    assert refunds[-1]["amount_minor"] == 500
    assert sum(r["amount_minor"] for r in refunds) == 1500


@pytest.mark.asyncio
async def test_cumulative_refund_already_recorded_is_ignored():
    from payment_flow import record_refund_total

    full = {**PAYMENT, "refunds": [{"stripe_refund_id": "ch_1:1500", "amount_minor": 1500}]}
    with patch("payment_flow.get_payment_by_intent", new_callable=AsyncMock, return_value=full), \
         patch("payment_flow.update_payment", new_callable=AsyncMock) as update:
        assert await record_refund_total("pi_1", "ch_1", 1500, "eur") == full
    update.assert_not_awaited()
