"""Tests for delivery slot generation, availability and booking checks."""

from datetime import datetime, timezone

import pytest

from packages.shared.delivery_slots import (
    DeliveryBooking,
    DeliveryWindow,
    assert_slot_valid,
    build_slots_for_date,
    format_iso,
    local_date_of,
    mark_availability,
    parse_clock,
    parse_iso,
)
from packages.shared.errors import ValidationError

WINDOW = DeliveryWindow(timezone="Europe/Vienna")
JUNE_1 = datetime(2025, 6, 1, tzinfo=timezone.utc)


def _by_label(slots):
    return {s["label"]: s for s in slots}


def test_builds_half_hour_slots_inside_window():
    slots = build_slots_for_date("2025-06-10", WINDOW)

    assert len(slots) == 10
    assert slots[0]["minutes"] == 960
    assert slots[-1]["minutes"] == 1230
    assert [b["minutes"] - a["minutes"] for a, b in zip(slots, slots[1:])] == [30] * 9
    assert slots[0]["label"] == "16:00"
    assert slots[-1]["label"] == "20:30"


def test_summer_slot_is_two_hours_behind_in_utc():
    slots = _by_label(build_slots_for_date("2025-06-10", WINDOW))
    assert slots["16:00"]["iso"] == "2025-06-10T14:00:00.000Z"


@pytest.mark.parametrize(
    "day,expected",
    [
        ("2025-03-29", "2025-03-29T15:00:00.000Z"),
        ("2025-03-30", "2025-03-30T14:00:00.000Z"),
        ("2025-10-26", "2025-10-26T15:00:00.000Z"),
    ],
)
def test_first_slot_follows_dst_changes(day, expected):
    assert build_slots_for_date(day, WINDOW)[0]["iso"] == expected


def test_slot_iso_maps_back_to_label_in_store_timezone():
    for slot in build_slots_for_date("2025-03-30", WINDOW):
        local = parse_iso(slot["iso"]).astimezone(WINDOW.tz)
        assert local.strftime("%H:%M") == slot["label"]
        assert local_date_of(slot["iso"], WINDOW) == "2025-03-30"


@pytest.mark.parametrize("value", ["", "2025-6-10", "10.06.2025", "2025-02-30", "garbage"])
def test_malformed_date_yields_no_slots(value):
    assert build_slots_for_date(value, WINDOW) == []


def test_booking_blocks_slots_within_buffer():
    slots = build_slots_for_date("2025-06-10", WINDOW)
    marked = _by_label(mark_availability(slots, ["2025-06-10T16:00:00.000Z"], WINDOW, now=JUNE_1))

    assert marked["16:00"]["available"] is True
    assert marked["20:00"]["available"] is True
    for label in ("16:30", "17:00", "18:00", "19:00", "19:30"):
        assert marked[label]["available"] is False


def test_booking_just_outside_buffer_leaves_slot_free():
    slots = build_slots_for_date("2025-06-10", WINDOW)
    # 18:00 local + 91 minutes
    marked = _by_label(mark_availability(slots, ["2025-06-10T17:31:00.000Z"], WINDOW, now=JUNE_1))
    assert marked["18:00"]["available"] is True
    assert marked["18:30"]["available"] is False


def test_unparseable_bookings_are_ignored():
    slots = build_slots_for_date("2025-06-10", WINDOW)
    marked = mark_availability(slots, ["not-a-date", None], WINDOW, now=JUNE_1)
    assert all(s["available"] for s in marked)


def test_past_slots_are_unavailable():
    slots = build_slots_for_date("2025-06-10", WINDOW)
    now = datetime(2025, 6, 10, 16, 15, tzinfo=timezone.utc)  # 18:15 local
    marked = _by_label(mark_availability(slots, [], WINDOW, now=now))
    assert marked["18:00"]["available"] is False
    assert marked["18:30"]["available"] is True


def test_assert_slot_valid_returns_marked_slot():
    slot = assert_slot_valid("2025-06-10T14:00:00.000Z", [], WINDOW, now=JUNE_1)
    assert slot["label"] == "16:00"
    assert slot["available"] is True


def test_assert_slot_valid_matches_by_instant():
    slot = assert_slot_valid("2025-06-10T16:00:00+02:00", [], WINDOW, now=JUNE_1)
    assert slot["iso"] == "2025-06-10T14:00:00.000Z"


def test_assert_slot_valid_rejects_garbage():
    with pytest.raises(ValidationError, match="Invalid delivery slot"):
        assert_slot_valid("tomorrow evening", [], WINDOW, now=JUNE_1)


@pytest.mark.parametrize("iso", ["2025-06-10T08:00:00.000Z", "2025-06-10T14:10:00.000Z"])
def test_assert_slot_valid_rejects_off_grid_times(iso):
    with pytest.raises(ValidationError, match="outside working hours"):
        assert_slot_valid(iso, [], WINDOW, now=JUNE_1)


def test_assert_slot_valid_rejects_taken_slot():
    bookings = [DeliveryBooking(order_id="o-1", delivery_iso="2025-06-10T15:00:00.000Z")]
    with pytest.raises(ValidationError, match="no longer available"):
        assert_slot_valid("2025-06-10T15:30:00.000Z", bookings, WINDOW, now=JUNE_1)


def test_assert_slot_valid_ignores_the_order_being_rescheduled():
    bookings = [DeliveryBooking(order_id="o-1", delivery_iso="2025-06-10T15:00:00.000Z")]
    slot = assert_slot_valid(
        "2025-06-10T15:30:00.000Z", bookings, WINDOW, ignore_order_id="o-1", now=JUNE_1
    )
    assert slot["available"] is True


def test_parse_clock():
    assert parse_clock("16:30") == 990
    assert parse_clock("9:05") == 545
    assert parse_clock("24:00") == 1440
    for bad in ("", "16", "16:60", "25:00", "24:30"):
        with pytest.raises(ValueError):
            parse_clock(bad)


def test_format_iso_uses_milliseconds_and_z():
    instant = datetime(2025, 6, 10, 14, 0, 0, 123456, tzinfo=timezone.utc)
    assert format_iso(instant) == "2025-06-10T14:00:00.123Z"


def test_parse_iso_treats_naive_as_utc():
    assert parse_iso("2025-06-10T14:00:00") == datetime(2025, 6, 10, 14, tzinfo=timezone.utc)
    assert parse_iso("") is None
    assert parse_iso(12345) is None
