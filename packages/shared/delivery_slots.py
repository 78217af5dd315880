"""Delivery slot logic: courier windows in the store's local timezone.

A slot is identified by its UTC instant. Slots are generated from the store's
wall-clock window (e.g. 16:00-21:00 Europe/Vienna) so the result does not
depend on the timezone the server runs in. A booked delivery blocks every slot
within ``buffer_minutes`` of it on either side.
"""

import re
from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Any, Dict, Iterable, List, Optional

import pytz

from .errors import ValidationError

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_CLOCK_RE = re.compile(r"^(\d{1,2}):(\d{2})$")


@dataclass(frozen=True)
class DeliveryWindow:
    """Store courier window. Minutes are counted from local midnight."""

    timezone: str = "Europe/Vienna"
    start_minutes: int = 16 * 60
    end_minutes: int = 21 * 60
    slot_minutes: int = 30
    buffer_minutes: int = 90

    @property
    def tz(self) -> pytz.BaseTzInfo:
        return pytz.timezone(self.timezone)


@dataclass(frozen=True)
class DeliveryBooking:
    """An existing delivery order occupying a slot."""

    order_id: str
    delivery_iso: str


def parse_clock(value: str) -> int:
    """'16:30' -> 990. Raises ValueError on anything else."""
    match = _CLOCK_RE.match((value or "").strip())
    if not match:
        raise ValueError(f"Invalid clock time: {value!r}")
    hour, minute = int(match.group(1)), int(match.group(2))
    if hour > 24 or minute > 59 or (hour == 24 and minute):
        raise ValueError(f"Invalid clock time: {value!r}")
    return hour * 60 + minute


def parse_date_input(value: str) -> Optional[date]:
    """Parse a strict YYYY-MM-DD string. Returns None when malformed."""
    trimmed = (value or "").strip()
    if not _DATE_RE.match(trimmed):
        return None
    y, m, d = (int(p) for p in trimmed.split("-"))
    try:
        return date(y, m, d)
    except ValueError:
        return None


def parse_iso(value: Any) -> Optional[datetime]:
    """Parse an ISO 8601 timestamp into an aware UTC datetime, or None."""
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
    else:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def format_iso(instant: datetime) -> str:
    """UTC ISO string with millisecond precision, e.g. 2025-06-10T14:00:00.000Z."""
    utc = instant.astimezone(timezone.utc)
    return utc.strftime("%Y-%m-%dT%H:%M:%S.") + f"{utc.microsecond // 1000:03d}Z"


def zoned_to_utc(day: date, hour: int, minute: int, tz: pytz.BaseTzInfo) -> datetime:
    """Convert local wall-clock time in ``tz`` to a UTC instant.

    The wall-clock time is first read as if it were UTC; the zone's offset at
    that instant is then subtracted.
    """
    naive = datetime(day.year, day.month, day.day) + timedelta(hours=hour, minutes=minute)
    offset = pytz.utc.localize(naive).astimezone(tz).utcoffset()
    return (naive - offset).replace(tzinfo=timezone.utc)


def local_date_of(value: Any, window: DeliveryWindow) -> Optional[str]:
    """YYYY-MM-DD of the instant in the store timezone."""
    instant = parse_iso(value)
    if instant is None:
        return None
    return instant.astimezone(window.tz).strftime("%Y-%m-%d")


def build_slots_for_date(value: str, window: DeliveryWindow) -> List[Dict[str, Any]]:
    """Candidate slots for a local date as ``{minutes, label, iso}`` dicts.

    Malformed dates yield an empty list.
    """
    day = parse_date_input(value)
    if day is None:
        return []

    tz = window.tz
    slots: List[Dict[str, Any]] = []
    minutes = window.start_minutes
    while minutes + window.slot_minutes <= window.end_minutes:
        hour, minute = divmod(minutes, 60)
        slots.append({
            "minutes": minutes,
            "label": f"{hour:02d}:{minute:02d}",
            "iso": format_iso(zoned_to_utc(day, hour, minute, tz)),
        })
        minutes += window.slot_minutes
    return slots


def mark_availability(
    slots: Iterable[Dict[str, Any]],
    booked_isos: Iterable[Any],
    window: DeliveryWindow,
    now: Optional[datetime] = None,
) -> List[Dict[str, Any]]:
    """Copy each slot with ``available`` set.

    A slot is unavailable when it is in the past or any booking lies within
    ``buffer_minutes`` of it (inclusive).
    """
    buffer = timedelta(minutes=window.buffer_minutes)
    now = now or datetime.now(timezone.utc)
    existing = [t for t in (parse_iso(iso) for iso in booked_isos) if t is not None]

    marked = []
    for slot in slots:
        slot_at = parse_iso(slot.get("iso"))
        not_in_past = slot_at is not None and slot_at >= now
        not_conflicting = slot_at is not None and all(
            abs(booked - slot_at) > buffer for booked in existing
        )
        marked.append({**slot, "available": not_in_past and not_conflicting})
    return marked


def assert_slot_valid(
    selected_iso: str,
    existing_bookings: Iterable[DeliveryBooking],
    window: DeliveryWindow,
    ignore_order_id: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Dict[str, Any]:
    """Re-check a chosen slot right before it is booked.

    Returns the marked slot. Raises ValidationError when the instant is not
    one of its date's slots or is no longer available.
    """
    selected = parse_iso(selected_iso)
    day = local_date_of(selected, window)
    if selected is None or day is None:
        raise ValidationError("Invalid delivery slot", details={"slot": selected_iso})

    match = next(
        (s for s in build_slots_for_date(day, window) if parse_iso(s["iso"]) == selected),
        None,
    )
    if match is None:
        raise ValidationError(
            "Selected delivery slot is outside working hours",
            details={"slot": selected_iso},
        )

    booked = [
        b.delivery_iso
        for b in existing_bookings
        if ignore_order_id is None or str(b.order_id) != str(ignore_order_id)
    ]
    marked = mark_availability([match], booked, window, now=now)[0]
    if not marked["available"]:
        raise ValidationError(
            "Selected delivery slot is no longer available",
            details={"slot": marked["iso"]},
        )
    return marked
