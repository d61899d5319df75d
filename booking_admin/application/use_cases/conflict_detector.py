from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime, timedelta, timezone

from booking_admin.application.utils.timezone_converter import get_zone, parse_time_string
from booking_admin.domain.entities.booking import Booking
from booking_admin.domain.entities.schedule import SlotAvailability, TimeSlot


def overlaps(a_start: datetime, a_end: datetime, b_start: datetime, b_end: datetime) -> bool:
    """Half-open overlap: touching ranges ([9,10) and [10,11)) do not conflict."""
    return a_start < b_end and a_end > b_start


def active_bookings(bookings: Iterable[Booking], resource_id: str | None = None) -> list[Booking]:
    """Bookings that can block a slot: not cancelled, and on `resource_id` when given."""
    return [
        booking
        for booking in bookings
        if not booking.is_canceled and (resource_id is None or booking.resource_id == resource_id)
    ]


def slot_start(day: date, time_string: str, zone: str) -> datetime:
    hour, minute = parse_time_string(time_string)
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=get_zone(zone))


def is_time_past(day: date, time_string: str, zone: str, now: datetime | None = None) -> bool:
    """True when the slot start is at or before now, compared in the zone's wall clock to the minute."""
    tz = get_zone(zone)
    current = (now or datetime.now(timezone.utc)).astimezone(tz).replace(second=0, microsecond=0)
    return slot_start(day, time_string, zone) <= current


def annotate(
    slots: Sequence[str],
    existing_bookings: Iterable[Booking],
    slot_duration_minutes: int,
    now: datetime,
    *,
    day: date,
    zone: str,
    resource_id: str | None = None,
) -> list[TimeSlot]:
    """
    Mark each candidate start time as past, booked or available.

    `past` takes precedence over `booked`. A slot is booked when
    [start, start + duration) overlaps any non-cancelled booking; only the
    first hit matters here. Use check_conflicts for the full list.

    Raises ConversionError when `zone` is unknown or a slot string is not
    HH:MM.
    """
    blockers = active_bookings(existing_bookings, resource_id)
    duration = timedelta(minutes=slot_duration_minutes)

    annotated: list[TimeSlot] = []
    for time_string in slots:
        start = slot_start(day, time_string, zone)
        end = start + duration
        if is_time_past(day, time_string, zone, now):
            availability = SlotAvailability.PAST
        elif any(overlaps(start, end, b.starts_at, b.ends_at) for b in blockers):
            availability = SlotAvailability.BOOKED
        else:
            availability = SlotAvailability.AVAILABLE
        annotated.append(TimeSlot(time=time_string, availability=availability))
    return annotated
