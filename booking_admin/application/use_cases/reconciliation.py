from __future__ import annotations

from collections.abc import Callable, Iterable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from booking_admin.application.use_cases.conflict_detector import active_bookings, overlaps
from booking_admin.domain.entities.booking import Booking, ModifiedRecord


def identifier(item: Any) -> str | None:
    """Booking id of an entity or of a presentation mapping."""
    if item is None:
        return None
    if isinstance(item, Mapping):
        value = item.get("id")
    else:
        value = getattr(item, "id", None)
    return str(value) if value not in (None, "") else None


def overlay_booking(record: ModifiedRecord) -> Booking:
    return record.booking


def merge(
    server_bookings: Iterable[Any],
    overlay_records: Iterable[Any],
    transform: Callable[[Any], Any] = overlay_booking,
) -> list[Any]:
    """
    Combine server data with the local overlay.

    Server items whose id is in the overlay are dropped (the overlay holds
    intents the server has not durably confirmed). Overlay records are
    passed through `transform`; results that are None or have no id are
    discarded. Server items come first, then overlay items. Reapplying the
    same overlay to the result changes nothing.
    """
    overlay = list(overlay_records)
    overlay_ids = {identifier(record) for record in overlay}
    overlay_ids.discard(None)

    kept = [item for item in server_bookings if identifier(item) not in overlay_ids]
    transformed = [transform(record) for record in overlay]
    return kept + [item for item in transformed if item is not None and identifier(item)]


@dataclass(frozen=True)
class ConflictCheck:
    available: bool
    conflicts: list[Booking] = field(default_factory=list)


def check_conflicts(
    resource_id: str,
    proposed_start: datetime,
    proposed_end: datetime,
    existing_bookings: Sequence[Booking],
) -> ConflictCheck:
    """Every non-cancelled booking of `resource_id` overlapping [proposed_start, proposed_end)."""
    conflicts = [
        booking
        for booking in active_bookings(existing_bookings, resource_id)
        if overlaps(proposed_start, proposed_end, booking.starts_at, booking.ends_at)
    ]
    return ConflictCheck(available=not conflicts, conflicts=conflicts)
