from __future__ import annotations

from typing import Any

from booking_admin.application.utils.durations import format_duration_minutes
from booking_admin.application.utils.timezone_converter import format_time_range, offset_label
from booking_admin.core.config import settings
from booking_admin.domain.entities.booking import Booking, ModifiedRecord


def present_booking(item: Booking | ModifiedRecord | None, show_viewer_zone: bool = False) -> dict[str, Any] | None:
    """Normalise a booking (server or overlay) into the shape listing views display."""
    if item is None:
        return None

    pending_sync = isinstance(item, ModifiedRecord)
    booking = item.booking if isinstance(item, ModifiedRecord) else item
    if not booking.id:
        return None

    zone = booking.timezone or settings.DEFAULT_TIMEZONE
    display = format_time_range(booking.starts_at, booking.ends_at, zone, show_viewer_zone)
    resource_name = booking.resource_name or "N/A"
    service_name = booking.service_name or "N/A"

    presented: dict[str, Any] = {
        "id": booking.id,
        "title": f"{resource_name} - {service_name}",
        "resource_id": booking.resource_id,
        "service_id": booking.service_id,
        "location_id": booking.location_id,
        "status": booking.status.value,
        "is_canceled": booking.is_canceled,
        "is_temporary": booking.is_temporary,
        "starts_at": booking.starts_at.isoformat(),
        "ends_at": booking.ends_at.isoformat(),
        "timezone": zone,
        "offset": offset_label(zone, booking.starts_at),
        "date": display.primary.date,
        "time_range": display.primary.range,
        "viewer_time_range": display.secondary.range if display.secondary else None,
        "duration": format_duration_minutes(booking.duration_minutes),
        "customer": booking.customer_email or "N/A",
        "customer_name": booking.customer_name or "N/A",
        "notes": booking.notes,
        "price": booking.price or 0.0,
        "pending_sync": pending_sync,
    }
    return presented
