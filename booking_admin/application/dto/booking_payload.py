from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from booking_admin.application.exceptions import ConversionError
from booking_admin.application.utils.durations import parse_iso_duration
from booking_admin.application.utils.timezone_converter import parse_instant
from booking_admin.domain.entities.booking import Booking, BookingStatus
from booking_admin.domain.entities.schedule import ScheduleBlock


def _ref_id(value: Any) -> str | None:
    if isinstance(value, dict):
        ref = value.get("id")
        return str(ref) if ref not in (None, "") else None
    return None


def _ref_name(value: Any) -> str | None:
    if isinstance(value, dict):
        return value.get("name")
    return None


def _optional_instant(value: Any) -> datetime | None:
    if not value:
        return None
    try:
        return parse_instant(value)
    except ConversionError:
        return None


class BookingPayload(BaseModel):
    """Booking as returned by the booking service or persisted in the overlay."""

    model_config = ConfigDict(extra="ignore")

    id: str
    resource_id: str | None = None
    service_id: str | None = None
    location_id: str | None = None
    resource: dict[str, Any] | None = None
    service: dict[str, Any] | None = None
    location: dict[str, Any] | None = None
    timezone: str | None = None
    starts_at: str
    ends_at: str
    status: str | None = None
    is_canceled: bool | None = None
    is_temporary: bool | None = None
    canceled_at: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)
    customer_name: str | None = None
    price: float | None = None
    created_at: str | None = None
    updated_at: str | None = None

    @field_validator("id", mode="before")
    @classmethod
    def _coerce_id(cls, value: Any) -> Any:
        if isinstance(value, int):
            return str(value)
        if isinstance(value, str) and not value.strip():
            raise ValueError("id must not be empty")
        return value

    @field_validator("metadata", mode="before")
    @classmethod
    def _default_metadata(cls, value: Any) -> Any:
        return value or {}

    @field_validator("price", mode="before")
    @classmethod
    def _coerce_price(cls, value: Any) -> Any:
        if value in (None, ""):
            return None
        return value

    def resolved_status(self) -> BookingStatus:
        explicit = BookingStatus.parse(self.status)
        if explicit is not None:
            return explicit
        return BookingStatus.from_flags(bool(self.is_canceled), bool(self.is_temporary))

    def to_entity(self, default_timezone: str | None = None) -> Booking:
        try:
            starts_at = parse_instant(self.starts_at)
            ends_at = parse_instant(self.ends_at)
        except ConversionError as e:
            raise ValueError(str(e)) from e

        metadata = dict(self.metadata)
        if self.customer_name and "customer_name" not in metadata:
            metadata["customer_name"] = self.customer_name

        zone = self.timezone or (self.location or {}).get("time_zone") or default_timezone
        return Booking(
            id=self.id,
            resource_id=self.resource_id or _ref_id(self.resource) or "",
            service_id=self.service_id or _ref_id(self.service) or "",
            location_id=self.location_id or _ref_id(self.location) or "",
            starts_at=starts_at,
            ends_at=ends_at,
            status=self.resolved_status(),
            timezone=zone,
            metadata=metadata,
            resource_name=_ref_name(self.resource),
            service_name=_ref_name(self.service),
            price=self.price,
            created_at=_optional_instant(self.created_at),
            updated_at=_optional_instant(self.updated_at),
            canceled_at=_optional_instant(self.canceled_at),
        )


def parse_booking(raw: dict[str, Any], default_timezone: str | None = None) -> Booking:
    """Validate one raw payload; raises ValueError when it cannot become a Booking."""
    try:
        return BookingPayload.model_validate(raw).to_entity(default_timezone)
    except ValidationError as e:
        raise ValueError(str(e)) from e


def booking_to_payload(booking: Booking) -> dict[str, Any]:
    """Serialise a Booking into the JSON shape BookingPayload accepts."""
    return {
        "id": booking.id,
        "resource_id": booking.resource_id,
        "service_id": booking.service_id,
        "location_id": booking.location_id,
        "resource": {"id": booking.resource_id, "name": booking.resource_name},
        "service": {"id": booking.service_id, "name": booking.service_name},
        "timezone": booking.timezone,
        "starts_at": booking.starts_at.isoformat(),
        "ends_at": booking.ends_at.isoformat(),
        "status": booking.status.value,
        "is_canceled": booking.is_canceled,
        "is_temporary": booking.is_temporary,
        "canceled_at": booking.canceled_at.isoformat() if booking.canceled_at else None,
        "metadata": dict(booking.metadata),
        "price": booking.price,
        "created_at": booking.created_at.isoformat() if booking.created_at else None,
        "updated_at": booking.updated_at.isoformat() if booking.updated_at else None,
    }


class ScheduleBlockPayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    weekday: str
    start_time: str
    end_time: str
    resource_id: str | None = None

    def to_entity(self, resource_id: str) -> ScheduleBlock:
        return ScheduleBlock(
            resource_id=self.resource_id or resource_id,
            weekday=self.weekday.strip().lower(),
            start_time=self.start_time[:5],
            end_time=self.end_time[:5],
        )


class ServicePayload(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    name: str | None = None
    duration: str | None = None
    bookable_interval: str | None = None
    duration_step: str | None = None

    def interval_minutes(self, default: int) -> int:
        return (
            parse_iso_duration(self.bookable_interval)
            or parse_iso_duration(self.duration_step)
            or default
        )

    def duration_minutes(self, default: int) -> int:
        return parse_iso_duration(self.duration) or default
