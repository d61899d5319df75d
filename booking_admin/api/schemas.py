from datetime import date
from typing import Any

from pydantic import BaseModel, Field, field_validator


class BookingListSchema(BaseModel):
    bookings: list[dict[str, Any]]
    from_cache: bool = False
    error: str | None = None


class TimeSlotSchema(BaseModel):
    time: str
    status: str


class DayAvailabilitySchema(BaseModel):
    resource_id: str
    date: date
    weekday: str
    timezone: str
    offset: str
    interval: int
    slot_duration: int
    slots: list[TimeSlotSchema]


class CreateBookingSchema(BaseModel):
    resource_id: str
    service_id: str
    location_id: str
    date: date
    start_time: str
    end_time: str
    customer_name: str
    customer_email: str | None = None
    notes: str | None = None
    timezone: str | None = None
    tentative: bool = False
    allow_conflicts: bool = False

    @field_validator("start_time", "end_time")
    @classmethod
    def _clock(cls, value: str) -> str:
        parts = value.split(":")
        if len(parts) < 2 or not all(p.isdigit() for p in parts[:2]):
            raise ValueError("time must be HH:MM")
        return value


class CreateBookingResponseSchema(BaseModel):
    status: str
    booking: dict[str, Any] | None = None
    conflicts: list[dict[str, Any]] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)


class MutationResultSchema(BaseModel):
    booking_id: str
    action: str
    sync: str
    booking: dict[str, Any] | None = None


class BulkRequestSchema(BaseModel):
    booking_ids: list[str] = Field(min_length=1)


class BulkResultSchema(BaseModel):
    results: list[MutationResultSchema]
    failures: dict[str, str] = Field(default_factory=dict)


class OverlayStatsSchema(BaseModel):
    total: int
    cancelled: int
    tentative: int
    confirmed: int


class SignalResultSchema(BaseModel):
    signal: str
    refetched: bool
    cache_state: str
