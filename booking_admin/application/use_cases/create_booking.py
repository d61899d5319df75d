from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Any

from booking_admin.application.dto.booking_payload import parse_booking
from booking_admin.application.exceptions import FetchFailure
from booking_admin.application.ports.booking_service import BookingServicePort
from booking_admin.application.use_cases.availability import AvailabilityUseCase
from booking_admin.application.use_cases.list_bookings import ListBookingsUseCase
from booking_admin.application.use_cases.reconciliation import check_conflicts
from booking_admin.application.use_cases.slot_generator import valid_dates, weekday_name
from booking_admin.application.utils.timezone_converter import civil_time_to_instant
from booking_admin.domain.entities.booking import Booking
from booking_admin.infrastructure.store.booking_cache import BookingCache


@dataclass(frozen=True)
class CreateBookingRequest:
    resource_id: str
    service_id: str
    location_id: str
    day: date
    start_time: str  # HH:MM in the location zone
    end_time: str
    customer_name: str
    customer_email: str | None = None
    notes: str | None = None
    timezone: str | None = None
    tentative: bool = False


@dataclass(frozen=True)
class CreateBookingResult:
    status: str  # "created" | "conflict" | "invalid"
    booking: Booking | None = None
    conflicts: list[Booking] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)


class CreateBookingUseCase:
    def __init__(
        self,
        service: BookingServicePort,
        listing: ListBookingsUseCase,
        availability: AvailabilityUseCase,
        cache: BookingCache,
        default_timezone: str,
    ) -> None:
        self._service = service
        self._listing = listing
        self._availability = availability
        self._cache = cache
        self._default_timezone = default_timezone
        self._logger = logging.getLogger(__name__)

    async def _schedule_errors(self, request: CreateBookingRequest) -> list[str]:
        try:
            blocks = await self._availability.schedule_blocks(request.resource_id)
        except FetchFailure as e:
            self._logger.warning("Could not verify schedule day", extra={"resource_id": request.resource_id, "error": str(e)})
            return []
        if blocks and not valid_dates(blocks, request.day, request.day):
            return [f"Resource is not available on {weekday_name(request.day).capitalize()}"]
        return []

    async def _conflicts(self, request: CreateBookingRequest, start: datetime, end: datetime) -> list[Booking]:
        listing = await self._listing.execute()
        if listing.error:
            # Availability check is advisory; a failed fetch never blocks creation.
            self._logger.warning(
                "Availability check ran against cached bookings",
                extra={"resource_id": request.resource_id, "error": listing.error},
            )
        return check_conflicts(request.resource_id, start, end, listing.bookings).conflicts

    def _payload(self, request: CreateBookingRequest, zone: str, start: datetime, end: datetime) -> dict[str, Any]:
        metadata: dict[str, Any] = {"customer_name": request.customer_name.strip()}
        if request.customer_email:
            metadata["email"] = request.customer_email
        if request.notes:
            metadata["notes"] = request.notes
        return {
            "resource_id": request.resource_id,
            "service_id": request.service_id,
            "location_id": request.location_id,
            "timezone": zone,
            "starts_at": start.isoformat(),
            "ends_at": end.isoformat(),
            "is_temporary": request.tentative,
            "metadata": metadata,
        }

    async def execute(
        self,
        request: CreateBookingRequest,
        allow_conflicts: bool = False,
        now: datetime | None = None,
    ) -> CreateBookingResult:
        now = now or datetime.now(timezone.utc)
        zone = request.timezone or self._default_timezone
        errors: list[str] = []

        if not request.customer_name or not request.customer_name.strip():
            errors.append("Customer name is required")

        start = civil_time_to_instant(request.start_time, request.day, zone)
        end = civil_time_to_instant(request.end_time, request.day, zone)
        if start is None:
            errors.append(f"Invalid start time: {request.start_time}")
        if end is None:
            errors.append(f"Invalid end time: {request.end_time}")
        if start is not None and end is not None and start >= end:
            errors.append("Start time must be before end time")
        if start is not None and start <= now:
            errors.append("Booking cannot start in the past")

        errors.extend(await self._schedule_errors(request))
        if errors or start is None or end is None:
            return CreateBookingResult(status="invalid", errors=errors)

        conflicts = await self._conflicts(request, start, end)
        if conflicts and not allow_conflicts:
            self._logger.info(
                "Booking conflicts with existing reservations",
                extra={"resource_id": request.resource_id, "count": len(conflicts)},
            )
            return CreateBookingResult(status="conflict", conflicts=conflicts)

        raw = await self._service.create_booking(self._payload(request, zone, start, end))
        self._cache.invalidate()

        try:
            booking = parse_booking(raw, zone)
        except ValueError as e:
            self._logger.warning("Created booking could not be parsed", extra={"error": str(e)})
            booking = None
        return CreateBookingResult(status="created", booking=booking, conflicts=conflicts)
