from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date, datetime, timezone

from pydantic import ValidationError

from booking_admin.application.dto.booking_payload import ScheduleBlockPayload, ServicePayload
from booking_admin.application.exceptions import FetchFailure
from booking_admin.application.ports.booking_service import BookingServicePort
from booking_admin.application.use_cases.conflict_detector import annotate
from booking_admin.application.use_cases.list_bookings import ListBookingsUseCase
from booking_admin.application.use_cases.slot_generator import generate_slots, unique_slots, weekday_name
from booking_admin.application.utils.timezone_converter import get_zone
from booking_admin.domain.entities.schedule import ScheduleBlock, TimeSlot


@dataclass(frozen=True)
class DayAvailability:
    day: date
    weekday: str
    zone: str
    interval: int
    slot_duration: int
    slots: list[TimeSlot]


class AvailabilityUseCase:
    def __init__(
        self,
        service: BookingServicePort,
        listing: ListBookingsUseCase,
        default_timezone: str,
        default_interval_minutes: int = 15,
    ) -> None:
        self._service = service
        self._listing = listing
        self._default_timezone = default_timezone
        self._default_interval = default_interval_minutes
        self._logger = logging.getLogger(__name__)

    async def schedule_blocks(self, resource_id: str) -> list[ScheduleBlock]:
        raw_blocks = await self._service.list_schedule_blocks(resource_id)
        blocks: list[ScheduleBlock] = []
        for raw in raw_blocks:
            try:
                blocks.append(ScheduleBlockPayload.model_validate(raw).to_entity(resource_id))
            except (ValidationError, ValueError) as e:
                self._logger.warning("Skipping invalid schedule block", extra={"resource_id": resource_id, "error": str(e)})
        return blocks

    async def _service_timing(self, service_id: str | None) -> tuple[int, int]:
        """Slot interval and slot duration for a service, falling back to defaults."""
        details = ServicePayload()
        if service_id:
            try:
                details = ServicePayload.model_validate(await self._service.get_service(service_id))
            except (FetchFailure, ValidationError) as e:
                self._logger.warning("Error fetching service details, using defaults", extra={"error": str(e)})
        interval = details.interval_minutes(self._default_interval)
        return interval, details.duration_minutes(interval)

    async def day_availability(
        self,
        resource_id: str,
        day: date,
        zone: str | None = None,
        service_id: str | None = None,
        now: datetime | None = None,
        unique: bool = False,
    ) -> DayAvailability:
        zone = zone or self._default_timezone
        # fail on an unknown zone before any fetch
        get_zone(zone)
        weekday = weekday_name(day)

        blocks = await self.schedule_blocks(resource_id)
        interval, slot_duration = await self._service_timing(service_id)

        listing = await self._listing.execute()
        if listing.error:
            self._logger.warning("Availability computed from cached bookings", extra={"resource_id": resource_id, "error": listing.error})

        candidates = generate_slots(blocks, weekday, interval)
        if unique:
            candidates = unique_slots(candidates)

        slots = annotate(
            candidates,
            listing.bookings,
            slot_duration,
            now or datetime.now(timezone.utc),
            day=day,
            zone=zone,
            resource_id=resource_id,
        )
        self._logger.debug(
            "Availability computed",
            extra={"resource_id": resource_id, "count": len(slots)},
        )
        return DayAvailability(
            day=day,
            weekday=weekday,
            zone=zone,
            interval=interval,
            slot_duration=slot_duration,
            slots=slots,
        )
