from __future__ import annotations

import copy
import logging
from typing import Any

from booking_admin.application.exceptions import FetchFailure, MutationRejected, MutationRejectionKind
from booking_admin.application.ports.booking_service import BookingServicePort


class MockBookingService(BookingServicePort):
    """
    In-memory booking service for local development and tests.

    `ignore_cancellations` mimics the real service silently keeping
    bookings active after a cancel; `time_restricted` ids are refused with a
    time-restriction error; `fail_reads` makes every read raise FetchFailure.
    """

    def __init__(
        self,
        bookings: list[dict[str, Any]] | None = None,
        schedule_blocks: dict[str, list[dict[str, Any]]] | None = None,
        services: dict[str, dict[str, Any]] | None = None,
    ) -> None:
        self._bookings: dict[str, dict[str, Any]] = {
            str(b["id"]): copy.deepcopy(b) for b in (bookings or [])
        }
        self._schedule_blocks = copy.deepcopy(schedule_blocks or {})
        self._services = copy.deepcopy(services or {})
        self.ignore_cancellations = False
        self.time_restricted: set[str] = set()
        self.rejected: set[str] = set()
        self.fail_reads = False
        self.read_count = 0
        self._logger = logging.getLogger(__name__)

    def _check_read(self) -> None:
        self.read_count += 1
        if self.fail_reads:
            raise FetchFailure("Mock booking service unavailable")

    def _check_write(self, booking_id: str) -> dict[str, Any]:
        if booking_id in self.time_restricted:
            raise MutationRejected(
                "Booking cannot be cancelled within the cancellation window",
                kind=MutationRejectionKind.TIME_RESTRICTION,
                status_code=422,
            )
        if booking_id in self.rejected:
            raise MutationRejected("Booking update rejected", status_code=400)
        if booking_id not in self._bookings:
            raise MutationRejected(f"Booking {booking_id} not found", status_code=404)
        return self._bookings[booking_id]

    async def list_bookings(self, resource_id: str | None = None) -> list[dict[str, Any]]:
        self._check_read()
        return [
            copy.deepcopy(b)
            for b in self._bookings.values()
            if resource_id is None or b.get("resource_id") == resource_id
        ]

    async def get_booking(self, booking_id: str) -> dict[str, Any]:
        self._check_read()
        if booking_id not in self._bookings:
            raise FetchFailure(f"Booking {booking_id} not found", status_code=404)
        return copy.deepcopy(self._bookings[booking_id])

    async def list_schedule_blocks(self, resource_id: str) -> list[dict[str, Any]]:
        self._check_read()
        return copy.deepcopy(self._schedule_blocks.get(resource_id, []))

    async def get_service(self, service_id: str) -> dict[str, Any]:
        self._check_read()
        if service_id not in self._services:
            raise FetchFailure(f"Service {service_id} not found", status_code=404)
        return copy.deepcopy(self._services[service_id])

    async def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        booking_id = f"mock_booking_{len(self._bookings) + 1}"
        booking = {"id": booking_id, "is_canceled": False, "is_temporary": False, **copy.deepcopy(payload)}
        self._bookings[booking_id] = booking
        self._logger.info("Mock booking created", extra={"booking_id": booking_id, "resource_id": payload.get("resource_id")})
        return copy.deepcopy(booking)

    async def update_booking(self, booking_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        booking = self._check_write(booking_id)
        updates = dict(fields)
        if self.ignore_cancellations and updates.get("is_canceled"):
            updates.pop("is_canceled")
        # flags are authoritative once the service has touched a booking
        booking.pop("status", None)
        booking.update(updates)
        return copy.deepcopy(booking)

    async def cancel_booking(self, booking_id: str) -> None:
        booking = self._check_write(booking_id)
        if not self.ignore_cancellations:
            booking.pop("status", None)
            booking["is_canceled"] = True
        self._logger.info("Mock booking cancelled", extra={"booking_id": booking_id})

    async def delete_booking(self, booking_id: str) -> None:
        self._check_write(booking_id)
        del self._bookings[booking_id]
        self._logger.info("Mock booking deleted", extra={"booking_id": booking_id})
