from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BookingServicePort(ABC):
    """
    Remote booking service. Reads raise FetchFailure, writes raise
    MutationRejected; payloads are the service's raw JSON objects.
    """

    @abstractmethod
    async def list_bookings(self, resource_id: str | None = None) -> list[dict[str, Any]]:
        """Fetch all bookings, optionally only those of one resource."""
        raise NotImplementedError

    @abstractmethod
    async def get_booking(self, booking_id: str) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def list_schedule_blocks(self, resource_id: str) -> list[dict[str, Any]]:
        """Fetch recurring weekly schedule blocks (weekday, start_time, end_time)."""
        raise NotImplementedError

    @abstractmethod
    async def get_service(self, service_id: str) -> dict[str, Any]:
        """Fetch service details (duration, bookable_interval, duration_step)."""
        raise NotImplementedError

    @abstractmethod
    async def create_booking(self, payload: dict[str, Any]) -> dict[str, Any]:
        raise NotImplementedError

    @abstractmethod
    async def update_booking(self, booking_id: str, fields: dict[str, Any]) -> dict[str, Any]:
        """PATCH partial fields, e.g. {"is_canceled": True} or {"is_temporary": False}."""
        raise NotImplementedError

    @abstractmethod
    async def cancel_booking(self, booking_id: str) -> None:
        raise NotImplementedError

    @abstractmethod
    async def delete_booking(self, booking_id: str) -> None:
        raise NotImplementedError
