from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from booking_admin.application.dto.booking_payload import parse_booking
from booking_admin.application.exceptions import BookingNotFound, FetchFailure
from booking_admin.application.ports.booking_service import BookingServicePort
from booking_admin.application.use_cases.reconciliation import merge
from booking_admin.domain.entities.booking import Booking, BookingStatus, ModifiedRecord
from booking_admin.infrastructure.store.booking_cache import BookingCache
from booking_admin.infrastructure.store.modified_record_store import ModifiedRecordStore


class BookingView(str, Enum):
    ALL = "all"
    CONFIRMED = "confirmed"
    TENTATIVE = "tentative"
    CANCELLED = "cancelled"


_VIEW_STATUS = {
    BookingView.CONFIRMED: BookingStatus.CONFIRMED,
    BookingView.TENTATIVE: BookingStatus.TENTATIVE,
    BookingView.CANCELLED: BookingStatus.CANCELLED,
}


def _keep_record(record: ModifiedRecord) -> ModifiedRecord:
    return record


@dataclass(frozen=True)
class BookingListResult:
    # Server bookings first, then overlay records (still pending sync).
    items: list[Booking | ModifiedRecord] = field(default_factory=list)
    from_cache: bool = False
    error: str | None = None

    @property
    def bookings(self) -> list[Booking]:
        return [item.booking if isinstance(item, ModifiedRecord) else item for item in self.items]


class ListBookingsUseCase:
    def __init__(
        self,
        service: BookingServicePort,
        cache: BookingCache,
        overlay: ModifiedRecordStore,
        default_timezone: str | None = None,
    ) -> None:
        self._service = service
        self._cache = cache
        self._overlay = overlay
        self._default_timezone = default_timezone
        self._logger = logging.getLogger(__name__)

    async def refresh(self) -> list[dict[str, Any]]:
        """Fetch the full collection and store it as the valid cache."""
        raw = await self._service.list_bookings()
        self._cache.store(raw)
        self._logger.info("Bookings fetched", extra={"count": len(raw)})
        return raw

    def _parse(self, raw: list[dict[str, Any]]) -> list[Booking]:
        bookings: list[Booking] = []
        for entry in raw:
            try:
                bookings.append(parse_booking(entry, self._default_timezone))
            except ValueError as e:
                booking_id = entry.get("id") if isinstance(entry, dict) else None
                self._logger.warning("Skipping invalid booking", extra={"booking_id": booking_id, "error": str(e)})
        return bookings

    async def execute(self, view: BookingView | str = BookingView.ALL, force_refresh: bool = False) -> BookingListResult:
        view = BookingView(view)
        from_cache = False
        error: str | None = None

        cached = self._cache.raw() if self._cache.is_valid and not force_refresh else None
        if cached is not None:
            raw = cached
            from_cache = True
        else:
            try:
                raw = await self.refresh()
            except FetchFailure as e:
                self._logger.error("Error fetching bookings", extra={"error": str(e)})
                error = FetchFailure.user_message
                raw = self._cache.raw() or []
                from_cache = True

        items = merge(self._parse(raw), self._overlay.list(), transform=_keep_record)
        if view is not BookingView.ALL:
            status = _VIEW_STATUS[view]
            items = [item for item in items if item.status is status]
        return BookingListResult(items=items, from_cache=from_cache, error=error)

    async def find(self, booking_id: str) -> Booking:
        """Current view of one booking: overlay first, then cache, then the service."""
        record = self._overlay.get(booking_id)
        if record is not None:
            return record.booking

        cached = self._cache.raw() if self._cache.is_valid else None
        for entry in cached or []:
            if isinstance(entry, dict) and str(entry.get("id")) == booking_id:
                try:
                    return parse_booking(entry, self._default_timezone)
                except ValueError:
                    break

        try:
            raw = await self._service.get_booking(booking_id)
        except FetchFailure as e:
            if e.status_code == 404:
                raise BookingNotFound(f"Booking {booking_id} not found") from e
            raise
        if not raw:
            raise BookingNotFound(f"Booking {booking_id} not found")
        try:
            return parse_booking(raw, self._default_timezone)
        except ValueError as e:
            raise BookingNotFound(f"Booking {booking_id} could not be read: {e}") from e
