from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from enum import Enum

from booking_admin.application.dto.booking_payload import parse_booking
from booking_admin.application.exceptions import BookingCoreError, FetchFailure, MutationRejected
from booking_admin.application.ports.booking_service import BookingServicePort
from booking_admin.application.use_cases.list_bookings import ListBookingsUseCase
from booking_admin.domain.entities.booking import Booking, BookingStatus, ModifiedRecord
from booking_admin.infrastructure.store.booking_cache import BookingCache
from booking_admin.infrastructure.store.modified_record_store import ModifiedRecordStore


class SyncState(str, Enum):
    LOCAL_ONLY = "local_only"
    CONFIRMED = "confirmed"


@dataclass(frozen=True)
class MutationResult:
    booking_id: str
    action: str
    sync: SyncState
    booking: Booking | None = None


@dataclass(frozen=True)
class BulkMutationResult:
    results: list[MutationResult] = field(default_factory=list)
    failures: dict[str, str] = field(default_factory=dict)


class BookingMutationUseCase:
    """
    Optimistic booking mutations.

    The overlay is written first so the change shows immediately; the
    remote call follows. A time-restriction refusal leaves the change
    local only. Any other refusal restores the overlay to what it held
    before and re-raises.
    """

    def __init__(
        self,
        service: BookingServicePort,
        listing: ListBookingsUseCase,
        overlay: ModifiedRecordStore,
        cache: BookingCache,
        default_timezone: str | None = None,
    ) -> None:
        self._service = service
        self._listing = listing
        self._overlay = overlay
        self._cache = cache
        self._default_timezone = default_timezone
        self._logger = logging.getLogger(__name__)

    def _rollback(self, booking_id: str, previous: ModifiedRecord | None) -> None:
        if previous is None:
            self._overlay.remove(booking_id)
        else:
            self._overlay.upsert(booking_id, previous.booking)
        self._logger.info("Overlay rolled back", extra={"booking_id": booking_id})

    async def _confirm(self, booking_id: str, action: str, intended: BookingStatus, local: Booking) -> MutationResult:
        """Drop the overlay record once the server reflects the intended status."""
        try:
            server = parse_booking(await self._service.get_booking(booking_id), self._default_timezone)
        except (FetchFailure, ValueError) as e:
            self._logger.warning("Could not re-read booking after mutation", extra={"booking_id": booking_id, "error": str(e)})
            return MutationResult(booking_id, action, SyncState.LOCAL_ONLY, local)

        if server.status is not intended:
            self._logger.info(
                "Server did not reflect change, keeping overlay record",
                extra={"booking_id": booking_id, "status": server.status.value, "state": intended.value},
            )
            return MutationResult(booking_id, action, SyncState.LOCAL_ONLY, local)

        self._overlay.remove(booking_id)
        return MutationResult(booking_id, action, SyncState.CONFIRMED, server)

    async def _apply(
        self,
        booking_id: str,
        action: str,
        intended: BookingStatus,
        write_local: Callable[[Booking], ModifiedRecord],
        write_remote: Callable[[], Awaitable[object]],
    ) -> MutationResult:
        booking = await self._listing.find(booking_id)
        previous = self._overlay.get(booking_id)
        record = write_local(booking)

        try:
            await write_remote()
        except MutationRejected as e:
            if e.is_time_restriction:
                self._logger.warning(
                    "Remote update refused by time restriction, keeping local change",
                    extra={"booking_id": booking_id, "reason": e.kind.value, "error": str(e)},
                )
                return MutationResult(booking_id, action, SyncState.LOCAL_ONLY, record.booking)
            self._rollback(booking_id, previous)
            raise

        self._cache.invalidate()
        return await self._confirm(booking_id, action, intended, record.booking)

    async def cancel(self, booking_id: str) -> MutationResult:
        return await self._apply(
            booking_id,
            "cancel",
            BookingStatus.CANCELLED,
            self._overlay.cancel,
            lambda: self._service.cancel_booking(booking_id),
        )

    async def reactivate(self, booking_id: str) -> MutationResult:
        return await self._apply(
            booking_id,
            "reactivate",
            BookingStatus.CONFIRMED,
            self._overlay.reactivate,
            lambda: self._service.update_booking(booking_id, {"is_canceled": False, "is_temporary": False}),
        )

    async def mark_tentative(self, booking_id: str) -> MutationResult:
        return await self._apply(
            booking_id,
            "tentative",
            BookingStatus.TENTATIVE,
            self._overlay.mark_tentative,
            lambda: self._service.update_booking(booking_id, {"is_temporary": True}),
        )

    async def approve(self, booking_id: str) -> MutationResult:
        return await self._apply(
            booking_id,
            "approve",
            BookingStatus.CONFIRMED,
            lambda booking: self._overlay.mark_tentative(booking, tentative=False),
            lambda: self._service.update_booking(booking_id, {"is_temporary": False}),
        )

    async def delete(self, booking_id: str) -> MutationResult:
        await self._service.delete_booking(booking_id)
        if self._overlay.is_modified(booking_id):
            self._overlay.remove(booking_id)
        else:
            self._cache.invalidate()
        return MutationResult(booking_id, "delete", SyncState.CONFIRMED)

    async def _bulk(self, booking_ids: Iterable[str], mutate: Callable[[str], Awaitable[MutationResult]]) -> BulkMutationResult:
        ids = list(dict.fromkeys(booking_ids))
        outcomes = await asyncio.gather(*(mutate(booking_id) for booking_id in ids), return_exceptions=True)

        results: list[MutationResult] = []
        failures: dict[str, str] = {}
        for booking_id, outcome in zip(ids, outcomes):
            if isinstance(outcome, MutationResult):
                results.append(outcome)
            elif isinstance(outcome, BookingCoreError):
                failures[booking_id] = str(outcome)
            else:
                raise outcome
        if failures:
            self._logger.warning("Bulk mutation partially failed", extra={"count": len(failures)})
        return BulkMutationResult(results=results, failures=failures)

    async def bulk_cancel(self, booking_ids: Iterable[str]) -> BulkMutationResult:
        return await self._bulk(booking_ids, self.cancel)

    async def bulk_delete(self, booking_ids: Iterable[str]) -> BulkMutationResult:
        return await self._bulk(booking_ids, self.delete)
