from __future__ import annotations

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass, replace
from datetime import datetime, timezone
from typing import Any

from booking_admin.application.dto.booking_payload import booking_to_payload, parse_booking
from booking_admin.application.exceptions import CorruptedOverlayRecord
from booking_admin.application.ports.key_value_store import KeyValueStorePort
from booking_admin.domain.entities.booking import Booking, BookingStatus, ModifiedRecord
from booking_admin.infrastructure.store.booking_cache import BookingCache

STORAGE_KEY = "modified_bookings"
LEGACY_CANCELLED_KEY = "cancelled_bookings"


@dataclass(frozen=True)
class OverlayStats:
    total: int
    cancelled: int
    tentative: int
    confirmed: int


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _entry_id(entry: Any) -> str | None:
    if not isinstance(entry, dict):
        return None
    value = entry.get("id")
    return str(value) if value not in (None, "") else None


def _matches(entry: Any, booking_id: str) -> bool:
    """Ids are compared as strings; legacy entries may carry numeric ids."""
    return _entry_id(entry) == str(booking_id)


def _normalize(entry: Any) -> Any:
    entry_id = _entry_id(entry)
    if entry_id is not None and entry["id"] != entry_id:
        return {**entry, "id": entry_id}
    return entry


def _is_recognizable(entry: Any) -> bool:
    if _entry_id(entry) is None:
        return False
    return bool(entry.get("status")) or entry.get("is_canceled") is not None


class ModifiedRecordStore:
    """
    Client-side overlay of booking mutations the booking service may not
    durably reflect (cancellations past a threshold, tentative markers).

    Holds at most one record per booking id. Every write is one
    read-modify-write under a lock and invalidates the shared bookings
    cache.
    """

    def __init__(
        self,
        kv: KeyValueStorePort,
        cache: BookingCache,
        default_timezone: str | None = None,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._kv = kv
        self._cache = cache
        self._default_timezone = default_timezone
        self._clock = clock
        self._lock = threading.RLock()
        self._logger = logging.getLogger(__name__)
        self._migrate_legacy()

    def _migrate_legacy(self) -> None:
        """Fold entries from the old cancelled_bookings key into the overlay."""
        legacy = self._kv.get(LEGACY_CANCELLED_KEY)
        if legacy is None:
            return
        with self._lock:
            if isinstance(legacy, list) and legacy:
                entries = self._load()
                existing_ids = {_entry_id(entry) for entry in entries}
                migrated = 0
                for entry in legacy:
                    entry_id = _entry_id(entry)
                    if entry_id is not None and entry_id not in existing_ids:
                        entries.append(_normalize(entry))
                        existing_ids.add(entry_id)
                        migrated += 1
                self._save(entries)
                self._logger.info("Migrated legacy cancelled bookings", extra={"count": migrated})
            elif not isinstance(legacy, list):
                self._logger.warning("Failed to migrate cancelled bookings: not a list")
            self._kv.remove(LEGACY_CANCELLED_KEY)

    def _load(self) -> list[Any]:
        entries = self._kv.get(STORAGE_KEY, [])
        if not isinstance(entries, list):
            self._logger.error("Failed to parse modified bookings, treating as empty")
            return []
        return [_normalize(entry) for entry in entries]

    def _save(self, entries: list[Any]) -> None:
        self._kv.set(STORAGE_KEY, entries)

    def _encode(self, booking: Booking, updated_at: datetime) -> dict[str, Any]:
        payload = booking_to_payload(booking)
        payload["updated_at"] = updated_at.isoformat()
        return payload

    def _decode(self, entry: Any) -> ModifiedRecord:
        if not _is_recognizable(entry):
            raise CorruptedOverlayRecord(f"Unrecognizable overlay entry: {entry!r}")
        try:
            booking = parse_booking(entry, self._default_timezone)
        except ValueError as e:
            raise CorruptedOverlayRecord(str(e)) from e
        updated_at = booking.updated_at or self._clock()
        return ModifiedRecord(booking=booking, updated_at=updated_at)

    def upsert(self, booking_id: str, booking: Booking) -> ModifiedRecord:
        """Insert or overwrite the record for `booking_id`."""
        now = self._clock()
        record_booking = replace(booking, id=booking_id, updated_at=now)
        encoded = self._encode(record_booking, now)
        with self._lock:
            entries = self._load()
            positions = [index for index, entry in enumerate(entries) if _matches(entry, booking_id)]
            if positions:
                # also collapses duplicates persisted by older clients
                entries[positions[0]] = encoded
                entries = [e for i, e in enumerate(entries) if i not in positions[1:]]
            else:
                entries.append(encoded)
            self._save(entries)
            self._cache.invalidate()
        self._logger.info(
            "Overlay record stored",
            extra={"booking_id": booking_id, "status": record_booking.status.value},
        )
        return ModifiedRecord(booking=record_booking, updated_at=now)

    def get(self, booking_id: str) -> ModifiedRecord | None:
        with self._lock:
            entries = self._load()
        for entry in entries:
            if _matches(entry, booking_id):
                try:
                    return self._decode(entry)
                except CorruptedOverlayRecord as e:
                    self._logger.debug("Skipping corrupted overlay record", extra={"booking_id": booking_id, "error": str(e)})
                    return None
        return None

    def is_modified(self, booking_id: str) -> bool:
        return self.get(booking_id) is not None

    def list(self) -> list[ModifiedRecord]:
        with self._lock:
            entries = self._load()
        records: list[ModifiedRecord] = []
        for entry in entries:
            try:
                records.append(self._decode(entry))
            except CorruptedOverlayRecord as e:
                self._logger.debug("Skipping corrupted overlay record", extra={"error": str(e)})
        return records

    def remove(self, booking_id: str) -> None:
        with self._lock:
            entries = self._load()
            filtered = [e for e in entries if not _matches(e, booking_id)]
            self._save(filtered)
            self._cache.invalidate()
        self._logger.info("Overlay record removed", extra={"booking_id": booking_id})

    def cancel(self, booking: Booking) -> ModifiedRecord:
        return self.upsert(booking.id, booking.with_status(BookingStatus.CANCELLED, now=self._clock()))

    def reactivate(self, booking: Booking) -> ModifiedRecord:
        return self.upsert(booking.id, booking.with_status(BookingStatus.CONFIRMED))

    def mark_tentative(self, booking: Booking, tentative: bool = True) -> ModifiedRecord:
        status = BookingStatus.TENTATIVE if tentative else BookingStatus.CONFIRMED
        return self.upsert(booking.id, booking.with_status(status))

    def bulk_cancel(self, bookings: Iterable[Booking]) -> list[ModifiedRecord]:
        return [self.cancel(booking) for booking in bookings if not booking.is_canceled]

    def cleanup(self) -> int:
        """Drop entries lacking an id or a status/flag, or that no longer decode. Returns how many."""
        with self._lock:
            entries = self._load()
            valid: list[Any] = []
            for entry in entries:
                try:
                    self._decode(entry)
                except CorruptedOverlayRecord:
                    continue
                valid.append(entry)
            removed = len(entries) - len(valid)
            if removed:
                self._save(valid)
        if removed:
            self._logger.info("Removed corrupted overlay records", extra={"count": removed})
        return removed

    def clear(self) -> None:
        with self._lock:
            self._kv.remove(STORAGE_KEY)
            self._cache.invalidate()
        self._logger.info("Overlay cleared")

    def stats(self) -> OverlayStats:
        records = self.list()
        return OverlayStats(
            total=len(records),
            cancelled=sum(1 for r in records if r.status is BookingStatus.CANCELLED),
            tentative=sum(1 for r in records if r.status is BookingStatus.TENTATIVE),
            confirmed=sum(1 for r in records if r.status is BookingStatus.CONFIRMED),
        )
