"""
Tests for durable local state persistence.
"""

from __future__ import annotations

import json
import tempfile
from datetime import datetime, timezone

from booking_admin.domain.entities.booking import Booking, BookingStatus
from booking_admin.infrastructure.store.booking_cache import BookingCache
from booking_admin.infrastructure.store.json_store import JsonKeyValueStore
from booking_admin.infrastructure.store.modified_record_store import STORAGE_KEY, ModifiedRecordStore


def make_booking(booking_id: str) -> Booking:
    return Booking(
        id=booking_id,
        resource_id="res_1",
        service_id="svc_1",
        location_id="loc_1",
        starts_at=datetime(2031, 3, 3, 2, 0, tzinfo=timezone.utc),
        ends_at=datetime(2031, 3, 3, 2, 30, tzinfo=timezone.utc),
        timezone="Asia/Hong_Kong",
    )


def test_json_store_persistence():
    """Test that values written by one store instance are read back by another."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonKeyValueStore(data_dir=tmpdir)
        store.set("bookings_cache", [{"id": "b1"}])
        store.set("bookings_cache_valid", True)

        reopened = JsonKeyValueStore(data_dir=tmpdir)

        assert reopened.get("bookings_cache") == [{"id": "b1"}]
        assert reopened.contains("bookings_cache_valid") is True
        assert reopened.get("missing", "default") == "default"


def test_json_store_remove():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonKeyValueStore(data_dir=tmpdir)
        store.set("a", 1)
        store.remove("a")
        store.remove("never-set")

        assert store.contains("a") is False
        assert json.loads(store.file_path.read_text(encoding="utf-8")) == {}


def test_corrupted_file_starts_empty():
    """Test that an unreadable state file is treated as empty and then overwritten."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonKeyValueStore(data_dir=tmpdir)
        store.file_path.write_text("{ not json", encoding="utf-8")

        assert store.get("modified_bookings") is None

        store.set("modified_bookings", [])
        assert json.loads(store.file_path.read_text(encoding="utf-8")) == {"modified_bookings": []}


def test_no_temp_file_left_behind():
    with tempfile.TemporaryDirectory() as tmpdir:
        store = JsonKeyValueStore(data_dir=tmpdir)
        store.set("a", {"nested": [1, 2, 3]})

        assert not store.file_path.with_suffix(".json.tmp").exists()


def test_overlay_survives_restart():
    """Test that a cancellation recorded in the overlay persists across processes."""
    with tempfile.TemporaryDirectory() as tmpdir:
        kv = JsonKeyValueStore(data_dir=tmpdir)
        overlay = ModifiedRecordStore(kv, BookingCache(kv))
        overlay.cancel(make_booking("b1"))

        kv_after_restart = JsonKeyValueStore(data_dir=tmpdir)
        overlay_after_restart = ModifiedRecordStore(kv_after_restart, BookingCache(kv_after_restart))

        record = overlay_after_restart.get("b1")
        assert record is not None
        assert record.status is BookingStatus.CANCELLED
        assert record.booking.canceled_at is not None
        assert len(kv_after_restart.get(STORAGE_KEY)) == 1
