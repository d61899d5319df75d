from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

import pytest

from booking_admin.application.use_cases.availability import AvailabilityUseCase
from booking_admin.application.use_cases.booking_mutations import BookingMutationUseCase
from booking_admin.application.use_cases.create_booking import CreateBookingUseCase
from booking_admin.application.use_cases.list_bookings import ListBookingsUseCase
from booking_admin.infrastructure.booking_service.mock_service import MockBookingService
from booking_admin.infrastructure.store.booking_cache import BookingCache
from booking_admin.infrastructure.store.memory_store import MemoryKeyValueStore
from booking_admin.infrastructure.store.modified_record_store import ModifiedRecordStore

HK = "Asia/Hong_Kong"

# 2031-03-03 is a Monday
BEFORE_MONDAY = datetime(2031, 3, 2, 12, 0, tzinfo=timezone.utc)


def raw_booking(
    booking_id: str,
    starts_at: str,
    ends_at: str,
    resource_id: str = "res_1",
    is_canceled: bool = False,
    is_temporary: bool = False,
    customer_name: str = "Ada Lovelace",
) -> dict[str, Any]:
    return {
        "id": booking_id,
        "resource": {"id": resource_id, "name": "Room A"},
        "service": {"id": "svc_1", "name": "Consultation"},
        "location": {"id": "loc_1", "time_zone": HK},
        "starts_at": starts_at,
        "ends_at": ends_at,
        "is_canceled": is_canceled,
        "is_temporary": is_temporary,
        "metadata": {"customer_name": customer_name, "email": "ada@example.com"},
        "price": 100.0,
    }


MONDAY_BLOCKS = {"res_1": [{"weekday": "Monday", "start_time": "09:00:00", "end_time": "12:00:00"}]}
SERVICES = {"svc_1": {"id": "svc_1", "name": "Consultation", "duration": "PT30M", "bookable_interval": "PT30M"}}


@pytest.fixture
def kv() -> MemoryKeyValueStore:
    return MemoryKeyValueStore()


@pytest.fixture
def cache(kv) -> BookingCache:
    return BookingCache(kv)


@pytest.fixture
def overlay(kv, cache) -> ModifiedRecordStore:
    return ModifiedRecordStore(kv, cache, default_timezone=HK)


@pytest.fixture
def service() -> MockBookingService:
    return MockBookingService(
        bookings=[
            # 10:00-10:30 and 11:00-12:00 Hong Kong time on the Monday
            raw_booking("b1", "2031-03-03T02:00:00Z", "2031-03-03T02:30:00Z"),
            raw_booking("b2", "2031-03-03T03:00:00Z", "2031-03-03T04:00:00Z", is_temporary=True),
        ],
        schedule_blocks=MONDAY_BLOCKS,
        services=SERVICES,
    )


@pytest.fixture
def listing(service, cache, overlay) -> ListBookingsUseCase:
    return ListBookingsUseCase(service, cache, overlay, default_timezone=HK)


@pytest.fixture
def mutations(service, listing, overlay, cache) -> BookingMutationUseCase:
    return BookingMutationUseCase(service, listing, overlay, cache, default_timezone=HK)


@pytest.fixture
def availability(service, listing) -> AvailabilityUseCase:
    return AvailabilityUseCase(service, listing, default_timezone=HK, default_interval_minutes=15)


@pytest.fixture
def creation(service, listing, availability, cache) -> CreateBookingUseCase:
    return CreateBookingUseCase(service, listing, availability, cache, default_timezone=HK)
