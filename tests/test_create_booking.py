from __future__ import annotations

from dataclasses import replace
from datetime import date, datetime, timezone

import pytest

from booking_admin.application.use_cases.create_booking import CreateBookingRequest

from conftest import BEFORE_MONDAY

REQUEST = CreateBookingRequest(
    resource_id="res_1",
    service_id="svc_1",
    location_id="loc_1",
    day=date(2031, 3, 3),
    start_time="09:00",
    end_time="09:30",
    customer_name="Grace Hopper",
    customer_email="grace@example.com",
    notes="First visit",
)


@pytest.mark.asyncio
async def test_create_free_slot(creation, service, listing, cache):
    await listing.execute()

    result = await creation.execute(REQUEST, now=BEFORE_MONDAY)

    assert result.status == "created"
    assert result.booking is not None
    assert result.booking.starts_at == datetime(2031, 3, 3, 1, 0, tzinfo=timezone.utc)
    assert result.booking.customer_name == "Grace Hopper"
    assert result.booking.customer_email == "grace@example.com"
    assert result.booking.timezone == "Asia/Hong_Kong"
    assert cache.is_valid is False
    assert len((await listing.execute()).bookings) == 3


@pytest.mark.asyncio
async def test_conflict_is_reported(creation):
    request = replace(REQUEST, start_time="10:15", end_time="10:45")

    result = await creation.execute(request, now=BEFORE_MONDAY)

    assert result.status == "conflict"
    assert [b.id for b in result.conflicts] == ["b1"]


@pytest.mark.asyncio
async def test_conflict_can_be_overridden(creation):
    request = replace(REQUEST, start_time="10:15", end_time="10:45")

    result = await creation.execute(request, allow_conflicts=True, now=BEFORE_MONDAY)

    assert result.status == "created"
    assert [b.id for b in result.conflicts] == ["b1"]


@pytest.mark.asyncio
async def test_adjacent_booking_is_not_a_conflict(creation):
    result = await creation.execute(replace(REQUEST, start_time="09:30", end_time="10:00"), now=BEFORE_MONDAY)
    assert result.status == "created"


@pytest.mark.asyncio
async def test_validation_errors(creation):
    result = await creation.execute(
        replace(REQUEST, customer_name="  ", start_time="10:00", end_time="09:00"),
        now=BEFORE_MONDAY,
    )

    assert result.status == "invalid"
    assert "Customer name is required" in result.errors
    assert "Start time must be before end time" in result.errors


@pytest.mark.asyncio
async def test_past_start_is_invalid(creation):
    now = datetime(2031, 3, 3, 2, 0, tzinfo=timezone.utc)
    result = await creation.execute(REQUEST, now=now)
    assert result.errors == ["Booking cannot start in the past"]


@pytest.mark.asyncio
async def test_day_outside_schedule_is_invalid(creation):
    result = await creation.execute(replace(REQUEST, day=date(2031, 3, 4)), now=BEFORE_MONDAY)
    assert result.errors == ["Resource is not available on Tuesday"]


@pytest.mark.asyncio
async def test_malformed_time_is_invalid(creation):
    result = await creation.execute(replace(REQUEST, start_time="nine"), now=BEFORE_MONDAY)
    assert result.status == "invalid"
    assert result.errors == ["Invalid start time: nine"]


@pytest.mark.asyncio
async def test_availability_check_failure_does_not_block(creation, service):
    service.fail_reads = True

    result = await creation.execute(REQUEST, now=BEFORE_MONDAY)

    assert result.status == "created"
