from __future__ import annotations

import json

import httpx
import pytest
import respx

from booking_admin.application.exceptions import FetchFailure, MutationRejected, MutationRejectionKind
from booking_admin.infrastructure.booking_service.http_service import HttpBookingService, classify_rejection

BASE = "https://booking.test/api"


def make_service(cancel_url: str = "") -> HttpBookingService:
    return HttpBookingService(base_url=BASE, cancel_url=cancel_url, timeout=5.0)


@pytest.mark.asyncio
@respx.mock
async def test_list_bookings_unwraps_data_envelope():
    route = respx.get(f"{BASE}/viewAllBookings").respond(200, json={"data": [{"id": "b1"}, {"id": "b2"}]})
    service = make_service()

    bookings = await service.list_bookings()

    assert [b["id"] for b in bookings] == ["b1", "b2"]
    assert route.called is True
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_list_bookings_accepts_bare_list():
    respx.get(f"{BASE}/viewAllBookings").respond(200, json=[{"id": "b1"}, "junk"])
    service = make_service()

    assert await service.list_bookings() == [{"id": "b1"}]
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_filtered_listing_passes_resource():
    route = respx.get(f"{BASE}/viewFilteredBookings", params={"resource_id": "res_1"}).respond(200, json={"data": []})
    service = make_service()

    await service.list_bookings(resource_id="res_1")

    assert route.calls.last.request.url.params["resource_id"] == "res_1"
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_read_error_status_raises_fetch_failure():
    respx.get(f"{BASE}/viewAllBookings").respond(500)
    service = make_service()

    with pytest.raises(FetchFailure) as exc_info:
        await service.list_bookings()

    assert exc_info.value.status_code == 500
    assert exc_info.value.user_message == "Failed to fetch bookings"
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_network_error_raises_fetch_failure():
    respx.get(f"{BASE}/viewBooking/b1").mock(side_effect=httpx.ConnectError("boom"))
    service = make_service()

    with pytest.raises(FetchFailure):
        await service.get_booking("b1")
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_schedule_blocks_and_service_details():
    respx.get(f"{BASE}/getResourceScheduleInfo/res_1").respond(
        200, json={"schedule_blocks": [{"weekday": "monday", "start_time": "09:00", "end_time": "12:00"}]}
    )
    respx.get(f"{BASE}/getService/svc_1").respond(200, json={"data": [{"id": "svc_1", "duration": "PT30M"}]})
    service = make_service()

    blocks = await service.list_schedule_blocks("res_1")
    details = await service.get_service("svc_1")

    assert blocks[0]["weekday"] == "monday"
    assert details["duration"] == "PT30M"
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_cancel_uses_dedicated_endpoint_when_configured():
    route = respx.post("https://cancel.test/cancel").respond(200, json={"ok": True})
    service = make_service(cancel_url="https://cancel.test/cancel")

    await service.cancel_booking("b1")

    assert json.loads(route.calls.last.request.content) == {"booking_id": "b1"}
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_cancel_falls_back_to_update():
    route = respx.patch(f"{BASE}/updateBooking/b1").respond(200, json={"id": "b1", "is_canceled": True})
    service = make_service()

    await service.cancel_booking("b1")

    assert json.loads(route.calls.last.request.content) == {"is_canceled": True}
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_time_restricted_rejection_is_classified():
    respx.patch(f"{BASE}/updateBooking/b1").respond(
        422, json={"message": "Booking cannot be cancelled less than 24 hours before start"}
    )
    service = make_service()

    with pytest.raises(MutationRejected) as exc_info:
        await service.cancel_booking("b1")

    assert exc_info.value.kind is MutationRejectionKind.TIME_RESTRICTION
    assert exc_info.value.status_code == 422
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_other_rejection_is_classified():
    respx.delete(f"{BASE}/deleteBooking/b1").respond(400, json={"error": "Booking is locked"})
    service = make_service()

    with pytest.raises(MutationRejected) as exc_info:
        await service.delete_booking("b1")

    assert exc_info.value.kind is MutationRejectionKind.OTHER
    assert str(exc_info.value) == "Booking is locked"
    await service.aclose()


@pytest.mark.asyncio
@respx.mock
async def test_create_booking_posts_payload():
    route = respx.post(f"{BASE}/createBookings").respond(200, json={"data": [{"id": "new_1"}]})
    service = make_service()

    created = await service.create_booking({"resource_id": "res_1"})

    assert created == {"id": "new_1"}
    assert json.loads(route.calls.last.request.content) == {"resource_id": "res_1"}
    await service.aclose()


def test_classify_rejection_patterns():
    assert classify_rejection("Too late to modify") is MutationRejectionKind.TIME_RESTRICTION
    assert classify_rejection("Outside cancellation window") is MutationRejectionKind.TIME_RESTRICTION
    assert classify_rejection("Server exploded") is MutationRejectionKind.OTHER
    assert classify_rejection("nope", patterns=["nope"]) is MutationRejectionKind.TIME_RESTRICTION


def test_base_url_is_required():
    with pytest.raises(ValueError):
        HttpBookingService(base_url="")
