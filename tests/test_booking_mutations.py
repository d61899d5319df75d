from __future__ import annotations

import pytest

from booking_admin.application.exceptions import MutationRejected
from booking_admin.application.use_cases.booking_mutations import SyncState
from booking_admin.domain.entities.booking import BookingStatus


@pytest.mark.asyncio
async def test_cancel_confirmed_by_server_clears_overlay(mutations, service, overlay, listing):
    result = await mutations.cancel("b1")

    assert result.sync is SyncState.CONFIRMED
    assert result.booking.status is BookingStatus.CANCELLED
    assert overlay.is_modified("b1") is False
    listed = {b.id: b.status for b in (await listing.execute()).bookings}
    assert listed["b1"] is BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_cancel_ignored_by_server_stays_local(mutations, service, overlay, listing):
    """The server keeps the booking active; the overlay keeps it cancelled."""
    service.ignore_cancellations = True

    result = await mutations.cancel("b1")

    assert result.sync is SyncState.LOCAL_ONLY
    assert overlay.get("b1").status is BookingStatus.CANCELLED
    listed = {b.id: b.status for b in (await listing.execute(force_refresh=True)).bookings}
    assert listed["b1"] is BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_time_restriction_is_suppressed(mutations, service, overlay):
    service.time_restricted.add("b1")

    result = await mutations.cancel("b1")

    assert result.sync is SyncState.LOCAL_ONLY
    assert result.booking.is_canceled is True
    assert overlay.get("b1").status is BookingStatus.CANCELLED


@pytest.mark.asyncio
async def test_other_rejection_rolls_back_and_raises(mutations, service, overlay):
    service.rejected.add("b1")

    with pytest.raises(MutationRejected) as exc_info:
        await mutations.cancel("b1")

    assert exc_info.value.is_time_restriction is False
    assert overlay.is_modified("b1") is False


@pytest.mark.asyncio
async def test_rollback_restores_previous_record(mutations, service, overlay, listing):
    booking = await listing.find("b1")
    overlay.mark_tentative(booking)
    service.rejected.add("b1")

    with pytest.raises(MutationRejected):
        await mutations.cancel("b1")

    assert overlay.get("b1").status is BookingStatus.TENTATIVE


@pytest.mark.asyncio
async def test_mark_tentative_then_approve(mutations, overlay):
    tentative = await mutations.mark_tentative("b1")
    assert tentative.sync is SyncState.CONFIRMED
    assert tentative.booking.status is BookingStatus.TENTATIVE

    approved = await mutations.approve("b1")
    assert approved.sync is SyncState.CONFIRMED
    assert approved.booking.status is BookingStatus.CONFIRMED
    assert overlay.list() == []


@pytest.mark.asyncio
async def test_reactivate_after_cancel(mutations):
    await mutations.cancel("b1")

    result = await mutations.reactivate("b1")

    assert result.sync is SyncState.CONFIRMED
    assert result.booking.status is BookingStatus.CONFIRMED
    assert result.booking.canceled_at is None


@pytest.mark.asyncio
async def test_delete_removes_booking_and_overlay(mutations, service, overlay, listing, cache):
    service.ignore_cancellations = True
    await mutations.cancel("b1")
    await listing.execute()
    assert cache.is_valid is True

    result = await mutations.delete("b1")

    assert result.sync is SyncState.CONFIRMED
    assert overlay.is_modified("b1") is False
    assert cache.is_valid is False
    assert [b.id for b in (await listing.execute()).bookings] == ["b2"]


@pytest.mark.asyncio
async def test_delete_rejection_propagates(mutations, service):
    service.rejected.add("b1")
    with pytest.raises(MutationRejected):
        await mutations.delete("b1")


@pytest.mark.asyncio
async def test_bulk_cancel_is_independent_per_id(mutations, service, overlay):
    service.rejected.add("b2")

    result = await mutations.bulk_cancel(["b1", "b2", "missing", "b1"])

    assert [r.booking_id for r in result.results] == ["b1"]
    assert set(result.failures) == {"b2", "missing"}
    assert overlay.is_modified("b2") is False


@pytest.mark.asyncio
async def test_bulk_delete(mutations, service, listing):
    result = await mutations.bulk_delete(["b1", "b2"])

    assert len(result.results) == 2
    assert result.failures == {}
    assert (await listing.execute()).bookings == []
