from __future__ import annotations

import logging
from datetime import date as Date
from typing import Any, NoReturn

from fastapi import APIRouter, Depends, HTTPException, Query

from booking_admin.api.schemas import (
    BookingListSchema,
    BulkRequestSchema,
    BulkResultSchema,
    CreateBookingResponseSchema,
    CreateBookingSchema,
    DayAvailabilitySchema,
    MutationResultSchema,
    OverlayStatsSchema,
    SignalResultSchema,
    TimeSlotSchema,
)
from booking_admin.application.exceptions import (
    BookingCoreError,
    BookingNotFound,
    FetchFailure,
    MutationRejected,
)
from booking_admin.application.use_cases.availability import AvailabilityUseCase
from booking_admin.application.use_cases.booking_mutations import (
    BookingMutationUseCase,
    BulkMutationResult,
    MutationResult,
)
from booking_admin.application.use_cases.create_booking import CreateBookingRequest, CreateBookingUseCase
from booking_admin.application.use_cases.list_bookings import BookingView, ListBookingsUseCase
from booking_admin.application.utils.booking_presenter import present_booking
from booking_admin.application.utils.timezone_converter import offset_label
from booking_admin.domain.entities.cache_state import CacheSignal
from booking_admin.infrastructure.store.booking_cache import BookingCache
from booking_admin.infrastructure.store.modified_record_store import ModifiedRecordStore
from booking_admin.wiring.dependencies import (
    get_availability_use_case,
    get_booking_cache,
    get_create_booking_use_case,
    get_list_bookings_use_case,
    get_mutation_use_case,
    get_overlay_store,
)


router = APIRouter()
logger = logging.getLogger(__name__)


def _raise_http(e: BookingCoreError) -> NoReturn:
    if isinstance(e, BookingNotFound):
        raise HTTPException(status_code=404, detail=str(e)) from e
    if isinstance(e, FetchFailure):
        raise HTTPException(status_code=502, detail=FetchFailure.user_message) from e
    if isinstance(e, MutationRejected):
        raise HTTPException(status_code=409, detail=str(e)) from e
    raise HTTPException(status_code=400, detail=str(e)) from e


def _mutation_schema(result: MutationResult) -> MutationResultSchema:
    return MutationResultSchema(
        booking_id=result.booking_id,
        action=result.action,
        sync=result.sync.value,
        booking=present_booking(result.booking),
    )


def _bulk_schema(result: BulkMutationResult) -> BulkResultSchema:
    return BulkResultSchema(
        results=[_mutation_schema(r) for r in result.results],
        failures=result.failures,
    )


@router.get("/bookings", response_model=BookingListSchema)
async def list_bookings(
    view: BookingView = Query(BookingView.ALL),
    refresh: bool = False,
    show_viewer_zone: bool = False,
    listing: ListBookingsUseCase = Depends(get_list_bookings_use_case),
) -> BookingListSchema:
    result = await listing.execute(view=view, force_refresh=refresh)
    presented = [present_booking(item, show_viewer_zone) for item in result.items]
    return BookingListSchema(
        bookings=[p for p in presented if p is not None],
        from_cache=result.from_cache,
        error=result.error,
    )


@router.get("/bookings/{booking_id}")
async def get_booking(
    booking_id: str,
    listing: ListBookingsUseCase = Depends(get_list_bookings_use_case),
    overlay: ModifiedRecordStore = Depends(get_overlay_store),
) -> dict[str, Any]:
    try:
        booking = await listing.find(booking_id)
    except BookingCoreError as e:
        _raise_http(e)
    presented = present_booking(booking) or {}
    presented["pending_sync"] = overlay.is_modified(booking_id)
    return presented


@router.get("/resources/{resource_id}/availability", response_model=DayAvailabilitySchema)
async def day_availability(
    resource_id: str,
    date: Date,
    timezone: str | None = None,
    service_id: str | None = None,
    unique: bool = False,
    availability: AvailabilityUseCase = Depends(get_availability_use_case),
) -> DayAvailabilitySchema:
    try:
        result = await availability.day_availability(
            resource_id,
            date,
            zone=timezone,
            service_id=service_id,
            unique=unique,
        )
    except BookingCoreError as e:
        _raise_http(e)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e

    return DayAvailabilitySchema(
        resource_id=resource_id,
        date=result.day,
        weekday=result.weekday,
        timezone=result.zone,
        offset=offset_label(result.zone),
        interval=result.interval,
        slot_duration=result.slot_duration,
        slots=[TimeSlotSchema(time=s.time, status=s.availability.value) for s in result.slots],
    )


@router.post("/bookings", response_model=CreateBookingResponseSchema)
async def create_booking(
    body: CreateBookingSchema,
    use_case: CreateBookingUseCase = Depends(get_create_booking_use_case),
) -> CreateBookingResponseSchema:
    request = CreateBookingRequest(
        resource_id=body.resource_id,
        service_id=body.service_id,
        location_id=body.location_id,
        day=body.date,
        start_time=body.start_time,
        end_time=body.end_time,
        customer_name=body.customer_name,
        customer_email=body.customer_email,
        notes=body.notes,
        timezone=body.timezone,
        tentative=body.tentative,
    )
    try:
        result = await use_case.execute(request, allow_conflicts=body.allow_conflicts)
    except BookingCoreError as e:
        _raise_http(e)

    if result.status == "invalid":
        raise HTTPException(status_code=400, detail=result.errors)

    logger.info("Create booking handled", extra={"resource_id": body.resource_id, "status": result.status})
    return CreateBookingResponseSchema(
        status=result.status,
        booking=present_booking(result.booking),
        conflicts=[p for p in (present_booking(b) for b in result.conflicts) if p is not None],
        errors=result.errors,
    )


@router.post("/bookings/bulk-cancel", response_model=BulkResultSchema)
async def bulk_cancel(
    body: BulkRequestSchema,
    mutations: BookingMutationUseCase = Depends(get_mutation_use_case),
) -> BulkResultSchema:
    return _bulk_schema(await mutations.bulk_cancel(body.booking_ids))


@router.post("/bookings/bulk-delete", response_model=BulkResultSchema)
async def bulk_delete(
    body: BulkRequestSchema,
    mutations: BookingMutationUseCase = Depends(get_mutation_use_case),
) -> BulkResultSchema:
    return _bulk_schema(await mutations.bulk_delete(body.booking_ids))


@router.post("/bookings/{booking_id}/{action}", response_model=MutationResultSchema)
async def mutate_booking(
    booking_id: str,
    action: str,
    mutations: BookingMutationUseCase = Depends(get_mutation_use_case),
) -> MutationResultSchema:
    handlers = {
        "cancel": mutations.cancel,
        "reactivate": mutations.reactivate,
        "tentative": mutations.mark_tentative,
        "approve": mutations.approve,
    }
    handler = handlers.get(action)
    if handler is None:
        raise HTTPException(status_code=404, detail=f"Unknown action: {action}")
    try:
        result = await handler(booking_id)
    except BookingCoreError as e:
        _raise_http(e)
    return _mutation_schema(result)


@router.delete("/bookings/{booking_id}", response_model=MutationResultSchema)
async def delete_booking(
    booking_id: str,
    mutations: BookingMutationUseCase = Depends(get_mutation_use_case),
) -> MutationResultSchema:
    try:
        result = await mutations.delete(booking_id)
    except BookingCoreError as e:
        _raise_http(e)
    return _mutation_schema(result)


@router.get("/overlay/stats", response_model=OverlayStatsSchema)
def overlay_stats(overlay: ModifiedRecordStore = Depends(get_overlay_store)) -> OverlayStatsSchema:
    stats = overlay.stats()
    return OverlayStatsSchema(
        total=stats.total,
        cancelled=stats.cancelled,
        tentative=stats.tentative,
        confirmed=stats.confirmed,
    )


@router.post("/overlay/cleanup")
def overlay_cleanup(overlay: ModifiedRecordStore = Depends(get_overlay_store)) -> dict[str, int]:
    return {"removed": overlay.cleanup()}


@router.delete("/overlay")
def overlay_clear(overlay: ModifiedRecordStore = Depends(get_overlay_store)) -> dict[str, str]:
    overlay.clear()
    return {"status": "cleared"}


@router.delete("/cache")
def cache_clear(cache: BookingCache = Depends(get_booking_cache)) -> dict[str, str]:
    cache.clear()
    return {"status": "cleared"}


@router.post("/signals/{signal}", response_model=SignalResultSchema)
async def cache_signal(
    signal: CacheSignal,
    cache: BookingCache = Depends(get_booking_cache),
    listing: ListBookingsUseCase = Depends(get_list_bookings_use_case),
) -> SignalResultSchema:
    try:
        refetched = await cache.handle_signal(signal, listing.refresh)
    except BookingCoreError as e:
        _raise_http(e)
    return SignalResultSchema(signal=signal.value, refetched=refetched, cache_state=cache.state.value)
