import logging

from booking_admin.core.config import settings
from booking_admin.application.ports.booking_service import BookingServicePort
from booking_admin.application.ports.key_value_store import KeyValueStorePort
from booking_admin.application.use_cases.availability import AvailabilityUseCase
from booking_admin.application.use_cases.booking_mutations import BookingMutationUseCase
from booking_admin.application.use_cases.create_booking import CreateBookingUseCase
from booking_admin.application.use_cases.list_bookings import ListBookingsUseCase
from booking_admin.infrastructure.booking_service.http_service import HttpBookingService
from booking_admin.infrastructure.booking_service.mock_service import MockBookingService
from booking_admin.infrastructure.store.booking_cache import BookingCache
from booking_admin.infrastructure.store.json_store import JsonKeyValueStore
from booking_admin.infrastructure.store.memory_store import MemoryKeyValueStore
from booking_admin.infrastructure.store.modified_record_store import ModifiedRecordStore


_kv_store: KeyValueStorePort | None = None
_booking_cache: BookingCache | None = None
_overlay_store: ModifiedRecordStore | None = None
_booking_service: BookingServicePort | None = None


def _is_local() -> bool:
    return settings.ENV.lower() in {"dev", "local"}


def get_kv_store() -> KeyValueStorePort:
    global _kv_store
    if _kv_store is None:
        if settings.STATE_BACKEND.lower() == "memory":
            logging.getLogger(__name__).warning("Using MemoryKeyValueStore; overlay records will not survive a restart")
            _kv_store = MemoryKeyValueStore()
        else:
            _kv_store = JsonKeyValueStore(data_dir=settings.STATE_DATA_DIR)
    return _kv_store


def get_booking_cache() -> BookingCache:
    global _booking_cache
    if _booking_cache is None:
        _booking_cache = BookingCache(get_kv_store())
    return _booking_cache


def get_overlay_store() -> ModifiedRecordStore:
    global _overlay_store
    if _overlay_store is None:
        _overlay_store = ModifiedRecordStore(
            get_kv_store(),
            get_booking_cache(),
            default_timezone=settings.DEFAULT_TIMEZONE,
        )
    return _overlay_store


def get_booking_service() -> BookingServicePort:
    global _booking_service
    if _booking_service is None:
        logger = logging.getLogger(__name__)
        logger.info("ENV=%s", settings.ENV)
        if not settings.BOOKING_API_BASE_URL or _is_local():
            logger.info("Using MockBookingService (base URL missing or ENV=dev/local)")
            _booking_service = MockBookingService()
        else:
            logger.info("Using HttpBookingService")
            _booking_service = HttpBookingService()
    return _booking_service


def get_list_bookings_use_case() -> ListBookingsUseCase:
    return ListBookingsUseCase(
        service=get_booking_service(),
        cache=get_booking_cache(),
        overlay=get_overlay_store(),
        default_timezone=settings.DEFAULT_TIMEZONE,
    )


def get_availability_use_case() -> AvailabilityUseCase:
    return AvailabilityUseCase(
        service=get_booking_service(),
        listing=get_list_bookings_use_case(),
        default_timezone=settings.DEFAULT_TIMEZONE,
        default_interval_minutes=settings.DEFAULT_SLOT_INTERVAL_MINUTES,
    )


def get_mutation_use_case() -> BookingMutationUseCase:
    return BookingMutationUseCase(
        service=get_booking_service(),
        listing=get_list_bookings_use_case(),
        overlay=get_overlay_store(),
        cache=get_booking_cache(),
        default_timezone=settings.DEFAULT_TIMEZONE,
    )


def get_create_booking_use_case() -> CreateBookingUseCase:
    return CreateBookingUseCase(
        service=get_booking_service(),
        listing=get_list_bookings_use_case(),
        availability=get_availability_use_case(),
        cache=get_booking_cache(),
        default_timezone=settings.DEFAULT_TIMEZONE,
    )
