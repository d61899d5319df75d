from __future__ import annotations

from enum import Enum


class BookingCoreError(RuntimeError):
    """Base class for errors raised by the booking core."""
    pass


class ConversionError(BookingCoreError):
    """Raised when an instant, time string or zone name cannot be converted."""
    pass


class FetchFailure(BookingCoreError):
    """Raised when the booking service cannot be read (network error or non-2xx status)."""

    user_message = "Failed to fetch bookings"

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class MutationRejectionKind(str, Enum):
    TIME_RESTRICTION = "time_restriction"
    OTHER = "other"


class MutationRejected(BookingCoreError):
    """Raised when the booking service refuses an update, cancel or delete."""

    def __init__(
        self,
        message: str,
        kind: MutationRejectionKind = MutationRejectionKind.OTHER,
        status_code: int | None = None,
    ) -> None:
        super().__init__(message)
        self.kind = kind
        self.status_code = status_code

    @property
    def is_time_restriction(self) -> bool:
        return self.kind is MutationRejectionKind.TIME_RESTRICTION


class CorruptedOverlayRecord(BookingCoreError):
    """Raised when a persisted overlay entry cannot be decoded."""
    pass


class BookingNotFound(BookingCoreError):
    """Raised when a booking id is unknown to both the overlay and the service."""
    pass
