from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime, timezone
from enum import Enum
from typing import Any


class BookingStatus(str, Enum):
    CONFIRMED = "Confirmed"
    TENTATIVE = "Tentative"
    CANCELLED = "Cancelled"

    @classmethod
    def parse(cls, value: Any) -> "BookingStatus | None":
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            return None
        normalized = value.strip().lower()
        if normalized == "canceled":
            normalized = "cancelled"
        for status in cls:
            if status.value.lower() == normalized:
                return status
        return None

    @classmethod
    def from_flags(cls, is_canceled: bool = False, is_temporary: bool = False) -> "BookingStatus":
        if is_canceled:
            return cls.CANCELLED
        if is_temporary:
            return cls.TENTATIVE
        return cls.CONFIRMED


@dataclass(frozen=True)
class Booking:
    id: str
    resource_id: str
    service_id: str
    location_id: str
    starts_at: datetime
    ends_at: datetime
    status: BookingStatus = BookingStatus.CONFIRMED
    timezone: str | None = None  # IANA zone of the location
    metadata: dict[str, Any] = field(default_factory=dict)
    resource_name: str | None = None
    service_name: str | None = None
    price: float | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
    canceled_at: datetime | None = None

    def __post_init__(self) -> None:
        if not self.starts_at < self.ends_at:
            raise ValueError(
                f"Booking {self.id!r} must start before it ends "
                f"({self.starts_at.isoformat()} >= {self.ends_at.isoformat()})"
            )

    @property
    def is_canceled(self) -> bool:
        return self.status is BookingStatus.CANCELLED

    @property
    def is_temporary(self) -> bool:
        return self.status is BookingStatus.TENTATIVE

    @property
    def duration_minutes(self) -> int:
        return round((self.ends_at - self.starts_at).total_seconds() / 60)

    @property
    def customer_name(self) -> str | None:
        return self.metadata.get("customer_name") or self.metadata.get("user_name")

    @property
    def customer_email(self) -> str | None:
        return self.metadata.get("email")

    @property
    def notes(self) -> str:
        return self.metadata.get("notes") or ""

    def with_status(self, status: BookingStatus, now: datetime | None = None) -> "Booking":
        """Copy of this booking carrying `status`; cancellation stamps canceled_at."""
        if status is BookingStatus.CANCELLED:
            canceled_at = self.canceled_at or now or datetime.now(timezone.utc)
        else:
            canceled_at = None
        return replace(self, status=status, canceled_at=canceled_at)


@dataclass(frozen=True)
class ModifiedRecord:
    booking: Booking
    updated_at: datetime

    @property
    def id(self) -> str:
        return self.booking.id

    @property
    def status(self) -> BookingStatus:
        return self.booking.status
