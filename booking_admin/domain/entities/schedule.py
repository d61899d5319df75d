from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


WEEKDAYS = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")


def parse_clock(value: str) -> int:
    """Parse "HH:MM" (seconds ignored) into minutes after midnight."""
    parts = value.strip().split(":")
    if len(parts) < 2:
        raise ValueError(f"Invalid wall-clock time: {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    if not (0 <= hour <= 24 and 0 <= minute <= 59) or (hour == 24 and minute != 0):
        raise ValueError(f"Invalid wall-clock time: {value!r}")
    return hour * 60 + minute


def format_clock(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


@dataclass(frozen=True)
class ScheduleBlock:
    resource_id: str
    weekday: str  # lower-case English day name, e.g. "monday"
    start_time: str  # HH:MM
    end_time: str  # HH:MM

    def __post_init__(self) -> None:
        if self.weekday.lower() not in WEEKDAYS:
            raise ValueError(f"Unknown weekday: {self.weekday!r}")
        if parse_clock(self.start_time) >= parse_clock(self.end_time):
            raise ValueError(
                f"Schedule block must start before it ends ({self.start_time} >= {self.end_time})"
            )

    @property
    def start_minutes(self) -> int:
        return parse_clock(self.start_time)

    @property
    def end_minutes(self) -> int:
        return parse_clock(self.end_time)


class SlotAvailability(str, Enum):
    AVAILABLE = "available"
    BOOKED = "booked"
    PAST = "past"


@dataclass(frozen=True)
class TimeSlot:
    time: str  # HH:MM, wall clock in the resource zone
    availability: SlotAvailability

    @property
    def is_available(self) -> bool:
        return self.availability is SlotAvailability.AVAILABLE

    @property
    def is_booked(self) -> bool:
        return self.availability is SlotAvailability.BOOKED

    @property
    def is_past(self) -> bool:
        return self.availability is SlotAvailability.PAST
