from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, timedelta

from booking_admin.domain.entities.schedule import WEEKDAYS, ScheduleBlock, format_clock


def weekday_name(day: date) -> str:
    return WEEKDAYS[day.weekday()]


def generate_slots(
    schedule_blocks: Iterable[ScheduleBlock],
    weekday: str,
    interval_minutes: int,
) -> list[str]:
    """
    Expand the blocks for `weekday` into candidate start times.

    Blocks are walked in input order from start to end (exclusive) in
    `interval_minutes` steps; a trailing remainder shorter than one step
    yields nothing. Overlapping or duplicate blocks produce duplicate
    values: de-duplication is left to the caller (see unique_slots).
    """
    if interval_minutes <= 0:
        raise ValueError(f"interval_minutes must be positive, got {interval_minutes}")

    target = weekday.strip().lower()
    slots: list[str] = []
    for block in schedule_blocks:
        if block.weekday.lower() != target:
            continue
        current = block.start_minutes
        end = block.end_minutes
        while current + interval_minutes <= end:
            slots.append(format_clock(current))
            current += interval_minutes
    return slots


def unique_slots(slots: Iterable[str]) -> list[str]:
    """Order-preserving de-duplication of generated start times."""
    seen: set[str] = set()
    result: list[str] = []
    for slot in slots:
        if slot not in seen:
            seen.add(slot)
            result.append(slot)
    return result


def valid_dates(schedule_blocks: Sequence[ScheduleBlock], start: date, end: date) -> list[date]:
    """Dates in [start, end] falling on a weekday that has at least one block."""
    weekdays = {block.weekday.lower() for block in schedule_blocks}
    if not weekdays:
        return []
    dates: list[date] = []
    current = start
    while current <= end:
        if weekday_name(current) in weekdays:
            dates.append(current)
        current += timedelta(days=1)
    return dates
