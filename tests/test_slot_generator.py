from __future__ import annotations

from datetime import date

import pytest

from booking_admin.application.use_cases.slot_generator import generate_slots, unique_slots, valid_dates, weekday_name
from booking_admin.domain.entities.schedule import ScheduleBlock


def block(weekday: str, start: str, end: str) -> ScheduleBlock:
    return ScheduleBlock(resource_id="res_1", weekday=weekday, start_time=start, end_time=end)


def test_generates_interval_starts_within_block():
    slots = generate_slots([block("monday", "09:00", "10:00")], "monday", 15)
    assert slots == ["09:00", "09:15", "09:30", "09:45"]


def test_other_weekdays_are_ignored():
    blocks = [block("monday", "09:00", "10:00"), block("tuesday", "13:00", "14:00")]
    assert generate_slots(blocks, "tuesday", 30) == ["13:00", "13:30"]
    assert generate_slots(blocks, "wednesday", 30) == []


def test_remainder_shorter_than_interval_is_dropped():
    """A 50 minute block at 15 minute steps yields three starts, not four."""
    assert generate_slots([block("monday", "09:00", "09:50")], "monday", 15) == ["09:00", "09:15", "09:30"]


def test_overlapping_blocks_produce_duplicates():
    blocks = [block("monday", "09:00", "10:00"), block("monday", "09:30", "10:30")]
    slots = generate_slots(blocks, "monday", 30)

    assert slots == ["09:00", "09:30", "09:30", "10:00"]
    assert unique_slots(slots) == ["09:00", "09:30", "10:00"]


def test_blocks_walk_in_input_order():
    blocks = [block("monday", "14:00", "15:00"), block("monday", "09:00", "10:00")]
    assert generate_slots(blocks, "monday", 60) == ["14:00", "09:00"]


def test_empty_input_gives_empty_output():
    assert generate_slots([], "monday", 15) == []


def test_non_positive_interval_is_rejected():
    with pytest.raises(ValueError):
        generate_slots([block("monday", "09:00", "10:00")], "monday", 0)


def test_invalid_blocks_are_rejected():
    with pytest.raises(ValueError):
        block("monday", "10:00", "09:00")
    with pytest.raises(ValueError):
        block("funday", "09:00", "10:00")


def test_valid_dates_follow_block_weekdays():
    blocks = [block("monday", "09:00", "10:00"), block("wednesday", "09:00", "10:00")]
    dates = valid_dates(blocks, date(2031, 3, 3), date(2031, 3, 9))

    assert dates == [date(2031, 3, 3), date(2031, 3, 5)]
    assert weekday_name(date(2031, 3, 3)) == "monday"
    assert valid_dates([], date(2031, 3, 3), date(2031, 3, 9)) == []
