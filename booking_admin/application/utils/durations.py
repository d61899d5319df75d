from __future__ import annotations

import re

ISO_DURATION_RE = re.compile(r"^P(?:T(?:(\d+)H)?(?:(\d+)M)?(?:\d+S)?)?$")


def parse_iso_duration(value: str | None, default: int | None = None) -> int | None:
    """Parse an ISO-8601 duration like "PT1H30M" into minutes."""
    if not value:
        return default
    match = ISO_DURATION_RE.match(value.strip().upper())
    if not match or not (match.group(1) or match.group(2)):
        return default
    hours = int(match.group(1) or 0)
    minutes = int(match.group(2) or 0)
    return hours * 60 + minutes


def format_duration_minutes(minutes: int) -> str:
    if minutes < 60:
        return f"{minutes} min"
    hours, remainder = divmod(minutes, 60)
    if remainder == 0:
        return f"{hours} hour" if hours == 1 else f"{hours} hours"
    return f"{hours}h {remainder}m"


def add_minutes_to_time(time_string: str, minutes: int) -> str:
    """Shift an "HH:MM" wall-clock string, wrapping at midnight."""
    hour, minute = (int(part) for part in time_string.split(":")[:2])
    total = (hour * 60 + minute + minutes) % (24 * 60)
    return f"{total // 60:02d}:{total % 60:02d}"
