"""
Conversions between wall-clock strings, civil dates, IANA zones and absolute instants.

Every public function is total: malformed input is turned into a
ConversionError internally, logged, and answered with an empty sentinel
("" / None / 0) so that presentation code never has to catch anything.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from booking_admin.application.exceptions import ConversionError
from booking_admin.core.config import settings

logger = logging.getLogger(__name__)

TIME_FORMAT = "%H:%M"
SHORT_DATE_FORMAT = "%a, %b %d"
DATE_FORMAT = "%a, %b %d, %Y"
FULL_FORMAT = "%a, %b %d, %Y %H:%M"

Instant = datetime | str


@dataclass(frozen=True)
class ZonedRange:
    range: str
    date: str
    start: str
    end: str
    timezone: str  # abbreviation shown next to the range


@dataclass(frozen=True)
class TimeRangeDisplay:
    primary: ZonedRange
    secondary: ZonedRange | None = None


def get_zone(name: str) -> ZoneInfo:
    if not name or not isinstance(name, str):
        raise ConversionError(f"Invalid timezone: {name!r}")
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise ConversionError(f"Unknown timezone: {name!r}") from e


def parse_instant(value: Instant) -> datetime:
    """Parse an ISO-8601 string (or pass a datetime through) as an aware instant."""
    if isinstance(value, datetime):
        instant = value
    elif isinstance(value, str) and value.strip():
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            instant = datetime.fromisoformat(text)
        except ValueError as e:
            raise ConversionError(f"Malformed ISO instant: {value!r}") from e
    else:
        raise ConversionError(f"Malformed ISO instant: {value!r}")

    if instant.tzinfo is None:
        instant = instant.replace(tzinfo=timezone.utc)
    return instant


def parse_civil_date(value: date | str) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ConversionError(f"Malformed civil date: {value!r}") from e


def parse_time_string(value: str) -> tuple[int, int]:
    try:
        hour_text, minute_text = value.strip().split(":")[:2]
        hour, minute = int(hour_text), int(minute_text)
    except (AttributeError, ValueError) as e:
        raise ConversionError(f"Malformed time string: {value!r}") from e
    if not (0 <= hour <= 23 and 0 <= minute <= 59):
        raise ConversionError(f"Time string out of range: {value!r}")
    return hour, minute


def to_zone_time(instant: Instant | None, zone: str, fmt: str = TIME_FORMAT) -> str:
    if not instant:
        return ""
    try:
        return parse_instant(instant).astimezone(get_zone(zone)).strftime(fmt)
    except ConversionError as e:
        logger.warning("Invalid date/timezone", extra={"error": str(e), "zone": zone})
        return ""


def to_zone_date(instant: Instant | None, zone: str, fmt: str = DATE_FORMAT) -> str:
    return to_zone_time(instant, zone, fmt)


def civil_time_to_instant(time_string: str, civil_date: date | str, zone: str) -> datetime | None:
    """Interpret "HH:MM" on `civil_date` as wall-clock time in `zone`."""
    try:
        hour, minute = parse_time_string(time_string)
        day = parse_civil_date(civil_date)
        return datetime(day.year, day.month, day.day, hour, minute, tzinfo=get_zone(zone))
    except ConversionError as e:
        logger.warning("Time string conversion error", extra={"error": str(e), "zone": zone})
        return None


def offset_label(zone: str, at: datetime | None = None) -> str:
    """UTC offset of `zone` for display, e.g. "GMT +8" or "GMT +5:30"."""
    try:
        tz = get_zone(zone)
    except ConversionError as e:
        logger.warning("Unknown timezone for offset label", extra={"error": str(e)})
        return "GMT +0"

    moment = (at or datetime.now(timezone.utc)).astimezone(tz)
    offset = moment.utcoffset()
    total_minutes = int(offset.total_seconds() // 60) if offset else 0
    sign = "+" if total_minutes >= 0 else "-"
    hours, minutes = divmod(abs(total_minutes), 60)
    if minutes == 0:
        return f"GMT {sign}{hours}"
    return f"GMT {sign}{hours}:{minutes:02d}"


def zone_abbreviation(zone: str, at: datetime | None = None) -> str:
    try:
        tz = get_zone(zone)
    except ConversionError:
        return zone.split("/")[-1] if zone else "UTC"
    return (at or datetime.now(timezone.utc)).astimezone(tz).strftime("%Z")


def duration_minutes(start: Instant | None, end: Instant | None) -> int:
    if not start or not end:
        return 0
    try:
        delta = parse_instant(end) - parse_instant(start)
    except ConversionError as e:
        logger.warning("Invalid duration bounds", extra={"error": str(e)})
        return 0
    return round(delta.total_seconds() / 60)


def viewer_timezone() -> str:
    """Zone of the person looking at the data (configured, TZ env var, or UTC)."""
    return settings.VIEWER_TIMEZONE or os.environ.get("TZ") or "UTC"


def is_today(instant: Instant, zone: str, now: datetime | None = None) -> bool:
    try:
        tz = get_zone(zone)
        moment = parse_instant(instant).astimezone(tz)
    except ConversionError:
        return False
    current = (now or datetime.now(timezone.utc)).astimezone(tz)
    return moment.date() == current.date()


def _zoned_range(start: Instant, end: Instant, zone: str) -> ZonedRange:
    start_time = to_zone_time(start, zone)
    end_time = to_zone_time(end, zone)
    at = None
    try:
        at = parse_instant(start)
    except ConversionError:
        pass
    abbreviation = zone_abbreviation(zone, at)
    return ZonedRange(
        range=f"{start_time} - {end_time} {abbreviation}",
        date=to_zone_date(start, zone, SHORT_DATE_FORMAT),
        start=start_time,
        end=end_time,
        timezone=abbreviation,
    )


def format_time_range(
    start: Instant,
    end: Instant,
    resource_zone: str,
    show_viewer_zone: bool = False,
    viewer_zone: str | None = None,
) -> TimeRangeDisplay:
    """Render a booking range in the resource zone and, optionally, the viewer's zone.

    The two renderings are computed independently; they agree only when the
    zones share an offset at that moment.
    """
    primary = _zoned_range(start, end, resource_zone)
    if not show_viewer_zone:
        return TimeRangeDisplay(primary=primary)
    secondary = _zoned_range(start, end, viewer_zone or viewer_timezone())
    return TimeRangeDisplay(primary=primary, secondary=secondary)
