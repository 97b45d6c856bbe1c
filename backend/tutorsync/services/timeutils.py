from __future__ import annotations

import re
from datetime import date, datetime, timedelta
from enum import Enum

from tutorsync.core.exceptions import TimeFormatError, TimeRangeError

MINUTES_PER_DAY = 24 * 60

TIME_PATTERN = re.compile(r"^(\d{1,2}):(\d{2})$")
TWELVE_HOUR_PATTERN = re.compile(
    r"^(?P<hour>\d{1,2})(?::(?P<minute>\d{2}))?\s*(?P<period>[ap])\.?\s*m?\.?$",
    re.IGNORECASE,
)


class Weekday(str, Enum):
    monday = "Monday"
    tuesday = "Tuesday"
    wednesday = "Wednesday"
    thursday = "Thursday"
    friday = "Friday"
    saturday = "Saturday"
    sunday = "Sunday"

    @property
    def position(self) -> int:
        return WEEKDAY_ORDER.index(self)

    @classmethod
    def from_date(cls, value: date) -> "Weekday":
        return WEEKDAY_ORDER[value.weekday()]


# Matches date.weekday(): Monday == 0.
WEEKDAY_ORDER = (
    Weekday.monday,
    Weekday.tuesday,
    Weekday.wednesday,
    Weekday.thursday,
    Weekday.friday,
    Weekday.saturday,
    Weekday.sunday,
)

DAY_SHORT_MAP = {
    "mon": Weekday.monday,
    "tue": Weekday.tuesday,
    "tues": Weekday.tuesday,
    "wed": Weekday.wednesday,
    "thu": Weekday.thursday,
    "thur": Weekday.thursday,
    "thurs": Weekday.thursday,
    "fri": Weekday.friday,
    "sat": Weekday.saturday,
    "sun": Weekday.sunday,
}


def to_minutes(value: str) -> int:
    """Parse a 24-hour ``HH:MM`` string into minutes after midnight."""
    if not isinstance(value, str):
        raise TimeFormatError(value)
    match = TIME_PATTERN.match(value.strip())
    if match is None:
        raise TimeFormatError(value)
    hours, minutes = int(match.group(1)), int(match.group(2))
    if hours > 23 or minutes > 59:
        raise TimeFormatError(value, "Hour must be 0-23 and minute 0-59")
    return hours * 60 + minutes


def to_time_string(minutes: int) -> str:
    if not 0 <= minutes < MINUTES_PER_DAY:
        raise TimeRangeError(minutes)
    hours, remainder = divmod(minutes, 60)
    return f"{hours:02d}:{remainder:02d}"


def to_24_hour(value: object, fallback: str = "09:00") -> str:
    """Convert a 12- or 24-hour time string to zero-padded ``HH:MM``.

    Malformed input returns ``fallback`` instead of raising, so one bad field
    from the extraction layer does not discard the rest of a slot list.
    """
    if not isinstance(value, str):
        return fallback
    text = value.strip()
    if not text:
        return fallback

    twelve_hour = TWELVE_HOUR_PATTERN.match(text)
    if twelve_hour is not None:
        hour = int(twelve_hour.group("hour"))
        minute = int(twelve_hour.group("minute") or 0)
        if not 1 <= hour <= 12 or minute > 59:
            return fallback
        hour = hour % 12
        if twelve_hour.group("period").lower() == "p":
            hour += 12
        return f"{hour:02d}:{minute:02d}"

    try:
        return to_time_string(to_minutes(text))
    except TimeFormatError:
        return fallback


def normalize_day_name(value: object) -> Weekday:
    if isinstance(value, Weekday):
        return value
    if not isinstance(value, str) or not value.strip():
        raise TimeFormatError(value, "Weekday name is required")
    normalized = value.strip().lower().rstrip(".")
    for day in WEEKDAY_ORDER:
        if day.value.lower() == normalized:
            return day
    if normalized in DAY_SHORT_MAP:
        return DAY_SHORT_MAP[normalized]
    raise TimeFormatError(value, f"Unknown weekday: {value!r}")


def resolve_weekday_to_date(weekday: object, reference: datetime, cutoff_hour: int = 12) -> date:
    """Return the next calendar date falling on ``weekday``.

    When the reference date already is that weekday, today is kept only while
    the reference hour is at or before ``cutoff_hour``; later in the day the
    following week is used.
    """
    target = normalize_day_name(weekday)
    today = reference.date()
    days_ahead = (target.position - today.weekday()) % 7
    if days_ahead == 0 and reference.hour > cutoff_hour:
        days_ahead = 7
    return today + timedelta(days=days_ahead)
