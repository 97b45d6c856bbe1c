import datetime as dt

from tutorsync.schemas.availability import StudentPreference, TimeSlot
from tutorsync.services.timeutils import Weekday, to_minutes


def slot(day: str, start: str, end: str, timezone: str = "UTC") -> TimeSlot:
    slot_date = dt.date.fromisoformat(day)
    return TimeSlot(
        date=slot_date,
        weekday=Weekday.from_date(slot_date),
        start_time=to_minutes(start),
        end_time=to_minutes(end),
        timezone=timezone,
    )


def raw(day: str, start: str, end: str, **extra) -> dict:
    return {"date": day, "startTime": start, "endTime": end, **extra}


def preference(student_id: str, *windows: TimeSlot) -> StudentPreference:
    return StudentPreference(
        student_id=student_id,
        windows=list(windows),
        last_updated=dt.datetime(2025, 6, 27, 8, 0),
    )
