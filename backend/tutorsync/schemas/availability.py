from __future__ import annotations

import datetime as dt
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from tutorsync.services.timeutils import MINUTES_PER_DAY, Weekday, to_time_string


class TimeSlot(BaseModel):
    """One canonical availability window on a single calendar date."""

    model_config = ConfigDict(frozen=True)

    date: dt.date
    weekday: Weekday
    start_time: int = Field(ge=0, lt=MINUTES_PER_DAY)
    end_time: int = Field(gt=0, lt=MINUTES_PER_DAY)
    timezone: str = Field(default="UTC", min_length=1, max_length=64)

    @model_validator(mode="after")
    def validate_time_order(self) -> "TimeSlot":
        if self.end_time <= self.start_time:
            raise ValueError("End time must be after start time")
        return self

    @property
    def start_label(self) -> str:
        return to_time_string(self.start_time)

    @property
    def end_label(self) -> str:
        return to_time_string(self.end_time)

    @property
    def duration_minutes(self) -> int:
        return self.end_time - self.start_time

    def with_window(self, start_time: int, end_time: int) -> "TimeSlot":
        return TimeSlot(
            date=self.date,
            weekday=self.weekday,
            start_time=start_time,
            end_time=end_time,
            timezone=self.timezone,
        )

    def to_payload(self) -> dict[str, str]:
        return {
            "date": self.date.isoformat(),
            "day": self.weekday.value,
            "startTime": self.start_label,
            "endTime": self.end_label,
            "timezone": self.timezone,
        }

    def __str__(self) -> str:
        return f"{self.weekday.value} {self.date.isoformat()} {self.start_label}-{self.end_label} {self.timezone}"


class RawSlot(BaseModel):
    """Slot record as emitted by the extraction layer, before normalization."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    date: Any = None
    day: str | None = None
    start_time: str = Field(alias="startTime")
    end_time: str = Field(alias="endTime")
    timezone: str | None = None

    @field_validator("start_time", "end_time", mode="before")
    @classmethod
    def coerce_time(cls, value: Any) -> Any:
        if value is None:
            raise ValueError("Time value is required")
        if isinstance(value, (int, float)):
            return str(value)
        return value

    @field_validator("date", "day", "timezone", mode="before")
    @classmethod
    def blank_as_missing(cls, value: Any) -> Any:
        if isinstance(value, str):
            trimmed = value.strip()
            if not trimmed or trimmed.lower() in {"undefined", "null", "none"}:
                return None
            return trimmed
        return value


class StudentPreference(BaseModel):
    student_id: str = Field(min_length=1, max_length=64)
    windows: list[TimeSlot] = Field(default_factory=list)
    last_updated: dt.datetime


class DroppedSlot(BaseModel):
    index: int
    reason: str
    raw: Any = None


class NormalizationResult(BaseModel):
    slots: list[TimeSlot] = Field(default_factory=list)
    dropped: list[DroppedSlot] = Field(default_factory=list)
