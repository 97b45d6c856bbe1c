from __future__ import annotations

import datetime as dt
import uuid
from enum import Enum
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from tutorsync.schemas.availability import DroppedSlot, StudentPreference, TimeSlot

PreferenceUpdateMode = Literal["replace", "merge"]


class SessionStatus(str, Enum):
    pending = "pending"
    scheduled = "scheduled"
    coordinated = "coordinated"


class ConflictResolution(str, Enum):
    no_teacher_availability = "no_teacher_availability"
    using_teacher_availability_only = "using_teacher_availability_only"
    perfect_match = "perfect_match"
    compromise_solution = "compromise_solution"
    no_suitable_timing = "no_suitable_timing"


class Session(BaseModel):
    """Aggregate root for one tutoring session.

    Storage belongs to the caller; the coordination engine only reads and
    writes the fields below and keeps ``schedule``/``status`` consistent with
    the roster and availability.
    """

    model_config = ConfigDict(validate_assignment=True)

    id: str = Field(default_factory=lambda: str(uuid.uuid4()), min_length=1, max_length=64)
    topic: str | None = Field(default=None, max_length=200)
    teacher_id: str | None = Field(default=None, max_length=64)
    teacher_availability: list[TimeSlot] = Field(default_factory=list)
    student_preferences: dict[str, StudentPreference] = Field(default_factory=dict)
    enrolled_students: set[str] = Field(default_factory=set)
    schedule: TimeSlot | None = None
    status: SessionStatus = SessionStatus.pending
    created_at: dt.datetime = Field(default_factory=dt.datetime.now)
    expires_at: dt.datetime | None = None


class CoordinationOutcome(BaseModel):
    success: bool
    conflict_resolution: ConflictResolution = Field(alias="conflictResolution")
    students_accommodated: int = Field(alias="studentsAccommodated", ge=0)
    total_students: int = Field(alias="totalStudents", ge=0)

    model_config = {
        "populate_by_name": True,
    }


class CoordinationResult(BaseModel):
    session_id: str
    status: SessionStatus
    schedule: TimeSlot | None = None
    outcome: CoordinationOutcome
    dropped_slots: list[DroppedSlot] = Field(default_factory=list)

    model_config = {
        "populate_by_name": True,
    }
