from __future__ import annotations

import logging
from collections.abc import Iterator, Sequence
from dataclasses import dataclass

from tutorsync.core.exceptions import CoordinationError
from tutorsync.schemas.availability import TimeSlot
from tutorsync.services.matcher import group_by_date
from tutorsync.services.overlap import DEFAULT_MIN_WINDOW_MINUTES

DEFAULT_GRID_STEP_MINUTES = 15

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CompromiseResult:
    timing: TimeSlot | None
    students_accommodated: int
    teacher_index: int | None = None


def candidate_windows(
    slot_start: int,
    slot_end: int,
    *,
    step_minutes: int = DEFAULT_GRID_STEP_MINUTES,
    min_window_minutes: int = DEFAULT_MIN_WINDOW_MINUTES,
) -> Iterator[tuple[int, int]]:
    """Yield ``(start, end)`` pairs on the grid, earliest start then shortest first."""
    for start in range(slot_start, slot_end - min_window_minutes + 1, step_minutes):
        for end in range(start + min_window_minutes, slot_end + 1, step_minutes):
            yield start, end


def _accommodated(windows_by_student: dict[str, list[TimeSlot]], start: int, end: int) -> int:
    return sum(
        1
        for windows in windows_by_student.values()
        if any(window.start_time <= start and window.end_time >= end for window in windows)
    )


def find_compromise(
    teacher_slots: Sequence[TimeSlot],
    pool: Sequence[tuple[str, TimeSlot]],
    total_enrolled: int,
    *,
    step_minutes: int = DEFAULT_GRID_STEP_MINUTES,
    min_window_minutes: int = DEFAULT_MIN_WINDOW_MINUTES,
) -> CompromiseResult:
    """Pick the grid window that fits inside the most students' availability.

    A student counts as accommodated only when one of their windows fully
    contains the candidate. Ties keep the earliest teacher slot and then the
    earliest candidate in scan order.
    """
    if total_enrolled < 0:
        raise CoordinationError(
            "total_enrolled cannot be negative",
            details={"total_enrolled": total_enrolled},
        )
    contributing = {student_id for student_id, _ in pool}
    if len(contributing) > total_enrolled:
        raise CoordinationError(
            "Window pool contains more students than are enrolled",
            details={"total_enrolled": total_enrolled, "contributing": len(contributing)},
        )
    if not teacher_slots:
        return CompromiseResult(timing=None, students_accommodated=0)

    by_date = group_by_date(pool)
    best = CompromiseResult(timing=teacher_slots[0], students_accommodated=0, teacher_index=0)
    scanned = 0

    for index, teacher_slot in enumerate(teacher_slots):
        group = by_date.get(teacher_slot.date)
        if not group:
            continue
        windows_by_student: dict[str, list[TimeSlot]] = {}
        for student_id, window in group:
            windows_by_student.setdefault(student_id, []).append(window)

        for start, end in candidate_windows(
            teacher_slot.start_time,
            teacher_slot.end_time,
            step_minutes=step_minutes,
            min_window_minutes=min_window_minutes,
        ):
            scanned += 1
            count = _accommodated(windows_by_student, start, end)
            if count > best.students_accommodated:
                best = CompromiseResult(
                    timing=teacher_slot.with_window(start, end),
                    students_accommodated=count,
                    teacher_index=index,
                )

    logger.debug(
        "Compromise scan checked %d candidate window(s); best accommodates %d of %d student(s)",
        scanned,
        best.students_accommodated,
        total_enrolled,
    )
    return best
