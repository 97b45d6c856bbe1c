from __future__ import annotations

import datetime as dt
from collections import defaultdict
from collections.abc import Sequence
from dataclasses import dataclass

from tutorsync.schemas.availability import TimeSlot
from tutorsync.services.overlap import DEFAULT_MIN_WINDOW_MINUTES, resolve_overlap


@dataclass(frozen=True)
class PerfectMatch:
    timing: TimeSlot
    teacher_index: int


def group_by_date(pool: Sequence[tuple[str, TimeSlot]]) -> dict[dt.date, list[tuple[str, TimeSlot]]]:
    grouped: dict[dt.date, list[tuple[str, TimeSlot]]] = defaultdict(list)
    for student_id, window in pool:
        grouped[window.date].append((student_id, window))
    return dict(grouped)


def find_perfect_match(
    teacher_slots: Sequence[TimeSlot],
    pool: Sequence[tuple[str, TimeSlot]],
    *,
    min_window_minutes: int = DEFAULT_MIN_WINDOW_MINUTES,
) -> PerfectMatch | None:
    """Find one window inside a teacher slot that every pooled window contains.

    Teacher slots are tried in their listed order and the first success wins.
    An empty pool is trivially satisfied by the first teacher slot.
    """
    if not teacher_slots:
        return None
    if not pool:
        return PerfectMatch(timing=teacher_slots[0], teacher_index=0)

    by_date = group_by_date(pool)
    for index, teacher_slot in enumerate(teacher_slots):
        group = by_date.get(teacher_slot.date)
        if not group:
            continue
        overlap = resolve_overlap(
            teacher_slot,
            (window for _, window in group),
            min_window_minutes=min_window_minutes,
        )
        if overlap is None:
            continue
        start, end = overlap
        return PerfectMatch(timing=teacher_slot.with_window(start, end), teacher_index=index)
    return None
