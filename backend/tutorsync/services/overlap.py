from __future__ import annotations

from collections.abc import Iterable

from tutorsync.schemas.availability import TimeSlot

DEFAULT_MIN_WINDOW_MINUTES = 30


def resolve_overlap(
    teacher_slot: TimeSlot,
    windows: Iterable[TimeSlot],
    *,
    min_window_minutes: int = DEFAULT_MIN_WINDOW_MINUTES,
) -> tuple[int, int] | None:
    """Narrow ``teacher_slot`` by every window; ``None`` if nothing usable remains.

    All windows must already be on the teacher slot's date. Every window is an
    independent constraint: one disjoint window fails the whole group, even
    when it belongs to a student whose other window would have fit.
    """
    overlap_start = teacher_slot.start_time
    overlap_end = teacher_slot.end_time

    for window in windows:
        if window.start_time >= overlap_end or window.end_time <= overlap_start:
            return None
        overlap_start = max(overlap_start, window.start_time)
        overlap_end = min(overlap_end, window.end_time)

    if overlap_end - overlap_start < min_window_minutes:
        return None
    return overlap_start, overlap_end


def windows_overlap(first: TimeSlot, second: TimeSlot) -> bool:
    if first.date != second.date:
        return False
    return first.start_time < second.end_time and second.start_time < first.end_time
