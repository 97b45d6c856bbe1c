from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Iterable, Sequence
from typing import Any

from tutorsync.core.config import Settings, get_settings
from tutorsync.core.exceptions import CoordinationError, StudentNotEnrolledError
from tutorsync.schemas.availability import DroppedSlot, StudentPreference, TimeSlot
from tutorsync.schemas.session import (
    ConflictResolution,
    CoordinationOutcome,
    CoordinationResult,
    PreferenceUpdateMode,
    Session,
    SessionStatus,
)
from tutorsync.services.compromise import find_compromise
from tutorsync.services.matcher import find_perfect_match
from tutorsync.services.normalizer import AvailabilityNormalizer, prune_past_slots

logger = logging.getLogger(__name__)

PREFERENCE_UPDATE_MODES = ("replace", "merge")


def merge_windows(existing: Sequence[TimeSlot], incoming: Iterable[TimeSlot]) -> list[TimeSlot]:
    """Merge keyed by calendar date: a same-date window is replaced, others appended."""
    merged = list(existing)
    for window in incoming:
        for position, current in enumerate(merged):
            if current.date == window.date:
                merged[position] = window
                break
        else:
            merged.append(window)
    return merged


class CoordinationEngine:
    """Decides a session's schedule and status from its roster and availability.

    The engine keeps no state between calls. ``evaluate`` is a pure function of
    the session snapshot and the clock; ``recompute`` and the mutation helpers
    write the decision back onto the aggregate. Callers must serialize calls
    per session.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
        normalizer: AvailabilityNormalizer | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock
        self.normalizer = normalizer or AvailabilityNormalizer(settings=self.settings, clock=clock)

    # ── decision ──────────────────────────────────────────────────────────────

    def evaluate(self, session: Session, *, now: dt.datetime | None = None) -> CoordinationResult:
        today = (now or self.clock()).date()
        teacher_slots, dropped = prune_past_slots(session.teacher_availability, today)

        pool: list[tuple[str, TimeSlot]] = []
        for student_id in sorted(session.enrolled_students):
            preference = session.student_preferences.get(student_id)
            if preference is None:
                continue
            windows, stale = prune_past_slots(preference.windows, today)
            for entry in stale:
                entry.reason = f"Student {student_id}: {entry.reason}"
            dropped.extend(stale)
            pool.extend((student_id, window) for window in windows)

        total = len(session.enrolled_students)

        def decide(
            status: SessionStatus,
            schedule: TimeSlot | None,
            resolution: ConflictResolution,
            accommodated: int,
        ) -> CoordinationResult:
            return CoordinationResult(
                session_id=session.id,
                status=status,
                schedule=schedule,
                outcome=CoordinationOutcome(
                    success=status != SessionStatus.pending,
                    conflict_resolution=resolution,
                    students_accommodated=accommodated,
                    total_students=total,
                ),
                dropped_slots=dropped,
            )

        if not teacher_slots:
            return decide(SessionStatus.pending, session.schedule, ConflictResolution.no_teacher_availability, 0)

        if not pool:
            return decide(
                SessionStatus.scheduled,
                teacher_slots[0],
                ConflictResolution.using_teacher_availability_only,
                total,
            )

        match = find_perfect_match(
            teacher_slots,
            pool,
            min_window_minutes=self.settings.min_window_minutes,
        )
        if match is not None:
            # Only students with a window on the matched date were checked;
            # the rest are counted as accommodated without verification.
            return decide(SessionStatus.scheduled, match.timing, ConflictResolution.perfect_match, total)

        compromise = find_compromise(
            teacher_slots,
            pool,
            total,
            step_minutes=self.settings.grid_step_minutes,
            min_window_minutes=self.settings.min_window_minutes,
        )
        accommodated = compromise.students_accommodated
        if compromise.timing is None or accommodated == 0:
            return decide(SessionStatus.pending, session.schedule, ConflictResolution.no_suitable_timing, 0)
        if accommodated >= total:
            return decide(SessionStatus.scheduled, compromise.timing, ConflictResolution.compromise_solution, total)
        return decide(
            SessionStatus.coordinated,
            compromise.timing,
            ConflictResolution.compromise_solution,
            accommodated,
        )

    def recompute(self, session: Session, *, now: dt.datetime | None = None) -> CoordinationResult:
        result = self.evaluate(session, now=now)
        session.schedule = result.schedule
        session.status = result.status
        session.expires_at = self.expiry_for(result.schedule)
        logger.info(
            "Session %s is %s (%s, %d of %d student(s) accommodated)",
            session.id,
            result.status.value,
            result.outcome.conflict_resolution.value,
            result.outcome.students_accommodated,
            result.outcome.total_students,
        )
        return result

    def expiry_for(self, schedule: TimeSlot | None) -> dt.datetime | None:
        if schedule is None:
            return None
        expiry_date = schedule.date + dt.timedelta(days=self.settings.expiry_days_after_session)
        return dt.datetime.combine(expiry_date, dt.time.min)

    # ── mutations ─────────────────────────────────────────────────────────────

    def update_teacher_availability(
        self,
        session: Session,
        raw_slots: Iterable[Any] | None,
        *,
        now: dt.datetime | None = None,
    ) -> CoordinationResult:
        now = now or self.clock()
        normalized = self.normalizer.normalize(raw_slots, now=now)
        session.teacher_availability = normalized.slots
        return self._recompute_with(session, normalized.dropped, now)

    def join(
        self,
        session: Session,
        student_id: str,
        raw_windows: Iterable[Any] | None = None,
        *,
        mode: PreferenceUpdateMode = "replace",
        now: dt.datetime | None = None,
    ) -> CoordinationResult:
        now = now or self.clock()
        session.enrolled_students.add(student_id)
        dropped: list[DroppedSlot] = []
        if raw_windows is not None:
            dropped = self._store_preferences(session, student_id, raw_windows, mode, now)
        return self._recompute_with(session, dropped, now)

    def leave(self, session: Session, student_id: str, *, now: dt.datetime | None = None) -> CoordinationResult:
        now = now or self.clock()
        if student_id not in session.enrolled_students:
            logger.debug("Student %s is not enrolled in session %s; nothing to remove", student_id, session.id)
        session.enrolled_students.discard(student_id)
        session.student_preferences.pop(student_id, None)
        return self._recompute_with(session, [], now)

    def update_preferences(
        self,
        session: Session,
        student_id: str,
        raw_windows: Iterable[Any] | None,
        *,
        mode: PreferenceUpdateMode = "replace",
        now: dt.datetime | None = None,
    ) -> CoordinationResult:
        if student_id not in session.enrolled_students:
            raise StudentNotEnrolledError(session.id, student_id)
        now = now or self.clock()
        dropped = self._store_preferences(session, student_id, raw_windows, mode, now)
        return self._recompute_with(session, dropped, now)

    def _store_preferences(
        self,
        session: Session,
        student_id: str,
        raw_windows: Iterable[Any] | None,
        mode: PreferenceUpdateMode,
        now: dt.datetime,
    ) -> list[DroppedSlot]:
        if mode not in PREFERENCE_UPDATE_MODES:
            raise CoordinationError(f"Unknown preference update mode: {mode!r}", details={"mode": mode})
        normalized = self.normalizer.normalize(raw_windows, now=now)
        existing = session.student_preferences.get(student_id)
        if mode == "merge":
            windows = merge_windows(existing.windows if existing else [], normalized.slots)
        else:
            windows = normalized.slots
        session.student_preferences[student_id] = StudentPreference(
            student_id=student_id,
            windows=windows,
            last_updated=now,
        )
        return normalized.dropped

    def _recompute_with(
        self,
        session: Session,
        dropped: list[DroppedSlot],
        now: dt.datetime,
    ) -> CoordinationResult:
        result = self.recompute(session, now=now)
        if not dropped:
            return result
        return result.model_copy(update={"dropped_slots": [*dropped, *result.dropped_slots]})
