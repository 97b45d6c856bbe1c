from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Callable, Iterable, Mapping, Sequence
from typing import Any

from pydantic import ValidationError

from tutorsync.core.config import Settings, get_settings
from tutorsync.core.exceptions import TimeFormatError, TimeRangeError
from tutorsync.schemas.availability import DroppedSlot, NormalizationResult, RawSlot, TimeSlot
from tutorsync.services.timeutils import Weekday, resolve_weekday_to_date, to_24_hour, to_minutes

logger = logging.getLogger(__name__)


class SlotRejected(Exception):
    """Internal signal carrying the reason one raw slot was discarded."""


def _parse_date(value: Any) -> dt.date:
    if isinstance(value, dt.datetime):
        return value.date()
    if isinstance(value, dt.date):
        return value
    if isinstance(value, str):
        text = value.strip()
        try:
            # Accept both plain dates and ISO timestamps ("2025-06-30T00:00:00.000Z").
            return dt.date.fromisoformat(text[:10])
        except ValueError as exc:
            raise SlotRejected(f"Unparseable date {value!r}") from exc
    raise SlotRejected(f"Unsupported date value {value!r}")


class AvailabilityNormalizer:
    """Turns best-effort slot records into canonical ``TimeSlot`` values.

    Normalization never fails on domain input. A record that cannot be
    repaired is dropped and reported in ``NormalizationResult.dropped``; the
    remaining records are still returned.
    """

    def __init__(
        self,
        *,
        settings: Settings | None = None,
        clock: Callable[[], dt.datetime] = dt.datetime.now,
    ) -> None:
        self.settings = settings or get_settings()
        self.clock = clock

    def normalize(self, raw_slots: Iterable[Any] | None, *, now: dt.datetime | None = None) -> NormalizationResult:
        reference = now or self.clock()
        today = reference.date()
        slots: list[TimeSlot] = []
        dropped: list[DroppedSlot] = []

        for index, raw in enumerate(raw_slots or []):
            try:
                slot = self._normalize_one(raw, reference)
            except (SlotRejected, TimeFormatError, TimeRangeError) as exc:
                dropped.append(DroppedSlot(index=index, reason=str(exc), raw=raw))
                continue
            if slot.date < today:
                dropped.append(
                    DroppedSlot(index=index, reason=f"Date {slot.date.isoformat()} is in the past", raw=raw)
                )
                continue
            slots.append(slot)

        for entry in dropped:
            logger.warning("Dropped availability slot %d: %s", entry.index, entry.reason)
        return NormalizationResult(slots=slots, dropped=dropped)

    def _normalize_one(self, raw: Any, reference: dt.datetime) -> TimeSlot:
        if isinstance(raw, TimeSlot):
            return raw
        if isinstance(raw, RawSlot):
            record = raw
        elif isinstance(raw, Mapping):
            try:
                record = RawSlot.model_validate(dict(raw))
            except ValidationError as exc:
                fields = ", ".join(".".join(str(part) for part in err["loc"]) or "record" for err in exc.errors())
                raise SlotRejected(f"Malformed slot record ({fields})") from exc
        else:
            raise SlotRejected(f"Slot record must be a mapping, got {type(raw).__name__}")

        if record.date is not None:
            slot_date = _parse_date(record.date)
        elif record.day is not None:
            try:
                slot_date = resolve_weekday_to_date(
                    record.day,
                    reference,
                    cutoff_hour=self.settings.same_day_cutoff_hour,
                )
            except TimeFormatError as exc:
                raise SlotRejected(exc.message) from exc
        else:
            raise SlotRejected("Slot has neither a date nor a weekday")

        fallback = self.settings.fallback_time
        start = to_minutes(to_24_hour(record.start_time, fallback=fallback))
        end = to_minutes(to_24_hour(record.end_time, fallback=fallback))
        if end <= start:
            raise SlotRejected(f"Start time {record.start_time!r} is not before end time {record.end_time!r}")

        try:
            return TimeSlot(
                date=slot_date,
                weekday=Weekday.from_date(slot_date),
                start_time=start,
                end_time=end,
                timezone=record.timezone or self.settings.default_timezone,
            )
        except ValidationError as exc:
            raise SlotRejected(f"Invalid slot: {exc.errors()[0]['msg']}") from exc


def prune_past_slots(slots: Sequence[TimeSlot], today: dt.date) -> tuple[list[TimeSlot], list[DroppedSlot]]:
    """Re-apply the past-date rule to slots that were canonical when stored."""
    kept: list[TimeSlot] = []
    dropped: list[DroppedSlot] = []
    for index, slot in enumerate(slots):
        if slot.date < today:
            dropped.append(
                DroppedSlot(
                    index=index,
                    reason=f"Date {slot.date.isoformat()} is in the past",
                    raw=slot.to_payload(),
                )
            )
        else:
            kept.append(slot)
    return kept, dropped
