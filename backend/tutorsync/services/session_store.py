from __future__ import annotations

import datetime as dt
import logging
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from threading import Lock
from typing import Any

from tutorsync.core.config import Settings
from tutorsync.core.exceptions import SessionNotFoundError
from tutorsync.schemas.session import CoordinationResult, PreferenceUpdateMode, Session, SessionStatus
from tutorsync.services.coordination import CoordinationEngine
from tutorsync.services.overlap import windows_overlap

logger = logging.getLogger(__name__)

# Checked in order; the first family with a variant contained in the topic wins.
TOPIC_VARIANTS = {
    "react": ("react", "reactjs", "react.js", "react hooks", "react components", "react native"),
    "javascript": ("javascript", "js", "vanilla js", "es6", "node.js", "nodejs"),
    "python": ("python", "python3", "django", "flask", "fastapi"),
    "java": ("java", "spring", "spring boot", "hibernate"),
    "css": ("css", "css3", "styling", "bootstrap", "tailwind"),
    "html": ("html", "html5", "markup", "web development"),
    "database": ("sql", "mysql", "postgresql", "mongodb", "database"),
    "web": ("web development", "frontend", "backend", "fullstack"),
}


def normalize_topic(topic: str | None) -> str | None:
    """Map a free-form subject onto its topic family, e.g. "Django ORM" -> "python"."""
    if topic is None:
        return None
    normalized = topic.strip().lower()
    if not normalized:
        return None
    for family, variants in TOPIC_VARIANTS.items():
        if any(variant in normalized for variant in variants):
            return family
    return normalized


class InMemorySessionStore:
    """Document-store stand-in keyed by session id.

    Sessions are stored and returned as deep copies so that a caller holding a
    reference cannot change committed state without calling ``save``.
    """

    def __init__(self) -> None:
        self._sessions: dict[str, Session] = {}
        self._lock = Lock()

    def get(self, session_id: str) -> Session:
        with self._lock:
            session = self._sessions.get(session_id)
            if session is None:
                raise SessionNotFoundError(session_id)
            return session.model_copy(deep=True)

    def save(self, session: Session) -> None:
        with self._lock:
            self._sessions[session.id] = session.model_copy(deep=True)

    def delete(self, session_id: str) -> None:
        with self._lock:
            if self._sessions.pop(session_id, None) is None:
                raise SessionNotFoundError(session_id)

    def list_sessions(self) -> list[Session]:
        with self._lock:
            return [session.model_copy(deep=True) for session in self._sessions.values()]

    def __contains__(self, session_id: object) -> bool:
        with self._lock:
            return session_id in self._sessions

    def clear(self) -> None:
        with self._lock:
            self._sessions.clear()


class SessionCoordinator:
    """Runs engine mutations against stored sessions, one session at a time.

    Each session id gets its own lock so that a read-modify-write of one
    aggregate never interleaves with another on the same id. Different
    sessions proceed independently.
    """

    def __init__(self, *, store: InMemorySessionStore, engine: CoordinationEngine) -> None:
        self.store = store
        self.engine = engine
        self._locks: dict[str, Lock] = {}
        self._locks_guard = Lock()

    @property
    def settings(self) -> Settings:
        return self.engine.settings

    def _lock_for(self, session_id: str) -> Lock:
        with self._locks_guard:
            lock = self._locks.get(session_id)
            if lock is None:
                lock = Lock()
                self._locks[session_id] = lock
            return lock

    def _forget_lock(self, session_id: str) -> None:
        with self._locks_guard:
            self._locks.pop(session_id, None)

    @contextmanager
    def locked(self, session_id: str) -> Iterator[Session]:
        """Yield the stored session under its lock; saved back on clean exit."""
        with self._lock_for(session_id):
            session = self.store.get(session_id)
            yield session
            if session.id in self.store:
                self.store.save(session)

    def create_session(
        self,
        *,
        topic: str | None = None,
        teacher_id: str | None = None,
        teacher_availability: Iterable[Any] | None = None,
        session_id: str | None = None,
    ) -> tuple[Session, CoordinationResult]:
        fields: dict[str, Any] = {"topic": topic, "teacher_id": teacher_id}
        if session_id is not None:
            fields["id"] = session_id
        session = Session(**fields)
        with self._lock_for(session.id):
            result = self.engine.update_teacher_availability(session, teacher_availability or [])
            self.store.save(session)
        return session.model_copy(deep=True), result

    def update_teacher_availability(self, session_id: str, raw_slots: Iterable[Any] | None) -> CoordinationResult:
        with self.locked(session_id) as session:
            return self.engine.update_teacher_availability(session, raw_slots)

    def join(
        self,
        session_id: str,
        student_id: str,
        raw_windows: Iterable[Any] | None = None,
        *,
        mode: PreferenceUpdateMode = "replace",
    ) -> CoordinationResult:
        with self.locked(session_id) as session:
            return self.engine.join(session, student_id, raw_windows, mode=mode)

    def update_preferences(
        self,
        session_id: str,
        student_id: str,
        raw_windows: Iterable[Any] | None,
        *,
        mode: PreferenceUpdateMode = "replace",
    ) -> CoordinationResult:
        with self.locked(session_id) as session:
            return self.engine.update_preferences(session, student_id, raw_windows, mode=mode)

    def leave(self, session_id: str, student_id: str) -> CoordinationResult:
        with self.locked(session_id) as session:
            result = self.engine.leave(session, student_id)
            if not session.enrolled_students and self.settings.retire_empty_sessions:
                self.store.delete(session_id)
                self._forget_lock(session_id)
                logger.info("Retired session %s after its last student left", session_id)
            return result

    def recompute(self, session_id: str) -> CoordinationResult:
        with self.locked(session_id) as session:
            return self.engine.recompute(session)

    def find_compatible_sessions(
        self,
        topic: str | None,
        raw_windows: Iterable[Any] | None,
        *,
        student_id: str | None = None,
    ) -> list[Session]:
        """Sessions on the same topic with a committed time that fits the student.

        Topics are compared after ``normalize_topic``. Only scheduled or
        coordinated sessions the student is not already in are considered;
        larger groups come first.
        """
        windows = self.engine.normalizer.normalize(raw_windows).slots
        if not windows:
            return []
        wanted = normalize_topic(topic)
        compatible: list[Session] = []
        for session in self.store.list_sessions():
            if normalize_topic(session.topic) != wanted:
                continue
            if session.status not in (SessionStatus.scheduled, SessionStatus.coordinated):
                continue
            if session.schedule is None:
                continue
            if student_id is not None and student_id in session.enrolled_students:
                continue
            if any(windows_overlap(window, session.schedule) for window in windows):
                compatible.append(session)
        compatible.sort(key=lambda item: len(item.enrolled_students), reverse=True)
        return compatible

    def purge_expired(self, now: dt.datetime | None = None) -> list[str]:
        now = now or self.engine.clock()
        removed: list[str] = []
        for session in self.store.list_sessions():
            if session.expires_at is None or session.expires_at > now:
                continue
            with self._lock_for(session.id):
                if session.id not in self.store:
                    continue
                current = self.store.get(session.id)
                if current.expires_at is None or current.expires_at > now:
                    continue
                self.store.delete(session.id)
                self._forget_lock(session.id)
                removed.append(session.id)
        if removed:
            logger.info("Purged %d expired session(s)", len(removed))
        return removed
