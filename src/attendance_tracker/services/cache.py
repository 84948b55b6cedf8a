"""Local in-process stores used as the secondary read cache."""

import threading
from dataclasses import dataclass, field
from uuid import UUID

from attendance_tracker.domain.codes import AuditLogEntry, DailyCode
from attendance_tracker.domain.errors import InvalidStateError
from attendance_tracker.domain.reports import CompletedTotals
from attendance_tracker.domain.sessions import AttendanceSession
from attendance_tracker.services.codes import CodeRepository
from attendance_tracker.services.sessions import HISTORY_LIMIT, SessionRepository


@dataclass
class LocalSessionCache(SessionRepository):
    """In-memory session store keeping Active and Completed sets disjoint."""

    _active: dict[UUID, AttendanceSession] = field(default_factory=dict)
    _completed: dict[UUID, AttendanceSession] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def create_active(self, session: AttendanceSession) -> None:
        """Store an active session unless the person already has one."""
        with self._lock:
            for existing in self._active.values():
                if existing.person_id == session.person_id:
                    raise InvalidStateError("Person already has an active session")
            self._active[session.id] = session

    def get_active(self, session_id: UUID) -> AttendanceSession | None:
        """Return an active session by id."""
        return self._active.get(session_id)

    def get_active_for_person(self, person_id: UUID) -> AttendanceSession | None:
        """Return the active session for a person."""
        with self._lock:
            for session in self._active.values():
                if session.person_id == person_id:
                    return session
        return None

    def list_active(self) -> list[AttendanceSession]:
        """Return active sessions, newest check-in first."""
        with self._lock:
            sessions = list(self._active.values())
        return sorted(sessions, key=lambda s: s.check_in_at, reverse=True)

    def save_completed(self, session: AttendanceSession) -> None:
        """Store a completed session."""
        with self._lock:
            self._completed[session.id] = session

    def get_completed(self, session_id: UUID) -> AttendanceSession | None:
        """Return a completed session by id."""
        return self._completed.get(session_id)

    def list_completed(
        self, person_id: UUID | None = None, limit: int = HISTORY_LIMIT
    ) -> list[AttendanceSession]:
        """Return completed sessions, newest check-out first."""
        with self._lock:
            sessions = [
                session
                for session in self._completed.values()
                if person_id is None or session.person_id == person_id
            ]
        sessions.sort(key=lambda s: s.check_out_at, reverse=True)
        return sessions[:limit]

    def completed_totals(self, person_id: UUID | None = None) -> CompletedTotals:
        """Sum hours and ratings over every stored completed session."""
        with self._lock:
            return CompletedTotals.from_rows(
                (session.hours_worked, session.rating)
                for session in self._completed.values()
                if person_id is None or session.person_id == person_id
            )

    def delete_active(self, session_id: UUID) -> bool:
        """Remove an active session; False when already absent."""
        with self._lock:
            return self._active.pop(session_id, None) is not None

    def remember(self, session: AttendanceSession) -> None:
        """Mirror a session read from the primary store."""
        with self._lock:
            if session.is_active:
                if session.id not in self._completed:
                    self._drop_person_active(session.person_id)
                    self._active[session.id] = session
                return
            self._active.pop(session.id, None)
            self._completed[session.id] = session

    def forget_active(self, session_id: UUID) -> None:
        """Drop an active session the primary store no longer has."""
        with self._lock:
            self._active.pop(session_id, None)

    def forget_person_active(self, person_id: UUID) -> None:
        """Drop every cached active session of a person."""
        with self._lock:
            self._drop_person_active(person_id)

    def replace_active(self, sessions: list[AttendanceSession]) -> None:
        """Mirror the full active set listed by the primary store."""
        with self._lock:
            self._active = {
                session.id: session
                for session in sessions
                if session.id not in self._completed
            }

    def _drop_person_active(self, person_id: UUID) -> None:
        stale = [
            session_id
            for session_id, session in self._active.items()
            if session.person_id == person_id
        ]
        for session_id in stale:
            del self._active[session_id]


@dataclass
class LocalCodeCache(CodeRepository):
    """In-memory daily code store with a bounded audit trail."""

    _code: DailyCode | None = None
    _entries: list[AuditLogEntry] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock)

    def get_daily_code(self) -> DailyCode | None:
        """Return the stored code."""
        return self._code

    def save_daily_code(self, code: DailyCode) -> None:
        """Overwrite the stored code."""
        self._code = code

    def append_audit_entry(self, entry: AuditLogEntry) -> None:
        """Append an audit entry."""
        with self._lock:
            self._entries.append(entry)

    def list_audit_entries(self, limit: int) -> list[AuditLogEntry]:
        """Return the newest audit entries first."""
        with self._lock:
            entries = list(reversed(self._entries))
        return entries[:limit]

    def prune_audit_entries(self, keep: int) -> None:
        """Evict the oldest entries beyond `keep`."""
        with self._lock:
            if len(self._entries) > keep:
                del self._entries[: len(self._entries) - keep]

    def remember_entries(self, entries: list[AuditLogEntry]) -> None:
        """Replace the mirrored audit trail with entries read newest first."""
        with self._lock:
            self._entries = list(reversed(entries))
