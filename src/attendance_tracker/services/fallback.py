"""Primary/secondary repository chains with read fallback.

Reads go to the primary store and fall back to the local cache when the
primary raises StorageError; successful primary reads refresh the cache.
Writes target the primary only. Until the next successful primary read the
cache may lag behind a write; that window is accepted.
"""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar
from uuid import UUID

from attendance_tracker.domain.codes import AuditLogEntry, DailyCode
from attendance_tracker.domain.errors import StorageError
from attendance_tracker.domain.reports import CompletedTotals
from attendance_tracker.domain.sessions import AttendanceSession
from attendance_tracker.services.cache import LocalCodeCache, LocalSessionCache
from attendance_tracker.services.codes import CodeRepository
from attendance_tracker.services.sessions import HISTORY_LIMIT, SessionRepository

logger = logging.getLogger(__name__)

T = TypeVar("T")


def read_with_fallback(
    operation: str,
    primary: Callable[[], T],
    secondary: Callable[[], T],
    refresh: Callable[[T], None] | None = None,
) -> T:
    """Run a primary read, falling back to the secondary on storage errors."""
    try:
        result = primary()
    except StorageError:
        logger.warning("Primary store unavailable for %s; using local cache", operation)
        return secondary()
    if refresh is not None:
        refresh(result)
    return result


@dataclass
class FallbackSessionRepository(SessionRepository):
    """Session repository chaining a durable primary with a local cache."""

    primary: SessionRepository
    secondary: LocalSessionCache

    def create_active(self, session: AttendanceSession) -> None:
        """Write an active session to the primary store."""
        self.primary.create_active(session)

    def get_active(self, session_id: UUID) -> AttendanceSession | None:
        """Read an active session with fallback."""

        def refresh(session: AttendanceSession | None) -> None:
            if session is None:
                self.secondary.forget_active(session_id)
            else:
                self.secondary.remember(session)

        return read_with_fallback(
            "get_active",
            lambda: self.primary.get_active(session_id),
            lambda: self.secondary.get_active(session_id),
            refresh,
        )

    def get_active_for_person(self, person_id: UUID) -> AttendanceSession | None:
        """Read a person's active session with fallback."""

        def refresh(session: AttendanceSession | None) -> None:
            if session is None:
                self.secondary.forget_person_active(person_id)
            else:
                self.secondary.remember(session)

        return read_with_fallback(
            "get_active_for_person",
            lambda: self.primary.get_active_for_person(person_id),
            lambda: self.secondary.get_active_for_person(person_id),
            refresh,
        )

    def list_active(self) -> list[AttendanceSession]:
        """List active sessions with fallback."""
        return read_with_fallback(
            "list_active",
            self.primary.list_active,
            self.secondary.list_active,
            self.secondary.replace_active,
        )

    def save_completed(self, session: AttendanceSession) -> None:
        """Write a completed session to the primary store."""
        self.primary.save_completed(session)

    def get_completed(self, session_id: UUID) -> AttendanceSession | None:
        """Read a completed session with fallback."""
        return read_with_fallback(
            "get_completed",
            lambda: self.primary.get_completed(session_id),
            lambda: self.secondary.get_completed(session_id),
            self._remember_one,
        )

    def list_completed(
        self, person_id: UUID | None = None, limit: int = HISTORY_LIMIT
    ) -> list[AttendanceSession]:
        """List completed sessions with fallback."""
        return read_with_fallback(
            "list_completed",
            lambda: self.primary.list_completed(person_id=person_id, limit=limit),
            lambda: self.secondary.list_completed(person_id=person_id, limit=limit),
            self._remember_many,
        )

    def completed_totals(self, person_id: UUID | None = None) -> CompletedTotals:
        """Read completed-session totals with fallback."""
        return read_with_fallback(
            "completed_totals",
            lambda: self.primary.completed_totals(person_id),
            lambda: self.secondary.completed_totals(person_id),
        )

    def delete_active(self, session_id: UUID) -> bool:
        """Delete an active session from the primary store."""
        return self.primary.delete_active(session_id)

    def _remember_one(self, session: AttendanceSession | None) -> None:
        if session is not None:
            self.secondary.remember(session)

    def _remember_many(self, sessions: list[AttendanceSession]) -> None:
        for session in sessions:
            self.secondary.remember(session)


@dataclass
class FallbackCodeRepository(CodeRepository):
    """Code repository chaining a durable primary with a local cache."""

    primary: CodeRepository
    secondary: LocalCodeCache

    def get_daily_code(self) -> DailyCode | None:
        """Read the current code with fallback."""

        def refresh(code: DailyCode | None) -> None:
            if code is not None:
                self.secondary.save_daily_code(code)

        return read_with_fallback(
            "get_daily_code",
            self.primary.get_daily_code,
            self.secondary.get_daily_code,
            refresh,
        )

    def save_daily_code(self, code: DailyCode) -> None:
        """Write the current code to the primary store."""
        self.primary.save_daily_code(code)

    def append_audit_entry(self, entry: AuditLogEntry) -> None:
        """Append an audit entry in the primary store."""
        self.primary.append_audit_entry(entry)

    def list_audit_entries(self, limit: int) -> list[AuditLogEntry]:
        """Read audit entries with fallback."""
        return read_with_fallback(
            "list_audit_entries",
            lambda: self.primary.list_audit_entries(limit),
            lambda: self.secondary.list_audit_entries(limit),
            self.secondary.remember_entries,
        )

    def prune_audit_entries(self, keep: int) -> None:
        """Prune audit entries in the primary store."""
        self.primary.prune_audit_entries(keep)
