"""Attendance session state machine."""

import logging
from dataclasses import dataclass, replace
from datetime import datetime, timedelta
from typing import Protocol
from uuid import UUID, uuid4

from attendance_tracker.config import DEFAULT_TIMEZONE
from attendance_tracker.domain.errors import (
    AmbiguousIdentityError,
    InvalidCodeError,
    InvalidStateError,
    NotFoundError,
    StorageError,
)
from attendance_tracker.domain.people import SUPERVISED_ROLES, Role
from attendance_tracker.domain.reports import CompletedTotals
from attendance_tracker.domain.sessions import AttendanceSession, IdentityContext
from attendance_tracker.services.audit import AuditService
from attendance_tracker.services.codes import CodeAuthority
from attendance_tracker.services.identity import IdentityResolver, ResolutionStatus
from attendance_tracker.services.people import PeopleService
from attendance_tracker.timeutils import format_hours, local_now

logger = logging.getLogger(__name__)

AUTO_COMPLETE_RATING = 5
HISTORY_LIMIT = 100
MAX_RATING = 5


class SessionRepository(Protocol):
    """Persistence interface for active and completed attendance sessions."""

    def create_active(self, session: AttendanceSession) -> None:
        """Store a new active session.

        Raises InvalidStateError when the person already has one.
        """

    def get_active(self, session_id: UUID) -> AttendanceSession | None:
        """Return an active session by id, if present."""

    def get_active_for_person(self, person_id: UUID) -> AttendanceSession | None:
        """Return the active session for a person, if present."""

    def list_active(self) -> list[AttendanceSession]:
        """Return active sessions, newest check-in first."""

    def save_completed(self, session: AttendanceSession) -> None:
        """Write a completed session, replacing any record with the same id."""

    def get_completed(self, session_id: UUID) -> AttendanceSession | None:
        """Return a completed session by id, if present."""

    def list_completed(
        self, person_id: UUID | None = None, limit: int = HISTORY_LIMIT
    ) -> list[AttendanceSession]:
        """Return completed sessions, newest check-out first."""

    def completed_totals(self, person_id: UUID | None = None) -> CompletedTotals:
        """Sum hours and ratings over all completed sessions, unbounded."""

    def delete_active(self, session_id: UUID) -> bool:
        """Remove an active session; return False when it was already gone."""


@dataclass
class AttendanceService:
    """Check-in and check-out policy per person and role."""

    resolver: IdentityResolver
    people_service: PeopleService
    code_authority: CodeAuthority
    session_repository: SessionRepository
    audit_service: AuditService
    timezone: str = DEFAULT_TIMEZONE
    auto_complete_hours: int = 4
    delete_retry_attempts: int = 3

    def identify(self, identifier: str, now: datetime | None = None) -> IdentityContext:
        """Issue an identity context for an identifier with exactly one match."""
        resolution = self.resolver.resolve(identifier)
        if resolution.status is ResolutionStatus.NOT_FOUND:
            raise NotFoundError("No registration found for that email or phone")
        if resolution.status is ResolutionStatus.AMBIGUOUS:
            raise AmbiguousIdentityError(resolution.candidates)
        return IdentityContext(
            person=resolution.candidates[0],
            identifier=identifier,
            issued_at=local_now(self.timezone, now),
        )

    def select_candidate(
        self, identifier: str, person_id: UUID, now: datetime | None = None
    ) -> IdentityContext:
        """Issue a context for one explicitly chosen candidate of an identifier."""
        resolution = self.resolver.resolve(identifier)
        for person in resolution.candidates:
            if person.id == person_id:
                return IdentityContext(
                    person=person,
                    identifier=identifier,
                    issued_at=local_now(self.timezone, now),
                )
        raise NotFoundError("That person is not registered under this identifier")

    def check_in(  # noqa: PLR0913
        self,
        context: IdentityContext,
        location: str,
        supplied_code: str | None = None,
        community_service: bool = False,
        now: datetime | None = None,
    ) -> AttendanceSession:
        """Start a session, or record an auto-completed one for volunteers."""
        checked_in_at = local_now(self.timezone, now)
        person = self.people_service.get(context.person.id, context.person.role)
        supervised = person.role in SUPERVISED_ROLES or community_service

        if supervised:
            check = self.code_authority.validate(supplied_code or "", checked_in_at)
            if not check.is_valid:
                logger.info(
                    "Rejected check-in code",
                    extra={"person_id": str(person.id), "reason": check.reason},
                )
                raise InvalidCodeError(check.reason)

        existing = self.session_repository.get_active_for_person(person.id)
        if existing is not None and self._settle_half_completed(existing):
            existing = None
        if existing is not None:
            raise InvalidStateError(
                "You are already checked in. Check out before starting a new session."
            )

        previous = person
        if community_service and person.role == Role.VOLUNTEER:
            person = self.people_service.upgrade_role(
                person, Role.COMMUNITY_SERVICE, actor=str(person.id)
            )

        session = AttendanceSession(
            id=uuid4(),
            person_id=person.id,
            person_role=person.role,
            person_name=person.display_name,
            identifier=context.identifier,
            location=location,
            check_in_at=checked_in_at,
            is_supervised=supervised,
        )
        if not supervised and person.role == Role.VOLUNTEER:
            return self._auto_complete(session)

        try:
            self.session_repository.create_active(session)
        except InvalidStateError:
            if person.role != previous.role:
                self.people_service.restore_role(previous, actor=str(person.id))
            raise
        self._record(session, "checked_in")
        logger.info("Checked in", extra={"session_id": str(session.id)})
        return session

    def check_out(
        self, session_id: UUID, rating: int | None = None, now: datetime | None = None
    ) -> AttendanceSession:
        """Complete an active session and compute hours worked."""
        if rating is not None and not 0 <= rating <= MAX_RATING:
            raise ValueError("Rating must be between 0 and 5")
        active = self.session_repository.get_active(session_id)
        if active is None or self._settle_half_completed(active):
            if self.session_repository.get_completed(session_id) is not None:
                raise InvalidStateError("This session has already been checked out")
            raise NotFoundError(f"No session with id {session_id}")

        checked_out_at = local_now(self.timezone, now)
        completed = replace(
            active,
            check_out_at=checked_out_at,
            hours_worked=format_hours(checked_out_at - active.check_in_at),
            rating=rating or None,
        )
        self.session_repository.save_completed(completed)
        self._remove_active(session_id)
        self._record(completed, "checked_out")
        logger.info(
            "Checked out",
            extra={"session_id": str(session_id), "hours": completed.hours_worked},
        )
        return completed

    def active_session(self, person_id: UUID) -> AttendanceSession | None:
        """Return the person's active session, if any."""
        active = self.session_repository.get_active_for_person(person_id)
        if active is not None and self._settle_half_completed(active):
            return None
        return active

    def history(
        self, person_id: UUID, limit: int = HISTORY_LIMIT
    ) -> list[AttendanceSession]:
        """Return the person's completed sessions, newest first."""
        return self.session_repository.list_completed(person_id=person_id, limit=limit)

    def _auto_complete(self, session: AttendanceSession) -> AttendanceSession:
        duration = timedelta(hours=self.auto_complete_hours)
        completed = replace(
            session,
            check_out_at=session.check_in_at + duration,
            hours_worked=format_hours(duration),
            rating=AUTO_COMPLETE_RATING,
            is_auto_completed=True,
        )
        self.session_repository.save_completed(completed)
        self._record(completed, "auto_completed")
        logger.info("Auto-completed check-in", extra={"session_id": str(completed.id)})
        return completed

    def _settle_half_completed(self, active: AttendanceSession) -> bool:
        """Finish a move whose delete step failed earlier; True if it was stale."""
        if self.session_repository.get_completed(active.id) is None:
            return False
        logger.warning(
            "Found active record for completed session",
            extra={"session_id": str(active.id)},
        )
        self._remove_active(active.id)
        return True

    def _remove_active(self, session_id: UUID) -> None:
        attempts = max(self.delete_retry_attempts, 1)
        for attempt in range(1, attempts + 1):
            try:
                self.session_repository.delete_active(session_id)
            except StorageError:
                logger.warning(
                    "Failed to remove active session (attempt %s of %s)",
                    attempt,
                    attempts,
                    extra={"session_id": str(session_id)},
                )
                if attempt == attempts:
                    raise
            else:
                return

    def _record(self, session: AttendanceSession, event_type: str) -> None:
        self.audit_service.record_event(
            actor=str(session.person_id),
            entity_type="attendance_session",
            entity_id=session.id,
            event_type=event_type,
            before=None,
            after=_session_snapshot(session),
        )


def _session_snapshot(session: AttendanceSession) -> dict[str, object]:
    return {
        "person_id": str(session.person_id),
        "role": session.person_role.value,
        "location": session.location,
        "check_in_at": session.check_in_at.isoformat(),
        "check_out_at": (
            session.check_out_at.isoformat() if session.check_out_at else None
        ),
        "hours_worked": session.hours_worked,
        "rating": session.rating,
        "is_supervised": session.is_supervised,
        "is_auto_completed": session.is_auto_completed,
    }
