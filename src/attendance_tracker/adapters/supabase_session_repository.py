"""Supabase-backed attendance session repository."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from attendance_tracker.adapters.supabase_errors import storage_errors
from attendance_tracker.domain.people import Role
from attendance_tracker.domain.reports import CompletedTotals
from attendance_tracker.domain.sessions import AttendanceSession
from attendance_tracker.services.sessions import HISTORY_LIMIT, SessionRepository

ACTIVE_TABLE = "active_sessions"
COMPLETED_TABLE = "completed_sessions"
_TOTALS_PAGE = 1000

_COLUMNS = (
    "id, person_id, person_role, person_name, identifier, location, "
    "check_in_at, check_out_at, hours_worked, rating, is_supervised, "
    "is_auto_completed"
)


@dataclass
class SupabaseSessionRepository(SessionRepository):
    """Supabase implementation for active and completed sessions.

    `active_sessions` carries a unique index on `person_id`, so a second
    concurrent check-in for the same person is rejected by the database.
    """

    client: Client

    def create_active(self, session: AttendanceSession) -> None:
        """Insert an active session row."""
        with storage_errors(
            "active session insert",
            conflict_message="Person already has an active session",
        ):
            self.client.table(ACTIVE_TABLE).insert(_session_to_row(session)).execute()

    def get_active(self, session_id: UUID) -> AttendanceSession | None:
        """Return an active session by id, if present."""
        return self._get(ACTIVE_TABLE, "id", str(session_id))

    def get_active_for_person(self, person_id: UUID) -> AttendanceSession | None:
        """Return the active session for a person, if present."""
        return self._get(ACTIVE_TABLE, "person_id", str(person_id))

    def list_active(self) -> list[AttendanceSession]:
        """Return active sessions, newest check-in first."""
        with storage_errors("active session list"):
            response = (
                self.client.table(ACTIVE_TABLE)
                .select(_COLUMNS)
                .order("check_in_at", desc=True)
                .execute()
            )
        return [_row_to_session(row) for row in response.data or []]

    def save_completed(self, session: AttendanceSession) -> None:
        """Upsert a completed session row."""
        with storage_errors("completed session upsert"):
            self.client.table(COMPLETED_TABLE).upsert(
                _session_to_row(session)
            ).execute()

    def get_completed(self, session_id: UUID) -> AttendanceSession | None:
        """Return a completed session by id, if present."""
        return self._get(COMPLETED_TABLE, "id", str(session_id))

    def list_completed(
        self, person_id: UUID | None = None, limit: int = HISTORY_LIMIT
    ) -> list[AttendanceSession]:
        """Return completed sessions, newest check-out first."""
        with storage_errors("completed session list"):
            query = self.client.table(COMPLETED_TABLE).select(_COLUMNS)
            if person_id is not None:
                query = query.eq("person_id", str(person_id))
            response = query.order("check_out_at", desc=True).limit(limit).execute()
        return [_row_to_session(row) for row in response.data or []]

    def completed_totals(self, person_id: UUID | None = None) -> CompletedTotals:
        """Total every completed row, paging past the PostgREST row cap."""
        rows: list[dict[str, object]] = []
        start = 0
        with storage_errors("completed session totals"):
            while True:
                query = self.client.table(COMPLETED_TABLE).select(
                    "id, hours_worked, rating"
                )
                if person_id is not None:
                    query = query.eq("person_id", str(person_id))
                response = (
                    query.order("id").range(start, start + _TOTALS_PAGE - 1).execute()
                )
                page = response.data or []
                rows.extend(page)
                if len(page) < _TOTALS_PAGE:
                    break
                start += _TOTALS_PAGE
        return CompletedTotals.from_rows(
            (row.get("hours_worked"), row.get("rating")) for row in rows
        )

    def delete_active(self, session_id: UUID) -> bool:
        """Delete an active session row; False when no row matched."""
        with storage_errors("active session delete"):
            response = (
                self.client.table(ACTIVE_TABLE)
                .delete()
                .eq("id", str(session_id))
                .execute()
            )
        return bool(response.data)

    def _get(self, table: str, column: str, value: str) -> AttendanceSession | None:
        with storage_errors(f"{table} lookup"):
            response = (
                self.client.table(table)
                .select(_COLUMNS)
                .eq(column, value)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _row_to_session(response.data[0])


def _session_to_row(session: AttendanceSession) -> dict[str, object]:
    return {
        "id": str(session.id),
        "person_id": str(session.person_id),
        "person_role": session.person_role.value,
        "person_name": session.person_name,
        "identifier": session.identifier,
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


def _row_to_session(row: dict[str, object]) -> AttendanceSession:
    check_out = row.get("check_out_at")
    rating = row.get("rating")
    hours = row.get("hours_worked")
    return AttendanceSession(
        id=UUID(str(row["id"])),
        person_id=UUID(str(row["person_id"])),
        person_role=Role(str(row["person_role"])),
        person_name=str(row.get("person_name") or ""),
        identifier=str(row.get("identifier") or ""),
        location=str(row.get("location") or ""),
        check_in_at=datetime.fromisoformat(str(row["check_in_at"])),
        check_out_at=(
            datetime.fromisoformat(check_out)
            if isinstance(check_out, str) and check_out
            else None
        ),
        hours_worked=str(hours) if hours is not None else None,
        rating=int(rating) if rating else None,
        is_supervised=bool(row.get("is_supervised")),
        is_auto_completed=bool(row.get("is_auto_completed")),
    )
