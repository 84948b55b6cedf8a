"""Reporting over completed attendance sessions."""

import csv
import io
from dataclasses import asdict, dataclass, fields
from uuid import UUID
from zoneinfo import ZoneInfo

from attendance_tracker.config import DEFAULT_TIMEZONE
from attendance_tracker.domain.reports import DashboardStats, SessionReportRow
from attendance_tracker.domain.sessions import AttendanceSession
from attendance_tracker.services.people import PeopleService
from attendance_tracker.services.sessions import HISTORY_LIMIT, SessionRepository

NO_RATING = "N/A"


@dataclass
class ReportService:
    """Builds dashboard figures and export rows."""

    session_repository: SessionRepository
    people_service: PeopleService
    timezone: str = DEFAULT_TIMEZONE

    def report_rows(
        self, person_id: UUID | None = None, limit: int = HISTORY_LIMIT
    ) -> list[SessionReportRow]:
        """Return completed sessions as report rows, newest first."""
        sessions = self.session_repository.list_completed(
            person_id=person_id, limit=limit
        )
        return [self.to_row(session) for session in sessions]

    def to_row(self, session: AttendanceSession) -> SessionReportRow:
        """Render a completed session in local time."""
        tz = ZoneInfo(self.timezone)
        check_in = session.check_in_at.astimezone(tz)
        check_out = (
            session.check_out_at.astimezone(tz) if session.check_out_at else None
        )
        return SessionReportRow(
            date=check_in.date().isoformat(),
            person_name=session.person_name,
            location=session.location,
            check_in_time=check_in.strftime("%H:%M"),
            check_out_time=check_out.strftime("%H:%M") if check_out else "",
            hours_worked=session.hours_worked or "",
            rating=str(session.rating) if session.rating else NO_RATING,
            identifier=session.identifier,
        )

    def export_csv(self, limit: int = HISTORY_LIMIT) -> str:
        """Render completed sessions as CSV text with a header row."""
        buffer = io.StringIO()
        writer = csv.DictWriter(
            buffer, fieldnames=[field.name for field in fields(SessionReportRow)]
        )
        writer.writeheader()
        for row in self.report_rows(limit=limit):
            writer.writerow(asdict(row))
        return buffer.getvalue()

    def dashboard(self) -> DashboardStats:
        """Return totals across all completed sessions."""
        totals = self.session_repository.completed_totals()
        return DashboardStats(
            total_hours=round(totals.total_hours, 2),
            completed_sessions=totals.sessions,
            average_rating=round(totals.average_rating, 1),
            active_sessions=len(self.session_repository.list_active()),
            registered_people=self.people_service.count(),
        )

    def total_hours(self, person_id: UUID) -> str:
        """Return a person's total completed hours with one decimal."""
        totals = self.session_repository.completed_totals(person_id)
        return f"{totals.total_hours:.1f}"
