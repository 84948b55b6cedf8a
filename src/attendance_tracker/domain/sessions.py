"""Domain models for attendance sessions."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from attendance_tracker.domain.people import Person, Role


@dataclass(frozen=True)
class AttendanceSession:
    """Represents an active or completed attendance session."""

    id: UUID
    person_id: UUID
    person_role: Role
    person_name: str
    identifier: str
    location: str
    check_in_at: datetime
    check_out_at: datetime | None = None
    hours_worked: str | None = None
    rating: int | None = None
    is_supervised: bool = False
    is_auto_completed: bool = False

    @property
    def is_active(self) -> bool:
        """Return true while the session has no check-out time."""
        return self.check_out_at is None


@dataclass(frozen=True)
class IdentityContext:
    """Explicit caller identity issued after identifier resolution."""

    person: Person
    identifier: str
    issued_at: datetime
