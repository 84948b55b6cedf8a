"""Pydantic request and response models for the HTTP API."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from attendance_tracker.domain.codes import AuditLogEntry, DailyCode
from attendance_tracker.domain.people import Person, Role
from attendance_tracker.domain.sessions import AttendanceSession


class RegisterRequest(BaseModel):
    """Registration payload."""

    role: Role
    display_name: str = Field(min_length=1)
    email: str | None = None
    phone: str | None = None


class IdentifyRequest(BaseModel):
    """Identifier lookup payload."""

    identifier: str = Field(min_length=1)


class CheckInRequest(BaseModel):
    """Check-in payload."""

    identifier: str = Field(min_length=1)
    location: str = Field(min_length=1)
    person_id: UUID | None = None
    code: str | None = None
    community_service: bool = False


class CheckOutRequest(BaseModel):
    """Check-out payload."""

    session_id: UUID
    rating: int = Field(default=0, ge=0, le=5)


class IssueCodeRequest(BaseModel):
    """Daily code issuance payload."""

    admin_id: str = Field(min_length=1)
    code: str | None = Field(default=None, pattern=r"^[0-9]+$")


class PersonOut(BaseModel):
    """Candidate person summary."""

    person_id: UUID
    role: Role
    display_name: str

    @classmethod
    def from_domain(cls, person: Person) -> "PersonOut":
        return cls(
            person_id=person.id, role=person.role, display_name=person.display_name
        )


class IdentifyResponse(BaseModel):
    """Identifier lookup result."""

    status: str
    candidates: list[PersonOut]


class SessionOut(BaseModel):
    """Serialized attendance session."""

    session_id: UUID
    person_id: UUID
    person_role: Role
    person_name: str
    location: str
    check_in_at: datetime
    check_out_at: datetime | None = None
    hours_worked: str | None = None
    rating: int | None = None
    is_supervised: bool
    is_auto_completed: bool

    @classmethod
    def from_domain(cls, session: AttendanceSession) -> "SessionOut":
        return cls(
            session_id=session.id,
            person_id=session.person_id,
            person_role=session.person_role,
            person_name=session.person_name,
            location=session.location,
            check_in_at=session.check_in_at,
            check_out_at=session.check_out_at,
            hours_worked=session.hours_worked,
            rating=session.rating,
            is_supervised=session.is_supervised,
            is_auto_completed=session.is_auto_completed,
        )


class DailyCodeOut(BaseModel):
    """Serialized daily code."""

    code: str
    created_at: datetime
    expires_at: datetime
    created_by: str

    @classmethod
    def from_domain(cls, code: DailyCode) -> "DailyCodeOut":
        return cls(
            code=code.code,
            created_at=code.created_at,
            expires_at=code.expires_at,
            created_by=code.created_by,
        )


class AuditLogEntryOut(BaseModel):
    """Serialized code audit entry."""

    code: str
    action: str
    timestamp: datetime
    admin_id: str

    @classmethod
    def from_domain(cls, entry: AuditLogEntry) -> "AuditLogEntryOut":
        return cls(
            code=entry.code,
            action=entry.action.value,
            timestamp=entry.timestamp,
            admin_id=entry.admin_id,
        )
