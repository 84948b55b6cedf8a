"""Shared test fixtures."""

from dataclasses import dataclass, field, replace
from datetime import datetime
from uuid import UUID, uuid4
from zoneinfo import ZoneInfo

import pytest

from attendance_tracker.config import Settings
from attendance_tracker.containers import AppContainer, assemble_container
from attendance_tracker.domain.audit import AuditEvent
from attendance_tracker.domain.errors import InvalidStateError, StorageError
from attendance_tracker.domain.people import Person, Role
from attendance_tracker.domain.reports import CompletedTotals
from attendance_tracker.domain.sessions import AttendanceSession
from attendance_tracker.services.audit import AuditRepository, AuditService
from attendance_tracker.services.cache import LocalCodeCache, LocalSessionCache
from attendance_tracker.services.identity import PersonRepository

TZ = ZoneInfo("America/New_York")


def at(year: int, month: int, day: int, hour: int = 0, minute: int = 0) -> datetime:
    """Build a local wall-clock datetime for tests."""
    return datetime(year, month, day, hour, minute, tzinfo=TZ)


@dataclass
class InMemoryPersonRepository(PersonRepository):
    """In-memory person store for tests."""

    people: dict[UUID, Person] = field(default_factory=dict)

    def find_by_email(self, email: str) -> list[Person]:
        return [
            person
            for person in self.people.values()
            if person.email and person.email.lower() == email.lower()
        ]

    def find_by_phone(self, phone: str) -> list[Person]:
        return [person for person in self.people.values() if person.phone == phone]

    def get_person(self, person_id: UUID) -> Person | None:
        return self.people.get(person_id)

    def create_person(  # noqa: PLR0913
        self,
        role: Role,
        display_name: str,
        email: str | None,
        phone: str | None,
        registered_at: datetime,
    ) -> Person:
        person = Person(
            id=uuid4(),
            role=role,
            display_name=display_name,
            email=email,
            phone=phone,
            registered_at=registered_at,
        )
        self.people[person.id] = person
        return person

    def update_role(self, person_id: UUID, role: Role) -> Person:
        updated = replace(self.people[person_id], role=role)
        self.people[person_id] = updated
        return updated

    def count_people(self) -> int:
        return len(self.people)

    def add(
        self,
        role: Role,
        display_name: str,
        email: str | None = None,
        phone: str | None = None,
    ) -> Person:
        return self.create_person(role, display_name, email, phone, at(2024, 1, 1))


@dataclass
class InMemoryAuditRepository(AuditRepository):
    """In-memory audit repository for tests."""

    events: list[AuditEvent] = field(default_factory=list)

    def add_event(self, event: AuditEvent) -> None:
        self.events.append(event)


@dataclass
class FlakySessionRepository(LocalSessionCache):
    """Session store whose reads or deletes can be made to fail."""

    reads_fail: bool = False
    reject_creates: bool = False
    delete_failures: int = 0
    delete_calls: int = 0

    def create_active(self, session: AttendanceSession) -> None:
        if self.reject_creates:
            raise InvalidStateError("Person already has an active session")
        super().create_active(session)

    def get_active(self, session_id: UUID) -> AttendanceSession | None:
        self._maybe_fail()
        return super().get_active(session_id)

    def get_active_for_person(self, person_id: UUID) -> AttendanceSession | None:
        self._maybe_fail()
        return super().get_active_for_person(person_id)

    def list_active(self) -> list[AttendanceSession]:
        self._maybe_fail()
        return super().list_active()

    def get_completed(self, session_id: UUID) -> AttendanceSession | None:
        self._maybe_fail()
        return super().get_completed(session_id)

    def list_completed(
        self, person_id: UUID | None = None, limit: int = 100
    ) -> list[AttendanceSession]:
        self._maybe_fail()
        return super().list_completed(person_id=person_id, limit=limit)

    def completed_totals(self, person_id: UUID | None = None) -> CompletedTotals:
        self._maybe_fail()
        return super().completed_totals(person_id)

    def delete_active(self, session_id: UUID) -> bool:
        self.delete_calls += 1
        if self.delete_failures > 0:
            self.delete_failures -= 1
            raise StorageError("delete timed out")
        return super().delete_active(session_id)

    def _maybe_fail(self) -> None:
        if self.reads_fail:
            raise StorageError("primary unreachable")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_service_key="header.payload.signature",
        admin_token="admin-token",
        fallback_code="4321",
        timezone="America/New_York",
    )


@pytest.fixture
def volunteers() -> InMemoryPersonRepository:
    return InMemoryPersonRepository()


@pytest.fixture
def musicians() -> InMemoryPersonRepository:
    return InMemoryPersonRepository()


@pytest.fixture
def audit_repository() -> InMemoryAuditRepository:
    return InMemoryAuditRepository()


@pytest.fixture
def session_repository() -> FlakySessionRepository:
    return FlakySessionRepository()


@pytest.fixture
def container(
    settings: Settings,
    volunteers: InMemoryPersonRepository,
    musicians: InMemoryPersonRepository,
    audit_repository: InMemoryAuditRepository,
    session_repository: FlakySessionRepository,
) -> AppContainer:
    return assemble_container(
        settings=settings,
        volunteers=volunteers,
        musicians=musicians,
        session_repository=session_repository,
        code_repository=LocalCodeCache(),
        audit_service=AuditService(audit_repository),
    )
