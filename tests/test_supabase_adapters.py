"""Tests for Supabase adapter implementations."""

from dataclasses import dataclass, field, replace
from uuid import uuid4

import httpx
import pytest
from postgrest.exceptions import APIError

from attendance_tracker.adapters.supabase_audit_repository import (
    SupabaseAuditRepository,
)
from attendance_tracker.adapters.supabase_code_repository import SupabaseCodeRepository
from attendance_tracker.adapters.supabase_person_repository import (
    SupabasePersonRepository,
)
from attendance_tracker.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from attendance_tracker.domain.audit import AuditEvent
from attendance_tracker.domain.codes import AuditLogEntry, CodeAction, DailyCode
from attendance_tracker.domain.errors import InvalidStateError, StorageError
from attendance_tracker.domain.people import Role
from attendance_tracker.domain.sessions import AttendanceSession
from tests.conftest import at


@dataclass
class FakeResponse:
    data: list[dict[str, object]] | None
    count: int | None = None


@dataclass
class FakeTable:
    name: str
    response_queue: dict[str, list[list[dict[str, object]]]] = field(
        default_factory=lambda: {
            "select": [],
            "insert": [],
            "update": [],
            "upsert": [],
            "delete": [],
        }
    )
    last_payload: object | None = None
    last_filters: list[tuple[str, object]] = field(default_factory=list)
    last_range: tuple[int, int] | None = None
    count: int | None = None
    error: Exception | None = None

    def queue(self, action: str, data: list[dict[str, object]]) -> None:
        self.response_queue[action].append(data)

    def select(self, *_args, **_kwargs) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "select"
        return self

    def insert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "insert"
        self.last_payload = payload
        return self

    def update(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "update"
        self.last_payload = payload
        return self

    def upsert(self, payload) -> "FakeTable":  # type: ignore[no-untyped-def]
        self._action = "upsert"
        self.last_payload = payload
        return self

    def delete(self) -> "FakeTable":
        self._action = "delete"
        return self

    def eq(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def in_(self, column: str, value) -> "FakeTable":  # type: ignore[no-untyped-def]
        self.last_filters.append((column, value))
        return self

    def limit(self, _count: int) -> "FakeTable":
        return self

    def order(self, _column: str, desc: bool = False) -> "FakeTable":
        return self

    def range(self, start: int, end: int) -> "FakeTable":
        self.last_range = (start, end)
        return self

    def execute(self) -> FakeResponse:
        if self.error is not None:
            raise self.error
        action = getattr(self, "_action", "select")
        queue = self.response_queue.get(action, [])
        data = queue.pop(0) if queue else []
        return FakeResponse(data=data, count=self.count)


@dataclass
class FakeSupabaseClient:
    tables: dict[str, FakeTable] = field(default_factory=dict)

    def table(self, name: str) -> FakeTable:
        if name not in self.tables:
            self.tables[name] = FakeTable(name=name)
        return self.tables[name]


def _person_row(**overrides: object) -> dict[str, object]:
    row: dict[str, object] = {
        "id": str(uuid4()),
        "role": "volunteer",
        "display_name": "Val",
        "email": "val@example.com",
        "phone": None,
        "registered_at": at(2024, 1, 1).isoformat(),
    }
    row.update(overrides)
    return row


def _session() -> AttendanceSession:
    return AttendanceSession(
        id=uuid4(),
        person_id=uuid4(),
        person_role=Role.EMPLOYMENT,
        person_name="Erin",
        identifier="erin@example.com",
        location="Kitchen",
        check_in_at=at(2024, 3, 1, 10),
        is_supervised=True,
    )


def test_person_repository_lookup_and_create() -> None:
    client = FakeSupabaseClient()
    table = client.table("volunteers")
    row = _person_row()
    table.queue("select", [row])
    table.queue("insert", [row])

    repository = SupabasePersonRepository(client, table="volunteers")
    found = repository.find_by_email("VAL@example.com")
    created = repository.create_person(
        Role.VOLUNTEER, "Val", "val@example.com", None, at(2024, 1, 1)
    )

    assert ("email", "val@example.com") in table.last_filters
    assert found[0].display_name == "Val"
    assert found[0].role is Role.VOLUNTEER
    assert str(created.id) == row["id"]
    assert isinstance(table.last_payload, dict)
    assert table.last_payload["registered_at"] == at(2024, 1, 1).isoformat()


def test_person_repository_get_missing_returns_none() -> None:
    repository = SupabasePersonRepository(FakeSupabaseClient(), table="musicians")

    assert repository.get_person(uuid4()) is None


def test_person_repository_update_role() -> None:
    client = FakeSupabaseClient()
    table = client.table("volunteers")
    table.queue("update", [_person_row(role="community_service")])

    repository = SupabasePersonRepository(client, table="volunteers")
    updated = repository.update_role(uuid4(), Role.COMMUNITY_SERVICE)

    assert updated.role is Role.COMMUNITY_SERVICE
    assert table.last_payload == {"role": "community_service"}


def test_person_repository_update_role_without_row_raises() -> None:
    repository = SupabasePersonRepository(FakeSupabaseClient(), table="volunteers")

    with pytest.raises(StorageError):
        repository.update_role(uuid4(), Role.COMMUNITY_SERVICE)


def test_person_repository_count_uses_exact_count() -> None:
    client = FakeSupabaseClient()
    client.table("musicians").count = 7

    repository = SupabasePersonRepository(client, table="musicians")

    assert repository.count_people() == 7


def test_session_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    session = _session()
    repository = SupabaseSessionRepository(client)

    repository.create_active(session)
    active_table = client.table("active_sessions")
    row = active_table.last_payload
    assert isinstance(row, dict)
    active_table.queue("select", [row])

    fetched = repository.get_active(session.id)

    assert fetched == session


def test_session_repository_maps_completed_rows() -> None:
    client = FakeSupabaseClient()
    completed_table = client.table("completed_sessions")
    session = _session()
    repository = SupabaseSessionRepository(client)

    completed = replace(
        session, check_out_at=at(2024, 3, 1, 12, 30), hours_worked="2.50", rating=4
    )
    repository.save_completed(completed)
    row = completed_table.last_payload
    assert isinstance(row, dict)
    completed_table.queue("select", [{**row, "hours_worked": 2.5}])

    history = repository.list_completed(person_id=session.person_id)

    assert ("person_id", str(session.person_id)) in completed_table.last_filters
    assert history[0].check_out_at == at(2024, 3, 1, 12, 30)
    assert history[0].hours_worked == "2.5"
    assert history[0].rating == 4


def test_session_repository_totals_page_through_all_rows() -> None:
    client = FakeSupabaseClient()
    completed_table = client.table("completed_sessions")
    full_page = [
        {"id": str(uuid4()), "hours_worked": 4.0, "rating": 5} for _ in range(1000)
    ]
    completed_table.queue("select", full_page)
    completed_table.queue("select", [{"id": str(uuid4()), "hours_worked": "2.5"}])
    person_id = uuid4()
    repository = SupabaseSessionRepository(client)

    totals = repository.completed_totals(person_id)

    assert ("person_id", str(person_id)) in completed_table.last_filters
    assert completed_table.last_range == (1000, 1999)
    assert totals.sessions == 1001
    assert totals.total_hours == 4002.5
    assert totals.rated_sessions == 1000
    assert totals.average_rating == 5.0


def test_session_repository_unique_violation_is_invalid_state() -> None:
    client = FakeSupabaseClient()
    client.table("active_sessions").error = APIError(
        {
            "message": "duplicate key value violates unique constraint",
            "code": "23505",
            "hint": None,
            "details": None,
        }
    )
    repository = SupabaseSessionRepository(client)

    with pytest.raises(InvalidStateError):
        repository.create_active(_session())


def test_session_repository_transport_error_is_storage_error() -> None:
    client = FakeSupabaseClient()
    client.table("active_sessions").error = httpx.ConnectError("connection refused")
    repository = SupabaseSessionRepository(client)

    with pytest.raises(StorageError):
        repository.get_active(uuid4())


def test_session_repository_delete_reports_missing_row() -> None:
    client = FakeSupabaseClient()
    session_id = uuid4()
    client.table("active_sessions").queue("delete", [{"id": str(session_id)}])
    repository = SupabaseSessionRepository(client)

    assert repository.delete_active(session_id) is True
    assert repository.delete_active(session_id) is False


def test_code_repository_roundtrip() -> None:
    client = FakeSupabaseClient()
    codes_table = client.table("daily_codes")
    repository = SupabaseCodeRepository(client)
    daily_code = DailyCode(
        code="0042",
        created_at=at(2024, 1, 10, 15),
        expires_at=at(2024, 1, 12),
        created_by="admin",
    )

    repository.save_daily_code(daily_code)
    payload = codes_table.last_payload
    assert isinstance(payload, dict)
    assert payload["id"] == "current"
    codes_table.queue("select", [payload])

    assert repository.get_daily_code() == daily_code


def test_code_repository_audit_entries_and_prune() -> None:
    client = FakeSupabaseClient()
    audit_table = client.table("code_audit_log")
    repository = SupabaseCodeRepository(client)
    entry = AuditLogEntry(
        code="0042",
        action=CodeAction.GENERATED,
        timestamp=at(2024, 1, 10, 15),
        admin_id="admin",
    )

    repository.append_audit_entry(entry)
    payload = audit_table.last_payload
    assert isinstance(payload, dict)
    assert payload["action"] == "generated"
    audit_table.queue("select", [payload])
    assert repository.list_audit_entries(10) == [entry]

    audit_table.queue("select", [{"id": 1}, {"id": 2}])
    repository.prune_audit_entries(100)

    assert audit_table.last_range == (100, 1099)
    assert ("id", [1, 2]) in audit_table.last_filters


def test_audit_repository_insert() -> None:
    client = FakeSupabaseClient()
    repository = SupabaseAuditRepository(client)
    entity_id = uuid4()

    repository.add_event(
        AuditEvent(
            actor="someone",
            entity_type="person",
            entity_id=entity_id,
            event_type="role_changed",
            occurred_at=at(2024, 3, 1, 9),
            before={"role": "volunteer"},
            after={"role": "community_service"},
        )
    )

    payload = client.table("audit_events").last_payload
    assert isinstance(payload, dict)
    assert payload["entity_id"] == str(entity_id)
    assert payload["before_json"] == {"role": "volunteer"}
    assert payload["occurred_at"] == at(2024, 3, 1, 9).isoformat()
