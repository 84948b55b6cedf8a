"""Supabase-backed person repository for one role store."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from supabase import Client

from attendance_tracker.adapters.supabase_errors import storage_errors
from attendance_tracker.domain.errors import StorageError
from attendance_tracker.domain.people import Person, Role
from attendance_tracker.services.identity import PersonRepository

_COLUMNS = "id, role, display_name, email, phone, registered_at"


@dataclass
class SupabasePersonRepository(PersonRepository):
    """Supabase implementation for a table of person records."""

    client: Client
    table: str

    def find_by_email(self, email: str) -> list[Person]:
        """Return people with a matching lower-cased email."""
        with storage_errors(f"{self.table} email lookup"):
            response = (
                self.client.table(self.table)
                .select(_COLUMNS)
                .eq("email", email.lower())
                .execute()
            )
        return [_row_to_person(row) for row in response.data or []]

    def find_by_phone(self, phone: str) -> list[Person]:
        """Return people with a matching normalized phone."""
        with storage_errors(f"{self.table} phone lookup"):
            response = (
                self.client.table(self.table)
                .select(_COLUMNS)
                .eq("phone", phone)
                .execute()
            )
        return [_row_to_person(row) for row in response.data or []]

    def get_person(self, person_id: UUID) -> Person | None:
        """Return a person by id, if present."""
        with storage_errors(f"{self.table} get"):
            response = (
                self.client.table(self.table)
                .select(_COLUMNS)
                .eq("id", str(person_id))
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        return _row_to_person(response.data[0])

    def create_person(  # noqa: PLR0913
        self,
        role: Role,
        display_name: str,
        email: str | None,
        phone: str | None,
        registered_at: datetime,
    ) -> Person:
        """Create a person row and return it."""
        with storage_errors(f"{self.table} insert"):
            response = (
                self.client.table(self.table)
                .insert(
                    {
                        "role": role.value,
                        "display_name": display_name,
                        "email": email,
                        "phone": phone,
                        "registered_at": registered_at.isoformat(),
                    }
                )
                .execute()
            )
        if not response.data:
            raise StorageError(f"Failed to create person in {self.table}")
        return _row_to_person(response.data[0])

    def update_role(self, person_id: UUID, role: Role) -> Person:
        """Update a person's role and return the stored row."""
        with storage_errors(f"{self.table} role update"):
            response = (
                self.client.table(self.table)
                .update({"role": role.value})
                .eq("id", str(person_id))
                .execute()
            )
        if not response.data:
            raise StorageError(f"Failed to update role for {person_id}")
        return _row_to_person(response.data[0])

    def count_people(self) -> int:
        """Return the number of rows in the store."""
        with storage_errors(f"{self.table} count"):
            response = (
                self.client.table(self.table).select("id", count="exact").execute()
            )
        if response.count is not None:
            return response.count
        return len(response.data or [])


def _row_to_person(row: dict[str, object]) -> Person:
    return Person(
        id=UUID(str(row["id"])),
        role=Role(str(row["role"])),
        display_name=str(row["display_name"]),
        email=row.get("email") or None,
        phone=row.get("phone") or None,
        registered_at=datetime.fromisoformat(str(row["registered_at"])),
    )
