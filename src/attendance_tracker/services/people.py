"""Registration and role transitions for people."""

import logging
from dataclasses import dataclass
from datetime import datetime
from uuid import UUID

from attendance_tracker.config import DEFAULT_TIMEZONE
from attendance_tracker.domain.errors import (
    DuplicatePersonError,
    InvalidStateError,
    NotFoundError,
)
from attendance_tracker.domain.people import Person, Role
from attendance_tracker.services.audit import AuditService
from attendance_tracker.services.identity import (
    PersonRepository,
    normalize_email,
    normalize_phone,
)
from attendance_tracker.timeutils import local_now

logger = logging.getLogger(__name__)

_ALLOWED_UPGRADES = {(Role.VOLUNTEER, Role.COMMUNITY_SERVICE)}


@dataclass
class PeopleService:
    """Application service for person records across role stores."""

    volunteers: PersonRepository
    musicians: PersonRepository
    audit_service: AuditService
    timezone: str = DEFAULT_TIMEZONE

    def register(  # noqa: PLR0913
        self,
        role: Role,
        display_name: str,
        email: str | None = None,
        phone: str | None = None,
        now: datetime | None = None,
    ) -> Person:
        """Register a person in the store for their role."""
        clean_email = normalize_email(email) if email else None
        clean_phone = normalize_phone(phone) if phone else None
        if not clean_email and not clean_phone:
            raise ValueError("An email or phone number is required")
        if not display_name.strip():
            raise ValueError("A display name is required")

        repository = self.repository_for(role)
        if clean_email and repository.find_by_email(clean_email):
            raise DuplicatePersonError(
                f"A {role.value} with this email already exists."
            )
        if clean_phone and repository.find_by_phone(clean_phone):
            raise DuplicatePersonError(
                f"A {role.value} with this phone already exists."
            )

        person = repository.create_person(
            role=role,
            display_name=display_name.strip(),
            email=clean_email or None,
            phone=clean_phone or None,
            registered_at=local_now(self.timezone, now),
        )
        logger.info("Registered person", extra={"person_id": str(person.id)})
        return person

    def get(self, person_id: UUID, role: Role) -> Person:
        """Return the current record for a person or raise NotFoundError."""
        person = self.repository_for(role).get_person(person_id)
        if person is None:
            raise NotFoundError(f"No person with id {person_id}")
        return person

    def upgrade_role(self, person: Person, role: Role, actor: str) -> Person:
        """Apply an allowed role transition and record it in the audit trail."""
        if person.role == role:
            return person
        if (person.role, role) not in _ALLOWED_UPGRADES:
            raise InvalidStateError(
                f"Cannot change role from {person.role.value} to {role.value}"
            )
        updated = self.repository_for(person.role).update_role(person.id, role)
        self.audit_service.record_event(
            actor=actor,
            entity_type="person",
            entity_id=person.id,
            event_type="role_changed",
            before={"role": person.role.value},
            after={"role": role.value},
        )
        logger.info(
            "Upgraded person role",
            extra={"person_id": str(person.id), "role": role.value},
        )
        return updated

    def restore_role(self, person: Person, actor: str) -> Person:
        """Write back the role `person` held before a rolled-back upgrade."""
        restored = self.repository_for(person.role).update_role(person.id, person.role)
        self.audit_service.record_event(
            actor=actor,
            entity_type="person",
            entity_id=person.id,
            event_type="role_restored",
            before=None,
            after={"role": person.role.value},
        )
        logger.warning(
            "Restored person role after rejected check-in",
            extra={"person_id": str(person.id), "role": person.role.value},
        )
        return restored

    def count(self) -> int:
        """Return the number of registered people across stores."""
        return self.volunteers.count_people() + self.musicians.count_people()

    def repository_for(self, role: Role) -> PersonRepository:
        """Return the role store that holds people with `role`."""
        if role == Role.MUSICIAN:
            return self.musicians
        return self.volunteers
