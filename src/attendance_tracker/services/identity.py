"""Resolve a self-asserted contact identifier to person records."""

import re
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum
from typing import Protocol
from uuid import UUID

from attendance_tracker.domain.people import Person, Role

_NON_DIGITS = re.compile(r"\D")


class PersonRepository(Protocol):
    """Persistence interface for one role store of person records."""

    def find_by_email(self, email: str) -> list[Person]:
        """Return people whose email matches, compared case-insensitively."""

    def find_by_phone(self, phone: str) -> list[Person]:
        """Return people whose normalized phone matches exactly."""

    def get_person(self, person_id: UUID) -> Person | None:
        """Return a person by id, if present."""

    def create_person(  # noqa: PLR0913
        self,
        role: Role,
        display_name: str,
        email: str | None,
        phone: str | None,
        registered_at: datetime,
    ) -> Person:
        """Create a person record and return it."""

    def update_role(self, person_id: UUID, role: Role) -> Person:
        """Persist a new role for a person and return the updated record."""

    def count_people(self) -> int:
        """Return how many people the store holds."""


class ResolutionStatus(StrEnum):
    """Outcome of resolving an identifier."""

    NOT_FOUND = "not_found"
    UNIQUE = "unique"
    AMBIGUOUS = "ambiguous"


@dataclass(frozen=True)
class Resolution:
    """Typed resolution result with every candidate found."""

    status: ResolutionStatus
    candidates: list[Person] = field(default_factory=list)

    @property
    def person(self) -> Person | None:
        """Return the single match for a unique resolution."""
        if self.status is ResolutionStatus.UNIQUE:
            return self.candidates[0]
        return None


def normalize_email(value: str) -> str:
    """Normalize an email for case-insensitive comparison."""
    return value.strip().lower()


def normalize_phone(value: str) -> str:
    """Strip every non-digit character from a phone number."""
    return _NON_DIGITS.sub("", value)


@dataclass
class IdentityResolver:
    """Searches every role store independently for a contact identifier."""

    repositories: Sequence[PersonRepository]

    def resolve(self, identifier: str) -> Resolution:
        """Resolve an email or phone identifier; never picks among matches."""
        candidates: list[Person] = []
        seen: set[tuple[Role, UUID]] = set()
        for repository in self.repositories:
            for person in _lookup(repository, identifier):
                key = (person.role, person.id)
                if key in seen:
                    continue
                seen.add(key)
                candidates.append(person)

        if not candidates:
            return Resolution(status=ResolutionStatus.NOT_FOUND)
        if len(candidates) == 1:
            return Resolution(status=ResolutionStatus.UNIQUE, candidates=candidates)
        return Resolution(status=ResolutionStatus.AMBIGUOUS, candidates=candidates)


def _lookup(repository: PersonRepository, identifier: str) -> list[Person]:
    if "@" in identifier:
        email = normalize_email(identifier)
        return repository.find_by_email(email) if email else []
    phone = normalize_phone(identifier)
    return repository.find_by_phone(phone) if phone else []
