"""Domain models for registered people."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum
from uuid import UUID


class Role(StrEnum):
    """Role a person serves the organization in."""

    VOLUNTEER = "volunteer"
    COMMUNITY_SERVICE = "community_service"
    EMPLOYMENT = "employment"
    MUSICIAN = "musician"


SUPERVISED_ROLES = frozenset({Role.COMMUNITY_SERVICE, Role.EMPLOYMENT})


@dataclass(frozen=True)
class Person:
    """Represents a person record in one role store."""

    id: UUID
    role: Role
    display_name: str
    email: str | None
    phone: str | None
    registered_at: datetime

    @property
    def identifier(self) -> str:
        """Return the contact value used to sign in."""
        return self.email or self.phone or ""
