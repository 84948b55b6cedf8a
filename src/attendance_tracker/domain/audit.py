"""Domain model for person and session audit events."""

from dataclasses import dataclass
from datetime import datetime
from uuid import UUID


@dataclass(frozen=True)
class AuditEvent:
    """One recorded change to a person or an attendance session."""

    actor: str
    entity_type: str
    entity_id: UUID
    event_type: str
    occurred_at: datetime
    before: dict[str, object] | None = None
    after: dict[str, object] | None = None
