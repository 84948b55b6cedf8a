"""Audit trail for role changes and session transitions."""

import logging
from dataclasses import dataclass
from typing import Protocol
from uuid import UUID

from attendance_tracker.config import DEFAULT_TIMEZONE
from attendance_tracker.domain.audit import AuditEvent
from attendance_tracker.timeutils import local_now

logger = logging.getLogger(__name__)


class AuditRepository(Protocol):
    """Persistence interface for audit events."""

    def add_event(self, event: AuditEvent) -> None:
        """Append an audit event."""


@dataclass
class AuditService:
    """Stamps and stores audit events."""

    repository: AuditRepository
    timezone: str = DEFAULT_TIMEZONE

    def record_event(  # noqa: PLR0913
        self,
        actor: str,
        entity_type: str,
        entity_id: UUID,
        event_type: str,
        before: dict[str, object] | None,
        after: dict[str, object] | None,
    ) -> AuditEvent:
        """Stamp an audit event with the local time and persist it."""
        event = AuditEvent(
            actor=actor,
            entity_type=entity_type,
            entity_id=entity_id,
            event_type=event_type,
            occurred_at=local_now(self.timezone),
            before=before,
            after=after,
        )
        self.repository.add_event(event)
        logger.debug("Recorded %s %s", entity_type, event_type)
        return event
