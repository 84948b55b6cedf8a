"""Supabase repository for audit events."""

from dataclasses import dataclass

from supabase import Client

from attendance_tracker.adapters.supabase_errors import storage_errors
from attendance_tracker.domain.audit import AuditEvent
from attendance_tracker.services.audit import AuditRepository

AUDIT_EVENTS_TABLE = "audit_events"


@dataclass
class SupabaseAuditRepository(AuditRepository):
    """Appends audit events to the `audit_events` table."""

    client: Client

    def add_event(self, event: AuditEvent) -> None:
        with storage_errors("audit event insert"):
            self.client.table(AUDIT_EVENTS_TABLE).insert(_event_to_row(event)).execute()


def _event_to_row(event: AuditEvent) -> dict[str, object]:
    return {
        "actor": event.actor,
        "entity_type": event.entity_type,
        "entity_id": str(event.entity_id),
        "event_type": event.event_type,
        "occurred_at": event.occurred_at.isoformat(),
        "before_json": event.before,
        "after_json": event.after,
    }
