"""Supabase-backed daily code repository."""

from dataclasses import dataclass
from datetime import datetime

from supabase import Client

from attendance_tracker.adapters.supabase_errors import storage_errors
from attendance_tracker.domain.codes import AuditLogEntry, CodeAction, DailyCode
from attendance_tracker.services.codes import CodeRepository

CODE_TABLE = "daily_codes"
AUDIT_TABLE = "code_audit_log"
CURRENT_CODE_ID = "current"
_PRUNE_BATCH = 1000


@dataclass
class SupabaseCodeRepository(CodeRepository):
    """Supabase implementation storing one overwritable code row."""

    client: Client

    def get_daily_code(self) -> DailyCode | None:
        """Return the stored code row, if any."""
        with storage_errors("daily code lookup"):
            response = (
                self.client.table(CODE_TABLE)
                .select("code, created_at, expires_at, created_by")
                .eq("id", CURRENT_CODE_ID)
                .limit(1)
                .execute()
            )
        if not response.data:
            return None
        row = response.data[0]
        return DailyCode(
            code=str(row["code"]),
            created_at=datetime.fromisoformat(str(row["created_at"])),
            expires_at=datetime.fromisoformat(str(row["expires_at"])),
            created_by=str(row["created_by"]),
        )

    def save_daily_code(self, code: DailyCode) -> None:
        """Upsert the single current code row."""
        with storage_errors("daily code upsert"):
            self.client.table(CODE_TABLE).upsert(
                {
                    "id": CURRENT_CODE_ID,
                    "code": code.code,
                    "created_at": code.created_at.isoformat(),
                    "expires_at": code.expires_at.isoformat(),
                    "created_by": code.created_by,
                }
            ).execute()

    def append_audit_entry(self, entry: AuditLogEntry) -> None:
        """Insert an audit log row."""
        with storage_errors("code audit insert"):
            self.client.table(AUDIT_TABLE).insert(
                {
                    "code": entry.code,
                    "action": entry.action.value,
                    "timestamp": entry.timestamp.isoformat(),
                    "admin_id": entry.admin_id,
                }
            ).execute()

    def list_audit_entries(self, limit: int) -> list[AuditLogEntry]:
        """Return the newest audit rows first."""
        with storage_errors("code audit list"):
            response = (
                self.client.table(AUDIT_TABLE)
                .select("code, action, timestamp, admin_id")
                .order("timestamp", desc=True)
                .limit(limit)
                .execute()
            )
        return [
            AuditLogEntry(
                code=str(row["code"]),
                action=CodeAction(str(row["action"])),
                timestamp=datetime.fromisoformat(str(row["timestamp"])),
                admin_id=str(row["admin_id"]),
            )
            for row in response.data or []
        ]

    def prune_audit_entries(self, keep: int) -> None:
        """Delete rows older than the newest `keep` entries."""
        with storage_errors("code audit prune"):
            response = (
                self.client.table(AUDIT_TABLE)
                .select("id")
                .order("timestamp", desc=True)
                .range(keep, keep + _PRUNE_BATCH - 1)
                .execute()
            )
            stale_ids = [row["id"] for row in response.data or []]
            if stale_ids:
                self.client.table(AUDIT_TABLE).delete().in_("id", stale_ids).execute()
