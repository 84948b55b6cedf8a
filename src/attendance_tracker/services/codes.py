"""Daily access code issuance and validation."""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Protocol

from attendance_tracker.config import DEFAULT_TIMEZONE
from attendance_tracker.domain.codes import (
    AuditLogEntry,
    CodeAction,
    CodeCheck,
    CodeOutcome,
    DailyCode,
    InvalidCodeReason,
)
from attendance_tracker.timeutils import local_now, midnight_after_next_day

logger = logging.getLogger(__name__)

CODE_LENGTH = 4
AUDIT_LOG_LIMIT = 100


class CodeRepository(Protocol):
    """Persistence interface for the daily code and its audit trail."""

    def get_daily_code(self) -> DailyCode | None:
        """Return the current code, expired or not, if one was ever issued."""

    def save_daily_code(self, code: DailyCode) -> None:
        """Overwrite the current code."""

    def append_audit_entry(self, entry: AuditLogEntry) -> None:
        """Append an audit log entry."""

    def list_audit_entries(self, limit: int) -> list[AuditLogEntry]:
        """Return the newest audit entries first."""

    def prune_audit_entries(self, keep: int) -> None:
        """Delete all but the newest `keep` audit entries."""


def pad_code(value: str) -> str:
    """Left-zero-pad or truncate a numeric code to exactly four digits."""
    digits = value.strip()
    if not digits or not (digits.isascii() and digits.isdigit()):
        raise ValueError(f"Code must be numeric, got {value!r}")
    return digits.zfill(CODE_LENGTH)[:CODE_LENGTH]


def normalize_submitted(value: str) -> str | None:
    """Zero-pad a submitted code; return None when it can never match."""
    digits = value.strip()
    if not digits or not (digits.isascii() and digits.isdigit()):
        return None
    if len(digits) > CODE_LENGTH:
        return None
    return digits.zfill(CODE_LENGTH)


def generate_code() -> str:
    """Return a uniformly random four-digit code with leading zeros kept."""
    return f"{secrets.randbelow(10**CODE_LENGTH):0{CODE_LENGTH}d}"


@dataclass
class CodeAuthority:
    """Issues and validates the rotating daily access code."""

    repository: CodeRepository
    timezone: str = DEFAULT_TIMEZONE
    fallback_code: str | None = None
    audit_limit: int = AUDIT_LOG_LIMIT

    def issue(
        self,
        admin_id: str,
        explicit_code: str | None = None,
        now: datetime | None = None,
    ) -> DailyCode:
        """Issue a new current code, replacing any previous one."""
        issued_at = local_now(self.timezone, now)
        code = pad_code(explicit_code) if explicit_code else generate_code()
        previous = self.repository.get_daily_code()
        daily_code = DailyCode(
            code=code,
            created_at=issued_at,
            expires_at=midnight_after_next_day(issued_at),
            created_by=admin_id,
        )
        self.repository.save_daily_code(daily_code)
        action = CodeAction.GENERATED if previous is None else CodeAction.UPDATED
        self.repository.append_audit_entry(
            AuditLogEntry(
                code=code,
                action=action,
                timestamp=issued_at,
                admin_id=admin_id,
            )
        )
        self.repository.prune_audit_entries(self.audit_limit)
        logger.info(
            "Daily code %s by %s",
            action.value,
            admin_id,
            extra={"expires_at": daily_code.expires_at.isoformat()},
        )
        return daily_code

    def current(self, now: datetime | None = None) -> DailyCode | None:
        """Return the current code if it has not expired."""
        daily_code = self.repository.get_daily_code()
        if daily_code is None or not daily_code.is_live(local_now(self.timezone, now)):
            return None
        return daily_code

    def validate(self, submitted: str, now: datetime | None = None) -> CodeCheck:
        """Check a submitted code against the daily code and the backup code."""
        candidate = normalize_submitted(submitted)
        fallback = _padded_fallback(self.fallback_code)
        daily_code = self.repository.get_daily_code()
        if daily_code is not None and daily_code.is_live(
            local_now(self.timezone, now)
        ):
            if candidate is not None and candidate == pad_code(daily_code.code):
                return CodeCheck(outcome=CodeOutcome.VALID)
            if fallback is not None and candidate == fallback:
                return CodeCheck(outcome=CodeOutcome.VALID, used_fallback=True)
            return CodeCheck(
                outcome=CodeOutcome.INVALID, reason=InvalidCodeReason.MISMATCHED
            )

        if fallback is None:
            return CodeCheck(
                outcome=CodeOutcome.UNAVAILABLE, reason=InvalidCodeReason.UNAVAILABLE
            )
        if candidate == fallback:
            return CodeCheck(outcome=CodeOutcome.VALID, used_fallback=True)
        reason = (
            InvalidCodeReason.MISMATCHED
            if daily_code is None
            else InvalidCodeReason.EXPIRED
        )
        return CodeCheck(outcome=CodeOutcome.INVALID, reason=reason)

    def audit_log(self, limit: int | None = None) -> list[AuditLogEntry]:
        """Return audit entries newest first, capped at the retention limit."""
        capped = self.audit_limit if limit is None else min(limit, self.audit_limit)
        return self.repository.list_audit_entries(capped)


def _padded_fallback(raw: str | None) -> str | None:
    if raw is None or not raw.strip():
        return None
    return normalize_submitted(raw)
