"""Domain models for daily access codes."""

from dataclasses import dataclass
from datetime import datetime
from enum import StrEnum


class CodeAction(StrEnum):
    """Kinds of daily code audit entries."""

    CREATED = "created"
    UPDATED = "updated"
    GENERATED = "generated"


class CodeOutcome(StrEnum):
    """Result of validating a submitted code."""

    VALID = "valid"
    INVALID = "invalid"
    UNAVAILABLE = "unavailable"


class InvalidCodeReason(StrEnum):
    """Why a submitted code was rejected."""

    EXPIRED = "expired"
    MISMATCHED = "mismatched"
    UNAVAILABLE = "unavailable"


@dataclass(frozen=True)
class DailyCode:
    """The single current access code."""

    code: str
    created_at: datetime
    expires_at: datetime
    created_by: str

    def is_live(self, now: datetime) -> bool:
        """Return true when the code has not expired at `now`."""
        return now < self.expires_at


@dataclass(frozen=True)
class AuditLogEntry:
    """Append-only record of a daily code change."""

    code: str
    action: CodeAction
    timestamp: datetime
    admin_id: str


@dataclass(frozen=True)
class CodeCheck:
    """Typed outcome of a code validation."""

    outcome: CodeOutcome
    reason: InvalidCodeReason | None = None
    used_fallback: bool = False

    @property
    def is_valid(self) -> bool:
        """Return true when the code was accepted."""
        return self.outcome is CodeOutcome.VALID
