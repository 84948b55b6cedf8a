"""Typed errors raised by the attendance engine."""

from attendance_tracker.domain.codes import InvalidCodeReason
from attendance_tracker.domain.people import Person

_CODE_MESSAGES = {
    InvalidCodeReason.EXPIRED: "The daily code has expired. Ask staff for a new code.",
    InvalidCodeReason.MISMATCHED: "Wrong code. Please try again.",
    InvalidCodeReason.UNAVAILABLE: (
        "No daily code is active and no backup code is configured."
    ),
}


class AttendanceError(Exception):
    """Base class for attendance engine errors."""


class NotFoundError(AttendanceError):
    """Raised when an identifier or id matches nothing."""


class AmbiguousIdentityError(AttendanceError):
    """Raised when an identifier matches several person records."""

    def __init__(self, candidates: list[Person]) -> None:
        super().__init__(
            f"Identifier matches {len(candidates)} records; choose one explicitly"
        )
        self.candidates = candidates


class InvalidCodeError(AttendanceError):
    """Raised when a supervised check-in presents an unusable code."""

    def __init__(self, reason: InvalidCodeReason) -> None:
        super().__init__(_CODE_MESSAGES[reason])
        self.reason = reason


class InvalidStateError(AttendanceError):
    """Raised when a session transition is not allowed."""


class DuplicatePersonError(AttendanceError):
    """Raised when registering a contact already present in a role store."""


class StorageError(AttendanceError):
    """Raised when the primary or secondary store fails."""
