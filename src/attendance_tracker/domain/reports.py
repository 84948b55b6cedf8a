"""Domain models for reporting."""

from collections.abc import Iterable
from dataclasses import dataclass


@dataclass(frozen=True)
class SessionReportRow:
    """Minimum field set rendered by exports and dashboards."""

    date: str
    person_name: str
    location: str
    check_in_time: str
    check_out_time: str
    hours_worked: str
    rating: str
    identifier: str


@dataclass(frozen=True)
class DashboardStats:
    """Aggregated attendance figures for the admin dashboard."""

    total_hours: float
    completed_sessions: int
    average_rating: float
    active_sessions: int
    registered_people: int


@dataclass(frozen=True)
class CompletedTotals:
    """Hours and ratings summed over every completed session in scope."""

    sessions: int = 0
    total_hours: float = 0.0
    rated_sessions: int = 0
    rating_sum: int = 0

    @property
    def average_rating(self) -> float:
        if not self.rated_sessions:
            return 0.0
        return self.rating_sum / self.rated_sessions

    @classmethod
    def from_rows(cls, rows: Iterable[tuple[object, object]]) -> "CompletedTotals":
        """Fold (hours_worked, rating) pairs; a falsy rating counts as unrated."""
        sessions = rated = rating_sum = 0
        total_hours = 0.0
        for hours_worked, rating in rows:
            sessions += 1
            total_hours += float(hours_worked or 0)
            if rating:
                rated += 1
                rating_sum += int(rating)
        return cls(
            sessions=sessions,
            total_hours=total_hours,
            rated_sessions=rated,
            rating_sum=rating_sum,
        )
