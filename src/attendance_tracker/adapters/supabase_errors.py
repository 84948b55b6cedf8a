"""Translate Supabase client failures into engine storage errors."""

from collections.abc import Iterator
from contextlib import contextmanager

import httpx
from postgrest.exceptions import APIError

from attendance_tracker.domain.errors import InvalidStateError, StorageError

UNIQUE_VIOLATION = "23505"


@contextmanager
def storage_errors(
    operation: str, conflict_message: str | None = None
) -> Iterator[None]:
    """Re-raise PostgREST and transport failures as StorageError.

    A unique-constraint violation becomes InvalidStateError when
    `conflict_message` is given.
    """
    try:
        yield
    except APIError as exc:
        if conflict_message and exc.code == UNIQUE_VIOLATION:
            raise InvalidStateError(conflict_message) from exc
        raise StorageError(f"Supabase {operation} failed: {exc.message}") from exc
    except httpx.HTTPError as exc:
        raise StorageError(f"Supabase {operation} failed: {exc}") from exc
