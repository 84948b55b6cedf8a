"""FastAPI application factory."""

import logging
from uuid import UUID

from fastapi import FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse

from attendance_tracker.api.admin import router as admin_router
from attendance_tracker.api.models import (
    CheckInRequest,
    CheckOutRequest,
    IdentifyRequest,
    IdentifyResponse,
    PersonOut,
    RegisterRequest,
    SessionOut,
)
from attendance_tracker.app_logging import configure_logging
from attendance_tracker.containers import AppContainer
from attendance_tracker.domain.errors import (
    AmbiguousIdentityError,
    AttendanceError,
    DuplicatePersonError,
    InvalidCodeError,
    InvalidStateError,
    NotFoundError,
    StorageError,
)

_STATUS_BY_ERROR: dict[type[AttendanceError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    AmbiguousIdentityError: status.HTTP_409_CONFLICT,
    InvalidCodeError: status.HTTP_403_FORBIDDEN,
    InvalidStateError: status.HTTP_409_CONFLICT,
    DuplicatePersonError: status.HTTP_409_CONFLICT,
    StorageError: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    app = FastAPI()
    app.state.container = container

    app.include_router(admin_router)

    @app.exception_handler(AttendanceError)
    async def attendance_error(request: Request, exc: AttendanceError) -> JSONResponse:
        """Render engine errors with a status code per error kind."""
        if isinstance(exc, StorageError):
            logger.error(
                "Storage failure", exc_info=exc, extra={"path": request.url.path}
            )
        return JSONResponse(
            status_code=_status_for(exc),
            content=_error_body(exc, container.settings.environment),
        )

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.post("/people", status_code=status.HTTP_201_CREATED)
    async def register(payload: RegisterRequest, request: Request) -> PersonOut:
        """Register a person in the store for their role."""
        state_container: AppContainer = request.app.state.container
        try:
            person = state_container.people_service.register(
                role=payload.role,
                display_name=payload.display_name,
                email=payload.email,
                phone=payload.phone,
            )
        except ValueError as exc:
            raise HTTPException(
                status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc)
            ) from exc
        return PersonOut.from_domain(person)

    @app.post("/identify")
    async def identify(payload: IdentifyRequest, request: Request) -> IdentifyResponse:
        """Return every person record registered under an identifier."""
        state_container: AppContainer = request.app.state.container
        resolution = state_container.attendance_service.resolver.resolve(
            payload.identifier
        )
        return IdentifyResponse(
            status=resolution.status.value,
            candidates=[PersonOut.from_domain(p) for p in resolution.candidates],
        )

    @app.post("/check-in")
    async def check_in(payload: CheckInRequest, request: Request) -> SessionOut:
        """Check a person in, validating the daily code when required."""
        service = request.app.state.container.attendance_service
        if payload.person_id is None:
            context = service.identify(payload.identifier)
        else:
            context = service.select_candidate(payload.identifier, payload.person_id)
        session = service.check_in(
            context,
            location=payload.location,
            supplied_code=payload.code,
            community_service=payload.community_service,
        )
        return SessionOut.from_domain(session)

    @app.post("/check-out")
    async def check_out(payload: CheckOutRequest, request: Request) -> SessionOut:
        """Complete an active session."""
        service = request.app.state.container.attendance_service
        session = service.check_out(payload.session_id, rating=payload.rating)
        return SessionOut.from_domain(session)

    @app.get("/people/{person_id}/sessions")
    async def person_sessions(person_id: UUID, request: Request) -> dict[str, object]:
        """Return a person's active session and completed history."""
        state_container: AppContainer = request.app.state.container
        active = state_container.attendance_service.active_session(person_id)
        history = state_container.attendance_service.history(person_id)
        return {
            "active": (
                SessionOut.from_domain(active).model_dump(mode="json")
                if active
                else None
            ),
            "history": [
                SessionOut.from_domain(session).model_dump(mode="json")
                for session in history
            ],
            "total_hours": state_container.report_service.total_hours(person_id),
        }

    return app


def _status_for(exc: AttendanceError) -> int:
    for error_type, code in _STATUS_BY_ERROR.items():
        if isinstance(exc, error_type):
            return code
    return status.HTTP_400_BAD_REQUEST


def _error_body(exc: AttendanceError, environment: str) -> dict[str, object]:
    """Return a user-facing error payload with local debug info."""
    body: dict[str, object] = {"error": type(exc).__name__, "detail": str(exc)}
    if isinstance(exc, AmbiguousIdentityError):
        body["candidates"] = [
            PersonOut.from_domain(person).model_dump(mode="json")
            for person in exc.candidates
        ]
    if isinstance(exc, InvalidCodeError):
        body["reason"] = exc.reason.value
    if isinstance(exc, StorageError) and environment != "local":
        body["detail"] = "Storage is temporarily unavailable. Please try again."
    return body
