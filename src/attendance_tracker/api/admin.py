"""Admin API endpoints with simple token auth."""

from __future__ import annotations

from dataclasses import asdict
from typing import TYPE_CHECKING

from fastapi import APIRouter, Depends, Header, HTTPException, Request, status
from fastapi.responses import PlainTextResponse

from attendance_tracker.api.models import (
    AuditLogEntryOut,
    DailyCodeOut,
    IssueCodeRequest,
    SessionOut,
)

if TYPE_CHECKING:
    from attendance_tracker.containers import AppContainer

router = APIRouter(prefix="/admin", tags=["admin"])


def _get_admin_token(request: Request) -> str:
    container: AppContainer = request.app.state.container
    return container.settings.admin_token


async def require_admin(
    x_admin_token: str | None = Header(default=None),
    admin_token: str = Depends(_get_admin_token),
) -> None:
    """Ensure requests include a valid admin token."""
    if not x_admin_token or x_admin_token != admin_token:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)


@router.post("/code", dependencies=[Depends(require_admin)])
async def issue_code(payload: IssueCodeRequest, request: Request) -> DailyCodeOut:
    """Issue a new daily code, generated unless one is supplied."""
    container: AppContainer = request.app.state.container
    daily_code = container.code_authority.issue(
        admin_id=payload.admin_id, explicit_code=payload.code
    )
    return DailyCodeOut.from_domain(daily_code)


@router.get("/code", dependencies=[Depends(require_admin)])
async def current_code(request: Request) -> dict[str, object]:
    """Return the current unexpired daily code, if any."""
    container: AppContainer = request.app.state.container
    daily_code = container.code_authority.current()
    if daily_code is None:
        return {"code": None}
    return {"code": DailyCodeOut.from_domain(daily_code).model_dump(mode="json")}


@router.get("/code/audit", dependencies=[Depends(require_admin)])
async def code_audit(request: Request, limit: int = 100) -> dict[str, object]:
    """Return daily code changes, newest first."""
    container: AppContainer = request.app.state.container
    entries = container.code_authority.audit_log(limit)
    return {
        "entries": [
            AuditLogEntryOut.from_domain(entry).model_dump(mode="json")
            for entry in entries
        ]
    }


@router.get("/sessions/active", dependencies=[Depends(require_admin)])
async def active_sessions(request: Request) -> dict[str, object]:
    """Return all active sessions."""
    container: AppContainer = request.app.state.container
    sessions = container.attendance_service.session_repository.list_active()
    return {
        "sessions": [
            SessionOut.from_domain(session).model_dump(mode="json")
            for session in sessions
        ]
    }


@router.get("/sessions/completed", dependencies=[Depends(require_admin)])
async def completed_sessions(request: Request, limit: int = 100) -> dict[str, object]:
    """Return recent completed sessions as report rows."""
    container: AppContainer = request.app.state.container
    rows = container.report_service.report_rows(limit=limit)
    return {"sessions": [asdict(row) for row in rows]}


@router.get("/stats", dependencies=[Depends(require_admin)])
async def stats(request: Request) -> dict[str, object]:
    """Return dashboard totals."""
    container: AppContainer = request.app.state.container
    return asdict(container.report_service.dashboard())


@router.get(
    "/export.csv",
    dependencies=[Depends(require_admin)],
    response_class=PlainTextResponse,
)
async def export_csv(request: Request, limit: int = 100) -> PlainTextResponse:
    """Download completed sessions as CSV."""
    container: AppContainer = request.app.state.container
    return PlainTextResponse(
        container.report_service.export_csv(limit=limit),
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="attendance.csv"'},
    )
