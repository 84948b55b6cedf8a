"""Dependency container wiring for the application."""

from dataclasses import dataclass

from supabase import create_client

from attendance_tracker.adapters.supabase_audit_repository import (
    SupabaseAuditRepository,
)
from attendance_tracker.adapters.supabase_code_repository import SupabaseCodeRepository
from attendance_tracker.adapters.supabase_person_repository import (
    SupabasePersonRepository,
)
from attendance_tracker.adapters.supabase_session_repository import (
    SupabaseSessionRepository,
)
from attendance_tracker.config import Settings, parse_fallback_code
from attendance_tracker.services.audit import AuditService
from attendance_tracker.services.cache import LocalCodeCache, LocalSessionCache
from attendance_tracker.services.codes import CodeAuthority, CodeRepository
from attendance_tracker.services.fallback import (
    FallbackCodeRepository,
    FallbackSessionRepository,
)
from attendance_tracker.services.identity import IdentityResolver, PersonRepository
from attendance_tracker.services.people import PeopleService
from attendance_tracker.services.reports import ReportService
from attendance_tracker.services.sessions import AttendanceService, SessionRepository


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    people_service: PeopleService
    code_authority: CodeAuthority
    attendance_service: AttendanceService
    report_service: ReportService


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = create_client(
        resolved_settings.supabase_url, resolved_settings.supabase_service_key
    )
    volunteers = SupabasePersonRepository(supabase_client, table="volunteers")
    musicians = SupabasePersonRepository(supabase_client, table="musicians")
    session_repository = FallbackSessionRepository(
        primary=SupabaseSessionRepository(supabase_client),
        secondary=LocalSessionCache(),
    )
    code_repository = FallbackCodeRepository(
        primary=SupabaseCodeRepository(supabase_client),
        secondary=LocalCodeCache(),
    )
    audit_service = AuditService(
        SupabaseAuditRepository(supabase_client), timezone=resolved_settings.timezone
    )
    return assemble_container(
        settings=resolved_settings,
        volunteers=volunteers,
        musicians=musicians,
        session_repository=session_repository,
        code_repository=code_repository,
        audit_service=audit_service,
    )


def assemble_container(  # noqa: PLR0913
    settings: Settings,
    volunteers: PersonRepository,
    musicians: PersonRepository,
    session_repository: SessionRepository,
    code_repository: CodeRepository,
    audit_service: AuditService,
) -> AppContainer:
    """Wire services on top of already-built repositories."""
    people_service = PeopleService(
        volunteers=volunteers,
        musicians=musicians,
        audit_service=audit_service,
        timezone=settings.timezone,
    )
    code_authority = CodeAuthority(
        repository=code_repository,
        timezone=settings.timezone,
        fallback_code=parse_fallback_code(settings.fallback_code),
        audit_limit=settings.audit_log_limit,
    )
    attendance_service = AttendanceService(
        resolver=IdentityResolver([musicians, volunteers]),
        people_service=people_service,
        code_authority=code_authority,
        session_repository=session_repository,
        audit_service=audit_service,
        timezone=settings.timezone,
        auto_complete_hours=settings.auto_complete_hours,
        delete_retry_attempts=settings.delete_retry_attempts,
    )
    report_service = ReportService(
        session_repository=session_repository,
        people_service=people_service,
        timezone=settings.timezone,
    )
    return AppContainer(
        settings=settings,
        people_service=people_service,
        code_authority=code_authority,
        attendance_service=attendance_service,
        report_service=report_service,
    )
