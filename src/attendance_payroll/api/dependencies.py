"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated
from uuid import UUID

from fastapi import Depends, Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.calculators.types import PayrollRules
from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.config import Settings, get_settings
from attendance_payroll.database import init_db
from attendance_payroll.identity import (
    Actor,
    ActorRole,
    AdminActor,
    EmployeeActor,
    RequestOrigin,
)
from attendance_payroll.models import Admin, Employee
from attendance_payroll.rendering import PayslipRenderer, ReportlabPayslipRenderer
from attendance_payroll.services.audit import (
    AuditRecorder,
    DatabaseAuditSink,
    LoggingAuditSink,
)
from attendance_payroll.services.ledger_service import LedgerService
from attendance_payroll.services.pay_run_service import PayRunService
from attendance_payroll.services.payslip_store import PayslipStore
from attendance_payroll.services.period_registry import PeriodRegistry


def get_session_factory() -> async_sessionmaker[AsyncSession]:
    """Get the application's session factory."""
    _, factory = init_db()
    return factory


SessionFactory = Annotated[async_sessionmaker[AsyncSession], Depends(get_session_factory)]


async def get_db_session(factory: SessionFactory) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with factory() as session:
        try:
            yield session
        finally:
            await session.close()


def get_clock() -> Clock:
    return SystemClock()


def get_rules(settings: Annotated[Settings, Depends(get_settings)]) -> PayrollRules:
    return settings.payroll_rules()


def get_renderer(settings: Annotated[Settings, Depends(get_settings)]) -> PayslipRenderer:
    return ReportlabPayslipRenderer(settings.payslip_output_dir)


def get_audit(factory: SessionFactory) -> AuditRecorder:
    return AuditRecorder([LoggingAuditSink(), DatabaseAuditSink(factory)])


def get_origin(request: Request) -> RequestOrigin:
    """Stamp data for rows written during this request."""
    return RequestOrigin(
        ip_address=request.client.host if request.client else None,
        request_id=request.headers.get("x-request-id"),
    )


# Type aliases for cleaner dependency injection
DbSession = Annotated[AsyncSession, Depends(get_db_session)]
Origin = Annotated[RequestOrigin, Depends(get_origin)]
ClockDep = Annotated[Clock, Depends(get_clock)]
AuditDep = Annotated[AuditRecorder, Depends(get_audit)]


async def get_actor(
    db: DbSession,
    x_actor_id: Annotated[str | None, Header()] = None,
    x_actor_role: Annotated[str | None, Header()] = None,
) -> Actor:
    """Resolve the authenticated actor from upstream identity headers."""
    if not x_actor_id or not x_actor_role:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="X-Actor-Id and X-Actor-Role headers are required",
        )
    try:
        actor_id = UUID(x_actor_id)
        role = ActorRole(x_actor_role.lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid actor credentials",
        )

    if role == ActorRole.ADMIN:
        if await db.get(Admin, actor_id) is not None:
            return AdminActor(admin_id=actor_id)
    elif await db.get(Employee, actor_id) is not None:
        return EmployeeActor(employee_id=actor_id)

    raise HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Unknown actor",
    )


async def require_admin(actor: Annotated[Actor, Depends(get_actor)]) -> AdminActor:
    if not isinstance(actor, AdminActor):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin role required",
        )
    return actor


async def require_employee(actor: Annotated[Actor, Depends(get_actor)]) -> EmployeeActor:
    if not isinstance(actor, EmployeeActor):
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Employee role required",
        )
    return actor


CurrentAdmin = Annotated[AdminActor, Depends(require_admin)]
CurrentEmployee = Annotated[EmployeeActor, Depends(require_employee)]


def get_period_registry(db: DbSession, audit: AuditDep, clock: ClockDep) -> PeriodRegistry:
    return PeriodRegistry(db, audit=audit, clock=clock)


def get_ledger_service(db: DbSession, audit: AuditDep, clock: ClockDep) -> LedgerService:
    return LedgerService(db, clock=clock, audit=audit)


def get_pay_run_service(
    db: DbSession,
    audit: AuditDep,
    clock: ClockDep,
    rules: Annotated[PayrollRules, Depends(get_rules)],
    renderer: Annotated[PayslipRenderer, Depends(get_renderer)],
) -> PayRunService:
    return PayRunService(db, rules=rules, audit=audit, renderer=renderer, clock=clock)


def get_payslip_store(db: DbSession) -> PayslipStore:
    return PayslipStore(db)


Registry = Annotated[PeriodRegistry, Depends(get_period_registry)]
Ledger = Annotated[LedgerService, Depends(get_ledger_service)]
PayRuns = Annotated[PayRunService, Depends(get_pay_run_service)]
Payslips = Annotated[PayslipStore, Depends(get_payslip_store)]
