"""Pytest fixtures for attendance payroll tests."""

from __future__ import annotations

from datetime import date, timedelta
from decimal import Decimal
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.api.app import create_app
from attendance_payroll.api.dependencies import (
    get_clock,
    get_renderer,
    get_session_factory,
)
from attendance_payroll.calculators.calendar import is_weekend
from attendance_payroll.calculators.types import PayrollRules
from attendance_payroll.clock import FixedClock
from attendance_payroll.database import build_engine, create_all, make_session_factory
from attendance_payroll.identity import AdminActor, EmployeeActor
from attendance_payroll.models import Admin, Employee, PayrollPeriod
from attendance_payroll.rendering import ReportlabPayslipRenderer
from attendance_payroll.services.ledger_service import LedgerService
from attendance_payroll.services.period_registry import PeriodRegistry

JUNE_START = date(2025, 6, 1)
JUNE_END = date(2025, 6, 30)


def weekdays(start: date, end: date) -> list[date]:
    """All Mon-Fri dates in [start, end]."""
    days = []
    day = start
    while day <= end:
        if not is_weekend(day):
            days.append(day)
        day += timedelta(days=1)
    return days


async def make_employee(
    session: AsyncSession,
    display_name: str = "Alice Johnson",
    salary: str = "3200.00",
) -> Employee:
    employee = Employee(
        display_name=display_name,
        username=display_name.lower().replace(" ", "."),
        monthly_base_salary=Decimal(salary),
    )
    session.add(employee)
    await session.commit()
    return employee


async def record_attendance(
    session: AsyncSession,
    employee: Employee,
    days: list[date],
) -> None:
    """Record attendance through the ledger, one call per day."""
    clock = FixedClock(days[-1])
    ledger = LedgerService(session, clock=clock)
    actor = EmployeeActor(employee_id=employee.employee_id)
    for day in days:
        await ledger.submit_attendance(actor, day)


@pytest_asyncio.fixture
async def engine(tmp_path):
    """File-backed SQLite engine, one database per test."""
    engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'payroll.db'}")
    await create_all(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return make_session_factory(engine)


@pytest_asyncio.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(JUNE_END)


@pytest.fixture
def rules() -> PayrollRules:
    return PayrollRules()


@pytest_asyncio.fixture
async def admin(session: AsyncSession) -> Admin:
    admin = Admin(username="admin")
    session.add(admin)
    await session.commit()
    return admin


@pytest.fixture
def admin_actor(admin: Admin) -> AdminActor:
    return AdminActor(admin_id=admin.admin_id)


@pytest_asyncio.fixture
async def employee(session: AsyncSession) -> Employee:
    return await make_employee(session)


@pytest.fixture
def employee_actor(employee: Employee) -> EmployeeActor:
    return EmployeeActor(employee_id=employee.employee_id)


@pytest_asyncio.fixture
async def june_period(session: AsyncSession, admin_actor: AdminActor) -> PayrollPeriod:
    """Open payroll period for June 2025."""
    registry = PeriodRegistry(session)
    return await registry.create_period(JUNE_START, JUNE_END, admin_actor)


@pytest.fixture
def renderer(tmp_path) -> ReportlabPayslipRenderer:
    return ReportlabPayslipRenderer(tmp_path / "payslips")


@pytest_asyncio.fixture
async def client(
    session_factory, clock, renderer
) -> AsyncGenerator[AsyncClient, None]:
    """Create async HTTP client for API testing."""
    app = create_app()
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_clock] = lambda: clock
    app.dependency_overrides[get_renderer] = lambda: renderer
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


def admin_headers(admin: Admin) -> dict[str, str]:
    return {"X-Actor-Id": str(admin.admin_id), "X-Actor-Role": "admin"}


def employee_headers(employee: Employee) -> dict[str, str]:
    return {"X-Actor-Id": str(employee.employee_id), "X-Actor-Role": "employee"}
