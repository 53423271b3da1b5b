"""Payslip persistence and period reporting."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.types import PayslipFigures
from attendance_payroll.errors import NoPayslipsError, PeriodNotFoundError
from attendance_payroll.identity import Actor, RequestOrigin
from attendance_payroll.models import Employee, Payslip, PayrollPeriod

SOURCE_BATCH = "batch"
SOURCE_SELF_SERVICE = "self_service"


@dataclass(frozen=True)
class PeriodSummaryItem:
    employee_id: UUID
    display_name: str
    total_pay: Decimal


@dataclass(frozen=True)
class PeriodSummary:
    """Per-employee take-home pay for one period."""

    period: PayrollPeriod
    items: list[PeriodSummaryItem] = field(default_factory=list)

    @property
    def total_take_home(self) -> Decimal:
        return sum((item.total_pay for item in self.items), Decimal("0.00"))


class PayslipStore:
    """Write-once payslip storage.

    ``insert`` is the only write path for both the batch run and the
    self-service flow. It only flushes; the caller owns the transaction, so
    a unique violation surfaces as IntegrityError at flush or commit.
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def insert(
        self,
        employee_id: UUID,
        payroll_period_id: UUID,
        figures: PayslipFigures,
        source: str,
        actor: Actor,
        origin: RequestOrigin | None = None,
    ) -> Payslip:
        if source not in (SOURCE_BATCH, SOURCE_SELF_SERVICE):
            raise ValueError(f"Unknown payslip source: {source}")
        origin = origin or RequestOrigin()

        payslip = Payslip(
            employee_id=employee_id,
            payroll_period_id=payroll_period_id,
            working_days=figures.working_days,
            attendance_days=figures.attendance_days,
            prorated_base_salary=figures.prorated_base_salary,
            hourly_rate=figures.hourly_rate,
            overtime_hours=figures.overtime_hours,
            overtime_pay=figures.overtime_pay,
            reimbursement_total=figures.reimbursement_total,
            total_pay=figures.total_pay,
            source=source,
            created_by=actor.label,
            ip_address=origin.ip_address,
        )
        self.session.add(payslip)
        await self.session.flush()
        return payslip

    async def exists(self, employee_id: UUID, payroll_period_id: UUID) -> bool:
        return await self.get(employee_id, payroll_period_id) is not None

    async def get(self, employee_id: UUID, payroll_period_id: UUID) -> Payslip | None:
        result = await self.session.execute(
            select(Payslip).where(
                Payslip.employee_id == employee_id,
                Payslip.payroll_period_id == payroll_period_id,
            )
        )
        return result.scalar_one_or_none()

    async def list_for_period(self, payroll_period_id: UUID) -> list[Payslip]:
        result = await self.session.execute(
            select(Payslip)
            .where(Payslip.payroll_period_id == payroll_period_id)
            .order_by(Payslip.employee_id)
        )
        return list(result.scalars().all())

    async def period_summary(self, payroll_period_id: UUID) -> PeriodSummary:
        """Summarize take-home pay per employee for a period.

        Raises:
            PeriodNotFoundError: the period does not exist
            NoPayslipsError: the period has no payslips yet
        """
        period = await self.session.get(PayrollPeriod, payroll_period_id)
        if period is None:
            raise PeriodNotFoundError(payroll_period_id)

        result = await self.session.execute(
            select(Payslip.employee_id, Employee.display_name, Payslip.total_pay)
            .join(Employee, Employee.employee_id == Payslip.employee_id)
            .where(Payslip.payroll_period_id == payroll_period_id)
            .order_by(Employee.display_name, Payslip.employee_id)
        )
        rows = result.all()
        if not rows:
            raise NoPayslipsError(payroll_period_id)

        return PeriodSummary(
            period=period,
            items=[
                PeriodSummaryItem(
                    employee_id=employee_id,
                    display_name=display_name,
                    total_pay=total_pay,
                )
                for employee_id, display_name, total_pay in rows
            ],
        )
