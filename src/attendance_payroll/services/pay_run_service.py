"""Pay run service - orchestrates batch payroll and self-service payslips."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.engine import PayrollEngine
from attendance_payroll.calculators.types import (
    EmployeeCalculationContext,
    LedgerSnapshot,
    PayrollRules,
    PayslipFigures,
)
from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.errors import (
    EmployeeNotFoundError,
    PayrollError,
    PayslipAlreadyGeneratedError,
    PeriodAlreadyLockedError,
)
from attendance_payroll.identity import AdminActor, EmployeeActor, RequestOrigin
from attendance_payroll.models import Employee, Payslip
from attendance_payroll.rendering import PayslipDocument, PayslipRenderer
from attendance_payroll.services.audit import AuditRecord, AuditRecorder
from attendance_payroll.services.ledger_service import LedgerService
from attendance_payroll.services.payslip_store import (
    SOURCE_BATCH,
    SOURCE_SELF_SERVICE,
    PayslipStore,
)
from attendance_payroll.services.period_registry import PeriodRegistry
from attendance_payroll.services.state_machine import (
    InvalidTransitionError,
    PeriodStateMachine,
    PeriodStatus,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RunSummary:
    """Outcome of a committed payroll run."""

    payroll_period_id: UUID
    start_date: date
    end_date: date
    processed_employees: int
    total_pay: Decimal


@dataclass(frozen=True)
class GeneratedPayslip:
    """A self-service payslip and where its document can be fetched."""

    payslip: Payslip
    document_locator: str | None = None


class PayRunService:
    """Service for running payroll over a period.

    Operations:
    - run_payroll: lock the period and write one payslip per employee,
      all in one transaction
    - generate_own_payslip: an employee computes their own payslip for a
      period without waiting for the batch run

    Both paths write through PayslipStore.insert, so the unique
    (employee, period) constraint decides which one wins.
    """

    def __init__(
        self,
        session: AsyncSession,
        rules: PayrollRules | None = None,
        audit: AuditRecorder | None = None,
        renderer: PayslipRenderer | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.rules = rules or PayrollRules()
        self.engine = PayrollEngine(self.rules)
        self.audit = audit or AuditRecorder()
        self.renderer = renderer
        self.clock = clock or SystemClock()
        self.periods = PeriodRegistry(session, audit=self.audit, clock=self.clock)
        self.ledger = LedgerService(session, clock=self.clock, audit=self.audit)
        self.store = PayslipStore(session)

    async def run_payroll(
        self,
        payroll_period_id: UUID,
        actor: AdminActor,
        origin: RequestOrigin | None = None,
    ) -> RunSummary:
        """Run payroll for a period.

        This method:
        1. Loads the period and validates the open -> locked transition
        2. Flips the lock by compare-and-set, holding the period row
        3. Computes every employee's payslip from the period's ledger
        4. Inserts all payslips and commits together with the lock

        Any failure rolls the whole transaction back; the period stays open
        and no payslip from this run is visible.

        Raises:
            PeriodNotFoundError: the period does not exist
            PeriodAlreadyLockedError: the period was already run
            PayslipAlreadyGeneratedError: an employee already has a payslip
            ComputationError: any employee's figures are undefined
        """
        origin = origin or RequestOrigin()
        try:
            period = await self.periods.get_period(payroll_period_id)
            try:
                PeriodStateMachine.validate_transition(period.status, PeriodStatus.LOCKED)
            except InvalidTransitionError as e:
                raise PeriodAlreadyLockedError(payroll_period_id) from e

            if not await self.periods.lock(payroll_period_id, actor, origin):
                raise PeriodAlreadyLockedError(payroll_period_id)

            result = await self.session.execute(
                select(Employee).order_by(Employee.employee_id)
            )
            employees = list(result.scalars().all())
            snapshots = await self.ledger.snapshots_for_period(payroll_period_id)

            total_pay = Decimal("0.00")
            for employee in employees:
                figures = self.engine.calculate(
                    EmployeeCalculationContext(
                        employee_id=employee.employee_id,
                        monthly_base_salary=employee.monthly_base_salary,
                        period_start=period.start_date,
                        period_end=period.end_date,
                        snapshot=snapshots.get(employee.employee_id, LedgerSnapshot()),
                    )
                )
                await self.store.insert(
                    employee.employee_id,
                    payroll_period_id,
                    figures,
                    SOURCE_BATCH,
                    actor,
                    origin,
                )
                total_pay += figures.total_pay

            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            logger.warning(
                "Payroll run for period %s rejected: a payslip already exists",
                payroll_period_id,
            )
            raise PayslipAlreadyGeneratedError(payroll_period_id) from e
        except PayrollError as e:
            await self.session.rollback()
            logger.warning(
                "Payroll run for period %s rejected: %s", payroll_period_id, e.code
            )
            raise
        except Exception:
            await self.session.rollback()
            raise

        summary = RunSummary(
            payroll_period_id=payroll_period_id,
            start_date=period.start_date,
            end_date=period.end_date,
            processed_employees=len(employees),
            total_pay=total_pay,
        )
        logger.info(
            "Payroll run for period %s committed: %d employees, total %s",
            payroll_period_id,
            summary.processed_employees,
            summary.total_pay,
        )
        await self.audit.emit(
            AuditRecord(
                actor=actor,
                action="RUN_PAYROLL",
                entity_type="payroll_period",
                entity_id=payroll_period_id,
                origin=origin,
                details={
                    "processed_employees": summary.processed_employees,
                    "total_pay": str(summary.total_pay),
                },
            )
        )
        return summary

    async def generate_own_payslip(
        self,
        actor: EmployeeActor,
        payroll_period_id: UUID,
        origin: RequestOrigin | None = None,
    ) -> GeneratedPayslip:
        """Compute, store and render the actor's payslip for a period.

        Allowed whether or not the period is locked; only an existing
        payslip for the pair blocks it. A rendering failure is logged and
        leaves the stored payslip in place.

        Raises:
            PeriodNotFoundError: the period does not exist
            PayslipAlreadyGeneratedError: a payslip already exists
            ComputationError: the figures are undefined
        """
        origin = origin or RequestOrigin()
        employee_id = actor.employee_id
        try:
            period = await self.periods.get_period(payroll_period_id)
            if await self.store.exists(employee_id, payroll_period_id):
                raise PayslipAlreadyGeneratedError(payroll_period_id, employee_id)

            employee = await self.session.get(Employee, employee_id)
            if employee is None:
                raise EmployeeNotFoundError(employee_id)

            snapshot = await self.ledger.snapshot_for(employee_id, payroll_period_id)
            figures = self.engine.calculate(
                EmployeeCalculationContext(
                    employee_id=employee_id,
                    monthly_base_salary=employee.monthly_base_salary,
                    period_start=period.start_date,
                    period_end=period.end_date,
                    snapshot=snapshot,
                )
            )
            payslip = await self.store.insert(
                employee_id,
                payroll_period_id,
                figures,
                SOURCE_SELF_SERVICE,
                actor,
                origin,
            )
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            raise PayslipAlreadyGeneratedError(payroll_period_id, employee_id) from e
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Payslip %s generated by %s for period %s",
            payslip.payslip_id,
            actor.label,
            payroll_period_id,
        )
        await self.audit.emit(
            AuditRecord(
                actor=actor,
                action="GENERATE_PAYSLIP",
                entity_type="payslip",
                entity_id=payslip.payslip_id,
                origin=origin,
                details=figures.to_dict(),
            )
        )

        locator = self._render(payslip, employee, period.start_date, period.end_date, figures)
        return GeneratedPayslip(payslip=payslip, document_locator=locator)

    def _render(
        self,
        payslip: Payslip,
        employee: Employee,
        period_start: date,
        period_end: date,
        figures: PayslipFigures,
    ) -> str | None:
        if self.renderer is None:
            return None
        document = PayslipDocument(
            payslip_id=payslip.payslip_id,
            employee_id=employee.employee_id,
            display_name=employee.display_name,
            username=employee.username,
            period_start=period_start,
            period_end=period_end,
            monthly_base_salary=employee.monthly_base_salary,
            overtime_multiplier=Decimal(self.rules.overtime_multiplier),
            figures=figures,
            generated_at=self.clock.now(),
        )
        try:
            return self.renderer.render(document).locator
        except Exception:
            logger.exception("Rendering payslip %s failed", payslip.payslip_id)
            return None
