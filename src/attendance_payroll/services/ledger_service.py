"""Activity ledger service: attendance, overtime and reimbursement writes."""

from __future__ import annotations

import logging
from collections import defaultdict
from dataclasses import dataclass
from datetime import date
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.calculators.calendar import is_weekend
from attendance_payroll.calculators.types import LedgerSnapshot
from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.errors import (
    DuplicateOvertimeError,
    FutureOvertimeError,
    InvalidAmountError,
    InvalidHoursError,
    NoActivePeriodError,
    OvertimeCapExceededError,
    WeekendAttendanceError,
)
from attendance_payroll.identity import EmployeeActor, RequestOrigin
from attendance_payroll.models import (
    AttendanceRecord,
    OvertimeRecord,
    PayrollPeriod,
    ReimbursementClaim,
)
from attendance_payroll.services.audit import AuditRecord, AuditRecorder
from attendance_payroll.services.period_registry import PeriodRegistry
from attendance_payroll.services.state_machine import PeriodStateMachine

logger = logging.getLogger(__name__)

OVERTIME_CAP = Decimal("3.00")
CENTS = Decimal("0.01")
# Largest value a Numeric(12, 2) column holds
MAX_REIMBURSEMENT = Decimal("9999999999.99")

RECORDED = "recorded"
ALREADY_RECORDED = "already_recorded"


@dataclass(frozen=True)
class LedgerAck:
    """Acknowledgement of a ledger write."""

    status: str
    payroll_period_id: UUID
    record_id: UUID
    work_date: date

    @property
    def created(self) -> bool:
        return self.status == RECORDED


def _to_decimal(value: Decimal | int | float | str) -> Decimal:
    try:
        return Decimal(str(value))
    except InvalidOperation:
        return Decimal("NaN")


def _to_cents(value: Decimal) -> Decimal:
    """Round to cents; NaN when the value cannot be represented."""
    try:
        return value.quantize(CENTS, rounding=ROUND_HALF_UP)
    except InvalidOperation:
        return Decimal("NaN")


class LedgerService:
    """Service for append-only activity ledger writes.

    Every write runs the same guard sequence and fails fast:
    1. Resolve the unlocked period covering the date (NO_ACTIVE_PERIOD)
    2. Apply the entry type's own rule
    3. Insert, letting the storage-level unique constraint decide duplicates

    Each call is its own unit of work and commits on success.
    """

    def __init__(
        self,
        session: AsyncSession,
        clock: Clock | None = None,
        audit: AuditRecorder | None = None,
    ):
        self.session = session
        self.clock = clock or SystemClock()
        self.audit = audit or AuditRecorder()
        self.periods = PeriodRegistry(session, audit=self.audit, clock=self.clock)

    async def _resolve_period(self, on_date: date) -> PayrollPeriod:
        period = await self.periods.find_active_period_covering(on_date, lock=True)
        if period is None or not PeriodStateMachine.can_modify_inputs(period.status):
            raise NoActivePeriodError(on_date)
        return period

    async def submit_attendance(
        self,
        actor: EmployeeActor,
        on_date: date | None = None,
        origin: RequestOrigin | None = None,
    ) -> LedgerAck:
        """Record attendance for ``on_date`` (today by default).

        A second submission for the same day is acknowledged as
        ``already_recorded`` and changes nothing.
        """
        origin = origin or RequestOrigin()
        on_date = on_date or self.clock.today()

        try:
            period = await self._resolve_period(on_date)
            if is_weekend(on_date):
                raise WeekendAttendanceError(on_date)

            record = AttendanceRecord(
                employee_id=actor.employee_id,
                work_date=on_date,
                payroll_period_id=period.payroll_period_id,
                created_by=actor.label,
                ip_address=origin.ip_address,
            )
            self.session.add(record)
            await self.session.commit()
        except IntegrityError:
            await self.session.rollback()
            existing = await self._existing_attendance(actor.employee_id, on_date)
            if existing is None:
                raise
            logger.debug("Attendance for %s on %s already recorded", actor.label, on_date)
            return LedgerAck(
                status=ALREADY_RECORDED,
                payroll_period_id=existing.payroll_period_id,
                record_id=existing.attendance_record_id,
                work_date=on_date,
            )
        except Exception:
            await self.session.rollback()
            raise

        await self.audit.emit(
            AuditRecord(
                actor=actor,
                action="SUBMIT_ATTENDANCE",
                entity_type="attendance_record",
                entity_id=record.attendance_record_id,
                origin=origin,
                details={"work_date": on_date.isoformat()},
            )
        )
        return LedgerAck(
            status=RECORDED,
            payroll_period_id=period.payroll_period_id,
            record_id=record.attendance_record_id,
            work_date=on_date,
        )

    async def _existing_attendance(
        self, employee_id: UUID, on_date: date
    ) -> AttendanceRecord | None:
        result = await self.session.execute(
            select(AttendanceRecord).where(
                AttendanceRecord.employee_id == employee_id,
                AttendanceRecord.work_date == on_date,
            )
        )
        existing = result.scalar_one_or_none()
        # Release the read transaction before handing control back.
        await self.session.commit()
        return existing

    async def submit_overtime(
        self,
        actor: EmployeeActor,
        work_date: date,
        hours: Decimal | float | str,
        origin: RequestOrigin | None = None,
    ) -> LedgerAck:
        """Record overtime hours worked on ``work_date``.

        Raises:
            NoActivePeriodError: no unlocked period covers the date
            FutureOvertimeError: the date is after today
            InvalidHoursError: hours are not positive or finer than 0.01
            OvertimeCapExceededError: more than three hours
            DuplicateOvertimeError: overtime already exists for that day
        """
        origin = origin or RequestOrigin()
        amount = _to_decimal(hours)

        try:
            period = await self._resolve_period(work_date)

            today = self.clock.today()
            if work_date > today:
                raise FutureOvertimeError(work_date, today)
            if not amount.is_finite() or amount <= 0:
                raise InvalidHoursError(amount)
            if amount > OVERTIME_CAP:
                raise OvertimeCapExceededError(amount, OVERTIME_CAP)
            # Stored as Numeric(4, 2); finer values would be silently rounded
            if _to_cents(amount) != amount:
                raise InvalidHoursError(amount)

            record = OvertimeRecord(
                employee_id=actor.employee_id,
                work_date=work_date,
                payroll_period_id=period.payroll_period_id,
                hours=_to_cents(amount),
                created_by=actor.label,
                ip_address=origin.ip_address,
            )
            self.session.add(record)
            await self.session.commit()
        except IntegrityError as e:
            await self.session.rollback()
            if not await self._has_overtime(actor.employee_id, work_date):
                raise
            raise DuplicateOvertimeError(actor.employee_id, work_date) from e
        except Exception:
            await self.session.rollback()
            raise

        await self.audit.emit(
            AuditRecord(
                actor=actor,
                action="SUBMIT_OVERTIME",
                entity_type="overtime_record",
                entity_id=record.overtime_record_id,
                origin=origin,
                details={"work_date": work_date.isoformat(), "hours": str(amount)},
            )
        )
        return LedgerAck(
            status=RECORDED,
            payroll_period_id=period.payroll_period_id,
            record_id=record.overtime_record_id,
            work_date=work_date,
        )

    async def _has_overtime(self, employee_id: UUID, work_date: date) -> bool:
        result = await self.session.execute(
            select(OvertimeRecord.overtime_record_id).where(
                OvertimeRecord.employee_id == employee_id,
                OvertimeRecord.work_date == work_date,
            )
        )
        found = result.first() is not None
        await self.session.commit()
        return found

    async def submit_reimbursement(
        self,
        actor: EmployeeActor,
        amount: Decimal | float | str,
        expense_date: date | None = None,
        description: str | None = None,
        origin: RequestOrigin | None = None,
    ) -> LedgerAck:
        """Record an expense claim dated ``expense_date`` (today by default).

        The amount is rounded to cents before it is checked, so a claim that
        rounds to zero or overflows the column is rejected as INVALID_AMOUNT.
        """
        origin = origin or RequestOrigin()
        expense_date = expense_date or self.clock.today()
        value = _to_decimal(amount)

        try:
            period = await self._resolve_period(expense_date)
            cents = _to_cents(value)
            if not cents.is_finite() or cents <= 0 or cents > MAX_REIMBURSEMENT:
                raise InvalidAmountError(value)

            claim = ReimbursementClaim(
                employee_id=actor.employee_id,
                expense_date=expense_date,
                payroll_period_id=period.payroll_period_id,
                amount=cents,
                description=description or None,
                created_by=actor.label,
                ip_address=origin.ip_address,
            )
            self.session.add(claim)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        await self.audit.emit(
            AuditRecord(
                actor=actor,
                action="SUBMIT_REIMBURSEMENT",
                entity_type="reimbursement_claim",
                entity_id=claim.reimbursement_claim_id,
                origin=origin,
                details={"expense_date": expense_date.isoformat(), "amount": str(claim.amount)},
            )
        )
        return LedgerAck(
            status=RECORDED,
            payroll_period_id=period.payroll_period_id,
            record_id=claim.reimbursement_claim_id,
            work_date=expense_date,
        )

    # ===== Reads =====

    async def snapshot_for(self, employee_id: UUID, payroll_period_id: UUID) -> LedgerSnapshot:
        """Read one employee's ledger rows for one period."""
        snapshots = await self._collect(payroll_period_id, employee_id)
        return snapshots.get(employee_id, LedgerSnapshot())

    async def snapshots_for_period(self, payroll_period_id: UUID) -> dict[UUID, LedgerSnapshot]:
        """Read every employee's ledger rows for one period, keyed by employee."""
        return await self._collect(payroll_period_id)

    async def _collect(
        self, payroll_period_id: UUID, employee_id: UUID | None = None
    ) -> dict[UUID, LedgerSnapshot]:
        attendance: dict[UUID, list[date]] = defaultdict(list)
        overtime: dict[UUID, list[Decimal]] = defaultdict(list)
        claims: dict[UUID, list[Decimal]] = defaultdict(list)

        queries = (
            (AttendanceRecord, AttendanceRecord.work_date, attendance),
            (OvertimeRecord, OvertimeRecord.hours, overtime),
            (ReimbursementClaim, ReimbursementClaim.amount, claims),
        )
        for model, column, bucket in queries:
            query = select(model.employee_id, column).where(
                model.payroll_period_id == payroll_period_id
            )
            if employee_id is not None:
                query = query.where(model.employee_id == employee_id)
            result = await self.session.execute(query.order_by(model.employee_id, column))
            for owner, value in result.all():
                bucket[owner].append(value)

        owners = set(attendance) | set(overtime) | set(claims)
        return {
            owner: LedgerSnapshot(
                attendance_dates=tuple(attendance.get(owner, ())),
                overtime_hours=tuple(overtime.get(owner, ())),
                reimbursement_amounts=tuple(claims.get(owner, ())),
            )
            for owner in owners
        }
