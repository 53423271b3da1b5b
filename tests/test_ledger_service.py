"""Tests for the activity ledger service."""

import asyncio
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest
from sqlalchemy import func, select
from sqlalchemy.exc import IntegrityError

from attendance_payroll.clock import FixedClock
from attendance_payroll.errors import (
    DuplicateOvertimeError,
    FutureOvertimeError,
    ImmutabilityViolationError,
    InvalidAmountError,
    InvalidHoursError,
    NoActivePeriodError,
    OvertimeCapExceededError,
    WeekendAttendanceError,
)
from attendance_payroll.identity import EmployeeActor, RequestOrigin
from attendance_payroll.models import AttendanceRecord, OvertimeRecord, ReimbursementClaim
from attendance_payroll.services.ledger_service import LedgerService
from attendance_payroll.services.period_registry import PeriodRegistry

from conftest import make_employee

MONDAY = date(2025, 6, 16)
SATURDAY = date(2025, 6, 14)


async def count_rows(session_factory, model) -> int:
    async with session_factory() as s:
        return await s.scalar(select(func.count()).select_from(model))


class TestSubmitAttendance:
    async def test_records_attendance(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_attendance(
            employee_actor, origin=RequestOrigin(ip_address="10.0.0.5")
        )

        assert ack.status == "recorded"
        assert ack.created is True
        assert ack.work_date == MONDAY
        assert ack.payroll_period_id == june_period.payroll_period_id

        record = await session.get(AttendanceRecord, ack.record_id)
        assert record.created_by == employee_actor.label
        assert record.ip_address == "10.0.0.5"

    async def test_repeat_submission_is_idempotent(
        self, session, session_factory, employee_actor, june_period
    ):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        first = await ledger.submit_attendance(employee_actor)
        second = await ledger.submit_attendance(employee_actor)

        assert second.status == "already_recorded"
        assert second.created is False
        assert second.record_id == first.record_id
        assert await count_rows(session_factory, AttendanceRecord) == 1

    async def test_concurrent_duplicates_record_once(
        self, session, session_factory, employee_actor, june_period
    ):
        async def submit():
            async with session_factory() as s:
                return await LedgerService(s, clock=FixedClock(MONDAY)).submit_attendance(
                    employee_actor
                )

        acks = await asyncio.gather(submit(), submit())

        assert sorted(ack.status for ack in acks) == ["already_recorded", "recorded"]
        assert await count_rows(session_factory, AttendanceRecord) == 1

    async def test_weekend_rejected(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(SATURDAY))

        with pytest.raises(WeekendAttendanceError) as exc_info:
            await ledger.submit_attendance(employee_actor)

        assert exc_info.value.code == "WEEKEND_ATTENDANCE"

    async def test_no_period_rejected(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(date(2025, 7, 1)))

        with pytest.raises(NoActivePeriodError) as exc_info:
            await ledger.submit_attendance(employee_actor)

        assert exc_info.value.code == "NO_ACTIVE_PERIOD"

    async def test_period_checked_before_weekend(self, session, employee_actor):
        """With no period at all, a weekend date still reports NO_ACTIVE_PERIOD."""
        ledger = LedgerService(session, clock=FixedClock(SATURDAY))

        with pytest.raises(NoActivePeriodError):
            await ledger.submit_attendance(employee_actor)

    async def test_locked_period_rejected(
        self, session, admin_actor, employee_actor, june_period
    ):
        await PeriodRegistry(session).lock(june_period.payroll_period_id, admin_actor)
        await session.commit()
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(NoActivePeriodError):
            await ledger.submit_attendance(employee_actor)

    async def test_records_are_immutable(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))
        ack = await ledger.submit_attendance(employee_actor)
        record = await session.get(AttendanceRecord, ack.record_id)

        await session.delete(record)
        with pytest.raises(ImmutabilityViolationError):
            await session.flush()
        await session.rollback()


class TestSubmitOvertime:
    async def test_records_overtime(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_overtime(employee_actor, MONDAY, Decimal("2.5"))

        assert ack.status == "recorded"
        record = await session.get(OvertimeRecord, ack.record_id)
        assert record.hours == Decimal("2.50")

    async def test_three_hours_is_allowed(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_overtime(employee_actor, MONDAY, "3.00")

        assert ack.created

    async def test_cap_exceeded(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(OvertimeCapExceededError) as exc_info:
            await ledger.submit_overtime(employee_actor, MONDAY, Decimal("3.01"))

        assert exc_info.value.code == "OVERTIME_CAP_EXCEEDED"

    @pytest.mark.parametrize("hours", ["0", "-1", "abc"])
    async def test_non_positive_hours(self, session, employee_actor, june_period, hours):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(InvalidHoursError):
            await ledger.submit_overtime(employee_actor, MONDAY, hours)

    @pytest.mark.parametrize("hours", ["0.001", "2.999", "Infinity"])
    async def test_hours_finer_than_cents_rejected(
        self, session, session_factory, employee_actor, june_period, hours
    ):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(InvalidHoursError) as exc_info:
            await ledger.submit_overtime(employee_actor, MONDAY, hours)

        assert exc_info.value.code == "INVALID_HOURS"
        assert await count_rows(session_factory, OvertimeRecord) == 0

    async def test_trailing_zeros_accepted(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_overtime(employee_actor, MONDAY, "1.500")

        record = await session.get(OvertimeRecord, ack.record_id)
        assert record.hours == Decimal("1.50")

    async def test_future_date_rejected(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(FutureOvertimeError) as exc_info:
            await ledger.submit_overtime(employee_actor, date(2025, 6, 17), Decimal("1"))

        assert exc_info.value.code == "FUTURE_OVERTIME"

    async def test_past_date_allowed(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_overtime(employee_actor, date(2025, 6, 13), Decimal("1"))

        assert ack.work_date == date(2025, 6, 13)

    async def test_duplicate_is_conflict(
        self, session, session_factory, employee_actor, june_period
    ):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))
        await ledger.submit_overtime(employee_actor, MONDAY, Decimal("1"))

        with pytest.raises(DuplicateOvertimeError) as exc_info:
            await ledger.submit_overtime(employee_actor, MONDAY, Decimal("2"))

        assert exc_info.value.code == "DUPLICATE_OVERTIME"
        assert await count_rows(session_factory, OvertimeRecord) == 1

    async def test_other_constraint_failures_are_not_duplicates(self, session, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(IntegrityError):
            await ledger.submit_overtime(EmployeeActor(uuid4()), MONDAY, Decimal("1"))

    async def test_no_period_checked_first(self, session, employee_actor):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(NoActivePeriodError):
            await ledger.submit_overtime(employee_actor, MONDAY, Decimal("5"))


class TestSubmitReimbursement:
    async def test_defaults_to_today(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_reimbursement(employee_actor, Decimal("45.50"))

        assert ack.work_date == MONDAY
        claim = await session.get(ReimbursementClaim, ack.record_id)
        assert claim.amount == Decimal("45.50")
        assert claim.description is None

    async def test_multiple_claims_allowed(
        self, session, session_factory, employee_actor, june_period
    ):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        await ledger.submit_reimbursement(employee_actor, "10", description="Taxi")
        await ledger.submit_reimbursement(employee_actor, "20", description="Taxi")

        assert await count_rows(session_factory, ReimbursementClaim) == 2

    async def test_weekend_expense_allowed(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_reimbursement(
            employee_actor, Decimal("12"), expense_date=SATURDAY
        )

        assert ack.created

    @pytest.mark.parametrize("amount", ["0", "-5.00", "NaN"])
    async def test_non_positive_amount(self, session, employee_actor, june_period, amount):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(InvalidAmountError) as exc_info:
            await ledger.submit_reimbursement(employee_actor, amount)

        assert exc_info.value.code == "INVALID_AMOUNT"

    @pytest.mark.parametrize("amount", ["0.004", "1e30", "Infinity"])
    async def test_unstorable_amount_rejected(
        self, session, session_factory, employee_actor, june_period, amount
    ):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(InvalidAmountError) as exc_info:
            await ledger.submit_reimbursement(employee_actor, amount)

        assert exc_info.value.code == "INVALID_AMOUNT"
        assert await count_rows(session_factory, ReimbursementClaim) == 0

    async def test_amount_rounded_half_up_to_cents(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        ack = await ledger.submit_reimbursement(employee_actor, "10.005")

        claim = await session.get(ReimbursementClaim, ack.record_id)
        assert claim.amount == Decimal("10.01")

    async def test_expense_outside_periods(self, session, employee_actor, june_period):
        ledger = LedgerService(session, clock=FixedClock(MONDAY))

        with pytest.raises(NoActivePeriodError):
            await ledger.submit_reimbursement(
                employee_actor, Decimal("12"), expense_date=date(2025, 5, 30)
            )


class TestSnapshots:
    async def test_snapshot_restricted_to_employee_and_period(
        self, session, admin_actor, employee_actor, june_period
    ):
        other = EmployeeActor(employee_id=(await make_employee(session, "Bob Smith")).employee_id)
        july = await PeriodRegistry(session).create_period(
            date(2025, 7, 1), date(2025, 7, 31), admin_actor
        )
        ledger = LedgerService(session, clock=FixedClock(date(2025, 7, 1)))

        await ledger.submit_attendance(employee_actor, MONDAY)
        await ledger.submit_attendance(employee_actor, date(2025, 6, 17))
        await ledger.submit_attendance(employee_actor, date(2025, 7, 1))
        await ledger.submit_attendance(other, MONDAY)
        await ledger.submit_overtime(employee_actor, MONDAY, Decimal("2"))
        await ledger.submit_reimbursement(employee_actor, Decimal("30"), MONDAY)

        snapshot = await ledger.snapshot_for(
            employee_actor.employee_id, june_period.payroll_period_id
        )

        assert snapshot.attendance_dates == (MONDAY, date(2025, 6, 17))
        assert snapshot.attendance_days == 2
        assert snapshot.overtime_hours == (Decimal("2.00"),)
        assert snapshot.reimbursement_amounts == (Decimal("30.00"),)

        july_snapshot = await ledger.snapshot_for(
            employee_actor.employee_id, july.payroll_period_id
        )
        assert july_snapshot.attendance_days == 1
        assert july_snapshot.overtime_hours == ()

    async def test_snapshots_for_period_keyed_by_employee(
        self, session, employee_actor, june_period
    ):
        other = EmployeeActor(employee_id=(await make_employee(session, "Bob Smith")).employee_id)
        ledger = LedgerService(session, clock=FixedClock(MONDAY))
        await ledger.submit_attendance(employee_actor, MONDAY)
        await ledger.submit_reimbursement(other, Decimal("5"), MONDAY)

        snapshots = await ledger.snapshots_for_period(june_period.payroll_period_id)

        assert set(snapshots) == {employee_actor.employee_id, other.employee_id}
        assert snapshots[employee_actor.employee_id].attendance_days == 1
        assert snapshots[other.employee_id].attendance_days == 0
        assert snapshots[other.employee_id].reimbursement_amounts == (Decimal("5.00"),)

    async def test_empty_snapshot(self, session, employee_actor, june_period):
        ledger = LedgerService(session)

        snapshot = await ledger.snapshot_for(
            employee_actor.employee_id, june_period.payroll_period_id
        )

        assert snapshot.attendance_days == 0
        assert snapshot.reimbursement_amounts == ()
