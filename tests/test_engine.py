"""Unit tests for the payslip calculation engine."""

import pytest
from decimal import Decimal
from datetime import date, timedelta
from uuid import uuid4

from attendance_payroll.calculators.engine import (
    PayrollEngine,
    compute_payslip,
    finite_or_zero,
    round_to_cents,
)
from attendance_payroll.calculators.types import (
    EmployeeCalculationContext,
    LedgerSnapshot,
    PayrollRules,
)
from attendance_payroll.errors import (
    ComputationError,
    DegeneratePeriodError,
    NoHourlyBasisError,
)

# Mon 2 June 2025 .. Fri 27 June 2025: 4 full weeks, 20 weekdays
FOUR_WEEKS_START = date(2025, 6, 2)
FOUR_WEEKS_END = date(2025, 6, 27)


def attendance(days: int, start: date = FOUR_WEEKS_START) -> tuple[date, ...]:
    dates = []
    day = start
    while len(dates) < days:
        if day.weekday() < 5:
            dates.append(day)
        day += timedelta(days=1)
    return tuple(dates)


class TestProration:
    """Prorated base salary = salary * attendance / working days."""

    def test_full_attendance_keeps_full_salary(self):
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(attendance_dates=attendance(20)),
            PayrollRules(),
        )

        assert figures.working_days == 20
        assert figures.attendance_days == 20
        assert figures.prorated_base_salary == Decimal("3200.00")

    def test_half_attendance_halves_salary(self):
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(attendance_dates=attendance(10)),
            PayrollRules(),
        )

        assert figures.prorated_base_salary == Decimal("1600.00")

    def test_rounds_half_up_to_cents(self):
        # 1000 * 1/3 = 333.333...
        figures = compute_payslip(
            Decimal("1000"),
            date(2025, 6, 2),
            date(2025, 6, 4),
            LedgerSnapshot(attendance_dates=attendance(1)),
            PayrollRules(),
        )

        assert figures.working_days == 3
        assert figures.prorated_base_salary == Decimal("333.33")


class TestOvertime:
    """Overtime pay = hours * (salary / worked hours) * multiplier."""

    def test_hourly_rate_and_overtime_pay(self):
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(
                attendance_dates=attendance(20),
                overtime_hours=(Decimal("2.00"), Decimal("3.00")),
            ),
            PayrollRules(),
        )

        assert figures.hourly_rate == Decimal("20.00")
        assert figures.overtime_hours == Decimal("5.00")
        assert figures.overtime_pay == Decimal("200.00")

    def test_hourly_rate_uses_attended_hours(self):
        # 10 days -> 80 hours -> 3200 / 80 = 40.00 per hour
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(
                attendance_dates=attendance(10),
                overtime_hours=(Decimal("1.50"),),
            ),
            PayrollRules(),
        )

        assert figures.hourly_rate == Decimal("40.00")
        assert figures.overtime_pay == Decimal("120.00")

    def test_multiplier_comes_from_rules(self):
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(
                attendance_dates=attendance(20),
                overtime_hours=(Decimal("5"),),
            ),
            PayrollRules(overtime_multiplier=Decimal("1.5")),
        )

        assert figures.overtime_pay == Decimal("150.00")

    def test_hourly_rate_keeps_precision_until_output(self):
        # 1000 / (3 * 8) = 41.666..., 3h * 41.666... * 2 = 250.00 exactly
        figures = compute_payslip(
            Decimal("1000"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(
                attendance_dates=attendance(3),
                overtime_hours=(Decimal("3"),),
            ),
            PayrollRules(),
        )

        assert figures.hourly_rate == Decimal("41.67")
        assert figures.overtime_pay == Decimal("250.00")


class TestTotals:
    def test_reimbursements_default_to_zero(self):
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(attendance_dates=attendance(20)),
            PayrollRules(),
        )

        assert figures.reimbursement_total == Decimal("0.00")
        assert figures.total_pay == Decimal("3200.00")

    def test_total_is_sum_of_components(self):
        figures = compute_payslip(
            Decimal("3200"),
            FOUR_WEEKS_START,
            FOUR_WEEKS_END,
            LedgerSnapshot(
                attendance_dates=attendance(20),
                overtime_hours=(Decimal("2"), Decimal("3")),
                reimbursement_amounts=(Decimal("60.00"), Decimal("40.00")),
            ),
            PayrollRules(),
        )

        assert figures.reimbursement_total == Decimal("100.00")
        assert figures.total_pay == Decimal("3500.00")
        assert figures.total_pay == (
            figures.prorated_base_salary
            + figures.overtime_pay
            + figures.reimbursement_total
        )


class TestGuards:
    def test_degenerate_period_fails(self):
        """A weekend-only period has no working days."""
        with pytest.raises(DegeneratePeriodError) as exc_info:
            compute_payslip(
                Decimal("3200"),
                date(2025, 6, 7),
                date(2025, 6, 8),
                LedgerSnapshot(),
                PayrollRules(),
            )

        assert exc_info.value.code == "DEGENERATE_PERIOD"
        assert isinstance(exc_info.value, ComputationError)

    def test_no_attendance_fails(self):
        with pytest.raises(NoHourlyBasisError) as exc_info:
            compute_payslip(
                Decimal("3200"),
                FOUR_WEEKS_START,
                FOUR_WEEKS_END,
                LedgerSnapshot(reimbursement_amounts=(Decimal("50"),)),
                PayrollRules(),
            )

        assert exc_info.value.code == "NO_HOURLY_BASIS"


class TestPayrollEngine:
    def test_calculate_uses_context(self):
        engine = PayrollEngine(PayrollRules())
        ctx = EmployeeCalculationContext(
            employee_id=uuid4(),
            monthly_base_salary=Decimal("3200"),
            period_start=FOUR_WEEKS_START,
            period_end=FOUR_WEEKS_END,
            snapshot=LedgerSnapshot(attendance_dates=attendance(20)),
        )

        assert engine.calculate(ctx).total_pay == Decimal("3200.00")

    def test_no_hourly_basis_names_employee(self):
        employee_id = uuid4()
        engine = PayrollEngine()
        ctx = EmployeeCalculationContext(
            employee_id=employee_id,
            monthly_base_salary=Decimal("3200"),
            period_start=FOUR_WEEKS_START,
            period_end=FOUR_WEEKS_END,
        )

        with pytest.raises(NoHourlyBasisError) as exc_info:
            engine.calculate(ctx)

        assert exc_info.value.employee_id == employee_id


class TestHelpers:
    def test_round_to_cents_half_up(self):
        assert round_to_cents(Decimal("0.005")) == Decimal("0.01")
        assert round_to_cents(Decimal("2.675")) == Decimal("2.68")

    def test_finite_or_zero(self):
        assert finite_or_zero(None) == Decimal("0")
        assert finite_or_zero(Decimal("NaN")) == Decimal("0")
        assert finite_or_zero(Decimal("Infinity")) == Decimal("0")
        assert finite_or_zero(Decimal("12.5")) == Decimal("12.5")
