"""Payslip calculation engine.

Pipeline (stable order per employee):
1) Count working days (Mon-Fri) in the period
2) Count attendance days
3) Attendance factor = attendance / working days
4) Prorate the monthly base salary by the attendance factor
5) Worked hours = attendance days * hours per workday
6) Hourly rate = monthly base salary / worked hours
7) Sum overtime hours
8) Overtime pay = overtime hours * hourly rate * multiplier
9) Sum reimbursements
10) Total = prorated base + overtime pay + reimbursements

Intermediate values keep full Decimal precision; figures are rounded to cents
only when the result is built. Undefined ratios raise ComputationError instead
of producing NaN.
"""

from __future__ import annotations

from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from attendance_payroll.calculators.calendar import count_working_days
from attendance_payroll.calculators.types import (
    EmployeeCalculationContext,
    LedgerSnapshot,
    PayrollRules,
    PayslipFigures,
)
from attendance_payroll.errors import DegeneratePeriodError, NoHourlyBasisError

OUTPUT_PRECISION = Decimal("0.01")
ZERO = Decimal("0")


def round_to_cents(amount: Decimal) -> Decimal:
    """Round amount to 2 decimal places (cents)."""
    return amount.quantize(OUTPUT_PRECISION, rounding=ROUND_HALF_UP)


def finite_or_zero(value: Decimal | None) -> Decimal:
    """Coerce a missing or non-finite figure to zero."""
    if value is None or not value.is_finite():
        return ZERO
    return value


def compute_payslip(
    monthly_base_salary: Decimal,
    period_start: date,
    period_end: date,
    snapshot: LedgerSnapshot,
    rules: PayrollRules,
) -> PayslipFigures:
    """Compute payslip figures for one employee over one period.

    Raises:
        DegeneratePeriodError: the period contains no working days
        NoHourlyBasisError: no attendance, so the hourly rate is undefined
    """
    salary = Decimal(monthly_base_salary)

    working_days = count_working_days(period_start, period_end)
    if working_days == 0:
        raise DegeneratePeriodError(period_start, period_end)

    attendance_days = snapshot.attendance_days
    attendance_factor = Decimal(attendance_days) / Decimal(working_days)
    prorated_base_salary = salary * attendance_factor

    monthly_worked_hours = Decimal(attendance_days * rules.hours_per_workday)
    if monthly_worked_hours == 0:
        raise NoHourlyBasisError()
    hourly_rate = salary / monthly_worked_hours

    overtime_hours = sum((Decimal(h) for h in snapshot.overtime_hours), ZERO)
    overtime_pay = overtime_hours * hourly_rate * Decimal(rules.overtime_multiplier)

    reimbursement_total = sum(
        (Decimal(a) for a in snapshot.reimbursement_amounts), ZERO
    )

    prorated_out = round_to_cents(finite_or_zero(prorated_base_salary))
    overtime_pay_out = round_to_cents(finite_or_zero(overtime_pay))
    reimbursement_out = round_to_cents(finite_or_zero(reimbursement_total))

    return PayslipFigures(
        working_days=working_days,
        attendance_days=attendance_days,
        prorated_base_salary=prorated_out,
        hourly_rate=round_to_cents(hourly_rate),
        overtime_hours=round_to_cents(overtime_hours),
        overtime_pay=overtime_pay_out,
        reimbursement_total=reimbursement_out,
        # Sum of the rounded parts so stored figures always add up.
        total_pay=prorated_out + overtime_pay_out + reimbursement_out,
    )


class PayrollEngine:
    """Applies one rule set to many employees."""

    def __init__(self, rules: PayrollRules | None = None):
        self.rules = rules or PayrollRules()

    def calculate(self, ctx: EmployeeCalculationContext) -> PayslipFigures:
        """Calculate the payslip for a single employee."""
        try:
            return compute_payslip(
                ctx.monthly_base_salary,
                ctx.period_start,
                ctx.period_end,
                ctx.snapshot,
                self.rules,
            )
        except NoHourlyBasisError as e:
            if e.employee_id is None:
                raise NoHourlyBasisError(ctx.employee_id) from e
            raise
