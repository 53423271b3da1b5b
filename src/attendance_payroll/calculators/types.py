"""Type definitions for the payslip calculation pipeline."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from typing import Any


@dataclass(frozen=True)
class PayrollRules:
    """Rule constants passed explicitly into every calculation."""

    overtime_multiplier: Decimal = Decimal("2")
    hours_per_workday: int = 8


@dataclass(frozen=True)
class LedgerSnapshot:
    """One employee's ledger rows for one period, read at a single point in time."""

    attendance_dates: tuple[date, ...] = ()
    overtime_hours: tuple[Decimal, ...] = ()
    reimbursement_amounts: tuple[Decimal, ...] = ()

    @property
    def attendance_days(self) -> int:
        return len(self.attendance_dates)


@dataclass(frozen=True)
class PayslipFigures:
    """Output of the calculation engine, rounded to cents."""

    working_days: int
    attendance_days: int
    prorated_base_salary: Decimal
    hourly_rate: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    reimbursement_total: Decimal
    total_pay: Decimal

    def to_dict(self) -> dict[str, Any]:
        return {
            "working_days": self.working_days,
            "attendance_days": self.attendance_days,
            "prorated_base_salary": str(self.prorated_base_salary),
            "hourly_rate": str(self.hourly_rate),
            "overtime_hours": str(self.overtime_hours),
            "overtime_pay": str(self.overtime_pay),
            "reimbursement_total": str(self.reimbursement_total),
            "total_pay": str(self.total_pay),
        }


@dataclass
class EmployeeCalculationContext:
    """Inputs for calculating a single employee's payslip."""

    employee_id: Any
    monthly_base_salary: Decimal
    period_start: date
    period_end: date
    snapshot: LedgerSnapshot = field(default_factory=LedgerSnapshot)
