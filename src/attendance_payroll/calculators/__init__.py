"""Payslip calculation engine."""

from attendance_payroll.calculators.calendar import count_working_days, is_weekend
from attendance_payroll.calculators.engine import PayrollEngine, compute_payslip
from attendance_payroll.calculators.types import (
    EmployeeCalculationContext,
    LedgerSnapshot,
    PayrollRules,
    PayslipFigures,
)

__all__ = [
    "EmployeeCalculationContext",
    "LedgerSnapshot",
    "PayrollEngine",
    "PayrollRules",
    "PayslipFigures",
    "compute_payslip",
    "count_working_days",
    "is_weekend",
]
