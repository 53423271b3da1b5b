"""Typed exception hierarchy for the payroll engine.

Every error carries a machine-readable ``code`` so callers branch on type or
code, never on message text.

    PayrollError
    +-- ValidationError          malformed input (bad range, non-positive value)
    +-- BusinessRuleViolation    expected rejection (weekend, cap, no period)
    +-- NotFoundError            missing period, employee or payslips
    +-- ConflictError            nothing happened, retrying the same call won't help
    +-- ComputationError         payslip figures are undefined; aborts a run
    +-- InfrastructureFault      storage unavailable
    +-- ImmutabilityViolationError
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID


class PayrollError(Exception):
    """Base class for all payroll engine errors."""

    code: str = "PAYROLL_ERROR"

    def __init__(self, message: str, code: str | None = None):
        if code is not None:
            self.code = code
        self.message = message
        super().__init__(message)


# ===== Validation =====


class ValidationError(PayrollError):
    code = "VALIDATION_ERROR"


class InvalidPeriodRangeError(ValidationError):
    code = "INVALID_RANGE"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(
            f"Start date {start_date} must not be after end date {end_date}"
        )


class InvalidHoursError(ValidationError):
    code = "INVALID_HOURS"

    def __init__(self, hours: Decimal):
        self.hours = hours
        super().__init__(
            f"Overtime hours must be positive with at most two decimals, got {hours}"
        )


class InvalidAmountError(ValidationError):
    code = "INVALID_AMOUNT"

    def __init__(self, amount: Decimal):
        self.amount = amount
        super().__init__(f"Invalid reimbursement amount {amount}")


# ===== Business rules =====


class BusinessRuleViolation(PayrollError):
    code = "BUSINESS_RULE_VIOLATION"


class NoActivePeriodError(BusinessRuleViolation):
    code = "NO_ACTIVE_PERIOD"

    def __init__(self, on_date: date):
        self.on_date = on_date
        super().__init__(f"No active payroll period covers {on_date}")


class WeekendAttendanceError(BusinessRuleViolation):
    code = "WEEKEND_ATTENDANCE"

    def __init__(self, on_date: date):
        self.on_date = on_date
        super().__init__(f"Attendance cannot be recorded on a weekend ({on_date})")


class OvertimeCapExceededError(BusinessRuleViolation):
    code = "OVERTIME_CAP_EXCEEDED"

    def __init__(self, hours: Decimal, cap: Decimal):
        self.hours = hours
        self.cap = cap
        super().__init__(f"Overtime of {hours}h exceeds the daily cap of {cap}h")


class FutureOvertimeError(BusinessRuleViolation):
    code = "FUTURE_OVERTIME"

    def __init__(self, work_date: date, today: date):
        self.work_date = work_date
        self.today = today
        super().__init__(f"Cannot submit overtime for a future date ({work_date})")


# ===== Not found =====


class NotFoundError(PayrollError):
    code = "NOT_FOUND"


class PeriodNotFoundError(NotFoundError):
    code = "NOT_FOUND"

    def __init__(self, payroll_period_id: UUID):
        self.payroll_period_id = payroll_period_id
        super().__init__(f"Payroll period {payroll_period_id} not found")


class EmployeeNotFoundError(NotFoundError):
    code = "EMPLOYEE_NOT_FOUND"

    def __init__(self, employee_id: UUID):
        self.employee_id = employee_id
        super().__init__(f"Employee {employee_id} not found")


class NoPayslipsError(NotFoundError):
    code = "NO_PAYSLIPS"

    def __init__(self, payroll_period_id: UUID):
        self.payroll_period_id = payroll_period_id
        super().__init__(f"No payslips found for payroll period {payroll_period_id}")


# ===== Conflicts =====


class ConflictError(PayrollError):
    code = "CONFLICT"


class PeriodOverlapError(ConflictError):
    code = "OVERLAP"

    def __init__(self, start_date: date, end_date: date, existing_id: UUID):
        self.start_date = start_date
        self.end_date = end_date
        self.existing_id = existing_id
        super().__init__(
            f"Period {start_date}..{end_date} overlaps existing period {existing_id}"
        )


class DuplicateOvertimeError(ConflictError):
    code = "DUPLICATE_OVERTIME"

    def __init__(self, employee_id: UUID, work_date: date):
        self.employee_id = employee_id
        self.work_date = work_date
        super().__init__(f"Overtime already submitted for {work_date}")


class PeriodAlreadyLockedError(ConflictError):
    code = "ALREADY_LOCKED"

    def __init__(self, payroll_period_id: UUID):
        self.payroll_period_id = payroll_period_id
        super().__init__(f"Payroll already processed for period {payroll_period_id}")


class PayslipAlreadyGeneratedError(ConflictError):
    code = "ALREADY_GENERATED"

    def __init__(self, payroll_period_id: UUID, employee_id: UUID | None = None):
        self.payroll_period_id = payroll_period_id
        self.employee_id = employee_id
        if employee_id is None:
            msg = f"A payslip already exists for period {payroll_period_id}"
        else:
            msg = (
                f"Payslip already generated for employee {employee_id} "
                f"in period {payroll_period_id}"
            )
        super().__init__(msg)


# ===== Computation =====


class ComputationError(PayrollError):
    code = "COMPUTATION_ERROR"


class DegeneratePeriodError(ComputationError):
    code = "DEGENERATE_PERIOD"

    def __init__(self, start_date: date, end_date: date):
        self.start_date = start_date
        self.end_date = end_date
        super().__init__(f"Period {start_date}..{end_date} has no working days")


class NoHourlyBasisError(ComputationError):
    code = "NO_HOURLY_BASIS"

    def __init__(self, employee_id: UUID | None = None):
        self.employee_id = employee_id
        super().__init__(
            "Hourly rate is undefined without attendance"
            + (f" (employee {employee_id})" if employee_id else "")
        )


# ===== Infrastructure =====


class InfrastructureFault(PayrollError):
    code = "STORAGE_UNAVAILABLE"


class ImmutabilityViolationError(PayrollError):
    code = "IMMUTABLE_RECORD"

    def __init__(self, entity_type: str, entity_id: object, reason: str):
        self.entity_type = entity_type
        self.entity_id = entity_id
        self.reason = reason
        super().__init__(f"{entity_type} {entity_id}: {reason}")
