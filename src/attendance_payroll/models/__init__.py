"""ORM models."""

from attendance_payroll.models.audit import AuditEvent
from attendance_payroll.models.base import Base, TimestampMixin
from attendance_payroll.models.employee import Admin, Employee
from attendance_payroll.models.ledger import (
    AttendanceRecord,
    OvertimeRecord,
    ReimbursementClaim,
)
from attendance_payroll.models.payroll import Payslip, PayrollPeriod

__all__ = [
    "Admin",
    "AttendanceRecord",
    "AuditEvent",
    "Base",
    "Employee",
    "OvertimeRecord",
    "Payslip",
    "PayrollPeriod",
    "ReimbursementClaim",
    "TimestampMixin",
]
