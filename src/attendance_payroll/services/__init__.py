"""Attendance payroll services."""

from attendance_payroll.services.audit import (
    AuditRecord,
    AuditRecorder,
    DatabaseAuditSink,
    LoggingAuditSink,
)
from attendance_payroll.services.ledger_service import LedgerAck, LedgerService
from attendance_payroll.services.pay_run_service import (
    GeneratedPayslip,
    PayRunService,
    RunSummary,
)
from attendance_payroll.services.payslip_store import (
    PayslipStore,
    PeriodSummary,
    PeriodSummaryItem,
)
from attendance_payroll.services.period_registry import PeriodRegistry
from attendance_payroll.services.state_machine import (
    InvalidTransitionError,
    PeriodStateMachine,
    PeriodStatus,
)

__all__ = [
    "AuditRecord",
    "AuditRecorder",
    "DatabaseAuditSink",
    "GeneratedPayslip",
    "InvalidTransitionError",
    "LedgerAck",
    "LedgerService",
    "LoggingAuditSink",
    "PayRunService",
    "PayslipStore",
    "PeriodRegistry",
    "PeriodStateMachine",
    "PeriodStatus",
    "PeriodSummary",
    "PeriodSummaryItem",
    "RunSummary",
]
