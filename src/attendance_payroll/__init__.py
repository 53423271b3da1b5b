"""Attendance payroll engine.

Turns attendance, overtime and reimbursement ledgers into locked, immutable
payslips per payroll period.
"""

__version__ = "0.1.0"
