"""Employee and admin models.

These are the per-role lookup tables behind the actor union in
``attendance_payroll.identity``.
"""

from __future__ import annotations

from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import CheckConstraint, Numeric, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.models.base import AuditStampMixin, Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.ledger import (
        AttendanceRecord,
        OvertimeRecord,
        ReimbursementClaim,
    )
    from attendance_payroll.models.payroll import Payslip


class Employee(Base, TimestampMixin, AuditStampMixin):
    """Employee record with a monthly base salary."""

    __tablename__ = "employee"

    employee_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)
    monthly_base_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)

    __table_args__ = (
        CheckConstraint("monthly_base_salary > 0", name="employee_salary_positive"),
    )

    # Relationships
    attendance: Mapped[list[AttendanceRecord]] = relationship(back_populates="employee")
    overtime: Mapped[list[OvertimeRecord]] = relationship(back_populates="employee")
    reimbursements: Mapped[list[ReimbursementClaim]] = relationship(
        back_populates="employee"
    )
    payslips: Mapped[list[Payslip]] = relationship(back_populates="employee")


class Admin(Base, TimestampMixin, AuditStampMixin):
    """Administrative user allowed to manage periods and run payroll."""

    __tablename__ = "admin_user"

    admin_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    username: Mapped[str] = mapped_column(String, nullable=False, unique=True)
