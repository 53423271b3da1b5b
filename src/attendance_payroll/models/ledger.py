"""Activity ledger models: attendance, overtime and reimbursement claims.

Every row is stamped with the period that was active when it was written and
is immutable afterwards.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    CheckConstraint,
    Date,
    ForeignKey,
    Numeric,
    String,
    UniqueConstraint,
    event,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.errors import ImmutabilityViolationError
from attendance_payroll.models.base import AuditStampMixin, Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.employee import Employee
    from attendance_payroll.models.payroll import PayrollPeriod


class AttendanceRecord(Base, TimestampMixin, AuditStampMixin):
    """One check-in per employee per working day."""

    __tablename__ = "attendance_record"

    attendance_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    payroll_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.payroll_period_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="attendance_employee_date_unique"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="attendance")
    payroll_period: Mapped[PayrollPeriod] = relationship()


class OvertimeRecord(Base, TimestampMixin, AuditStampMixin):
    """Overtime claimed for a single day, capped at three hours."""

    __tablename__ = "overtime_record"

    overtime_record_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    work_date: Mapped[date] = mapped_column(Date, nullable=False)
    payroll_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.payroll_period_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    hours: Mapped[Decimal] = mapped_column(Numeric(4, 2), nullable=False)

    __table_args__ = (
        UniqueConstraint("employee_id", "work_date", name="overtime_employee_date_unique"),
        CheckConstraint("hours > 0 AND hours <= 3", name="overtime_hours_range"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="overtime")
    payroll_period: Mapped[PayrollPeriod] = relationship()


class ReimbursementClaim(Base, TimestampMixin, AuditStampMixin):
    """Expense claimed back by an employee; several per period are allowed."""

    __tablename__ = "reimbursement_claim"

    reimbursement_claim_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    expense_date: Mapped[date] = mapped_column(Date, nullable=False)
    payroll_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.payroll_period_id", ondelete="RESTRICT"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    description: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("amount > 0", name="reimbursement_amount_positive"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="reimbursements")
    payroll_period: Mapped[PayrollPeriod] = relationship()


def _reject_mutation(entity_type: str, id_attr: str):
    def listener(mapper, connection, target):
        raise ImmutabilityViolationError(
            entity_type, getattr(target, id_attr), "ledger entries are append-only"
        )

    return listener


for _model, _id_attr in (
    (AttendanceRecord, "attendance_record_id"),
    (OvertimeRecord, "overtime_record_id"),
    (ReimbursementClaim, "reimbursement_claim_id"),
):
    event.listen(_model, "before_update", _reject_mutation(_model.__name__, _id_attr))
    event.listen(_model, "before_delete", _reject_mutation(_model.__name__, _id_attr))
