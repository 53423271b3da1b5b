"""Payroll period and payslip models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from typing import TYPE_CHECKING
from uuid import UUID, uuid4

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    UniqueConstraint,
    event,
    inspect,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from attendance_payroll.errors import ImmutabilityViolationError
from attendance_payroll.models.base import AuditStampMixin, Base, TimestampMixin

if TYPE_CHECKING:
    from attendance_payroll.models.employee import Employee


class PayrollPeriod(Base, TimestampMixin, AuditStampMixin):
    """A date range over which ledger entries accumulate.

    ``locked`` only ever flips from false to true; once set, the period
    accepts no ledger writes and no further payroll runs.
    """

    __tablename__ = "payroll_period"

    payroll_period_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[date] = mapped_column(Date, nullable=False)
    locked: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    locked_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    updated_by: Mapped[str | None] = mapped_column(String, nullable=True)

    __table_args__ = (
        CheckConstraint("end_date >= start_date", name="payroll_period_dates_check"),
    )

    # Relationships
    payslips: Mapped[list[Payslip]] = relationship(back_populates="payroll_period")

    @property
    def status(self) -> str:
        """Lifecycle status derived from the lock flag."""
        return "locked" if self.locked else "open"


class Payslip(Base, TimestampMixin, AuditStampMixin):
    """Computed compensation for one employee in one period.

    Unique per (employee, period) and never updated after insert. Both the
    batch run and self-service generation write through the same constraint.
    """

    __tablename__ = "payslip"

    payslip_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    employee_id: Mapped[UUID] = mapped_column(
        ForeignKey("employee.employee_id", ondelete="RESTRICT"),
        nullable=False,
    )
    payroll_period_id: Mapped[UUID] = mapped_column(
        ForeignKey("payroll_period.payroll_period_id", ondelete="RESTRICT"),
        nullable=False,
    )
    working_days: Mapped[int] = mapped_column(Integer, nullable=False)
    attendance_days: Mapped[int] = mapped_column(Integer, nullable=False)
    prorated_base_salary: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    hourly_rate: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    overtime_hours: Mapped[Decimal] = mapped_column(Numeric(8, 2), nullable=False)
    overtime_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    reimbursement_total: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    total_pay: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    source: Mapped[str] = mapped_column(String, nullable=False)

    __table_args__ = (
        UniqueConstraint(
            "employee_id", "payroll_period_id", name="payslip_employee_period_unique"
        ),
        CheckConstraint("source IN ('batch', 'self_service')", name="payslip_source_check"),
        CheckConstraint(
            "prorated_base_salary >= 0 AND overtime_hours >= 0 AND overtime_pay >= 0 "
            "AND reimbursement_total >= 0 AND total_pay >= 0",
            name="payslip_amounts_non_negative",
        ),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="payslips")
    payroll_period: Mapped[PayrollPeriod] = relationship(back_populates="payslips")


@event.listens_for(PayrollPeriod, "before_update")
def prevent_period_rewrite(mapper, connection, target):
    """Allow only the false -> true lock flip on a period."""
    state = inspect(target)
    for attr in ("start_date", "end_date"):
        if state.attrs[attr].history.has_changes():
            raise ImmutabilityViolationError(
                "PayrollPeriod",
                target.payroll_period_id,
                f"{attr} cannot change once the period exists",
            )
    locked_history = state.attrs.locked.history
    if locked_history.deleted and locked_history.deleted[0] and not target.locked:
        raise ImmutabilityViolationError(
            "PayrollPeriod", target.payroll_period_id, "a locked period cannot be unlocked"
        )


@event.listens_for(Payslip, "before_update")
def prevent_payslip_update(mapper, connection, target):
    raise ImmutabilityViolationError(
        "Payslip", target.payslip_id, "payslips are immutable once created"
    )


@event.listens_for(Payslip, "before_delete")
def prevent_payslip_delete(mapper, connection, target):
    raise ImmutabilityViolationError(
        "Payslip", target.payslip_id, "payslips cannot be deleted"
    )
