"""Pydantic schemas for API request/response models."""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class ErrorResponse(BaseModel):
    """Error body returned for every failed request."""

    detail: str
    code: str


# ============================================================================
# Payroll period schemas
# ============================================================================


class PeriodCreate(BaseModel):
    """Schema for creating a payroll period."""

    start_date: date
    end_date: date


class PeriodResponse(BaseModel):
    """Schema for payroll period response."""

    model_config = ConfigDict(from_attributes=True)

    payroll_period_id: UUID
    start_date: date
    end_date: date
    locked: bool
    status: str
    locked_at: datetime | None = None
    created_by: str | None = None
    created_at: datetime


class PeriodListResponse(BaseModel):
    """Schema for listing payroll periods."""

    items: list[PeriodResponse]
    total: int


class RunSummaryResponse(BaseModel):
    """Schema for the result of a payroll run."""

    model_config = ConfigDict(from_attributes=True)

    payroll_period_id: UUID
    start_date: date
    end_date: date
    processed_employees: int
    total_pay: Decimal


class PeriodSummaryItemResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    employee_id: UUID
    display_name: str
    total_pay: Decimal


class PeriodSummaryResponse(BaseModel):
    """Per-employee take-home pay for a period."""

    payroll_period_id: UUID
    start_date: date
    end_date: date
    items: list[PeriodSummaryItemResponse]
    total_take_home: Decimal


# ============================================================================
# Ledger schemas
# ============================================================================


class OvertimeCreate(BaseModel):
    """Schema for submitting overtime."""

    work_date: date
    hours: Decimal


class ReimbursementCreate(BaseModel):
    """Schema for submitting a reimbursement claim."""

    amount: Decimal
    expense_date: date | None = None
    description: str | None = Field(default=None, max_length=500)


class LedgerAckResponse(BaseModel):
    """Schema for a ledger write acknowledgement."""

    model_config = ConfigDict(from_attributes=True)

    status: str
    payroll_period_id: UUID
    record_id: UUID
    work_date: date


# ============================================================================
# Payslip schemas
# ============================================================================


class PayslipCreate(BaseModel):
    """Schema for requesting a self-service payslip."""

    payroll_period_id: UUID


class PayslipResponse(BaseModel):
    """Schema for payslip response."""

    model_config = ConfigDict(from_attributes=True)

    payslip_id: UUID
    employee_id: UUID
    payroll_period_id: UUID
    working_days: int
    attendance_days: int
    prorated_base_salary: Decimal
    hourly_rate: Decimal
    overtime_hours: Decimal
    overtime_pay: Decimal
    reimbursement_total: Decimal
    total_pay: Decimal
    source: str
    created_at: datetime


class GeneratedPayslipResponse(BaseModel):
    """A generated payslip plus the location of its document."""

    payslip: PayslipResponse
    document_locator: str | None = None
