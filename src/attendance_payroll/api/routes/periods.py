"""Payroll period API endpoints (admin only)."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Path, status

from attendance_payroll.api.dependencies import (
    CurrentAdmin,
    Origin,
    PayRuns,
    Payslips,
    Registry,
)
from attendance_payroll.api.schemas import (
    ErrorResponse,
    PeriodCreate,
    PeriodListResponse,
    PeriodResponse,
    PeriodSummaryItemResponse,
    PeriodSummaryResponse,
    RunSummaryResponse,
)

router = APIRouter(prefix="/periods", tags=["periods"])


@router.post(
    "",
    response_model=PeriodResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def create_period(
    registry: Registry,
    admin: CurrentAdmin,
    origin: Origin,
    payload: PeriodCreate,
) -> PeriodResponse:
    """Create a new, unlocked payroll period."""
    period = await registry.create_period(
        payload.start_date, payload.end_date, admin, origin
    )
    return PeriodResponse.model_validate(period)


@router.get("", response_model=PeriodListResponse)
async def list_periods(
    registry: Registry,
    admin: CurrentAdmin,
) -> PeriodListResponse:
    """List all payroll periods, oldest first."""
    periods = await registry.list_periods()
    return PeriodListResponse(
        items=[PeriodResponse.model_validate(p) for p in periods],
        total=len(periods),
    )


@router.get(
    "/{payroll_period_id}",
    response_model=PeriodResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_period(
    registry: Registry,
    admin: CurrentAdmin,
    payroll_period_id: Annotated[UUID, Path()],
) -> PeriodResponse:
    """Get a specific payroll period by ID."""
    period = await registry.get_period(payroll_period_id)
    return PeriodResponse.model_validate(period)


@router.post(
    "/{payroll_period_id}/run",
    response_model=RunSummaryResponse,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def run_payroll(
    pay_runs: PayRuns,
    admin: CurrentAdmin,
    origin: Origin,
    payroll_period_id: Annotated[UUID, Path()],
) -> RunSummaryResponse:
    """Run payroll for a period and lock it."""
    summary = await pay_runs.run_payroll(payroll_period_id, admin, origin)
    return RunSummaryResponse.model_validate(summary)


@router.get(
    "/{payroll_period_id}/summary",
    response_model=PeriodSummaryResponse,
    responses={404: {"model": ErrorResponse}},
)
async def get_period_summary(
    payslips: Payslips,
    admin: CurrentAdmin,
    payroll_period_id: Annotated[UUID, Path()],
) -> PeriodSummaryResponse:
    """Per-employee take-home pay for a period."""
    summary = await payslips.period_summary(payroll_period_id)
    return PeriodSummaryResponse(
        payroll_period_id=summary.period.payroll_period_id,
        start_date=summary.period.start_date,
        end_date=summary.period.end_date,
        items=[PeriodSummaryItemResponse.model_validate(item) for item in summary.items],
        total_take_home=summary.total_take_home,
    )
