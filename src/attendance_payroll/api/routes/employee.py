"""Employee self-service API endpoints."""

from fastapi import APIRouter, Response, status

from attendance_payroll.api.dependencies import (
    CurrentEmployee,
    Ledger,
    Origin,
    PayRuns,
)
from attendance_payroll.api.schemas import (
    ErrorResponse,
    GeneratedPayslipResponse,
    LedgerAckResponse,
    OvertimeCreate,
    PayslipCreate,
    PayslipResponse,
    ReimbursementCreate,
)

router = APIRouter(prefix="/employee", tags=["employee"])


@router.post(
    "/attendance",
    response_model=LedgerAckResponse,
    status_code=status.HTTP_201_CREATED,
    responses={200: {"model": LedgerAckResponse}, 400: {"model": ErrorResponse}},
)
async def submit_attendance(
    ledger: Ledger,
    employee: CurrentEmployee,
    origin: Origin,
    response: Response,
) -> LedgerAckResponse:
    """Check in for today. Repeat check-ins return 200 and change nothing."""
    ack = await ledger.submit_attendance(employee, origin=origin)
    if not ack.created:
        response.status_code = status.HTTP_200_OK
    return LedgerAckResponse.model_validate(ack)


@router.post(
    "/overtime",
    response_model=LedgerAckResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}, 409: {"model": ErrorResponse}},
)
async def submit_overtime(
    ledger: Ledger,
    employee: CurrentEmployee,
    origin: Origin,
    payload: OvertimeCreate,
) -> LedgerAckResponse:
    """Claim overtime hours for a past or current day."""
    ack = await ledger.submit_overtime(employee, payload.work_date, payload.hours, origin)
    return LedgerAckResponse.model_validate(ack)


@router.post(
    "/reimbursements",
    response_model=LedgerAckResponse,
    status_code=status.HTTP_201_CREATED,
    responses={400: {"model": ErrorResponse}},
)
async def submit_reimbursement(
    ledger: Ledger,
    employee: CurrentEmployee,
    origin: Origin,
    payload: ReimbursementCreate,
) -> LedgerAckResponse:
    """Submit an expense claim."""
    ack = await ledger.submit_reimbursement(
        employee,
        payload.amount,
        expense_date=payload.expense_date,
        description=payload.description,
        origin=origin,
    )
    return LedgerAckResponse.model_validate(ack)


@router.post(
    "/payslips",
    response_model=GeneratedPayslipResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        404: {"model": ErrorResponse},
        409: {"model": ErrorResponse},
        422: {"model": ErrorResponse},
    },
)
async def generate_payslip(
    pay_runs: PayRuns,
    employee: CurrentEmployee,
    origin: Origin,
    payload: PayslipCreate,
) -> GeneratedPayslipResponse:
    """Generate the caller's own payslip for a period."""
    generated = await pay_runs.generate_own_payslip(
        employee, payload.payroll_period_id, origin
    )
    return GeneratedPayslipResponse(
        payslip=PayslipResponse.model_validate(generated.payslip),
        document_locator=generated.document_locator,
    )
