"""FastAPI application factory."""

import logging
from contextlib import asynccontextmanager
from collections.abc import AsyncGenerator

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import InterfaceError, OperationalError
from starlette.exceptions import HTTPException as StarletteHTTPException

from attendance_payroll import __version__
from attendance_payroll.api.routes import employee_router, health_router, periods_router
from attendance_payroll.config import get_settings
from attendance_payroll.database import dispose_db, init_db
from attendance_payroll.errors import (
    BusinessRuleViolation,
    ComputationError,
    ConflictError,
    InfrastructureFault,
    NotFoundError,
    PayrollError,
    ValidationError,
)
from attendance_payroll.logging_config import configure_logging

logger = logging.getLogger(__name__)

ERROR_STATUS: list[tuple[type[PayrollError], int]] = [
    (ValidationError, status.HTTP_400_BAD_REQUEST),
    (BusinessRuleViolation, status.HTTP_400_BAD_REQUEST),
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ConflictError, status.HTTP_409_CONFLICT),
    (ComputationError, 422),
    (InfrastructureFault, status.HTTP_503_SERVICE_UNAVAILABLE),
]

HTTP_ERROR_CODES = {
    status.HTTP_401_UNAUTHORIZED: "UNAUTHORIZED",
    status.HTTP_403_FORBIDDEN: "FORBIDDEN",
    status.HTTP_404_NOT_FOUND: "NOT_FOUND",
    status.HTTP_405_METHOD_NOT_ALLOWED: "METHOD_NOT_ALLOWED",
}

DATE_FIELDS = {"start_date", "end_date", "work_date", "expense_date"}


def status_for(exc: PayrollError) -> int:
    """HTTP status for a payroll error, by its place in the hierarchy."""
    for error_type, status_code in ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def error_body(detail: str, code: str) -> dict[str, str]:
    return {"detail": detail, "code": code}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    settings = get_settings()
    configure_logging(settings.log_level)
    init_db(settings.database_url)
    yield
    await dispose_db()


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    app = FastAPI(
        title="Attendance Payroll API",
        description="Attendance-based payroll periods, runs and payslips",
        version=__version__,
        lifespan=lifespan,
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollError)
    async def payroll_error_handler(request: Request, exc: PayrollError) -> JSONResponse:
        """Map typed payroll errors to HTTP responses."""
        status_code = status_for(exc)
        if isinstance(exc, InfrastructureFault):
            return JSONResponse(
                status_code=status_code,
                content=error_body("Service temporarily unavailable", exc.code),
            )
        if status_code >= 500:
            logger.error("Unmapped payroll error %s: %s", exc.code, exc.message)
            return JSONResponse(
                status_code=status_code,
                content=error_body("An unexpected error occurred", "INTERNAL_ERROR"),
            )
        return JSONResponse(status_code=status_code, content=error_body(exc.message, exc.code))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Malformed request bodies are validation errors (400)."""
        errors = exc.errors()
        code = "VALIDATION_ERROR"
        if any(err.get("loc") and err["loc"][-1] in DATE_FIELDS for err in errors):
            code = "INVALID_DATE"
        detail = "; ".join(
            f"{'.'.join(str(part) for part in err.get('loc', ()))}: {err.get('msg')}"
            for err in errors
        )
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(detail or "Invalid request", code),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content=error_body(
                str(exc.detail), HTTP_ERROR_CODES.get(exc.status_code, "HTTP_ERROR")
            ),
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(OperationalError)
    @app.exception_handler(InterfaceError)
    async def storage_error_handler(request: Request, exc: Exception) -> JSONResponse:
        """Storage failures are logged in full and reported generically."""
        logger.exception("Storage failure handling %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            content=error_body("Service temporarily unavailable", InfrastructureFault.code),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error for %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("An unexpected error occurred", "INTERNAL_ERROR"),
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(periods_router, prefix="/api/v1")
    app.include_router(employee_router, prefix="/api/v1")

    return app


# Default app instance for uvicorn
app = create_app()
