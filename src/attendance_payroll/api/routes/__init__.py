"""API routes."""

from attendance_payroll.api.routes.employee import router as employee_router
from attendance_payroll.api.routes.health import router as health_router
from attendance_payroll.api.routes.periods import router as periods_router

__all__ = ["employee_router", "health_router", "periods_router"]
