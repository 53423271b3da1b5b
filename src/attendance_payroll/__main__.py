"""Entry point for running the API with uvicorn."""

import uvicorn

from attendance_payroll.config import get_settings


def main() -> None:
    """Serve the payroll API."""
    settings = get_settings()
    uvicorn.run(
        "attendance_payroll.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )


if __name__ == "__main__":
    main()
