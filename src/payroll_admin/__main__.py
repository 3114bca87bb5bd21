"""Entry point for running the application with uvicorn."""

import uvicorn

from payroll_admin.config import configure_logging, get_settings


def main() -> None:
    """Run the application."""
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(
        "payroll_admin.api.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
    )


if __name__ == "__main__":
    main()
