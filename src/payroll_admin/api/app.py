"""FastAPI application factory."""

import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException

from payroll_admin import __version__
from payroll_admin.api.routes import (
    auth_router,
    companies_router,
    employees_router,
    health_router,
    payroll_router,
)
from payroll_admin.config import Settings, get_settings
from payroll_admin.database import Database
from payroll_admin.errors import PayrollAdminError, ValidationError
from payroll_admin.services import (
    AuditTrail,
    DatabaseAuditSink,
    EmailSender,
    LocalDocumentStorage,
    SmtpEmailSender,
    log_audit_event,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler."""
    database: Database = app.state.database
    await database.open()
    logger.info("Database pool opened")
    yield
    await database.close()
    logger.info("Database pool closed")


def create_app(
    settings: Settings | None = None,
    *,
    database: Database | None = None,
    email_sender: EmailSender | None = None,
    storage: LocalDocumentStorage | None = None,
    audit_trail: AuditTrail | None = None,
) -> FastAPI:
    """Create and configure the FastAPI application.

    Collaborators default to the production ones built from ``settings``;
    tests pass their own.
    """
    settings = settings or get_settings()
    database = database or Database.from_settings(settings)

    app = FastAPI(
        title="Payroll Admin API",
        description="Multi-tenant payroll administration for accountants and client companies",
        version=__version__,
        debug=settings.debug,
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.database = database
    app.state.email_sender = email_sender or SmtpEmailSender.from_settings(settings)
    app.state.storage = storage or LocalDocumentStorage(settings.upload_dir)
    app.state.audit_trail = audit_trail or AuditTrail(
        [log_audit_event, DatabaseAuditSink(database)]
    )

    # CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=[settings.frontend_url],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Exception handlers
    @app.exception_handler(PayrollAdminError)
    async def payroll_admin_error_handler(
        request: Request, exc: PayrollAdminError
    ) -> JSONResponse:
        """Map domain errors onto their status code and body."""
        return JSONResponse(status_code=exc.status_code, content=exc.to_body())

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(
        request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        """Report malformed requests with the same body as service validation."""
        error = ValidationError.from_pydantic(list(exc.errors()))
        return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content=error.to_body())

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(
        request: Request, exc: StarletteHTTPException
    ) -> JSONResponse:
        return JSONResponse(
            status_code=exc.status_code,
            content={"error": exc.detail},
            headers=getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(
        request: Request, exc: Exception
    ) -> JSONResponse:
        """Handle unexpected exceptions."""
        logger.exception("Unhandled error on %s %s", request.method, request.url.path)
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={"error": "An unexpected error occurred"},
        )

    # Include routers
    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(companies_router)
    app.include_router(employees_router)
    app.include_router(payroll_router)

    return app


# Default app instance for uvicorn
app = create_app()
