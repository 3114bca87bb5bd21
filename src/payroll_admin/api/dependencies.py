"""FastAPI dependencies for dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, Header, Request
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_admin.config import Settings
from payroll_admin.database import Database
from payroll_admin.policy import PolicyEngine, client_read_only
from payroll_admin.security.principal import Principal
from payroll_admin.security.tokens import decode_token, parse_authorization_header
from payroll_admin.services import (
    AuditTrail,
    AuthService,
    CompanyService,
    EmailSender,
    EmployeeService,
    LocalDocumentStorage,
    PayrollService,
)


def get_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_database(request: Request) -> Database:
    return request.app.state.database


async def get_db_session(
    database: Annotated[Database, Depends(get_database)],
) -> AsyncGenerator[AsyncSession, None]:
    """Get database session dependency."""
    async with database.session() as session:
        yield session


AppSettings = Annotated[Settings, Depends(get_settings)]
DbSession = Annotated[AsyncSession, Depends(get_db_session)]


async def get_principal(
    settings: AppSettings,
    authorization: Annotated[str | None, Header()] = None,
) -> Principal:
    """Authenticate the bearer token on the request."""
    token = parse_authorization_header(authorization)
    return decode_token(token, settings)


CurrentPrincipal = Annotated[Principal, Depends(get_principal)]


def get_policy_engine(db: DbSession, settings: AppSettings) -> PolicyEngine:
    engine = PolicyEngine(db)
    if settings.client_read_only:
        engine = engine.with_rules(client_read_only)
    return engine


def get_audit_trail(request: Request) -> AuditTrail:
    return request.app.state.audit_trail


def get_storage(request: Request) -> LocalDocumentStorage:
    return request.app.state.storage


def get_email_sender(request: Request) -> EmailSender:
    return request.app.state.email_sender


Policy = Annotated[PolicyEngine, Depends(get_policy_engine)]
Audit = Annotated[AuditTrail, Depends(get_audit_trail)]


def get_company_service(db: DbSession, policy: Policy, audit: Audit) -> CompanyService:
    return CompanyService(db, policy, audit)


def get_employee_service(
    db: DbSession,
    policy: Policy,
    audit: Audit,
    settings: AppSettings,
    storage: Annotated[LocalDocumentStorage, Depends(get_storage)],
) -> EmployeeService:
    return EmployeeService(db, policy, audit, storage, max_upload_bytes=settings.max_upload_bytes)


def get_payroll_service(db: DbSession, policy: Policy, audit: Audit) -> PayrollService:
    return PayrollService(db, policy, audit)


def get_auth_service(
    db: DbSession,
    settings: AppSettings,
    email: Annotated[EmailSender, Depends(get_email_sender)],
) -> AuthService:
    return AuthService(db, settings, email)


# Type aliases for cleaner dependency injection
Companies = Annotated[CompanyService, Depends(get_company_service)]
Employees = Annotated[EmployeeService, Depends(get_employee_service)]
PayrollEntries = Annotated[PayrollService, Depends(get_payroll_service)]
Auth = Annotated[AuthService, Depends(get_auth_service)]
