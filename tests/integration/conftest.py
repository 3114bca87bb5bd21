"""Integration test fixtures: the full app against an in-memory database."""

from collections.abc import AsyncGenerator, Callable

import pytest
import pytest_asyncio
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient

from payroll_admin.api.app import create_app
from payroll_admin.models import User
from payroll_admin.security.principal import AccountantPrincipal, Principal
from payroll_admin.security.tokens import generate_token
from payroll_admin.services import AuditTrail, LocalDocumentStorage, log_audit_event
from tests.conftest import FakeEmailSender

PDF_BYTES = b"%PDF-1.4\n1 0 obj\n<<>>\nendobj\n%%EOF\n"


class AuditRecorder:
    def __init__(self) -> None:
        self.actions: list[tuple[str, str]] = []

    async def __call__(self, event) -> None:
        self.actions.append((event.action, event.target_id))


@pytest.fixture
def mailer() -> FakeEmailSender:
    return FakeEmailSender()


@pytest.fixture
def audit_recorder() -> AuditRecorder:
    return AuditRecorder()


@pytest_asyncio.fixture
async def app(settings, database, mailer, audit_recorder, tmp_path) -> FastAPI:
    """Application wired to the test database and fake collaborators."""
    return create_app(
        settings,
        database=database,
        email_sender=mailer,
        storage=LocalDocumentStorage(tmp_path / "documents"),
        audit_trail=AuditTrail([log_audit_event, audit_recorder]),
    )


@pytest_asyncio.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Create async test client."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


@pytest.fixture
def bearer(settings) -> Callable[[Principal], dict[str, str]]:
    """Build an Authorization header for a principal."""

    def _bearer(principal: Principal) -> dict[str, str]:
        user = User(user_id=principal.user_id, email="user@test.local", user_type=principal.role.value)
        if isinstance(principal, AccountantPrincipal):
            token = generate_token(user, settings, accountant_id=principal.accountant_id)
        else:
            token = generate_token(user, settings, company_id=principal.company_id)
        return {"Authorization": f"Bearer {token}"}

    return _bearer


def pdf_files(**overrides) -> dict[str, tuple[str, bytes, str]]:
    """Multipart file parts for both TD1 forms."""
    files = {
        "td1_federal": ("td1_federal.pdf", PDF_BYTES, "application/pdf"),
        "td1_provincial": ("td1_provincial.pdf", PDF_BYTES, "application/pdf"),
    }
    files.update(overrides)
    return {name: part for name, part in files.items() if part is not None}
