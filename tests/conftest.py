"""Pytest fixtures for payroll admin tests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, timedelta, timezone
from decimal import Decimal
from functools import lru_cache
from typing import Any, AsyncGenerator

import pytest
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.pool import StaticPool

from payroll_admin.config import Settings
from payroll_admin.database import Database
from payroll_admin.models import (
    Accountant,
    Company,
    Employee,
    PayrollEntry,
    PaySchedule,
    PayType,
    User,
)
from payroll_admin.security.passwords import hash_password
from payroll_admin.security.principal import AccountantPrincipal, ClientPrincipal

# In-memory SQLite shared by every session through a single connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "Secret#123"


@lru_cache(maxsize=1)
def password_hash_for_tests() -> str:
    return hash_password(TEST_PASSWORD)


class FakeEmailSender:
    """Records outgoing mail instead of talking to SMTP."""

    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.sent: list[tuple[str, str, str]] = []

    async def send(self, to: str, subject: str, text: str) -> None:
        if self.fail:
            raise ConnectionRefusedError("SMTP unavailable")
        self.sent.append((to, subject, text))


@pytest.fixture
def settings(tmp_path) -> Settings:
    """Settings for tests, independent of the process environment."""
    return Settings(
        database_url=TEST_DATABASE_URL,
        host="127.0.0.1",
        port=5000,
        debug=False,
        log_level="DEBUG",
        jwt_secret="test-secret",
        jwt_algorithm="HS256",
        token_expire_minutes=60,
        smtp_host="localhost",
        smtp_port=25,
        smtp_username="",
        smtp_password="",
        smtp_use_tls=False,
        email_from="no-reply@test.local",
        frontend_url="http://localhost:3000",
        upload_dir=str(tmp_path / "uploads"),
        max_upload_bytes=5 * 1024 * 1024,
        client_read_only=False,
    )


@pytest.fixture
async def database() -> AsyncGenerator[Database, None]:
    """Create a fresh schema for each test."""
    db = Database(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await db.open()
    await db.create_all()
    yield db
    await db.close()


@pytest.fixture
async def session(database: Database) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with database.session() as session:
        yield session


def employee_fields(company_id: int, email: str, **overrides: Any) -> dict[str, Any]:
    """Valid column values for an employee row."""
    fields: dict[str, Any] = {
        "company_id": company_id,
        "first_name": "Jane",
        "last_name": "Doe",
        "date_of_birth": date(1990, 5, 17),
        "full_address": "12 Main St, Toronto, ON",
        "email": email,
        "phone_number": "4165550100",
        "sin": "123456789",
        "start_date": date(2023, 1, 9),
        "position": "Bookkeeper",
        "pay_type": PayType.HOURLY,
        "pay_rate": Decimal("25.50"),
        "pay_schedule": PaySchedule.BIWEEKLY,
        "institution_number": "001",
        "transit_number": "12345",
        "account_number": "1234567",
        "consent_electronic_documents": True,
    }
    fields.update(overrides)
    return fields


def payroll_fields(employee_id: int, start: date, **overrides: Any) -> dict[str, Any]:
    fields: dict[str, Any] = {
        "employee_id": employee_id,
        "pay_period_start": start,
        "pay_period_end": start + timedelta(days=13),
        "hours_worked": Decimal("80.00"),
        "overtime_hours": Decimal("0"),
        "gross_pay": Decimal("2040.00"),
        "deductions": Decimal("340.00"),
        "net_pay": Decimal("1700.00"),
        "payment_date": start + timedelta(days=18),
    }
    fields.update(overrides)
    return fields


@dataclass
class World:
    """Two accountants, their clients, and one unclaimed company."""

    accountant_a: Accountant
    accountant_b: Accountant
    company_a: Company
    company_b: Company
    unassociated: Company
    client_a_user: User
    employee_a: Employee
    employee_b: Employee
    recent_entry: PayrollEntry
    old_entry: PayrollEntry

    @property
    def as_accountant_a(self) -> AccountantPrincipal:
        return AccountantPrincipal(
            user_id=self.accountant_a.user_id, accountant_id=self.accountant_a.accountant_id
        )

    @property
    def as_accountant_b(self) -> AccountantPrincipal:
        return AccountantPrincipal(
            user_id=self.accountant_b.user_id, accountant_id=self.accountant_b.accountant_id
        )

    @property
    def as_client_a(self) -> ClientPrincipal:
        return ClientPrincipal(user_id=self.client_a_user.user_id, company_id=self.company_a.company_id)

    @property
    def as_client_b(self) -> ClientPrincipal:
        return ClientPrincipal(user_id=self.company_b.user_id, company_id=self.company_b.company_id)


async def _user(session: AsyncSession, email: str, user_type: str) -> User:
    user = User(
        email=email,
        password_hash=password_hash_for_tests(),
        user_type=user_type,
        is_verified=True,
    )
    session.add(user)
    await session.flush()
    return user


@pytest.fixture
async def world(session: AsyncSession) -> World:
    """Seed the tenants every policy and API test works against."""
    users = {}
    for email, user_type in [
        ("alice@firm.example.com", "accountant"),
        ("bob@firm.example.com", "accountant"),
        ("owner@acme.example.com", "client"),
        ("owner@globex.example.com", "client"),
        ("owner@initech.example.com", "client"),
    ]:
        users[email] = await _user(session, email, user_type)

    accountant_a = Accountant(user_id=users["alice@firm.example.com"].user_id, first_name="Alice", last_name="Ng")
    accountant_b = Accountant(user_id=users["bob@firm.example.com"].user_id, first_name="Bob", last_name="Roy")
    session.add_all([accountant_a, accountant_b])
    await session.flush()

    company_a = Company(
        user_id=users["owner@acme.example.com"].user_id,
        company_name="Acme Ltd",
        contact_person="Wile Coyote",
        email="owner@acme.example.com",
        phone="4165550101",
        address="1 Desert Rd",
        accountant_id=accountant_a.accountant_id,
    )
    company_b = Company(
        user_id=users["owner@globex.example.com"].user_id,
        company_name="Globex Corp",
        contact_person="Hank Scorpio",
        email="owner@globex.example.com",
        phone="4165550102",
        address="2 Volcano Way",
        accountant_id=accountant_b.accountant_id,
    )
    unassociated = Company(
        user_id=users["owner@initech.example.com"].user_id,
        company_name="Initech",
        email="owner@initech.example.com",
    )
    session.add_all([company_a, company_b, unassociated])
    await session.flush()

    employee_a = Employee(**employee_fields(company_a.company_id, "jane@acme.example.com"))
    employee_b = Employee(
        **employee_fields(company_b.company_id, "john@globex.example.com", first_name="John", last_name="Smith")
    )
    session.add_all([employee_a, employee_b])
    await session.flush()

    now = datetime.now(timezone.utc)
    recent_entry = PayrollEntry(**payroll_fields(employee_a.employee_id, date(2024, 3, 4)))
    old_entry = PayrollEntry(
        **payroll_fields(employee_a.employee_id, date(2024, 1, 8)),
        created_at=now - timedelta(days=40),
        updated_at=now - timedelta(days=40),
    )
    session.add_all([recent_entry, old_entry])
    await session.commit()

    for record in (accountant_a, accountant_b, company_a, company_b, unassociated,
                   employee_a, employee_b, recent_entry, old_entry):
        await session.refresh(record)

    return World(
        accountant_a=accountant_a,
        accountant_b=accountant_b,
        company_a=company_a,
        company_b=company_b,
        unassociated=unassociated,
        client_a_user=users["owner@acme.example.com"],
        employee_a=employee_a,
        employee_b=employee_b,
        recent_entry=recent_entry,
        old_entry=old_entry,
    )
