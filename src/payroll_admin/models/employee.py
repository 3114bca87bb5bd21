"""Employee, offboarding, and document models."""

from __future__ import annotations

from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import TYPE_CHECKING

from sqlalchemy import Date, DateTime, ForeignKey, Numeric, String, Text, func
from sqlalchemy import Enum as SAEnum
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_admin.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payroll_admin.models.company import Company
    from payroll_admin.models.payroll import PayrollEntry


class PayType(str, Enum):
    """How an employee's pay rate is expressed."""

    HOURLY = "HOURLY"
    SALARY = "SALARY"


class PaySchedule(str, Enum):
    """Pay frequency."""

    WEEKLY = "WEEKLY"
    BIWEEKLY = "BIWEEKLY"
    MONTHLY = "MONTHLY"


class LeavingReason(str, Enum):
    """Reason recorded on an offboarding record."""

    QUIT = "QUIT"
    DISMISSED = "DISMISSED"
    LAYOFF = "LAYOFF"
    END_OF_CONTRACT = "END_OF_CONTRACT"
    RETIREMENT = "RETIREMENT"
    OTHER = "OTHER"


class DocumentType(str, Enum):
    """Onboarding documents collected when an employee is created."""

    TD1_FEDERAL = "TD1_FEDERAL"
    TD1_PROVINCIAL = "TD1_PROVINCIAL"


class Employee(Base, TimestampMixin):
    """Employee record, scoped to exactly one company."""

    __tablename__ = "employees"

    employee_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    company_id: Mapped[int] = mapped_column(
        ForeignKey("companies.company_id"),
        nullable=False,
        index=True,
    )
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    date_of_birth: Mapped[date] = mapped_column(Date, nullable=False)
    full_address: Mapped[str] = mapped_column(Text, nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone_number: Mapped[str] = mapped_column(String(20), nullable=False)
    sin: Mapped[str] = mapped_column(String(9), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    position: Mapped[str] = mapped_column(String(100), nullable=False)
    pay_type: Mapped[PayType] = mapped_column(
        SAEnum(PayType, name="pay_type_enum"), nullable=False
    )
    pay_rate: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    pay_schedule: Mapped[PaySchedule] = mapped_column(
        SAEnum(PaySchedule, name="pay_schedule_enum"), nullable=False
    )
    institution_number: Mapped[str | None] = mapped_column(String(3), nullable=True)
    transit_number: Mapped[str | None] = mapped_column(String(5), nullable=True)
    account_number: Mapped[str | None] = mapped_column(String(12), nullable=True)
    consent_electronic_documents: Mapped[bool] = mapped_column(nullable=False)
    is_active: Mapped[bool] = mapped_column(default=True, nullable=False)

    # Relationships
    company: Mapped[Company] = relationship(back_populates="employees")
    offboarding: Mapped[EmployeeOffboarding | None] = relationship(back_populates="employee")
    documents: Mapped[list[EmployeeDocument]] = relationship(back_populates="employee")
    payroll_entries: Mapped[list[PayrollEntry]] = relationship(back_populates="employee")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"


class EmployeeOffboarding(Base):
    """Terminal record written once when an employee leaves."""

    __tablename__ = "employee_offboarding"

    offboarding_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.employee_id"),
        unique=True,
        nullable=False,
    )
    reason_for_leaving: Mapped[LeavingReason] = mapped_column(
        SAEnum(LeavingReason, name="leaving_reason_enum"), nullable=False
    )
    last_day_worked: Mapped[date] = mapped_column(Date, nullable=False)
    payout_accrued_vacation: Mapped[bool] = mapped_column(nullable=False)
    callback_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="offboarding")


class EmployeeDocument(Base):
    """Uploaded document stored for an employee."""

    __tablename__ = "employee_documents"

    document_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.employee_id"),
        nullable=False,
        index=True,
    )
    document_type: Mapped[str] = mapped_column(String(50), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    upload_date: Mapped[date] = mapped_column(Date, nullable=False)
    expiry_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    document_path: Mapped[str] = mapped_column(Text, nullable=False)

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="documents")
