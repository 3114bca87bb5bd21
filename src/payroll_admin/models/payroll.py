"""Payroll entry model."""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, Date, ForeignKey, Index, Numeric
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_admin.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payroll_admin.models.employee import Employee


class PayrollEntry(Base, TimestampMixin):
    """One pay period's figures for one employee.

    Period boundaries are fixed at creation; the monetary fields stay
    editable, subject to the 30-day rule for client users.
    """

    __tablename__ = "payroll_entries"

    payroll_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    employee_id: Mapped[int] = mapped_column(
        ForeignKey("employees.employee_id"),
        nullable=False,
        index=True,
    )
    pay_period_start: Mapped[date] = mapped_column(Date, nullable=False)
    pay_period_end: Mapped[date] = mapped_column(Date, nullable=False)
    hours_worked: Mapped[Decimal | None] = mapped_column(Numeric(8, 2), nullable=True)
    overtime_hours: Mapped[Decimal] = mapped_column(
        Numeric(8, 2), nullable=False, default=Decimal("0")
    )
    gross_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    deductions: Mapped[Decimal] = mapped_column(
        Numeric(10, 2), nullable=False, default=Decimal("0")
    )
    net_pay: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    payment_date: Mapped[date] = mapped_column(Date, nullable=False)

    __table_args__ = (
        CheckConstraint(
            "pay_period_end >= pay_period_start",
            name="payroll_entries_period_order",
        ),
        Index("idx_payroll_period", "pay_period_start", "pay_period_end"),
    )

    # Relationships
    employee: Mapped[Employee] = relationship(back_populates="payroll_entries")
