"""Client company model."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import ForeignKey, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_admin.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payroll_admin.models.employee import Employee
    from payroll_admin.models.user import Accountant, User


class Company(Base, TimestampMixin):
    """Client company, optionally managed by one accountant.

    ``accountant_id`` starts NULL for self-registered companies and is set
    once by the associate operation.
    """

    __tablename__ = "companies"

    company_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int | None] = mapped_column(
        ForeignKey("users.user_id"),
        unique=True,
        nullable=True,
    )
    company_name: Mapped[str] = mapped_column(String(255), nullable=False)
    contact_person: Mapped[str | None] = mapped_column(String(255), nullable=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(20), nullable=True)
    address: Mapped[str | None] = mapped_column(Text, nullable=True)
    accountant_id: Mapped[int | None] = mapped_column(
        ForeignKey("accountants.accountant_id"),
        nullable=True,
        index=True,
    )

    # Relationships
    user: Mapped[User | None] = relationship(back_populates="company")
    accountant: Mapped[Accountant | None] = relationship(back_populates="companies")
    employees: Mapped[list[Employee]] = relationship(back_populates="company")
