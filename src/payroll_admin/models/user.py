"""User account and accountant models."""

from __future__ import annotations

from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import CheckConstraint, DateTime, ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from payroll_admin.models.base import Base, TimestampMixin

if TYPE_CHECKING:
    from payroll_admin.models.company import Company


class User(Base, TimestampMixin):
    """Login identity for an accountant or a client company."""

    __tablename__ = "users"

    user_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False, index=True)
    password_hash: Mapped[str] = mapped_column("password", String(255), nullable=False)
    user_type: Mapped[str] = mapped_column(String(20), nullable=False)
    is_verified: Mapped[bool] = mapped_column(default=False, nullable=False)
    verification_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reset_token: Mapped[str | None] = mapped_column(String(255), nullable=True)
    reset_token_expiry: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    __table_args__ = (
        CheckConstraint("user_type IN ('accountant', 'client')", name="users_user_type_check"),
    )

    # Relationships
    accountant: Mapped[Accountant | None] = relationship(back_populates="user")
    company: Mapped[Company | None] = relationship(back_populates="user")


class Accountant(Base, TimestampMixin):
    """Accountant profile; manages any number of client companies."""

    __tablename__ = "accountants"

    accountant_id: Mapped[int] = mapped_column(primary_key=True, autoincrement=True)
    user_id: Mapped[int] = mapped_column(
        ForeignKey("users.user_id"),
        unique=True,
        nullable=False,
    )
    first_name: Mapped[str] = mapped_column(String(100), nullable=False)
    last_name: Mapped[str] = mapped_column(String(100), nullable=False)

    # Relationships
    user: Mapped[User] = relationship(back_populates="accountant")
    companies: Mapped[list[Company]] = relationship(back_populates="accountant")

    @property
    def full_name(self) -> str:
        """Get full name."""
        return f"{self.first_name} {self.last_name}"
