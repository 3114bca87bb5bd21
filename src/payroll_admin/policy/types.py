"""Value types used by the access policy engine."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Union


class Operation(str, Enum):
    """Operations a principal can attempt on a resource."""

    READ = "read"
    LIST = "list"
    CREATE = "create"
    UPDATE = "update"
    DELETE = "delete"
    OFFBOARD = "offboard"
    ASSOCIATE = "associate"

    @property
    def is_mutating(self) -> bool:
        return self not in (Operation.READ, Operation.LIST)


class Outcome(str, Enum):
    """Tri-state result of an authorization decision."""

    ALLOW = "allow"
    DENY = "deny"
    NOT_FOUND = "not_found"


@dataclass(frozen=True)
class Decision:
    """Authorization decision with an optional denial reason."""

    outcome: Outcome
    reason: str | None = None

    @classmethod
    def allow(cls) -> Decision:
        return cls(Outcome.ALLOW)

    @classmethod
    def deny(cls, reason: str) -> Decision:
        return cls(Outcome.DENY, reason)

    @classmethod
    def not_found(cls, reason: str = "Resource not found") -> Decision:
        return cls(Outcome.NOT_FOUND, reason)

    @property
    def allowed(self) -> bool:
        return self.outcome is Outcome.ALLOW


@dataclass(frozen=True)
class CompanyRef:
    company_id: int


@dataclass(frozen=True)
class EmployeeRef:
    employee_id: int


@dataclass(frozen=True)
class PayrollRef:
    payroll_id: int


@dataclass(frozen=True)
class NewEmployeeRef:
    """Target of an employee creation; ``company_id`` is caller-supplied."""

    company_id: int | None


ResourceRef = Union[CompanyRef, EmployeeRef, PayrollRef, NewEmployeeRef]


@dataclass(frozen=True)
class OwningCompany:
    """A resource resolved to the company that owns it."""

    company_id: int
    accountant_id: int | None
    created_at: datetime | None = None
