"""ORM models."""

from payroll_admin.models.audit import AuditLog
from payroll_admin.models.base import Base, TimestampMixin
from payroll_admin.models.company import Company
from payroll_admin.models.employee import (
    DocumentType,
    Employee,
    EmployeeDocument,
    EmployeeOffboarding,
    LeavingReason,
    PaySchedule,
    PayType,
)
from payroll_admin.models.payroll import PayrollEntry
from payroll_admin.models.user import Accountant, User

__all__ = [
    "Accountant",
    "AuditLog",
    "Base",
    "Company",
    "DocumentType",
    "Employee",
    "EmployeeDocument",
    "EmployeeOffboarding",
    "LeavingReason",
    "PaySchedule",
    "PayType",
    "PayrollEntry",
    "TimestampMixin",
    "User",
]
