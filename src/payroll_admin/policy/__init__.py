"""Access policy engine."""

from payroll_admin.policy.engine import (
    PAYROLL_EDIT_WINDOW,
    PolicyEngine,
    check_ownership,
    client_read_only,
    enforce,
    require_accountant,
    visible_companies,
)
from payroll_admin.policy.types import (
    CompanyRef,
    Decision,
    EmployeeRef,
    NewEmployeeRef,
    Operation,
    Outcome,
    OwningCompany,
    PayrollRef,
)

__all__ = [
    "PAYROLL_EDIT_WINDOW",
    "CompanyRef",
    "Decision",
    "EmployeeRef",
    "NewEmployeeRef",
    "Operation",
    "Outcome",
    "OwningCompany",
    "PayrollRef",
    "PolicyEngine",
    "check_ownership",
    "client_read_only",
    "enforce",
    "require_accountant",
    "visible_companies",
]
