"""Access policy engine.

Decides whether a principal may perform an operation on a company,
employee, or payroll entry. Indirect references are resolved to the
owning company first, and the result is tri-state: a reference that
resolves to nothing is reported as NOT_FOUND, never as a denial.

Ownership rules:
- accountant: allowed when the owning company's accountant_id matches
- client: allowed when the owning company is the client's company
- anything else: denied as an invalid user type

Extra rules (such as client read-only access) run before resolution and
can only deny.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Sequence

from sqlalchemy import ColumnElement, false, select
from sqlalchemy.ext.asyncio import AsyncSession

from payroll_admin.errors import AccessDenied, NotFound, ValidationError
from payroll_admin.models import Company, Employee, PayrollEntry
from payroll_admin.policy.types import (
    CompanyRef,
    Decision,
    EmployeeRef,
    NewEmployeeRef,
    Operation,
    Outcome,
    OwningCompany,
    PayrollRef,
    ResourceRef,
)
from payroll_admin.security.principal import AccountantPrincipal, ClientPrincipal, Principal

logger = logging.getLogger(__name__)

Rule = Callable[[Principal, Operation, ResourceRef], "Decision | None"]

# Clients may only change payroll entries created within this window
PAYROLL_EDIT_WINDOW = timedelta(days=30)

INVALID_ROLE = "Access denied. Invalid user type."
ACCOUNTANT_REQUIRED = "Access denied. Accountant role required."
NOT_ACCOUNTANTS_COMPANY = "Access denied. Company does not belong to this accountant."
NOT_CLIENTS_COMPANY = "Access denied. Clients can only access their own company's data."
CLIENT_READ_ONLY = "Access denied. Clients have read-only access."
PAYROLL_WINDOW_CLOSED = "Access denied. Clients cannot modify payroll entries older than 30 days."

_NOT_FOUND_MESSAGES = {
    CompanyRef: "Company not found",
    NewEmployeeRef: "Company not found",
    EmployeeRef: "Employee not found",
    PayrollRef: "Payroll entry not found",
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _as_aware(value: datetime) -> datetime:
    # SQLite hands back naive UTC timestamps
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def client_read_only(
    principal: Principal, operation: Operation, resource: ResourceRef
) -> Decision | None:
    """Deny every mutating operation attempted by a client."""
    if isinstance(principal, ClientPrincipal) and operation.is_mutating:
        return Decision.deny(CLIENT_READ_ONLY)
    return None


def require_accountant(principal: Principal) -> AccountantPrincipal:
    """Guard for operations only accountants may perform."""
    if not isinstance(principal, AccountantPrincipal):
        raise AccessDenied(ACCOUNTANT_REQUIRED)
    return principal


def visible_companies(principal: Principal) -> ColumnElement[bool]:
    """SQL predicate over ``companies`` matching what the principal may see.

    List queries use this in their WHERE clause so the visible set is the
    same as checking each row with the ownership rule.
    """
    if isinstance(principal, AccountantPrincipal):
        return Company.accountant_id == principal.accountant_id
    if isinstance(principal, ClientPrincipal) and principal.company_id is not None:
        return Company.company_id == principal.company_id
    return false()


def check_ownership(principal: Principal, owner: OwningCompany) -> Decision:
    """Apply the ownership rule to an already-resolved resource."""
    if isinstance(principal, AccountantPrincipal):
        if owner.accountant_id is not None and owner.accountant_id == principal.accountant_id:
            return Decision.allow()
        return Decision.deny(NOT_ACCOUNTANTS_COMPANY)
    if isinstance(principal, ClientPrincipal):
        if principal.company_id is not None and owner.company_id == principal.company_id:
            return Decision.allow()
        return Decision.deny(NOT_CLIENTS_COMPANY)
    return Decision.deny(INVALID_ROLE)


def enforce(decision: Decision, *, not_found_message: str | None = None) -> None:
    """Raise the error matching a non-allow decision."""
    if decision.outcome is Outcome.ALLOW:
        return
    if decision.outcome is Outcome.NOT_FOUND:
        raise NotFound(not_found_message or decision.reason or "Resource not found")
    raise AccessDenied(decision.reason or "Access denied")


class PolicyEngine:
    """Authorization decisions backed by ownership lookups.

    Usage:
        engine = PolicyEngine(session)
        decision = await engine.authorize(principal, Operation.READ, EmployeeRef(7))

        # or raise AccessDenied / NotFound directly
        owner = await engine.require(principal, Operation.UPDATE, PayrollRef(3))
    """

    def __init__(
        self,
        session: AsyncSession,
        *,
        extra_rules: Sequence[Rule] = (),
        clock: Callable[[], datetime] = _utcnow,
    ):
        self.session = session
        self.extra_rules = tuple(extra_rules)
        self.clock = clock

    def with_rules(self, *rules: Rule) -> PolicyEngine:
        """Return an engine that also applies ``rules``."""
        return PolicyEngine(
            self.session,
            extra_rules=self.extra_rules + rules,
            clock=self.clock,
        )

    # ------------------------------------------------------------------
    # Resolution
    # ------------------------------------------------------------------

    def target_company_for_new_employee(
        self, principal: Principal, resource: NewEmployeeRef
    ) -> int | None:
        """Pick the company a new employee will belong to.

        Clients always create into their own company, whatever the caller
        supplied. Accountants must name the company.
        """
        if isinstance(principal, ClientPrincipal):
            return principal.company_id
        if resource.company_id is None:
            raise ValidationError.single("company_id", "company_id is required")
        if resource.company_id < 1:
            raise ValidationError.single("company_id", "company_id must be a positive integer")
        return resource.company_id

    async def resolve(self, resource: ResourceRef) -> OwningCompany | None:
        """Resolve a reference to its owning company, or None if it doesn't exist."""
        if isinstance(resource, (CompanyRef, NewEmployeeRef)):
            if resource.company_id is None:
                return None
            query = select(Company.company_id, Company.accountant_id).where(
                Company.company_id == resource.company_id
            )
        elif isinstance(resource, EmployeeRef):
            query = (
                select(Company.company_id, Company.accountant_id)
                .join(Employee, Employee.company_id == Company.company_id)
                .where(Employee.employee_id == resource.employee_id)
            )
        elif isinstance(resource, PayrollRef):
            query = (
                select(Company.company_id, Company.accountant_id, PayrollEntry.created_at)
                .select_from(PayrollEntry)
                .join(Employee, PayrollEntry.employee_id == Employee.employee_id)
                .join(Company, Employee.company_id == Company.company_id)
                .where(PayrollEntry.payroll_id == resource.payroll_id)
            )
        else:
            raise TypeError(f"Unsupported resource reference: {resource!r}")

        row = (await self.session.execute(query)).first()
        if row is None:
            return None
        created_at = row[2] if len(row) > 2 else None
        return OwningCompany(
            company_id=row[0],
            accountant_id=row[1],
            created_at=_as_aware(created_at) if created_at is not None else None,
        )

    # ------------------------------------------------------------------
    # Decisions
    # ------------------------------------------------------------------

    async def evaluate(
        self, principal: Principal, operation: Operation, resource: ResourceRef
    ) -> tuple[Decision, OwningCompany | None]:
        """Decide, returning the resolved owner alongside the decision."""
        if not isinstance(principal, (AccountantPrincipal, ClientPrincipal)):
            return Decision.deny(INVALID_ROLE), None

        for rule in self.extra_rules:
            decision = rule(principal, operation, resource)
            if decision is not None and not decision.allowed:
                return decision, None

        if isinstance(principal, ClientPrincipal) and principal.company_id is None:
            return Decision.deny(NOT_CLIENTS_COMPANY), None

        if isinstance(resource, NewEmployeeRef):
            resource = NewEmployeeRef(self.target_company_for_new_employee(principal, resource))

        owner = await self.resolve(resource)
        if owner is None:
            return Decision.not_found(_NOT_FOUND_MESSAGES[type(resource)]), None

        decision = check_ownership(principal, owner)
        if not decision.allowed:
            return decision, owner

        if (
            isinstance(resource, PayrollRef)
            and isinstance(principal, ClientPrincipal)
            and operation in (Operation.UPDATE, Operation.DELETE)
            and not self.within_payroll_window(owner)
        ):
            return Decision.deny(PAYROLL_WINDOW_CLOSED), owner

        return decision, owner

    async def authorize(
        self, principal: Principal, operation: Operation, resource: ResourceRef
    ) -> Decision:
        decision, _ = await self.evaluate(principal, operation, resource)
        if not decision.allowed:
            logger.info(
                "Denied %s %s on %r: %s",
                type(principal).__name__,
                operation.value,
                resource,
                decision.outcome.value,
            )
        return decision

    async def require(
        self, principal: Principal, operation: Operation, resource: ResourceRef
    ) -> OwningCompany:
        """Authorize or raise; returns the owning company on success."""
        decision, owner = await self.evaluate(principal, operation, resource)
        enforce(decision)
        if owner is None:
            raise NotFound(_NOT_FOUND_MESSAGES[type(resource)])
        return owner

    def within_payroll_window(self, owner: OwningCompany) -> bool:
        if owner.created_at is None:
            return False
        return self.clock() - owner.created_at <= PAYROLL_EDIT_WINDOW
