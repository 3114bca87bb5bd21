"""Payroll entries and per-company totals."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import date
from decimal import Decimal
from typing import TYPE_CHECKING, Any

from sqlalchemy import Select, func, or_, select

from payroll_admin.database import atomic
from payroll_admin.errors import NotFound, ValidationError
from payroll_admin.models import Company, Employee, PayrollEntry
from payroll_admin.policy import (
    EmployeeRef,
    Operation,
    OwningCompany,
    PayrollRef,
    check_ownership,
    enforce,
    visible_companies,
)
from payroll_admin.security.principal import ClientPrincipal
from payroll_admin.services.base import ResourceService, apply_patch
from payroll_admin.services.pagination import Page, PageRequest, paginate, search_pattern

if TYPE_CHECKING:
    from payroll_admin.security.principal import Principal

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


@dataclass(frozen=True)
class PayrollTotals:
    """Summed payroll figures for one company over an optional date range."""

    company_id: int
    start_date: date | None
    end_date: date | None
    total_gross: Decimal
    total_net: Decimal
    total_deductions: Decimal
    entry_count: int


def _check_range(start_date: date | None, end_date: date | None) -> None:
    if start_date is not None and end_date is not None and start_date > end_date:
        raise ValidationError.single("startDate", "startDate cannot be after endDate")


class PayrollService(ResourceService):
    """Payroll entries, always reached through the owning employee's company."""

    def _company_scope(
        self,
        principal: Principal,
        company_id: int,
        start_date: date | None,
        end_date: date | None,
    ) -> Select:
        """Base query over one company's entries that the principal can see."""
        _check_range(start_date, end_date)
        if isinstance(principal, ClientPrincipal):
            enforce(check_ownership(principal, OwningCompany(company_id, None)))

        query = (
            select(PayrollEntry)
            .join(Employee, PayrollEntry.employee_id == Employee.employee_id)
            .join(Company, Employee.company_id == Company.company_id)
            .where(Employee.company_id == company_id, visible_companies(principal))
        )
        if start_date is not None:
            query = query.where(PayrollEntry.pay_period_start >= start_date)
        if end_date is not None:
            query = query.where(PayrollEntry.pay_period_end <= end_date)
        return query

    async def list_for_company(
        self,
        principal: Principal,
        company_id: int,
        page: PageRequest,
        start_date: date | None = None,
        end_date: date | None = None,
        search: str | None = None,
    ) -> Page[PayrollEntry]:
        query = self._company_scope(principal, company_id, start_date, end_date)
        pattern = search_pattern(search)
        if pattern is not None:
            query = query.where(
                or_(
                    Employee.first_name.ilike(pattern, escape="\\"),
                    Employee.last_name.ilike(pattern, escape="\\"),
                    Employee.email.ilike(pattern, escape="\\"),
                )
            )
        query = query.order_by(PayrollEntry.pay_period_start.desc(), PayrollEntry.payroll_id.desc())
        return await paginate(self.session, query, page)

    async def totals(
        self,
        principal: Principal,
        company_id: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> PayrollTotals:
        scoped = self._company_scope(principal, company_id, start_date, end_date).subquery()
        row = (
            await self.session.execute(
                select(
                    func.coalesce(func.sum(scoped.c.gross_pay), 0),
                    func.coalesce(func.sum(scoped.c.net_pay), 0),
                    func.coalesce(func.sum(scoped.c.deductions), 0),
                    func.count(scoped.c.payroll_id),
                )
            )
        ).one()
        return PayrollTotals(
            company_id=company_id,
            start_date=start_date,
            end_date=end_date,
            total_gross=Decimal(str(row[0])).quantize(ZERO),
            total_net=Decimal(str(row[1])).quantize(ZERO),
            total_deductions=Decimal(str(row[2])).quantize(ZERO),
            entry_count=row[3],
        )

    async def get(self, principal: Principal, payroll_id: int) -> PayrollEntry:
        await self.policy.require(principal, Operation.READ, PayrollRef(payroll_id))
        return await self._load(payroll_id)

    async def create(self, principal: Principal, data: dict[str, Any]) -> PayrollEntry:
        owner = await self.policy.require(
            principal, Operation.CREATE, EmployeeRef(data["employee_id"])
        )
        entry = PayrollEntry(**data)
        async with atomic(self.session):
            self.session.add(entry)
        await self.session.refresh(entry)
        logger.info(
            "Payroll entry %s created for employee %s (company %s)",
            entry.payroll_id,
            entry.employee_id,
            owner.company_id,
        )
        await self._audit(principal, "payroll.create", entry.payroll_id)
        return entry

    async def update(self, principal: Principal, payroll_id: int, changes: dict[str, Any]) -> PayrollEntry:
        await self.policy.require(principal, Operation.UPDATE, PayrollRef(payroll_id))
        entry = await self._load(payroll_id)
        apply_patch(entry, changes)
        async with atomic(self.session):
            await self.session.flush()
        await self.session.refresh(entry)
        await self._audit(principal, "payroll.update", payroll_id)
        return entry

    async def delete(self, principal: Principal, payroll_id: int) -> None:
        await self.policy.require(principal, Operation.DELETE, PayrollRef(payroll_id))
        entry = await self._load(payroll_id)
        async with atomic(self.session):
            await self.session.delete(entry)
        await self._audit(principal, "payroll.delete", payroll_id)

    async def _load(self, payroll_id: int) -> PayrollEntry:
        entry = await self.session.get(PayrollEntry, payroll_id)
        if entry is None:
            raise NotFound("Payroll entry not found")
        return entry
