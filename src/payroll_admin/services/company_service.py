"""Company management."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from sqlalchemy import func, or_, select, update
from sqlalchemy.exc import IntegrityError

from payroll_admin.database import atomic
from payroll_admin.errors import Conflict, NotFound
from payroll_admin.models import Company, Employee
from payroll_admin.policy import CompanyRef, Operation, require_accountant, visible_companies
from payroll_admin.services.base import ResourceService, apply_patch
from payroll_admin.services.pagination import Page, PageRequest, paginate, search_pattern

if TYPE_CHECKING:
    from payroll_admin.security.principal import Principal

logger = logging.getLogger(__name__)

DUPLICATE_EMAIL = "A company with this email already exists"


class CompanyService(ResourceService):
    """CRUD over companies plus accountant association."""

    async def list(
        self, principal: Principal, page: PageRequest, search: str | None = None
    ) -> Page[Company]:
        require_accountant(principal)
        query = select(Company).where(visible_companies(principal))
        pattern = search_pattern(search)
        if pattern is not None:
            query = query.where(
                or_(
                    Company.company_name.ilike(pattern, escape="\\"),
                    Company.contact_person.ilike(pattern, escape="\\"),
                    Company.email.ilike(pattern, escape="\\"),
                )
            )
        query = query.order_by(Company.company_name, Company.company_id)
        return await paginate(self.session, query, page)

    async def get(self, principal: Principal, company_id: int) -> Company:
        await self.policy.require(principal, Operation.READ, CompanyRef(company_id))
        return await self._load(company_id)

    async def create(self, principal: Principal, data: dict[str, Any]) -> Company:
        accountant = require_accountant(principal)
        await self._ensure_email_free(data["email"])
        company = Company(**data, accountant_id=accountant.accountant_id)
        try:
            async with atomic(self.session):
                self.session.add(company)
        except IntegrityError as e:
            raise Conflict(DUPLICATE_EMAIL) from e
        await self.session.refresh(company)
        logger.info("Company %s created by accountant %s", company.company_id, accountant.accountant_id)
        await self._audit(principal, "company.create", company.company_id)
        return company

    async def update(self, principal: Principal, company_id: int, changes: dict[str, Any]) -> Company:
        await self.policy.require(principal, Operation.UPDATE, CompanyRef(company_id))
        company = await self._load(company_id)
        new_email = changes.get("email")
        if new_email is not None and new_email != company.email:
            await self._ensure_email_free(new_email)
        apply_patch(company, changes)
        try:
            async with atomic(self.session):
                await self.session.flush()
        except IntegrityError as e:
            raise Conflict(DUPLICATE_EMAIL) from e
        await self.session.refresh(company)
        await self._audit(principal, "company.update", company_id)
        return company

    async def delete(self, principal: Principal, company_id: int) -> None:
        require_accountant(principal)
        await self.policy.require(principal, Operation.DELETE, CompanyRef(company_id))
        company = await self._load(company_id)
        employees = await self.session.scalar(
            select(func.count()).select_from(Employee).where(Employee.company_id == company_id)
        )
        if employees:
            raise Conflict("Cannot delete a company that still has employees")
        async with atomic(self.session):
            await self.session.delete(company)
        await self._audit(principal, "company.delete", company_id)

    async def associate(self, principal: Principal, company_id: int) -> Company:
        """Claim an unassociated company for the calling accountant.

        The conditional UPDATE makes the first claim win; a company that is
        missing or already claimed is reported the same way.
        """
        accountant = require_accountant(principal)
        async with atomic(self.session):
            result = await self.session.execute(
                update(Company)
                .where(Company.company_id == company_id, Company.accountant_id.is_(None))
                .values(accountant_id=accountant.accountant_id)
            )
            if result.rowcount == 0:
                raise NotFound("Company not found or already associated with an accountant")
        company = await self._load(company_id)
        await self.session.refresh(company)
        await self._audit(principal, "company.associate", company_id)
        return company

    async def _load(self, company_id: int) -> Company:
        company = await self.session.get(Company, company_id)
        if company is None:
            raise NotFound("Company not found")
        return company

    async def _ensure_email_free(self, email: str) -> None:
        taken = await self.session.scalar(select(Company.company_id).where(Company.email == email))
        if taken is not None:
            raise Conflict(DUPLICATE_EMAIL)
