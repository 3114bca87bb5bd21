"""Employee onboarding, maintenance, and offboarding."""

from __future__ import annotations

import logging
from datetime import date
from typing import TYPE_CHECKING, Any, Mapping

from sqlalchemy import or_, select
from sqlalchemy.exc import IntegrityError

from payroll_admin.database import atomic
from payroll_admin.errors import Conflict, FieldError, NotFound, ValidationError
from payroll_admin.models import (
    Company,
    DocumentType,
    Employee,
    EmployeeDocument,
    EmployeeOffboarding,
    LeavingReason,
)
from payroll_admin.policy import (
    EmployeeRef,
    NewEmployeeRef,
    Operation,
    OwningCompany,
    check_ownership,
    enforce,
    visible_companies,
)
from payroll_admin.security.principal import ClientPrincipal
from payroll_admin.services.base import ResourceService, apply_patch
from payroll_admin.services.employee_lifecycle import EmployeeStateMachine, InvalidTransitionError
from payroll_admin.services.pagination import Page, PageRequest, paginate, search_pattern
from payroll_admin.services.storage import UploadedDocument, validate_pdf

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from payroll_admin.policy import PolicyEngine
    from payroll_admin.security.principal import Principal
    from payroll_admin.services.audit import AuditTrail
    from payroll_admin.services.storage import LocalDocumentStorage

logger = logging.getLogger(__name__)

# Multipart field name -> document type stored with the upload
DOCUMENT_FIELDS: dict[str, DocumentType] = {
    "td1_federal": DocumentType.TD1_FEDERAL,
    "td1_provincial": DocumentType.TD1_PROVINCIAL,
}

DUPLICATE_EMAIL = "An employee with this email already exists"


class EmployeeService(ResourceService):
    """Employees of a company.

    Creation stores the two TD1 forms alongside the employee row in a
    single transaction. Deactivation only ever happens through an
    offboarding record, so ``is_active`` is false exactly when one exists.
    """

    def __init__(
        self,
        session: AsyncSession,
        policy: PolicyEngine,
        audit: AuditTrail,
        storage: LocalDocumentStorage,
        *,
        max_upload_bytes: int,
    ):
        super().__init__(session, policy, audit)
        self.storage = storage
        self.max_upload_bytes = max_upload_bytes

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def list_for_company(
        self,
        principal: Principal,
        company_id: int,
        page: PageRequest,
        search: str | None = None,
        is_active: bool | None = None,
    ) -> Page[Employee]:
        if isinstance(principal, ClientPrincipal):
            enforce(check_ownership(principal, OwningCompany(company_id, None)))

        query = (
            select(Employee)
            .join(Company, Employee.company_id == Company.company_id)
            .where(Employee.company_id == company_id, visible_companies(principal))
        )
        pattern = search_pattern(search)
        if pattern is not None:
            query = query.where(
                or_(
                    Employee.first_name.ilike(pattern, escape="\\"),
                    Employee.last_name.ilike(pattern, escape="\\"),
                    Employee.email.ilike(pattern, escape="\\"),
                )
            )
        if is_active is not None:
            query = query.where(Employee.is_active.is_(is_active))
        query = query.order_by(Employee.last_name, Employee.first_name, Employee.employee_id)
        return await paginate(self.session, query, page)

    async def get(self, principal: Principal, employee_id: int) -> Employee:
        await self.policy.require(principal, Operation.READ, EmployeeRef(employee_id))
        return await self._load(employee_id)

    async def get_offboarding(self, principal: Principal, employee_id: int) -> EmployeeOffboarding:
        await self.policy.require(principal, Operation.READ, EmployeeRef(employee_id))
        record = await self.session.scalar(
            select(EmployeeOffboarding).where(EmployeeOffboarding.employee_id == employee_id)
        )
        if record is None:
            raise NotFound("Offboarding record not found")
        return record

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def validate_documents(
        self, documents: Mapping[str, UploadedDocument | None]
    ) -> list[FieldError]:
        """Check that both TD1 forms are present, PDF, and within the size limit."""
        errors: list[FieldError] = []
        for field in DOCUMENT_FIELDS:
            document = documents.get(field)
            if document is None:
                errors.append(FieldError(field, "file is required"))
                continue
            errors.extend(validate_pdf(document, self.max_upload_bytes))
        return errors

    async def create(
        self,
        principal: Principal,
        data: dict[str, Any],
        documents: Mapping[str, UploadedDocument | None],
    ) -> Employee:
        """Create an employee with its TD1 documents.

        For clients the target company is always their own; any
        ``company_id`` in ``data`` is ignored.
        """
        fields = dict(data)
        requested_company = fields.pop("company_id", None)

        errors = self.validate_documents(documents)
        if errors:
            raise ValidationError(errors)
        uploads = {field: doc for field, doc in documents.items() if doc is not None}

        owner = await self.policy.require(
            principal, Operation.CREATE, NewEmployeeRef(requested_company)
        )
        await self._ensure_email_free(fields["email"])

        stored: list[str] = []
        try:
            async with atomic(self.session):
                employee = Employee(**fields, company_id=owner.company_id, is_active=True)
                self.session.add(employee)
                try:
                    await self.session.flush()
                except IntegrityError as e:
                    # Lost a race with a concurrent insert of the same email
                    raise Conflict(DUPLICATE_EMAIL) from e

                folder = f"employees/{employee.employee_id}"
                for field, doc_type in DOCUMENT_FIELDS.items():
                    document = uploads[field]
                    path = await self.storage.save(folder, document)
                    stored.append(path)
                    self.session.add(
                        EmployeeDocument(
                            employee_id=employee.employee_id,
                            document_type=doc_type.value,
                            file_name=document.filename,
                            upload_date=date.today(),
                            document_path=path,
                        )
                    )
                await self.session.flush()
        except Exception:
            await self._discard(stored)
            raise

        await self.session.refresh(employee)
        logger.info("Employee %s created in company %s", employee.employee_id, owner.company_id)
        await self._audit(principal, "employee.create", employee.employee_id)
        return employee

    async def update(self, principal: Principal, employee_id: int, changes: dict[str, Any]) -> Employee:
        await self.policy.require(principal, Operation.UPDATE, EmployeeRef(employee_id))
        employee = await self._load(employee_id)

        new_email = changes.get("email")
        if new_email is not None and new_email != employee.email:
            await self._ensure_email_free(new_email)

        apply_patch(employee, changes)
        try:
            async with atomic(self.session):
                await self.session.flush()
        except IntegrityError as e:
            raise Conflict(DUPLICATE_EMAIL) from e

        await self.session.refresh(employee)
        await self._audit(principal, "employee.update", employee_id)
        return employee

    async def offboard(
        self,
        principal: Principal,
        employee_id: int,
        *,
        reason_for_leaving: LeavingReason,
        last_day_worked: date,
        payout_accrued_vacation: bool,
        callback_date: date | None = None,
    ) -> EmployeeOffboarding:
        """Record the offboarding and deactivate the employee atomically."""
        await self.policy.require(principal, Operation.OFFBOARD, EmployeeRef(employee_id))
        record = await self._offboard(
            employee_id,
            reason_for_leaving=reason_for_leaving,
            last_day_worked=last_day_worked,
            payout_accrued_vacation=payout_accrued_vacation,
            callback_date=callback_date,
        )
        await self._audit(principal, "employee.offboard", employee_id)
        return record

    async def delete(self, principal: Principal, employee_id: int) -> EmployeeOffboarding:
        """Soft delete: offboard today with reason OTHER and no vacation payout."""
        await self.policy.require(principal, Operation.DELETE, EmployeeRef(employee_id))
        record = await self._offboard(
            employee_id,
            reason_for_leaving=LeavingReason.OTHER,
            last_day_worked=date.today(),
            payout_accrued_vacation=False,
        )
        await self._audit(principal, "employee.delete", employee_id)
        return record

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    async def _offboard(
        self,
        employee_id: int,
        *,
        reason_for_leaving: LeavingReason,
        last_day_worked: date,
        payout_accrued_vacation: bool,
        callback_date: date | None = None,
    ) -> EmployeeOffboarding:
        employee = await self._load(employee_id)
        async with atomic(self.session):
            existing = await self.session.scalar(
                select(EmployeeOffboarding.offboarding_id).where(
                    EmployeeOffboarding.employee_id == employee_id
                )
            )
            if existing is not None:
                raise Conflict("Employee has already been offboarded")
            try:
                EmployeeStateMachine.offboard(employee)
            except InvalidTransitionError as e:
                raise Conflict(str(e)) from e

            record = EmployeeOffboarding(
                employee_id=employee_id,
                reason_for_leaving=reason_for_leaving,
                last_day_worked=last_day_worked,
                payout_accrued_vacation=payout_accrued_vacation,
                callback_date=callback_date,
            )
            self.session.add(record)
            await self.session.flush()

        await self.session.refresh(record)
        logger.info("Employee %s offboarded (%s)", employee_id, reason_for_leaving.value)
        return record

    async def _load(self, employee_id: int) -> Employee:
        employee = await self.session.get(Employee, employee_id)
        if employee is None:
            raise NotFound("Employee not found")
        return employee

    async def _ensure_email_free(self, email: str) -> None:
        taken = await self.session.scalar(
            select(Employee.employee_id).where(Employee.email == email)
        )
        if taken is not None:
            raise Conflict(DUPLICATE_EMAIL)

    async def _discard(self, paths: list[str]) -> None:
        for path in paths:
            try:
                await self.storage.delete(path)
            except OSError:
                logger.exception("Could not remove stored document %s", path)
