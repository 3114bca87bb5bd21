"""Shared plumbing for the resource services."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from payroll_admin.errors import ValidationError
from payroll_admin.services.audit import AuditEvent, AuditTrail

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from payroll_admin.policy import PolicyEngine
    from payroll_admin.security.principal import Principal


class ResourceService:
    """Base class holding the request-scoped collaborators."""

    def __init__(self, session: AsyncSession, policy: PolicyEngine, audit: AuditTrail):
        self.session = session
        self.policy = policy
        self.audit = audit

    async def _audit(self, principal: Principal, action: str, target_id: int | str) -> None:
        await self.audit.record(AuditEvent.for_principal(principal, action, target_id))


def apply_patch(record: Any, changes: dict[str, Any]) -> None:
    """Copy an allow-listed patch onto an ORM record."""
    if not changes:
        raise ValidationError.single("body", "No fields to update")
    for name, value in changes.items():
        setattr(record, name, value)
