"""Audit trail for successful mutations.

Audit events are a side effect of a business operation: handlers are
isolated from each other and from the caller, so a failing sink is logged
and reported back but never fails the operation that produced the event.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Protocol, runtime_checkable

from payroll_admin.models import AuditLog

if TYPE_CHECKING:
    from payroll_admin.database import Database
    from payroll_admin.security.principal import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditEvent:
    """Who did what to which record."""

    actor_id: int
    actor_role: str
    action: str
    target_id: str
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def for_principal(cls, principal: Principal, action: str, target_id: int | str) -> AuditEvent:
        return cls(
            actor_id=principal.user_id,
            actor_role=principal.role.value,
            action=action,
            target_id=str(target_id),
        )


@runtime_checkable
class AuditHandler(Protocol):
    """Protocol for asynchronous audit sinks."""

    async def __call__(self, event: AuditEvent) -> None:
        """Handle an audit event."""
        ...


class AuditTrail:
    """Fan audit events out to registered sinks.

    Usage:
        trail = AuditTrail([log_audit_event, DatabaseAuditSink(database)])
        errors = await trail.record(AuditEvent.for_principal(p, "create_company", 12))
    """

    def __init__(self, handlers: list[AuditHandler] | None = None) -> None:
        self._handlers: list[AuditHandler] = list(handlers or [])

    def subscribe(self, handler: AuditHandler) -> None:
        self._handlers.append(handler)

    async def record(self, event: AuditEvent) -> list[Exception]:
        """Deliver an event to every sink.

        Returns the exceptions raised by failing sinks; each one has already
        been logged.
        """
        if not self._handlers:
            return []
        results = await asyncio.gather(
            *(self._call_handler(handler, event) for handler in self._handlers),
            return_exceptions=True,
        )
        return [r for r in results if isinstance(r, Exception)]

    async def _call_handler(self, handler: AuditHandler, event: AuditEvent) -> None:
        try:
            await handler(event)
        except Exception:
            logger.exception("Audit handler %s failed for %s", handler, event.action)
            raise


async def log_audit_event(event: AuditEvent) -> None:
    """Write the event to the application log."""
    logger.info(
        "audit actor=%s role=%s action=%s target=%s",
        event.actor_id,
        event.actor_role,
        event.action,
        event.target_id,
    )


class DatabaseAuditSink:
    """Persist audit events to ``audit_logs`` on their own connection."""

    def __init__(self, database: Database) -> None:
        self.database = database

    async def __call__(self, event: AuditEvent) -> None:
        async with self.database.session() as session:
            session.add(
                AuditLog(
                    actor_id=event.actor_id,
                    actor_role=event.actor_role,
                    action=event.action,
                    target_id=event.target_id,
                    created_at=event.occurred_at,
                )
            )
            await session.commit()
