"""Tests for the audit trail."""

import logging

from sqlalchemy import select

from payroll_admin.models import AuditLog
from payroll_admin.security.principal import ClientPrincipal
from payroll_admin.services.audit import (
    AuditEvent,
    AuditTrail,
    DatabaseAuditSink,
    log_audit_event,
)


class Recorder:
    def __init__(self):
        self.events = []

    async def __call__(self, event):
        self.events.append(event)


async def broken_sink(event):
    raise RuntimeError("audit store offline")


class TestAuditEvent:
    def test_for_principal(self):
        event = AuditEvent.for_principal(ClientPrincipal(user_id=4, company_id=9), "employee.update", 12)
        assert event.actor_id == 4
        assert event.actor_role == "client"
        assert event.target_id == "12"


class TestAuditTrail:
    """Sinks are isolated from one another and from the caller."""

    async def test_delivers_to_every_sink(self):
        first, second = Recorder(), Recorder()
        trail = AuditTrail([first])
        trail.subscribe(second)
        event = AuditEvent(actor_id=1, actor_role="accountant", action="company.create", target_id="3")

        assert await trail.record(event) == []
        assert first.events == [event]
        assert second.events == [event]

    async def test_failing_sink_is_logged_not_raised(self, caplog):
        recorder = Recorder()
        trail = AuditTrail([broken_sink, recorder])
        event = AuditEvent(actor_id=1, actor_role="accountant", action="company.delete", target_id="3")

        with caplog.at_level(logging.ERROR, logger="payroll_admin.services.audit"):
            errors = await trail.record(event)

        assert len(errors) == 1
        assert isinstance(errors[0], RuntimeError)
        assert recorder.events == [event]
        assert "company.delete" in caplog.text

    async def test_no_sinks(self):
        event = AuditEvent(actor_id=1, actor_role="client", action="payroll.update", target_id="5")
        assert await AuditTrail().record(event) == []

    async def test_log_sink(self, caplog):
        event = AuditEvent(actor_id=2, actor_role="client", action="payroll.update", target_id="5")
        with caplog.at_level(logging.INFO, logger="payroll_admin.services.audit"):
            await log_audit_event(event)
        assert "action=payroll.update" in caplog.text


class TestDatabaseAuditSink:
    async def test_persists_event(self, database):
        sink = DatabaseAuditSink(database)
        await sink(AuditEvent(actor_id=8, actor_role="accountant", action="company.associate", target_id="21"))

        async with database.session() as session:
            row = await session.scalar(select(AuditLog))
        assert row.actor_id == 8
        assert row.action == "company.associate"
        assert row.target_id == "21"
