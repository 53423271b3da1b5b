"""Audit sinks for significant mutations.

Audit is fire-and-forget: a failing sink is logged and never fails the
operation that produced the record.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Protocol, runtime_checkable
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.identity import Actor, ActorRole, RequestOrigin
from attendance_payroll.models import AuditEvent

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AuditRecord:
    """A structured description of one mutation."""

    actor: Actor
    action: str
    entity_type: str
    entity_id: UUID | None = None
    origin: RequestOrigin = field(default_factory=RequestOrigin)
    details: dict[str, Any] | None = None
    occurred_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


@runtime_checkable
class AuditSink(Protocol):
    """Protocol for audit record consumers."""

    async def record(self, record: AuditRecord) -> None:
        """Persist or forward an audit record."""
        ...


class LoggingAuditSink:
    """Writes audit records to the application log."""

    def __init__(self, log: logging.Logger | None = None):
        self.log = log or logging.getLogger("attendance_payroll.audit")

    async def record(self, record: AuditRecord) -> None:
        self.log.info(
            "audit %s on %s %s by %s",
            record.action,
            record.entity_type,
            record.entity_id,
            record.actor.label,
        )


class DatabaseAuditSink:
    """Stores audit records as AuditEvent rows in their own transaction."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def record(self, record: AuditRecord) -> None:
        is_employee = record.actor.role == ActorRole.EMPLOYEE
        event = AuditEvent(
            actor_role=record.actor.role.value,
            employee_actor_id=record.actor.actor_id if is_employee else None,
            admin_actor_id=None if is_employee else record.actor.actor_id,
            action=record.action,
            entity_type=record.entity_type,
            entity_id=record.entity_id,
            ip_address=record.origin.ip_address,
            request_id=record.origin.request_id,
            details=record.details,
        )
        async with self.session_factory() as session:
            session.add(event)
            await session.commit()


class AuditRecorder:
    """Dispatches audit records to sinks with failure isolation."""

    def __init__(self, sinks: list[AuditSink] | None = None):
        self.sinks: list[AuditSink] = list(sinks or [])

    def add_sink(self, sink: AuditSink) -> None:
        self.sinks.append(sink)

    async def emit(self, record: AuditRecord) -> list[Exception]:
        """Send a record to every sink.

        Returns list of any exceptions raised by sinks.
        """
        errors: list[Exception] = []
        for sink in self.sinks:
            try:
                await sink.record(record)
            except Exception as e:
                logger.exception(
                    "Audit sink %s failed for action %s",
                    type(sink).__name__,
                    record.action,
                )
                errors.append(e)
        return errors
