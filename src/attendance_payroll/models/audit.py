"""Audit trail model."""

from __future__ import annotations

from typing import Any
from uuid import UUID, uuid4

from sqlalchemy import JSON, CheckConstraint, ForeignKey, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column

from attendance_payroll.models.base import Base, TimestampMixin


class AuditEvent(Base, TimestampMixin):
    """Audit trail entry.

    The actor is a tagged union: ``actor_role`` says which of the two
    foreign keys is populated, and the check constraint keeps exactly that
    one set.
    """

    __tablename__ = "audit_event"

    audit_event_id: Mapped[UUID] = mapped_column(primary_key=True, default=uuid4)
    actor_role: Mapped[str] = mapped_column(String, nullable=False)
    employee_actor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("employee.employee_id"),
        nullable=True,
    )
    admin_actor_id: Mapped[UUID | None] = mapped_column(
        ForeignKey("admin_user.admin_id"),
        nullable=True,
    )
    action: Mapped[str] = mapped_column(String, nullable=False)
    entity_type: Mapped[str] = mapped_column(String, nullable=False)
    entity_id: Mapped[UUID | None] = mapped_column(nullable=True)
    ip_address: Mapped[str | None] = mapped_column(String, nullable=True)
    request_id: Mapped[str | None] = mapped_column(String, nullable=True)
    details: Mapped[dict[str, Any] | None] = mapped_column(
        JSON().with_variant(JSONB(), "postgresql"),
        nullable=True,
    )

    __table_args__ = (
        CheckConstraint(
            "(actor_role = 'employee' AND employee_actor_id IS NOT NULL AND admin_actor_id IS NULL)"
            " OR (actor_role = 'admin' AND admin_actor_id IS NOT NULL AND employee_actor_id IS NULL)",
            name="audit_event_actor_tagged",
        ),
    )
