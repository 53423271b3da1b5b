"""Authenticated actors and request origin.

Identity verification happens upstream; this module only models its output.
An actor is either an employee or an admin, each resolved against its own
lookup table.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Union
from uuid import UUID


class ActorRole(str, Enum):
    """Roles an authenticated actor can hold."""

    EMPLOYEE = "employee"
    ADMIN = "admin"


@dataclass(frozen=True)
class EmployeeActor:
    """An employee acting on their own ledger and payslips."""

    employee_id: UUID

    @property
    def role(self) -> ActorRole:
        return ActorRole.EMPLOYEE

    @property
    def actor_id(self) -> UUID:
        return self.employee_id

    @property
    def label(self) -> str:
        return f"{self.role.value}:{self.employee_id}"


@dataclass(frozen=True)
class AdminActor:
    """An administrator managing periods and payroll runs."""

    admin_id: UUID

    @property
    def role(self) -> ActorRole:
        return ActorRole.ADMIN

    @property
    def actor_id(self) -> UUID:
        return self.admin_id

    @property
    def label(self) -> str:
        return f"{self.role.value}:{self.admin_id}"


Actor = Union[EmployeeActor, AdminActor]


@dataclass(frozen=True)
class RequestOrigin:
    """Where a mutation came from, stamped on rows for traceability."""

    ip_address: str | None = None
    request_id: str | None = None


SYSTEM_ORIGIN = RequestOrigin(ip_address=None, request_id="system")
