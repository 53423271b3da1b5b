"""Payroll period lifecycle state machine."""

from __future__ import annotations

from enum import Enum


class PeriodStatus(str, Enum):
    """Payroll period status values."""

    OPEN = "open"
    LOCKED = "locked"


class InvalidTransitionError(Exception):
    """Raised when an invalid state transition is attempted."""

    def __init__(self, from_status: str, to_status: str, reason: str | None = None):
        self.from_status = from_status
        self.to_status = to_status
        self.reason = reason
        msg = f"Invalid transition from '{from_status}' to '{to_status}'"
        if reason:
            msg += f": {reason}"
        super().__init__(msg)


class PeriodStateMachine:
    """State machine for payroll period status transitions.

    Allowed transitions:
    - open → locked (payroll run)

    Locked is terminal: a locked period is never reopened or re-run.
    """

    VALID_TRANSITIONS: dict[str, list[str]] = {
        PeriodStatus.OPEN: [PeriodStatus.LOCKED],
        PeriodStatus.LOCKED: [],  # Terminal state
    }

    # Statuses where ledger entries can be written
    INPUTS_MUTABLE = {PeriodStatus.OPEN}

    @classmethod
    def can_transition(cls, from_status: str, to_status: str) -> bool:
        """Check if a transition is valid."""
        allowed = cls.VALID_TRANSITIONS.get(from_status, [])
        return to_status in allowed

    @classmethod
    def validate_transition(cls, from_status: str, to_status: str) -> None:
        """Validate a transition, raising InvalidTransitionError if invalid."""
        if not cls.can_transition(from_status, to_status):
            raise InvalidTransitionError(from_status, to_status)

    @classmethod
    def can_modify_inputs(cls, status: str) -> bool:
        """Check if ledger entries can be written against this status."""
        return status in cls.INPUTS_MUTABLE
