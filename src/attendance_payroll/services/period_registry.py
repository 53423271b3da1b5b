"""Payroll period registry: creation, lookup and the one-way lock."""

from __future__ import annotations

import logging
from datetime import date
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.ext.asyncio import AsyncSession

from attendance_payroll.clock import Clock, SystemClock
from attendance_payroll.database import acquire_xact_lock
from attendance_payroll.errors import (
    InvalidPeriodRangeError,
    PeriodNotFoundError,
    PeriodOverlapError,
)
from attendance_payroll.identity import Actor, AdminActor, RequestOrigin
from attendance_payroll.models import PayrollPeriod
from attendance_payroll.services.audit import AuditRecord, AuditRecorder

logger = logging.getLogger(__name__)

PERIOD_CREATE_LOCK = "payroll_period:create"


class PeriodRegistry:
    """Service for payroll period boundaries and locking.

    Invariants:
    1. No two periods overlap, locked or not (closed-interval test)
    2. ``locked`` flips false -> true exactly once, by compare-and-set
    """

    def __init__(
        self,
        session: AsyncSession,
        audit: AuditRecorder | None = None,
        clock: Clock | None = None,
    ):
        self.session = session
        self.audit = audit or AuditRecorder()
        self.clock = clock or SystemClock()

    async def create_period(
        self,
        start_date: date,
        end_date: date,
        actor: AdminActor,
        origin: RequestOrigin | None = None,
    ) -> PayrollPeriod:
        """Create a new, unlocked payroll period.

        Raises:
            InvalidPeriodRangeError: start_date is after end_date
            PeriodOverlapError: the range intersects an existing period
        """
        origin = origin or RequestOrigin()
        if start_date > end_date:
            raise InvalidPeriodRangeError(start_date, end_date)

        try:
            await acquire_xact_lock(self.session, PERIOD_CREATE_LOCK)

            existing = await self.find_overlapping(start_date, end_date)
            if existing is not None:
                raise PeriodOverlapError(start_date, end_date, existing.payroll_period_id)

            period = PayrollPeriod(
                start_date=start_date,
                end_date=end_date,
                locked=False,
                locked_at=None,
                created_by=actor.label,
                updated_by=actor.label,
                ip_address=origin.ip_address,
            )
            self.session.add(period)
            await self.session.commit()
        except Exception:
            await self.session.rollback()
            raise

        logger.info(
            "Payroll period %s created for %s..%s by %s",
            period.payroll_period_id,
            start_date,
            end_date,
            actor.label,
        )
        await self.audit.emit(
            AuditRecord(
                actor=actor,
                action="CREATE_PAYROLL_PERIOD",
                entity_type="payroll_period",
                entity_id=period.payroll_period_id,
                origin=origin,
                details={"start_date": start_date.isoformat(), "end_date": end_date.isoformat()},
            )
        )
        return period

    async def find_overlapping(self, start_date: date, end_date: date) -> PayrollPeriod | None:
        """Find any period whose range intersects [start_date, end_date]."""
        result = await self.session.execute(
            select(PayrollPeriod)
            .where(
                PayrollPeriod.start_date <= end_date,
                PayrollPeriod.end_date >= start_date,
            )
            .limit(1)
        )
        return result.scalar_one_or_none()

    async def find_active_period_covering(
        self, on_date: date, lock: bool = False
    ) -> PayrollPeriod | None:
        """Return the unlocked period whose range contains ``on_date``.

        With ``lock=True`` a shared row lock is held until the end of the
        transaction, so a concurrent payroll run cannot lock the period
        underneath a ledger write.
        """
        query = select(PayrollPeriod).where(
            PayrollPeriod.start_date <= on_date,
            PayrollPeriod.end_date >= on_date,
            PayrollPeriod.locked.is_(False),
        )
        if lock:
            query = query.with_for_update(read=True)
        result = await self.session.execute(query)
        return result.scalar_one_or_none()

    async def get_period(self, payroll_period_id: UUID) -> PayrollPeriod:
        """Load a period or raise PeriodNotFoundError."""
        period = await self.session.get(
            PayrollPeriod, payroll_period_id, populate_existing=True
        )
        if period is None:
            raise PeriodNotFoundError(payroll_period_id)
        return period

    async def list_periods(self) -> list[PayrollPeriod]:
        """List all periods, oldest first."""
        result = await self.session.execute(
            select(PayrollPeriod).order_by(PayrollPeriod.start_date)
        )
        return list(result.scalars().all())

    async def lock(
        self,
        payroll_period_id: UUID,
        actor: Actor,
        origin: RequestOrigin | None = None,
    ) -> bool:
        """Flip ``locked`` false -> true inside the caller's transaction.

        Returns True if this call performed the flip, False if the period
        was already locked (or does not exist). Does not commit.
        """
        origin = origin or RequestOrigin()
        result = await self.session.execute(
            update(PayrollPeriod)
            .where(
                PayrollPeriod.payroll_period_id == payroll_period_id,
                PayrollPeriod.locked.is_(False),
            )
            .values(
                locked=True,
                locked_at=self.clock.now(),
                updated_by=actor.label,
                ip_address=origin.ip_address,
            )
            .execution_options(synchronize_session=False)
        )
        return result.rowcount == 1
