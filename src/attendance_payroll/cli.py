"""Attendance payroll command line interface.

Provides operational tools for:
- Schema creation
- Demo data seeding
- Period creation
- Payroll runs
- Period summaries

Usage:
    attendance-payroll init-db
    attendance-payroll seed-demo --employees 10
    attendance-payroll create-period --start 2025-06-01 --end 2025-06-30
    attendance-payroll run-payroll --period-id X
    attendance-payroll summary --period-id X
"""

from __future__ import annotations

import argparse
import asyncio
import random
import sys
from datetime import date, timedelta
from decimal import Decimal
from typing import Any, Callable, Coroutine
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from attendance_payroll.calculators.calendar import is_weekend
from attendance_payroll.clock import FixedClock
from attendance_payroll.config import get_settings
from attendance_payroll.database import (
    build_engine,
    create_all,
    get_session,
    make_session_factory,
)
from attendance_payroll.errors import PayrollError
from attendance_payroll.identity import AdminActor, EmployeeActor, SYSTEM_ORIGIN
from attendance_payroll.logging_config import configure_logging
from attendance_payroll.models import Admin, Employee
from attendance_payroll.services.audit import (
    AuditRecorder,
    DatabaseAuditSink,
    LoggingAuditSink,
)
from attendance_payroll.services.ledger_service import LedgerService
from attendance_payroll.services.pay_run_service import PayRunService
from attendance_payroll.services.payslip_store import PayslipStore
from attendance_payroll.services.period_registry import PeriodRegistry

SYSTEM_ADMIN_USERNAME = "system"


def parse_date(s: str) -> date:
    """Parse an ISO date string."""
    try:
        return date.fromisoformat(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid date {s!r}. Use YYYY-MM-DD.")


def parse_uuid(s: str) -> UUID:
    """Parse UUID string."""
    try:
        return UUID(s)
    except ValueError:
        raise argparse.ArgumentTypeError(f"Invalid UUID {s!r}")


async def get_system_admin(session: AsyncSession) -> AdminActor:
    """Get or create the admin row the CLI acts as."""
    result = await session.execute(
        select(Admin).where(Admin.username == SYSTEM_ADMIN_USERNAME)
    )
    admin = result.scalar_one_or_none()
    if admin is None:
        admin = Admin(username=SYSTEM_ADMIN_USERNAME, created_by=SYSTEM_ADMIN_USERNAME)
        session.add(admin)
    await session.commit()
    return AdminActor(admin_id=admin.admin_id)


class PayrollCli:
    """Attendance payroll command line interface."""

    def __init__(self) -> None:
        self.parser = self._build_parser()

    def _build_parser(self) -> argparse.ArgumentParser:
        """Build argument parser."""
        parser = argparse.ArgumentParser(
            prog="attendance-payroll",
            description="Attendance payroll operational tools",
        )
        parser.add_argument(
            "--database-url",
            type=str,
            help="Database URL (default: DATABASE_URL from the environment)",
        )
        subparsers = parser.add_subparsers(dest="command", help="Commands")

        subparsers.add_parser("init-db", help="Create all tables")

        # seed-demo command
        seed = subparsers.add_parser(
            "seed-demo",
            help="Seed employees, a period and simulated ledger activity",
        )
        seed.add_argument(
            "--employees",
            type=int,
            default=10,
            help="Number of employees to create (default: 10)",
        )
        seed.add_argument(
            "--start",
            type=parse_date,
            default=date(2025, 6, 1),
            help="Period start date (default: 2025-06-01)",
        )
        seed.add_argument(
            "--end",
            type=parse_date,
            default=date(2025, 6, 30),
            help="Period end date (default: 2025-06-30)",
        )
        seed.add_argument(
            "--seed",
            type=int,
            default=42,
            help="Random seed for simulated activity (default: 42)",
        )

        # create-period command
        create = subparsers.add_parser("create-period", help="Create a payroll period")
        create.add_argument("--start", type=parse_date, required=True, help="Start date")
        create.add_argument("--end", type=parse_date, required=True, help="End date")

        # run-payroll command
        run = subparsers.add_parser("run-payroll", help="Run payroll and lock a period")
        run.add_argument("--period-id", type=parse_uuid, required=True, help="Period ID")

        # summary command
        summary = subparsers.add_parser("summary", help="Show per-employee totals")
        summary.add_argument("--period-id", type=parse_uuid, required=True, help="Period ID")

        return parser

    def run(self, args: list[str] | None = None) -> int:
        """Run the CLI with given arguments."""
        parsed = self.parser.parse_args(args)

        if not parsed.command:
            self.parser.print_help()
            return 1

        settings = get_settings()
        configure_logging(settings.log_level)

        # Dispatch to command handler
        handlers: dict[str, Callable[..., Coroutine[Any, Any, int]]] = {
            "init-db": self._cmd_init_db,
            "seed-demo": self._cmd_seed_demo,
            "create-period": self._cmd_create_period,
            "run-payroll": self._cmd_run_payroll,
            "summary": self._cmd_summary,
        }

        handler = handlers.get(parsed.command)
        if handler is None:
            print(f"Unknown command: {parsed.command}", file=sys.stderr)
            return 1

        return asyncio.run(
            self._dispatch(handler, parsed, parsed.database_url or settings.database_url)
        )

    async def _dispatch(
        self,
        handler: Callable[..., Coroutine[Any, Any, int]],
        args: argparse.Namespace,
        database_url: str,
    ) -> int:
        engine = build_engine(database_url)
        try:
            factory = make_session_factory(engine)
            return await handler(args, engine, factory)
        except PayrollError as e:
            print(f"Error [{e.code}]: {e.message}", file=sys.stderr)
            return 1
        finally:
            await engine.dispose()

    def _audit(self, factory: async_sessionmaker[AsyncSession]) -> AuditRecorder:
        return AuditRecorder([LoggingAuditSink(), DatabaseAuditSink(factory)])

    async def _cmd_init_db(self, args, engine, factory) -> int:
        """Create all tables."""
        await create_all(engine)
        print("Schema created.")
        return 0

    async def _cmd_create_period(self, args, engine, factory) -> int:
        """Create a payroll period."""
        async with get_session(factory) as session:
            admin = await get_system_admin(session)
            registry = PeriodRegistry(session, audit=self._audit(factory))
            period = await registry.create_period(args.start, args.end, admin, SYSTEM_ORIGIN)
        print(f"Created period {period.payroll_period_id}: {period.start_date} to {period.end_date}")
        return 0

    async def _cmd_run_payroll(self, args, engine, factory) -> int:
        """Run payroll for a period."""
        settings = get_settings()
        async with get_session(factory) as session:
            admin = await get_system_admin(session)
            service = PayRunService(
                session, rules=settings.payroll_rules(), audit=self._audit(factory)
            )
            summary = await service.run_payroll(args.period_id, admin, SYSTEM_ORIGIN)

        print(f"Payroll run for period {summary.payroll_period_id}")
        print(f"  Period:      {summary.start_date} to {summary.end_date}")
        print(f"  Employees:   {summary.processed_employees}")
        print(f"  Total pay:   {summary.total_pay:>15,.2f}")
        return 0

    async def _cmd_summary(self, args, engine, factory) -> int:
        """Show per-employee totals for a period."""
        async with get_session(factory) as session:
            summary = await PayslipStore(session).period_summary(args.period_id)

        print(f"Period {summary.period.start_date} to {summary.period.end_date}")
        print("=" * 60)
        for item in summary.items:
            print(f"  {item.display_name:<40} {item.total_pay:>15,.2f}")
        print("-" * 60)
        print(f"  {'Total take-home':<40} {summary.total_take_home:>15,.2f}")
        return 0

    async def _cmd_seed_demo(self, args, engine, factory) -> int:
        """Seed employees, one period and simulated ledger activity."""
        rng = random.Random(args.seed)
        await create_all(engine)

        async with get_session(factory) as session:
            admin = await get_system_admin(session)
            employees = [
                Employee(
                    display_name=f"Employee {i:03d}",
                    username=f"employee{i:03d}.{args.seed}",
                    monthly_base_salary=Decimal(rng.randint(3000, 10000)),
                    created_by="seeder",
                )
                for i in range(1, args.employees + 1)
            ]
            session.add_all(employees)
            await session.commit()

            period = await PeriodRegistry(session).create_period(
                args.start, args.end, admin, SYSTEM_ORIGIN
            )

            clock = FixedClock(args.start)
            ledger = LedgerService(session, clock=clock)
            day = args.start
            while day <= args.end:
                if not is_weekend(day):
                    clock.set_date(day)
                    for employee in employees:
                        actor = EmployeeActor(employee_id=employee.employee_id)
                        await ledger.submit_attendance(actor, day, SYSTEM_ORIGIN)
                        if rng.random() < 0.3:
                            hours = Decimal(rng.randint(25, 300)) / 100
                            await ledger.submit_overtime(actor, day, hours, SYSTEM_ORIGIN)
                day += timedelta(days=1)

            clock.set_date(args.end)
            span = (args.end - args.start).days
            for employee in employees:
                actor = EmployeeActor(employee_id=employee.employee_id)
                for _ in range(rng.randint(0, 2)):
                    await ledger.submit_reimbursement(
                        actor,
                        Decimal(rng.randint(1000, 50000)) / 100,
                        expense_date=args.start + timedelta(days=rng.randint(0, span)),
                        description="Simulated expense",
                        origin=SYSTEM_ORIGIN,
                    )

        print(f"Seeded {len(employees)} employees")
        print(f"Created period {period.payroll_period_id}: {period.start_date} to {period.end_date}")
        return 0


def main() -> int:
    """CLI entry point."""
    cli = PayrollCli()
    return cli.run()


if __name__ == "__main__":
    sys.exit(main())
