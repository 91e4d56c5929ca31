#!/usr/bin/env python3
"""
Payroll administration commands.

Runs the administrative operations of the payroll core against the database
configured in the active configuration set (or --db-url).

Usage:
  python3 scripts/payroll_admin.py init-db
  python3 scripts/payroll_admin.py reset-db --yes
  python3 scripts/payroll_admin.py generate 2025-03
  python3 scripts/payroll_admin.py recalculate 2025-03
  python3 scripts/payroll_admin.py mark-paid SALARY_ID REFERENCE [--paid-date 2025-04-01]
  python3 scripts/payroll_admin.py set-rate 280
  python3 scripts/payroll_admin.py show-salary SALARY_ID

Exit codes:
  0  success (batch commands may still report per-employee errors)
  1  configuration-level or store error
"""

import argparse
import sys
from datetime import date
from pathlib import Path
from uuid import UUID

ROOT = Path(__file__).resolve().parent.parent
sys.path.insert(0, str(ROOT))

from payroll_config import get_active_config
from payroll_kernel.db.engine import (
    create_tables,
    drop_tables,
    get_session,
    init_engine_from_url,
)
from payroll_kernel.db.immutability import register_immutability_listeners
from payroll_kernel.domain.salary import LineItemCategory
from payroll_kernel.exceptions import PayrollKernelError
from payroll_kernel.logging_config import LogContext, configure_logging
from payroll_kernel.services.settings_service import SYSTEM_ACTOR_ID
from payroll_services import PayrollService


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="Payroll administration")
    p.add_argument("--config-id", default="default", help="Configuration set id (default: 'default')")
    p.add_argument("--db-url", default=None, help="Database URL (default: from configuration)")
    p.add_argument(
        "--actor-id",
        type=UUID,
        default=SYSTEM_ACTOR_ID,
        help="Administrator performing the action",
    )

    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create tables and seed organization settings")

    reset = sub.add_parser("reset-db", help="Drop and recreate all payroll tables")
    reset.add_argument("--yes", action="store_true", help="Confirm dropping every table")

    gen = sub.add_parser("generate", help="Generate salaries for a month")
    gen.add_argument("month", help="YYYY-MM")

    recalc = sub.add_parser("recalculate", help="Recalculate unpaid salaries for a month")
    recalc.add_argument("month", help="YYYY-MM")

    paid = sub.add_parser("mark-paid", help="Mark a salary as paid")
    paid.add_argument("salary_id", type=UUID)
    paid.add_argument("reference")
    paid.add_argument("--paid-date", type=date.fromisoformat, default=None)

    rate = sub.add_parser("set-rate", help="Set the USD to PKR rate")
    rate.add_argument("rate")

    show = sub.add_parser("show-salary", help="Print a salary breakdown")
    show.add_argument("salary_id", type=UUID)

    return p.parse_args(argv)


def _print_errors(errors) -> None:
    for err in errors:
        print(f"  ERROR {err.employee_id}: [{err.error_code}] {err.error_message}")


def _run(service: PayrollService, args: argparse.Namespace) -> int:
    if args.command in ("init-db", "reset-db"):
        settings = service.get_settings()
        print(f"  Tables ready. Rate: 1 USD = {settings.usd_to_pkr_rate} PKR")
        return 0

    if args.command == "generate":
        result = service.generate(args.month, args.actor_id)
        print(
            f"  {result.month}: created={result.created_count} "
            f"skipped={result.skipped_count} errors={result.error_count}"
        )
        _print_errors(result.errors)
        return 0

    if args.command == "recalculate":
        result = service.recalculate(args.month, args.actor_id)
        print(
            f"  {result.month}: updated={result.updated_count} "
            f"locked_skipped={result.locked_skipped_count} errors={result.error_count}"
        )
        _print_errors(result.errors)
        return 0

    if args.command == "mark-paid":
        salary = service.mark_paid(args.salary_id, args.paid_date, args.reference, args.actor_id)
        print(f"  Salary {salary.id} paid on {salary.paid_date} ({salary.payment_reference})")
        return 0

    if args.command == "set-rate":
        settings = service.update_settings(args.actor_id, usd_to_pkr_rate=args.rate)
        print(f"  Rate: 1 USD = {settings.usd_to_pkr_rate} PKR")
        return 0

    if args.command == "show-salary":
        breakdown = service.get_salary_breakdown(args.salary_id)
        salary = breakdown.salary
        fmt = service.converter.format_dual
        print(f"  {salary.employee_name or salary.employee_id} {salary.month} [{salary.status.value}]")
        print(f"  Base salary:    {fmt(salary.base_salary)}")
        for category in LineItemCategory:
            for item in salary.collection(category):
                print(f"    {category.value:<22} {item.project_name or item.project_id}: {fmt(item.amount)}")
        print(f"  Total:          {fmt(salary.total_amount)}")
        return 0

    raise AssertionError(f"unhandled command {args.command!r}")


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)

    try:
        config = get_active_config(args.config_id)
    except (FileNotFoundError, ValueError) as exc:
        print(f"  ERROR: {exc}", file=sys.stderr)
        return 1

    configure_logging(level=config.logging.level)
    init_engine_from_url(
        args.db_url or config.database.url,
        echo=config.database.echo,
        pool_size=config.database.pool_size,
        max_overflow=config.database.max_overflow,
    )
    if args.command == "reset-db":
        if not args.yes:
            print("  ERROR: reset-db drops every payroll table; pass --yes", file=sys.stderr)
            return 1
        drop_tables()
        print("  Dropped all payroll tables")
    if args.command in ("init-db", "reset-db"):
        create_tables()
    register_immutability_listeners()

    session = get_session()
    try:
        with LogContext.bind(actor_id=str(args.actor_id)):
            service = PayrollService(session, config=config)
            return _run(service, args)
    except PayrollKernelError as exc:
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 1
    finally:
        session.close()


if __name__ == "__main__":
    sys.exit(main())
