"""CLI entry: argument parsing and command dispatch."""

import argparse
import logging
import sys
from datetime import date

from hris_config import get_active_config
from hris_kernel.db.engine import create_tables, get_session, init_engine_from_url
from hris_kernel.domain.clock import SystemClock
from hris_kernel.exceptions import HrisError
from hris_kernel.logging_config import configure_logging, get_logger

logger = get_logger("cli")


def _parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="hris", description="HRIS workflow administration")
    p.add_argument("--config", default=None, help="Configuration YAML (default: bundled defaults.yaml)")
    p.add_argument("--db-url", default=None, help="Database URL (default: database_url from config)")
    p.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    sub = p.add_subparsers(dest="command", required=True)

    sub.add_parser("init-db", help="Create all tables")

    bday = sub.add_parser("celebrate-birthdays", help="Send today's birthday notifications")
    bday.add_argument("--date", type=date.fromisoformat, default=None, help="YYYY-MM-DD (default: today)")

    sub.add_parser("sla-report", help="List open tickets past their SLA deadline")
    return p.parse_args(argv)


def cmd_init_db(args, config) -> int:
    create_tables()
    print("  Schema created.")
    return 0


def cmd_celebrate_birthdays(args, config) -> int:
    from hris_modules.employees.service import EmployeeService

    session = get_session()
    try:
        celebrated = EmployeeService(session, config).celebrate_birthdays(args.date)
    finally:
        session.close()
    print(f"  Birthday notifications: {len(celebrated)}")
    return 0


def cmd_sla_report(args, config) -> int:
    from hris_modules.helpdesk.helpers import sla_label
    from hris_modules.helpdesk.service import HelpdeskService

    clock = SystemClock()
    now = clock.now()
    session = get_session()
    try:
        overdue = HelpdeskService(session, config, clock).list_overdue(now)
    finally:
        session.close()

    if not overdue:
        print("  No tickets past their SLA deadline.")
        return 0

    W = 96
    print("=" * W)
    print(f"  {'Requester':<28} {'Category':<10} {'Priority':<9} {'Status':<20} SLA")
    print("-" * W)
    for ticket in overdue:
        print(
            f"  {ticket.requester_name[:28]:<28} {ticket.category.value:<10} "
            f"{ticket.priority.value:<9} {ticket.status.value:<20} {sla_label(ticket, now)}"
        )
    print("=" * W)
    print(f"  {len(overdue)} overdue")
    return 0


COMMANDS = {
    "init-db": cmd_init_db,
    "celebrate-birthdays": cmd_celebrate_birthdays,
    "sla-report": cmd_sla_report,
}


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(argv)
    configure_logging(level=logging.DEBUG if args.verbose else logging.WARNING)

    try:
        config = get_active_config(args.config)
        init_engine_from_url(args.db_url or config.database_url)
        return COMMANDS[args.command](args, config)
    except HrisError as exc:
        logger.error("cli_command_failed", extra={"command": args.command, "code": exc.code})
        print(f"  ERROR [{exc.code}]: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
