"""
SLA arithmetic for helpdesk tickets.  Pure functions; ``ticket`` may be an
ORM row or a ``Ticket`` DTO.
"""

from datetime import datetime, timedelta
from typing import Any

from hris_modules.helpdesk.models import OPEN_STATUSES, TicketStatus


def compute_sla_deadline(created_at: datetime, hours: int) -> datetime:
    return created_at + timedelta(hours=hours)


def _status(ticket: Any) -> TicketStatus:
    return TicketStatus(getattr(ticket.status, "value", ticket.status))


def is_sla_breached(ticket: Any, now: datetime) -> bool:
    """An open ticket past its deadline.  Resolved and closed tickets never breach."""
    if _status(ticket) not in OPEN_STATUSES or ticket.sla_deadline is None:
        return False
    return now > ticket.sla_deadline


def _hours_minutes(delta: timedelta) -> tuple[int, int, int]:
    total_minutes = int(delta.total_seconds() // 60)
    days, rem = divmod(total_minutes, 24 * 60)
    hours, minutes = divmod(rem, 60)
    return days, hours, minutes


def sla_label(ticket: Any, now: datetime) -> str:
    """
    Human-readable SLA state for ticket lists.

    >>> # "Due in 1d 3h 20m", "Overdue by 5h", "Resolved in 26h 4m", "Closed"
    """
    status = _status(ticket)
    if status is TicketStatus.CLOSED:
        return "Closed"
    if status is TicketStatus.RESOLVED and ticket.resolved_at and ticket.assigned_at:
        days, hours, minutes = _hours_minutes(ticket.resolved_at - ticket.assigned_at)
        return f"Resolved in {days * 24 + hours}h {minutes}m"
    if ticket.sla_deadline is None:
        return "N/A"
    if now > ticket.sla_deadline:
        days, hours, _ = _hours_minutes(now - ticket.sla_deadline)
        prefix = f"{days}d " if days else ""
        return f"Overdue by {prefix}{hours}h"
    days, hours, minutes = _hours_minutes(ticket.sla_deadline - now)
    prefix = f"{days}d " if days else ""
    return f"Due in {prefix}{hours}h {minutes}m"
