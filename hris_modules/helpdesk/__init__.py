"""
Helpdesk Module.

Employee tickets with HR assignment, SLA deadlines by priority and
requester-confirmed resolution.
"""

from hris_modules.helpdesk.helpers import compute_sla_deadline, is_sla_breached, sla_label
from hris_modules.helpdesk.models import (
    Ticket,
    TicketCategory,
    TicketMessage,
    TicketPriority,
    TicketStatus,
)
from hris_modules.helpdesk.service import HelpdeskService
from hris_modules.helpdesk.workflows import TICKET_WORKFLOW

__all__ = [
    "HelpdeskService",
    "Ticket",
    "TicketCategory",
    "TicketMessage",
    "TicketPriority",
    "TicketStatus",
    "TICKET_WORKFLOW",
    "compute_sla_deadline",
    "is_sla_breached",
    "sla_label",
]
