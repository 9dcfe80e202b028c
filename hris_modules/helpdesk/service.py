"""
Helpdesk Module Service (``hris_modules.helpdesk.service``).

Tickets are opened by any employee, assigned by HR to an agent, worked by
the agent, and resolved only when the requester confirms the proposed
resolution.  Every ticket gets an SLA deadline from its priority at open
time.
"""

from __future__ import annotations

from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import InvalidTransitionError, RequiredFieldError, UnauthorizedActorError
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_modules.employees.selectors import EmployeeDirectory
from hris_modules.helpdesk.helpers import compute_sla_deadline, is_sla_breached
from hris_modules.helpdesk.models import (
    OPEN_STATUSES,
    Ticket,
    TicketCategory,
    TicketPriority,
    TicketStatus,
)
from hris_modules.helpdesk.orm import TicketMessageModel, TicketModel
from hris_modules.helpdesk.workflows import TICKET_WORKFLOW

logger = get_logger("modules.helpdesk.service")

_LINK = "/helpdesk/tickets"


class HelpdeskService(ModuleService):
    """Ticket intake, assignment and resolution."""

    log_scopes = {"ticket_id": ("Ticket", TICKET_WORKFLOW.name)}

    def __init__(
        self,
        session: Session,
        config: HrisConfig | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._config = config or get_active_config()
        self._directory = EmployeeDirectory(session)
        self._tickets = Repository(session, TicketModel)

    def open_ticket(
        self,
        requester_id: UUID,
        description: str,
        category: TicketCategory = TicketCategory.GENERAL,
        priority: TicketPriority = TicketPriority.MEDIUM,
    ) -> Ticket:
        if not description or not description.strip():
            raise RequiredFieldError("description", "Ticket")

        with self._transaction("ticket_opened", actor_id=requester_id):
            requester = self._directory.require(requester_id)
            now = self._clock.now()
            ticket = self._tickets.save(
                TicketModel(
                    requester_id=requester.id,
                    requester_name=requester.name,
                    business_unit=requester.business_unit,
                    description=description.strip(),
                    category=category.value,
                    priority=priority.value,
                    sla_deadline=compute_sla_deadline(
                        now, self._config.sla_hours_for(priority.value),
                    ),
                    created_at=now,
                    status=TICKET_WORKFLOW.initial_state,
                    created_by_id=requester.id,
                )
            )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.CREATE, requester.id,
                details=f"Opened {category.value} ticket ({priority.value})",
                payload={"sla_deadline": ticket.sla_deadline},
            )
        return ticket.to_dto()

    def assign(self, ticket_id: UUID, assignee_id: UUID, actor_id: UUID) -> Ticket:
        """Assign (or reassign) a ticket.  HR only; the assignee is notified."""
        with self._transaction("ticket_assigned", ticket_id=ticket_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "assign_ticket")
            assignee = self._directory.require(assignee_id)
            if not assignee.is_active:
                raise UnauthorizedActorError(str(assignee_id), "work_ticket", "inactive employee")
            ticket = self._transitions.apply(
                TicketModel, ticket_id, TICKET_WORKFLOW, "assign",
                values={
                    "assigned_to_id": assignee.id,
                    "assigned_at": self._clock.now(),
                    "updated_by_id": actor_id,
                },
            )
            self._notifier.notify(
                assignee.id,
                NotificationType.TICKET_ASSIGNED_TO_YOU,
                "Ticket Assigned",
                f"{ticket.requester_name}'s {ticket.category} ticket was assigned to you.",
                link=_LINK,
                related_entity_id=ticket.id,
            )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.ASSIGN, actor_id,
                details=f"Assigned to {assignee.name}",
                payload={"assignee_id": assignee.id},
            )
        return ticket.to_dto()

    def start_work(self, ticket_id: UUID, actor_id: UUID) -> Ticket:
        with self._transaction("ticket_started", ticket_id=ticket_id, actor_id=actor_id):
            self._require_assignee(ticket_id, actor_id, "start")
            ticket = self._transitions.apply(
                TicketModel, ticket_id, TICKET_WORKFLOW, "start",
                values={"updated_by_id": actor_id},
            )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.UPDATE, actor_id, details="Work started",
            )
        return ticket.to_dto()

    def post_message(self, ticket_id: UUID, sender_id: UUID, message: str) -> Ticket:
        """
        Append to the ticket conversation.

        The requester, the assignee, and HR may post until the ticket is
        closed.  The other party is notified.
        """
        if not message or not message.strip():
            raise RequiredFieldError("message", "TicketMessage")

        with self._transaction("ticket_message_posted", ticket_id=ticket_id, actor_id=sender_id):
            ticket = self._tickets.require(ticket_id)
            sender = self._directory.require(sender_id)
            if ticket.status == TicketStatus.CLOSED.value:
                raise InvalidTransitionError("Ticket", str(ticket_id), ticket.status, "post_message")
            is_participant = sender.id in (ticket.requester_id, ticket.assigned_to_id)
            if not is_participant and not self._directory.has_role(sender.id, self._config.hr_roles):
                raise UnauthorizedActorError(str(sender_id), "post_message", "not a participant")

            ticket.messages.append(
                TicketMessageModel(
                    sender_id=sender.id,
                    sender_name=sender.name,
                    message=message.strip(),
                    sent_at=self._clock.now(),
                    created_by_id=sender.id,
                )
            )
            self._session.flush()

            if sender.id == ticket.requester_id:
                recipient, type_ = ticket.assigned_to_id, NotificationType.TICKET_ASSIGNED_TO_YOU
            else:
                recipient, type_ = ticket.requester_id, NotificationType.TICKET_UPDATE_REQUESTER
            if recipient is not None and recipient != sender.id:
                self._notifier.notify(
                    recipient, type_,
                    "New Ticket Message",
                    f"{sender.name}: {message.strip()[:120]}",
                    link=_LINK,
                    related_entity_id=ticket.id,
                )
        return ticket.to_dto()

    def propose_resolution(self, ticket_id: UUID, actor_id: UUID, note: str | None = None) -> Ticket:
        """Assignee marks the ticket fixed; the requester must confirm."""
        with self._transaction("ticket_resolution_proposed", ticket_id=ticket_id, actor_id=actor_id):
            self._require_assignee(ticket_id, actor_id, "propose_resolution")
            ticket = self._transitions.apply(
                TicketModel, ticket_id, TICKET_WORKFLOW, "propose_resolution",
                values={"updated_by_id": actor_id},
            )
            self._notifier.notify(
                ticket.requester_id,
                NotificationType.TICKET_UPDATE_REQUESTER,
                "Ticket Resolution Proposed",
                note or "Your ticket has a proposed resolution. Please confirm or reopen it.",
                link=_LINK,
                related_entity_id=ticket.id,
            )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.SUBMIT, actor_id,
                details="Resolution proposed",
                payload={"note": note} if note else None,
            )
        return ticket.to_dto()

    def confirm_resolution(self, ticket_id: UUID, actor_id: UUID) -> Ticket:
        with self._transaction("ticket_resolved", ticket_id=ticket_id, actor_id=actor_id):
            self._require_requester(ticket_id, actor_id, "confirm_resolution")
            ticket = self._transitions.apply(
                TicketModel, ticket_id, TICKET_WORKFLOW, "confirm_resolution",
                values={"resolved_at": self._clock.now(), "updated_by_id": actor_id},
            )
            if ticket.assigned_to_id is not None:
                self._notifier.notify(
                    ticket.assigned_to_id,
                    NotificationType.TICKET_ASSIGNED_TO_YOU,
                    "Ticket Resolved",
                    f"{ticket.requester_name} confirmed the resolution.",
                    link=_LINK,
                    related_entity_id=ticket.id,
                )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.APPROVE, actor_id, details="Resolution confirmed",
            )
        return ticket.to_dto()

    def reopen(self, ticket_id: UUID, actor_id: UUID, reason: str) -> Ticket:
        """Requester rejects the resolution; the ticket returns to the assignee."""
        if not reason or not reason.strip():
            raise RequiredFieldError("reason", "Ticket")

        with self._transaction("ticket_reopened", ticket_id=ticket_id, actor_id=actor_id):
            self._require_requester(ticket_id, actor_id, "reopen")
            ticket = self._transitions.apply(
                TicketModel, ticket_id, TICKET_WORKFLOW, "reopen",
                values={"resolved_at": None, "updated_by_id": actor_id},
            )
            if ticket.assigned_to_id is not None:
                self._notifier.notify(
                    ticket.assigned_to_id,
                    NotificationType.TICKET_ASSIGNED_TO_YOU,
                    "Ticket Reopened",
                    f"{ticket.requester_name} reopened the ticket: {reason.strip()}",
                    link=_LINK,
                    related_entity_id=ticket.id,
                )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.REJECT, actor_id,
                details=f"Reopened: {reason.strip()}",
            )
        return ticket.to_dto()

    def close(self, ticket_id: UUID, actor_id: UUID) -> Ticket:
        """Close a resolved ticket.  HR or the assignee."""
        with self._transaction("ticket_closed", ticket_id=ticket_id, actor_id=actor_id):
            current = self._tickets.require(ticket_id)
            if actor_id != current.assigned_to_id:
                self._directory.require_role(actor_id, self._config.hr_roles, "close_ticket")
            ticket = self._transitions.apply(
                TicketModel, ticket_id, TICKET_WORKFLOW, "close",
                values={"updated_by_id": actor_id},
            )
            self._auditor.record(
                "Ticket", ticket.id, AuditAction.UPDATE, actor_id, details="Closed",
            )
        return ticket.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_ticket(self, ticket_id: UUID) -> Ticket:
        return self._tickets.require(ticket_id).to_dto()

    def list_for_requester(self, requester_id: UUID) -> list[Ticket]:
        return [
            m.to_dto()
            for m in self._tickets.list_where(
                TicketModel.requester_id == requester_id,
                order_by=TicketModel.created_at.desc(),
            )
        ]

    def list_assigned(self, assignee_id: UUID, open_only: bool = True) -> list[Ticket]:
        criteria = [TicketModel.assigned_to_id == assignee_id]
        if open_only:
            criteria.append(TicketModel.status.in_([s.value for s in OPEN_STATUSES]))
        return [
            m.to_dto()
            for m in self._tickets.list_where(*criteria, order_by=TicketModel.sla_deadline)
        ]

    def list_unassigned(self) -> list[Ticket]:
        return [
            m.to_dto()
            for m in self._tickets.list_by_status(TicketStatus.NEW, order_by=TicketModel.sla_deadline)
        ]

    def list_overdue(self, now: datetime | None = None) -> list[Ticket]:
        """Open tickets past their SLA deadline, most overdue first."""
        now = now or self._clock.now()
        candidates = self._tickets.list_where(
            TicketModel.status.in_([s.value for s in OPEN_STATUSES]),
            TicketModel.sla_deadline < now,
            order_by=TicketModel.sla_deadline,
        )
        overdue = [m.to_dto() for m in candidates if is_sla_breached(m, now)]
        logger.info("ticket_sla_scan", extra={"overdue": len(overdue), "now": now.isoformat()})
        return overdue

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_assignee(self, ticket_id: UUID, actor_id: UUID, action: str) -> TicketModel:
        ticket = self._tickets.require(ticket_id)
        if ticket.assigned_to_id != actor_id:
            raise UnauthorizedActorError(str(actor_id), action, "not the ticket assignee")
        return ticket

    def _require_requester(self, ticket_id: UUID, actor_id: UUID, action: str) -> TicketModel:
        ticket = self._tickets.require(ticket_id)
        if ticket.requester_id != actor_id:
            raise UnauthorizedActorError(str(actor_id), action, "not the ticket requester")
        return ticket
