"""
Helpdesk ORM Models (``hris_modules.helpdesk.orm``).

Tables: ``tickets``, ``ticket_messages``.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hris_kernel.db.base import TrackedBase, VersionedMixin


class TicketModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``Ticket``.

    Table: ``tickets``
    """

    __tablename__ = "tickets"
    __entity_name__ = "Ticket"
    __write_once__ = ("sla_deadline",)

    requester_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    requester_name: Mapped[str] = mapped_column(String(255))
    business_unit: Mapped[str] = mapped_column(String(255), default="")
    description: Mapped[str] = mapped_column(Text)
    category: Mapped[str] = mapped_column(String(20))
    priority: Mapped[str] = mapped_column(String(20))
    sla_deadline: Mapped[datetime]
    assigned_to_id: Mapped[UUID | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    assigned_at: Mapped[datetime | None]
    resolved_at: Mapped[datetime | None]

    messages: Mapped[list["TicketMessageModel"]] = relationship(
        back_populates="ticket",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="TicketMessageModel.sent_at",
    )

    __table_args__ = (
        Index("idx_tickets_assignee", "assigned_to_id"),
        Index("idx_tickets_deadline", "sla_deadline"),
    )

    def to_dto(self):
        from hris_modules.helpdesk.models import (
            Ticket,
            TicketCategory,
            TicketMessage,
            TicketPriority,
            TicketStatus,
        )
        return Ticket(
            id=self.id,
            requester_id=self.requester_id,
            requester_name=self.requester_name,
            description=self.description,
            category=TicketCategory(self.category),
            priority=TicketPriority(self.priority),
            status=TicketStatus(self.status),
            created_at=self.created_at,
            sla_deadline=self.sla_deadline,
            business_unit=self.business_unit,
            assigned_to_id=self.assigned_to_id,
            assigned_at=self.assigned_at,
            resolved_at=self.resolved_at,
            messages=tuple(
                TicketMessage(
                    id=m.id,
                    sender_id=m.sender_id,
                    sender_name=m.sender_name,
                    message=m.message,
                    sent_at=m.sent_at,
                )
                for m in self.messages
            ),
            version=self.version,
        )


class TicketMessageModel(TrackedBase):
    """
    One message in a ticket's conversation.  Messages are appended, never edited.

    Table: ``ticket_messages``
    """

    __tablename__ = "ticket_messages"

    ticket_id: Mapped[UUID] = mapped_column(ForeignKey("tickets.id"))
    sender_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    sender_name: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    sent_at: Mapped[datetime]

    ticket: Mapped["TicketModel"] = relationship(back_populates="messages")
