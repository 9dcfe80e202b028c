"""
Helpdesk Domain Models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID


class TicketCategory(Enum):
    IT = "it"
    HR = "hr"
    FINANCE = "finance"
    GENERAL = "general"


class TicketPriority(Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class TicketStatus(Enum):
    NEW = "new"
    ASSIGNED = "assigned"
    IN_PROGRESS = "in_progress"
    PENDING_RESOLUTION = "pending_resolution"  # agent proposed a fix
    RESOLVED = "resolved"  # requester confirmed
    CLOSED = "closed"


OPEN_STATUSES = (
    TicketStatus.NEW,
    TicketStatus.ASSIGNED,
    TicketStatus.IN_PROGRESS,
    TicketStatus.PENDING_RESOLUTION,
)


@dataclass(frozen=True)
class TicketMessage:
    id: UUID
    sender_id: UUID
    sender_name: str
    message: str
    sent_at: datetime


@dataclass(frozen=True)
class Ticket:
    """A helpdesk ticket and its conversation thread."""
    id: UUID
    requester_id: UUID
    requester_name: str
    description: str
    category: TicketCategory
    priority: TicketPriority
    status: TicketStatus
    created_at: datetime
    sla_deadline: datetime
    business_unit: str = ""
    assigned_to_id: UUID | None = None
    assigned_at: datetime | None = None
    resolved_at: datetime | None = None
    messages: tuple[TicketMessage, ...] = field(default_factory=tuple)
    version: int = 1

    @property
    def is_open(self) -> bool:
        return self.status in OPEN_STATUSES
