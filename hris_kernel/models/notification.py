"""
Module: hris_kernel.models.notification
Responsibility: Per-user inbox rows created as side effects of workflow
    transitions and scheduled jobs.
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Only ``is_read`` changes after creation (db/immutability.py).
    - ``dedup_key`` is unique when present; NotificationService returns the
      existing row instead of inserting a duplicate.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID

from sqlalchemy import Boolean, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hris_kernel.db.base import Base, UTCDateTime, UUIDString


class NotificationType(str, Enum):
    """Notification categories shown in the user's inbox."""

    BENEFIT_UPDATE = "benefit_update"
    BENEFIT_APPROVAL_REQUEST = "benefit_approval_request"
    BENEFIT_FULFILLMENT = "benefit_fulfillment"
    PAN_UPDATE = "pan_update"
    PAN_APPROVAL_REQUEST = "pan_approval_request"
    REQUISITION_UPDATE = "requisition_update"
    REQUISITION_APPROVAL_REQUEST = "requisition_approval_request"
    ASSET_ASSIGNED = "asset_assigned"
    ASSET_REQUEST_UPDATE = "asset_request_update"
    COE_UPDATE = "coe_update"
    PROFILE_CHANGE_UPDATE = "profile_change_update"
    TICKET_ASSIGNED_TO_YOU = "ticket_assigned_to_you"
    TICKET_UPDATE_REQUESTER = "ticket_update_requester"
    ANNOUNCEMENT = "announcement"
    BIRTHDAY = "birthday"


@dataclass(frozen=True)
class NotificationRecord:
    """Read-only view of a notification."""
    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    message: str
    link: str | None
    is_read: bool
    created_at: datetime
    related_entity_id: UUID | None


class Notification(Base):
    """A single inbox entry for one user."""

    __tablename__ = "notifications"

    __table_args__ = (
        Index("idx_notification_user_read", "user_id", "is_read"),
        Index("idx_notification_related", "related_entity_id"),
    )

    user_id: Mapped[UUID] = mapped_column(UUIDString(), nullable=False)

    type: Mapped[NotificationType] = mapped_column(String(50), nullable=False)

    title: Mapped[str] = mapped_column(String(255), nullable=False)

    message: Mapped[str] = mapped_column(Text, nullable=False)

    # In-app route, e.g. "/benefits/<id>"
    link: Mapped[str | None] = mapped_column(String(512), nullable=True)

    is_read: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)

    created_at: Mapped[datetime] = mapped_column(UTCDateTime(), nullable=False)

    related_entity_id: Mapped[UUID | None] = mapped_column(UUIDString(), nullable=True)

    dedup_key: Mapped[str | None] = mapped_column(String(255), nullable=True, unique=True)

    def to_dto(self) -> NotificationRecord:
        return NotificationRecord(
            id=self.id,
            user_id=self.user_id,
            type=NotificationType(self.type),
            title=self.title,
            message=self.message,
            link=self.link,
            is_read=self.is_read,
            created_at=self.created_at,
            related_entity_id=self.related_entity_id,
        )

    def __repr__(self) -> str:
        return f"<Notification {self.type} -> {self.user_id}>"
