"""
Announcement ORM Models (``hris_modules.announcements.orm``).

Tables: ``announcements``, ``announcement_acknowledgements``.

Acknowledgements are rows rather than an id array on the announcement, so
two employees acknowledging at once cannot overwrite each other.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hris_kernel.db.base import TrackedBase


class AnnouncementModel(TrackedBase):
    """
    ORM model for ``Announcement``.

    Table: ``announcements``
    """

    __tablename__ = "announcements"
    __entity_name__ = "Announcement"

    title: Mapped[str] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text)
    announcement_type: Mapped[str] = mapped_column(String(20))
    target_group: Mapped[str] = mapped_column(String(255), default="All")
    business_unit: Mapped[str | None] = mapped_column(String(255), nullable=True)
    attachment_path: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    acknowledgements: Mapped[list["AnnouncementAcknowledgementModel"]] = relationship(
        back_populates="announcement",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_announcements_created", "created_at"),
    )

    def to_dto(self):
        from hris_modules.announcements.models import Announcement, AnnouncementType
        return Announcement(
            id=self.id,
            title=self.title,
            message=self.message,
            announcement_type=AnnouncementType(self.announcement_type),
            target_group=self.target_group,
            created_by_id=self.created_by_id,
            created_at=self.created_at,
            business_unit=self.business_unit,
            attachment_path=self.attachment_path,
            acknowledged_by=tuple(a.user_id for a in self.acknowledgements),
        )


class AnnouncementAcknowledgementModel(TrackedBase):
    """
    One employee's acknowledgement of one announcement.

    Table: ``announcement_acknowledgements``
    """

    __tablename__ = "announcement_acknowledgements"

    announcement_id: Mapped[UUID] = mapped_column(ForeignKey("announcements.id"))
    user_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    acknowledged_at: Mapped[datetime]

    announcement: Mapped["AnnouncementModel"] = relationship(back_populates="acknowledgements")

    __table_args__ = (
        UniqueConstraint("announcement_id", "user_id", name="uq_announcement_ack"),
    )
