"""
Announcement Domain Models.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from uuid import UUID

ALL_EMPLOYEES = "All"


class AnnouncementType(Enum):
    GENERAL = "general"
    POLICY = "policy"  # requires acknowledgement


@dataclass(frozen=True)
class Announcement:
    """A company announcement and who has acknowledged it."""
    id: UUID
    title: str
    message: str
    announcement_type: AnnouncementType
    target_group: str
    created_by_id: UUID
    created_at: datetime
    business_unit: str | None = None
    attachment_path: str | None = None
    acknowledged_by: tuple[UUID, ...] = field(default_factory=tuple)

    @property
    def requires_acknowledgement(self) -> bool:
        return self.announcement_type is AnnouncementType.POLICY
