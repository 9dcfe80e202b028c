"""
Announcements Module.

Company announcements with department / business-unit targeting and
acknowledgement tracking for policy posts.
"""

from hris_modules.announcements.models import ALL_EMPLOYEES, Announcement, AnnouncementType
from hris_modules.announcements.service import AnnouncementService

__all__ = [
    "ALL_EMPLOYEES",
    "Announcement",
    "AnnouncementType",
    "AnnouncementService",
]
