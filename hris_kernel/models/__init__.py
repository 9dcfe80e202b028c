"""Kernel ORM models: audit chain, notifications, sequence counters."""

from hris_kernel.models.audit_event import AuditAction, AuditEvent
from hris_kernel.models.notification import Notification, NotificationRecord, NotificationType
from hris_kernel.models.sequence import SequenceCounter

__all__ = [
    "AuditAction",
    "AuditEvent",
    "Notification",
    "NotificationRecord",
    "NotificationType",
    "SequenceCounter",
]
