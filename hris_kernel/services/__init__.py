"""Kernel services: audit chain, notifications, sequences, transitions, repositories."""

from hris_kernel.services.auditor_service import AuditorService, AuditTrace, AuditTraceEntry
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.notification_service import NotificationService
from hris_kernel.services.repository import Repository, entity_name
from hris_kernel.services.sequence_service import SequenceService
from hris_kernel.services.transition_service import StatusTransitioner

__all__ = [
    "AuditorService",
    "AuditTrace",
    "AuditTraceEntry",
    "ModuleService",
    "NotificationService",
    "Repository",
    "SequenceService",
    "StatusTransitioner",
    "entity_name",
]
