"""
ORM-level immutability enforcement.

===============================================================================
PROTECTED ENTITIES
===============================================================================

Entity            | Rule
------------------|----------------------------------------------------------
AuditEvent        | ALWAYS immutable, never deleted
Notification      | Only ``is_read`` may change; never deleted
Any Base model    | Columns listed in ``__write_once__`` may go from NULL to
                  | a value once (approval bookkeeping, submission dates)

SQLAlchemy fires ``before_update`` / ``before_delete`` during flush, before
SQL reaches the database.  A failing check raises ImmutabilityViolationError
and the surrounding service transaction rolls back.

Conditional UPDATE statements issued by StatusTransitioner bypass the ORM
unit of work.  For every ``__write_once__`` column they write, the same
statement adds ``<column> IS NULL`` to its WHERE clause, and a row whose
column is already set raises ImmutabilityViolationError instead.
"""

from sqlalchemy import event, inspect

from hris_kernel.db.base import Base
from hris_kernel.exceptions import ImmutabilityViolationError
from hris_kernel.logging_config import get_logger

logger = get_logger("db.immutability")

NOTIFICATION_MUTABLE_FIELDS = frozenset({"is_read"})


def _blocked(entity_type: str, entity_id, operation: str, reason: str):
    logger.error(
        "immutability_violation_blocked",
        extra={
            "entity_type": entity_type,
            "entity_id": str(entity_id),
            "operation": operation,
        },
    )
    raise ImmutabilityViolationError(
        entity_type=entity_type,
        entity_id=str(entity_id),
        reason=reason,
    )


def _changed_fields(target) -> set[str]:
    state = inspect(target)
    return {
        attr.key
        for attr in state.attrs
        if attr.history.has_changes()
    }


# =============================================================================
# Audit events
# =============================================================================


def _check_audit_event_immutability(mapper, connection, target):
    """Prevent any updates to AuditEvent records."""
    _blocked(
        "AuditEvent", target.id, "UPDATE",
        "Audit events are immutable and cannot be modified",
    )


def _check_audit_event_delete(mapper, connection, target):
    """Prevent deletion of AuditEvent records."""
    _blocked("AuditEvent", target.id, "DELETE", "Audit events cannot be deleted")


# =============================================================================
# Notifications
# =============================================================================


def _check_notification_immutability(mapper, connection, target):
    """Only the read flag of a notification may change after creation."""
    illegal = _changed_fields(target) - NOTIFICATION_MUTABLE_FIELDS
    if illegal:
        _blocked(
            "Notification", target.id, "UPDATE",
            f"Only is_read may change; attempted {sorted(illegal)}",
        )


def _check_notification_delete(mapper, connection, target):
    _blocked("Notification", target.id, "DELETE", "Notifications cannot be deleted")


# =============================================================================
# Write-once columns
# =============================================================================


def _check_write_once_fields(mapper, connection, target):
    """Columns in ``__write_once__`` keep their first non-NULL value."""
    fields = getattr(type(target), "__write_once__", ())
    if not fields:
        return
    state = inspect(target)
    for name in fields:
        history = state.attrs[name].history
        if not history.has_changes():
            continue
        previous = [v for v in history.deleted if v is not None]
        if previous:
            _blocked(
                type(target).__name__, target.id, "UPDATE",
                f"{name} is set once and cannot be changed",
            )


# =============================================================================
# Registration
# =============================================================================


def _listeners():
    from hris_kernel.models.audit_event import AuditEvent
    from hris_kernel.models.notification import Notification

    return [
        (AuditEvent, "before_update", _check_audit_event_immutability, False),
        (AuditEvent, "before_delete", _check_audit_event_delete, False),
        (Notification, "before_update", _check_notification_immutability, False),
        (Notification, "before_delete", _check_notification_delete, False),
        (Base, "before_update", _check_write_once_fields, True),
    ]


def register_immutability_listeners():
    """
    Register all immutability enforcement event listeners (idempotent).

    Call after all models are imported and before any database operations.
    """
    for target, name, fn, propagate in _listeners():
        if not event.contains(target, name, fn):
            event.listen(target, name, fn, propagate=propagate)


def unregister_immutability_listeners():
    """
    Remove immutability enforcement event listeners.

    WARNING: Only use this in tests that intentionally violate immutability
    rules to verify detection (e.g. audit chain tampering).
    """
    for target, name, fn, _ in _listeners():
        if event.contains(target, name, fn):
            event.remove(target, name, fn)
