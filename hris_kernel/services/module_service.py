"""
ModuleService -- transaction-owning base for domain module services.

Responsibility:
    Every public operation of a module service (benefits, PAN, assets, ...)
    validates input, performs its compare-and-swap transition, writes its
    notifications and its audit entry, and then commits ONCE.  Any exception
    rolls the whole unit back, so a committed status change always has its
    notifications and audit entry and a failed one has neither.

    The operation also scopes the log context: the actor, the entity the
    operation works on and that entity's workflow are bound for every line
    logged inside it, the final ``<operation>`` / ``<operation>_rolled_back``
    line included.

Architecture position:
    Kernel > Services.  Subclassed by ``hris_modules.*.service``.  Kernel
    services it composes (auditor, notifier, transitioner) only flush.

Usage::

    class BenefitService(ModuleService):
        log_scopes = {
            "request_id": ("BenefitRequest", "benefit_request"),
            "benefit_type_id": ("BenefitType", None),
        }

        def fulfill(self, request_id, actor_id, voucher_code=None):
            with self._transaction("benefit_request_fulfilled",
                                   request_id=request_id, actor_id=actor_id):
                ...
"""

from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, ClassVar

from sqlalchemy.orm import Session

from hris_kernel.domain.clock import Clock, SystemClock
from hris_kernel.logging_config import LogContext, get_logger
from hris_kernel.services.auditor_service import AuditorService
from hris_kernel.services.notification_service import NotificationService
from hris_kernel.services.transition_service import StatusTransitioner

logger = get_logger("services.module")


class ModuleService:
    """Base class owning the commit/rollback boundary for module operations."""

    # Operation keyword -> (entity type, workflow name).  The first keyword
    # an operation passes decides what its log lines are about.
    log_scopes: ClassVar[Mapping[str, tuple[str, str | None]]] = {}

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()
        self._auditor = AuditorService(session, self._clock)
        self._notifier = NotificationService(session, self._clock)
        self._transitions = StatusTransitioner(session)

    def _log_scope(self, fields: Mapping[str, Any]) -> dict[str, Any]:
        for key, (entity_type, workflow) in self.log_scopes.items():
            if fields.get(key) is not None:
                return {"entity_type": entity_type, "entity_id": fields[key], "workflow": workflow}
        # Creations learn their entity when the audit entry is written.
        return {"entity_type": None, "entity_id": None, "workflow": None}

    @contextmanager
    def _transaction(self, operation: str, **fields: Any) -> Iterator[None]:
        """Run the body as one unit of work; commit on success, roll back on error."""
        log_fields = {k: str(v) if v is not None else None for k, v in fields.items()}
        with LogContext.bind(actor_id=fields.get("actor_id"), **self._log_scope(fields)):
            logger.debug(f"{operation}_started", extra=log_fields)
            try:
                yield
                self._session.commit()
            except Exception:
                self._session.rollback()
                logger.warning(f"{operation}_rolled_back", extra=log_fields, exc_info=True)
                raise
            logger.info(operation, extra=log_fields)
