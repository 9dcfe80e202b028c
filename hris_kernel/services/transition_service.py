"""
StatusTransitioner -- compare-and-swap status changes.

Responsibility:
    Turns a workflow action into ONE conditional UPDATE:

        UPDATE <table>
           SET status = :to_state, version = version + 1, <bookkeeping>
         WHERE id = :id AND status IN (:from_states) [AND version = :expected]
               [AND <write-once column> IS NULL ...]

    The precondition status is checked by the database in the same statement
    that writes the new status, so double submission and concurrent approvals
    fail with InvalidTransitionError instead of double-applying side effects.

Architecture position:
    Kernel > Services.  Used by every module service; flushes only.

Failure modes:
    - UnknownWorkflowActionError: action not declared by the workflow.
    - EntityNotFoundError: no row with this id.
    - OptimisticLockError: caller passed expected_version and the row moved.
    - ImmutabilityViolationError: a ``__write_once__`` column in ``values``
      already holds a value.
    - InvalidTransitionError: current status does not allow the action.
"""

from typing import Any, TypeVar
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from hris_kernel.domain.workflow import Workflow
from hris_kernel.exceptions import (
    EntityNotFoundError,
    ImmutabilityViolationError,
    InvalidTransitionError,
    OptimisticLockError,
    UnknownWorkflowActionError,
)
from hris_kernel.logging_config import get_logger
from hris_kernel.services.base import BaseService
from hris_kernel.services.repository import entity_name

logger = get_logger("services.transition")

M = TypeVar("M")


class StatusTransitioner(BaseService):
    """Applies workflow actions as atomic conditional updates."""

    def __init__(self, session: Session):
        super().__init__(session)

    def apply(
        self,
        model_cls: type[M],
        entity_id: UUID,
        workflow: Workflow,
        action: str,
        *,
        values: dict[str, Any] | None = None,
        expected_version: int | None = None,
    ) -> M:
        """
        Move ``entity_id`` along ``action`` and return the refreshed row.

        Args:
            model_cls: ORM class with ``id``, ``status`` and ``version`` columns.
            entity_id: Row to transition.
            workflow: Lifecycle declaring the action.
            action: Transition label, e.g. ``"hr_approve"``.
            values: Extra columns written in the same statement
                (``hr_endorsed_by_id``, ``fulfilled_at``, ...).
            expected_version: Optional optimistic-concurrency token.
        """
        from_states = workflow.source_states(action)
        to_state = workflow.target_state(action)
        if to_state is None:
            raise UnknownWorkflowActionError(workflow.name, action)

        entity_type = entity_name(model_cls)

        stmt = update(model_cls).where(
            model_cls.id == entity_id,
            model_cls.status.in_(from_states),
        )
        if expected_version is not None:
            stmt = stmt.where(model_cls.version == expected_version)
        write_once = [
            name for name, val in (values or {}).items()
            if val is not None and name in getattr(model_cls, "__write_once__", ())
        ]
        for name in write_once:
            stmt = stmt.where(getattr(model_cls, name).is_(None))
        stmt = stmt.values(
            status=to_state,
            version=model_cls.version + 1,
            **(values or {}),
        ).execution_options(synchronize_session=False)

        result = self.session.execute(stmt)

        if result.rowcount != 1:
            current = self.session.get(model_cls, entity_id, populate_existing=True)
            if current is None:
                raise EntityNotFoundError(entity_type, str(entity_id))
            if (
                expected_version is not None
                and current.version != expected_version
                and current.status in from_states
            ):
                logger.warning(
                    "status_transition_stale",
                    extra={
                        "row": f"{entity_type}:{entity_id}",
                        "expected_version": expected_version,
                        "actual_version": current.version,
                    },
                )
                raise OptimisticLockError(
                    entity_type, str(entity_id), expected_version, current.version,
                )
            already_set = [name for name in write_once if getattr(current, name) is not None]
            if already_set and current.status in from_states:
                raise ImmutabilityViolationError(
                    entity_type, str(entity_id), f"{already_set[0]} is set once and cannot be changed",
                )
            logger.warning(
                "status_transition_rejected",
                extra={
                    "row": f"{entity_type}:{entity_id}",
                    "action": action,
                    "current_status": current.status,
                },
            )
            raise InvalidTransitionError(
                entity_type, str(entity_id), current.status, action,
            )

        model = self.session.get(model_cls, entity_id, populate_existing=True)

        logger.info(
            "status_transition_applied",
            extra={
                "row": f"{entity_type}:{entity_id}",
                "row_workflow": workflow.name,
                "action": action,
                "to_state": to_state,
                "version": model.version,
            },
        )
        return model

    def claim(
        self,
        model_cls: type[M],
        entity_id: UUID,
        states: tuple[str, ...],
        action: str,
    ) -> M:
        """
        Bump ``version`` while the row is in one of ``states``.

        Used where an operation changes child rows (routing steps, draft
        edits) and must hold the parent in its current status until commit.
        The UPDATE takes the parent's row lock, so concurrent callers on the
        same parent serialize and each sees the other's committed children.

        Raises:
            EntityNotFoundError / InvalidTransitionError as for ``apply``.
        """
        entity_type = entity_name(model_cls)
        result = self.session.execute(
            update(model_cls)
            .where(model_cls.id == entity_id, model_cls.status.in_(states))
            .values(version=model_cls.version + 1)
            .execution_options(synchronize_session=False)
        )
        current = self.session.get(model_cls, entity_id, populate_existing=True)
        if current is None:
            raise EntityNotFoundError(entity_type, str(entity_id))
        if result.rowcount != 1:
            raise InvalidTransitionError(
                entity_type, str(entity_id), current.status, action,
            )
        return current
