"""
ChangeHistoryWriter -- appends pending profile changes.

Flush-only; called inside the owning service's transaction (PAN
acknowledgement, direct HR edits).
"""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlalchemy.orm import Session

from hris_kernel.logging_config import get_logger
from hris_modules.employees.models import ChangeStatus, FieldChange, TRACKED_FIELDS
from hris_modules.employees.orm import ChangeHistoryModel

logger = get_logger("modules.employees.changes")


class ChangeHistoryWriter:

    def __init__(self, session: Session):
        self._session = session

    def write(
        self,
        employee_id: UUID,
        submission_id: UUID,
        changes: Iterable[FieldChange],
        actor_id: UUID,
        changed_at: datetime,
    ) -> list[ChangeHistoryModel]:
        """One pending row per tracked field change; unchanged fields are skipped."""
        rows: list[ChangeHistoryModel] = []
        for change in changes:
            if change.field not in TRACKED_FIELDS or change.old_value == change.new_value:
                continue
            row = ChangeHistoryModel(
                employee_id=employee_id,
                field=change.field,
                old_value=change.old_value,
                new_value=change.new_value,
                status=ChangeStatus.PENDING.value,
                submission_id=submission_id,
                changed_by_id=actor_id,
                changed_at=changed_at,
                created_by_id=actor_id,
            )
            self._session.add(row)
            rows.append(row)
        self._session.flush()

        logger.info(
            "change_history_written",
            extra={
                "employee_id": str(employee_id),
                "submission_id": str(submission_id),
                "count": len(rows),
            },
        )
        return rows
