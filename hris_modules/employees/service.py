"""
Employee Module Service (``hris_modules.employees.service``).

Responsibility
--------------
Directory maintenance, role pools used for notification fan-out, HR review
of profile change history, and the daily birthday job.

Architecture position
---------------------
**Modules layer**.  ``EmployeeService`` owns its transaction boundary via
``ModuleService._transaction``; the directory and change writer only flush.

Invariants enforced
-------------------
* Email addresses are unique (case-insensitive).
* A change record is reviewed at most once (CAS on ``pending``).
* At most one birthday notification per employee per year.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import EntityNotFoundError, RequiredFieldError, ValidationError
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_modules.employees.changes import ChangeHistoryWriter
from hris_modules.employees.helpers import (
    birthday_dedup_key,
    birthday_greeting,
    coerce_field_value,
    is_birthday,
)
from hris_modules.employees.models import (
    ChangeRecord,
    ChangeStatus,
    Employee,
    FieldChange,
    Role,
)
from hris_modules.employees.orm import ChangeHistoryModel, EmployeeModel
from hris_modules.employees.selectors import EmployeeDirectory
from hris_modules.employees.workflows import CHANGE_REVIEW_WORKFLOW

logger = get_logger("modules.employees.service")


class EmployeeService(ModuleService):
    """
    Employee directory and profile change review.

    Usage::

        service = EmployeeService(session, config, clock)
        hr = service.register_employee("Dana Cruz", "dana@acme.test",
                                       Role.HR_MANAGER, actor_id=admin_id)
        service.review_changes(pan_id, actor_id=hr.id, approve=True)
    """

    log_scopes = {
        "submission_id": ("ChangeHistory", CHANGE_REVIEW_WORKFLOW.name),
        "employee_id": ("Employee", None),
    }

    def __init__(
        self,
        session: Session,
        config: HrisConfig | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._config = config or get_active_config()
        self._directory = EmployeeDirectory(session)
        self._changes = ChangeHistoryWriter(session)

    # ------------------------------------------------------------------
    # Directory
    # ------------------------------------------------------------------

    def register_employee(
        self,
        name: str,
        email: str,
        role: Role,
        actor_id: UUID,
        *,
        position: str = "",
        department: str = "",
        business_unit: str = "",
        employment_status: str = "regular",
        birth_date: date | None = None,
        date_hired: date | None = None,
        salary_basic: Decimal = Decimal("0"),
        salary_deminimis: Decimal = Decimal("0"),
        salary_reimbursable: Decimal = Decimal("0"),
        manager_id: UUID | None = None,
    ) -> Employee:
        """Create an employee record."""
        if not name or not name.strip():
            raise RequiredFieldError("name", "Employee")
        if not email or not email.strip():
            raise RequiredFieldError("email", "Employee")
        email = email.strip().lower()

        with self._transaction("employee_registered", email=email, actor_id=actor_id):
            existing = self._session.execute(
                select(EmployeeModel.id).where(EmployeeModel.email == email)
            ).scalar_one_or_none()
            if existing is not None:
                raise ValidationError(f"Email already registered: {email}")

            model = EmployeeModel(
                name=name.strip(),
                email=email,
                role=role.value,
                position=position,
                department=department,
                business_unit=business_unit,
                employment_status=employment_status,
                birth_date=birth_date,
                date_hired=date_hired,
                salary_basic=salary_basic,
                salary_deminimis=salary_deminimis,
                salary_reimbursable=salary_reimbursable,
                manager_id=manager_id,
                is_active=True,
                created_by_id=actor_id,
            )
            self._session.add(model)
            self._session.flush()

            self._auditor.record(
                "Employee", model.id, AuditAction.CREATE, actor_id,
                details=f"Registered {model.name} as {role.value}",
                payload={"email": email, "role": role.value},
            )
        return model.to_dto()

    def deactivate_employee(self, employee_id: UUID, actor_id: UUID) -> Employee:
        """Remove an employee from every role pool."""
        with self._transaction("employee_deactivated", employee_id=employee_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "deactivate_employee")
            model = self._directory.require(employee_id)
            model.is_active = False
            model.updated_by_id = actor_id
            self._session.flush()
            self._auditor.record(
                "Employee", model.id, AuditAction.UPDATE, actor_id,
                details=f"Deactivated {model.name}",
            )
        return model.to_dto()

    def get_employee(self, employee_id: UUID) -> Employee:
        return self._directory.require(employee_id).to_dto()

    def list_by_roles(self, roles: Iterable[Role | str]) -> list[Employee]:
        values = [getattr(r, "value", r) for r in roles]
        return [m.to_dto() for m in self._directory.with_roles(values)]

    def hr_pool(self) -> list[UUID]:
        return self._directory.ids_with_roles(self._config.hr_roles)

    def board_pool(self) -> list[UUID]:
        return self._directory.ids_with_roles(self._config.board_roles)

    def fulfillment_pool(self) -> list[UUID]:
        return self._directory.ids_with_roles(self._config.fulfillment_roles)

    # ------------------------------------------------------------------
    # Change history
    # ------------------------------------------------------------------

    def record_changes(
        self,
        employee_id: UUID,
        submission_id: UUID,
        changes: Iterable[FieldChange],
        actor_id: UUID,
    ) -> list[ChangeRecord]:
        """Queue profile changes for HR review."""
        with self._transaction(
            "profile_changes_recorded",
            employee_id=employee_id, submission_id=submission_id, actor_id=actor_id,
        ):
            self._directory.require_role(actor_id, self._config.hr_roles, "record_changes")
            self._directory.require(employee_id)
            rows = self._changes.write(
                employee_id, submission_id, changes, actor_id, self._clock.now(),
            )
            self._auditor.record(
                "Employee", employee_id, AuditAction.UPDATE, actor_id,
                details=f"Queued {len(rows)} profile change(s) for review",
                payload={"submission_id": submission_id, "fields": [r.field for r in rows]},
            )
        return [r.to_dto() for r in rows]

    def list_changes(
        self,
        *,
        employee_id: UUID | None = None,
        submission_id: UUID | None = None,
        status: ChangeStatus | None = None,
    ) -> list[ChangeRecord]:
        stmt = select(ChangeHistoryModel)
        if employee_id is not None:
            stmt = stmt.where(ChangeHistoryModel.employee_id == employee_id)
        if submission_id is not None:
            stmt = stmt.where(ChangeHistoryModel.submission_id == submission_id)
        if status is not None:
            stmt = stmt.where(ChangeHistoryModel.status == status.value)
        stmt = stmt.order_by(ChangeHistoryModel.changed_at, ChangeHistoryModel.field)
        return [m.to_dto() for m in self._session.execute(stmt).scalars().all()]

    def review_changes(
        self,
        submission_id: UUID,
        actor_id: UUID,
        approve: bool,
        reason: str | None = None,
    ) -> list[ChangeRecord]:
        """
        Approve or reject every pending change of one submission.

        Approval writes the new values onto the employee profile.

        Raises:
            UnauthorizedActorError: Actor is not HR.
            RequiredFieldError: Rejection without a reason.
            EntityNotFoundError: No pending changes for the submission.
            InvalidTransitionError: A change was reviewed concurrently.
        """
        if not approve and not (reason and reason.strip()):
            raise RequiredFieldError("rejection_reason", "ChangeHistory")

        action = "approve" if approve else "reject"
        with self._transaction(
            f"profile_changes_{'approved' if approve else 'rejected'}",
            submission_id=submission_id, actor_id=actor_id,
        ):
            self._directory.require_role(actor_id, self._config.hr_roles, f"{action}_changes")
            pending = self._session.execute(
                select(ChangeHistoryModel).where(
                    ChangeHistoryModel.submission_id == submission_id,
                    ChangeHistoryModel.status == ChangeStatus.PENDING.value,
                )
            ).scalars().all()
            if not pending:
                raise EntityNotFoundError("ChangeHistory", str(submission_id))

            now = self._clock.now()
            values = {"reviewed_by_id": actor_id, "reviewed_at": now}
            if not approve:
                values["rejection_reason"] = reason.strip()

            reviewed = [
                self._transitions.apply(
                    ChangeHistoryModel, row.id, CHANGE_REVIEW_WORKFLOW, action,
                    values=values, expected_version=row.version,
                )
                for row in pending
            ]

            employee = self._directory.require(reviewed[0].employee_id)
            if approve:
                for row in reviewed:
                    setattr(employee, row.field, coerce_field_value(row.field, row.new_value))
                employee.updated_by_id = actor_id
                self._session.flush()

            fields = ", ".join(sorted(r.field for r in reviewed))
            if approve:
                message = f"Your profile was updated: {fields}."
            else:
                message = f"Profile changes ({fields}) were rejected. Reason: {reason.strip()}"
            self._notifier.notify(
                employee.id,
                NotificationType.PROFILE_CHANGE_UPDATE,
                "Profile Update",
                message,
                link="/profile",
                related_entity_id=submission_id,
            )
            self._auditor.record(
                "Employee", employee.id,
                AuditAction.APPROVE if approve else AuditAction.REJECT,
                actor_id,
                details=f"Profile changes {action}d: {fields}",
                payload={"submission_id": submission_id, "reason": reason},
            )
        return [r.to_dto() for r in reviewed]

    # ------------------------------------------------------------------
    # Scheduled jobs
    # ------------------------------------------------------------------

    def celebrate_birthdays(self, today: date | None = None) -> list[UUID]:
        """
        Notify every active employee whose birthday is ``today``.

        Safe to rerun: the notification is keyed per employee and year.
        Returns the ids of employees celebrated today.
        """
        today = today or self._clock.today()
        celebrated: list[UUID] = []
        with self._transaction("birthdays_celebrated", date=today):
            employees = self._session.execute(
                select(EmployeeModel).where(
                    EmployeeModel.is_active.is_(True),
                    EmployeeModel.birth_date.is_not(None),
                )
            ).scalars().all()
            for employee in employees:
                if not is_birthday(employee.birth_date, today):
                    continue
                first_name = employee.name.split(" ")[0]
                title, message = birthday_greeting(employee.id, first_name, today.year)
                self._notifier.notify(
                    employee.id,
                    NotificationType.BIRTHDAY,
                    title,
                    message,
                    link="/dashboard",
                    related_entity_id=employee.id,
                    dedup_key=birthday_dedup_key(employee.id, today.year),
                )
                celebrated.append(employee.id)

        if not celebrated:
            logger.info("no_birthdays_today", extra={"date": today.isoformat()})
        return celebrated
