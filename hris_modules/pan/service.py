"""
PAN Module Service (``hris_modules.pan.service``).

Responsibility
--------------
Drafting, routing, approval, decline and employee acknowledgement of
Personnel Action Notices, plus PAN templates and the printable notice.

Architecture position
---------------------
**Modules layer**.  ``PANService`` owns the transaction boundary.  Step
decisions and aggregate status changes go through ``StatusTransitioner``;
the aggregate is derived by ``helpers.aggregate_status``.

Invariants enforced
-------------------
* The PAN reaches ``pending_employee`` only when every non-acknowledger
  step is approved.
* A declined step declines the PAN regardless of other steps.
* Step approvals on one PAN are serialized by claiming the PAN row first,
  so two approvers finishing at the same moment cannot both miss the
  "all approved" condition.
* With ``enforce_pan_routing_order`` an approver acts only after every
  lower-order step is approved; otherwise order is informational.
* Acknowledgement produces pending change history for HR review.
"""

from __future__ import annotations

from collections.abc import Iterable
from datetime import date
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import (
    AlreadyAcknowledgedError,
    InvalidRoutingError,
    RequiredFieldError,
    RoutingOrderError,
    UnauthorizedActorError,
)
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_modules.employees.changes import ChangeHistoryWriter
from hris_modules.employees.selectors import EmployeeDirectory
from hris_modules.pan.helpers import (
    action_taken_to_json,
    aggregate_status,
    approver_steps,
    blocking_step,
    diff_particulars,
    has_approver_steps,
    particulars_from_json,
    particulars_to_json,
)
from hris_modules.pan.models import (
    PAN,
    PANActionTaken,
    PANRole,
    PANStatus,
    PANStepStatus,
    PANTemplate,
    Particulars,
    RoutingStepInput,
)
from hris_modules.pan.orm import PANModel, PANRoutingStepModel, PANTemplateModel
from hris_modules.pan.printable import render_printable
from hris_modules.pan.workflows import PAN_STEP_WORKFLOW, PAN_WORKFLOW

logger = get_logger("modules.pan.service")

_LINK = "/employees/pan"


class PANService(ModuleService):
    """
    Personnel Action Notice workflow.

    Usage::

        service = PANService(session, config, clock)
        pan = service.save_draft(hr.id, emp.id, date(2026, 2, 1),
                                 particulars_to=Particulars(position="Lead"),
                                 routing=[RoutingStepInput(gm.id, PANRole.APPROVER, 1),
                                          RoutingStepInput(emp.id, PANRole.ACKNOWLEDGER, 2)])
        service.submit(pan.id, hr.id)
        service.approve_step(pan.id, gm.id)
        service.acknowledge(pan.id, emp.id, "data:image/png;base64,...", "Emp One")
    """

    log_scopes = {
        "template_id": ("PANTemplate", None),
        "pan_id": ("PAN", PAN_WORKFLOW.name),
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
        self._pans = Repository(session, PANModel)
        self._templates = Repository(session, PANTemplateModel)

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    def save_draft(
        self,
        actor_id: UUID,
        employee_id: UUID,
        effective_date: date,
        *,
        pan_id: UUID | None = None,
        action_taken: PANActionTaken | None = None,
        particulars_from: Particulars | None = None,
        particulars_to: Particulars | None = None,
        tenure: str = "",
        notes: str = "",
        routing: Iterable[RoutingStepInput] = (),
        logo_url: str | None = None,
        preparer_name: str | None = None,
        preparer_signature_url: str | None = None,
    ) -> PAN:
        """
        Create a draft, or replace the contents of an existing draft.

        ``particulars_from`` defaults to the employee's current profile.
        The routing list replaces any previously saved steps.

        Raises:
            InvalidRoutingError: unknown routing user, or an acknowledger
                other than the subject employee.
            InvalidTransitionError: ``pan_id`` is no longer a draft.
        """
        if effective_date is None:
            raise RequiredFieldError("effective_date", "PAN")
        routing = sorted(routing, key=lambda r: r.order)

        with self._transaction(
            "pan_draft_saved", pan_id=pan_id, employee_id=employee_id, actor_id=actor_id,
        ):
            self._directory.require_role(actor_id, self._config.hr_roles, "save_pan_draft")
            employee = self._directory.require(employee_id)
            resolved = self._resolve_routing(routing, employee.id)

            if particulars_from is None:
                particulars_from = Particulars(
                    employment_status=employee.employment_status,
                    position=employee.position,
                    department=employee.department,
                    salary_basic=employee.salary_basic,
                    salary_deminimis=employee.salary_deminimis,
                    salary_reimbursable=employee.salary_reimbursable,
                )

            fields = {
                "employee_id": employee.id,
                "employee_name": employee.name,
                "effective_date": effective_date,
                "action_taken": action_taken_to_json(action_taken or PANActionTaken()),
                "particulars_from": particulars_to_json(particulars_from),
                "particulars_to": particulars_to_json(particulars_to or Particulars()),
                "tenure": tenure,
                "notes": notes,
                "logo_url": logo_url,
                "preparer_name": preparer_name,
                "preparer_signature_url": preparer_signature_url,
            }

            if pan_id is None:
                pan = self._pans.save(
                    PANModel(
                        status=PAN_WORKFLOW.initial_state,
                        preparer_id=actor_id,
                        created_by_id=actor_id,
                        **fields,
                    )
                )
                audit_action = AuditAction.CREATE
            else:
                pan = self._transitions.claim(
                    PANModel, pan_id, (PANStatus.DRAFT.value,), "edit_draft",
                )
                for name, value in fields.items():
                    setattr(pan, name, value)
                pan.updated_by_id = actor_id
                pan.steps.clear()
                self._session.flush()
                audit_action = AuditAction.UPDATE

            for step, user in resolved:
                pan.steps.append(
                    PANRoutingStepModel(
                        user_id=user.id,
                        name=user.name,
                        role=step.role.value,
                        order=step.order,
                        status=PAN_STEP_WORKFLOW.initial_state,
                        created_by_id=actor_id,
                    )
                )
            self._session.flush()

            self._auditor.record(
                "PAN", pan.id, audit_action, actor_id,
                details=f"Draft saved for {employee.name}",
                payload={"routing": [(s.role.value, s.user_id, s.order) for s, _ in resolved]},
            )
        return pan.to_dto()

    def submit(self, pan_id: UUID, actor_id: UUID) -> PAN:
        """
        Send a draft on its way.

        With approver steps the PAN enters routing and every approver is
        notified; with none it goes straight to the employee.
        """
        with self._transaction("pan_submitted", pan_id=pan_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "submit_pan")
            self._pans.require(pan_id)
            steps = self._load_steps(pan_id)
            routed = has_approver_steps(steps)
            action = "submit" if routed else "send_to_employee"

            pan = self._transitions.apply(
                PANModel, pan_id, PAN_WORKFLOW, action,
            )
            if routed:
                self._notifier.notify_many(
                    [s.user_id for s in approver_steps(steps)],
                    NotificationType.PAN_APPROVAL_REQUEST,
                    "PAN Approval Required",
                    f"A Personnel Action Notice for {pan.employee_name} needs your review.",
                    link=_LINK,
                    related_entity_id=pan.id,
                )
            else:
                self._notify_employee_to_sign(pan)

            self._auditor.record(
                "PAN", pan.id, AuditAction.SUBMIT, actor_id,
                details="Submitted for routing" if routed else "Sent to employee",
            )
        return pan.to_dto()

    # ------------------------------------------------------------------
    # Routing
    # ------------------------------------------------------------------

    def approve_step(self, pan_id: UUID, actor_id: UUID, notes: str | None = None) -> PAN:
        """
        Approve the actor's own pending routing step.

        The PAN advances to ``pending_employee`` when this was the last
        open non-acknowledger step; the employee and the HR pool are then
        notified.

        Raises:
            UnauthorizedActorError: actor has no pending approver step.
            RoutingOrderError: order is enforced and an earlier step is open.
            InvalidTransitionError: PAN is not in routing, or the step was
                decided concurrently.
        """
        with self._transaction("pan_step_approved", pan_id=pan_id, actor_id=actor_id):
            pan = self._transitions.claim(
                PANModel, pan_id, (PANStatus.PENDING_APPROVAL.value,), "approve_step",
            )
            steps = self._load_steps(pan_id)
            step = self._own_pending_step(steps, actor_id, "approve_step")

            if self._config.enforce_pan_routing_order:
                blocker = blocking_step(steps, step)
                if blocker is not None:
                    raise RoutingOrderError(str(pan_id), step.order, blocker.order)

            self._transitions.apply(
                PANRoutingStepModel, step.id, PAN_STEP_WORKFLOW, "approve",
                values={"acted_at": self._clock.now(), "notes": notes},
            )
            steps = self._load_steps(pan_id)

            self._auditor.record(
                "PAN", pan.id, AuditAction.APPROVE, actor_id,
                details=f"{step.role.title()} step approved by {step.name}",
                payload={"step_id": step.id, "order": step.order},
            )

            if aggregate_status(steps) is PANStatus.PENDING_EMPLOYEE:
                pan = self._transitions.apply(PANModel, pan_id, PAN_WORKFLOW, "complete_routing")
                self._notify_employee_to_sign(pan)
                self._notifier.notify_many(
                    self._directory.ids_with_roles(self._config.hr_roles),
                    NotificationType.PAN_UPDATE,
                    "PAN Fully Approved",
                    f"The Personnel Action Notice for {pan.employee_name} has been "
                    f"approved and is awaiting the employee's acknowledgement.",
                    link=_LINK,
                    related_entity_id=pan.id,
                )
        return pan.to_dto()

    def decline_step(self, pan_id: UUID, actor_id: UUID, reason: str) -> PAN:
        """Decline the actor's pending step; the whole PAN is declined."""
        if not reason or not reason.strip():
            raise RequiredFieldError("reason", "PAN")

        with self._transaction("pan_step_declined", pan_id=pan_id, actor_id=actor_id):
            pan = self._transitions.claim(
                PANModel, pan_id, (PANStatus.PENDING_APPROVAL.value,), "decline_step",
            )
            steps = self._load_steps(pan_id)
            step = self._own_pending_step(steps, actor_id, "decline_step")

            if self._config.enforce_pan_routing_order:
                blocker = blocking_step(steps, step)
                if blocker is not None:
                    raise RoutingOrderError(str(pan_id), step.order, blocker.order)

            self._transitions.apply(
                PANRoutingStepModel, step.id, PAN_STEP_WORKFLOW, "decline",
                values={"acted_at": self._clock.now(), "notes": reason.strip()},
            )
            pan = self._transitions.apply(PANModel, pan_id, PAN_WORKFLOW, "decline")

            self._notifier.notify(
                pan.preparer_id,
                NotificationType.PAN_UPDATE,
                "PAN Declined",
                f"{step.name} declined the Personnel Action Notice for "
                f"{pan.employee_name}. Reason: {reason.strip()}",
                link=_LINK,
                related_entity_id=pan.id,
            )
            self._auditor.record(
                "PAN", pan.id, AuditAction.REJECT, actor_id,
                details=f"{step.role.title()} step declined by {step.name}",
                payload={"step_id": step.id, "reason": reason.strip()},
            )
        return pan.to_dto()

    def acknowledge(
        self,
        pan_id: UUID,
        actor_id: UUID,
        signature_data_url: str,
        signature_name: str,
    ) -> PAN:
        """
        The employee signs the notice.

        Completes the PAN, closes acknowledger steps and queues the
        particulars diff as pending change history for HR review.

        Raises:
            UnauthorizedActorError: actor is not the subject employee.
            AlreadyAcknowledgedError: PAN already completed.
        """
        if not signature_name or not signature_name.strip():
            raise RequiredFieldError("signature_name", "PAN")
        if not signature_data_url:
            raise RequiredFieldError("signature_data_url", "PAN")

        with self._transaction("pan_acknowledged", pan_id=pan_id, actor_id=actor_id):
            current = self._pans.require(pan_id)
            if current.employee_id != actor_id:
                raise UnauthorizedActorError(
                    str(actor_id), "acknowledge", "only the subject employee may sign",
                )
            if current.status == PANStatus.COMPLETED.value:
                raise AlreadyAcknowledgedError("PAN", str(pan_id))

            now = self._clock.now()
            pan = self._transitions.apply(
                PANModel, pan_id, PAN_WORKFLOW, "acknowledge",
                values={
                    "signed_at": now,
                    "signature_data_url": signature_data_url,
                    "signature_name": signature_name.strip(),
                },
                expected_version=current.version,
            )
            for step in self._load_steps(pan_id):
                if (
                    step.role == PANRole.ACKNOWLEDGER.value
                    and step.status == PANStepStatus.PENDING.value
                ):
                    self._transitions.apply(
                        PANRoutingStepModel, step.id, PAN_STEP_WORKFLOW, "approve",
                        values={"acted_at": now},
                    )

            changes = diff_particulars(
                particulars_from_json(pan.particulars_from),
                particulars_from_json(pan.particulars_to),
            )
            rows = self._changes.write(pan.employee_id, pan.id, changes, actor_id, now)

            self._notifier.notify_many(
                self._directory.ids_with_roles(self._config.hr_roles),
                NotificationType.PAN_UPDATE,
                "PAN Acknowledged",
                f"{pan.employee_name} signed the Personnel Action Notice. "
                f"{len(rows)} profile change(s) await review.",
                link=_LINK,
                related_entity_id=pan.id,
            )
            self._auditor.record(
                "PAN", pan.id, AuditAction.ACKNOWLEDGE, actor_id,
                details=f"Acknowledged by {pan.signature_name}",
                payload={"changes": [c.field for c in changes]},
            )
        return pan.to_dto()

    def cancel(self, pan_id: UUID, actor_id: UUID) -> PAN:
        with self._transaction("pan_cancelled", pan_id=pan_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "cancel_pan")
            pan = self._transitions.apply(PANModel, pan_id, PAN_WORKFLOW, "cancel")
            self._auditor.record("PAN", pan.id, AuditAction.CANCEL, actor_id, details="Cancelled")
        return pan.to_dto()

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def save_template(
        self,
        name: str,
        actor_id: UUID,
        *,
        template_id: UUID | None = None,
        action_taken: PANActionTaken | None = None,
        notes: str = "",
        logo_url: str | None = None,
        preparer_name: str | None = None,
        preparer_signature_url: str | None = None,
        is_default: bool = False,
    ) -> PANTemplate:
        """Create or overwrite a template; at most one template is the default."""
        if not name or not name.strip():
            raise RequiredFieldError("name", "PANTemplate")

        with self._transaction("pan_template_saved", template_id=template_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "save_pan_template")
            if is_default:
                self._session.execute(
                    update(PANTemplateModel)
                    .where(PANTemplateModel.is_default.is_(True))
                    .values(is_default=False)
                    .execution_options(synchronize_session="fetch")
                )
            if template_id is None:
                template = PANTemplateModel(created_by_id=actor_id)
            else:
                template = self._templates.require(template_id)
                template.updated_by_id = actor_id
            template.name = name.strip()
            template.action_taken = action_taken_to_json(action_taken or PANActionTaken())
            template.notes = notes
            template.logo_url = logo_url
            template.preparer_name = preparer_name
            template.preparer_signature_url = preparer_signature_url
            template.is_default = is_default
            self._templates.save(template)
            self._auditor.record(
                "PANTemplate", template.id,
                AuditAction.CREATE if template_id is None else AuditAction.UPDATE,
                actor_id,
                details=f"Saved PAN template {template.name}",
            )
        return template.to_dto()

    def delete_template(self, template_id: UUID, actor_id: UUID) -> None:
        with self._transaction("pan_template_deleted", template_id=template_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "delete_pan_template")
            template = self._templates.require(template_id)
            self._session.delete(template)
            self._session.flush()
            self._auditor.record(
                "PANTemplate", template_id, AuditAction.DELETE, actor_id,
                details=f"Deleted PAN template {template.name}",
            )

    def list_templates(self) -> list[PANTemplate]:
        """Default template first, then by name."""
        return [
            m.to_dto()
            for m in self._templates.list_where(
                order_by=[PANTemplateModel.is_default.desc(), PANTemplateModel.name],
            )
        ]

    def draft_from_template(
        self,
        template_id: UUID,
        actor_id: UUID,
        employee_id: UUID,
        effective_date: date,
        *,
        particulars_to: Particulars | None = None,
        routing: Iterable[RoutingStepInput] = (),
    ) -> PAN:
        """Start a draft pre-filled from a template."""
        template = self._templates.require(template_id).to_dto()
        return self.save_draft(
            actor_id,
            employee_id,
            effective_date,
            action_taken=template.action_taken,
            particulars_to=particulars_to,
            notes=template.notes,
            routing=routing,
            logo_url=template.logo_url,
            preparer_name=template.preparer_name,
            preparer_signature_url=template.preparer_signature_url,
        )

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_pan(self, pan_id: UUID) -> PAN:
        return self._pans.require(pan_id).to_dto()

    def list_by_status(self, *statuses: PANStatus) -> list[PAN]:
        return [
            m.to_dto()
            for m in self._pans.list_by_status(*statuses, order_by=PANModel.created_at)
        ]

    def list_for_employee(self, employee_id: UUID) -> list[PAN]:
        return [
            m.to_dto()
            for m in self._pans.list_where(
                PANModel.employee_id == employee_id,
                order_by=PANModel.effective_date.desc(),
            )
        ]

    def list_awaiting(self, user_id: UUID) -> list[PAN]:
        """PANs in routing where ``user_id`` still has a pending approver step."""
        stmt = (
            select(PANModel)
            .join(PANRoutingStepModel)
            .where(
                PANModel.status == PANStatus.PENDING_APPROVAL.value,
                PANRoutingStepModel.user_id == user_id,
                PANRoutingStepModel.status == PANStepStatus.PENDING.value,
                PANRoutingStepModel.role != PANRole.ACKNOWLEDGER.value,
            )
            .distinct()
            .order_by(PANModel.created_at)
        )
        return [m.to_dto() for m in self._session.execute(stmt).scalars().all()]

    def render_printable(self, pan_id: UUID) -> str:
        """HTML certificate for printing."""
        pan = self._pans.require(pan_id)
        employee = self._directory.require(pan.employee_id)
        positions = {}
        for step in pan.steps:
            user = self._directory.get(step.user_id)
            if user is not None and user.position:
                positions[step.user_id] = user.position
        return render_printable(
            pan.to_dto(),
            currency=self._config.currency,
            position=employee.position,
            department=employee.department,
            date_hired=employee.date_hired.isoformat() if employee.date_hired else "",
            approver_positions=positions,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _resolve_routing(self, routing, employee_id: UUID):
        resolved = []
        for step in routing:
            user = self._directory.get(step.user_id)
            if user is None or not user.is_active:
                raise InvalidRoutingError("PAN", f"unknown routing user {step.user_id}")
            if step.role is PANRole.ACKNOWLEDGER and user.id != employee_id:
                raise InvalidRoutingError("PAN", "the acknowledger must be the subject employee")
            if step.role is not PANRole.ACKNOWLEDGER and user.id == employee_id:
                raise InvalidRoutingError("PAN", "the subject employee cannot approve their own PAN")
            resolved.append((step, user))
        return resolved

    def _load_steps(self, pan_id: UUID) -> list[PANRoutingStepModel]:
        """Routing steps as committed, overwriting any stale identity-map copies."""
        return list(
            self._session.execute(
                select(PANRoutingStepModel)
                .where(PANRoutingStepModel.pan_id == pan_id)
                .order_by(PANRoutingStepModel.order)
                .execution_options(populate_existing=True)
            ).scalars().all()
        )

    def _own_pending_step(
        self,
        steps: list[PANRoutingStepModel],
        actor_id: UUID,
        action: str,
    ) -> PANRoutingStepModel:
        for step in approver_steps(steps):
            if step.user_id == actor_id and step.status == PANStepStatus.PENDING.value:
                return step
        raise UnauthorizedActorError(
            str(actor_id), action, "no pending routing step for this actor",
        )

    def _notify_employee_to_sign(self, pan: PANModel) -> None:
        self._notifier.notify(
            pan.employee_id,
            NotificationType.PAN_UPDATE,
            "PAN Ready for Acknowledgement",
            "A Personnel Action Notice is waiting for your signature.",
            link=_LINK,
            related_entity_id=pan.id,
        )
