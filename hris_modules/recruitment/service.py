"""
Recruitment Module Service (``hris_modules.recruitment.service``).

Responsibility
--------------
Job requisitions: drafting, submission, the HR review step, final
approval by the board and general manager, rejection and closing.

Architecture position
---------------------
**Modules layer**.  ``RequisitionService`` owns the transaction boundary.
Step decisions and requisition status changes go through
``StatusTransitioner``; ``helpers.review_stage`` decides what a set of
step decisions means.

Invariants enforced
-------------------
* A submitted requisition always has an HR step; with none chosen the
  first active HR manager is routed in.
* Final approvers are added only after every HR step is approved, hold a
  board role, and include at least one board director.
* The requisition is approved only when final approvers exist and every
  step is approved.  One rejected step rejects the requisition.
* Step decisions on one requisition are serialized by claiming the
  requisition row first.
"""

from __future__ import annotations

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import (
    InvalidRoutingError,
    RequiredFieldError,
    UnauthorizedActorError,
)
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_kernel.services.sequence_service import SequenceService
from hris_modules.employees.models import Role
from hris_modules.employees.selectors import EmployeeDirectory
from hris_modules.recruitment.helpers import (
    FINAL_STEP_ORDER,
    HR_STEP_ORDER,
    ReviewStage,
    requisition_code,
    review_stage,
    validate_details,
)
from hris_modules.recruitment.models import (
    JobRequisition,
    JobRequisitionStatus,
    RequisitionDetails,
    RequisitionStepRole,
    RequisitionStepStatus,
)
from hris_modules.recruitment.orm import JobRequisitionModel, JobRequisitionStepModel
from hris_modules.recruitment.workflows import REQUISITION_STEP_WORKFLOW, REQUISITION_WORKFLOW

logger = get_logger("modules.recruitment.service")

_LINK = "/recruitment/requisitions"

# Who may route a requisition to its final approvers.
_ROUTING_ROLES = (Role.ADMIN.value, Role.HR_MANAGER.value)


class RequisitionService(ModuleService):
    """
    Job requisition workflow.

    Usage::

        service = RequisitionService(session, config, clock)
        req = service.save_draft(manager.id, RequisitionDetails(
            title="Backend Engineer", department="Engineering",
            business_unit="Acme Holdings", justification="Team growth"))
        service.submit(req.id, manager.id)
        service.approve_step(req.id, hr_manager.id)
        service.add_final_approvers(req.id, hr_manager.id, [bod.id])
        service.approve_step(req.id, bod.id)
    """

    log_scopes = {
        "requisition_id": ("JobRequisition", REQUISITION_WORKFLOW.name),
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
        self._sequences = SequenceService(session)
        self._requisitions = Repository(session, JobRequisitionModel)

    # ------------------------------------------------------------------
    # Drafting
    # ------------------------------------------------------------------

    def save_draft(
        self,
        actor_id: UUID,
        details: RequisitionDetails,
        *,
        requisition_id: UUID | None = None,
    ) -> JobRequisition:
        """
        Create a draft, or replace the form of an existing draft.

        Only the creator or HR may edit a draft.

        Raises:
            RequiredFieldError / InvalidAmountError / InvalidRangeError:
                the form does not validate.
            InvalidTransitionError: ``requisition_id`` is no longer a draft.
        """
        details = validate_details(details)
        fields = {
            "title": details.title,
            "department": details.department,
            "business_unit": details.business_unit,
            "justification": details.justification,
            "headcount": details.headcount,
            "employment_type": details.employment_type.value,
            "location_type": details.location_type.value,
            "work_location": details.work_location,
            "budgeted_salary_min": details.budgeted_salary_min,
            "budgeted_salary_max": details.budgeted_salary_max,
            "is_urgent": details.is_urgent,
        }

        with self._transaction(
            "job_requisition_draft_saved", requisition_id=requisition_id, actor_id=actor_id,
        ):
            actor = self._directory.require(actor_id)
            if not actor.is_active:
                raise UnauthorizedActorError(str(actor_id), "save_requisition", "inactive employee")

            if requisition_id is None:
                now = self._clock.now()
                number = self._sequences.next_value(f"job_requisition_{now:%Y%m}")
                requisition = self._requisitions.save(
                    JobRequisitionModel(
                        req_code=requisition_code(now, number),
                        status=REQUISITION_WORKFLOW.initial_state,
                        created_by_id=actor_id,
                        **fields,
                    )
                )
                audit_action = AuditAction.CREATE
            else:
                requisition = self._transitions.claim(
                    JobRequisitionModel, requisition_id,
                    (JobRequisitionStatus.DRAFT.value,), "edit_draft",
                )
                self._require_creator_or_hr(requisition, actor_id, "edit_requisition")
                for name, value in fields.items():
                    setattr(requisition, name, value)
                requisition.updated_by_id = actor_id
                self._session.flush()
                audit_action = AuditAction.UPDATE

            self._auditor.record(
                "JobRequisition", requisition.id, audit_action, actor_id,
                details=f"Draft {requisition.req_code} saved: {details.title}",
                payload={"headcount": details.headcount, "is_urgent": details.is_urgent},
            )
        return requisition.to_dto()

    def submit(self, requisition_id: UUID, actor_id: UUID) -> JobRequisition:
        """
        Send a draft for HR review.

        Raises:
            InvalidRoutingError: there is no active HR manager to review it.
            InvalidTransitionError: the requisition is not a draft.
        """
        with self._transaction(
            "job_requisition_submitted", requisition_id=requisition_id, actor_id=actor_id,
        ):
            current = self._requisitions.require(requisition_id)
            self._require_creator_or_hr(current, actor_id, "submit_requisition")

            requisition = self._transitions.apply(
                JobRequisitionModel, requisition_id, REQUISITION_WORKFLOW, "submit",
                expected_version=current.version,
            )
            steps = self._load_steps(requisition_id)
            if not steps:
                reviewers = self._directory.with_roles([Role.HR_MANAGER.value])
                if not reviewers:
                    raise InvalidRoutingError("JobRequisition", "no active HR manager to review")
                reviewer = reviewers[0]
                requisition.steps.append(
                    JobRequisitionStepModel(
                        user_id=reviewer.id,
                        name=reviewer.name,
                        role=RequisitionStepRole.HR.value,
                        order=HR_STEP_ORDER,
                        status=REQUISITION_STEP_WORKFLOW.initial_state,
                        created_by_id=actor_id,
                    )
                )
                self._session.flush()
                steps = self._load_steps(requisition_id)

            self._notifier.notify_many(
                [s.user_id for s in steps if s.status == RequisitionStepStatus.PENDING.value],
                NotificationType.REQUISITION_APPROVAL_REQUEST,
                "Job Requisition Review",
                f"{requisition.req_code} ({requisition.title}) needs your review.",
                link=_LINK,
                related_entity_id=requisition.id,
            )
            self._auditor.record(
                "JobRequisition", requisition.id, AuditAction.SUBMIT, actor_id,
                details=f"{requisition.req_code} submitted for HR review",
            )
        return requisition.to_dto()

    # ------------------------------------------------------------------
    # Review
    # ------------------------------------------------------------------

    def approve_step(
        self,
        requisition_id: UUID,
        actor_id: UUID,
        notes: str | None = None,
    ) -> JobRequisition:
        """
        Approve the actor's own pending step.

        When the HR stage completes, HR managers and admins are asked to
        choose final approvers.  When the last final approver signs off the
        requisition is approved and its creator notified.

        Raises:
            UnauthorizedActorError: actor has no pending step.
            InvalidTransitionError: requisition is not under review, or the
                step was decided concurrently.
        """
        with self._transaction(
            "job_requisition_step_approved", requisition_id=requisition_id, actor_id=actor_id,
        ):
            requisition = self._transitions.claim(
                JobRequisitionModel, requisition_id,
                (JobRequisitionStatus.PENDING_APPROVAL.value,), "approve_step",
            )
            step = self._own_pending_step(self._load_steps(requisition_id), actor_id, "approve_step")
            self._transitions.apply(
                JobRequisitionStepModel, step.id, REQUISITION_STEP_WORKFLOW, "approve",
                values={"acted_at": self._clock.now(), "notes": notes},
            )
            self._auditor.record(
                "JobRequisition", requisition.id, AuditAction.APPROVE, actor_id,
                details=f"{step.role.upper()} step approved by {step.name}",
                payload={"step_id": step.id, "order": step.order},
            )

            stage = review_stage(self._load_steps(requisition_id))
            if stage is ReviewStage.APPROVED:
                requisition = self._transitions.apply(
                    JobRequisitionModel, requisition_id, REQUISITION_WORKFLOW, "approve",
                )
                self._notify_creator(requisition, "Job Requisition Approved", "has been approved.")
            elif stage is ReviewStage.AWAITING_FINAL_APPROVERS:
                self._notifier.notify_many(
                    self._directory.ids_with_roles(_ROUTING_ROLES),
                    NotificationType.REQUISITION_APPROVAL_REQUEST,
                    "Final Approvers Needed",
                    f"HR review of {requisition.req_code} ({requisition.title}) is complete. "
                    f"Choose its final approvers.",
                    link=_LINK,
                    related_entity_id=requisition.id,
                )
        return requisition.to_dto()

    def add_final_approvers(
        self,
        requisition_id: UUID,
        actor_id: UUID,
        approver_ids: Iterable[UUID],
    ) -> JobRequisition:
        """
        Route an HR-approved requisition to its final approvers.

        Raises:
            InvalidRoutingError: HR review still open, approvers already
                chosen, an approver outside the board roles, or no board
                director among them.
        """
        approver_ids = list(dict.fromkeys(approver_ids))

        with self._transaction(
            "job_requisition_final_approvers_added",
            requisition_id=requisition_id, actor_id=actor_id,
        ):
            self._directory.require_role(actor_id, _ROUTING_ROLES, "add_final_approvers")
            requisition = self._transitions.claim(
                JobRequisitionModel, requisition_id,
                (JobRequisitionStatus.PENDING_APPROVAL.value,), "add_final_approvers",
            )
            stage = review_stage(self._load_steps(requisition_id))
            if stage is ReviewStage.HR_REVIEW:
                raise InvalidRoutingError("JobRequisition", "HR review is not complete")
            if stage is not ReviewStage.AWAITING_FINAL_APPROVERS:
                raise InvalidRoutingError("JobRequisition", "final approvers are already assigned")
            approvers = self._resolve_final_approvers(approver_ids)

            for approver in approvers:
                requisition.steps.append(
                    JobRequisitionStepModel(
                        user_id=approver.id,
                        name=approver.name,
                        role=RequisitionStepRole.FINAL.value,
                        order=FINAL_STEP_ORDER,
                        status=REQUISITION_STEP_WORKFLOW.initial_state,
                        created_by_id=actor_id,
                    )
                )
            self._session.flush()

            self._notifier.notify_many(
                [a.id for a in approvers],
                NotificationType.REQUISITION_APPROVAL_REQUEST,
                "Job Requisition Approval",
                f"{requisition.req_code} ({requisition.title}) awaits your final approval.",
                link=_LINK,
                related_entity_id=requisition.id,
            )
            self._auditor.record(
                "JobRequisition", requisition.id, AuditAction.ASSIGN, actor_id,
                details=f"Final approvers: {', '.join(a.name for a in approvers)}",
                payload={"approver_ids": [a.id for a in approvers]},
            )
        return requisition.to_dto()

    def reject_step(self, requisition_id: UUID, actor_id: UUID, reason: str) -> JobRequisition:
        """Reject the actor's pending step; the whole requisition is rejected."""
        if not reason or not reason.strip():
            raise RequiredFieldError("reason", "JobRequisition")

        with self._transaction(
            "job_requisition_step_rejected", requisition_id=requisition_id, actor_id=actor_id,
        ):
            self._transitions.claim(
                JobRequisitionModel, requisition_id,
                (JobRequisitionStatus.PENDING_APPROVAL.value,), "reject_step",
            )
            step = self._own_pending_step(self._load_steps(requisition_id), actor_id, "reject_step")
            self._transitions.apply(
                JobRequisitionStepModel, step.id, REQUISITION_STEP_WORKFLOW, "reject",
                values={"acted_at": self._clock.now(), "notes": reason.strip()},
            )
            requisition = self._transitions.apply(
                JobRequisitionModel, requisition_id, REQUISITION_WORKFLOW, "reject",
            )
            self._notify_creator(
                requisition, "Job Requisition Rejected",
                f"was rejected by {step.name}. Reason: {reason.strip()}",
            )
            self._auditor.record(
                "JobRequisition", requisition.id, AuditAction.REJECT, actor_id,
                details=f"{step.role.upper()} step rejected by {step.name}",
                payload={"step_id": step.id, "reason": reason.strip()},
            )
        return requisition.to_dto()

    def close(self, requisition_id: UUID, actor_id: UUID) -> JobRequisition:
        """Close a filled or abandoned requisition (HR only)."""
        with self._transaction(
            "job_requisition_closed", requisition_id=requisition_id, actor_id=actor_id,
        ):
            self._directory.require_role(actor_id, self._config.hr_roles, "close_requisition")
            requisition = self._transitions.apply(
                JobRequisitionModel, requisition_id, REQUISITION_WORKFLOW, "close",
            )
            self._notify_creator(requisition, "Job Requisition Closed", "has been closed.")
            self._auditor.record(
                "JobRequisition", requisition.id, AuditAction.CLOSE, actor_id,
                details=f"{requisition.req_code} closed",
            )
        return requisition.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get(self, requisition_id: UUID) -> JobRequisition:
        return self._requisitions.require(requisition_id).to_dto()

    def list_by_status(self, *statuses: JobRequisitionStatus) -> list[JobRequisition]:
        rows = self._requisitions.list_by_status(
            *(s.value for s in statuses), order_by=JobRequisitionModel.created_at,
        )
        return [r.to_dto() for r in rows]

    def list_for_creator(self, creator_id: UUID) -> list[JobRequisition]:
        rows = self._requisitions.list_where(
            JobRequisitionModel.created_by_id == creator_id,
            order_by=JobRequisitionModel.created_at,
        )
        return [r.to_dto() for r in rows]

    def list_awaiting(self, user_id: UUID) -> list[JobRequisition]:
        """Requisitions under review with a pending step for ``user_id``."""
        stmt = (
            select(JobRequisitionModel)
            .join(JobRequisitionStepModel)
            .where(
                JobRequisitionModel.status == JobRequisitionStatus.PENDING_APPROVAL.value,
                JobRequisitionStepModel.user_id == user_id,
                JobRequisitionStepModel.status == RequisitionStepStatus.PENDING.value,
            )
            .distinct()
            .order_by(JobRequisitionModel.created_at)
        )
        return [m.to_dto() for m in self._session.execute(stmt).scalars().all()]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _require_creator_or_hr(
        self, requisition: JobRequisitionModel, actor_id: UUID, action: str,
    ) -> None:
        if requisition.created_by_id == actor_id:
            return
        self._directory.require_role(actor_id, self._config.hr_roles, action)

    def _resolve_final_approvers(self, approver_ids: list[UUID]):
        if not approver_ids:
            raise InvalidRoutingError("JobRequisition", "at least one final approver is required")
        approvers = []
        for approver_id in approver_ids:
            user = self._directory.get(approver_id)
            if user is None or not user.is_active:
                raise InvalidRoutingError("JobRequisition", f"unknown approver {approver_id}")
            if user.role not in self._config.board_roles:
                raise InvalidRoutingError(
                    "JobRequisition", f"{user.name} does not hold a board role",
                )
            approvers.append(user)
        if not any(a.role == Role.BOD.value for a in approvers):
            raise InvalidRoutingError(
                "JobRequisition", "final approvers must include a board director",
            )
        return approvers

    def _load_steps(self, requisition_id: UUID) -> list[JobRequisitionStepModel]:
        """Steps as committed, overwriting any stale identity-map copies."""
        return list(
            self._session.execute(
                select(JobRequisitionStepModel)
                .where(JobRequisitionStepModel.requisition_id == requisition_id)
                .order_by(JobRequisitionStepModel.order)
                .execution_options(populate_existing=True)
            ).scalars().all()
        )

    def _own_pending_step(
        self,
        steps: list[JobRequisitionStepModel],
        actor_id: UUID,
        action: str,
    ) -> JobRequisitionStepModel:
        for step in steps:
            if step.user_id == actor_id and step.status == RequisitionStepStatus.PENDING.value:
                return step
        raise UnauthorizedActorError(
            str(actor_id), action, "no pending requisition step for this actor",
        )

    def _notify_creator(self, requisition: JobRequisitionModel, title: str, outcome: str) -> None:
        self._notifier.notify(
            requisition.created_by_id,
            NotificationType.REQUISITION_UPDATE,
            title,
            f"Your requisition {requisition.req_code} ({requisition.title}) {outcome}",
            link=_LINK,
            related_entity_id=requisition.id,
        )
