"""
Benefits Module Service (``hris_modules.benefits.service``).

Responsibility
--------------
Benefit catalogue maintenance and the request workflow
HR -> optional Board -> Fulfillment.

Architecture position
---------------------
**Modules layer**.  ``BenefitService`` is the sole public entry point for
benefit operations.  Validation is delegated to ``helpers``, status changes
to the kernel ``StatusTransitioner``.

Invariants enforced
-------------------
* A request whose type requires board approval is never approved by HR;
  HR approval moves it to ``pending_bod`` and needs at least one reviewer
  holding a board role.
* Only selected reviewers act at the board step; one approval suffices.
* Every transition is a compare-and-swap on the current status, so a
  double click or two concurrent approvers fail with
  ``InvalidTransitionError`` instead of notifying twice.
* Status change, notifications and audit entry commit together.

Failure modes
-------------
* Validation errors  -> nothing written.
* ``UnauthorizedActorError``  -> actor lacks the role for the step.
* ``InvalidTransitionError``  -> request is no longer in the source state.
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
from hris_kernel.exceptions import (
    InvalidRoutingError,
    RequiredFieldError,
    UnauthorizedActorError,
    ValidationError,
)
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_modules.benefits.helpers import (
    format_amount,
    route_after_hr,
    validate_benefit_request,
)
from hris_modules.benefits.models import (
    BenefitRequest,
    BenefitRequestStatus,
    BenefitType,
)
from hris_modules.benefits.orm import (
    BenefitBoardReviewerModel,
    BenefitRequestModel,
    BenefitTypeModel,
)
from hris_modules.benefits.workflows import BENEFIT_REQUEST_WORKFLOW
from hris_modules.employees.selectors import EmployeeDirectory

logger = get_logger("modules.benefits.service")

_UNCHANGED = object()

_LINK = "/employees/benefits"


class BenefitService(ModuleService):
    """
    Orchestrates benefit catalogue and request operations.

    Usage::

        service = BenefitService(session, config, clock)
        request = service.submit_request(emp.id, laptop.id, Decimal("40000"),
                                         "Replacement laptop")
        service.hr_approve(request.id, hr.id, board_reviewer_ids=[bod.id])
        service.board_approve(request.id, bod.id)
        service.fulfill(request.id, hr.id, voucher_code="V-100")
    """

    log_scopes = {
        "request_id": ("BenefitRequest", BENEFIT_REQUEST_WORKFLOW.name),
        "benefit_type_id": ("BenefitType", None),
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
        self._types = Repository(session, BenefitTypeModel)
        self._requests = Repository(session, BenefitRequestModel)

    # ------------------------------------------------------------------
    # Benefit types
    # ------------------------------------------------------------------

    def define_benefit_type(
        self,
        name: str,
        actor_id: UUID,
        *,
        description: str = "",
        max_value: Decimal | None = None,
        requires_bod_approval: bool = False,
    ) -> BenefitType:
        if not name or not name.strip():
            raise RequiredFieldError("name", "BenefitType")
        if max_value is not None and max_value <= 0:
            raise ValidationError(f"max_value must be positive, got {max_value}")

        with self._transaction("benefit_type_defined", name=name, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "define_benefit_type")
            model = self._types.save(
                BenefitTypeModel(
                    name=name.strip(),
                    description=description,
                    max_value=max_value,
                    requires_bod_approval=requires_bod_approval,
                    is_active=True,
                    created_by_id=actor_id,
                )
            )
            self._auditor.record(
                "BenefitType", model.id, AuditAction.CREATE, actor_id,
                details=f"Defined benefit type {model.name}",
                payload={
                    "max_value": max_value,
                    "requires_bod_approval": requires_bod_approval,
                },
            )
        return model.to_dto()

    def update_benefit_type(
        self,
        benefit_type_id: UUID,
        actor_id: UUID,
        *,
        name: str | None = None,
        description: str | None = None,
        max_value: Decimal | None | object = _UNCHANGED,
        requires_bod_approval: bool | None = None,
    ) -> BenefitType:
        """Edit a benefit type; pending requests keep their routing."""
        with self._transaction(
            "benefit_type_updated", benefit_type_id=benefit_type_id, actor_id=actor_id,
        ):
            self._directory.require_role(actor_id, self._config.hr_roles, "update_benefit_type")
            model = self._types.require(benefit_type_id)
            changed: dict[str, object] = {}
            if name is not None and name.strip() and name.strip() != model.name:
                model.name = name.strip()
                changed["name"] = model.name
            if description is not None and description != model.description:
                model.description = description
                changed["description"] = description
            if max_value is not _UNCHANGED:
                if max_value is not None and max_value <= 0:
                    raise ValidationError(f"max_value must be positive, got {max_value}")
                model.max_value = max_value
                changed["max_value"] = max_value
            if requires_bod_approval is not None:
                model.requires_bod_approval = requires_bod_approval
                changed["requires_bod_approval"] = requires_bod_approval
            model.updated_by_id = actor_id
            self._types.save(model)
            self._auditor.record(
                "BenefitType", model.id, AuditAction.UPDATE, actor_id,
                details=f"Updated benefit type {model.name}",
                payload=changed,
            )
        return model.to_dto()

    def deactivate_benefit_type(self, benefit_type_id: UUID, actor_id: UUID) -> BenefitType:
        """Stop accepting new requests for a type."""
        with self._transaction(
            "benefit_type_deactivated", benefit_type_id=benefit_type_id, actor_id=actor_id,
        ):
            self._directory.require_role(
                actor_id, self._config.hr_roles, "deactivate_benefit_type",
            )
            model = self._types.require(benefit_type_id)
            model.is_active = False
            model.updated_by_id = actor_id
            self._types.save(model)
            self._auditor.record(
                "BenefitType", model.id, AuditAction.UPDATE, actor_id,
                details=f"Deactivated benefit type {model.name}",
            )
        return model.to_dto()

    def list_benefit_types(self, active_only: bool = False) -> list[BenefitType]:
        criteria = [BenefitTypeModel.is_active.is_(True)] if active_only else []
        return [
            m.to_dto()
            for m in self._types.list_where(*criteria, order_by=BenefitTypeModel.name)
        ]

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def submit_request(
        self,
        employee_id: UUID,
        benefit_type_id: UUID,
        amount: Decimal | None,
        details: str,
        date_needed: date | None = None,
    ) -> BenefitRequest:
        """
        File a request in ``pending_hr``.

        Raises:
            BenefitLimitExceededError: amount above the type's maximum.
            InvalidAmountError / RequiredFieldError / InactiveBenefitTypeError
        """
        with self._transaction(
            "benefit_request_submitted",
            employee_id=employee_id, requested_type_id=benefit_type_id, actor_id=employee_id,
        ):
            employee = self._directory.require(employee_id)
            benefit_type = self._types.require(benefit_type_id)
            validate_benefit_request(benefit_type.to_dto(), amount, details)

            model = self._requests.save(
                BenefitRequestModel(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    benefit_type_id=benefit_type.id,
                    benefit_type_name=benefit_type.name,
                    amount=amount,
                    details=details.strip(),
                    date_needed=date_needed,
                    submission_date=self._clock.now(),
                    status=BENEFIT_REQUEST_WORKFLOW.initial_state,
                    created_by_id=employee.id,
                )
            )
            self._auditor.record(
                "BenefitRequest", model.id, AuditAction.CREATE, employee.id,
                details=f"Requested {benefit_type.name}",
                payload={"amount": amount, "benefit_type_id": benefit_type.id},
            )
        return model.to_dto()

    def hr_approve(
        self,
        request_id: UUID,
        actor_id: UUID,
        board_reviewer_ids: Iterable[UUID] = (),
    ) -> BenefitRequest:
        """
        HR decision on a ``pending_hr`` request.

        Types requiring board approval go to ``pending_bod`` and every
        selected reviewer is notified; other types are approved and the
        requester is notified.

        Raises:
            InvalidRoutingError: board approval required but no reviewer
                selected, or a reviewer lacks a board role.
        """
        with self._transaction("benefit_request_hr_approved", request_id=request_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "hr_approve")
            request = self._requests.require(request_id)
            benefit_type = self._types.require(request.benefit_type_id)
            action = route_after_hr(benefit_type.to_dto())

            reviewer_ids: list[UUID] = []
            if action == "endorse_to_board":
                reviewer_ids = self._validate_reviewers(board_reviewer_ids)

            now = self._clock.now()
            request = self._transitions.apply(
                BenefitRequestModel, request_id, BENEFIT_REQUEST_WORKFLOW, action,
                values={"hr_endorsed_by_id": actor_id, "hr_endorsed_at": now},
            )
            amount_text = format_amount(request.amount, self._config.currency)

            if action == "endorse_to_board":
                for reviewer_id in reviewer_ids:
                    request.reviewers.append(
                        BenefitBoardReviewerModel(reviewer_id=reviewer_id, created_by_id=actor_id)
                    )
                self._session.flush()
                self._notifier.notify_many(
                    reviewer_ids,
                    NotificationType.BENEFIT_APPROVAL_REQUEST,
                    "Benefit Approval Required",
                    f"{request.employee_name} requested {request.benefit_type_name} "
                    f"({amount_text}). HR has endorsed it for your approval.",
                    link=_LINK,
                    related_entity_id=request.id,
                )
                self._auditor.record(
                    "BenefitRequest", request.id, AuditAction.ENDORSE, actor_id,
                    details=f"Endorsed to board ({len(reviewer_ids)} reviewer(s))",
                    payload={"reviewer_ids": reviewer_ids},
                )
            else:
                self._notifier.notify(
                    request.employee_id,
                    NotificationType.BENEFIT_UPDATE,
                    "Benefit Request Approved",
                    f"Your request for {request.benefit_type_name} was approved by HR.",
                    link=_LINK,
                    related_entity_id=request.id,
                )
                self._auditor.record(
                    "BenefitRequest", request.id, AuditAction.APPROVE, actor_id,
                    details=f"HR approved {request.benefit_type_name}",
                )
        return request.to_dto()

    def board_approve(self, request_id: UUID, actor_id: UUID) -> BenefitRequest:
        """A selected board reviewer approves a ``pending_bod`` request."""
        with self._transaction("benefit_request_board_approved", request_id=request_id, actor_id=actor_id):
            self._requests.require(request_id)
            self._require_selected_reviewer(request_id, actor_id, "board_approve")

            request = self._transitions.apply(
                BenefitRequestModel, request_id, BENEFIT_REQUEST_WORKFLOW, "board_approve",
                values={"bod_approved_by_id": actor_id, "bod_approved_at": self._clock.now()},
            )
            self._notifier.notify(
                request.employee_id,
                NotificationType.BENEFIT_UPDATE,
                "Benefit Request Approved",
                f"Your request for {request.benefit_type_name} was approved by the board.",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._notifier.notify_many(
                self._directory.ids_with_roles(self._config.fulfillment_roles),
                NotificationType.BENEFIT_FULFILLMENT,
                "Benefit Ready for Fulfillment",
                f"{request.benefit_type_name} for {request.employee_name} is approved "
                f"and ready for fulfillment.",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "BenefitRequest", request.id, AuditAction.APPROVE, actor_id,
                details=f"Board approved {request.benefit_type_name}",
            )
        return request.to_dto()

    def reject(self, request_id: UUID, actor_id: UUID, reason: str) -> BenefitRequest:
        """
        Reject a pending request.

        HR may reject at either pending step; a selected board reviewer may
        reject at the board step.
        """
        if not reason or not reason.strip():
            raise RequiredFieldError("rejection_reason", "BenefitRequest")

        with self._transaction("benefit_request_rejected", request_id=request_id, actor_id=actor_id):
            current = self._requests.require(request_id)
            if not self._directory.has_role(actor_id, self._config.hr_roles):
                self._require_selected_reviewer(request_id, actor_id, "reject")
                if current.status != BenefitRequestStatus.PENDING_BOD.value:
                    raise UnauthorizedActorError(
                        str(actor_id), "reject", "board reviewers act only at the board step",
                    )

            request = self._transitions.apply(
                BenefitRequestModel, request_id, BENEFIT_REQUEST_WORKFLOW, "reject",
                values={
                    "rejected_by_id": actor_id,
                    "rejected_at": self._clock.now(),
                    "rejection_reason": reason.strip(),
                },
                expected_version=current.version,
            )
            self._notifier.notify(
                request.employee_id,
                NotificationType.BENEFIT_UPDATE,
                "Benefit Request Rejected",
                f"Your request for {request.benefit_type_name} was rejected. "
                f"Reason: {request.rejection_reason}",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "BenefitRequest", request.id, AuditAction.REJECT, actor_id,
                details=f"Rejected: {request.rejection_reason}",
            )
        return request.to_dto()

    def fulfill(
        self,
        request_id: UUID,
        actor_id: UUID,
        voucher_code: str | None = None,
    ) -> BenefitRequest:
        """Close an approved request, optionally recording a voucher."""
        voucher_code = voucher_code.strip() if voucher_code and voucher_code.strip() else None
        with self._transaction("benefit_request_fulfilled", request_id=request_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.fulfillment_roles, "fulfill")
            request = self._transitions.apply(
                BenefitRequestModel, request_id, BENEFIT_REQUEST_WORKFLOW, "fulfill",
                values={
                    "fulfilled_by_id": actor_id,
                    "fulfilled_at": self._clock.now(),
                    "voucher_code": voucher_code,
                },
            )
            suffix = f" Voucher code: {voucher_code}." if voucher_code else ""
            self._notifier.notify(
                request.employee_id,
                NotificationType.BENEFIT_UPDATE,
                "Benefit Fulfilled",
                f"Your {request.benefit_type_name} has been fulfilled.{suffix}",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "BenefitRequest", request.id, AuditAction.FULFILL, actor_id,
                details=f"Fulfilled {request.benefit_type_name}",
                payload={"voucher_code": voucher_code},
            )
        return request.to_dto()

    def cancel(self, request_id: UUID, actor_id: UUID) -> BenefitRequest:
        """The requester withdraws a pending request."""
        with self._transaction("benefit_request_cancelled", request_id=request_id, actor_id=actor_id):
            current = self._requests.require(request_id)
            if current.employee_id != actor_id:
                raise UnauthorizedActorError(
                    str(actor_id), "cancel", "only the requester may cancel",
                )
            request = self._transitions.apply(
                BenefitRequestModel, request_id, BENEFIT_REQUEST_WORKFLOW, "cancel",
            )
            self._auditor.record(
                "BenefitRequest", request.id, AuditAction.CANCEL, actor_id,
                details=f"Cancelled request for {request.benefit_type_name}",
            )
        return request.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_request(self, request_id: UUID) -> BenefitRequest:
        return self._requests.require(request_id).to_dto()

    def list_by_status(self, *statuses: BenefitRequestStatus) -> list[BenefitRequest]:
        return [
            m.to_dto()
            for m in self._requests.list_by_status(
                *statuses, order_by=BenefitRequestModel.submission_date,
            )
        ]

    def list_for_employee(self, employee_id: UUID) -> list[BenefitRequest]:
        return [
            m.to_dto()
            for m in self._requests.list_where(
                BenefitRequestModel.employee_id == employee_id,
                order_by=BenefitRequestModel.submission_date.desc(),
            )
        ]

    def list_for_reviewer(self, reviewer_id: UUID, pending_only: bool = True) -> list[BenefitRequest]:
        """Requests on which ``reviewer_id`` was selected as a board reviewer."""
        stmt = (
            select(BenefitRequestModel)
            .join(BenefitBoardReviewerModel)
            .where(BenefitBoardReviewerModel.reviewer_id == reviewer_id)
            .order_by(BenefitRequestModel.submission_date)
        )
        if pending_only:
            stmt = stmt.where(
                BenefitRequestModel.status == BenefitRequestStatus.PENDING_BOD.value,
            )
        return [m.to_dto() for m in self._session.execute(stmt).scalars().all()]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _validate_reviewers(self, reviewer_ids: Iterable[UUID]) -> list[UUID]:
        unique: list[UUID] = []
        for reviewer_id in reviewer_ids:
            if reviewer_id not in unique:
                unique.append(reviewer_id)
        if not unique:
            raise InvalidRoutingError(
                "BenefitRequest", "board approval requires at least one reviewer",
            )
        for reviewer_id in unique:
            if not self._directory.has_role(reviewer_id, self._config.board_roles):
                raise InvalidRoutingError(
                    "BenefitRequest", f"{reviewer_id} does not hold a board role",
                )
        return unique

    def _require_selected_reviewer(self, request_id: UUID, actor_id: UUID, action: str) -> None:
        selected = self._session.execute(
            select(BenefitBoardReviewerModel.id).where(
                BenefitBoardReviewerModel.request_id == request_id,
                BenefitBoardReviewerModel.reviewer_id == actor_id,
            )
        ).scalar_one_or_none()
        if selected is None:
            raise UnauthorizedActorError(
                str(actor_id), action, "not a selected board reviewer for this request",
            )
