"""
Asset Management Module Service (``hris_modules.assets.service``).

Responsibility
--------------
Asset registration, assignment and return, repair tracking, retirement,
and the employee asset-request workflow.

Architecture position
---------------------
**Modules layer**.  ``AssetService`` owns the transaction boundary; asset
and request status changes go through the kernel ``StatusTransitioner``.

Invariants enforced
-------------------
* Assigning an available asset creates exactly one open assignment
  (``date_returned`` null) and flips the asset to ``assigned``.  The asset
  CAS and the partial unique index on open assignments both reject a
  second concurrent assignment.
* Returning closes the open assignment and moves the asset to the chosen
  disposition; a repair disposition opens a repair record.
* Acknowledgement of an assignment happens at most once.
"""

from __future__ import annotations

from datetime import date
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select, update
from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import (
    AlreadyAcknowledgedError,
    EntityNotFoundError,
    InvalidTransitionError,
    RequiredFieldError,
    UnauthorizedActorError,
    ValidationError,
)
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_modules.assets.models import (
    Asset,
    AssetAssignment,
    AssetRepair,
    AssetRequest,
    AssetRequestStatus,
    AssetRequestType,
    AssetStatus,
    AssetType,
)
from hris_modules.assets.orm import (
    AssetAssignmentModel,
    AssetModel,
    AssetRepairModel,
    AssetRequestModel,
)
from hris_modules.assets.workflows import ASSET_REQUEST_WORKFLOW, ASSET_WORKFLOW, RETURN_ACTIONS
from hris_modules.employees.orm import EmployeeModel
from hris_modules.employees.selectors import EmployeeDirectory

logger = get_logger("modules.assets.service")

_LINK = "/employees/assets"
_REQUEST_LINK = "/employees/asset-requests"

_EDITABLE_FIELDS = frozenset({"name", "business_unit", "serial_number", "purchase_date", "value", "notes"})


class AssetService(ModuleService):
    """
    Asset custody and asset request workflow.

    Usage::

        service = AssetService(session, config, clock)
        laptop = service.register_asset(hr.id, "LT-001", "ThinkPad X1", AssetType.LAPTOP)
        assignment = service.assign(laptop.id, emp.id, hr.id, condition="New")
        service.acknowledge_assignment(assignment.id, emp.id)
        service.return_asset(laptop.id, hr.id, condition="Good")
    """

    log_scopes = {
        "request_id": ("AssetRequest", ASSET_REQUEST_WORKFLOW.name),
        "assignment_id": ("AssetAssignment", None),
        "asset_id": ("Asset", ASSET_WORKFLOW.name),
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
        self._assets = Repository(session, AssetModel)
        self._requests = Repository(session, AssetRequestModel)

    # ------------------------------------------------------------------
    # Asset registry
    # ------------------------------------------------------------------

    def register_asset(
        self,
        actor_id: UUID,
        asset_tag: str,
        name: str,
        asset_type: AssetType,
        *,
        business_unit: str = "",
        serial_number: str | None = None,
        purchase_date: date | None = None,
        value: Decimal = Decimal("0"),
        notes: str | None = None,
        assign_to: UUID | None = None,
        condition: str = "Good",
    ) -> Asset:
        """Add an asset to the registry, optionally handing it out at once."""
        if not asset_tag or not asset_tag.strip():
            raise RequiredFieldError("asset_tag", "Asset")
        if not name or not name.strip():
            raise RequiredFieldError("name", "Asset")
        if value < 0:
            raise ValidationError(f"Asset value cannot be negative: {value}")

        with self._transaction("asset_registered", asset_tag=asset_tag, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "register_asset")
            asset = self._assets.save(
                AssetModel(
                    asset_tag=asset_tag.strip(),
                    name=name.strip(),
                    asset_type=asset_type.value,
                    business_unit=business_unit,
                    serial_number=serial_number,
                    purchase_date=purchase_date,
                    value=value,
                    notes=notes,
                    status=ASSET_WORKFLOW.initial_state,
                    created_by_id=actor_id,
                )
            )
            self._auditor.record(
                "Asset", asset.id, AuditAction.CREATE, actor_id,
                details=f"Registered {asset.asset_tag} {asset.name}",
                payload={"asset_type": asset_type.value, "value": value},
            )
            if assign_to is not None:
                self._assign(asset.id, assign_to, actor_id, condition)
                asset = self._assets.require(asset.id)
        return asset.to_dto()

    def update_asset(self, asset_id: UUID, actor_id: UUID, **changes) -> Asset:
        """
        Edit descriptive fields.  Status is changed only by lifecycle operations.

        Raises:
            ValidationError: unknown or non-editable field.
        """
        unknown = set(changes) - _EDITABLE_FIELDS
        if unknown:
            raise ValidationError(f"Cannot edit asset fields: {sorted(unknown)}")

        with self._transaction("asset_updated", asset_id=asset_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "update_asset")
            asset = self._assets.require(asset_id)
            for name, value in changes.items():
                setattr(asset, name, value)
            asset.updated_by_id = actor_id
            self._assets.save(asset)
            self._auditor.record(
                "Asset", asset.id, AuditAction.UPDATE, actor_id,
                details=f"Updated {asset.asset_tag}",
                payload=changes,
            )
        return asset.to_dto()

    # ------------------------------------------------------------------
    # Custody
    # ------------------------------------------------------------------

    def assign(
        self,
        asset_id: UUID,
        employee_id: UUID,
        actor_id: UUID,
        condition: str = "Good",
    ) -> AssetAssignment:
        """
        Hand an available asset to an employee.

        Raises:
            InvalidTransitionError: asset is not available.
        """
        with self._transaction("asset_assigned", asset_id=asset_id, employee_id=employee_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "assign_asset")
            assignment = self._assign(asset_id, employee_id, actor_id, condition)
        return assignment.to_dto()

    def acknowledge_assignment(
        self,
        assignment_id: UUID,
        employee_id: UUID,
        signed_document_url: str | None = None,
    ) -> AssetAssignment:
        """
        The holder confirms receipt, optionally attaching the signed policy.

        Raises:
            UnauthorizedActorError: caller is not the holder.
            AlreadyAcknowledgedError: already acknowledged.
            InvalidTransitionError: the asset was returned before acknowledgement.
        """
        with self._transaction(
            "asset_assignment_acknowledged", assignment_id=assignment_id, actor_id=employee_id,
        ):
            assignment = self._session.get(AssetAssignmentModel, assignment_id, populate_existing=True)
            if assignment is None:
                raise EntityNotFoundError("AssetAssignment", str(assignment_id))
            if assignment.employee_id != employee_id:
                raise UnauthorizedActorError(
                    str(employee_id), "acknowledge_assignment", "not the asset holder",
                )
            result = self._session.execute(
                update(AssetAssignmentModel)
                .where(
                    AssetAssignmentModel.id == assignment_id,
                    AssetAssignmentModel.is_acknowledged.is_(False),
                    AssetAssignmentModel.date_returned.is_(None),
                )
                .values(
                    is_acknowledged=True,
                    acknowledged_at=self._clock.now(),
                    signed_document_url=signed_document_url,
                )
                .execution_options(synchronize_session=False)
            )
            assignment = self._session.get(AssetAssignmentModel, assignment_id, populate_existing=True)
            if result.rowcount != 1:
                if assignment.date_returned is not None:
                    raise InvalidTransitionError(
                        "AssetAssignment", str(assignment_id), "returned", "acknowledge_assignment",
                    )
                raise AlreadyAcknowledgedError("AssetAssignment", str(assignment_id))
            self._auditor.record(
                "AssetAssignment", assignment.id, AuditAction.ACKNOWLEDGE, employee_id,
                details="Receipt acknowledged",
                payload={"signed_document_url": signed_document_url},
            )
        return assignment.to_dto()

    def return_asset(
        self,
        asset_id: UUID,
        actor_id: UUID,
        condition: str,
        disposition: AssetStatus = AssetStatus.AVAILABLE,
        manager_proof_url: str | None = None,
        notes: str = "",
    ) -> Asset:
        """
        Close the open assignment and move the asset to ``disposition``.

        Raises:
            ValidationError: disposition is not available / in_repair / retired.
            InvalidTransitionError: asset is not assigned.
        """
        with self._transaction("asset_returned", asset_id=asset_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "return_asset")
            asset = self._return(asset_id, actor_id, condition, disposition, manager_proof_url, notes)
        return asset.to_dto()

    def send_to_repair(self, asset_id: UUID, actor_id: UUID, notes: str = "") -> Asset:
        """Route an unassigned asset to repair."""
        with self._transaction("asset_sent_to_repair", asset_id=asset_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "send_to_repair")
            asset = self._transitions.apply(AssetModel, asset_id, ASSET_WORKFLOW, "send_to_repair")
            self._open_repair(asset.id, actor_id, notes)
            self._auditor.record(
                "Asset", asset.id, AuditAction.UPDATE, actor_id,
                details=f"{asset.asset_tag} sent to repair",
            )
        return asset.to_dto()

    def complete_repair(
        self,
        asset_id: UUID,
        actor_id: UUID,
        notes: str = "",
        cost: Decimal | None = None,
    ) -> Asset:
        """Close the open repair record and return the asset to stock."""
        if cost is not None and cost < 0:
            raise ValidationError(f"Repair cost cannot be negative: {cost}")

        with self._transaction("asset_repair_completed", asset_id=asset_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "complete_repair")
            asset = self._transitions.apply(AssetModel, asset_id, ASSET_WORKFLOW, "complete_repair")
            self._close_repair(asset.id, notes, cost)
            self._auditor.record(
                "Asset", asset.id, AuditAction.UPDATE, actor_id,
                details=f"{asset.asset_tag} repaired",
                payload={"cost": cost},
            )
        return asset.to_dto()

    def retire(self, asset_id: UUID, actor_id: UUID, notes: str = "") -> Asset:
        with self._transaction("asset_retired", asset_id=asset_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "retire_asset")
            was_in_repair = self._assets.require(asset_id).status == AssetStatus.IN_REPAIR.value
            asset = self._transitions.apply(AssetModel, asset_id, ASSET_WORKFLOW, "retire")
            if was_in_repair:
                self._close_repair(asset.id, notes, None)
            self._auditor.record(
                "Asset", asset.id, AuditAction.UPDATE, actor_id,
                details=f"{asset.asset_tag} retired",
            )
        return asset.to_dto()

    # ------------------------------------------------------------------
    # Asset requests
    # ------------------------------------------------------------------

    def request_asset(
        self,
        employee_id: UUID,
        asset_description: str,
        justification: str,
    ) -> AssetRequest:
        """An employee asks for equipment; their manager (or HR) is notified."""
        if not asset_description or not asset_description.strip():
            raise RequiredFieldError("asset_description", "AssetRequest")
        if not justification or not justification.strip():
            raise RequiredFieldError("justification", "AssetRequest")

        with self._transaction("asset_requested", employee_id=employee_id, actor_id=employee_id):
            employee = self._directory.require(employee_id)
            request = self._requests.save(
                AssetRequestModel(
                    request_type=AssetRequestType.REQUEST.value,
                    employee_id=employee.id,
                    employee_name=employee.name,
                    asset_description=asset_description.strip(),
                    justification=justification.strip(),
                    requested_at=self._clock.now(),
                    manager_id=employee.manager_id,
                    status=ASSET_REQUEST_WORKFLOW.initial_state,
                    created_by_id=employee.id,
                )
            )
            self._notifier.notify_many(
                self._request_reviewers(employee),
                NotificationType.ASSET_REQUEST_UPDATE,
                "New Asset Request",
                f"{employee.name} requested: {request.asset_description}",
                link=_REQUEST_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.CREATE, employee.id,
                details=f"Requested {request.asset_description}",
            )
        return request.to_dto()

    def request_return(
        self,
        asset_id: UUID,
        actor_id: UUID,
        justification: str,
    ) -> AssetRequest:
        """Ask the current holder of an asset to hand it back."""
        with self._transaction("asset_return_requested", asset_id=asset_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "request_return")
            asset = self._assets.require(asset_id)
            assignment = self._open_assignment(asset_id)
            if assignment is None:
                raise InvalidTransitionError("Asset", str(asset_id), asset.status, "request_return")
            employee = self._directory.require(assignment.employee_id)
            request = self._requests.save(
                AssetRequestModel(
                    request_type=AssetRequestType.RETURN.value,
                    employee_id=employee.id,
                    employee_name=employee.name,
                    asset_description=f"{asset.asset_tag} {asset.name}",
                    justification=justification or "",
                    requested_at=self._clock.now(),
                    manager_id=actor_id,
                    asset_id=asset.id,
                    status=ASSET_REQUEST_WORKFLOW.initial_state,
                    created_by_id=actor_id,
                )
            )
            self._notifier.notify(
                employee.id,
                NotificationType.ASSET_REQUEST_UPDATE,
                "Asset Return Requested",
                f"Please return {asset.asset_tag} {asset.name}.",
                link=_REQUEST_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.CREATE, actor_id,
                details=f"Return requested for {asset.asset_tag}",
            )
        return request.to_dto()

    def submit_return(
        self,
        request_id: UUID,
        employee_id: UUID,
        notes: str = "",
        proof_url: str | None = None,
    ) -> AssetRequest:
        """The holder reports the asset handed back."""
        with self._transaction("asset_return_submitted", request_id=request_id, actor_id=employee_id):
            current = self._requests.require(request_id)
            if current.employee_id != employee_id:
                raise UnauthorizedActorError(str(employee_id), "submit_return", "not the requester")
            if current.request_type != AssetRequestType.RETURN.value:
                raise InvalidTransitionError(
                    "AssetRequest", str(request_id), current.status, "submit_return",
                )
            request = self._transitions.apply(
                AssetRequestModel, request_id, ASSET_REQUEST_WORKFLOW, "submit_return",
                values={
                    "employee_submission_notes": notes,
                    "employee_proof_url": proof_url,
                    "employee_submitted_at": self._clock.now(),
                },
            )
            if request.manager_id is not None:
                self._notifier.notify(
                    request.manager_id,
                    NotificationType.ASSET_REQUEST_UPDATE,
                    "Asset Return Submitted",
                    f"{request.employee_name} returned {request.asset_description}.",
                    link=_REQUEST_LINK,
                    related_entity_id=request.id,
                )
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.RETURN, employee_id,
                details="Return submitted by employee",
            )
        return request.to_dto()

    def approve_request(self, request_id: UUID, actor_id: UUID, notes: str | None = None) -> AssetRequest:
        with self._transaction("asset_request_approved", request_id=request_id, actor_id=actor_id):
            current = self._requests.require(request_id)
            self._require_request_reviewer(current, actor_id, "approve_request")
            if current.request_type != AssetRequestType.REQUEST.value:
                raise InvalidTransitionError(
                    "AssetRequest", str(request_id), current.status, "approve",
                )
            request = self._transitions.apply(
                AssetRequestModel, request_id, ASSET_REQUEST_WORKFLOW, "approve",
                values={
                    "approved_by_id": actor_id,
                    "approved_at": self._clock.now(),
                    "manager_notes": notes,
                },
            )
            self._notify_requester(request, "Asset Request Approved",
                                   f"Your request for {request.asset_description} was approved.")
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.APPROVE, actor_id,
                details=f"Approved {request.asset_description}",
            )
        return request.to_dto()

    def reject_request(self, request_id: UUID, actor_id: UUID, reason: str) -> AssetRequest:
        if not reason or not reason.strip():
            raise RequiredFieldError("rejection_reason", "AssetRequest")

        with self._transaction("asset_request_rejected", request_id=request_id, actor_id=actor_id):
            current = self._requests.require(request_id)
            self._require_request_reviewer(current, actor_id, "reject_request")
            request = self._transitions.apply(
                AssetRequestModel, request_id, ASSET_REQUEST_WORKFLOW, "reject",
                values={
                    "rejected_by_id": actor_id,
                    "rejected_at": self._clock.now(),
                    "rejection_reason": reason.strip(),
                },
            )
            self._notify_requester(
                request, "Asset Request Rejected",
                f"Your request for {request.asset_description} was rejected. "
                f"Reason: {request.rejection_reason}",
            )
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.REJECT, actor_id,
                details=f"Rejected: {request.rejection_reason}",
            )
        return request.to_dto()

    def fulfill_request(
        self,
        request_id: UUID,
        asset_id: UUID,
        actor_id: UUID,
        condition: str = "Good",
    ) -> AssetRequest:
        """Close an approved request by assigning ``asset_id`` to the requester."""
        with self._transaction("asset_request_fulfilled", request_id=request_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.fulfillment_roles, "fulfill_request")
            request = self._transitions.apply(
                AssetRequestModel, request_id, ASSET_REQUEST_WORKFLOW, "fulfill",
                values={
                    "fulfilled_by_id": actor_id,
                    "fulfilled_at": self._clock.now(),
                    "asset_id": asset_id,
                },
            )
            self._assign(asset_id, request.employee_id, actor_id, condition)
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.FULFILL, actor_id,
                details=f"Fulfilled with asset {asset_id}",
            )
        return request.to_dto()

    def confirm_return(
        self,
        request_id: UUID,
        actor_id: UUID,
        condition: str,
        disposition: AssetStatus = AssetStatus.AVAILABLE,
        manager_proof_url: str | None = None,
    ) -> AssetRequest:
        """Close a return request by performing the asset return."""
        with self._transaction("asset_return_confirmed", request_id=request_id, actor_id=actor_id):
            current = self._requests.require(request_id)
            self._require_request_reviewer(current, actor_id, "confirm_return")
            if current.request_type != AssetRequestType.RETURN.value or current.asset_id is None:
                raise InvalidTransitionError(
                    "AssetRequest", str(request_id), current.status, "confirm_return",
                )
            request = self._transitions.apply(
                AssetRequestModel, request_id, ASSET_REQUEST_WORKFLOW, "confirm_return",
                values={"fulfilled_by_id": actor_id, "fulfilled_at": self._clock.now()},
            )
            self._return(
                request.asset_id, actor_id, condition, disposition,
                manager_proof_url or request.employee_proof_url, request.employee_submission_notes or "",
            )
            self._auditor.record(
                "AssetRequest", request.id, AuditAction.FULFILL, actor_id,
                details="Return confirmed",
            )
        return request.to_dto()

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def get_asset(self, asset_id: UUID) -> Asset:
        return self._assets.require(asset_id).to_dto()

    def list_by_status(self, *statuses: AssetStatus) -> list[Asset]:
        return [m.to_dto() for m in self._assets.list_by_status(*statuses, order_by=AssetModel.asset_tag)]

    def open_assignment(self, asset_id: UUID) -> AssetAssignment | None:
        model = self._open_assignment(asset_id)
        return model.to_dto() if model is not None else None

    def assignment_history(self, asset_id: UUID) -> list[AssetAssignment]:
        """Every custody period of an asset, oldest first."""
        return [
            m.to_dto()
            for m in self._session.execute(
                select(AssetAssignmentModel)
                .where(AssetAssignmentModel.asset_id == asset_id)
                .order_by(AssetAssignmentModel.date_assigned)
            ).scalars().all()
        ]

    def repair_history(self, asset_id: UUID) -> list[AssetRepair]:
        return [
            m.to_dto()
            for m in self._session.execute(
                select(AssetRepairModel)
                .where(AssetRepairModel.asset_id == asset_id)
                .order_by(AssetRepairModel.date_in)
            ).scalars().all()
        ]

    def assets_for_employee(self, employee_id: UUID) -> list[Asset]:
        """Assets the employee currently holds."""
        return [
            m.to_dto()
            for m in self._session.execute(
                select(AssetModel)
                .join(AssetAssignmentModel, AssetAssignmentModel.asset_id == AssetModel.id)
                .where(
                    AssetAssignmentModel.employee_id == employee_id,
                    AssetAssignmentModel.date_returned.is_(None),
                )
                .order_by(AssetModel.asset_tag)
            ).scalars().all()
        ]

    def list_requests(
        self,
        *,
        status: AssetRequestStatus | None = None,
        employee_id: UUID | None = None,
    ) -> list[AssetRequest]:
        criteria = []
        if status is not None:
            criteria.append(AssetRequestModel.status == status.value)
        if employee_id is not None:
            criteria.append(AssetRequestModel.employee_id == employee_id)
        return [
            m.to_dto()
            for m in self._requests.list_where(*criteria, order_by=AssetRequestModel.requested_at)
        ]

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _assign(
        self,
        asset_id: UUID,
        employee_id: UUID,
        actor_id: UUID,
        condition: str,
    ) -> AssetAssignmentModel:
        employee = self._directory.require(employee_id)
        asset = self._transitions.apply(AssetModel, asset_id, ASSET_WORKFLOW, "assign")
        assignment = AssetAssignmentModel(
            asset_id=asset.id,
            employee_id=employee.id,
            date_assigned=self._clock.now(),
            condition_on_assign=condition,
            is_acknowledged=False,
            created_by_id=actor_id,
        )
        self._session.add(assignment)
        self._session.flush()

        self._notifier.notify(
            employee.id,
            NotificationType.ASSET_ASSIGNED,
            "Asset Assigned",
            f"{asset.asset_tag} {asset.name} has been assigned to you. "
            f"Please acknowledge receipt.",
            link=_LINK,
            related_entity_id=assignment.id,
        )
        self._auditor.record(
            "Asset", asset.id, AuditAction.ASSIGN, actor_id,
            details=f"Assigned to {employee.name}",
            payload={"employee_id": employee.id, "assignment_id": assignment.id},
        )
        return assignment

    def _return(
        self,
        asset_id: UUID,
        actor_id: UUID,
        condition: str,
        disposition: AssetStatus,
        manager_proof_url: str | None,
        notes: str,
    ) -> AssetModel:
        action = RETURN_ACTIONS.get(disposition.value)
        if action is None:
            raise ValidationError(f"Cannot return an asset to '{disposition.value}'")

        asset = self._transitions.apply(AssetModel, asset_id, ASSET_WORKFLOW, action)
        assignment = self._open_assignment(asset_id)
        if assignment is None:
            raise InvalidTransitionError("Asset", str(asset_id), asset.status, action)
        self._session.execute(
            update(AssetAssignmentModel)
            .where(
                AssetAssignmentModel.id == assignment.id,
                AssetAssignmentModel.date_returned.is_(None),
            )
            .values(
                date_returned=self._clock.now(),
                condition_on_return=condition,
                manager_proof_url_on_return=manager_proof_url,
            )
            .execution_options(synchronize_session=False)
        )
        self._session.get(AssetAssignmentModel, assignment.id, populate_existing=True)

        if disposition is AssetStatus.IN_REPAIR:
            self._open_repair(asset.id, actor_id, notes or f"Returned in condition: {condition}")

        self._notifier.notify(
            assignment.employee_id,
            NotificationType.ASSET_REQUEST_UPDATE,
            "Asset Returned",
            f"The return of {asset.asset_tag} {asset.name} has been recorded.",
            link=_LINK,
            related_entity_id=asset.id,
        )
        self._auditor.record(
            "Asset", asset.id, AuditAction.RETURN, actor_id,
            details=f"Returned as {disposition.value}",
            payload={
                "assignment_id": assignment.id,
                "condition": condition,
                "disposition": disposition.value,
            },
        )
        return asset

    def _open_assignment(self, asset_id: UUID) -> AssetAssignmentModel | None:
        return self._session.execute(
            select(AssetAssignmentModel)
            .where(
                AssetAssignmentModel.asset_id == asset_id,
                AssetAssignmentModel.date_returned.is_(None),
            )
            .execution_options(populate_existing=True)
        ).scalar_one_or_none()

    def _open_repair(self, asset_id: UUID, actor_id: UUID, notes: str) -> AssetRepairModel:
        repair = AssetRepairModel(
            asset_id=asset_id,
            date_in=self._clock.now(),
            notes=notes or "",
            created_by_id=actor_id,
        )
        self._session.add(repair)
        self._session.flush()
        return repair

    def _close_repair(self, asset_id: UUID, notes: str, cost: Decimal | None) -> None:
        repair = self._session.execute(
            select(AssetRepairModel)
            .where(AssetRepairModel.asset_id == asset_id, AssetRepairModel.date_out.is_(None))
            .order_by(AssetRepairModel.date_in.desc())
            .limit(1)
        ).scalar_one_or_none()
        if repair is None:
            logger.warning("asset_repair_record_missing", extra={"asset_id": str(asset_id)})
            return
        repair.date_out = self._clock.now()
        if notes:
            repair.notes = f"{repair.notes}\n{notes}".strip()
        repair.cost = cost
        self._session.flush()

    def _request_reviewers(self, employee: EmployeeModel) -> list[UUID]:
        if employee.manager_id is not None:
            return [employee.manager_id]
        return self._directory.ids_with_roles(self._config.hr_roles)

    def _require_request_reviewer(self, request: AssetRequestModel, actor_id: UUID, action: str) -> None:
        if request.manager_id == actor_id:
            return
        self._directory.require_role(actor_id, self._config.hr_roles, action)

    def _notify_requester(self, request: AssetRequestModel, title: str, message: str) -> None:
        self._notifier.notify(
            request.employee_id,
            NotificationType.ASSET_REQUEST_UPDATE,
            title,
            message,
            link=_REQUEST_LINK,
            related_entity_id=request.id,
        )
