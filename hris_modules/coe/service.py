"""
COE Module Service (``hris_modules.coe.service``).

Employees request certificates of employment; HR approves or rejects.
Approved certificates are rendered from the business unit's active
template and served through signed storage URLs.
"""

from __future__ import annotations

import html
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    RequiredFieldError,
    ValidationError,
)
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_kernel.utils.signing import sign_storage_url
from hris_kernel.utils.templating import render_placeholders
from hris_modules.coe.helpers import long_date, purpose_text, salary_text, unknown_placeholders
from hris_modules.coe.models import COEPurpose, COERequest, COERequestStatus, COETemplate
from hris_modules.coe.orm import COERequestModel, COETemplateModel
from hris_modules.coe.workflows import COE_REQUEST_WORKFLOW
from hris_modules.employees.selectors import EmployeeDirectory

logger = get_logger("modules.coe.service")

_LINK = "/employees/coe"

_CERTIFICATE_LAYOUT = """<!DOCTYPE html>
<html>
<head><meta charset="utf-8"><title>Certificate of Employment</title></head>
<body style="font-family: 'Times New Roman', serif; font-size: 12pt;">
{{logo}}
<p style="text-align:center">{{address}}</p>
<h1 style="text-align:center">CERTIFICATE OF EMPLOYMENT</h1>
<div style="text-align:justify">{{body}}</div>
<p style="margin-top:64px"><b>{{signatory_name}}</b><br>{{signatory_position}}</p>
</body>
</html>
"""


class COEService(ModuleService):
    """Certificate of employment requests and templates."""

    log_scopes = {
        "template_id": ("COETemplate", None),
        "request_id": ("COERequest", COE_REQUEST_WORKFLOW.name),
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
        self._requests = Repository(session, COERequestModel)
        self._templates = Repository(session, COETemplateModel)

    # ------------------------------------------------------------------
    # Requests
    # ------------------------------------------------------------------

    def request_certificate(
        self,
        employee_id: UUID,
        purpose: COEPurpose,
        other_purpose_detail: str | None = None,
    ) -> COERequest:
        with self._transaction("coe_requested", employee_id=employee_id, actor_id=employee_id):
            employee = self._directory.require(employee_id)
            request = self._requests.save(
                COERequestModel(
                    employee_id=employee.id,
                    employee_name=employee.name,
                    business_unit=employee.business_unit,
                    purpose=purpose.value,
                    other_purpose_detail=other_purpose_detail,
                    date_requested=self._clock.now(),
                    status=COE_REQUEST_WORKFLOW.initial_state,
                    created_by_id=employee.id,
                )
            )
            self._notifier.notify_many(
                self._directory.ids_with_roles(self._config.hr_roles),
                NotificationType.COE_UPDATE,
                "New COE Request",
                f"{employee.name} requested a certificate of employment "
                f"for {purpose_text(purpose, other_purpose_detail)}.",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "COERequest", request.id, AuditAction.CREATE, employee.id,
                details=f"Requested COE for {purpose.value}",
            )
        return request.to_dto()

    def approve(self, request_id: UUID, actor_id: UUID) -> COERequest:
        """Approve and point the request at its generated document."""
        with self._transaction("coe_approved", request_id=request_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "approve_coe")
            request = self._transitions.apply(
                COERequestModel, request_id, COE_REQUEST_WORKFLOW, "approve",
                values={
                    "approved_by_id": actor_id,
                    "approved_at": self._clock.now(),
                    "generated_document_url": f"coe/{request_id}.html",
                },
            )
            self._notifier.notify(
                request.employee_id,
                NotificationType.COE_UPDATE,
                "COE Approved",
                "Your certificate of employment is ready for download.",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "COERequest", request.id, AuditAction.APPROVE, actor_id,
                details="Certificate approved",
                payload={"document": request.generated_document_url},
            )
        return request.to_dto()

    def reject(self, request_id: UUID, actor_id: UUID, reason: str) -> COERequest:
        if not reason or not reason.strip():
            raise RequiredFieldError("rejection_reason", "COERequest")

        with self._transaction("coe_rejected", request_id=request_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "reject_coe")
            request = self._transitions.apply(
                COERequestModel, request_id, COE_REQUEST_WORKFLOW, "reject",
                values={"rejected_by_id": actor_id, "rejection_reason": reason.strip()},
            )
            self._notifier.notify(
                request.employee_id,
                NotificationType.COE_UPDATE,
                "COE Request Rejected",
                f"Your certificate of employment request was rejected. Reason: {reason.strip()}",
                link=_LINK,
                related_entity_id=request.id,
            )
            self._auditor.record(
                "COERequest", request.id, AuditAction.REJECT, actor_id,
                details=f"Rejected: {reason.strip()}",
            )
        return request.to_dto()

    def get_request(self, request_id: UUID) -> COERequest:
        return self._requests.require(request_id).to_dto()

    def list_requests(
        self,
        *statuses: COERequestStatus,
        employee_id: UUID | None = None,
    ) -> list[COERequest]:
        criteria = []
        if statuses:
            criteria.append(COERequestModel.status.in_([s.value for s in statuses]))
        if employee_id is not None:
            criteria.append(COERequestModel.employee_id == employee_id)
        return [
            m.to_dto()
            for m in self._requests.list_where(*criteria, order_by=COERequestModel.date_requested)
        ]

    # ------------------------------------------------------------------
    # Templates
    # ------------------------------------------------------------------

    def save_template(
        self,
        actor_id: UUID,
        business_unit: str,
        body: str,
        signatory_name: str,
        signatory_position: str,
        *,
        template_id: UUID | None = None,
        address: str = "",
        logo_url: str | None = None,
        is_active: bool = True,
    ) -> COETemplate:
        """
        Create or overwrite a template.  Activating one deactivates the
        unit's other templates.

        Raises:
            ValidationError: body uses a placeholder certificates cannot fill.
        """
        if not body or not body.strip():
            raise RequiredFieldError("body", "COETemplate")
        unknown = unknown_placeholders(body)
        if unknown:
            raise ValidationError(f"Unknown certificate placeholders: {unknown}")

        with self._transaction("coe_template_saved", template_id=template_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "save_coe_template")
            if template_id is None:
                template = COETemplateModel(created_by_id=actor_id)
            else:
                template = self._templates.require(template_id)
                template.updated_by_id = actor_id
            template.business_unit = business_unit
            template.body = body
            template.signatory_name = signatory_name
            template.signatory_position = signatory_position
            template.address = address
            template.logo_url = logo_url
            template.is_active = is_active
            self._templates.save(template)

            if is_active:
                self._session.execute(
                    update(COETemplateModel)
                    .where(
                        COETemplateModel.business_unit == business_unit,
                        COETemplateModel.id != template.id,
                        COETemplateModel.is_active.is_(True),
                    )
                    .values(is_active=False)
                    .execution_options(synchronize_session="fetch")
                )
            self._auditor.record(
                "COETemplate", template.id,
                AuditAction.CREATE if template_id is None else AuditAction.UPDATE,
                actor_id,
                details=f"Saved COE template for '{business_unit or 'all units'}'",
            )
        return template.to_dto()

    def active_template_for(self, business_unit: str) -> COETemplate | None:
        """The unit's active template, else the company-wide one."""
        for unit in (business_unit, ""):
            model = self._templates.first_where(
                COETemplateModel.business_unit == unit,
                COETemplateModel.is_active.is_(True),
            )
            if model is not None:
                return model.to_dto()
        return None

    # ------------------------------------------------------------------
    # Documents
    # ------------------------------------------------------------------

    def render_certificate(self, request_id: UUID, template_id: UUID | None = None) -> str:
        """
        HTML certificate for a request.

        Raises:
            InvalidTransitionError: request was rejected.
            EntityNotFoundError: no template for the employee's unit.
        """
        request = self._requests.require(request_id)
        if request.status == COERequestStatus.REJECTED.value:
            raise InvalidTransitionError("COERequest", str(request_id), request.status, "render")

        if template_id is not None:
            template = self._templates.require(template_id).to_dto()
        else:
            template = self.active_template_for(request.business_unit)
            if template is None:
                raise EntityNotFoundError("COETemplate", request.business_unit or "default")

        employee = self._directory.require(request.employee_id)
        body = render_placeholders(
            template.body,
            {
                "employee_name": employee.name,
                "position": employee.position,
                "date_hired": long_date(employee.date_hired),
                "salary": salary_text(self._config.currency, employee.salary_basic),
                "purpose": purpose_text(COEPurpose(request.purpose), request.other_purpose_detail),
                "date_today": long_date(self._clock.today()),
            },
        )
        logo = (
            f'<p style="text-align:center"><img src="{html.escape(template.logo_url)}" alt="Logo"></p>'
            if template.logo_url else ""
        )
        return render_placeholders(
            _CERTIFICATE_LAYOUT,
            {
                "logo": logo,
                "address": html.escape(template.address),
                "body": body,
                "signatory_name": html.escape(template.signatory_name),
                "signatory_position": html.escape(template.signatory_position),
            },
            escape=False,
        )

    def document_url(self, request_id: UUID, actor_id: UUID) -> str:
        """
        Signed download URL for an approved certificate.

        Raises:
            UnauthorizedActorError: actor is neither the requester nor HR.
            InvalidTransitionError: certificate not approved.
        """
        request = self._requests.require(request_id)
        if request.employee_id != actor_id:
            self._directory.require_role(actor_id, self._config.hr_roles, "download_coe")
        if request.status != COERequestStatus.APPROVED.value or not request.generated_document_url:
            raise InvalidTransitionError("COERequest", str(request_id), request.status, "download")

        storage = self._config.storage
        url = sign_storage_url(
            storage.documents_bucket,
            request.generated_document_url,
            secret=storage.signing_secret,
            base_url=storage.base_url,
            now=self._clock.now(),
            ttl_seconds=storage.signed_url_ttl_seconds,
        )
        logger.info(
            "coe_document_url_signed",
            extra={"request_id": str(request_id), "actor_id": str(actor_id)},
        )
        return url
