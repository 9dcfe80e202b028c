"""
Tests for certificate of employment requests, templates and documents.
"""

from datetime import date
from decimal import Decimal

import pytest

from hris_kernel.exceptions import (
    EntityNotFoundError,
    InvalidTransitionError,
    RequiredFieldError,
    UnauthorizedActorError,
    ValidationError,
)
from hris_kernel.models.notification import NotificationType
from hris_kernel.utils.signing import verify_signed_url
from hris_modules.coe import COEPurpose, COERequestStatus
from hris_modules.coe.helpers import long_date, purpose_text, salary_text, unknown_placeholders
from hris_modules.employees import Role

BODY = (
    "This is to certify that {{employee_name}} has been employed as {{position}} "
    "since {{date_hired}} with a monthly salary of {{salary}}. This certificate is "
    "issued on {{date_today}} for {{purpose}}."
)


@pytest.fixture
def template(coe_service, hr_manager):
    return coe_service.save_template(
        hr_manager.id, "Acme Holdings", BODY, "Dana Cruz", "HR Manager",
        address="1 Ayala Ave, Makati",
    )


@pytest.fixture
def visa_request(coe_service, employee1):
    return coe_service.request_certificate(employee1.id, COEPurpose.VISA_APPLICATION)


class TestRequests:

    def test_request_notifies_hr(self, notifier, admin, hr_manager, hr_staff, visa_request):
        assert visa_request.status is COERequestStatus.PENDING
        assert visa_request.business_unit == "Acme Holdings"
        for reviewer in (admin, hr_manager, hr_staff):
            inbox = notifier.list_for_user(reviewer.id)
            assert inbox[0].title == "New COE Request"
            assert "visa application" in inbox[0].message

    def test_approve(self, coe_service, notifier, hr_manager, employee1, visa_request):
        approved = coe_service.approve(visa_request.id, hr_manager.id)
        assert approved.status is COERequestStatus.APPROVED
        assert approved.approved_by_id == hr_manager.id
        assert approved.generated_document_url == f"coe/{visa_request.id}.html"
        titles = [n.title for n in notifier.list_for_user(employee1.id)
                  if n.type == NotificationType.COE_UPDATE.value]
        assert titles == ["COE Approved"]

    def test_reject(self, coe_service, hr_manager, visa_request):
        rejected = coe_service.reject(visa_request.id, hr_manager.id, "Incomplete records")
        assert rejected.status is COERequestStatus.REJECTED
        assert rejected.rejection_reason == "Incomplete records"

    def test_reject_requires_reason(self, coe_service, hr_manager, visa_request):
        with pytest.raises(RequiredFieldError):
            coe_service.reject(visa_request.id, hr_manager.id, "  ")

    def test_decided_request_is_final(self, coe_service, hr_manager, visa_request):
        coe_service.approve(visa_request.id, hr_manager.id)
        with pytest.raises(InvalidTransitionError):
            coe_service.reject(visa_request.id, hr_manager.id, "Changed mind")

    def test_non_hr_cannot_approve(self, coe_service, manager, visa_request):
        with pytest.raises(UnauthorizedActorError):
            coe_service.approve(visa_request.id, manager.id)

    def test_list_by_status(self, coe_service, hr_manager, employee1, employee2, visa_request):
        other = coe_service.request_certificate(employee2.id, COEPurpose.OTHERS, "Bank account")
        coe_service.approve(other.id, hr_manager.id)
        assert [r.id for r in coe_service.list_requests(COERequestStatus.PENDING)] == [visa_request.id]
        assert [r.id for r in coe_service.list_requests(employee_id=employee2.id)] == [other.id]


class TestTemplates:

    def test_unknown_placeholder_rejected(self, coe_service, hr_manager):
        with pytest.raises(ValidationError):
            coe_service.save_template(hr_manager.id, "", "Hello {{nickname}}", "A", "B")

    def test_body_required(self, coe_service, hr_manager):
        with pytest.raises(RequiredFieldError):
            coe_service.save_template(hr_manager.id, "", "", "A", "B")

    def test_activating_deactivates_siblings(self, coe_service, hr_manager, template):
        newer = coe_service.save_template(
            hr_manager.id, "Acme Holdings", "{{employee_name}}", "Dana Cruz", "HR Manager",
        )
        assert coe_service.active_template_for("Acme Holdings").id == newer.id

    def test_falls_back_to_company_wide(self, coe_service, hr_manager):
        default = coe_service.save_template(hr_manager.id, "", BODY, "Dana Cruz", "HR Manager")
        assert coe_service.active_template_for("Other Unit").id == default.id

    def test_no_template(self, coe_service):
        assert coe_service.active_template_for("Acme Holdings") is None

    def test_edit_existing(self, coe_service, hr_manager, template):
        edited = coe_service.save_template(
            hr_manager.id, "Acme Holdings", BODY, "Gina Tan", "General Manager",
            template_id=template.id,
        )
        assert edited.id == template.id
        assert edited.signatory_name == "Gina Tan"


class TestDocuments:

    def test_render(self, coe_service, template, visa_request):
        document = coe_service.render_certificate(visa_request.id)
        assert "Jamie Ocampo has been employed as Software Engineer since March 1, 2021" in document
        assert "PHP 60,000.00" in document
        assert "issued on January 5, 2026 for visa application" in document
        assert "1 Ayala Ave, Makati" in document
        assert "{{" not in document

    def test_values_are_escaped(self, coe_service, employee_service, hr_manager, test_actor_id, template):
        odd = employee_service.register_employee(
            "<b>Sam</b>", "sam@acme.test", Role.EMPLOYEE, test_actor_id, business_unit="Acme Holdings",
        )
        request = coe_service.request_certificate(odd.id, COEPurpose.TRAVEL)
        document = coe_service.render_certificate(request.id)
        assert "&lt;b&gt;Sam&lt;/b&gt;" in document

    def test_render_without_template(self, coe_service, visa_request):
        with pytest.raises(EntityNotFoundError):
            coe_service.render_certificate(visa_request.id)

    def test_rejected_not_rendered(self, coe_service, hr_manager, template, visa_request):
        coe_service.reject(visa_request.id, hr_manager.id, "No")
        with pytest.raises(InvalidTransitionError):
            coe_service.render_certificate(visa_request.id)

    def test_document_url_is_signed(
        self, coe_service, config, deterministic_clock, hr_manager, employee1, visa_request,
    ):
        coe_service.approve(visa_request.id, hr_manager.id)
        url = coe_service.document_url(visa_request.id, employee1.id)
        path = verify_signed_url(
            url,
            bucket=config.storage.documents_bucket,
            secret=config.storage.signing_secret,
            now=deterministic_clock.now(),
        )
        assert path == f"coe/{visa_request.id}.html"

    def test_document_url_needs_approval(self, coe_service, employee1, visa_request):
        with pytest.raises(InvalidTransitionError):
            coe_service.document_url(visa_request.id, employee1.id)

    def test_document_url_for_outsider(self, coe_service, hr_manager, employee2, visa_request):
        coe_service.approve(visa_request.id, hr_manager.id)
        with pytest.raises(UnauthorizedActorError):
            coe_service.document_url(visa_request.id, employee2.id)


class TestHelpers:

    def test_purpose_text(self):
        assert purpose_text(COEPurpose.LOAN_APPLICATION) == "loan application"
        assert purpose_text(COEPurpose.OTHERS, " Condo lease ") == "Condo lease"
        assert purpose_text(COEPurpose.OTHERS) == "personal matters"

    def test_long_date(self):
        assert long_date(date(2026, 1, 5)) == "January 5, 2026"
        assert long_date(None) == ""

    def test_salary_text(self):
        assert salary_text("PHP", Decimal("1234567.5")) == "PHP 1,234,567.50"
        assert salary_text("PHP", None) == "PHP 0.00"

    def test_unknown_placeholders(self):
        assert unknown_placeholders("{{employee_name}} {{shoe_size}}") == ["shoe_size"]
