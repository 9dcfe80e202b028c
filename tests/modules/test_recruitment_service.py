"""
Tests for the job requisition workflow.

A hiring manager drafts and submits; the HR manager reviews, chooses the
final approvers from the board, and the requisition is approved once they
all sign off.
"""

from decimal import Decimal

import pytest

from hris_kernel.exceptions import (
    InvalidAmountError,
    InvalidRangeError,
    InvalidRoutingError,
    InvalidTransitionError,
    RequiredFieldError,
    UnauthorizedActorError,
)
from hris_kernel.models.audit_event import AuditAction
from hris_modules.recruitment import (
    EmploymentType,
    JobRequisitionStatus,
    LocationType,
    RequisitionDetails,
    RequisitionStepRole,
    RequisitionStepStatus,
    ReviewStage,
    review_stage,
)

# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def backend_engineer():
    return RequisitionDetails(
        title="  Backend Engineer ",
        department="Engineering",
        business_unit="Acme Holdings",
        justification="Second payments squad",
        headcount=2,
        employment_type=EmploymentType.FULL_TIME,
        location_type=LocationType.HYBRID,
        work_location="Makati",
        budgeted_salary_min=Decimal("70000.00"),
        budgeted_salary_max=Decimal("95000.00"),
    )


@pytest.fixture
def draft(requisition_service, manager, backend_engineer):
    return requisition_service.save_draft(manager.id, backend_engineer)


@pytest.fixture
def submitted(requisition_service, manager, hr_manager, draft):
    return requisition_service.submit(draft.id, manager.id)


@pytest.fixture
def hr_approved(requisition_service, hr_manager, submitted):
    return requisition_service.approve_step(submitted.id, hr_manager.id)


@pytest.fixture
def in_final_review(requisition_service, hr_manager, bod1, general_manager, hr_approved):
    return requisition_service.add_final_approvers(
        hr_approved.id, hr_manager.id, [bod1.id, general_manager.id],
    )


def _titles(notifier, user_id):
    return {n.title for n in notifier.list_for_user(user_id)}


# =============================================================================
# Drafting
# =============================================================================


class TestSaveDraft:

    def test_creates_draft_with_code(self, draft, manager):
        assert draft.status is JobRequisitionStatus.DRAFT
        assert draft.req_code == "REQ-202601-000001"
        assert draft.title == "Backend Engineer"
        assert draft.details.headcount == 2
        assert draft.details.budgeted_salary_max == Decimal("95000.00")
        assert draft.created_by_id == manager.id
        assert draft.routing_steps == ()

    def test_codes_are_sequential(self, requisition_service, manager, draft, backend_engineer):
        second = requisition_service.save_draft(manager.id, backend_engineer)
        assert second.req_code == "REQ-202601-000002"

    def test_edit_keeps_code(self, requisition_service, manager, draft, backend_engineer):
        edited = requisition_service.save_draft(
            manager.id,
            RequisitionDetails(
                title="Senior Backend Engineer",
                department=backend_engineer.department,
                business_unit=backend_engineer.business_unit,
                justification=backend_engineer.justification,
                location_type=LocationType.REMOTE,
                is_urgent=True,
            ),
            requisition_id=draft.id,
        )
        assert edited.req_code == draft.req_code
        assert edited.title == "Senior Backend Engineer"
        assert edited.details.location_type is LocationType.REMOTE
        assert edited.details.headcount == 1
        assert edited.details.is_urgent

    def test_other_employee_cannot_edit(
        self, requisition_service, employee1, draft, backend_engineer,
    ):
        with pytest.raises(UnauthorizedActorError):
            requisition_service.save_draft(employee1.id, backend_engineer, requisition_id=draft.id)

    def test_hr_can_edit(self, requisition_service, hr_staff, draft, backend_engineer):
        edited = requisition_service.save_draft(
            hr_staff.id, backend_engineer, requisition_id=draft.id,
        )
        assert edited.status is JobRequisitionStatus.DRAFT

    @pytest.mark.parametrize("field_name", ["title", "department", "business_unit", "justification"])
    def test_required_fields(self, requisition_service, manager, backend_engineer, field_name):
        values = {
            "title": backend_engineer.title,
            "department": backend_engineer.department,
            "business_unit": backend_engineer.business_unit,
            "justification": backend_engineer.justification,
            field_name: "   ",
        }
        with pytest.raises(RequiredFieldError) as exc_info:
            requisition_service.save_draft(manager.id, RequisitionDetails(**values))
        assert exc_info.value.field_name == field_name

    def test_headcount_must_be_positive(self, requisition_service, manager):
        details = RequisitionDetails(
            title="Intern", department="Engineering", business_unit="Acme Holdings",
            justification="Summer", headcount=0,
        )
        with pytest.raises(InvalidAmountError):
            requisition_service.save_draft(manager.id, details)

    def test_salary_range_order(self, requisition_service, manager):
        details = RequisitionDetails(
            title="Analyst", department="Finance", business_unit="Acme Holdings",
            justification="Backfill", budgeted_salary_min=Decimal("50000"),
            budgeted_salary_max=Decimal("40000"),
        )
        with pytest.raises(InvalidRangeError):
            requisition_service.save_draft(manager.id, details)
        assert requisition_service.list_for_creator(manager.id) == []


# =============================================================================
# Submission
# =============================================================================


class TestSubmit:

    def test_routes_to_hr_manager(self, submitted, hr_manager):
        assert submitted.status is JobRequisitionStatus.PENDING_APPROVAL
        (step,) = submitted.routing_steps
        assert step.user_id == hr_manager.id
        assert step.role is RequisitionStepRole.HR
        assert step.order == 1
        assert step.status is RequisitionStepStatus.PENDING

    def test_hr_manager_notified(self, submitted, hr_manager, notifier):
        assert "Job Requisition Review" in _titles(notifier, hr_manager.id)

    def test_without_hr_manager(self, requisition_service, manager, draft):
        with pytest.raises(InvalidRoutingError):
            requisition_service.submit(draft.id, manager.id)
        assert requisition_service.get(draft.id).status is JobRequisitionStatus.DRAFT

    def test_only_creator_or_hr(self, requisition_service, employee1, hr_manager, draft):
        with pytest.raises(UnauthorizedActorError):
            requisition_service.submit(draft.id, employee1.id)

    def test_cannot_submit_twice(self, requisition_service, manager, submitted):
        with pytest.raises(InvalidTransitionError):
            requisition_service.submit(submitted.id, manager.id)
        assert len(requisition_service.get(submitted.id).routing_steps) == 1

    def test_edit_after_submit_refused(
        self, requisition_service, manager, submitted, backend_engineer,
    ):
        with pytest.raises(InvalidTransitionError):
            requisition_service.save_draft(manager.id, backend_engineer, requisition_id=submitted.id)


# =============================================================================
# Review
# =============================================================================


class TestApproveStep:

    def test_hr_approval_awaits_final_approvers(
        self, admin, requisition_service, hr_approved, hr_manager, notifier,
    ):
        assert hr_approved.status is JobRequisitionStatus.PENDING_APPROVAL
        assert review_stage(hr_approved.routing_steps) is ReviewStage.AWAITING_FINAL_APPROVERS
        assert "Final Approvers Needed" in _titles(notifier, admin.id)
        assert "Final Approvers Needed" in _titles(notifier, hr_manager.id)

    def test_final_approvers_added(self, in_final_review, bod1, general_manager, notifier):
        finals = [s for s in in_final_review.routing_steps if s.role is RequisitionStepRole.FINAL]
        assert {s.user_id for s in finals} == {bod1.id, general_manager.id}
        assert {s.order for s in finals} == {2}
        assert "Job Requisition Approval" in _titles(notifier, bod1.id)

    def test_approved_when_all_finals_sign(
        self, requisition_service, in_final_review, bod1, general_manager, manager, notifier,
    ):
        after_bod = requisition_service.approve_step(in_final_review.id, bod1.id)
        assert after_bod.status is JobRequisitionStatus.PENDING_APPROVAL

        approved = requisition_service.approve_step(
            in_final_review.id, general_manager.id, notes="Budget confirmed",
        )
        assert approved.status is JobRequisitionStatus.APPROVED
        assert all(s.status is RequisitionStepStatus.APPROVED for s in approved.routing_steps)
        assert "Job Requisition Approved" in _titles(notifier, manager.id)

    def test_not_approved_without_finals(self, hr_approved):
        assert hr_approved.status is not JobRequisitionStatus.APPROVED

    def test_actor_without_step(self, requisition_service, submitted, bod1):
        with pytest.raises(UnauthorizedActorError):
            requisition_service.approve_step(submitted.id, bod1.id)

    def test_step_decided_once(self, requisition_service, hr_manager, hr_approved):
        with pytest.raises(UnauthorizedActorError):
            requisition_service.approve_step(hr_approved.id, hr_manager.id)

    def test_draft_cannot_be_approved(self, requisition_service, hr_manager, draft):
        with pytest.raises(InvalidTransitionError):
            requisition_service.approve_step(draft.id, hr_manager.id)

    def test_awaiting_list(self, requisition_service, in_final_review, bod1, hr_manager):
        assert [r.id for r in requisition_service.list_awaiting(bod1.id)] == [in_final_review.id]
        assert requisition_service.list_awaiting(hr_manager.id) == []


class TestAddFinalApprovers:

    def test_before_hr_review(self, requisition_service, hr_manager, bod1, submitted):
        with pytest.raises(InvalidRoutingError):
            requisition_service.add_final_approvers(submitted.id, hr_manager.id, [bod1.id])

    def test_board_director_required(
        self, requisition_service, hr_manager, general_manager, hr_approved,
    ):
        with pytest.raises(InvalidRoutingError):
            requisition_service.add_final_approvers(
                hr_approved.id, hr_manager.id, [general_manager.id],
            )
        assert review_stage(requisition_service.get(hr_approved.id).routing_steps) is (
            ReviewStage.AWAITING_FINAL_APPROVERS
        )

    def test_board_roles_only(self, requisition_service, hr_manager, bod1, manager, hr_approved):
        with pytest.raises(InvalidRoutingError):
            requisition_service.add_final_approvers(
                hr_approved.id, hr_manager.id, [bod1.id, manager.id],
            )

    def test_empty_list(self, requisition_service, hr_manager, hr_approved):
        with pytest.raises(InvalidRoutingError):
            requisition_service.add_final_approvers(hr_approved.id, hr_manager.id, [])

    def test_only_once(self, requisition_service, hr_manager, bod2, in_final_review):
        with pytest.raises(InvalidRoutingError):
            requisition_service.add_final_approvers(in_final_review.id, hr_manager.id, [bod2.id])

    def test_hr_staff_cannot_route(self, requisition_service, hr_staff, bod1, hr_approved):
        with pytest.raises(UnauthorizedActorError):
            requisition_service.add_final_approvers(hr_approved.id, hr_staff.id, [bod1.id])

    def test_duplicates_collapsed(self, requisition_service, hr_manager, bod1, hr_approved):
        routed = requisition_service.add_final_approvers(
            hr_approved.id, hr_manager.id, [bod1.id, bod1.id],
        )
        finals = [s for s in routed.routing_steps if s.role is RequisitionStepRole.FINAL]
        assert len(finals) == 1


class TestRejectStep:

    def test_hr_rejection(self, requisition_service, hr_manager, manager, submitted, notifier):
        rejected = requisition_service.reject_step(submitted.id, hr_manager.id, " No budget ")
        assert rejected.status is JobRequisitionStatus.REJECTED
        (step,) = rejected.routing_steps
        assert step.status is RequisitionStepStatus.REJECTED
        assert step.notes == "No budget"
        assert "Job Requisition Rejected" in _titles(notifier, manager.id)

    def test_final_rejection_rejects_requisition(
        self, requisition_service, bod1, general_manager, in_final_review,
    ):
        requisition_service.approve_step(in_final_review.id, general_manager.id)
        rejected = requisition_service.reject_step(in_final_review.id, bod1.id, "Hiring freeze")
        assert rejected.status is JobRequisitionStatus.REJECTED
        assert review_stage(rejected.routing_steps) is ReviewStage.REJECTED

    def test_reason_required(self, requisition_service, hr_manager, submitted):
        with pytest.raises(RequiredFieldError):
            requisition_service.reject_step(submitted.id, hr_manager.id, "  ")
        assert requisition_service.get(submitted.id).status is JobRequisitionStatus.PENDING_APPROVAL

    def test_rejected_is_final(self, requisition_service, hr_manager, manager, submitted):
        requisition_service.reject_step(submitted.id, hr_manager.id, "No budget")
        with pytest.raises(InvalidTransitionError):
            requisition_service.approve_step(submitted.id, hr_manager.id)
        with pytest.raises(InvalidTransitionError):
            requisition_service.close(submitted.id, hr_manager.id)


# =============================================================================
# Closing and audit
# =============================================================================


class TestClose:

    def test_close_approved(
        self, requisition_service, in_final_review, bod1, general_manager, hr_staff, manager, notifier,
    ):
        requisition_service.approve_step(in_final_review.id, bod1.id)
        requisition_service.approve_step(in_final_review.id, general_manager.id)
        closed = requisition_service.close(in_final_review.id, hr_staff.id)
        assert closed.status is JobRequisitionStatus.CLOSED
        assert "Job Requisition Closed" in _titles(notifier, manager.id)

    def test_close_abandoned_draft(self, requisition_service, hr_manager, draft):
        assert requisition_service.close(draft.id, hr_manager.id).status is JobRequisitionStatus.CLOSED

    def test_under_review_cannot_close(self, requisition_service, hr_manager, submitted):
        with pytest.raises(InvalidTransitionError):
            requisition_service.close(submitted.id, hr_manager.id)

    def test_hiring_manager_cannot_close(self, requisition_service, manager, draft):
        with pytest.raises(UnauthorizedActorError):
            requisition_service.close(draft.id, manager.id)

    def test_list_by_status(self, requisition_service, hr_manager, draft, submitted):
        assert [r.id for r in requisition_service.list_by_status(JobRequisitionStatus.DRAFT)] == []
        pending = requisition_service.list_by_status(JobRequisitionStatus.PENDING_APPROVAL)
        assert [r.id for r in pending] == [draft.id]


class TestAudit:

    def test_trace(self, requisition_service, in_final_review, bod1, general_manager, auditor):
        requisition_service.approve_step(in_final_review.id, bod1.id)
        requisition_service.approve_step(in_final_review.id, general_manager.id)
        trace = auditor.get_trace("JobRequisition", in_final_review.id)
        assert trace.actions == (
            AuditAction.CREATE, AuditAction.SUBMIT, AuditAction.APPROVE,
            AuditAction.ASSIGN, AuditAction.APPROVE, AuditAction.APPROVE,
        )
        assert auditor.validate_chain()

    def test_operation_logged_against_requisition(
        self, requisition_service, hr_manager, submitted, captured_logs,
    ):
        requisition_service.approve_step(submitted.id, hr_manager.id)
        (line,) = [r for r in captured_logs() if r["message"] == "job_requisition_step_approved"]
        assert line["entity_type"] == "JobRequisition"
        assert line["entity_id"] == str(submitted.id)
        assert line["workflow"] == "job_requisition"
