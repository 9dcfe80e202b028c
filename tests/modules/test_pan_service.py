"""
Tests for the Personnel Action Notice workflow.

Covers drafting, routing through recommenders / approvers, the employee's
acknowledgement and the profile changes it queues for HR review.
"""

import dataclasses
from datetime import date
from decimal import Decimal
from uuid import uuid4

import pytest

from hris_kernel.exceptions import (
    AlreadyAcknowledgedError,
    InvalidRoutingError,
    InvalidTransitionError,
    RequiredFieldError,
    RoutingOrderError,
    UnauthorizedActorError,
)
from hris_kernel.models.notification import NotificationType
from hris_modules.employees import ChangeStatus
from hris_modules.pan import (
    PANActionTaken,
    PANRole,
    PANService,
    PANStatus,
    PANStepStatus,
    Particulars,
    RoutingStepInput,
)

SIGNATURE = "data:image/png;base64,iVBORw0KGgo="


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def routing(manager, general_manager, employee1):
    return [
        RoutingStepInput(user_id=manager.id, role=PANRole.RECOMMENDER, order=1),
        RoutingStepInput(user_id=general_manager.id, role=PANRole.APPROVER, order=2),
        RoutingStepInput(user_id=employee1.id, role=PANRole.ACKNOWLEDGER, order=3),
    ]


@pytest.fixture
def promotion_draft(pan_service, hr_manager, employee1, routing):
    return pan_service.save_draft(
        hr_manager.id,
        employee1.id,
        date(2026, 2, 1),
        action_taken=PANActionTaken(promotion=True, salary_increase=True),
        particulars_to=Particulars(
            position="Senior Software Engineer", salary_basic=Decimal("75000.00"),
        ),
        tenure="4 years",
        notes="Promotion after annual review",
        routing=routing,
        preparer_name="Dana Cruz",
    )


@pytest.fixture
def submitted_pan(pan_service, hr_manager, promotion_draft):
    return pan_service.submit(promotion_draft.id, hr_manager.id)


@pytest.fixture
def pending_employee_pan(pan_service, manager, general_manager, submitted_pan):
    pan_service.approve_step(submitted_pan.id, manager.id)
    return pan_service.approve_step(submitted_pan.id, general_manager.id)


def _titles(notifier, user_id):
    return {n.title for n in notifier.list_for_user(user_id)}


# =============================================================================
# Drafting
# =============================================================================


class TestSaveDraft:

    def test_from_side_defaults_to_profile(self, promotion_draft):
        assert promotion_draft.status is PANStatus.DRAFT
        assert promotion_draft.particulars_from.position == "Software Engineer"
        assert promotion_draft.particulars_from.salary_basic == Decimal("60000.00")
        assert promotion_draft.particulars_to.department is None

    def test_routing_steps_saved_pending(self, promotion_draft):
        steps = sorted(promotion_draft.routing_steps, key=lambda s: s.order)
        assert [s.role for s in steps] == [
            PANRole.RECOMMENDER, PANRole.APPROVER, PANRole.ACKNOWLEDGER,
        ]
        assert all(s.status is PANStepStatus.PENDING for s in steps)
        assert steps[0].name == "Marco Diaz"

    def test_edit_replaces_routing(self, pan_service, hr_manager, employee1, manager, promotion_draft):
        edited = pan_service.save_draft(
            hr_manager.id, employee1.id, date(2026, 3, 1),
            pan_id=promotion_draft.id,
            routing=[RoutingStepInput(user_id=manager.id, role=PANRole.APPROVER, order=1)],
        )
        assert edited.id == promotion_draft.id
        assert edited.effective_date == date(2026, 3, 1)
        assert len(edited.routing_steps) == 1

    def test_only_hr_drafts(self, pan_service, manager, employee1):
        with pytest.raises(UnauthorizedActorError):
            pan_service.save_draft(manager.id, employee1.id, date(2026, 2, 1))

    def test_effective_date_required(self, pan_service, hr_manager, employee1):
        with pytest.raises(RequiredFieldError):
            pan_service.save_draft(hr_manager.id, employee1.id, None)

    def test_acknowledger_must_be_subject(self, pan_service, hr_manager, employee1, employee2):
        with pytest.raises(InvalidRoutingError):
            pan_service.save_draft(
                hr_manager.id, employee1.id, date(2026, 2, 1),
                routing=[RoutingStepInput(user_id=employee2.id, role=PANRole.ACKNOWLEDGER, order=1)],
            )

    def test_subject_cannot_approve(self, pan_service, hr_manager, employee1):
        with pytest.raises(InvalidRoutingError):
            pan_service.save_draft(
                hr_manager.id, employee1.id, date(2026, 2, 1),
                routing=[RoutingStepInput(user_id=employee1.id, role=PANRole.APPROVER, order=1)],
            )

    def test_unknown_routing_user(self, pan_service, hr_manager, employee1):
        with pytest.raises(InvalidRoutingError):
            pan_service.save_draft(
                hr_manager.id, employee1.id, date(2026, 2, 1),
                routing=[RoutingStepInput(user_id=uuid4(), role=PANRole.APPROVER, order=1)],
            )

    def test_submitted_pan_is_not_editable(self, pan_service, hr_manager, employee1, submitted_pan):
        with pytest.raises(InvalidTransitionError):
            pan_service.save_draft(
                hr_manager.id, employee1.id, date(2026, 2, 1), pan_id=submitted_pan.id,
            )


# =============================================================================
# Routing
# =============================================================================


class TestSubmit:

    def test_submit_notifies_approvers(self, submitted_pan, notifier, manager, general_manager, employee1):
        assert submitted_pan.status is PANStatus.PENDING_APPROVAL
        assert "PAN Approval Required" in _titles(notifier, manager.id)
        assert "PAN Approval Required" in _titles(notifier, general_manager.id)
        assert _titles(notifier, employee1.id) == set()

    def test_without_approvers_goes_to_employee(self, pan_service, hr_manager, employee1, notifier):
        draft = pan_service.save_draft(
            hr_manager.id, employee1.id, date(2026, 2, 1),
            routing=[RoutingStepInput(user_id=employee1.id, role=PANRole.ACKNOWLEDGER, order=1)],
        )
        pan = pan_service.submit(draft.id, hr_manager.id)
        assert pan.status is PANStatus.PENDING_EMPLOYEE
        assert "PAN Ready for Acknowledgement" in _titles(notifier, employee1.id)

    def test_double_submit(self, pan_service, hr_manager, submitted_pan):
        with pytest.raises(InvalidTransitionError):
            pan_service.submit(submitted_pan.id, hr_manager.id)

    def test_awaiting_lists(self, pan_service, submitted_pan, manager, employee1):
        assert [p.id for p in pan_service.list_awaiting(manager.id)] == [submitted_pan.id]
        assert pan_service.list_awaiting(employee1.id) == []


class TestApproveStep:

    def test_partial_approval_keeps_routing(self, pan_service, manager, submitted_pan):
        pan = pan_service.approve_step(submitted_pan.id, manager.id, notes="Well deserved")
        assert pan.status is PANStatus.PENDING_APPROVAL
        step = next(s for s in pan.routing_steps if s.user_id == manager.id)
        assert step.status is PANStepStatus.APPROVED
        assert step.notes == "Well deserved"

    def test_last_approval_moves_to_employee(
        self, pending_employee_pan, notifier, employee1, hr_manager,
    ):
        assert pending_employee_pan.status is PANStatus.PENDING_EMPLOYEE
        assert "PAN Ready for Acknowledgement" in _titles(notifier, employee1.id)
        assert "PAN Fully Approved" in _titles(notifier, hr_manager.id)

    def test_out_of_order_allowed_by_default(self, pan_service, general_manager, submitted_pan):
        pan = pan_service.approve_step(submitted_pan.id, general_manager.id)
        assert pan.status is PANStatus.PENDING_APPROVAL

    def test_order_enforced_when_configured(
        self, session, config, deterministic_clock, general_manager, submitted_pan,
    ):
        strict = PANService(
            session,
            dataclasses.replace(config, enforce_pan_routing_order=True),
            deterministic_clock,
        )
        with pytest.raises(RoutingOrderError) as exc_info:
            strict.approve_step(submitted_pan.id, general_manager.id)
        assert exc_info.value.blocking_order == 1

    def test_non_router_cannot_approve(self, pan_service, employee2, submitted_pan):
        with pytest.raises(UnauthorizedActorError):
            pan_service.approve_step(submitted_pan.id, employee2.id)

    def test_acknowledger_cannot_approve(self, pan_service, employee1, submitted_pan):
        with pytest.raises(UnauthorizedActorError):
            pan_service.approve_step(submitted_pan.id, employee1.id)

    def test_same_step_twice(self, pan_service, manager, submitted_pan):
        pan_service.approve_step(submitted_pan.id, manager.id)
        with pytest.raises(UnauthorizedActorError):
            pan_service.approve_step(submitted_pan.id, manager.id)

    def test_draft_cannot_be_approved(self, pan_service, manager, promotion_draft):
        with pytest.raises(InvalidTransitionError):
            pan_service.approve_step(promotion_draft.id, manager.id)


class TestDeclineStep:

    def test_decline_declines_pan(self, pan_service, manager, hr_manager, submitted_pan, notifier):
        pan = pan_service.decline_step(submitted_pan.id, manager.id, "Budget freeze")
        assert pan.status is PANStatus.DECLINED
        declined = [n for n in notifier.list_for_user(hr_manager.id) if n.title == "PAN Declined"]
        assert len(declined) == 1
        assert "Budget freeze" in declined[0].message

    def test_reason_required(self, pan_service, manager, submitted_pan):
        with pytest.raises(RequiredFieldError):
            pan_service.decline_step(submitted_pan.id, manager.id, "  ")

    def test_no_approval_after_decline(self, pan_service, manager, general_manager, submitted_pan):
        pan_service.decline_step(submitted_pan.id, manager.id, "No")
        with pytest.raises(InvalidTransitionError):
            pan_service.approve_step(submitted_pan.id, general_manager.id)

    def test_decline_waits_for_turn_when_order_enforced(
        self, session, config, deterministic_clock, pan_service, general_manager, submitted_pan,
    ):
        strict = PANService(
            session,
            dataclasses.replace(config, enforce_pan_routing_order=True),
            deterministic_clock,
        )
        with pytest.raises(RoutingOrderError) as exc_info:
            strict.decline_step(submitted_pan.id, general_manager.id, "Not yet my turn")
        assert exc_info.value.blocking_order == 1

        pan = pan_service.get_pan(submitted_pan.id)
        assert pan.status is PANStatus.PENDING_APPROVAL
        assert all(s.status is not PANStepStatus.DECLINED for s in pan.routing_steps)


# =============================================================================
# Acknowledgement and change history
# =============================================================================


class TestAcknowledge:

    def test_completes_and_queues_changes(
        self, pan_service, employee_service, employee1, pending_employee_pan,
    ):
        pan = pan_service.acknowledge(
            pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie Ocampo",
        )
        assert pan.status is PANStatus.COMPLETED
        assert pan.signature_name == "Jamie Ocampo"
        ack = next(s for s in pan.routing_steps if s.role is PANRole.ACKNOWLEDGER)
        assert ack.status is PANStepStatus.APPROVED

        changes = employee_service.list_changes(submission_id=pan.id)
        assert {c.field for c in changes} == {"position", "salary_basic"}
        assert all(c.status is ChangeStatus.PENDING for c in changes)
        salary = next(c for c in changes if c.field == "salary_basic")
        assert (salary.old_value, salary.new_value) == ("60000.00", "75000.00")

    def test_profile_unchanged_until_hr_review(
        self, pan_service, employee_service, employee1, hr_manager, pending_employee_pan,
    ):
        pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie Ocampo")
        assert employee_service.get_employee(employee1.id).position == "Software Engineer"

        employee_service.review_changes(pending_employee_pan.id, hr_manager.id, approve=True)
        updated = employee_service.get_employee(employee1.id)
        assert updated.position == "Senior Software Engineer"
        assert updated.salary_basic == Decimal("75000.00")

    def test_second_acknowledgement_rejected(self, pan_service, employee1, pending_employee_pan):
        pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie")
        with pytest.raises(AlreadyAcknowledgedError):
            pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie")

    def test_only_subject_signs(self, pan_service, employee2, pending_employee_pan):
        with pytest.raises(UnauthorizedActorError):
            pan_service.acknowledge(pending_employee_pan.id, employee2.id, SIGNATURE, "Rin")

    def test_cannot_sign_during_routing(self, pan_service, employee1, submitted_pan):
        with pytest.raises(InvalidTransitionError):
            pan_service.acknowledge(submitted_pan.id, employee1.id, SIGNATURE, "Jamie")

    def test_signature_name_required(self, pan_service, employee1, pending_employee_pan):
        with pytest.raises(RequiredFieldError):
            pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "")

    def test_hr_notified(self, pan_service, employee1, hr_staff, pending_employee_pan, notifier):
        pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie")
        assert "PAN Acknowledged" in _titles(notifier, hr_staff.id)

    def test_audit_trail(self, pan_service, employee1, pending_employee_pan, auditor):
        from hris_kernel.models.audit_event import AuditAction

        pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie")
        trace = auditor.get_trace("PAN", pending_employee_pan.id)
        assert trace.actions == (
            AuditAction.CREATE, AuditAction.SUBMIT, AuditAction.APPROVE,
            AuditAction.APPROVE, AuditAction.ACKNOWLEDGE,
        )
        assert auditor.validate_chain()


class TestCancel:

    def test_cancel_draft(self, pan_service, hr_manager, promotion_draft):
        assert pan_service.cancel(promotion_draft.id, hr_manager.id).status is PANStatus.CANCELLED

    def test_cannot_cancel_completed(self, pan_service, hr_manager, employee1, pending_employee_pan):
        pan_service.acknowledge(pending_employee_pan.id, employee1.id, SIGNATURE, "Jamie")
        with pytest.raises(InvalidTransitionError):
            pan_service.cancel(pending_employee_pan.id, hr_manager.id)


# =============================================================================
# Templates and printing
# =============================================================================


class TestTemplates:

    def test_single_default(self, pan_service, hr_manager):
        first = pan_service.save_template("Promotion", hr_manager.id, is_default=True)
        pan_service.save_template("Regularization", hr_manager.id, is_default=True)
        templates = pan_service.list_templates()
        assert [t.name for t in templates] == ["Regularization", "Promotion"]
        assert [t.is_default for t in templates] == [True, False]
        assert first.id == templates[1].id

    def test_draft_from_template(self, pan_service, hr_manager, employee1):
        template = pan_service.save_template(
            "Promotion", hr_manager.id,
            action_taken=PANActionTaken(promotion=True),
            notes="Per annual review",
            preparer_name="Dana Cruz",
        )
        draft = pan_service.draft_from_template(
            template.id, hr_manager.id, employee1.id, date(2026, 4, 1),
        )
        assert draft.action_taken.promotion is True
        assert draft.notes == "Per annual review"
        assert draft.preparer_name == "Dana Cruz"

    def test_delete_template(self, pan_service, hr_manager):
        template = pan_service.save_template("Temp", hr_manager.id)
        pan_service.delete_template(template.id, hr_manager.id)
        assert pan_service.list_templates() == []

    def test_name_required(self, pan_service, hr_manager):
        with pytest.raises(RequiredFieldError):
            pan_service.save_template(" ", hr_manager.id)


class TestRenderPrintable:

    def test_printable_contents(self, pan_service, pending_employee_pan):
        html = pan_service.render_printable(pending_employee_pan.id)
        assert "PERSONNEL ACTION NOTICE" in html
        assert "Jamie Ocampo" in html
        assert "Promotion" in html
        assert "[Electronically Approved]" in html
        assert "PHP 75,000.00" in html
        assert "Engineering Manager" in html
