"""
Tests for StatusTransitioner compare-and-swap semantics.

A transition is one conditional UPDATE: the row moves only if it is still
in a legal source state (and, when given, at the expected version).
"""

from decimal import Decimal
from uuid import uuid4

import pytest

from hris_kernel.exceptions import (
    EntityNotFoundError,
    ImmutabilityViolationError,
    InvalidTransitionError,
    OptimisticLockError,
    UnknownWorkflowActionError,
)
from hris_kernel.services.transition_service import StatusTransitioner
from hris_modules.benefits import BENEFIT_REQUEST_WORKFLOW
from hris_modules.benefits.orm import BenefitRequestModel


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def pending_request(benefit_service, hr_manager, employee1):
    benefit_type = benefit_service.define_benefit_type(
        "Rice Subsidy", hr_manager.id, max_value=Decimal("2000.00"),
    )
    return benefit_service.submit_request(
        employee1.id, benefit_type.id, Decimal("1500.00"), "Monthly rice allowance",
    )


@pytest.fixture
def transitioner(session):
    return StatusTransitioner(session)


# =============================================================================
# apply()
# =============================================================================


class TestApply:

    def test_moves_status_and_bumps_version(self, transitioner, pending_request, hr_manager):
        row = transitioner.apply(
            BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "hr_approve",
            values={"hr_endorsed_by_id": hr_manager.id},
        )
        assert row.status == "approved"
        assert row.version == pending_request.version + 1
        assert row.hr_endorsed_by_id == hr_manager.id

    def test_second_apply_of_same_action_fails(self, transitioner, pending_request):
        transitioner.apply(
            BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "hr_approve",
        )
        with pytest.raises(InvalidTransitionError) as exc_info:
            transitioner.apply(
                BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "hr_approve",
            )
        assert exc_info.value.current_status == "approved"
        assert exc_info.value.action == "hr_approve"

    def test_action_from_wrong_state(self, transitioner, pending_request):
        with pytest.raises(InvalidTransitionError):
            transitioner.apply(
                BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "fulfill",
            )

    def test_unknown_action(self, transitioner, pending_request):
        with pytest.raises(UnknownWorkflowActionError):
            transitioner.apply(
                BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "teleport",
            )

    def test_missing_row(self, transitioner, pending_request):
        with pytest.raises(EntityNotFoundError) as exc_info:
            transitioner.apply(
                BenefitRequestModel, uuid4(), BENEFIT_REQUEST_WORKFLOW, "hr_approve",
            )
        assert exc_info.value.entity_type == "BenefitRequest"

    def test_stale_version(self, transitioner, pending_request):
        with pytest.raises(OptimisticLockError) as exc_info:
            transitioner.apply(
                BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "hr_approve",
                expected_version=pending_request.version + 5,
            )
        assert exc_info.value.actual_version == pending_request.version

    def test_matching_version(self, transitioner, pending_request):
        row = transitioner.apply(
            BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "cancel",
            expected_version=pending_request.version,
        )
        assert row.status == "cancelled"

    def test_write_once_column_is_not_overwritten(self, session, transitioner, pending_request):
        row = session.get(BenefitRequestModel, pending_request.id)
        row.rejection_reason = "Duplicate of an earlier request"
        session.flush()

        with pytest.raises(ImmutabilityViolationError) as exc_info:
            transitioner.apply(
                BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "reject",
                values={"rejection_reason": "Over budget"},
            )
        assert "rejection_reason" in exc_info.value.reason

        current = session.get(BenefitRequestModel, pending_request.id, populate_existing=True)
        assert current.status == "pending_hr"
        assert current.rejection_reason == "Duplicate of an earlier request"

    def test_write_once_column_written_when_empty(self, transitioner, pending_request):
        row = transitioner.apply(
            BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "reject",
            values={"rejection_reason": "Over budget"},
        )
        assert row.status == "rejected"
        assert row.rejection_reason == "Over budget"

    def test_rejection_is_logged(self, transitioner, pending_request, captured_logs):
        transitioner.apply(
            BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "cancel",
        )
        with pytest.raises(InvalidTransitionError):
            transitioner.apply(
                BenefitRequestModel, pending_request.id, BENEFIT_REQUEST_WORKFLOW, "cancel",
            )
        messages = [r["message"] for r in captured_logs()]
        assert "status_transition_applied" in messages
        assert "status_transition_rejected" in messages


# =============================================================================
# claim()
# =============================================================================


class TestClaim:

    def test_claim_bumps_version_only(self, transitioner, pending_request):
        row = transitioner.claim(
            BenefitRequestModel, pending_request.id, ("pending_hr",), "edit",
        )
        assert row.status == "pending_hr"
        assert row.version == pending_request.version + 1

    def test_claim_outside_states(self, transitioner, pending_request):
        with pytest.raises(InvalidTransitionError):
            transitioner.claim(
                BenefitRequestModel, pending_request.id, ("approved",), "edit",
            )

    def test_claim_missing_row(self, transitioner, pending_request):
        with pytest.raises(EntityNotFoundError):
            transitioner.claim(BenefitRequestModel, uuid4(), ("pending_hr",), "edit")
