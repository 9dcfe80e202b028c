"""
Property and example tests for the pure PAN rules.

``aggregate_status`` and ``blocking_step`` decide routing for every PAN, so
they are checked against arbitrary step sets rather than a handful of cases.
"""

from dataclasses import dataclass
from decimal import Decimal

from hypothesis import given
from hypothesis import strategies as st

from hris_modules.pan import PANRole, PANStatus, PANStepStatus, Particulars, aggregate_status, diff_particulars
from hris_modules.pan.helpers import (
    action_taken_from_json,
    action_taken_to_json,
    approver_steps,
    blocking_step,
    particulars_from_json,
    particulars_to_json,
)
from hris_modules.pan.models import PANActionTaken


@dataclass(frozen=True)
class _Step:
    role: PANRole
    status: PANStepStatus
    order: int


steps_strategy = st.lists(
    st.builds(
        _Step,
        role=st.sampled_from(list(PANRole)),
        status=st.sampled_from(list(PANStepStatus)),
        order=st.integers(min_value=1, max_value=20),
    ),
    max_size=8,
)


# =============================================================================
# aggregate_status
# =============================================================================


class TestAggregateStatusProperties:

    @given(steps_strategy)
    def test_any_declined_approver_declines(self, steps):
        declined = any(
            s.role is not PANRole.ACKNOWLEDGER and s.status is PANStepStatus.DECLINED
            for s in steps
        )
        assert (aggregate_status(steps) is PANStatus.DECLINED) == declined

    @given(steps_strategy)
    def test_acknowledger_steps_never_matter(self, steps):
        without_ack = [s for s in steps if s.role is not PANRole.ACKNOWLEDGER]
        assert aggregate_status(steps) is aggregate_status(without_ack)

    @given(steps_strategy)
    def test_result_is_a_routing_state(self, steps):
        assert aggregate_status(steps) in {
            PANStatus.DECLINED, PANStatus.PENDING_EMPLOYEE, PANStatus.PENDING_APPROVAL,
        }


class TestAggregateStatusExamples:

    def test_all_approved(self):
        steps = [
            _Step(PANRole.RECOMMENDER, PANStepStatus.APPROVED, 1),
            _Step(PANRole.APPROVER, PANStepStatus.APPROVED, 2),
            _Step(PANRole.ACKNOWLEDGER, PANStepStatus.PENDING, 3),
        ]
        assert aggregate_status(steps) is PANStatus.PENDING_EMPLOYEE

    def test_one_pending(self):
        steps = [
            _Step(PANRole.RECOMMENDER, PANStepStatus.APPROVED, 1),
            _Step(PANRole.APPROVER, PANStepStatus.PENDING, 2),
        ]
        assert aggregate_status(steps) is PANStatus.PENDING_APPROVAL

    def test_no_approvers(self):
        assert aggregate_status([_Step(PANRole.ACKNOWLEDGER, PANStepStatus.PENDING, 1)]) is (
            PANStatus.PENDING_EMPLOYEE
        )

    def test_accepts_raw_strings(self):
        @dataclass
        class Row:
            role: str
            status: str
            order: int

        assert aggregate_status([Row("approver", "declined", 1)]) is PANStatus.DECLINED


# =============================================================================
# blocking_step
# =============================================================================


class TestBlockingStep:

    @given(steps_strategy)
    def test_blocker_is_earlier_and_unapproved(self, steps):
        for step in approver_steps(steps):
            blocker = blocking_step(steps, step)
            if blocker is None:
                continue
            assert blocker.order < step.order
            assert blocker.status is not PANStepStatus.APPROVED
            assert blocker.role is not PANRole.ACKNOWLEDGER

    @given(steps_strategy)
    def test_first_step_never_blocked(self, steps):
        approvers = approver_steps(steps)
        if approvers:
            assert blocking_step(steps, approvers[0]) is None

    def test_lowest_open_step_reported(self):
        steps = [
            _Step(PANRole.RECOMMENDER, PANStepStatus.PENDING, 1),
            _Step(PANRole.ENDORSER, PANStepStatus.PENDING, 2),
            _Step(PANRole.APPROVER, PANStepStatus.PENDING, 3),
        ]
        assert blocking_step(steps, steps[2]).order == 1


# =============================================================================
# Particulars
# =============================================================================


class TestDiffParticulars:

    def test_blank_to_fields_ignored(self):
        before = Particulars(position="Engineer", salary_basic=Decimal("50000"))
        after = Particulars(position="", salary_basic=None)
        assert diff_particulars(before, after) == []

    def test_money_compared_at_two_places(self):
        before = Particulars(salary_basic=Decimal("50000"))
        after = Particulars(salary_basic=Decimal("50000.00"))
        assert diff_particulars(before, after) == []

    def test_changes_in_field_order(self):
        before = Particulars(employment_status="probationary", department="Ops")
        after = Particulars(employment_status="regular", department="Finance")
        changes = diff_particulars(before, after)
        assert [(c.field, c.old_value, c.new_value) for c in changes] == [
            ("employment_status", "probationary", "regular"),
            ("department", "Ops", "Finance"),
        ]

    def test_missing_from_value_is_blank(self):
        changes = diff_particulars(Particulars(), Particulars(salary_deminimis=Decimal("1500")))
        assert changes[0].old_value == ""
        assert changes[0].new_value == "1500.00"


class TestJsonCodecs:

    def test_particulars_json_keeps_none(self):
        data = particulars_to_json(Particulars(position="Lead", salary_basic=Decimal("1")))
        assert data["position"] == "Lead"
        assert data["salary_basic"] == "1.00"
        assert data["department"] is None
        assert particulars_from_json(data).salary_basic == Decimal("1.00")

    def test_particulars_from_empty(self):
        assert particulars_from_json(None) == Particulars()

    def test_action_taken_labels(self):
        action = action_taken_from_json(
            action_taken_to_json(PANActionTaken(transfer=True, others="Relocation"))
        )
        assert action.labels() == ["Transfer", "Others: Relocation"]
