"""
Audit chain validation tests.

Every recorded event links to its predecessor by hash; any edit to a stored
event (payload, action, linkage) must be detected by ``validate_chain``.
"""

from uuid import uuid4

import pytest
from sqlalchemy import update

from hris_kernel.exceptions import AuditChainBrokenError, ImmutabilityViolationError
from hris_kernel.models.audit_event import AuditAction, AuditEvent


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def three_events(session, auditor, deterministic_clock, test_actor_id):
    entity_id = uuid4()
    events = []
    for action in (AuditAction.CREATE, AuditAction.ENDORSE, AuditAction.APPROVE):
        events.append(
            auditor.record(
                "BenefitRequest", entity_id, action, test_actor_id,
                details=f"{action.value} step", payload={"step": action.value},
            )
        )
        deterministic_clock.tick()
    session.commit()
    return entity_id, events


# =============================================================================
# Recording
# =============================================================================


class TestRecord:

    def test_genesis_event_has_no_prev_hash(self, auditor, test_actor_id):
        event = auditor.record("Employee", uuid4(), AuditAction.CREATE, test_actor_id)
        assert event.is_genesis
        assert event.seq == 1

    def test_events_link_by_hash(self, three_events):
        _, events = three_events
        assert events[1].prev_hash == events[0].hash
        assert events[2].prev_hash == events[1].hash
        assert [e.seq for e in events] == [1, 2, 3]

    def test_payload_is_json_safe(self, auditor, test_actor_id):
        reviewer = uuid4()
        event = auditor.record(
            "BenefitRequest", uuid4(), AuditAction.ENDORSE, test_actor_id,
            payload={"reviewer_ids": [reviewer]},
        )
        assert event.payload == {"reviewer_ids": [str(reviewer)]}

    def test_count(self, auditor, three_events):
        assert auditor.count() == 3


# =============================================================================
# Queries
# =============================================================================


class TestTrace:

    def test_trace_in_order(self, auditor, three_events):
        entity_id, _ = three_events
        trace = auditor.get_trace("BenefitRequest", entity_id)
        assert trace.actions == (AuditAction.CREATE, AuditAction.ENDORSE, AuditAction.APPROVE)
        assert trace.first_action == AuditAction.CREATE
        assert trace.last_action == AuditAction.APPROVE
        assert trace.entries[1].payload == {"step": "endorse"}

    def test_trace_for_unknown_entity_is_empty(self, auditor, three_events):
        assert auditor.get_trace("BenefitRequest", uuid4()).is_empty

    def test_recent_events_newest_first(self, auditor, three_events):
        recent = auditor.get_recent_events(limit=2)
        assert [e.seq for e in recent] == [3, 2]


# =============================================================================
# Validation
# =============================================================================


class TestValidateChain:

    def test_empty_chain_is_valid(self, auditor):
        assert auditor.validate_chain() is True

    def test_intact_chain_is_valid(self, auditor, three_events):
        assert auditor.validate_chain() is True

    def test_payload_tamper_detected(self, session, auditor, three_events):
        _, events = three_events
        session.execute(
            update(AuditEvent)
            .where(AuditEvent.id == events[1].id)
            .values(payload={"step": "forged"})
        )
        session.expire_all()

        with pytest.raises(AuditChainBrokenError) as exc_info:
            auditor.validate_chain()
        assert exc_info.value.audit_event_id == str(events[1].id)

    def test_action_tamper_detected(self, session, auditor, three_events):
        _, events = three_events
        session.execute(
            update(AuditEvent)
            .where(AuditEvent.id == events[2].id)
            .values(action=AuditAction.REJECT.value)
        )
        session.expire_all()

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()

    def test_broken_link_detected(self, session, auditor, three_events):
        _, events = three_events
        session.execute(
            update(AuditEvent)
            .where(AuditEvent.id == events[2].id)
            .values(prev_hash=events[0].hash)
        )
        session.expire_all()

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()

    def test_break_is_logged_critical(self, session, auditor, three_events, captured_logs):
        _, events = three_events
        session.execute(
            update(AuditEvent).where(AuditEvent.id == events[0].id).values(details="x", payload={})
        )
        session.expire_all()

        with pytest.raises(AuditChainBrokenError):
            auditor.validate_chain()
        assert any(
            r["message"] == "audit_chain_broken" and r["level"] == "CRITICAL"
            for r in captured_logs()
        )


class TestAuditEventImmutability:
    """ORM edits to stored audit events are refused at flush."""

    def test_orm_update_blocked(self, session, three_events):
        _, events = three_events
        events[0].details = "rewritten"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_orm_delete_blocked(self, session, three_events):
        _, events = three_events
        session.delete(events[0])
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()
