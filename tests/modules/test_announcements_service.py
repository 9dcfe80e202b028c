"""
Tests for announcements: audience targeting, acknowledgement and attachments.
"""

from types import SimpleNamespace
from uuid import uuid4

import pytest

from hris_kernel.exceptions import EntityNotFoundError, RequiredFieldError, UnauthorizedActorError
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.utils.signing import verify_signed_url
from hris_modules.announcements import ALL_EMPLOYEES, AnnouncementType
from hris_modules.announcements.helpers import is_targeted


@pytest.fixture
def policy(announcement_service, hr_manager, manager, employee1, employee2):
    return announcement_service.publish(
        hr_manager.id,
        "Code of Conduct",
        "Please read and acknowledge the updated code of conduct.",
        announcement_type=AnnouncementType.POLICY,
        attachment_path="policies/code-of-conduct.pdf",
    )


def _announcement_titles(notifier, user_id):
    return [n.title for n in notifier.list_for_user(user_id) if n.type == NotificationType.ANNOUNCEMENT.value]


class TestPublish:

    def test_everyone_notified(self, notifier, auditor, policy, hr_manager, manager, employee1, employee2):
        for person in (hr_manager, manager, employee1, employee2):
            assert _announcement_titles(notifier, person.id) == ["Policy: Code of Conduct"]
        trace = auditor.get_trace("Announcement", policy.id)
        assert trace.actions == (AuditAction.PUBLISH,)
        assert trace.entries[0].payload["audience_size"] == 4

    def test_department_target(self, announcement_service, notifier, hr_manager, manager, employee1, employee2):
        announcement_service.publish(
            hr_manager.id, "Sprint review", "Friday at 3pm", target_group="engineering",
        )
        assert _announcement_titles(notifier, employee1.id) == ["Sprint review"]
        assert _announcement_titles(notifier, manager.id) == ["Sprint review"]
        assert _announcement_titles(notifier, employee2.id) == []

    def test_inactive_employees_skipped(
        self, announcement_service, employee_service, notifier, hr_manager, employee2,
    ):
        employee_service.deactivate_employee(employee2.id, hr_manager.id)
        announcement_service.publish(hr_manager.id, "Outing", "Beach trip")
        assert _announcement_titles(notifier, employee2.id) == []

    def test_title_and_message_required(self, announcement_service, hr_manager):
        with pytest.raises(RequiredFieldError):
            announcement_service.publish(hr_manager.id, " ", "Body")
        with pytest.raises(RequiredFieldError):
            announcement_service.publish(hr_manager.id, "Title", "")

    def test_only_hr_publishes(self, announcement_service, employee1):
        with pytest.raises(UnauthorizedActorError):
            announcement_service.publish(employee1.id, "Hi", "All")

    def test_update_does_not_renotify(self, announcement_service, notifier, hr_manager, employee1, policy):
        updated = announcement_service.update(policy.id, hr_manager.id, title="Code of Conduct 2026")
        assert updated.title == "Code of Conduct 2026"
        assert updated.message == policy.message
        assert len(_announcement_titles(notifier, employee1.id)) == 1

    def test_list_newest_first(self, announcement_service, hr_manager, deterministic_clock, policy):
        deterministic_clock.advance(60)
        later = announcement_service.publish(hr_manager.id, "Payday", "Moved to the 14th")
        assert [a.id for a in announcement_service.list_announcements()] == [later.id, policy.id]
        assert announcement_service.list_announcements(target_group="Finance") == []


class TestAcknowledgement:

    def test_policy_pending_until_acknowledged(self, announcement_service, employee1, policy):
        assert [a.id for a in announcement_service.pending_acknowledgements(employee1.id)] == [policy.id]
        acked = announcement_service.acknowledge(policy.id, employee1.id)
        assert acked.acknowledged_by == (employee1.id,)
        assert announcement_service.pending_acknowledgements(employee1.id) == []

    def test_acknowledge_is_idempotent(self, announcement_service, auditor, employee1, policy):
        announcement_service.acknowledge(policy.id, employee1.id)
        again = announcement_service.acknowledge(policy.id, employee1.id)
        assert again.acknowledged_by == (employee1.id,)
        assert auditor.get_trace("Announcement", policy.id).actions.count(AuditAction.ACKNOWLEDGE) == 1

    def test_general_never_pending(self, announcement_service, hr_manager, employee1):
        announcement_service.publish(hr_manager.id, "Outing", "Beach trip")
        assert announcement_service.pending_acknowledgements(employee1.id) == []

    def test_unknown_announcement(self, announcement_service, employee1):
        with pytest.raises(EntityNotFoundError):
            announcement_service.acknowledge(uuid4(), employee1.id)


class TestAttachments:

    def test_signed_url(self, announcement_service, config, deterministic_clock, policy):
        url = announcement_service.attachment_url(policy.id)
        path = verify_signed_url(
            url,
            bucket=config.storage.announcements_bucket,
            secret=config.storage.signing_secret,
            now=deterministic_clock.now(),
        )
        assert path == "policies/code-of-conduct.pdf"

    def test_full_url_reduced_to_path(self, announcement_service, config, hr_manager):
        bucket = config.storage.announcements_bucket
        created = announcement_service.publish(
            hr_manager.id, "Handbook", "Attached",
            attachment_path=f"{config.storage.base_url}/{bucket}/handbook/v2.pdf?expires=1&signature=x",
        )
        assert created.attachment_path == "handbook/v2.pdf"

    def test_external_url_kept(self, announcement_service, hr_manager, captured_logs):
        created = announcement_service.publish(
            hr_manager.id, "Handbook", "Attached", attachment_path="https://elsewhere.invalid/h.pdf",
        )
        assert created.attachment_path == "https://elsewhere.invalid/h.pdf"
        assert any(r["message"] == "announcement_attachment_external" for r in captured_logs())
        assert announcement_service.attachment_url(created.id) == "https://elsewhere.invalid/h.pdf"

    def test_no_attachment(self, announcement_service, hr_manager):
        plain = announcement_service.publish(hr_manager.id, "Outing", "Beach trip")
        with pytest.raises(EntityNotFoundError):
            announcement_service.attachment_url(plain.id)


class TestTargeting:

    @pytest.mark.parametrize(
        "target,unit,expected",
        [
            (ALL_EMPLOYEES, None, True),
            ("all", None, True),
            ("Engineering", None, True),
            (" engineering ", None, True),
            ("Finance", None, False),
            (ALL_EMPLOYEES, "Acme Holdings", True),
            (ALL_EMPLOYEES, "Other Co", False),
            ("Engineering", "Other Co", False),
        ],
    )
    def test_is_targeted(self, target, unit, expected):
        employee = SimpleNamespace(department="Engineering", business_unit="Acme Holdings")
        assert is_targeted(target, unit, employee) is expected

    def test_missing_department(self):
        employee = SimpleNamespace(department=None, business_unit="")
        assert not is_targeted("Engineering", None, employee)
