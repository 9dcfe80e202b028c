"""
NotificationService tests: inbox writes, dedup keys, read state and the
append-only guard on stored notifications.
"""

from uuid import uuid4

import pytest

from hris_kernel.exceptions import EntityNotFoundError, ImmutabilityViolationError
from hris_kernel.models.notification import NotificationType


@pytest.fixture
def user_id():
    return uuid4()


class TestNotify:

    def test_creates_unread_notification(self, notifier, user_id, deterministic_clock):
        n = notifier.notify(
            user_id, NotificationType.BENEFIT_UPDATE, "Benefit Fulfilled", "Done.",
            link="/benefits",
        )
        assert n.is_read is False
        assert n.type == "benefit_update"
        assert n.created_at == deterministic_clock.now()
        assert n.link == "/benefits"

    def test_dedup_key_returns_existing(self, notifier, user_id):
        first = notifier.notify(
            user_id, NotificationType.BIRTHDAY, "Happy Birthday", "Cake!",
            dedup_key="birthday:x:2026",
        )
        second = notifier.notify(
            user_id, NotificationType.BIRTHDAY, "Happy Birthday", "More cake!",
            dedup_key="birthday:x:2026",
        )
        assert second.id == first.id
        assert len(notifier.list_for_user(user_id)) == 1

    def test_notify_many_deduplicates_users(self, notifier, user_id):
        other = uuid4()
        created = notifier.notify_many(
            [user_id, other, user_id],
            NotificationType.ANNOUNCEMENT, "Town Hall", "Friday 3pm",
        )
        assert [n.user_id for n in created] == [user_id, other]

    def test_list_for_entity(self, notifier, user_id):
        request_id = uuid4()
        notifier.notify(
            user_id, NotificationType.COE_UPDATE, "COE", "Approved",
            related_entity_id=request_id,
        )
        notifier.notify(user_id, NotificationType.COE_UPDATE, "COE", "Unrelated")
        assert len(notifier.list_for_entity(request_id)) == 1


class TestReadState:

    def test_unread_count_and_mark_read(self, notifier, user_id):
        n1 = notifier.notify(user_id, NotificationType.PAN_UPDATE, "PAN", "one")
        notifier.notify(user_id, NotificationType.PAN_UPDATE, "PAN", "two")
        assert notifier.unread_count(user_id) == 2

        notifier.mark_read(n1.id, user_id)
        assert notifier.unread_count(user_id) == 1
        assert len(notifier.list_for_user(user_id, unread_only=True)) == 1

    def test_mark_read_is_idempotent(self, notifier, user_id):
        n = notifier.notify(user_id, NotificationType.PAN_UPDATE, "PAN", "one")
        notifier.mark_read(n.id, user_id)
        assert notifier.mark_read(n.id, user_id).is_read is True

    def test_cannot_mark_someone_elses_notification(self, notifier, user_id):
        n = notifier.notify(user_id, NotificationType.PAN_UPDATE, "PAN", "one")
        with pytest.raises(EntityNotFoundError):
            notifier.mark_read(n.id, uuid4())

    def test_mark_all_read(self, notifier, user_id):
        for i in range(3):
            notifier.notify(user_id, NotificationType.ASSET_ASSIGNED, "Asset", str(i))
        assert notifier.mark_all_read(user_id) == 3
        assert notifier.unread_count(user_id) == 0

    def test_list_limit(self, notifier, user_id):
        for i in range(5):
            notifier.notify(user_id, NotificationType.ASSET_ASSIGNED, "Asset", str(i))
        assert len(notifier.list_for_user(user_id, limit=2)) == 2


class TestNotificationImmutability:

    def test_message_cannot_change(self, session, notifier, user_id):
        n = notifier.notify(user_id, NotificationType.PAN_UPDATE, "PAN", "original")
        session.commit()
        n.message = "edited"
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()

    def test_delete_blocked(self, session, notifier, user_id):
        n = notifier.notify(user_id, NotificationType.PAN_UPDATE, "PAN", "original")
        session.commit()
        session.delete(n)
        with pytest.raises(ImmutabilityViolationError):
            session.flush()
        session.rollback()
