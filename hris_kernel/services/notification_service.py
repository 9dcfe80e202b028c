"""
NotificationService -- per-user inbox writes and reads.

Responsibility:
    Creates notification rows as side effects of workflow transitions and
    scheduled jobs, and serves the inbox queries behind the bell icon.

Architecture position:
    Kernel > Services.  Called by module services inside their transaction,
    so a notification exists if and only if the transition that caused it
    committed.

Invariants enforced:
    - A notification never changes after creation except ``is_read``.
    - ``dedup_key`` makes scheduled notifications idempotent.
    - Does NOT call ``session.commit()``; module services and
      ``session_scope()`` own transaction boundaries.
"""

from collections.abc import Iterable
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from hris_kernel.domain.clock import Clock, SystemClock
from hris_kernel.exceptions import EntityNotFoundError
from hris_kernel.logging_config import get_logger
from hris_kernel.models.notification import Notification, NotificationType

logger = get_logger("services.notification")


class NotificationService:
    """Write and read user notifications."""

    def __init__(self, session: Session, clock: Clock | None = None):
        self._session = session
        self._clock = clock or SystemClock()

    def notify(
        self,
        user_id: UUID,
        type: NotificationType,
        title: str,
        message: str,
        *,
        link: str | None = None,
        related_entity_id: UUID | None = None,
        dedup_key: str | None = None,
    ) -> Notification:
        """Create one notification (or return the existing one for ``dedup_key``)."""
        if dedup_key is not None:
            existing = self._session.execute(
                select(Notification).where(Notification.dedup_key == dedup_key)
            ).scalar_one_or_none()
            if existing is not None:
                logger.debug(
                    "notification_deduplicated",
                    extra={"dedup_key": dedup_key, "user_id": str(user_id)},
                )
                return existing

        notification = Notification(
            user_id=user_id,
            type=type.value,
            title=title,
            message=message,
            link=link,
            is_read=False,
            created_at=self._clock.now(),
            related_entity_id=related_entity_id,
            dedup_key=dedup_key,
        )
        self._session.add(notification)
        self._session.flush()

        logger.info(
            "notification_created",
            extra={
                "notification_id": str(notification.id),
                "user_id": str(user_id),
                "type": type.value,
                "related_entity_id": str(related_entity_id) if related_entity_id else None,
            },
        )
        return notification

    def notify_many(
        self,
        user_ids: Iterable[UUID],
        type: NotificationType,
        title: str,
        message: str,
        *,
        link: str | None = None,
        related_entity_id: UUID | None = None,
    ) -> list[Notification]:
        """One notification per distinct user, in first-seen order."""
        created: list[Notification] = []
        seen: set[UUID] = set()
        for user_id in user_ids:
            if user_id in seen:
                continue
            seen.add(user_id)
            created.append(
                self.notify(
                    user_id, type, title, message,
                    link=link, related_entity_id=related_entity_id,
                )
            )
        return created

    # Inbox queries

    def list_for_user(
        self,
        user_id: UUID,
        *,
        unread_only: bool = False,
        limit: int | None = None,
    ) -> list[Notification]:
        """Notifications for a user, newest first."""
        stmt = select(Notification).where(Notification.user_id == user_id)
        if unread_only:
            stmt = stmt.where(Notification.is_read.is_(False))
        stmt = stmt.order_by(Notification.created_at.desc())
        if limit is not None:
            stmt = stmt.limit(limit)
        return list(self._session.execute(stmt).scalars().all())

    def list_for_entity(self, related_entity_id: UUID) -> list[Notification]:
        """Every notification raised about one request, oldest first."""
        return list(
            self._session.execute(
                select(Notification)
                .where(Notification.related_entity_id == related_entity_id)
                .order_by(Notification.created_at)
            ).scalars().all()
        )

    def unread_count(self, user_id: UUID) -> int:
        return self._session.execute(
            select(func.count())
            .select_from(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
        ).scalar_one()

    # Read state

    def mark_read(self, notification_id: UUID, user_id: UUID) -> Notification:
        """
        Flag one of the user's notifications as read.

        Raises:
            EntityNotFoundError: No such notification for this user.
        """
        notification = self._session.get(Notification, notification_id)
        if notification is None or notification.user_id != user_id:
            raise EntityNotFoundError("Notification", str(notification_id))
        if not notification.is_read:
            notification.is_read = True
            self._session.flush()
        return notification

    def mark_all_read(self, user_id: UUID) -> int:
        """Flag every unread notification for the user; returns how many changed."""
        result = self._session.execute(
            update(Notification)
            .where(Notification.user_id == user_id, Notification.is_read.is_(False))
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        logger.info(
            "notifications_marked_read",
            extra={"user_id": str(user_id), "count": result.rowcount},
        )
        return result.rowcount
