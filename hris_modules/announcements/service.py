"""
Announcements Module Service (``hris_modules.announcements.service``).

Publishing notifies every targeted active employee.  Policy announcements
must be acknowledged; acknowledgement is idempotent.
"""

from __future__ import annotations

from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from hris_config import HrisConfig, get_active_config
from hris_kernel.domain.clock import Clock
from hris_kernel.exceptions import EntityNotFoundError, RequiredFieldError
from hris_kernel.logging_config import get_logger
from hris_kernel.models.audit_event import AuditAction
from hris_kernel.models.notification import NotificationType
from hris_kernel.services.module_service import ModuleService
from hris_kernel.services.repository import Repository
from hris_kernel.utils.signing import sign_storage_url, storage_path_from_url
from hris_modules.announcements.helpers import is_targeted
from hris_modules.announcements.models import ALL_EMPLOYEES, Announcement, AnnouncementType
from hris_modules.announcements.orm import AnnouncementAcknowledgementModel, AnnouncementModel
from hris_modules.employees.orm import EmployeeModel
from hris_modules.employees.selectors import EmployeeDirectory

logger = get_logger("modules.announcements.service")

_LINK = "/announcements"


class AnnouncementService(ModuleService):
    """Company announcements."""

    log_scopes = {"announcement_id": ("Announcement", None)}

    def __init__(
        self,
        session: Session,
        config: HrisConfig | None = None,
        clock: Clock | None = None,
    ):
        super().__init__(session, clock)
        self._config = config or get_active_config()
        self._directory = EmployeeDirectory(session)
        self._announcements = Repository(session, AnnouncementModel)

    def publish(
        self,
        actor_id: UUID,
        title: str,
        message: str,
        *,
        announcement_type: AnnouncementType = AnnouncementType.GENERAL,
        target_group: str = ALL_EMPLOYEES,
        business_unit: str | None = None,
        attachment_path: str | None = None,
    ) -> Announcement:
        """Post an announcement and notify its audience."""
        if not title or not title.strip():
            raise RequiredFieldError("title", "Announcement")
        if not message or not message.strip():
            raise RequiredFieldError("message", "Announcement")

        with self._transaction("announcement_published", actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "publish_announcement")
            announcement = self._announcements.save(
                AnnouncementModel(
                    title=title.strip(),
                    message=message.strip(),
                    announcement_type=announcement_type.value,
                    target_group=target_group or ALL_EMPLOYEES,
                    business_unit=business_unit or None,
                    attachment_path=self._normalize_attachment(attachment_path),
                    created_at=self._clock.now(),
                    created_by_id=actor_id,
                )
            )
            audience = self._audience(announcement)
            prefix = "Policy: " if announcement_type is AnnouncementType.POLICY else ""
            self._notifier.notify_many(
                audience,
                NotificationType.ANNOUNCEMENT,
                f"{prefix}{announcement.title}",
                announcement.message[:200],
                link=_LINK,
                related_entity_id=announcement.id,
            )
            self._auditor.record(
                "Announcement", announcement.id, AuditAction.PUBLISH, actor_id,
                details=f"Published '{announcement.title}' to {announcement.target_group}",
                payload={"audience_size": len(audience), "type": announcement_type.value},
            )
        return announcement.to_dto()

    def update(
        self,
        announcement_id: UUID,
        actor_id: UUID,
        *,
        title: str | None = None,
        message: str | None = None,
        attachment_path: str | None = None,
    ) -> Announcement:
        """Correct an announcement.  The audience is not notified again."""
        with self._transaction("announcement_updated", announcement_id=announcement_id, actor_id=actor_id):
            self._directory.require_role(actor_id, self._config.hr_roles, "update_announcement")
            announcement = self._announcements.require(announcement_id)
            if title is not None and title.strip():
                announcement.title = title.strip()
            if message is not None and message.strip():
                announcement.message = message.strip()
            if attachment_path is not None:
                announcement.attachment_path = self._normalize_attachment(attachment_path)
            announcement.updated_by_id = actor_id
            self._announcements.save(announcement)
            self._auditor.record(
                "Announcement", announcement.id, AuditAction.UPDATE, actor_id,
                details=f"Updated '{announcement.title}'",
            )
        return announcement.to_dto()

    def acknowledge(self, announcement_id: UUID, user_id: UUID) -> Announcement:
        """Record that ``user_id`` read the announcement; repeated calls are no-ops."""
        with self._transaction("announcement_acknowledged", announcement_id=announcement_id, actor_id=user_id):
            announcement = self._announcements.require(announcement_id)
            self._directory.require(user_id)
            existing = self._session.execute(
                select(AnnouncementAcknowledgementModel.id).where(
                    AnnouncementAcknowledgementModel.announcement_id == announcement_id,
                    AnnouncementAcknowledgementModel.user_id == user_id,
                )
            ).scalar_one_or_none()
            if existing is None:
                announcement.acknowledgements.append(
                    AnnouncementAcknowledgementModel(
                        user_id=user_id,
                        acknowledged_at=self._clock.now(),
                        created_by_id=user_id,
                    )
                )
                self._session.flush()
                self._auditor.record(
                    "Announcement", announcement.id, AuditAction.ACKNOWLEDGE, user_id,
                    details="Acknowledged",
                )
        return announcement.to_dto()

    def get_announcement(self, announcement_id: UUID) -> Announcement:
        return self._announcements.require(announcement_id).to_dto()

    def list_announcements(self, target_group: str | None = None) -> list[Announcement]:
        """Newest first, optionally only those posted to ``target_group``."""
        criteria = []
        if target_group is not None:
            criteria.append(AnnouncementModel.target_group == target_group)
        return [
            m.to_dto()
            for m in self._announcements.list_where(
                *criteria, order_by=AnnouncementModel.created_at.desc(),
            )
        ]

    def pending_acknowledgements(self, user_id: UUID) -> list[Announcement]:
        """Policy announcements aimed at the user that they have not acknowledged."""
        employee = self._directory.require(user_id)
        acknowledged = select(AnnouncementAcknowledgementModel.announcement_id).where(
            AnnouncementAcknowledgementModel.user_id == user_id,
        )
        candidates = self._announcements.list_where(
            AnnouncementModel.announcement_type == AnnouncementType.POLICY.value,
            AnnouncementModel.id.not_in(acknowledged),
            order_by=AnnouncementModel.created_at.desc(),
        )
        return [
            m.to_dto()
            for m in candidates
            if is_targeted(m.target_group, m.business_unit, employee)
        ]

    def attachment_url(self, announcement_id: UUID) -> str:
        """
        Signed, time-limited link to the announcement's attachment.

        Attachments hosted outside the storage bucket are returned as stored.

        Raises:
            EntityNotFoundError: announcement has no attachment.
        """
        announcement = self._announcements.require(announcement_id)
        if not announcement.attachment_path:
            raise EntityNotFoundError("AnnouncementAttachment", str(announcement_id))
        if _is_external(announcement.attachment_path):
            return announcement.attachment_path
        storage = self._config.storage
        return sign_storage_url(
            storage.announcements_bucket,
            announcement.attachment_path,
            secret=storage.signing_secret,
            base_url=storage.base_url,
            now=self._clock.now(),
            ttl_seconds=storage.signed_url_ttl_seconds,
        )

    # ------------------------------------------------------------------
    # Internal
    # ------------------------------------------------------------------

    def _audience(self, announcement: AnnouncementModel) -> list[UUID]:
        employees = self._session.execute(
            select(EmployeeModel)
            .where(EmployeeModel.is_active.is_(True))
            .order_by(EmployeeModel.name)
        ).scalars().all()
        return [
            e.id for e in employees
            if is_targeted(announcement.target_group, announcement.business_unit, e)
        ]

    def _normalize_attachment(self, attachment: str | None) -> str | None:
        """Store bucket paths; full storage URLs are reduced to their path."""
        if not attachment:
            return None
        if _is_external(attachment):
            path = storage_path_from_url(attachment, self._config.storage.announcements_bucket)
            if path is None:
                logger.warning("announcement_attachment_external", extra={"url": attachment})
                return attachment
            return path
        return attachment.lstrip("/")


def _is_external(attachment_path: str) -> bool:
    return "://" in attachment_path
