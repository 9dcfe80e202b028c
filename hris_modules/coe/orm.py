"""
COE ORM Models (``hris_modules.coe.orm``).

Tables: ``coe_requests``, ``coe_templates``.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from hris_kernel.db.base import TrackedBase, VersionedMixin


class COERequestModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``COERequest``.

    Table: ``coe_requests``
    """

    __tablename__ = "coe_requests"
    __entity_name__ = "COERequest"
    __write_once__ = (
        "date_requested",
        "approved_by_id",
        "approved_at",
        "generated_document_url",
        "rejection_reason",
    )

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    employee_name: Mapped[str] = mapped_column(String(255))
    business_unit: Mapped[str] = mapped_column(String(255), default="")
    purpose: Mapped[str] = mapped_column(String(50))
    other_purpose_detail: Mapped[str | None] = mapped_column(String(255), nullable=True)
    date_requested: Mapped[datetime]
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    rejected_by_id: Mapped[UUID | None]
    generated_document_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    approved_by_id: Mapped[UUID | None]
    approved_at: Mapped[datetime | None]

    __table_args__ = (
        Index("idx_coe_requests_employee", "employee_id"),
    )

    def to_dto(self):
        from hris_modules.coe.models import COEPurpose, COERequest, COERequestStatus
        return COERequest(
            id=self.id,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            business_unit=self.business_unit,
            purpose=COEPurpose(self.purpose),
            date_requested=self.date_requested,
            status=COERequestStatus(self.status),
            other_purpose_detail=self.other_purpose_detail,
            rejection_reason=self.rejection_reason,
            generated_document_url=self.generated_document_url,
            approved_by_id=self.approved_by_id,
            approved_at=self.approved_at,
        )


class COETemplateModel(TrackedBase):
    """
    ORM model for ``COETemplate``.

    Table: ``coe_templates``
    """

    __tablename__ = "coe_templates"
    __entity_name__ = "COETemplate"

    business_unit: Mapped[str] = mapped_column(String(255), default="")
    logo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    address: Mapped[str] = mapped_column(Text, default="")
    body: Mapped[str] = mapped_column(Text)
    signatory_name: Mapped[str] = mapped_column(String(255))
    signatory_position: Mapped[str] = mapped_column(String(255))
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        Index("idx_coe_templates_unit", "business_unit", "is_active"),
    )

    def to_dto(self):
        from hris_modules.coe.models import COETemplate
        return COETemplate(
            id=self.id,
            business_unit=self.business_unit,
            body=self.body,
            signatory_name=self.signatory_name,
            signatory_position=self.signatory_position,
            address=self.address,
            logo_url=self.logo_url,
            is_active=self.is_active,
        )
