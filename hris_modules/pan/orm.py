"""
PAN ORM Models (``hris_modules.pan.orm``).

Tables: ``pans``, ``pan_routing_steps``, ``pan_templates``.

``action_taken`` and the two particulars columns are JSON documents; money
values inside them are decimal strings.
"""

from datetime import date, datetime
from uuid import UUID

from sqlalchemy import JSON, Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hris_kernel.db.base import TrackedBase, VersionedMixin


class PANModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``PAN``.

    Table: ``pans``
    """

    __tablename__ = "pans"
    __entity_name__ = "PAN"
    __write_once__ = ("signed_at", "signature_data_url", "signature_name")

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    employee_name: Mapped[str] = mapped_column(String(255))
    effective_date: Mapped[date]
    action_taken: Mapped[dict] = mapped_column(JSON, default=dict)
    particulars_from: Mapped[dict] = mapped_column(JSON, default=dict)
    particulars_to: Mapped[dict] = mapped_column(JSON, default=dict)
    tenure: Mapped[str] = mapped_column(String(100), default="")
    notes: Mapped[str] = mapped_column(Text, default="")

    preparer_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    preparer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    preparer_signature_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    logo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    signed_at: Mapped[datetime | None]
    signature_data_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    signature_name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    steps: Mapped[list["PANRoutingStepModel"]] = relationship(
        back_populates="pan",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="PANRoutingStepModel.order",
    )

    __table_args__ = (
        Index("idx_pans_employee", "employee_id"),
    )

    def to_dto(self):
        from hris_modules.pan.helpers import action_taken_from_json, particulars_from_json
        from hris_modules.pan.models import PAN, PANStatus
        return PAN(
            id=self.id,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            effective_date=self.effective_date,
            status=PANStatus(self.status),
            action_taken=action_taken_from_json(self.action_taken),
            particulars_from=particulars_from_json(self.particulars_from),
            particulars_to=particulars_from_json(self.particulars_to),
            preparer_id=self.preparer_id,
            tenure=self.tenure,
            notes=self.notes,
            routing_steps=tuple(s.to_dto() for s in self.steps),
            preparer_name=self.preparer_name,
            preparer_signature_url=self.preparer_signature_url,
            logo_url=self.logo_url,
            signed_at=self.signed_at,
            signature_data_url=self.signature_data_url,
            signature_name=self.signature_name,
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<PANModel(id={self.id!r}, employee={self.employee_name!r}, status={self.status!r})>"


class PANRoutingStepModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``RoutingStep``.

    Table: ``pan_routing_steps``
    """

    __tablename__ = "pan_routing_steps"
    __entity_name__ = "PANRoutingStep"
    __write_once__ = ("acted_at",)

    pan_id: Mapped[UUID] = mapped_column(ForeignKey("pans.id"))
    user_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(50))
    # "order" is reserved in SQL
    order: Mapped[int] = mapped_column("step_order", Integer)
    acted_at: Mapped[datetime | None]
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    pan: Mapped["PANModel"] = relationship(back_populates="steps")

    __table_args__ = (
        Index("idx_pan_routing_steps_user", "user_id", "status"),
    )

    def to_dto(self):
        from hris_modules.pan.models import PANRole, PANStepStatus, RoutingStep
        return RoutingStep(
            id=self.id,
            pan_id=self.pan_id,
            user_id=self.user_id,
            name=self.name,
            role=PANRole(self.role),
            status=PANStepStatus(self.status),
            order=self.order,
            acted_at=self.acted_at,
            notes=self.notes,
        )


class PANTemplateModel(TrackedBase):
    """
    ORM model for ``PANTemplate``.

    Table: ``pan_templates``
    """

    __tablename__ = "pan_templates"
    __entity_name__ = "PANTemplate"

    name: Mapped[str] = mapped_column(String(255))
    action_taken: Mapped[dict] = mapped_column(JSON, default=dict)
    notes: Mapped[str] = mapped_column(Text, default="")
    logo_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    preparer_name: Mapped[str | None] = mapped_column(String(255), nullable=True)
    preparer_signature_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_default: Mapped[bool] = mapped_column(Boolean, default=False)

    __table_args__ = (
        UniqueConstraint("name", name="uq_pan_templates_name"),
    )

    def to_dto(self):
        from hris_modules.pan.helpers import action_taken_from_json
        from hris_modules.pan.models import PANTemplate
        return PANTemplate(
            id=self.id,
            name=self.name,
            action_taken=action_taken_from_json(self.action_taken),
            notes=self.notes,
            logo_url=self.logo_url,
            preparer_name=self.preparer_name,
            preparer_signature_url=self.preparer_signature_url,
            is_default=self.is_default,
        )
