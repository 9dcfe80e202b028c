"""
Asset ORM Models (``hris_modules.assets.orm``).

Tables: ``assets``, ``asset_assignments``, ``asset_repairs``,
``asset_requests``.

``asset_assignments`` carries a partial unique index on ``asset_id`` for
rows without ``date_returned``: at most one open assignment per asset.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint, text
from sqlalchemy.orm import Mapped, mapped_column

from hris_kernel.db.base import TrackedBase, VersionedMixin


class AssetModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``Asset``.

    Table: ``assets``
    """

    __tablename__ = "assets"
    __entity_name__ = "Asset"

    asset_tag: Mapped[str] = mapped_column(String(50))
    name: Mapped[str] = mapped_column(String(255))
    asset_type: Mapped[str] = mapped_column(String(50))
    business_unit: Mapped[str] = mapped_column(String(255), default="")
    serial_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    purchase_date: Mapped[date | None]
    value: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        UniqueConstraint("asset_tag", name="uq_assets_tag"),
    )

    def to_dto(self):
        from hris_modules.assets.models import Asset, AssetStatus, AssetType
        return Asset(
            id=self.id,
            asset_tag=self.asset_tag,
            name=self.name,
            asset_type=AssetType(self.asset_type),
            status=AssetStatus(self.status),
            business_unit=self.business_unit,
            serial_number=self.serial_number,
            purchase_date=self.purchase_date,
            value=self.value,
            notes=self.notes,
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<AssetModel(id={self.id!r}, tag={self.asset_tag!r}, status={self.status!r})>"


class AssetAssignmentModel(TrackedBase):
    """
    ORM model for ``AssetAssignment``.

    Table: ``asset_assignments``
    """

    __tablename__ = "asset_assignments"
    __entity_name__ = "AssetAssignment"
    __write_once__ = ("date_returned", "acknowledged_at", "signed_document_url")

    asset_id: Mapped[UUID] = mapped_column(ForeignKey("assets.id"))
    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    date_assigned: Mapped[datetime]
    date_returned: Mapped[datetime | None]
    condition_on_assign: Mapped[str] = mapped_column(String(255), default="")
    condition_on_return: Mapped[str | None] = mapped_column(String(255), nullable=True)
    manager_proof_url_on_return: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    is_acknowledged: Mapped[bool] = mapped_column(Boolean, default=False)
    acknowledged_at: Mapped[datetime | None]
    signed_document_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)

    __table_args__ = (
        Index(
            "uq_asset_assignments_open",
            "asset_id",
            unique=True,
            sqlite_where=text("date_returned IS NULL"),
            postgresql_where=text("date_returned IS NULL"),
        ),
        Index("idx_asset_assignments_employee", "employee_id"),
    )

    def to_dto(self):
        from hris_modules.assets.models import AssetAssignment
        return AssetAssignment(
            id=self.id,
            asset_id=self.asset_id,
            employee_id=self.employee_id,
            date_assigned=self.date_assigned,
            condition_on_assign=self.condition_on_assign,
            date_returned=self.date_returned,
            condition_on_return=self.condition_on_return,
            manager_proof_url_on_return=self.manager_proof_url_on_return,
            is_acknowledged=self.is_acknowledged,
            acknowledged_at=self.acknowledged_at,
            signed_document_url=self.signed_document_url,
        )


class AssetRepairModel(TrackedBase):
    """
    ORM model for ``AssetRepair``.

    Table: ``asset_repairs``
    """

    __tablename__ = "asset_repairs"
    __entity_name__ = "AssetRepair"

    asset_id: Mapped[UUID] = mapped_column(ForeignKey("assets.id"))
    date_in: Mapped[datetime]
    date_out: Mapped[datetime | None]
    notes: Mapped[str] = mapped_column(Text, default="")
    cost: Mapped[Decimal | None]

    __table_args__ = (
        Index("idx_asset_repairs_asset", "asset_id"),
    )

    def to_dto(self):
        from hris_modules.assets.models import AssetRepair
        return AssetRepair(
            id=self.id,
            asset_id=self.asset_id,
            date_in=self.date_in,
            notes=self.notes,
            date_out=self.date_out,
            cost=self.cost,
        )


class AssetRequestModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``AssetRequest``.

    Table: ``asset_requests``
    """

    __tablename__ = "asset_requests"
    __entity_name__ = "AssetRequest"
    __write_once__ = (
        "requested_at",
        "approved_at",
        "rejected_at",
        "fulfilled_at",
        "employee_submitted_at",
        "rejection_reason",
    )

    request_type: Mapped[str] = mapped_column(String(20))
    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    employee_name: Mapped[str] = mapped_column(String(255))
    asset_description: Mapped[str] = mapped_column(String(255))
    justification: Mapped[str] = mapped_column(Text, default="")
    requested_at: Mapped[datetime]
    manager_id: Mapped[UUID | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    manager_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    asset_id: Mapped[UUID | None] = mapped_column(ForeignKey("assets.id"), nullable=True)

    approved_by_id: Mapped[UUID | None]
    approved_at: Mapped[datetime | None]
    rejected_by_id: Mapped[UUID | None]
    rejected_at: Mapped[datetime | None]
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    fulfilled_by_id: Mapped[UUID | None]
    fulfilled_at: Mapped[datetime | None]

    employee_submission_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    employee_proof_url: Mapped[str | None] = mapped_column(String(1024), nullable=True)
    employee_submitted_at: Mapped[datetime | None]

    __table_args__ = (
        Index("idx_asset_requests_employee", "employee_id"),
    )

    def to_dto(self):
        from hris_modules.assets.models import AssetRequest, AssetRequestStatus, AssetRequestType
        return AssetRequest(
            id=self.id,
            request_type=AssetRequestType(self.request_type),
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            asset_description=self.asset_description,
            justification=self.justification,
            status=AssetRequestStatus(self.status),
            requested_at=self.requested_at,
            manager_id=self.manager_id,
            manager_notes=self.manager_notes,
            asset_id=self.asset_id,
            approved_at=self.approved_at,
            rejected_at=self.rejected_at,
            fulfilled_at=self.fulfilled_at,
            employee_submission_notes=self.employee_submission_notes,
            employee_proof_url=self.employee_proof_url,
            employee_submitted_at=self.employee_submitted_at,
            rejection_reason=self.rejection_reason,
        )
