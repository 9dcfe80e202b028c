"""
Benefit ORM Models (``hris_modules.benefits.orm``).

Tables: ``benefit_types``, ``benefit_requests``, ``benefit_board_reviewers``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hris_kernel.db.base import TrackedBase, VersionedMixin


class BenefitTypeModel(TrackedBase):
    """
    ORM model for ``BenefitType``.

    Table: ``benefit_types``
    """

    __tablename__ = "benefit_types"
    __entity_name__ = "BenefitType"

    name: Mapped[str] = mapped_column(String(255))
    description: Mapped[str] = mapped_column(Text, default="")
    max_value: Mapped[Decimal | None]
    requires_bod_approval: Mapped[bool] = mapped_column(Boolean, default=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        UniqueConstraint("name", name="uq_benefit_types_name"),
    )

    def to_dto(self):
        from hris_modules.benefits.models import BenefitType
        return BenefitType(
            id=self.id,
            name=self.name,
            description=self.description,
            max_value=self.max_value,
            requires_bod_approval=self.requires_bod_approval,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<BenefitTypeModel(id={self.id!r}, name={self.name!r})>"


class BenefitRequestModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``BenefitRequest``.

    Table: ``benefit_requests``

    Approval bookkeeping columns are written once, by the transition that
    owns them.
    """

    __tablename__ = "benefit_requests"
    __entity_name__ = "BenefitRequest"
    __write_once__ = (
        "submission_date",
        "hr_endorsed_by_id",
        "hr_endorsed_at",
        "bod_approved_by_id",
        "bod_approved_at",
        "fulfilled_by_id",
        "fulfilled_at",
        "voucher_code",
        "rejected_by_id",
        "rejection_reason",
    )

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    employee_name: Mapped[str] = mapped_column(String(255))
    benefit_type_id: Mapped[UUID] = mapped_column(ForeignKey("benefit_types.id"))
    benefit_type_name: Mapped[str] = mapped_column(String(255))
    amount: Mapped[Decimal | None]
    details: Mapped[str] = mapped_column(Text)
    date_needed: Mapped[date | None]
    submission_date: Mapped[datetime]

    hr_endorsed_by_id: Mapped[UUID | None]
    hr_endorsed_at: Mapped[datetime | None]
    bod_approved_by_id: Mapped[UUID | None]
    bod_approved_at: Mapped[datetime | None]

    fulfilled_by_id: Mapped[UUID | None]
    fulfilled_at: Mapped[datetime | None]
    voucher_code: Mapped[str | None] = mapped_column(String(100), nullable=True)

    rejected_by_id: Mapped[UUID | None]
    rejected_at: Mapped[datetime | None]
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    reviewers: Mapped[list["BenefitBoardReviewerModel"]] = relationship(
        back_populates="request",
        cascade="all, delete-orphan",
        lazy="selectin",
    )

    __table_args__ = (
        Index("idx_benefit_requests_employee", "employee_id"),
    )

    def to_dto(self):
        from hris_modules.benefits.models import BenefitRequest, BenefitRequestStatus
        return BenefitRequest(
            id=self.id,
            employee_id=self.employee_id,
            employee_name=self.employee_name,
            benefit_type_id=self.benefit_type_id,
            benefit_type_name=self.benefit_type_name,
            details=self.details,
            status=BenefitRequestStatus(self.status),
            submission_date=self.submission_date,
            amount=self.amount,
            date_needed=self.date_needed,
            hr_endorsed_by_id=self.hr_endorsed_by_id,
            hr_endorsed_at=self.hr_endorsed_at,
            bod_approved_by_id=self.bod_approved_by_id,
            bod_approved_at=self.bod_approved_at,
            fulfilled_by_id=self.fulfilled_by_id,
            fulfilled_at=self.fulfilled_at,
            voucher_code=self.voucher_code,
            rejected_by_id=self.rejected_by_id,
            rejection_reason=self.rejection_reason,
            board_reviewer_ids=tuple(r.reviewer_id for r in self.reviewers),
            version=self.version,
        )

    def __repr__(self) -> str:
        return (
            f"<BenefitRequestModel(id={self.id!r}, type={self.benefit_type_name!r}, "
            f"status={self.status!r})>"
        )


class BenefitBoardReviewerModel(TrackedBase):
    """
    A board member selected by HR to review one request.

    Table: ``benefit_board_reviewers``
    """

    __tablename__ = "benefit_board_reviewers"

    request_id: Mapped[UUID] = mapped_column(ForeignKey("benefit_requests.id"))
    reviewer_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))

    request: Mapped["BenefitRequestModel"] = relationship(back_populates="reviewers")

    __table_args__ = (
        UniqueConstraint("request_id", "reviewer_id", name="uq_benefit_board_reviewer"),
        Index("idx_benefit_board_reviewers_reviewer", "reviewer_id"),
    )
