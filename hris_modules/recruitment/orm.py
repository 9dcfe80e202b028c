"""
Recruitment ORM Models (``hris_modules.recruitment.orm``).

Tables: ``job_requisitions``, ``job_requisition_steps``.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from hris_kernel.db.base import TrackedBase, VersionedMixin


class JobRequisitionModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``JobRequisition``.

    Table: ``job_requisitions``
    """

    __tablename__ = "job_requisitions"
    __entity_name__ = "JobRequisition"
    __write_once__ = ("req_code",)

    req_code: Mapped[str] = mapped_column(String(32))
    title: Mapped[str] = mapped_column(String(255))
    department: Mapped[str] = mapped_column(String(255))
    business_unit: Mapped[str] = mapped_column(String(255))
    justification: Mapped[str] = mapped_column(Text)
    headcount: Mapped[int] = mapped_column(Integer, default=1)
    employment_type: Mapped[str] = mapped_column(String(20))
    location_type: Mapped[str] = mapped_column(String(20))
    work_location: Mapped[str] = mapped_column(String(255), default="")
    budgeted_salary_min: Mapped[Decimal | None]
    budgeted_salary_max: Mapped[Decimal | None]
    is_urgent: Mapped[bool] = mapped_column(Boolean, default=False)

    steps: Mapped[list["JobRequisitionStepModel"]] = relationship(
        back_populates="requisition",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="JobRequisitionStepModel.order",
    )

    __table_args__ = (
        UniqueConstraint("req_code", name="uq_job_requisitions_req_code"),
        Index("idx_job_requisitions_creator", "created_by_id"),
    )

    def to_dto(self):
        from hris_modules.recruitment.helpers import money_or_none
        from hris_modules.recruitment.models import (
            EmploymentType,
            JobRequisition,
            JobRequisitionStatus,
            LocationType,
            RequisitionDetails,
        )
        return JobRequisition(
            id=self.id,
            req_code=self.req_code,
            details=RequisitionDetails(
                title=self.title,
                department=self.department,
                business_unit=self.business_unit,
                justification=self.justification,
                headcount=self.headcount,
                employment_type=EmploymentType(self.employment_type),
                location_type=LocationType(self.location_type),
                work_location=self.work_location,
                budgeted_salary_min=money_or_none(self.budgeted_salary_min),
                budgeted_salary_max=money_or_none(self.budgeted_salary_max),
                is_urgent=self.is_urgent,
            ),
            status=JobRequisitionStatus(self.status),
            created_by_id=self.created_by_id,
            routing_steps=tuple(s.to_dto() for s in self.steps),
            version=self.version,
        )

    def __repr__(self) -> str:
        return f"<JobRequisitionModel(code={self.req_code!r}, status={self.status!r})>"


class JobRequisitionStepModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``RequisitionStep``.

    Table: ``job_requisition_steps``
    """

    __tablename__ = "job_requisition_steps"
    __entity_name__ = "JobRequisitionStep"
    __write_once__ = ("acted_at",)

    requisition_id: Mapped[UUID] = mapped_column(ForeignKey("job_requisitions.id"))
    user_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    name: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(20))
    order: Mapped[int] = mapped_column("step_order", Integer)
    acted_at: Mapped[datetime | None]
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    requisition: Mapped["JobRequisitionModel"] = relationship(back_populates="steps")

    __table_args__ = (
        Index("idx_job_requisition_steps_user", "user_id", "status"),
    )

    def to_dto(self):
        from hris_modules.recruitment.models import (
            RequisitionStep,
            RequisitionStepRole,
            RequisitionStepStatus,
        )
        return RequisitionStep(
            id=self.id,
            requisition_id=self.requisition_id,
            user_id=self.user_id,
            name=self.name,
            role=RequisitionStepRole(self.role),
            status=RequisitionStepStatus(self.status),
            order=self.order,
            acted_at=self.acted_at,
            notes=self.notes,
        )
