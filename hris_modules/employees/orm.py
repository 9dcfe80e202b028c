"""
Employee ORM Models (``hris_modules.employees.orm``).

Tables: ``employees``, ``employee_change_history``.
"""

from datetime import date, datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import Boolean, ForeignKey, Index, String, Text, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from hris_kernel.db.base import TrackedBase, VersionedMixin


class EmployeeModel(TrackedBase):
    """
    ORM model for ``Employee``.

    Table: ``employees``
    """

    __tablename__ = "employees"
    __entity_name__ = "Employee"

    name: Mapped[str] = mapped_column(String(255))
    email: Mapped[str] = mapped_column(String(255))
    role: Mapped[str] = mapped_column(String(50))
    position: Mapped[str] = mapped_column(String(255), default="")
    department: Mapped[str] = mapped_column(String(255), default="")
    business_unit: Mapped[str] = mapped_column(String(255), default="")
    employment_status: Mapped[str] = mapped_column(String(50), default="regular")
    birth_date: Mapped[date | None]
    date_hired: Mapped[date | None]
    salary_basic: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    salary_deminimis: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    salary_reimbursable: Mapped[Decimal] = mapped_column(default=Decimal("0"))
    manager_id: Mapped[UUID | None] = mapped_column(ForeignKey("employees.id"), nullable=True)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True)

    __table_args__ = (
        UniqueConstraint("email", name="uq_employees_email"),
        Index("idx_employees_role", "role"),
    )

    def to_dto(self):
        from hris_modules.employees.models import Employee, Role
        return Employee(
            id=self.id,
            name=self.name,
            email=self.email,
            role=Role(self.role),
            position=self.position,
            department=self.department,
            business_unit=self.business_unit,
            employment_status=self.employment_status,
            birth_date=self.birth_date,
            date_hired=self.date_hired,
            salary_basic=self.salary_basic,
            salary_deminimis=self.salary_deminimis,
            salary_reimbursable=self.salary_reimbursable,
            manager_id=self.manager_id,
            is_active=self.is_active,
        )

    def __repr__(self) -> str:
        return f"<EmployeeModel(id={self.id!r}, email={self.email!r}, role={self.role!r})>"


class ChangeHistoryModel(TrackedBase, VersionedMixin):
    """
    ORM model for ``ChangeRecord`` -- one proposed profile field change.

    Table: ``employee_change_history``
    """

    __tablename__ = "employee_change_history"
    __entity_name__ = "ChangeHistory"
    __write_once__ = ("reviewed_by_id", "reviewed_at", "rejection_reason")

    employee_id: Mapped[UUID] = mapped_column(ForeignKey("employees.id"))
    field: Mapped[str] = mapped_column(String(100))
    old_value: Mapped[str] = mapped_column(Text, default="")
    new_value: Mapped[str] = mapped_column(Text, default="")
    # Source document, e.g. the PAN that produced the change
    submission_id: Mapped[UUID]
    changed_by_id: Mapped[UUID]
    changed_at: Mapped[datetime]
    reviewed_by_id: Mapped[UUID | None]
    reviewed_at: Mapped[datetime | None]
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)

    __table_args__ = (
        Index("idx_change_history_submission", "submission_id"),
        Index("idx_change_history_employee", "employee_id"),
    )

    def to_dto(self):
        from hris_modules.employees.models import ChangeRecord, ChangeStatus
        return ChangeRecord(
            id=self.id,
            employee_id=self.employee_id,
            field=self.field,
            old_value=self.old_value,
            new_value=self.new_value,
            status=ChangeStatus(self.status),
            submission_id=self.submission_id,
            changed_by_id=self.changed_by_id,
            changed_at=self.changed_at,
            reviewed_by_id=self.reviewed_by_id,
            reviewed_at=self.reviewed_at,
            rejection_reason=self.rejection_reason,
        )

    def __repr__(self) -> str:
        return (
            f"<ChangeHistoryModel(id={self.id!r}, field={self.field!r}, "
            f"status={self.status!r})>"
        )
