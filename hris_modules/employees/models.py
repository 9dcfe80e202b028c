"""
Employee Domain Models.

The people the workflows route between: employees, their roles, and the
profile change history produced by acknowledged PANs.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class Role(Enum):
    """Access role carried by every employee record."""
    ADMIN = "admin"
    HR_MANAGER = "hr_manager"
    HR_STAFF = "hr_staff"
    BOD = "bod"  # board of directors
    GENERAL_MANAGER = "general_manager"
    MANAGER = "manager"
    EMPLOYEE = "employee"


class ChangeStatus(Enum):
    """Review state of a profile change."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


# Profile fields a change record may target, mapped to Employee attributes.
TRACKED_FIELDS: tuple[str, ...] = (
    "employment_status",
    "position",
    "department",
    "salary_basic",
    "salary_deminimis",
    "salary_reimbursable",
)

MONEY_FIELDS = frozenset({"salary_basic", "salary_deminimis", "salary_reimbursable"})


@dataclass(frozen=True)
class Employee:
    """An employee record."""
    id: UUID
    name: str
    email: str
    role: Role
    position: str = ""
    department: str = ""
    business_unit: str = ""
    employment_status: str = "regular"
    birth_date: date | None = None
    date_hired: date | None = None
    salary_basic: Decimal = Decimal("0")
    salary_deminimis: Decimal = Decimal("0")
    salary_reimbursable: Decimal = Decimal("0")
    manager_id: UUID | None = None
    is_active: bool = True


@dataclass(frozen=True)
class FieldChange:
    """One field's before/after values, as strings."""
    field: str
    old_value: str
    new_value: str


@dataclass(frozen=True)
class ChangeRecord:
    """A pending or reviewed profile change."""
    id: UUID
    employee_id: UUID
    field: str
    old_value: str
    new_value: str
    status: ChangeStatus
    submission_id: UUID
    changed_by_id: UUID
    changed_at: datetime
    reviewed_by_id: UUID | None = None
    reviewed_at: datetime | None = None
    rejection_reason: str | None = None
