"""
Job Requisition Domain Models.

A requisition asks for approval to open a position.  It is reviewed by HR
first and then by final approvers drawn from the board.
"""

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class JobRequisitionStatus(Enum):
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    APPROVED = "approved"
    REJECTED = "rejected"
    CLOSED = "closed"


class RequisitionStepRole(Enum):
    """Review stage a routing step belongs to."""
    HR = "hr"
    FINAL = "final"


class RequisitionStepStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class EmploymentType(Enum):
    FULL_TIME = "full_time"
    PART_TIME = "part_time"
    CONTRACT = "contract"


class LocationType(Enum):
    ONSITE = "onsite"
    HYBRID = "hybrid"
    REMOTE = "remote"


@dataclass(frozen=True)
class RequisitionDetails:
    """What the hiring manager fills in on the requisition form."""
    title: str
    department: str
    business_unit: str
    justification: str
    headcount: int = 1
    employment_type: EmploymentType = EmploymentType.FULL_TIME
    location_type: LocationType = LocationType.ONSITE
    work_location: str = ""
    budgeted_salary_min: Decimal | None = None
    budgeted_salary_max: Decimal | None = None
    is_urgent: bool = False


@dataclass(frozen=True)
class RequisitionStep:
    id: UUID
    requisition_id: UUID
    user_id: UUID
    name: str
    role: RequisitionStepRole
    status: RequisitionStepStatus
    order: int
    acted_at: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class JobRequisition:
    """A request to open a position, with its approval routing."""
    id: UUID
    req_code: str
    details: RequisitionDetails
    status: JobRequisitionStatus
    created_by_id: UUID
    routing_steps: tuple[RequisitionStep, ...] = field(default_factory=tuple)
    version: int = 1

    @property
    def title(self) -> str:
        return self.details.title
