"""
Personnel Action Notice (PAN) Domain Models.

A PAN documents a change to an employee's status, position, department or
pay.  HR drafts it, routes it through recommenders / endorsers / approvers,
and the employee acknowledges it by signing.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class PANStatus(Enum):
    """Aggregate PAN lifecycle states."""
    DRAFT = "draft"
    PENDING_APPROVAL = "pending_approval"
    PENDING_EMPLOYEE = "pending_employee"
    COMPLETED = "completed"
    DECLINED = "declined"
    CANCELLED = "cancelled"


class PANRole(Enum):
    """Role of one routing step."""
    RECOMMENDER = "recommender"
    ENDORSER = "endorser"
    APPROVER = "approver"
    ACKNOWLEDGER = "acknowledger"


class PANStepStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    DECLINED = "declined"


@dataclass(frozen=True)
class PANActionTaken:
    """Which kinds of personnel action the notice covers."""
    change_of_status: bool = False
    promotion: bool = False
    transfer: bool = False
    salary_increase: bool = False
    change_of_job_title: bool = False
    others: str = ""

    def labels(self) -> list[str]:
        """Human-readable ticked boxes, in form order."""
        out = []
        if self.change_of_status:
            out.append("Change of Status")
        if self.promotion:
            out.append("Promotion")
        if self.transfer:
            out.append("Transfer")
        if self.salary_increase:
            out.append("Salary Increase")
        if self.change_of_job_title:
            out.append("Change of Job Title")
        if self.others:
            out.append(f"Others: {self.others}")
        return out


@dataclass(frozen=True)
class Particulars:
    """One side (from / to) of the particulars-of-change table."""
    employment_status: str | None = None
    position: str | None = None
    department: str | None = None
    salary_basic: Decimal | None = None
    salary_deminimis: Decimal | None = None
    salary_reimbursable: Decimal | None = None

    @property
    def salary_total(self) -> Decimal:
        return sum(
            (v for v in (self.salary_basic, self.salary_deminimis, self.salary_reimbursable)
             if v is not None),
            Decimal("0"),
        )


@dataclass(frozen=True)
class RoutingStepInput:
    """A routing step as chosen on the draft form."""
    user_id: UUID
    role: PANRole
    order: int


@dataclass(frozen=True)
class RoutingStep:
    """A routing step and its decision."""
    id: UUID
    pan_id: UUID
    user_id: UUID
    name: str
    role: PANRole
    status: PANStepStatus
    order: int
    acted_at: datetime | None = None
    notes: str | None = None


@dataclass(frozen=True)
class PAN:
    """A Personnel Action Notice."""
    id: UUID
    employee_id: UUID
    employee_name: str
    effective_date: date
    status: PANStatus
    action_taken: PANActionTaken
    particulars_from: Particulars
    particulars_to: Particulars
    preparer_id: UUID
    tenure: str = ""
    notes: str = ""
    routing_steps: tuple[RoutingStep, ...] = field(default_factory=tuple)
    preparer_name: str | None = None
    preparer_signature_url: str | None = None
    logo_url: str | None = None
    signed_at: datetime | None = None
    signature_data_url: str | None = None
    signature_name: str | None = None
    version: int = 1


@dataclass(frozen=True)
class PANTemplate:
    """Reusable defaults for drafting PANs."""
    id: UUID
    name: str
    action_taken: PANActionTaken
    notes: str = ""
    logo_url: str | None = None
    preparer_name: str | None = None
    preparer_signature_url: str | None = None
    is_default: bool = False
