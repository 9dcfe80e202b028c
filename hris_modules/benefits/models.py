"""
Benefit Domain Models.

Benefit types define the catalogue (limit, board approval flag); benefit
requests move HR -> optional Board -> Fulfillment.
"""

from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class BenefitRequestStatus(Enum):
    """Benefit request lifecycle states."""
    PENDING_HR = "pending_hr"
    PENDING_BOD = "pending_bod"
    APPROVED = "approved"
    FULFILLED = "fulfilled"
    REJECTED = "rejected"
    CANCELLED = "cancelled"


@dataclass(frozen=True)
class BenefitType:
    """A benefit the company offers."""
    id: UUID
    name: str
    description: str = ""
    max_value: Decimal | None = None  # optional limit
    requires_bod_approval: bool = False
    is_active: bool = True


@dataclass(frozen=True)
class BenefitRequest:
    """An employee's request for a benefit."""
    id: UUID
    employee_id: UUID
    employee_name: str
    benefit_type_id: UUID
    benefit_type_name: str
    details: str
    status: BenefitRequestStatus
    submission_date: datetime
    amount: Decimal | None = None
    date_needed: date | None = None
    hr_endorsed_by_id: UUID | None = None
    hr_endorsed_at: datetime | None = None
    bod_approved_by_id: UUID | None = None
    bod_approved_at: datetime | None = None
    fulfilled_by_id: UUID | None = None
    fulfilled_at: datetime | None = None
    voucher_code: str | None = None
    rejected_by_id: UUID | None = None
    rejection_reason: str | None = None
    board_reviewer_ids: tuple[UUID, ...] = field(default_factory=tuple)
    version: int = 1
