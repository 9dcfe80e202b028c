"""
Asset Management Domain Models.

Company equipment, who holds it, its repair history, and employee requests
to receive or hand back equipment.
"""

from dataclasses import dataclass
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from uuid import UUID


class AssetType(Enum):
    LAPTOP = "laptop"
    MOBILE_PHONE = "mobile_phone"
    MONITOR = "monitor"
    SOFTWARE_LICENSE = "software_license"
    OTHER = "other"


class AssetStatus(Enum):
    """Asset lifecycle states."""
    AVAILABLE = "available"
    ASSIGNED = "assigned"
    IN_REPAIR = "in_repair"
    RETIRED = "retired"


class AssetRequestType(Enum):
    REQUEST = "request"
    RETURN = "return"


class AssetRequestStatus(Enum):
    """Asset request lifecycle states."""
    PENDING = "pending"
    RETURNED = "returned"  # employee handed the asset back, awaiting confirmation
    APPROVED = "approved"
    REJECTED = "rejected"
    FULFILLED = "fulfilled"


@dataclass(frozen=True)
class Asset:
    """A tracked piece of company equipment."""
    id: UUID
    asset_tag: str
    name: str
    asset_type: AssetType
    status: AssetStatus
    business_unit: str = ""
    serial_number: str | None = None
    purchase_date: date | None = None
    value: Decimal = Decimal("0")
    notes: str | None = None
    version: int = 1


@dataclass(frozen=True)
class AssetAssignment:
    """One custody period of an asset."""
    id: UUID
    asset_id: UUID
    employee_id: UUID
    date_assigned: datetime
    condition_on_assign: str
    date_returned: datetime | None = None
    condition_on_return: str | None = None
    manager_proof_url_on_return: str | None = None
    is_acknowledged: bool = False
    acknowledged_at: datetime | None = None
    signed_document_url: str | None = None

    @property
    def is_open(self) -> bool:
        return self.date_returned is None


@dataclass(frozen=True)
class AssetRepair:
    """A repair visit."""
    id: UUID
    asset_id: UUID
    date_in: datetime
    notes: str = ""
    date_out: datetime | None = None
    cost: Decimal | None = None


@dataclass(frozen=True)
class AssetRequest:
    """An employee request to receive, or a prompt to return, an asset."""
    id: UUID
    request_type: AssetRequestType
    employee_id: UUID
    employee_name: str
    asset_description: str
    justification: str
    status: AssetRequestStatus
    requested_at: datetime
    manager_id: UUID | None = None
    manager_notes: str | None = None
    asset_id: UUID | None = None
    approved_at: datetime | None = None
    rejected_at: datetime | None = None
    fulfilled_at: datetime | None = None
    employee_submission_notes: str | None = None
    employee_proof_url: str | None = None
    employee_submitted_at: datetime | None = None
    rejection_reason: str | None = None
