"""
Certificate of Employment (COE) Domain Models.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from uuid import UUID


class COEPurpose(Enum):
    LOAN_APPLICATION = "loan_application"
    TRAVEL = "travel"
    VISA_APPLICATION = "visa_application"
    SCHOOL_APPLICATION = "school_application"
    LEGAL_PURPOSES = "legal_purposes"
    OTHERS = "others"


class COERequestStatus(Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


@dataclass(frozen=True)
class COERequest:
    """An employee's request for a certificate of employment."""
    id: UUID
    employee_id: UUID
    employee_name: str
    business_unit: str
    purpose: COEPurpose
    date_requested: datetime
    status: COERequestStatus
    other_purpose_detail: str | None = None
    rejection_reason: str | None = None
    generated_document_url: str | None = None
    approved_by_id: UUID | None = None
    approved_at: datetime | None = None


@dataclass(frozen=True)
class COETemplate:
    """Certificate layout for one business unit."""
    id: UUID
    business_unit: str
    body: str
    signatory_name: str
    signatory_position: str
    address: str = ""
    logo_url: str | None = None
    is_active: bool = True
