"""
Pure requisition rules (``hris_modules.recruitment.helpers``).

Review runs in two stages: the HR steps, then the final approvers HR adds
once its own review is done.  ``review_stage`` reads a set of step rows or
DTOs and says where the requisition stands.
"""

from collections.abc import Iterable
from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Any

from hris_kernel.exceptions import InvalidAmountError, InvalidRangeError, RequiredFieldError
from hris_modules.recruitment.models import (
    EmploymentType,
    LocationType,
    RequisitionDetails,
    RequisitionStepRole,
    RequisitionStepStatus,
)

HR_STEP_ORDER = 1
FINAL_STEP_ORDER = 2


class ReviewStage(Enum):
    HR_REVIEW = "hr_review"
    AWAITING_FINAL_APPROVERS = "awaiting_final_approvers"
    FINAL_REVIEW = "final_review"
    APPROVED = "approved"
    REJECTED = "rejected"


def _role(step: Any) -> RequisitionStepRole:
    return RequisitionStepRole(getattr(step.role, "value", step.role))


def _status(step: Any) -> RequisitionStepStatus:
    return RequisitionStepStatus(getattr(step.status, "value", step.status))


def review_stage(steps: Iterable[Any]) -> ReviewStage:
    """
    Where review stands.

    * any rejected step                          -> REJECTED
    * HR steps open                              -> HR_REVIEW
    * HR done, no final approvers yet            -> AWAITING_FINAL_APPROVERS
    * final approvers open                       -> FINAL_REVIEW
    * final approvers present and all approved   -> APPROVED
    """
    steps = list(steps)
    if any(_status(s) is RequisitionStepStatus.REJECTED for s in steps):
        return ReviewStage.REJECTED
    hr = [s for s in steps if _role(s) is RequisitionStepRole.HR]
    final = [s for s in steps if _role(s) is RequisitionStepRole.FINAL]
    if any(_status(s) is not RequisitionStepStatus.APPROVED for s in hr):
        return ReviewStage.HR_REVIEW
    if not final:
        return ReviewStage.AWAITING_FINAL_APPROVERS
    if any(_status(s) is not RequisitionStepStatus.APPROVED for s in final):
        return ReviewStage.FINAL_REVIEW
    return ReviewStage.APPROVED


def requisition_code(when: datetime, number: int) -> str:
    """``REQ-<yyyymm>-<nnnnnn>``, e.g. ``REQ-202601-000042``."""
    return f"REQ-{when:%Y%m}-{number:06d}"


def validate_details(details: RequisitionDetails) -> RequisitionDetails:
    """
    Check the form and return it with text fields stripped.

    Raises:
        RequiredFieldError: title, department, business unit or
            justification is blank.
        InvalidAmountError: headcount below one, or a negative salary bound.
        InvalidRangeError: budgeted minimum above the maximum.
    """
    for name in ("title", "department", "business_unit", "justification"):
        value = getattr(details, name)
        if not value or not value.strip():
            raise RequiredFieldError(name, "JobRequisition")
    if details.headcount < 1:
        raise InvalidAmountError("headcount", str(details.headcount))
    low, high = details.budgeted_salary_min, details.budgeted_salary_max
    for name, value in (("budgeted_salary_min", low), ("budgeted_salary_max", high)):
        if value is not None and value < 0:
            raise InvalidAmountError(name, str(value))
    if low is not None and high is not None and low > high:
        raise InvalidRangeError("budgeted_salary", str(low), str(high))
    return RequisitionDetails(
        title=details.title.strip(),
        department=details.department.strip(),
        business_unit=details.business_unit.strip(),
        justification=details.justification.strip(),
        headcount=details.headcount,
        employment_type=EmploymentType(details.employment_type),
        location_type=LocationType(details.location_type),
        work_location=(details.work_location or "").strip(),
        budgeted_salary_min=low,
        budgeted_salary_max=high,
        is_urgent=details.is_urgent,
    )


def money_or_none(value: Any) -> Decimal | None:
    return None if value is None else Decimal(str(value))
