"""
Recruitment Module.

Handles job requisitions: drafting, HR review, final approval by the board
and closing.
"""

from hris_modules.recruitment.helpers import ReviewStage, requisition_code, review_stage
from hris_modules.recruitment.models import (
    EmploymentType,
    JobRequisition,
    JobRequisitionStatus,
    LocationType,
    RequisitionDetails,
    RequisitionStep,
    RequisitionStepRole,
    RequisitionStepStatus,
)
from hris_modules.recruitment.service import RequisitionService
from hris_modules.recruitment.workflows import REQUISITION_STEP_WORKFLOW, REQUISITION_WORKFLOW

__all__ = [
    "EmploymentType",
    "JobRequisition",
    "JobRequisitionStatus",
    "LocationType",
    "RequisitionDetails",
    "RequisitionStep",
    "RequisitionStepRole",
    "RequisitionStepStatus",
    "RequisitionService",
    "ReviewStage",
    "REQUISITION_WORKFLOW",
    "REQUISITION_STEP_WORKFLOW",
    "requisition_code",
    "review_stage",
]
