"""
Benefits Module.

Handles the benefit catalogue and benefit requests routed
HR -> optional Board -> Fulfillment.
"""

from hris_modules.benefits.helpers import route_after_hr, validate_benefit_request
from hris_modules.benefits.models import BenefitRequest, BenefitRequestStatus, BenefitType
from hris_modules.benefits.service import BenefitService
from hris_modules.benefits.workflows import BENEFIT_REQUEST_WORKFLOW

__all__ = [
    "BenefitRequest",
    "BenefitRequestStatus",
    "BenefitType",
    "BenefitService",
    "BENEFIT_REQUEST_WORKFLOW",
    "route_after_hr",
    "validate_benefit_request",
]
