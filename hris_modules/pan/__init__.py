"""
PAN Module.

Handles Personnel Action Notices: drafting from templates, routing through
recommenders / endorsers / approvers, employee acknowledgement and the
printable certificate.
"""

from hris_modules.pan.helpers import aggregate_status, diff_particulars
from hris_modules.pan.models import (
    PAN,
    PANActionTaken,
    PANRole,
    PANStatus,
    PANStepStatus,
    PANTemplate,
    Particulars,
    RoutingStep,
    RoutingStepInput,
)
from hris_modules.pan.service import PANService
from hris_modules.pan.workflows import PAN_STEP_WORKFLOW, PAN_WORKFLOW

__all__ = [
    "PAN",
    "PANActionTaken",
    "PANRole",
    "PANStatus",
    "PANStepStatus",
    "PANTemplate",
    "Particulars",
    "RoutingStep",
    "RoutingStepInput",
    "PANService",
    "PAN_WORKFLOW",
    "PAN_STEP_WORKFLOW",
    "aggregate_status",
    "diff_particulars",
]
