"""
COE Module.

Certificate of employment requests, templates, rendering and signed
document download.
"""

from hris_modules.coe.helpers import COE_PLACEHOLDERS, purpose_text
from hris_modules.coe.models import COEPurpose, COERequest, COERequestStatus, COETemplate
from hris_modules.coe.service import COEService
from hris_modules.coe.workflows import COE_REQUEST_WORKFLOW

__all__ = [
    "COE_PLACEHOLDERS",
    "COEPurpose",
    "COERequest",
    "COERequestStatus",
    "COETemplate",
    "COEService",
    "COE_REQUEST_WORKFLOW",
    "purpose_text",
]
