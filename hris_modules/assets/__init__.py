"""
Assets Module.

Handles company equipment: registration, assignment and acknowledgement,
returns, repairs, retirement, and employee asset requests.
"""

from hris_modules.assets.models import (
    Asset,
    AssetAssignment,
    AssetRepair,
    AssetRequest,
    AssetRequestStatus,
    AssetRequestType,
    AssetStatus,
    AssetType,
)
from hris_modules.assets.service import AssetService
from hris_modules.assets.workflows import ASSET_REQUEST_WORKFLOW, ASSET_WORKFLOW

__all__ = [
    "Asset",
    "AssetAssignment",
    "AssetRepair",
    "AssetRequest",
    "AssetRequestStatus",
    "AssetRequestType",
    "AssetStatus",
    "AssetType",
    "AssetService",
    "ASSET_WORKFLOW",
    "ASSET_REQUEST_WORKFLOW",
]
