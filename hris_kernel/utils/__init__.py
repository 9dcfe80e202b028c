"""Utility functions - hashing, URL signing, template rendering."""

from hris_kernel.utils.hashing import canonicalize_json, hash_audit_event, hash_payload, to_json_safe
from hris_kernel.utils.signing import sign_storage_url, storage_path_from_url, verify_signed_url
from hris_kernel.utils.templating import find_placeholders, render_placeholders

__all__ = [
    "canonicalize_json",
    "hash_payload",
    "hash_audit_event",
    "to_json_safe",
    "sign_storage_url",
    "verify_signed_url",
    "storage_path_from_url",
    "render_placeholders",
    "find_placeholders",
]
